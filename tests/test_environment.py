"""Tests for environment assembly and expansion."""

from __future__ import annotations

import pytest

from fullbuild.scm.environment import (
    build_environment,
    expand,
    find_references,
    resolve_environment,
)
from fullbuild.scm.errors import ExpansionError
from fullbuild.scm.state import Stage


def test_expand_braced_and_bare_references() -> None:
    env = {"FOO": "bar", "HOST": "gerrit"}
    assert expand("http://x/${FOO}", env) == "http://x/bar"
    assert expand("ssh://$HOST/$FOO", env) == "ssh://gerrit/bar"


def test_expand_double_dollar_is_literal() -> None:
    env = {"FOO": "bar"}
    assert expand("http://x/$$FOO", env) == "http://x/$FOO"
    assert expand("a$$$FOO", env) == "a$bar"
    assert expand("$${FOO}", env, strict=True) == "${FOO}"


def test_find_references_skips_escaped_dollars() -> None:
    assert find_references("$$A $B $$${C}") == ["B", "C"]


def test_resolve_unescapes_once() -> None:
    env = resolve_environment({"PRICE": "$$5", "LABEL": "cost $PRICE"})
    assert env == {"PRICE": "$5", "LABEL": "cost $5"}
    assert expand("${LABEL}", env) == "cost $5"


def test_expand_leaves_unknown_references() -> None:
    assert expand("http://x/${MISSING}/$ALSO", {}) == "http://x/${MISSING}/$ALSO"


def test_strict_expand_reports_missing_names() -> None:
    with pytest.raises(ExpansionError) as excinfo:
        expand("${A}/${B}/${A}", {"B": "b"}, strict=True, stage=Stage.INIT)

    assert excinfo.value.missing == ("A",)
    assert excinfo.value.stage is Stage.INIT
    assert "init" in str(excinfo.value)


def test_strict_expand_passes_when_all_defined() -> None:
    assert expand("${A}-$B", {"A": "1", "B": "2"}, strict=True) == "1-2"


def test_find_references_in_order() -> None:
    assert find_references("$A ${B.c} plain $D") == ["A", "B.c", "D"]


def test_resolve_chains_until_stable() -> None:
    env = resolve_environment({"C": "$B/c", "B": "$A/b", "A": "root"})
    assert env == {"A": "root", "B": "root/b", "C": "root/b/c"}


def test_resolve_terminates_on_cycles() -> None:
    env = resolve_environment({"A": "$B", "B": "$A"})
    assert env == {"A": "$A", "B": "$A"}


def test_resolve_does_not_amplify_cycles() -> None:
    filler = {f"FILLER_{i}": f"value-{i}" for i in range(100)}
    env = resolve_environment({**filler, "A": "$B$B", "B": "$A"})
    assert env["A"] == "$A$A"
    assert env["B"] == "$A"
    assert env["FILLER_7"] == "value-7"


def test_resolve_keeps_unrelated_variables_after_cycle() -> None:
    env = resolve_environment({"A": "$B", "B": "$A", "C": "x-${D}", "D": "d"})
    assert env["C"] == "x-d"


def test_resolve_ignores_self_reference() -> None:
    assert resolve_environment({"PATH": "/opt/bin:$PATH"}) == {"PATH": "/opt/bin:$PATH"}


class TestBuildEnvironment:
    """Tests for merging parameter defaults with the build environment."""

    def test_build_env_overrides_defaults(self) -> None:
        env = build_environment({"TARGET": "debug", "ARCH": "x86"}, {"TARGET": "release"})
        assert env == {"TARGET": "release", "ARCH": "x86"}

    def test_none_defaults_are_skipped(self) -> None:
        env = build_environment({"OPTIONAL": None}, {})
        assert "OPTIONAL" not in env

    def test_defaults_can_reference_build_variables(self) -> None:
        env = build_environment(
            {"MANIFEST": "https://${SERVER}/manifest"},
            {"SERVER": "gerrit.local"},
        )
        assert env["MANIFEST"] == "https://gerrit.local/manifest"

    def test_handles_missing_inputs(self) -> None:
        assert build_environment(None, None) == {}
