"""Tests for stage command construction."""

from __future__ import annotations

from pathlib import Path

import pytest

from fullbuild.config.settings import DEFAULT_EXECUTABLE
from fullbuild.runtime.sinks import BufferSink
from fullbuild.scm.commands import CommandBuilder
from fullbuild.scm.config import ScmConfig
from fullbuild.scm.errors import ExpansionError
from fullbuild.scm.state import Stage

WORKSPACE = Path("/work/job-1")


@pytest.fixture
def builder() -> CommandBuilder:
    return CommandBuilder("/opt/fullbuild/bin/fullbuild")


def test_default_executable_when_unset() -> None:
    assert CommandBuilder().executable == DEFAULT_EXECUTABLE
    assert CommandBuilder("").executable == DEFAULT_EXECUTABLE


def test_init_expands_protocol_and_url(builder: CommandBuilder) -> None:
    config = ScmConfig.create("http://x/${FOO}", protocol="$PROTO")
    argv = builder.init(config, {"FOO": "bar", "PROTO": "https"}, WORKSPACE)
    assert argv == [
        "/opt/fullbuild/bin/fullbuild",
        "init",
        "https",
        "http://x/bar",
        str(WORKSPACE),
    ]


def test_install_and_history_take_no_arguments(builder: CommandBuilder) -> None:
    assert builder.install() == ["/opt/fullbuild/bin/fullbuild", "install"]
    assert builder.history() == ["/opt/fullbuild/bin/fullbuild", "history"]


@pytest.mark.parametrize("shallow", [True, False])
def test_clone_shallow_flag_follows_config(builder: CommandBuilder, shallow: bool) -> None:
    config = ScmConfig.create("u", shallow=shallow, ignore_projects="a b")
    argv = builder.clone(config, {})
    assert ("--shallow" in argv) is shallow


def test_clone_joins_ignore_list_into_one_argument(builder: CommandBuilder) -> None:
    config = ScmConfig.create("u", ignore_projects="a b a c")
    argv = builder.clone(config, {})

    assert argv[:3] == ["/opt/fullbuild/bin/fullbuild", "clone", "--shallow"]
    assert len(argv) == 4
    tokens = argv[3].split(" ")
    assert sorted(tokens) == ["a", "b", "c"]


def test_clone_keeps_empty_ignore_argument(builder: CommandBuilder) -> None:
    argv = builder.clone(ScmConfig("u", shallow=False), {})
    assert argv == ["/opt/fullbuild/bin/fullbuild", "clone", ""]


def test_clone_expands_ignore_list(builder: CommandBuilder) -> None:
    config = ScmConfig.create("u", ignore_projects="$EXTRA docs")
    assert builder.clone(config, {"EXTRA": "tools"})[-1] == "tools docs"


def test_strict_builder_rejects_unresolved_url() -> None:
    builder = CommandBuilder("fb", strict=True)
    with pytest.raises(ExpansionError) as excinfo:
        builder.init(ScmConfig("http://x/${NOPE}"), {}, WORKSPACE)
    assert excinfo.value.stage is Stage.INIT
    assert excinfo.value.missing == ("NOPE",)


def test_lenient_builder_passes_unresolved_url_through() -> None:
    argv = CommandBuilder("fb").init(ScmConfig("http://x/${NOPE}"), {}, WORKSPACE)
    assert argv[3] == "http://x/${NOPE}"


def test_branch_is_not_passed_to_any_stage(builder: CommandBuilder) -> None:
    config = ScmConfig.create("u", branch="release-9")
    plan = builder.plan(config, {}, WORKSPACE)
    assert all("release-9" not in argv for argv in plan.values())


def test_plan_lists_stages_in_order(builder: CommandBuilder) -> None:
    plan = builder.plan(ScmConfig("u"), {}, WORKSPACE)
    assert list(plan) == [Stage.INIT, Stage.INSTALL, Stage.CLONE, Stage.HISTORY]
    assert [argv[1] for argv in plan.values()] == ["init", "install", "clone", "history"]


def test_invocation_carries_cwd_env_and_sink(builder: CommandBuilder) -> None:
    sink = BufferSink()
    env = {"A": "1"}
    invocation = builder.invocation(Stage.HISTORY, ScmConfig("u"), env, WORKSPACE, sink)
    assert invocation.stage is Stage.HISTORY
    assert invocation.argv == ("/opt/fullbuild/bin/fullbuild", "history")
    assert invocation.cwd == WORKSPACE
    assert invocation.env == env
    assert invocation.sink is sink
