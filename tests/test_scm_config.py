"""Tests for the SCM configuration record."""

from __future__ import annotations

import dataclasses

import pytest

from fullbuild.scm.config import (
    DEFAULT_PROTOCOL,
    ScmConfig,
    parse_ignore_projects,
    render_ignore_projects,
)


class TestParseIgnoreProjects:
    """Tests for whitespace-delimited ignore-list parsing."""

    @pytest.mark.parametrize("text", [None, "", "   ", "\n\t "])
    def test_empty_input_yields_empty_set(self, text: str | None) -> None:
        assert parse_ignore_projects(text) == ()

    def test_duplicates_collapse_in_first_occurrence_order(self) -> None:
        assert parse_ignore_projects("a b a c") == ("a", "b", "c")

    def test_splits_on_runs_of_mixed_whitespace(self) -> None:
        assert parse_ignore_projects("  docs\n\n tools\t\tlegacy  ") == (
            "docs",
            "tools",
            "legacy",
        )

    @pytest.mark.parametrize(
        "text",
        ["a b a c", " x\ny\r\nz ", "single", "p1\tp2  p1\n\np3"],
    )
    def test_render_round_trips_token_set(self, text: str) -> None:
        rendered = render_ignore_projects(parse_ignore_projects(text))
        assert set(rendered.split()) == set(text.split())


class TestScmConfig:
    """Tests for ScmConfig construction and serialization."""

    def test_defaults(self) -> None:
        config = ScmConfig("https://gerrit.example.com/manifest")
        assert config.protocol == DEFAULT_PROTOCOL == "gerrit"
        assert config.branch is None
        assert config.shallow is True
        assert config.ignore_projects == ()
        assert config.ignore_projects_text == ""

    @pytest.mark.parametrize("url", ["", "   "])
    def test_repo_url_is_required(self, url: str) -> None:
        with pytest.raises(ValueError, match="repo_url"):
            ScmConfig(url)

    def test_is_immutable(self) -> None:
        config = ScmConfig("https://example.com/m")
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.shallow = False  # type: ignore[misc]

    def test_create_applies_defaults_for_unset_fields(self) -> None:
        config = ScmConfig.create("u", protocol=None, branch="", shallow=None)
        assert config.protocol == "gerrit"
        assert config.branch is None
        assert config.shallow is True

    def test_with_ignore_projects_returns_updated_copy(self) -> None:
        original = ScmConfig("u")
        updated = original.with_ignore_projects("b a b")
        assert original.ignore_projects == ()
        assert updated.ignore_projects == ("b", "a")
        assert updated.ignore_projects_text == "b\na"

    def test_with_ignore_projects_none_clears(self) -> None:
        config = ScmConfig.create("u", ignore_projects="a b").with_ignore_projects(None)
        assert config.ignore_projects == ()

    def test_direct_construction_drops_blank_entries(self) -> None:
        config = ScmConfig("u", ignore_projects=("a", " ", "", "a", "b"))
        assert config.ignore_projects == ("a", "b")

    def test_key(self) -> None:
        assert ScmConfig("ssh://host/m").key == "full-build ssh://host/m"

    def test_to_dict_omits_unset_branch(self) -> None:
        data = ScmConfig.create("u", ignore_projects="x y").to_dict()
        assert data == {
            "repo_url": "u",
            "protocol": "gerrit",
            "shallow": True,
            "ignore_projects": "x\ny",
        }

    def test_from_dict_round_trip(self) -> None:
        config = ScmConfig.create(
            "https://example.com/m",
            protocol="https",
            branch="release",
            shallow=False,
            ignore_projects="one two",
        )
        assert ScmConfig.from_dict(config.to_dict()) == config

    def test_from_dict_accepts_camel_case_keys(self) -> None:
        config = ScmConfig.from_dict(
            {"repoUrl": "https://example.com/m", "ignoreProjects": "a\nb\na"}
        )
        assert config.repo_url == "https://example.com/m"
        assert config.ignore_projects == ("a", "b")

    def test_from_dict_accepts_list_of_projects(self) -> None:
        config = ScmConfig.from_dict({"repo_url": "u", "ignore_projects": ["a", "b"]})
        assert config.ignore_projects == ("a", "b")

    def test_from_dict_requires_repo_url(self) -> None:
        with pytest.raises(ValueError, match="repo_url"):
            ScmConfig.from_dict({"protocol": "gerrit"})

    def test_from_dict_rejects_non_boolean_shallow(self) -> None:
        with pytest.raises(ValueError, match="shallow"):
            ScmConfig.from_dict({"repo_url": "u", "shallow": "yes"})
