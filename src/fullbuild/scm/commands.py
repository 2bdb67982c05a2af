"""Argument vectors for each helper tool stage."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from fullbuild.config.settings import DEFAULT_EXECUTABLE
from fullbuild.runtime.sinks import OutputSink
from fullbuild.scm.config import ScmConfig
from fullbuild.scm.environment import expand
from fullbuild.scm.state import Stage

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandInvocation:
    """One subprocess call, ready for the runner."""

    stage: Stage
    argv: tuple[str, ...]
    cwd: Path
    env: Mapping[str, str]
    sink: OutputSink


class CommandBuilder:
    """Builds stage commands from an SCM config and a resolved environment.

    The builder holds no per-checkout state and can be shared between
    concurrent checkouts.
    """

    def __init__(self, executable: str | None = None, *, strict: bool = False) -> None:
        self.executable = executable or DEFAULT_EXECUTABLE
        self.strict = strict

    def init(self, config: ScmConfig, env: Mapping[str, str], workspace: Path) -> list[str]:
        return [
            self.executable,
            "init",
            expand(config.protocol, env, strict=self.strict, stage=Stage.INIT),
            expand(config.repo_url, env, strict=self.strict, stage=Stage.INIT),
            str(workspace),
        ]

    def install(self) -> list[str]:
        return [self.executable, "install"]

    def clone(self, config: ScmConfig, env: Mapping[str, str]) -> list[str]:
        """Clone command.

        The ignore-list travels as one space-joined argument, and is present
        even when empty; the tool splits it itself. Project names containing
        spaces therefore cannot be expressed.
        """
        argv = [self.executable, "clone"]
        if config.shallow:
            argv.append("--shallow")
        argv.append(
            expand(
                " ".join(config.ignore_projects),
                env,
                strict=self.strict,
                stage=Stage.CLONE,
            )
        )
        return argv

    def history(self) -> list[str]:
        return [self.executable, "history"]

    def build(
        self,
        stage: Stage,
        config: ScmConfig,
        env: Mapping[str, str],
        workspace: Path,
    ) -> list[str]:
        """Argument vector for ``stage``."""
        if stage is Stage.INIT:
            return self.init(config, env, workspace)
        if stage is Stage.INSTALL:
            return self.install()
        if stage is Stage.CLONE:
            return self.clone(config, env)
        return self.history()

    def invocation(
        self,
        stage: Stage,
        config: ScmConfig,
        env: Mapping[str, str],
        workspace: Path,
        sink: OutputSink,
    ) -> CommandInvocation:
        """Full invocation for ``stage``, run inside ``workspace``."""
        argv = self.build(stage, config, env, workspace)
        logger.debug("Built %s command: %s", stage.value, argv)
        return CommandInvocation(
            stage=stage,
            argv=tuple(argv),
            cwd=workspace,
            env=env,
            sink=sink,
        )

    def plan(
        self,
        config: ScmConfig,
        env: Mapping[str, str],
        workspace: Path,
    ) -> dict[Stage, list[str]]:
        """Argument vectors for every stage, in execution order."""
        return {stage: self.build(stage, config, env, workspace) for stage in Stage}
