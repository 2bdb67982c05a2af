"""Multi-repository checkout through the fullbuild helper tool.

Key components:
- ScmConfig: per-job checkout settings
- CommandBuilder: turns settings into stage argument vectors
- CheckoutPipeline: runs init, install, clone and history in order
- CheckoutStateMachine: stage sequencing driven by exit codes
"""
from __future__ import annotations

from fullbuild.scm.commands import CommandBuilder, CommandInvocation
from fullbuild.scm.config import (
    DEFAULT_PROTOCOL,
    ScmConfig,
    parse_ignore_projects,
    render_ignore_projects,
)
from fullbuild.scm.environment import build_environment, expand, resolve_environment
from fullbuild.scm.errors import (
    ChangelogWriteError,
    CheckoutCancelledError,
    CheckoutError,
    CommandFailedError,
    ExpansionError,
    ToolLaunchError,
)
from fullbuild.scm.job import JobDefinition, JobDefinitionError
from fullbuild.scm.pipeline import CheckoutPipeline, CheckoutRequest, CheckoutResult
from fullbuild.scm.state import (
    CheckoutState,
    CheckoutStateMachine,
    InvalidTransitionError,
    Stage,
)

__all__ = [
    # Configuration
    "DEFAULT_PROTOCOL",
    "JobDefinition",
    "JobDefinitionError",
    "ScmConfig",
    "parse_ignore_projects",
    "render_ignore_projects",
    # Environment
    "build_environment",
    "expand",
    "resolve_environment",
    # Commands
    "CommandBuilder",
    "CommandInvocation",
    # Pipeline
    "CheckoutPipeline",
    "CheckoutRequest",
    "CheckoutResult",
    "CheckoutState",
    "CheckoutStateMachine",
    "InvalidTransitionError",
    "Stage",
    # Errors
    "ChangelogWriteError",
    "CheckoutCancelledError",
    "CheckoutError",
    "CommandFailedError",
    "ExpansionError",
    "ToolLaunchError",
]
