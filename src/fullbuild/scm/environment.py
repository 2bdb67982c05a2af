"""Build environment assembly and variable expansion.

References use ``$NAME`` or ``${NAME}``; ``$$`` stands for a literal ``$``.
References to unknown variables are left as written unless expansion is
strict.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from fullbuild.scm.errors import ExpansionError
from fullbuild.scm.state import Stage

logger = logging.getLogger(__name__)

# Groups: escaped dollar, braced name, bare name
_REFERENCE = re.compile(r"\$(?:(\$)|\{([A-Za-z0-9_.]+)\}|([A-Za-z0-9_]+))")


def find_references(value: str) -> list[str]:
    """Names referenced in ``value``, in order of appearance."""
    return [
        braced or bare
        for escaped, braced, bare in _REFERENCE.findall(value)
        if not escaped
    ]


def expand(
    value: str,
    env: Mapping[str, str],
    *,
    strict: bool = False,
    stage: Stage | None = None,
) -> str:
    """Substitute variable references in ``value`` from ``env``.

    Substituted values are inserted as-is and never expanded again.

    Raises:
        ExpansionError: If ``strict`` and a referenced name is not in ``env``.
    """
    if strict:
        missing = [name for name in find_references(value) if name not in env]
        if missing:
            raise ExpansionError(stage, value, list(dict.fromkeys(missing)))

    def _replace(match: re.Match[str]) -> str:
        if match.group(1):
            return "$"
        name = match.group(2) or match.group(3)
        replacement = env.get(name)
        return match.group(0) if replacement is None else replacement

    return _REFERENCE.sub(_replace, value)


def resolve_environment(env: Mapping[str, str]) -> dict[str, str]:
    """Expand references between variables, dependencies first.

    Each variable is expanded exactly once. A reference to the variable
    itself, or to a variable further up a reference cycle, is left as
    written, so cyclic definitions stay bounded in size.
    """
    resolved: dict[str, str] = {}
    active: list[str] = []
    cyclic: set[str] = set()

    def _resolve(name: str) -> str:
        if name in resolved:
            return resolved[name]
        value = env[name]
        if "$" not in value:
            resolved[name] = value
            return value

        active.append(name)

        def _replace(match: re.Match[str]) -> str:
            if match.group(1):
                return "$"
            ref = match.group(2) or match.group(3)
            if ref not in env or ref == name:
                return match.group(0)
            if ref in active:
                cyclic.update(active[active.index(ref) :])
                return match.group(0)
            return _resolve(ref)

        result = _REFERENCE.sub(_replace, value)
        active.pop()
        resolved[name] = result
        return result

    for name in env:
        _resolve(name)
    if cyclic:
        logger.warning(
            "Cyclic variable references left unexpanded: %s",
            ", ".join(sorted(cyclic)),
        )
    return {name: resolved[name] for name in env}


def build_environment(
    parameter_defaults: Mapping[str, str | None] | None,
    build_env: Mapping[str, str] | None,
) -> dict[str, str]:
    """Assemble the environment for one checkout.

    Declared parameter defaults come first; the live build environment
    overrides them. The merged mapping is then resolved.
    """
    merged: dict[str, str] = {}
    for name, default in (parameter_defaults or {}).items():
        if default is not None:
            merged[name] = str(default)
    merged.update(build_env or {})
    logger.debug(
        "Environment: %d parameter defaults, %d build variables",
        len(parameter_defaults or {}),
        len(build_env or {}),
    )
    return resolve_environment(merged)
