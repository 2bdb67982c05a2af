from __future__ import annotations

import os
import stat
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

from fullbuild.config.paths import reset_paths

FAKE_TOOL_SOURCE = """\
#!{python}
import json
import os
import sys

stage = sys.argv[1]
with open(os.path.join(os.getcwd(), "calls.jsonl"), "a", encoding="utf-8") as fh:
    fh.write(json.dumps(sys.argv[1:]) + "\\n")

if os.environ.get("FAKE_FAIL_STAGE") == stage:
    sys.stdout.write(stage + " failed\\n")
    sys.exit(int(os.environ.get("FAKE_FAIL_CODE", "3")))

if stage == "history":
    sys.stderr.write("history: note on stderr\\n")
    path = os.environ.get("FAKE_HISTORY_FILE")
    if path:
        with open(path, "rb") as fh:
            sys.stdout.buffer.write(fh.read())
else:
    sys.stdout.write(stage + " ok\\n")
"""


@pytest.fixture(autouse=True)
def isolate_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep settings and logs out of the real XDG directories."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "xdg-state"))
    reset_paths()
    try:
        yield
    finally:
        reset_paths()


@pytest.fixture
def fake_tool(tmp_path: Path) -> Path:
    """Executable stand-in for the helper tool.

    Records each call's arguments to ``calls.jsonl`` in its working
    directory, fails the stage named by ``FAKE_FAIL_STAGE``, and prints the
    contents of ``FAKE_HISTORY_FILE`` for the history stage.
    """
    if os.name == "nt":
        pytest.skip("fake tool relies on a shebang line")
    tool = tmp_path / "bin" / "fullbuild"
    tool.parent.mkdir()
    tool.write_text(FAKE_TOOL_SOURCE.format(python=sys.executable), encoding="utf-8")
    tool.chmod(tool.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return tool
