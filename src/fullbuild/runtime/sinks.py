"""Output sinks that receive a child process's output.

Two flavors exist: StreamSink forwards bytes to a live log as they arrive,
BufferSink keeps everything in memory until it is flushed to a file in one
atomic step.
"""

from __future__ import annotations

import codecs
import io
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import IO, Protocol

logger = logging.getLogger(__name__)

# Process umask, read once at import
_UMASK = os.umask(0o022)
os.umask(_UMASK)


class OutputSink(Protocol):
    """Destination for raw process output."""

    def write(self, data: bytes) -> None: ...

    def flush(self) -> None: ...


class StreamSink:
    """Pass-through sink writing into an open stream.

    Text streams receive decoded output; binary streams receive raw bytes.
    A multi-byte character split across writes is decoded once complete;
    ``flush`` emits whatever is still pending.
    """

    def __init__(self, stream: IO[bytes] | IO[str], *, encoding: str = "utf-8") -> None:
        self._stream = stream
        self._decoder = (
            codecs.getincrementaldecoder(encoding)(errors="replace")
            if isinstance(stream, io.TextIOBase)
            else None
        )
        self._lock = threading.Lock()

    def write(self, data: bytes) -> None:
        if not data:
            return
        with self._lock:
            if self._decoder is not None:
                text = self._decoder.decode(data)
                if text:
                    self._stream.write(text)  # type: ignore[arg-type]
            else:
                self._stream.write(data)  # type: ignore[arg-type]
            self._stream.flush()

    def flush(self) -> None:
        with self._lock:
            if self._decoder is not None:
                tail = self._decoder.decode(b"", final=True)
                self._decoder.reset()
                if tail:
                    self._stream.write(tail)  # type: ignore[arg-type]
            self._stream.flush()


class BufferSink:
    """Accumulate output in memory, then persist it in one step."""

    def __init__(self) -> None:
        self._buffer = io.BytesIO()

    def write(self, data: bytes) -> None:
        self._buffer.write(data)

    def flush(self) -> None:
        return None

    def getvalue(self) -> bytes:
        """Everything written so far."""
        return self._buffer.getvalue()

    def __len__(self) -> int:
        return self._buffer.getbuffer().nbytes

    def write_to(self, path: Path) -> int:
        """Write the buffer to ``path`` atomically.

        The data goes to a temporary file next to ``path`` which then
        replaces it, so readers see either the old file or the complete new
        one. The parent directory must already exist. An existing file keeps
        its permissions; a new one gets the usual umask-derived mode.

        Returns:
            Number of bytes written.

        Raises:
            OSError: If the file cannot be written or renamed.
        """
        data = self.getvalue()
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_name, _target_mode(path))
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.debug("Wrote %d bytes to %s", len(data), path)
        return len(data)

    def close(self) -> None:
        """Release the in-memory buffer."""
        self._buffer.close()


def _target_mode(path: Path) -> int:
    try:
        return path.stat().st_mode & 0o7777
    except FileNotFoundError:
        return 0o666 & ~_UMASK
