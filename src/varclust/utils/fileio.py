"""
Atomic file-write utilities.

Prevents corrupted output when a process is interrupted mid-write by
writing to a temporary file in the same directory and then performing an
atomic ``os.replace()`` (POSIX rename guarantee).
"""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from typing import IO, Iterator


@contextmanager
def atomic_output(
    path: str | os.PathLike,
    mode: str = "w",
    *,
    encoding: str | None = "utf-8",
) -> Iterator[IO]:
    """Open a scoped output target that appears at *path* only on success.

    Yields a handle on a temporary file in the same directory as *path*.
    When the ``with`` block exits normally the handle is closed and the
    temporary file replaces *path*. On any exception the handle is closed,
    the temporary file is removed, *path* is left untouched, and the
    exception propagates.

    Parameters
    ----------
    path:
        Destination file path.
    mode:
        ``"w"`` for text or ``"wb"`` for binary output.
    encoding:
        Text encoding (ignored for binary mode).

    Examples
    --------
    >>> with atomic_output("plots/heatmap.png", "wb") as fh:
    ...     figure.savefig(fh, format="png")
    """
    if mode not in ("w", "wb"):
        raise ValueError(f"mode must be 'w' or 'wb', got {mode!r}")

    path = str(path)
    dir_path = os.path.dirname(path) or "."
    tmp_path: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode=mode,
            dir=dir_path,
            suffix=".tmp",
            delete=False,
            encoding=None if "b" in mode else encoding,
        ) as tmp:
            tmp_path = tmp.name
            yield tmp
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any failure
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
