"""Atomic writes for config.toml."""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path

from promptsmith.debug_log import log

_log = log.for_stage("config")


def atomic_write(path: Path, content: str) -> bool:
    """Write content through a sibling temp file, then rename over path.

    A file that already holds exactly content is left untouched (mtime
    included) and False is returned. The replacement keeps the permission
    bits of the file it replaces, so a user-restricted config stays private.
    """
    existing_mode: int | None = None
    if path.exists():
        if path.read_text(encoding="utf-8") == content:
            _log.debug("Write skipped; content unchanged", path=str(path))
            return False
        existing_mode = stat.S_IMODE(path.stat().st_mode)

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=path.suffix)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        if existing_mode is not None:
            os.chmod(tmp_path, existing_mode)
        Path(tmp_path).replace(path)
    except Exception:
        Path(tmp_path).unlink(missing_ok=True)
        raise

    _log.debug("Config written", path=str(path), chars=len(content))
    return True
