"""Local file I/O utilities."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def write_json_atomic(data: Any, path: str | Path, indent: int | None = 2) -> Path:
    """
    Write a JSON document to a local path atomically.

    The document is written to a temporary file in the target directory and
    moved over the destination with ``os.replace``, so readers see either the
    previous file or the complete new one.

    Args:
        data: JSON-serializable document
        path: Destination file path (parent directories are created)
        indent: JSON indentation (None for compact output)

    Returns:
        Path to the written file.
    """
    filepath = Path(path)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        dir=filepath.parent, prefix=f".{filepath.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=False, default=str)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, filepath)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.debug("Wrote JSON document to %s", filepath)
    return filepath
