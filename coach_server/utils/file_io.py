# coach_server/utils/file_io.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — file_io utilities
------------------------------------------
Helpers for reading/writing small JSON or text files.

- Atomic writes (temp file + rename) so a crash never leaves a
  half-written session file behind.
- read_json() is strict: session records must not be silently replaced
  by an empty default when the file is damaged.
- read_text_safely() is tolerant: prompt files fall back to defaults.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def read_json(path: Path) -> Optional[Dict[str, Any]]:
    """
    Read a JSON object from `path`.

    Returns None if the file does not exist. Raises OSError or ValueError
    (json.JSONDecodeError is a ValueError) if the file cannot be read or
    does not hold a JSON object, so the caller can decide how to fail.
    """
    if not path.is_file():
        return None

    text = path.read_text(encoding="utf-8")
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object in {path}, got {type(data).__name__}")
    return data


def write_json_atomic(path: Path, data: Dict[str, Any]) -> None:
    """
    Write JSON to disk atomically:

    - ensures parent directory exists
    - writes to a temporary file next to the target and fsyncs it
    - renames the temp file to the final path

    If anything fails, the exception propagates to the caller.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("write_json_atomic: failed to create dir %s: %s", path.parent, exc)
        raise

    tmp_path = path.with_suffix(path.suffix + ".tmp")

    try:
        json_text = json.dumps(data, ensure_ascii=False, indent=2)
        with tmp_path.open("w", encoding="utf-8") as fh:
            fh.write(json_text)
            fh.flush()
            os.fsync(fh.fileno())
        tmp_path.replace(path)
    except OSError as exc:
        logger.error("write_json_atomic: failed to write %s: %s", path, exc)
        raise


def delete_file(path: Path) -> bool:
    """Remove `path` if it exists. Returns True when a file was removed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def read_text_safely(
    path: Path,
    default: Optional[str] = None,
    *,
    strip: bool = False,
) -> Optional[str]:
    """
    Read a UTF-8 text file and return its content.

    - On failure, logs and returns `default`.
    - If strip=True, leading/trailing whitespace is removed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("read_text_safely: failed to read %s: %s", path, exc)
        return default

    return text.strip() if strip else text
