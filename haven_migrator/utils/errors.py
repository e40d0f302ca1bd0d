"""
Console logging, structured run reports and fatal error types.

Every component of the import reports through :func:`log_message`, which
prints ``[LEVEL] message`` to the console and appends the same line to
``migration.log`` in the report directory.  Events worth reviewing after a
run (skipped media, unmapped authors, created posts) are also written as
JSON Lines through :func:`report_error` and :func:`report_ok`.

The ``ERRORS`` dictionary maps event codes to human readable messages.
Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

ERRORS: Dict[str, str] = {
    "MEDIA_SKIPPED": "Skipped media with a non-HTTP URL",
    "MEDIA_DOWNLOAD": "Failed to download media",
    "AUTHOR_MAP_MALFORMED": "Ignored malformed author mapping entry",
    "AUTHOR_NOT_FOUND": "No Haven user found for author email",
    "AUTHOR_MAPPED": "Mapped WordPress author to Haven user",
    "MEDIA_DOWNLOADED": "Media downloaded",
    "IMAGE_CREATED": "Image record created",
    "POST_SKIPPED": "Skipped default WordPress post",
    "POST_CREATED": "Post created successfully",
}

_REPORT_DIR = os.path.join("reports", "migration")


class MigrationError(Exception):
    """Base class for errors that abort the whole import run."""


class AuthorResolutionError(MigrationError):
    """No usable author could be resolved from the author map."""


class PostDateError(MigrationError, ValueError):
    """A post carries a date string that cannot be parsed."""


def set_report_dir(path: str) -> None:
    """Point the run log and JSONL reports at ``path``."""
    global _REPORT_DIR
    _REPORT_DIR = path


def get_report_dir() -> str:
    return _REPORT_DIR


def _write_jsonl(name: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``name``."""
    os.makedirs(_REPORT_DIR, exist_ok=True)
    with open(os.path.join(_REPORT_DIR, name), "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, default=str)
        f.write("\n")


def log_message(message: str, level: str = "INFO") -> None:
    print(f"[{level}] {message}")
    os.makedirs(_REPORT_DIR, exist_ok=True)
    with open(os.path.join(_REPORT_DIR, "migration.log"), "a", encoding="utf-8") as f:
        f.write(f"{level}: {message}\n")


def report_error(code: str, context: Dict[str, Any], exc: Optional[Exception] = None) -> None:
    """Record a recoverable problem.

    Parameters
    ----------
    code:
        A key identifying the type of problem.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    context:
        What the problem is about, e.g. ``{"url": ...}`` or
        ``{"title": ...}``.  Merged into the log entry.
    exc:
        Optional exception instance that triggered the problem.
    """
    entry: Dict[str, Any] = {"code": code, "message": ERRORS.get(code, code)}
    entry.update(context)
    if exc is not None:
        entry["error"] = str(exc)
    _write_jsonl("errors.jsonl", entry)


def report_ok(code: str, context: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> None:
    """Record a successful step.

    Parameters
    ----------
    code:
        A key identifying the type of event.
    context:
        What the event is about.  Merged into the log entry.
    extra:
        Optional dictionary of additional fields to merge into the log entry.
    """
    entry: Dict[str, Any] = {"code": code, "message": ERRORS.get(code, code)}
    entry.update(context)
    if extra:
        entry.update(extra)
    _write_jsonl("success.jsonl", entry)
