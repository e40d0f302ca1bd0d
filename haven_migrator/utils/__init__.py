"""
Utility helpers used by the migration tool.

This subpackage exposes console/report logging, the fatal error types,
pre-flight validation and author map resolution.
"""

from .authors import AuthorMapping, parse_author_map, resolve_authors
from .errors import (
    ERRORS,
    AuthorResolutionError,
    MigrationError,
    PostDateError,
    log_message,
    report_error,
    report_ok,
)
from .pre_flight_checks import PreFlightCheckError, run_pre_flight_checks

__all__ = [
    "ERRORS",
    "AuthorMapping",
    "AuthorResolutionError",
    "MigrationError",
    "PostDateError",
    "PreFlightCheckError",
    "log_message",
    "parse_author_map",
    "report_error",
    "report_ok",
    "resolve_authors",
    "run_pre_flight_checks",
]
