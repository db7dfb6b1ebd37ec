"""Centralized error codes and exit status mappings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final, List, Optional


class ErrorCode(str, Enum):
    """Stable error identifiers surfaced to operators and logs."""

    # configuration file (ERR100x)
    CONFIG_FILE_NOT_FOUND = "ERR1001"
    CONFIG_FILE_UNREADABLE = "ERR1002"
    CONFIG_PARSE_FAILED = "ERR1003"
    CONFIG_FORMAT_UNSUPPORTED = "ERR1004"

    # configuration values (ERR200x)
    CONFIG_VALUE_INVALID = "ERR2001"
    CONFIG_KEY_UNKNOWN = "ERR2002"
    CONFIG_OVERRIDE_INVALID = "ERR2003"


@dataclass(frozen=True)
class ErrorSpec:
    """Maps an error code to a process exit status and message."""

    code: ErrorCode
    exit_status: int
    message: str


ERROR_SPECS: Final[dict[ErrorCode, ErrorSpec]] = {
    ErrorCode.CONFIG_FILE_NOT_FOUND: ErrorSpec(
        ErrorCode.CONFIG_FILE_NOT_FOUND,
        3,
        "configuration file not found",
    ),
    ErrorCode.CONFIG_FILE_UNREADABLE: ErrorSpec(
        ErrorCode.CONFIG_FILE_UNREADABLE,
        3,
        "configuration file cannot be read",
    ),
    ErrorCode.CONFIG_PARSE_FAILED: ErrorSpec(
        ErrorCode.CONFIG_PARSE_FAILED,
        4,
        "configuration file is not well-formed",
    ),
    ErrorCode.CONFIG_FORMAT_UNSUPPORTED: ErrorSpec(
        ErrorCode.CONFIG_FORMAT_UNSUPPORTED,
        4,
        "configuration file format is not supported",
    ),
    ErrorCode.CONFIG_VALUE_INVALID: ErrorSpec(
        ErrorCode.CONFIG_VALUE_INVALID,
        5,
        "configuration contains invalid values",
    ),
    ErrorCode.CONFIG_KEY_UNKNOWN: ErrorSpec(
        ErrorCode.CONFIG_KEY_UNKNOWN,
        5,
        "configuration contains unknown keys",
    ),
    ErrorCode.CONFIG_OVERRIDE_INVALID: ErrorSpec(
        ErrorCode.CONFIG_OVERRIDE_INVALID,
        2,
        "override must look like key=value with a known key",
    ),
}


def exit_status_for(code: ErrorCode) -> int:
    """Return the process exit status associated with an error code."""
    return ERROR_SPECS[code].exit_status


def format_error(code: ErrorCode, detail: Optional[str] = None) -> str:
    """Format an error code and optional detail into a message."""
    spec = ERROR_SPECS[code]
    message = detail if detail else spec.message
    return f"{spec.code.value} {message}"


@dataclass(frozen=True)
class ConfigIssue:
    """A single problem found at a dotted configuration key."""

    key: str
    message: str

    def __str__(self) -> str:
        return f"{self.key}: {self.message}"


class SAPIError(RuntimeError):
    """Raised for application-defined errors with status metadata."""

    def __init__(self, code: ErrorCode, detail: Optional[str] = None) -> None:
        """Create a SAPIError with formatted message and exit status."""
        self.code = code
        self.exit_status = exit_status_for(code)
        self.detail = detail or ERROR_SPECS[code].message
        super().__init__(format_error(code, detail))


class ConfigValidationError(SAPIError):
    """Raised once per load with every issue collected along the way."""

    def __init__(self, code: ErrorCode, issues: List[ConfigIssue]) -> None:
        self.issues = list(issues)
        count = len(self.issues)
        noun = "issue" if count == 1 else "issues"
        detail = f"{ERROR_SPECS[code].message} ({count} {noun}): " + "; ".join(
            str(issue) for issue in self.issues
        )
        super().__init__(code, detail)


__all__ = [
    "ErrorCode",
    "ErrorSpec",
    "ERROR_SPECS",
    "ConfigIssue",
    "ConfigValidationError",
    "SAPIError",
    "exit_status_for",
    "format_error",
]
