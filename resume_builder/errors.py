"""Error types and exit codes for the resume builder.

Every failure the engine reports is a ``ResumeBuilderError``. They are all
non-fatal: the operation that raised did not mutate anything, so callers can
surface the message and carry on with the previous document.
"""
from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class ExitCode(IntEnum):
    """CLI exit codes."""
    SUCCESS = 0
    ERROR = 1
    USAGE = 2
    CONFIG_ERROR = 3
    VALIDATION = 4
    NETWORK_ERROR = 5
    NOT_FOUND = 6
    RESOURCE_LIMIT = 7
    EXPORT_ERROR = 8
    BUSY = 9
    INTERRUPTED = 130


@dataclass
class ResumeBuilderError(Exception):
    """Base error with a user-facing message, exit code and optional hint."""
    message: str
    code: ExitCode = ExitCode.ERROR
    hint: Optional[str] = None

    def __str__(self) -> str:
        return self.message


class ValidationError(ResumeBuilderError):
    """Blank heading, blank tag, blank resume name and similar input errors."""
    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message, ExitCode.VALIDATION, hint)


class ResourceLimitError(ResumeBuilderError):
    """A size ceiling was exceeded (photo, save payload)."""
    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message, ExitCode.RESOURCE_LIMIT, hint)


class PhotoError(ResumeBuilderError):
    """The photo could not be decoded or re-encoded."""
    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message, ExitCode.ERROR, hint)


class ServiceError(ResumeBuilderError):
    """The remote resume service failed or was unreachable."""
    def __init__(self, message: str, hint: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message, ExitCode.NETWORK_ERROR, hint)
        self.status = status


class NotFoundError(ResumeBuilderError):
    """A referenced file or record does not exist."""
    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message, ExitCode.NOT_FOUND, hint)


class ExportError(ResumeBuilderError):
    """Writing the PDF/DOCX document failed."""
    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message, ExitCode.EXPORT_ERROR, hint)


class BusyError(ResumeBuilderError):
    """The same boundary operation is already in flight."""
    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message, ExitCode.BUSY, hint)


class ConfigError(ResumeBuilderError):
    """Configuration file is malformed."""
    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message, ExitCode.CONFIG_ERROR, hint)


def handle_error(error: BaseException, verbose: bool = False) -> int:
    """Print an error to stderr and return the exit code to use."""
    if isinstance(error, ResumeBuilderError):
        print(f"Error: {error.message}", file=sys.stderr)
        if error.hint:
            print(f"Hint: {error.hint}", file=sys.stderr)
        return int(error.code)

    if isinstance(error, KeyboardInterrupt):
        print("\nInterrupted.", file=sys.stderr)
        return int(ExitCode.INTERRUPTED)

    print(f"Error: {error}", file=sys.stderr)
    if verbose:
        import traceback
        traceback.print_exc()
    return int(ExitCode.ERROR)
