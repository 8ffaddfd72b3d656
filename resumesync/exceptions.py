"""Exceptions raised by resumesync."""

from typing import Optional

# Exit codes used by the command line interface
EXIT_OK = 0
EXIT_DISPATCH_FAILED = 1
EXIT_SOURCE_INSPECTION = 3
EXIT_LISTING_PARSE = 4
EXIT_LISTING_FAILED = 5
EXIT_PATH_MAPPING = 70
EXIT_EXECUTABLE_NOT_FOUND = 127
EXIT_INTERRUPTED = 130


class ResumeSyncError(Exception):
    """Base exception for all resumesync errors."""

    exit_code: int = 1


class ExecutableNotFoundError(ResumeSyncError):
    """The configured transfer tool cannot be executed."""

    exit_code = EXIT_EXECUTABLE_NOT_FOUND

    def __init__(self, tool_path: str):
        self.tool_path = tool_path
        super().__init__(f"Transfer tool not found or not executable: {tool_path}")


class SourceInspectionError(ResumeSyncError):
    """The top-level source is neither a file nor a directory."""

    exit_code = EXIT_SOURCE_INSPECTION


class ListingParseError(ResumeSyncError):
    """A structured listing line could not be parsed."""

    exit_code = EXIT_LISTING_PARSE

    def __init__(
        self,
        message: str,
        line: Optional[str] = None,
        line_number: Optional[int] = None,
    ):
        self.line = line
        self.line_number = line_number
        if line_number is not None:
            message = f"{message} (line {line_number}: {line!r})"
        super().__init__(message)


class ListingError(ResumeSyncError):
    """The listing command itself failed."""

    exit_code = EXIT_LISTING_FAILED


class PathMappingError(ResumeSyncError):
    """A listed path lies outside the source root."""

    exit_code = EXIT_PATH_MAPPING


class ProbeError(ResumeSyncError):
    """Destination state could not be determined by any mechanism."""


class DispatchError(ResumeSyncError):
    """An external tool invocation for a single entry failed."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        super().__init__(message)
