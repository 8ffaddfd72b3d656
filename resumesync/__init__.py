"""resumesync - resume interrupted directory transfers through an external tool."""

from .config import Config, ToolProfile, config
from .exceptions import (
    DispatchError,
    ExecutableNotFoundError,
    ListingError,
    ListingParseError,
    PathMappingError,
    ProbeError,
    ResumeSyncError,
    SourceInspectionError,
)
from .options import InvocationOptions, RunMode, parse_invocation, select_mode
from .tool import LocalFilesystem, TransferTool

__all__ = [
    "Config",
    "ToolProfile",
    "config",
    "DispatchError",
    "ExecutableNotFoundError",
    "ListingError",
    "ListingParseError",
    "PathMappingError",
    "ProbeError",
    "ResumeSyncError",
    "SourceInspectionError",
    "InvocationOptions",
    "RunMode",
    "parse_invocation",
    "select_mode",
    "LocalFilesystem",
    "TransferTool",
]
