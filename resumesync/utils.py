"""Utility functions for resumesync."""

# =============================================================================
# Constants
# =============================================================================

# Name of the transfer tool executable when nothing else is configured
DEFAULT_TOOL: str = "transfer-tool"

# Default number of parallel file transfers
DEFAULT_JOBS: int = 1

# Default argument conventions of the transfer tool
DEFAULT_LIST_ARGS: tuple[str, ...] = ("--list", "-r")
DEFAULT_DESCRIBE_ARGS: tuple[str, ...] = ("--list", "-d")
DEFAULT_MKDIR_ARGS: tuple[str, ...] = ("--mkdir",)
DEFAULT_RESUME_ARGS: tuple[str, ...] = ("--resume",)

# stderr of a failed describe call matching this marks the path as missing
DEFAULT_NOT_FOUND_PATTERN: str = r"no such file|not found|does not exist"


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"


def split_args(value: str) -> tuple[str, ...]:
    """Split a space separated argument list from the config file.

    Examples:
        >>> split_args("--list -r")
        ('--list', '-r')
        >>> split_args("")
        ()
    """
    return tuple(value.split())
