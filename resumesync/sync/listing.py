"""Listing parsers for local and remote directory trees.

Two listing formats are understood:

* ``STRUCTURED`` - the transfer tool's remote listing, one entry per line with
  seven whitespace separated fields: path, hex size, mtime, type flag, mode,
  owner id and a free-form description.
* ``LOCAL_RECURSIVE`` - the output of ``ls -lR``, grouped into blocks that each
  start with a ``PATH:`` header line.

Both parsers are generators: entries are produced while the listing is read
and the whole tree is never held in memory.
"""

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..exceptions import ListingParseError

logger = logging.getLogger(__name__)

STRUCTURED_FIELDS = 7

_HEX_RE = re.compile(r"^(0[xX])?[0-9a-fA-F]+$")

# Mode column of a long-format record, e.g. "-rw-r--r--" or "drwxr-xr-x@"
_MODE_RE = re.compile(r"^[-bcdlps][-rwxsStTl]{9}")

# Block/character devices, pipes and sockets cannot be transferred
_SPECIAL_TYPES = "bcps"


class EntryKind(str, Enum):
    """Kind of a listed node."""

    FILE = "file"
    DIRECTORY = "directory"


class ListingFormat(str, Enum):
    """Supported listing formats."""

    LOCAL_RECURSIVE = "local_recursive"
    """Recursive long listing of the local filesystem (``ls -lR``)"""

    STRUCTURED = "structured"
    """Custom per-entry listing emitted by the transfer tool"""


@dataclass(frozen=True)
class Entry:
    """One file or directory node surfaced by a listing pass."""

    path: str
    """Source rooted, slash separated path without trailing slash"""

    kind: EntryKind
    """File or directory"""

    size: int = 0
    """Size in bytes (meaningless for directories)"""

    hidden: bool = False
    """Hidden entries are always skipped"""

    mtime: Optional[str] = None
    """Modification time as reported by the listing, if any"""

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY


def decode_hex_size(value: str) -> int:
    """Decode a hexadecimal size field.

    Args:
        value: Hexadecimal digits, optionally prefixed with ``0x``

    Returns:
        Size in bytes

    Raises:
        ValueError: If the value is empty or not hexadecimal

    Examples:
        >>> decode_hex_size("1a")
        26
        >>> decode_hex_size("0")
        0
    """
    if not _HEX_RE.match(value):
        raise ValueError(f"Invalid hexadecimal size: {value!r}")
    return int(value, 16)


def parse_structured_line(line: str, line_number: Optional[int] = None) -> Entry:
    """Parse a single structured listing line into an Entry.

    The description field may contain spaces; everything after the sixth
    separator belongs to it.

    Raises:
        ListingParseError: If the line does not hold seven fields or the
            size is not hexadecimal
    """
    fields = line.split(None, STRUCTURED_FIELDS - 1)
    if len(fields) != STRUCTURED_FIELDS:
        raise ListingParseError(
            f"Expected {STRUCTURED_FIELDS} fields, got {len(fields)}",
            line=line,
            line_number=line_number,
        )

    path, hex_size, mtime, type_flag = fields[:4]
    try:
        size = decode_hex_size(hex_size)
    except ValueError as e:
        raise ListingParseError(str(e), line=line, line_number=line_number) from e

    if "D" in type_flag:
        kind = EntryKind.DIRECTORY
    elif "F" in type_flag:
        kind = EntryKind.FILE
    else:
        raise ListingParseError(
            f"Unknown type flag {type_flag!r}", line=line, line_number=line_number
        )

    return Entry(
        path=_strip_trailing_slash(path),
        kind=kind,
        size=size,
        hidden="h" in type_flag,
        mtime=mtime,
    )


def parse_structured_listing(lines: Iterable[str]) -> Iterator[Entry]:
    """Parse a structured listing stream.

    Blank lines are ignored; any other malformed line aborts the listing.
    """
    for line_number, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        if not line.strip():
            continue
        yield parse_structured_line(line, line_number)


def parse_local_listing(lines: Iterable[str]) -> Iterator[Entry]:
    """Parse ``ls -lR`` output.

    A ``PATH:`` header announces the current directory and yields a directory
    entry. ``total`` lines, directory detail lines (``d...``) and special
    files (devices, pipes, sockets) are ignored; every other non-empty line
    is a file record whose name is the last field.
    """
    current_dir: Optional[str] = None

    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line.strip():
            continue

        is_record = _MODE_RE.match(line) is not None
        if line.endswith(":") and not is_record:
            current_dir = _strip_trailing_slash(line[:-1])
            logger.debug("Listing block: %s", current_dir)
            yield Entry(path=current_dir, kind=EntryKind.DIRECTORY)
            continue

        if line.startswith("total ") or (is_record and line.startswith("d")):
            continue

        if is_record and line[0] in _SPECIAL_TYPES:
            logger.debug("Skipping special file: %s", line)
            continue

        if current_dir is None:
            logger.debug("Ignoring record outside of a block: %s", line)
            continue

        # perms, links, owner, group, size, month, day, time/year, name
        fields = line.split(None, 8)
        name = fields[-1]
        if line.startswith("l") and " -> " in name:
            name = name.split(" -> ", 1)[0]
        size = 0
        if len(fields) == 9 and fields[4].isdigit():
            size = int(fields[4])

        yield Entry(
            path=f"{current_dir}/{name}" if current_dir != "/" else f"/{name}",
            kind=EntryKind.FILE,
            size=size,
        )


def parse_listing(lines: Iterable[str], listing_format: ListingFormat) -> Iterator[Entry]:
    """Parse a listing stream in the given format.

    Args:
        lines: Raw listing lines (a file object or subprocess stdout works)
        listing_format: Format of the listing

    Returns:
        Lazy iterator of Entry objects in listing order
    """
    if listing_format == ListingFormat.STRUCTURED:
        return parse_structured_listing(lines)
    return parse_local_listing(lines)


def _strip_trailing_slash(path: str) -> str:
    if len(path) > 1:
        return path.rstrip("/") or "/"
    return path
