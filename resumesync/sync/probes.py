"""Destination probes: existence and size of a path on the destination side."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..exceptions import ProbeError

if TYPE_CHECKING:
    from ..tool import LocalFilesystem, TransferTool
    from .paths import TransferRoot

logger = logging.getLogger(__name__)


class ProbeStatus(str, Enum):
    """Outcome of a destination query."""

    EXISTS = "exists"
    NOT_FOUND = "not_found"
    QUERY_FAILED = "query_failed"


@dataclass(frozen=True)
class ProbeResult:
    """Destination state of a single path."""

    status: ProbeStatus
    size: Optional[int] = None
    """Size in bytes; None for directories or when unknown"""

    message: str = ""
    """Diagnostic text for failed queries"""

    @property
    def exists(self) -> bool:
        return self.status == ProbeStatus.EXISTS

    @classmethod
    def found(cls, size: Optional[int] = None) -> "ProbeResult":
        return cls(ProbeStatus.EXISTS, size=size)

    @classmethod
    def missing(cls) -> "ProbeResult":
        return cls(ProbeStatus.NOT_FOUND)

    @classmethod
    def failed(cls, message: str) -> "ProbeResult":
        return cls(ProbeStatus.QUERY_FAILED, message=message)


class LocalProbe:
    """Probes the local filesystem (download direction)."""

    def __init__(self, filesystem: LocalFilesystem):
        self.filesystem = filesystem
        self._size_mechanisms: list[tuple[str, Callable[[str], int]]] = [
            ("stat", filesystem.stat_size),
            ("seek", filesystem.measure_size),
        ]

    def probe(self, path: str, want_size: bool = True) -> ProbeResult:
        """Query existence and, for files, size of a local path."""
        if not self.filesystem.exists(path):
            return ProbeResult.missing()
        if not want_size:
            return ProbeResult.found()
        try:
            return ProbeResult.found(self.size(path))
        except ProbeError as e:
            return ProbeResult.failed(str(e))

    def size(self, path: str) -> int:
        """Determine the size of a local file.

        Each mechanism is tried in turn. When none works the size is
        unknown and ProbeError is raised; it is never assumed to match.
        """
        errors = []
        for name, mechanism in self._size_mechanisms:
            try:
                return mechanism(path)
            except OSError as e:
                logger.debug("Size query %s failed for %s: %s", name, path, e)
                errors.append(f"{name}: {e}")
        raise ProbeError(f"Cannot determine size of {path} ({'; '.join(errors)})")


class RemoteProbe:
    """Probes the remote side with one describe call per path (upload direction)."""

    def __init__(self, tool: TransferTool, root: TransferRoot):
        self.tool = tool
        self.root = root

    def probe(self, path: str, want_size: bool = True) -> ProbeResult:
        """Query existence and, for files, size of a remote path."""
        description = self.tool.describe_remote(self.root, path)
        if description.status == ProbeStatus.EXISTS:
            entry = description.entry
            if not want_size or entry is None or entry.is_dir:
                return ProbeResult.found()
            return ProbeResult.found(entry.size)
        if description.status == ProbeStatus.NOT_FOUND:
            return ProbeResult.missing()
        return ProbeResult.failed(description.message)
