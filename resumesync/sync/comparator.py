"""Decision policy: skip, create a directory, or transfer with resume."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from .listing import Entry
from .probes import ProbeResult, ProbeStatus

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    """Actions that can be taken for a listed entry."""

    SKIP = "skip"
    """Nothing to do"""

    CREATE_DIRECTORY = "create_directory"
    """Create the destination directory"""

    TRANSFER = "transfer"
    """Transfer the file in create-or-resume mode"""


class SkipReason(str, Enum):
    """Why an entry was skipped."""

    HIDDEN = "hidden"
    EXISTS = "exists"
    COMPLETE = "complete"


class Prober(Protocol):
    def probe(self, path: str, want_size: bool = True) -> ProbeResult: ...


@dataclass
class SyncDecision:
    """Represents a decision about one listed entry."""

    action: SyncAction
    """Action to take"""

    entry: Entry
    """Source entry"""

    destination: str
    """Mapped destination path"""

    reason: str
    """Human-readable reason for this decision"""

    skip_reason: Optional[SkipReason] = None
    """Set for SKIP decisions"""

    resume: bool = False
    """Transfers always run in create-or-resume mode"""

    probe: Optional[ProbeResult] = None
    """Destination state the decision was based on (None if not probed)"""

    @property
    def probe_failed(self) -> bool:
        return self.probe is not None and self.probe.status == ProbeStatus.QUERY_FAILED


class DecisionEngine:
    """Decides what to do with each listed entry.

    Size equality is the only completeness signal. Contents are never
    checksummed, so a destination file of the right length but different
    content is treated as complete. This is a known limitation.

    An unknown destination state is never taken for a complete one: a failed
    probe leads to a transfer (files) or a directory creation (directories).
    """

    def __init__(self, prober: Prober):
        """Initialize decision engine.

        Args:
            prober: Destination probe (local or remote)
        """
        self.prober = prober

    def decide(self, entry: Entry, destination: str) -> SyncDecision:
        """Decide the action for one entry.

        Args:
            entry: Source entry
            destination: Destination path the entry maps to

        Returns:
            SyncDecision for this entry
        """
        if entry.hidden:
            return SyncDecision(
                action=SyncAction.SKIP,
                entry=entry,
                destination=destination,
                reason="Hidden entry",
                skip_reason=SkipReason.HIDDEN,
            )

        if entry.is_dir:
            return self._decide_directory(entry, destination)
        return self._decide_file(entry, destination)

    def _decide_directory(self, entry: Entry, destination: str) -> SyncDecision:
        """Directories are only checked for existence, never for size."""
        probe = self.prober.probe(destination, want_size=False)
        logger.debug("Probe %s: %s", destination, probe.status.value)

        if probe.status == ProbeStatus.EXISTS:
            return SyncDecision(
                action=SyncAction.SKIP,
                entry=entry,
                destination=destination,
                reason="Directory exists",
                skip_reason=SkipReason.EXISTS,
                probe=probe,
            )

        if probe.status == ProbeStatus.QUERY_FAILED:
            reason = f"Directory state unknown ({probe.message})"
        else:
            reason = "New directory"
        return SyncDecision(
            action=SyncAction.CREATE_DIRECTORY,
            entry=entry,
            destination=destination,
            reason=reason,
            probe=probe,
        )

    def _decide_file(self, entry: Entry, destination: str) -> SyncDecision:
        probe = self.prober.probe(destination, want_size=True)
        logger.debug(
            "Probe %s: %s (size=%s, source size=%d)",
            destination,
            probe.status.value,
            probe.size,
            entry.size,
        )

        if probe.status == ProbeStatus.NOT_FOUND:
            reason = "New file"
        elif probe.status == ProbeStatus.QUERY_FAILED:
            reason = f"Destination state unknown ({probe.message})"
        elif probe.size == entry.size:
            return SyncDecision(
                action=SyncAction.SKIP,
                entry=entry,
                destination=destination,
                reason="Same size",
                skip_reason=SkipReason.COMPLETE,
                probe=probe,
            )
        else:
            reason = f"Size differs ({probe.size} vs {entry.size})"

        return SyncDecision(
            action=SyncAction.TRANSFER,
            entry=entry,
            destination=destination,
            reason=reason,
            resume=True,
            probe=probe,
        )
