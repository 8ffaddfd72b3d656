"""Dispatcher: executes sync decisions against the transfer tool."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Optional

from ..output import OutputFormatter
from ..utils import format_size
from .comparator import SyncAction, SyncDecision
from .paths import TransferRoot

if TYPE_CHECKING:
    from ..tool import LocalFilesystem, TransferTool

logger = logging.getLogger(__name__)


class SyncOperations:
    """Unified operations for both transfer directions.

    Directories are created on whichever side is the destination; files are
    always handed to the transfer tool in create-or-resume mode together with
    the caller's pass-through options.
    """

    def __init__(
        self,
        tool: TransferTool,
        filesystem: LocalFilesystem,
        source: TransferRoot,
        destination: TransferRoot,
        extra_options: Sequence[str] = (),
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize sync operations.

        Args:
            tool: Transfer tool wrapper
            filesystem: Local filesystem primitives
            source: Source root
            destination: Destination root
            extra_options: Caller options forwarded to every transfer
            output: Output formatter for progress notes
        """
        self.tool = tool
        self.filesystem = filesystem
        self.source = source
        self.destination = destination
        self.extra_options = list(extra_options)
        self.output = output or OutputFormatter()

    def execute(self, decision: SyncDecision) -> None:
        """Execute a single decision.

        Raises:
            DispatchError: If the external invocation fails
        """
        if decision.action == SyncAction.SKIP:
            self.skip(decision)
        elif decision.action == SyncAction.CREATE_DIRECTORY:
            self.create_directory(decision.destination)
        elif decision.action == SyncAction.TRANSFER:
            self.transfer_file(decision)

    def skip(self, decision: SyncDecision) -> None:
        reason = decision.skip_reason.value if decision.skip_reason else "skip"
        self.output.info(f"  = skip ({reason}): {decision.destination}")

    def create_directory(self, path: str) -> None:
        """Create a destination directory."""
        self.output.info(f"  + mkdir: {self.destination.endpoint_for(path)}")
        if self.destination.is_remote:
            self.tool.create_remote_directory(self.destination, path)
        else:
            self.filesystem.make_directory(path)

    def transfer_file(self, decision: SyncDecision) -> None:
        """Transfer one file, resuming a partial destination file."""
        source = self.source.endpoint_for(decision.entry.path)
        destination = self.destination.endpoint_for(decision.destination)
        self.output.info(
            f"  > transfer ({format_size(decision.entry.size)}): "
            f"{source} -> {destination}"
        )
        logger.debug("Transfer reason for %s: %s", destination, decision.reason)
        self.tool.transfer_file(
            source,
            destination,
            resume=decision.resume,
            extra_options=self.extra_options,
        )
