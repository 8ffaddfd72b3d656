"""Core sync engine: one control loop per transfer direction."""

from __future__ import annotations

import dataclasses
import logging
import signal
import threading
import time
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from ..exceptions import ResumeSyncError
from ..output import OutputFormatter
from .comparator import DecisionEngine, Prober, SkipReason, SyncAction, SyncDecision
from .listing import Entry, ListingFormat, parse_listing
from .operations import SyncOperations
from .paths import TransferRoot, map_path
from .probes import LocalProbe, RemoteProbe

if TYPE_CHECKING:
    from ..tool import LocalFilesystem, TransferTool

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation flag for the control loop.

    The loop checks the flag between entries, so an interrupt takes effect
    once the current dispatch has completed.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    @contextmanager
    def handle_signals(self, signals: Sequence[int] = (signal.SIGINT,)) -> Iterator[None]:
        """Turn the given signals into a cancellation request while active.

        Signal handlers can only be installed from the main thread; elsewhere
        this is a no-op.
        """
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def handler(signum, _frame):
            logger.debug("Received signal %s, stopping after current entry", signum)
            self.cancel()

        previous = {sig: signal.signal(sig, handler) for sig in signals}
        try:
            yield
        finally:
            for sig, old in previous.items():
                signal.signal(sig, old)


@dataclass
class SyncStats:
    """Statistics of one synchronization run."""

    processed: int = 0
    transfers: int = 0
    directories_created: int = 0
    skipped: dict[str, int] = field(default_factory=dict)
    probe_failures: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)
    interrupted: bool = False
    dry_run: bool = False

    @property
    def skips(self) -> int:
        return sum(self.skipped.values())

    @property
    def failed(self) -> bool:
        return bool(self.failures)

    def to_dict(self) -> dict:
        """Convert stats to a dictionary for JSON output."""
        return {
            "processed": self.processed,
            "transfers": self.transfers,
            "directories_created": self.directories_created,
            "skipped": dict(self.skipped),
            "probe_failures": self.probe_failures,
            "failures": [
                {"destination": dest, "error": msg} for dest, msg in self.failures
            ],
            "interrupted": self.interrupted,
            "dry_run": self.dry_run,
        }


class SyncEngine:
    """Core sync engine that drives directory resume in either direction."""

    def __init__(
        self,
        tool: TransferTool,
        filesystem: LocalFilesystem,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize sync engine.

        Args:
            tool: Transfer tool wrapper
            filesystem: Local filesystem primitives
            output: Output formatter for displaying progress/status
        """
        self.tool = tool
        self.filesystem = filesystem
        self.output = output or OutputFormatter()

    def download(
        self,
        source: TransferRoot,
        destination: TransferRoot,
        extra_options: Sequence[str] = (),
        dry_run: bool = False,
        max_workers: int = 1,
        cancel: Optional[CancellationToken] = None,
    ) -> SyncStats:
        """Resume a remote directory into a local one.

        The remote tree is listed once through the tool; each destination path
        is probed with a local stat.
        """
        source = source.normalized()
        destination = destination.normalized()
        lines = self.tool.list_remote_recursive(source)
        entries = parse_listing(lines, ListingFormat.STRUCTURED)
        prober = LocalProbe(self.filesystem)
        return self._run(
            "Downloading",
            entries,
            source,
            destination,
            prober,
            extra_options,
            dry_run,
            max_workers,
            cancel,
        )

    def upload(
        self,
        source: TransferRoot,
        destination: TransferRoot,
        extra_options: Sequence[str] = (),
        dry_run: bool = False,
        max_workers: int = 1,
        cancel: Optional[CancellationToken] = None,
    ) -> SyncStats:
        """Resume a local directory into a remote one.

        The local tree is listed with ``ls -lR``; each destination path costs
        one remote describe call.
        """
        source = source.normalized()
        destination = destination.normalized()
        lines = self.filesystem.list_recursive(source.path)
        entries = parse_listing(lines, ListingFormat.LOCAL_RECURSIVE)
        prober = RemoteProbe(self.tool, destination)
        return self._run(
            "Uploading",
            entries,
            source,
            destination,
            prober,
            extra_options,
            dry_run,
            max_workers,
            cancel,
        )

    def transfer_single_file(
        self,
        source: TransferRoot,
        destination: TransferRoot,
        extra_options: Sequence[str] = (),
        dry_run: bool = False,
    ) -> SyncStats:
        """Transfer a lone file in create-or-resume mode."""
        stats = SyncStats(dry_run=dry_run, processed=1)
        if dry_run:
            self.output.info(
                f"  > transfer: {source.endpoint} -> {destination.endpoint}"
            )
            stats.transfers += 1
            return stats
        try:
            self.tool.transfer_file(
                source.endpoint,
                destination.endpoint,
                resume=True,
                extra_options=extra_options,
            )
            stats.transfers += 1
        except ResumeSyncError as e:
            self.output.error(f"Error transferring {source.endpoint}: {e}")
            stats.failures.append((destination.endpoint, str(e)))
        return stats

    def _run(
        self,
        label: str,
        entries: Iterable[Entry],
        source: TransferRoot,
        destination: TransferRoot,
        prober: Prober,
        extra_options: Sequence[str],
        dry_run: bool,
        max_workers: int,
        cancel: Optional[CancellationToken],
    ) -> SyncStats:
        """Process entries in listing order.

        Directory outcomes are always dispatched from this loop, one at a
        time, before any later entry is looked at. With ``max_workers > 1``
        only file transfers go to the worker pool, so a parent directory is
        always created before a file beneath it is submitted. At most
        ``max_workers`` transfers are outstanding at any time; on
        cancellation only those already running are completed.
        """
        cancel = cancel or CancellationToken()
        stats = SyncStats(dry_run=dry_run)
        decider = DecisionEngine(prober)
        operations = SyncOperations(
            self.tool,
            self.filesystem,
            source,
            destination,
            extra_options=extra_options,
            output=self.output,
        )

        if not self.output.quiet:
            self.output.info(f"{label}: {source.endpoint} -> {destination.endpoint}")
            if dry_run:
                self.output.info("Dry run: No changes will be made")
            self.output.print("")

        start_time = time.time()
        executor: Optional[ThreadPoolExecutor] = None
        if max_workers > 1 and not dry_run:
            executor = ThreadPoolExecutor(max_workers=max_workers)
        pending: dict[Future, SyncDecision] = {}
        hidden_dirs: set[str] = set()

        try:
            for entry in entries:
                if executor is not None and len(pending) >= max_workers:
                    # Wait for a free worker before reading further
                    self._reap(pending, stats)
                if cancel.cancelled:
                    stats.interrupted = True
                    break

                entry = self._inherit_hidden(entry, hidden_dirs)
                target = map_path(source.path, destination.path, entry.path)
                decision = decider.decide(entry, target)
                stats.processed += 1
                logger.debug(
                    "%s -> %s: %s (%s)",
                    entry.path,
                    target,
                    decision.action.value,
                    decision.reason,
                )

                if decision.probe_failed:
                    stats.probe_failures += 1
                    self.output.warning(
                        f"Could not determine state of {target}: "
                        f"{decision.probe.message if decision.probe else ''}; "
                        f"treating as incomplete"
                    )

                if decision.action == SyncAction.SKIP:
                    self._record_skip(decision, stats)
                    operations.skip(decision)
                    continue

                if dry_run:
                    self._display_planned(decision, stats)
                    continue

                if executor is not None and decision.action == SyncAction.TRANSFER:
                    future = executor.submit(operations.execute, decision)
                    pending[future] = decision
                    self._reap(pending, stats, timeout=0)
                    continue

                self._dispatch(operations, decision, stats)
        except KeyboardInterrupt:
            cancel.cancel()
            stats.interrupted = True
            if not self.output.quiet:
                self.output.warning("\nSync cancelled by user")
            raise
        finally:
            if executor is not None:
                try:
                    if cancel.cancelled:
                        self._cancel_queued(pending)
                    while pending:
                        self._reap(pending, stats)
                finally:
                    executor.shutdown(wait=True)

        if cancel.cancelled:
            stats.interrupted = True

        elapsed = time.time() - start_time
        logger.debug("Processed %d entries in %.2fs", stats.processed, elapsed)

        if stats.interrupted and not self.output.quiet:
            self.output.warning("Interrupted: stopped after the current entry")
        if not self.output.quiet:
            self._display_summary(stats)
        return stats

    def _inherit_hidden(self, entry: Entry, hidden_dirs: set[str]) -> Entry:
        """Entries below a hidden directory are hidden as well."""
        if not entry.hidden:
            parent = entry.path
            while "/" in parent.strip("/"):
                parent = parent.rsplit("/", 1)[0]
                if parent in hidden_dirs:
                    entry = dataclasses.replace(entry, hidden=True)
                    break
        if entry.hidden and entry.is_dir:
            hidden_dirs.add(entry.path)
        return entry

    def _dispatch(
        self,
        operations: SyncOperations,
        decision: SyncDecision,
        stats: SyncStats,
    ) -> None:
        try:
            operations.execute(decision)
        except ResumeSyncError as e:
            self._record_failure(decision, e, stats)
        else:
            self._record_success(decision, stats)

    def _reap(
        self,
        pending: dict[Future, SyncDecision],
        stats: SyncStats,
        timeout: Optional[float] = None,
    ) -> None:
        """Collect finished parallel transfers.

        Waits for at least one transfer to finish unless ``timeout`` runs
        out first.
        """
        if not pending:
            return
        done, _ = wait(list(pending), timeout=timeout, return_when=FIRST_COMPLETED)
        for future in done:
            decision = pending.pop(future)
            try:
                future.result()
            except ResumeSyncError as e:
                self._record_failure(decision, e, stats)
            else:
                self._record_success(decision, stats)

    def _cancel_queued(self, pending: dict[Future, SyncDecision]) -> None:
        """Drop transfers that have not started yet."""
        for future in list(pending):
            if future.cancel():
                logger.debug(
                    "Cancelled queued transfer to %s", pending[future].destination
                )
                del pending[future]

    def _record_success(self, decision: SyncDecision, stats: SyncStats) -> None:
        if decision.action == SyncAction.TRANSFER:
            stats.transfers += 1
        elif decision.action == SyncAction.CREATE_DIRECTORY:
            stats.directories_created += 1

    def _record_failure(
        self, decision: SyncDecision, error: Exception, stats: SyncStats
    ) -> None:
        self.output.error(f"Error syncing {decision.destination}: {error}")
        stats.failures.append((decision.destination, str(error)))

    def _record_skip(self, decision: SyncDecision, stats: SyncStats) -> None:
        reason = (decision.skip_reason or SkipReason.EXISTS).value
        stats.skipped[reason] = stats.skipped.get(reason, 0) + 1

    def _display_planned(self, decision: SyncDecision, stats: SyncStats) -> None:
        if decision.action == SyncAction.CREATE_DIRECTORY:
            self.output.info(f"  + mkdir (dry run): {decision.destination}")
        else:
            self.output.info(
                f"  > transfer (dry run): {decision.entry.path} -> "
                f"{decision.destination} [{decision.reason}]"
            )
        self._record_success(decision, stats)

    def _display_summary(self, stats: SyncStats) -> None:
        """Display sync summary.

        Args:
            stats: Statistics of the run
        """
        self.output.print("")
        if stats.failed:
            self.output.error(f"Sync finished with {len(stats.failures)} failure(s)")
            for destination, message in stats.failures:
                self.output.error(f"  {destination}: {message}")
        elif stats.dry_run:
            self.output.success("Dry run complete!")
        else:
            self.output.success("Sync complete!")

        total_actions = stats.transfers + stats.directories_created
        if total_actions > 0:
            verb = "Planned" if stats.dry_run else "Total"
            self.output.info(f"{verb} actions: {total_actions}")
            if stats.directories_created > 0:
                self.output.info(f"  Directories created: {stats.directories_created}")
            if stats.transfers > 0:
                self.output.info(f"  Files transferred: {stats.transfers}")
        else:
            self.output.info("No changes needed - everything is complete!")
        if stats.skips > 0:
            details = ", ".join(f"{k}: {v}" for k, v in sorted(stats.skipped.items()))
            self.output.info(f"  Skipped: {stats.skips} ({details})")
        if stats.probe_failures > 0:
            self.output.warning(f"  Probe failures: {stats.probe_failures}")
