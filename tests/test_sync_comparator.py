"""Tests for the DecisionEngine class."""

from unittest.mock import Mock

from resumesync.sync.comparator import DecisionEngine, SkipReason, SyncAction
from resumesync.sync.listing import Entry, EntryKind
from resumesync.sync.probes import ProbeResult


def _file(path: str = "/src/f.txt", size: int = 10, hidden: bool = False) -> Entry:
    return Entry(path=path, kind=EntryKind.FILE, size=size, hidden=hidden)


def _dir(path: str = "/src", hidden: bool = False) -> Entry:
    return Entry(path=path, kind=EntryKind.DIRECTORY, hidden=hidden)


class TestHiddenEntries:
    """Hidden entries are skipped without any probe."""

    def test_hidden_file_skipped_without_probe(self):
        prober = Mock()
        engine = DecisionEngine(prober)

        decision = engine.decide(_file(hidden=True), "/dst/f.txt")

        assert decision.action == SyncAction.SKIP
        assert decision.skip_reason == SkipReason.HIDDEN
        prober.probe.assert_not_called()

    def test_hidden_directory_skipped_without_probe(self):
        prober = Mock()
        engine = DecisionEngine(prober)

        decision = engine.decide(_dir(hidden=True), "/dst")

        assert decision.action == SyncAction.SKIP
        assert decision.probe is None
        prober.probe.assert_not_called()


class TestDirectoryDecisions:
    """Directories are only checked for existence."""

    def test_missing_directory_is_created(self):
        prober = Mock()
        prober.probe.return_value = ProbeResult.missing()
        engine = DecisionEngine(prober)

        decision = engine.decide(_dir(), "/dst")

        assert decision.action == SyncAction.CREATE_DIRECTORY
        assert decision.destination == "/dst"
        prober.probe.assert_called_once_with("/dst", want_size=False)

    def test_existing_directory_is_skipped(self):
        prober = Mock()
        prober.probe.return_value = ProbeResult.found()
        engine = DecisionEngine(prober)

        decision = engine.decide(_dir(), "/dst")

        assert decision.action == SyncAction.SKIP
        assert decision.skip_reason == SkipReason.EXISTS

    def test_failed_probe_creates_directory(self):
        prober = Mock()
        prober.probe.return_value = ProbeResult.failed("permission denied")
        engine = DecisionEngine(prober)

        decision = engine.decide(_dir(), "/dst")

        assert decision.action == SyncAction.CREATE_DIRECTORY
        assert decision.probe_failed
        assert "permission denied" in decision.reason


class TestFileDecisions:
    """Files are compared by size only."""

    def test_missing_file_is_transferred_with_resume(self):
        prober = Mock()
        prober.probe.return_value = ProbeResult.missing()
        engine = DecisionEngine(prober)

        decision = engine.decide(_file(), "/dst/f.txt")

        assert decision.action == SyncAction.TRANSFER
        assert decision.resume is True
        assert decision.reason == "New file"

    def test_same_size_is_complete(self):
        prober = Mock()
        prober.probe.return_value = ProbeResult.found(10)
        engine = DecisionEngine(prober)

        decision = engine.decide(_file(size=10), "/dst/f.txt")

        assert decision.action == SyncAction.SKIP
        assert decision.skip_reason == SkipReason.COMPLETE

    def test_partial_file_is_resumed(self):
        prober = Mock()
        prober.probe.return_value = ProbeResult.found(4)
        engine = DecisionEngine(prober)

        decision = engine.decide(_file(size=10), "/dst/f.txt")

        assert decision.action == SyncAction.TRANSFER
        assert decision.resume is True
        assert "Size differs" in decision.reason

    def test_larger_destination_is_transferred(self):
        prober = Mock()
        prober.probe.return_value = ProbeResult.found(20)
        engine = DecisionEngine(prober)

        decision = engine.decide(_file(size=10), "/dst/f.txt")

        assert decision.action == SyncAction.TRANSFER

    def test_failed_probe_is_never_treated_as_complete(self):
        prober = Mock()
        prober.probe.return_value = ProbeResult.failed("stat failed")
        engine = DecisionEngine(prober)

        decision = engine.decide(_file(size=0), "/dst/f.txt")

        assert decision.action == SyncAction.TRANSFER
        assert decision.probe_failed

    def test_destination_directory_with_unknown_size_is_transferred(self):
        prober = Mock()
        prober.probe.return_value = ProbeResult.found(None)
        engine = DecisionEngine(prober)

        decision = engine.decide(_file(size=0), "/dst/f.txt")

        assert decision.action == SyncAction.TRANSFER

    def test_same_size_different_content_is_skipped(self):
        """Known limitation: contents are not compared."""
        prober = Mock()
        prober.probe.return_value = ProbeResult.found(10)
        engine = DecisionEngine(prober)

        decision = engine.decide(_file(size=10), "/dst/f.txt")

        assert decision.action == SyncAction.SKIP
