"""Tests for destination probes."""

from unittest.mock import Mock

from resumesync.sync.listing import Entry, EntryKind
from resumesync.sync.paths import TransferRoot
from resumesync.sync.probes import LocalProbe, ProbeStatus, RemoteProbe
from resumesync.tool import LocalFilesystem, RemoteDescription


class TestLocalProbe:
    """Tests for local filesystem probing."""

    def test_missing_path(self, tmp_path):
        probe = LocalProbe(LocalFilesystem())

        result = probe.probe(str(tmp_path / "missing"))

        assert result.status == ProbeStatus.NOT_FOUND

    def test_existing_file_size(self, tmp_path):
        target = tmp_path / "f.txt"
        target.write_bytes(b"0123456789")
        probe = LocalProbe(LocalFilesystem())

        result = probe.probe(str(target))

        assert result.status == ProbeStatus.EXISTS
        assert result.size == 10

    def test_directory_existence_only(self, tmp_path):
        probe = LocalProbe(LocalFilesystem())

        result = probe.probe(str(tmp_path), want_size=False)

        assert result.exists
        assert result.size is None

    def test_falls_back_to_second_mechanism(self, tmp_path):
        target = tmp_path / "f.txt"
        target.write_bytes(b"abc")
        filesystem = LocalFilesystem()
        filesystem.stat_size = Mock(side_effect=OSError("stat unavailable"))
        probe = LocalProbe(filesystem)

        result = probe.probe(str(target))

        assert result.status == ProbeStatus.EXISTS
        assert result.size == 3

    def test_all_mechanisms_failing_is_query_failure(self):
        filesystem = Mock(spec=LocalFilesystem)
        filesystem.exists.return_value = True
        filesystem.stat_size.side_effect = OSError("no stat")
        filesystem.measure_size.side_effect = PermissionError("no read")
        probe = LocalProbe(filesystem)

        result = probe.probe("/dst/f.txt")

        assert result.status == ProbeStatus.QUERY_FAILED
        assert result.size is None
        assert "no stat" in result.message
        assert "no read" in result.message


class TestRemoteProbe:
    """Tests for remote probing via describe calls."""

    def _probe(self, description):
        tool = Mock()
        tool.describe_remote.return_value = description
        root = TransferRoot("host", "/dst")
        return RemoteProbe(tool, root), tool, root

    def test_existing_file(self):
        entry = Entry("/dst/f", EntryKind.FILE, size=26)
        probe, tool, root = self._probe(
            RemoteDescription(ProbeStatus.EXISTS, entry=entry)
        )

        result = probe.probe("/dst/f")

        assert result.status == ProbeStatus.EXISTS
        assert result.size == 26
        tool.describe_remote.assert_called_once_with(root, "/dst/f")

    def test_existing_directory_has_no_size(self):
        entry = Entry("/dst/d", EntryKind.DIRECTORY, size=4096)
        probe, _, _ = self._probe(RemoteDescription(ProbeStatus.EXISTS, entry=entry))

        result = probe.probe("/dst/d")

        assert result.exists
        assert result.size is None

    def test_not_found(self):
        probe, _, _ = self._probe(RemoteDescription(ProbeStatus.NOT_FOUND))

        assert probe.probe("/dst/x").status == ProbeStatus.NOT_FOUND

    def test_query_failure_keeps_message(self):
        probe, _, _ = self._probe(
            RemoteDescription(ProbeStatus.QUERY_FAILED, message="exit 2: timeout")
        )

        result = probe.probe("/dst/x")

        assert result.status == ProbeStatus.QUERY_FAILED
        assert result.message == "exit 2: timeout"
