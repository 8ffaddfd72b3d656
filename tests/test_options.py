"""Tests for invocation parsing and run mode selection."""

import pytest

from resumesync.options import RunMode, parse_invocation, select_mode


class TestParseInvocation:
    """Tests for parse_invocation."""

    def test_recognized_options_are_consumed(self):
        options = parse_invocation(["-r", "--resume", "-P", "22", "h:/a", "/b"])

        assert options.recursive
        assert options.resume
        assert options.passthrough_options == ["-P", "22"]
        assert options.source.server == "h"
        assert options.destination.path == "/b"

    def test_long_and_short_forms(self):
        options = parse_invocation(["--recursive", "-k", "h:/a", "/b"])

        assert options.recursive and options.resume

    def test_unknown_options_pass_through_in_order(self):
        options = parse_invocation(["-v", "-r", "--limit=5", "-k", "h:/a", "/b"])

        assert options.passthrough_options == ["-v", "--limit=5"]

    def test_configured_resume_args_count_as_resume(self):
        options = parse_invocation(["-r", "--continue", "h:/a", "/b"], ["--continue"])

        assert options.resume
        assert options.passthrough_options == []

    def test_too_few_arguments(self):
        options = parse_invocation(["--help"])

        assert not options.has_endpoints

    def test_option_in_endpoint_position(self):
        options = parse_invocation(["h:/a", "-r"])

        assert not options.has_endpoints
        assert not options.recursive


class TestSelectMode:
    """Decision table for the run mode."""

    @pytest.mark.parametrize(
        "args, expected",
        [
            (["-r", "--resume", "h:/a", "/b"], RunMode.DOWNLOAD_DIRECTORY_RESUME),
            (["-r", "--resume", "/a", "h:/b"], RunMode.UPLOAD_DIRECTORY_RESUME),
            (["-r", "--resume", "/a", "/b"], RunMode.PASS_THROUGH),
            (["-r", "--resume", "h:/a", "g:/b"], RunMode.PASS_THROUGH),
            (["-r", "h:/a", "/b"], RunMode.PASS_THROUGH),
            (["--resume", "/a", "h:/b"], RunMode.PASS_THROUGH),
            (["h:/a", "/b"], RunMode.PASS_THROUGH),
            ([], RunMode.PASS_THROUGH),
        ],
    )
    def test_modes(self, args, expected):
        assert select_mode(parse_invocation(args)) == expected

    def test_windows_drive_destination_is_local(self):
        options = parse_invocation(["-r", "--resume", "h:/a", "C:\\backup"])

        assert select_mode(options) == RunMode.DOWNLOAD_DIRECTORY_RESUME
