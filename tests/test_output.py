"""Tests for OutputFormatter."""

import json

from resumesync.output import OutputFormatter


class TestOutputFormatter:
    def test_info_goes_to_stdout(self, capsys):
        OutputFormatter().info("  > transfer: a -> b")

        captured = capsys.readouterr()
        assert "> transfer: a -> b" in captured.out
        assert captured.err == ""

    def test_quiet_keeps_warnings(self, capsys):
        out = OutputFormatter(quiet=True)

        out.info("hidden")
        out.warning("careful")

        captured = capsys.readouterr()
        assert "hidden" not in captured.out
        assert "careful" in captured.err

    def test_markup_is_not_interpreted(self, capsys):
        OutputFormatter().error("[bold]file[1].txt")

        assert "[bold]file[1].txt" in capsys.readouterr().err

    def test_json_output(self, capsys):
        out = OutputFormatter(json_output=True)

        out.info("not shown")
        out.output_json({"transfers": 2})

        assert json.loads(capsys.readouterr().out) == {"transfers": 2}
