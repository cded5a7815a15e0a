"""
Tests for the command line entry point.
"""

from click.testing import CliRunner

from shortcircuit.__main__ import main


def test_help():
    result = CliRunner().invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "--template" in result.output
    assert "--port" in result.output


def test_missing_template_is_rejected(tmp_path):
    result = CliRunner().invoke(main, ["--template", str(tmp_path / "missing.html")])
    assert result.exit_code != 0
