"""Tests for the command line interface."""

from click.testing import CliRunner

from stream11.cli import cli


def test_version():
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_groups_are_registered():
    result = CliRunner().invoke(cli, ["--help"])

    assert result.exit_code == 0
    for command in ("serve", "db", "predictions", "users", "status-log"):
        assert command in result.output


def test_predictions_list_rejects_unknown_status():
    result = CliRunner().invoke(cli, ["predictions", "list", "--status", "pending"])

    assert result.exit_code != 0
    assert "pending" in result.output
