"""Tests for the targets command."""

from typer.testing import CliRunner

from trackgen.cli import app
from trackgen.cli._common import console
from trackgen.codegen import list_targets

runner = CliRunner()


def test_lists_every_target(monkeypatch):
    monkeypatch.setattr(console, "width", 200)
    result = runner.invoke(app, ["targets"])
    assert result.exit_code == 0
    for target in list_targets():
        assert target.id in result.output
