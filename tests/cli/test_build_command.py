"""Tests for the build command, driven through typer's CliRunner."""

import os

import pytest
from typer.testing import CliRunner

from trackgen import __version__
from trackgen.cli import app
from trackgen.cli._common import console
from trackgen.plan import write_tracking_plan

runner = CliRunner()


@pytest.fixture(autouse=True)
def project(tmp_path, monkeypatch):
    """Empty project directory with no TRACKGEN_* settings in the environment."""
    for name in list(os.environ):
        if name.startswith("TRACKGEN_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(console, "width", 200)
    return tmp_path


@pytest.fixture
def cached(project, plan_factory, event_factory):
    plan = plan_factory(
        [
            event_factory("Signed Up", {"plan": {"type": "string"}}, ["plan"]),
            event_factory("Logged Out"),
        ]
    )
    write_tracking_plan(project / "analytics", plan)
    return plan


class TestBuild:
    """Test the happy path from a cached plan."""

    def test_builds_from_cache(self, project, cached):
        result = runner.invoke(app, ["build", "--no-update"])
        assert result.exit_code == 0, result.output
        assert "Done." in result.output
        assert "2 events, 1 file(s)" in result.output
        assert (project / "analytics" / "tracking.py").exists()

    def test_production_flag(self, project, cached):
        result = runner.invoke(app, ["build", "--no-update", "--production"])
        assert result.exit_code == 0, result.output
        contents = (project / "analytics" / "tracking.py").read_text()
        assert "production build" in contents
        assert "SCHEMAS" not in contents

    def test_explicit_config_file(self, project, plan_factory, event_factory):
        config_dir = project / "web"
        config_dir.mkdir()
        (config_dir / "trackgen.toml").write_text(
            'output_path = "src/analytics"\n[client]\nsdk = "web"\nlanguage = "typescript"\n'
        )
        write_tracking_plan(config_dir / "src" / "analytics", plan_factory([event_factory("A")]))

        result = runner.invoke(app, ["build", "-c", str(config_dir / "trackgen.toml"), "--no-update"])

        assert result.exit_code == 0, result.output
        assert (config_dir / "src" / "analytics" / "index.ts").exists()


class TestBuildErrors:
    """Test that failures end with a message and a non-zero exit code."""

    def test_missing_cache(self, project):
        result = runner.invoke(app, ["build", "--no-update"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "TG102" in result.output

    def test_invalid_config(self, project):
        (project / "trackgen.toml").write_text('[client]\nsdk = "android"\nlanguage = "kotlin"\n')
        result = runner.invoke(app, ["build", "--no-update"])
        assert result.exit_code == 1
        assert "Invalid configuration for client" in result.output

    def test_unsupported_schema(self, project, plan_factory, event_factory):
        event = event_factory("Broken", {"ref": {"$ref": "#/definitions/thing"}})
        write_tracking_plan(project / "analytics", plan_factory([event]))
        result = runner.invoke(app, ["build", "--no-update"])
        assert result.exit_code == 1
        assert "TG200" in result.output


class TestRootOptions:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
