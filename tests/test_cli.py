"""Tests for the command line interface."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from csoverview import __version__
from csoverview.cli import app
from csoverview.core.config import reset_config
from csoverview.match import build_match
from csoverview.source import EventKind

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for var in ("CSOVERVIEW_FRAMERATE", "CSOVERVIEW_TICKRATE", "CSOVERVIEW_SAMPLE_RATE"):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def demo_file(tmp_path):
    path = tmp_path / "match.dem"
    path.write_bytes(b"PBDEMS2\x00")
    return path


@pytest.fixture
def fake_load_match(fake_source_factory):
    """Stand-in for load_match: 20 frames from a decoder that reports no frame rate."""

    def load(demo_path, fallback_frame_rate=None, fallback_tick_rate=None, sample_rate=1, timeline=None):
        source = fake_source_factory(
            20,
            frame_rate=0.0,
            events=[(0, EventKind.MATCH_START, None), (1, EventKind.ROUND_START, None)],
        )
        return build_match(source, fallback_frame_rate, fallback_tick_rate, timeline)

    return load


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestInfo:
    """Tests for the info command."""

    def test_info(self, demo_file, fake_load_match):
        with patch("csoverview.cli.load_match", side_effect=fake_load_match):
            result = runner.invoke(app, ["info", str(demo_file), "--framerate", "10"])

        assert result.exit_code == 0, result.stdout
        assert "de_dust2" in result.stdout
        assert "20 (0 skipped)" in result.stdout

    def test_missing_framerate_reports_option(self, demo_file, fake_load_match):
        with patch("csoverview.cli.load_match", side_effect=fake_load_match):
            result = runner.invoke(app, ["info", str(demo_file)])

        assert result.exit_code == 1
        assert "--framerate" in result.stdout

    def test_framerate_from_config(self, demo_file, tmp_path, fake_load_match):
        config = tmp_path / "settings.yaml"
        config.write_text("parser:\n  fallback_frame_rate: 10\n")

        with patch("csoverview.cli.load_match", side_effect=fake_load_match) as load:
            result = runner.invoke(app, ["--config", str(config), "info", str(demo_file)])

        assert result.exit_code == 0, result.stdout
        assert load.call_args.kwargs["fallback_frame_rate"] == 10

    def test_tickrate_option_passed_through(self, demo_file, fake_load_match):
        with patch("csoverview.cli.load_match", side_effect=fake_load_match) as load:
            runner.invoke(app, ["info", str(demo_file), "--framerate", "10"])
            result = runner.invoke(app, ["info", str(demo_file), "--framerate", "10", "--tickrate", "128"])

        assert result.exit_code == 0, result.stdout
        assert load.call_args_list[0].kwargs["fallback_tick_rate"] == 64.0
        assert load.call_args_list[1].kwargs["fallback_tick_rate"] == 128.0

    def test_missing_demo(self, tmp_path):
        result = runner.invoke(app, ["info", str(tmp_path / "missing.dem")])
        assert result.exit_code != 0


class TestExport:
    """Tests for the export command."""

    def test_export_json(self, demo_file, tmp_path, fake_load_match):
        out = tmp_path / "out.json"
        with patch("csoverview.cli.load_match", side_effect=fake_load_match) as load:
            result = runner.invoke(
                app,
                ["export", str(demo_file), "-o", str(out), "--framerate", "10", "--sample-rate", "4"],
            )

        assert result.exit_code == 0, result.stdout
        assert load.call_args.kwargs["sample_rate"] == 4
        data = json.loads(out.read_text())
        assert len(data["frames"]) == 20
        assert data["half_starts"] == [0]
        assert data["round_starts"] == [1]

    def test_export_gzip(self, demo_file, tmp_path, fake_load_match):
        out = tmp_path / "out.json.gz"
        with patch("csoverview.cli.load_match", side_effect=fake_load_match):
            result = runner.invoke(app, ["export", str(demo_file), "-o", str(out), "--framerate", "10"])

        assert result.exit_code == 0, result.stdout
        assert out.read_bytes()[:2] == b"\x1f\x8b"

    def test_export_bad_extension(self, demo_file, tmp_path, fake_load_match):
        with patch("csoverview.cli.load_match", side_effect=fake_load_match):
            result = runner.invoke(
                app, ["export", str(demo_file), "-o", str(tmp_path / "out.csv"), "--framerate", "10"]
            )

        assert result.exit_code == 1
        assert "Unsupported export format" in result.stdout
