"""Tests for the command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from notesense.cli import app
from notesense.config import get_settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def note_file(tmp_path):
    path = tmp_path / "weekly.md"
    path.write_text(
        "# Roadmap\nMove launch to next week\n\n"
        "## Onboarding\nPlease add boundary detection in onboarding\n",
        encoding="utf-8",
    )
    return path


class TestAnalyze:
    """Tests for the analyze command."""

    def test_writes_json(self, note_file, tmp_path):
        output = tmp_path / "out.json"
        result = runner.invoke(app, ["analyze", str(note_file), "-o", str(output), "--debug"])
        assert result.exit_code == 0
        payload = json.loads(output.read_text(encoding="utf-8"))
        assert [s["type"] for s in payload["suggestions"]] == ["project_update", "idea"]
        assert payload["suggestions"][0]["note_id"] == "weekly"
        assert payload["debug"]["sections_count"] == 2

    def test_default_output_path(self, note_file):
        result = runner.invoke(app, ["analyze", str(note_file), "--note-id", "n42"])
        assert result.exit_code == 0
        payload = json.loads(note_file.with_name("weekly_suggestions.json").read_text(encoding="utf-8"))
        assert "debug" not in payload
        assert payload["suggestions"][0]["note_id"] == "n42"

    def test_initiatives_route(self, note_file, tmp_path):
        initiatives = tmp_path / "initiatives.json"
        initiatives.write_text(
            json.dumps([{"id": "init_onb", "title": "Boundary detection in onboarding"}]),
            encoding="utf-8",
        )
        output = tmp_path / "out.json"
        result = runner.invoke(
            app, ["analyze", str(note_file), "--initiatives", str(initiatives), "-o", str(output)]
        )
        assert result.exit_code == 0
        idea = json.loads(output.read_text(encoding="utf-8"))["suggestions"][1]
        assert idea["routing"]["target_initiative_id"] == "init_onb"

    def test_malformed_threshold(self, note_file):
        result = runner.invoke(app, ["analyze", str(note_file), "--threshold", "T_action"])
        assert result.exit_code == 2

    def test_out_of_range_threshold(self, note_file, tmp_path):
        result = runner.invoke(
            app,
            ["analyze", str(note_file), "--threshold", "T_action=2", "-o", str(tmp_path / "o.json")],
        )
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_max_suggestions_zero(self, note_file, tmp_path):
        output = tmp_path / "out.json"
        result = runner.invoke(
            app, ["analyze", str(note_file), "--max-suggestions", "0", "-o", str(output), "--compact"]
        )
        assert result.exit_code == 0
        payload = json.loads(output.read_text(encoding="utf-8"))
        assert [s["type"] for s in payload["suggestions"]] == ["project_update"]


class TestSweep:
    """Tests for the sweep command."""

    def test_sweep_table(self, note_file):
        result = runner.invoke(app, ["sweep", str(note_file), "--values", "0.5,0.99"])
        assert result.exit_code == 0
        assert "sensitivity" in result.output

    def test_unknown_threshold(self, note_file):
        result = runner.invoke(app, ["sweep", str(note_file), "--threshold", "T_missing"])
        assert result.exit_code == 1


class TestInfo:
    """Tests for the info command."""

    def test_shows_thresholds(self):
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert "T_action" in result.output
        assert "NoteSense" in result.output
