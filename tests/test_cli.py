"""Tests for the LLM Radar CLI."""

import json
from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

from llm_radar import __version__
from llm_radar.cli import app
from llm_radar.cli.commands.scan import _render_event
from llm_radar.cli.output import create_scan_progress
from llm_radar.orchestration.events import Started
from llm_radar.utils.time import utc_now

runner = CliRunner()


class TestVersion:
    """Tests for the --version flag."""

    def test_version_shows_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"LLM Radar v{__version__}" in result.stdout


class TestScanCommand:
    """Tests for the scan command against a stub probe."""

    def _scan(self, fake_probe: Path, tmp_path: Path, *extra: str):
        return runner.invoke(
            app,
            [
                "scan",
                "--probe", str(fake_probe),
                "--cache-file", str(tmp_path / "cache.json"),
                "--concurrency", "2",
                "--timeout", "5",
                *extra,
            ],
        )

    def test_json_output(self, fake_probe: Path, tmp_path: Path) -> None:
        result = self._scan(fake_probe, tmp_path, "--json")
        assert result.exit_code == 0, result.output

        data = json.loads(result.stdout)
        assert data["total"] == 4
        assert data["usable"] == 3
        categories = {r["model"]: r["category"] for r in data["results"]}
        assert categories == {
            "opencode/big-pickle": "FREE",
            "zai-coding-plan/glm-4.6": "AVAILABLE",
            "acme/good": "AVAILABLE",
            "acme/locked": "AUTH_FAILED",
        }

    def test_rich_output(self, fake_probe: Path, tmp_path: Path) -> None:
        result = self._scan(fake_probe, tmp_path)
        assert result.exit_code == 0, result.output
        assert "acme/good" in result.stdout
        assert "Summary" in result.stdout
        assert "Usable" in result.stdout

    def test_cache_flag_reuses_results(self, fake_probe: Path, tmp_path: Path) -> None:
        first = self._scan(fake_probe, tmp_path, "--cache", "--json")
        assert first.exit_code == 0, first.output
        assert (tmp_path / "cache.json").exists()

        second = self._scan(fake_probe, tmp_path, "--cache", "--json")
        data = json.loads(second.stdout)
        assert all(r["from_cache"] for r in data["results"])

    def test_save(self, fake_probe: Path, tmp_path: Path) -> None:
        save_dir = tmp_path / "exports"
        result = self._scan(fake_probe, tmp_path, "--json", "--save", "--save-dir", str(save_dir))
        assert result.exit_code == 0, result.output

        saved = Path(json.loads(result.stdout)["saved_to"])
        assert saved.parent == save_dir
        assert json.loads(saved.read_text())["total"] == 4

    def test_missing_probe_exits_1(self, tmp_path: Path) -> None:
        result = self._scan(Path("/nonexistent/opencode"), tmp_path)
        assert result.exit_code == 1
        assert "Model discovery failed" in result.stdout

    def test_invalid_kb_exits_1(self, fake_probe: Path, tmp_path: Path) -> None:
        kb_file = tmp_path / "kb.json"
        kb_file.write_text(json.dumps({"auth_regex": "(broken"}))

        result = self._scan(fake_probe, tmp_path, "--kb", str(kb_file), "--json")

        assert result.exit_code == 1
        assert json.loads(result.stdout)["field"] == "auth_regex"

    def test_bracketed_kb_description(self, fake_probe: Path, tmp_path: Path) -> None:
        """Knowledge-base text is shown literally, not parsed as markup."""
        kb_file = tmp_path / "kb.json"
        kb_file.write_text(json.dumps({
            "free_models": {"acme/good": {"category": "FREE", "description": "Beta [/note] build"}},
        }))

        result = self._scan(fake_probe, tmp_path, "--kb", str(kb_file))

        assert result.exit_code == 0, result.output
        assert "Beta [/note] build" in result.stdout
        assert "Summary" in result.stdout

    def test_invalid_timeout_exits_1(self, fake_probe: Path, tmp_path: Path) -> None:
        result = runner.invoke(app, ["scan", "--probe", str(fake_probe), "--timeout", "0"])
        assert result.exit_code == 1
        assert "Invalid options" in result.stdout


class TestKbCommand:
    """Tests for the kb command."""

    def test_default_kb(self) -> None:
        result = runner.invoke(app, ["kb"])
        assert result.exit_code == 0, result.output
        assert "Known Free Models" in result.stdout
        assert "6 patterns compiled" in result.stdout

    def test_json(self, tmp_path: Path) -> None:
        kb_file = tmp_path / "kb.json"
        kb_file.write_text(json.dumps({
            "free_models": {"custom/model": {"category": "FREE", "description": "Custom"}},
        }))

        result = runner.invoke(app, ["kb", str(kb_file), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["valid"] is True
        assert "custom/model" in data["free_models"]
        assert "opencode/big-pickle" in data["free_models"]

    def test_bracketed_description(self, tmp_path: Path) -> None:
        kb_file = tmp_path / "kb.json"
        kb_file.write_text(json.dumps({
            "free_models": {"a/b": {"category": "FREE", "description": "Beta [/note] build"}},
        }))

        result = runner.invoke(app, ["kb", str(kb_file)])

        assert result.exit_code == 0, result.output
        assert "[/note]" in result.stdout

    def test_invalid_pattern_names_field(self, tmp_path: Path) -> None:
        kb_file = tmp_path / "kb.json"
        kb_file.write_text(json.dumps({"success_regex": "[unclosed"}))

        result = runner.invoke(app, ["kb", str(kb_file)])

        assert result.exit_code == 1
        assert "success_regex" in result.stdout


class TestGlobalOptions:
    def test_log_format_both_requires_file(self) -> None:
        result = runner.invoke(app, ["--log-format", "both", "kb"])
        assert result.exit_code == 1
        assert "Logging configuration error" in result.stdout

    def test_log_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "radar.log"
        result = runner.invoke(
            app, ["--log-level", "DEBUG", "--log-file", str(log_file), "kb"]
        )
        assert result.exit_code == 0, result.output
        assert log_file.exists()


class TestRenderEvent:
    """Tests for the scan command's event dispatch."""

    def test_started_keeps_progress_description(self, kb) -> None:
        progress = create_scan_progress(Console(file=StringIO()))
        task_id = progress.add_task("Testing models", total=1)

        _render_event(progress, task_id, kb, Started(model="a/b", started_at=utc_now()))

        assert progress.tasks[0].description == "Testing models"

    def test_unknown_event_is_rejected(self, kb) -> None:
        progress = create_scan_progress(Console(file=StringIO()))
        task_id = progress.add_task("Testing models", total=1)

        with pytest.raises(AssertionError):
            _render_event(progress, task_id, kb, object())  # type: ignore[arg-type]
