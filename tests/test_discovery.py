"""Tests for model discovery."""

import stat
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from llm_radar.core.errors import DiscoveryError, ProbeStartError
from llm_radar.execution.process import ProbeExecutor, ProbeOutcome
from llm_radar.orchestration.discovery import (
    discover_models,
    parse_model_list,
    refresh_models,
)


class TestParseModelList:
    """Tests for parsing `<probe> models` output."""

    def test_keeps_identifiers_sorted(self) -> None:
        output = "zeta/model\nalpha/m-1.5\n  groq/llama_3  \n"
        assert parse_model_list(output) == ["alpha/m-1.5", "groq/llama_3", "zeta/model"]

    def test_ignores_noise(self) -> None:
        """Banners, blank lines and malformed ids are dropped."""
        output = "\n".join([
            "Available models:",
            "",
            "acme/good",
            "no-slash",
            "too/many/slashes",
            "bad chars/model",
            "acme/with space",
        ])
        assert parse_model_list(output) == ["acme/good"]

    def test_duplicates_collapsed(self) -> None:
        assert parse_model_list("a/b\na/b\n") == ["a/b"]


class TestDiscoverModels:
    """Tests for discover_models and refresh_models."""

    @pytest.mark.asyncio
    async def test_real_probe(self, fake_probe) -> None:
        models = await discover_models(ProbeExecutor(), str(fake_probe))
        assert models == [
            "acme/good",
            "acme/locked",
            "opencode/big-pickle",
            "zai-coding-plan/glm-4.6",
        ]

    @pytest.mark.asyncio
    async def test_failure_raises(self) -> None:
        executor = AsyncMock(spec=ProbeExecutor)
        executor.execute.return_value = ProbeOutcome("", 1, error=ProbeStartError("missing"))
        with pytest.raises(DiscoveryError, match="missing"):
            await discover_models(executor, "opencode")

    @pytest.mark.asyncio
    async def test_empty_list_raises(self) -> None:
        """Nothing to dispatch is a discovery failure."""
        executor = AsyncMock(spec=ProbeExecutor)
        executor.execute.return_value = ProbeOutcome("no models configured\n", 0)
        with pytest.raises(DiscoveryError, match="no models"):
            await discover_models(executor, "opencode")

    @pytest.mark.asyncio
    async def test_missing_binary(self) -> None:
        with pytest.raises(DiscoveryError):
            await discover_models(ProbeExecutor(), "/nonexistent/opencode")

    @pytest.mark.asyncio
    async def test_refresh_runs_first(self) -> None:
        executor = AsyncMock(spec=ProbeExecutor)
        executor.execute.side_effect = [
            ProbeOutcome("", 0),
            ProbeOutcome("a/b\n", 0),
        ]
        models = await discover_models(executor, "opencode", refresh=True, timeout=5.0)

        assert models == ["a/b"]
        first, second = executor.execute.await_args_list
        assert first.args == (5.0, "opencode", ["models", "--refresh"])
        assert second.args == (5.0, "opencode", ["models"])
        assert second.kwargs == {"merge_stderr": False}

    @pytest.mark.asyncio
    async def test_refresh_failure_is_only_a_warning(self) -> None:
        executor = AsyncMock(spec=ProbeExecutor)
        executor.execute.side_effect = [
            ProbeOutcome("network down", 1),
            ProbeOutcome("a/b\n", 0),
        ]
        models = await discover_models(executor, "opencode", refresh=True)
        assert models == ["a/b"]

    @pytest.mark.asyncio
    async def test_refresh_models_reports_status(self, fake_probe) -> None:
        assert await refresh_models(ProbeExecutor(), str(fake_probe)) is True
        assert await refresh_models(ProbeExecutor(), "/nonexistent/opencode") is False

    @pytest.mark.asyncio
    async def test_stderr_lines_are_not_models(self, tmp_path: Path) -> None:
        """Only stdout of `<probe> models` is parsed."""
        script = tmp_path / "noisy-opencode"
        script.write_text(
            "#!/usr/bin/env bash\n"
            'echo "warn/deprecated" >&2\n'
            'echo "acme/good"\n'
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR)

        models = await discover_models(ProbeExecutor(), str(script))

        assert models == ["acme/good"]
