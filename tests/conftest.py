"""Pytest fixtures for LLM Radar tests."""

import logging
import stat
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from llm_radar.core.config import RunConfig
from llm_radar.knowledge import CompiledKnowledgeBase, load_and_compile


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset logging state before and after each test.

    This ensures test isolation for logging configuration.
    """
    import llm_radar.cli.helpers as helpers

    helpers.reset_logging_state()
    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    helpers.reset_logging_state()
    structlog.reset_defaults()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def kb() -> CompiledKnowledgeBase:
    """The built-in knowledge base, compiled."""
    return load_and_compile()


@pytest.fixture
def run_config(tmp_path: Path) -> RunConfig:
    """Fast run configuration that never touches the real cache location."""
    return RunConfig(
        timeout_seconds=5.0,
        concurrency=2,
        retries=0,
        cache_path=tmp_path / "cache" / "results.json",
    )


FAKE_PROBE_SCRIPT = """#!/usr/bin/env bash
# Stand-in for the opencode CLI.
if [ "$1" = "models" ]; then
  if [ "$2" = "--refresh" ]; then
    exit 0
  fi
  echo "Available models:"
  echo "opencode/big-pickle"
  echo "acme/good"
  echo "acme/locked"
  echo "zai-coding-plan/glm-4.6"
  echo ""
  exit 0
fi

if [ "$1" = "run" ] && [ "$2" = "--model" ]; then
  case "$3" in
    opencode/big-pickle|acme/good|zai-coding-plan/glm-4.6)
      echo "2, 3, 5"
      exit 0
      ;;
    acme/locked)
      echo "Error: 401 Unauthorized" >&2
      exit 1
      ;;
    acme/slow)
      sleep 10
      exit 0
      ;;
    *)
      echo "ProviderModelNotFoundError: $3" >&2
      exit 1
      ;;
  esac
fi

echo "unexpected arguments: $*" >&2
exit 2
"""


@pytest.fixture
def fake_probe(tmp_path: Path) -> Path:
    """Executable script that mimics ``opencode models`` and ``opencode run``."""
    script = tmp_path / "fake-opencode"
    script.write_text(FAKE_PROBE_SCRIPT)
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script
