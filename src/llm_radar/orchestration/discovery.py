"""Model discovery through ``<probe> models``."""

from __future__ import annotations

import re

from llm_radar.core.constants import DISCOVERY_TIMEOUT_SECONDS, MODEL_ID_PATTERN
from llm_radar.core.errors import DiscoveryError
from llm_radar.core.logging import get_logger
from llm_radar.execution.process import ProbeExecutor

_logger = get_logger("discovery")

_MODEL_ID_RE = re.compile(MODEL_ID_PATTERN)


def parse_model_list(output: str) -> list[str]:
    """Extract ``provider/model`` identifiers, one per line, sorted.

    Lines that are not identifiers (banners, blank lines, warnings) are
    ignored.
    """
    models = {
        stripped
        for line in output.splitlines()
        if _MODEL_ID_RE.match(stripped := line.strip())
    }
    return sorted(models)


async def refresh_models(
    executor: ProbeExecutor,
    command: str,
    timeout: float = DISCOVERY_TIMEOUT_SECONDS,
) -> bool:
    """Ask the probe to refresh its model catalogue.

    A failed refresh is not fatal: discovery then uses the catalogue the
    probe already has.

    Returns:
        True if the refresh succeeded.
    """
    outcome = await executor.execute(timeout, command, ["models", "--refresh"])
    if outcome.exit_code != 0:
        _logger.warning(
            "discovery.refresh_failed",
            exit_code=outcome.exit_code,
            error=str(outcome.error) if outcome.error else None,
        )
        return False
    _logger.info("discovery.refreshed")
    return True


async def discover_models(
    executor: ProbeExecutor,
    command: str,
    refresh: bool = False,
    timeout: float = DISCOVERY_TIMEOUT_SECONDS,
) -> list[str]:
    """List the models the probe knows about.

    Raises:
        DiscoveryError: If the probe fails or reports no models.
    """
    if refresh:
        await refresh_models(executor, command, timeout)

    # stdout only: warnings on stderr can look like identifiers
    outcome = await executor.execute(timeout, command, ["models"], merge_stderr=False)
    if outcome.exit_code != 0:
        detail = str(outcome.error) if outcome.error else f"exit code {outcome.exit_code}"
        raise DiscoveryError(f"Model discovery failed: {detail}")

    models = parse_model_list(outcome.output)
    if not models:
        raise DiscoveryError(f"Model discovery found no models in `{command} models` output")

    _logger.info("discovery.completed", models=len(models))
    return models
