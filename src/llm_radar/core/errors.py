"""Exception hierarchy for LLM Radar.

All project exceptions inherit from RadarError, enabling callers to catch
broad (RadarError) or narrow (e.g., ConfigurationError). Only configuration
and discovery errors are ever raised to the top of a run; probe errors travel
as data inside a ProbeOutcome.
"""

from __future__ import annotations


class RadarError(Exception):
    """Base exception for all LLM Radar errors."""


class ConfigurationError(RadarError):
    """Raised when the knowledge base cannot be loaded or compiled.

    Fatal at startup: no probe is started with a broken knowledge base.

    Attributes:
        field: Name of the offending knowledge-base field, when known.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class DiscoveryError(RadarError):
    """Raised when the probe cannot enumerate candidate models.

    Fatal to the run as a whole since there is nothing to dispatch.
    """


class ProbeError(RadarError):
    """Base for errors reported by a single probe attempt."""


class ProbeStartError(ProbeError):
    """The probe process could not be spawned (missing binary, permissions)."""


class ProbeTimeoutError(ProbeError):
    """The probe exceeded its deadline and its process tree was killed.

    Attributes:
        timeout_seconds: The deadline that elapsed.
    """

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Probe timed out after {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds
