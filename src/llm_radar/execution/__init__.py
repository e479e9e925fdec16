"""Probe execution: subprocess handling, retry policy and the per-model loop."""

from llm_radar.execution.probe import ModelProber, build_probe_args
from llm_radar.execution.process import (
    HandleTerminator,
    ProbeExecutor,
    ProbeOutcome,
    ProcessTreeTerminator,
    SignalGroupTerminator,
    default_terminator,
)
from llm_radar.execution.retry import RetryDecision, RetryPolicy, RetryState

__all__ = [
    "HandleTerminator",
    "ModelProber",
    "ProbeExecutor",
    "ProbeOutcome",
    "ProcessTreeTerminator",
    "RetryDecision",
    "RetryPolicy",
    "RetryState",
    "SignalGroupTerminator",
    "build_probe_args",
    "default_terminator",
]
