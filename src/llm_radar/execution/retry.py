"""Retry policy for probe attempts.

The policy is a small state machine evaluated after every attempt. It never
touches a subprocess, so it can be tested with plain ProbeOutcome values.

States:

    ATTEMPTING             an attempt is (about to be) running
    SUCCESS                exit 0 and the answer matched: stop
    NON_RETRYABLE_FAILURE  not-found, auth, quota or timeout: stop
    RETRYABLE_FAILURE      rate limit or unrecognized failure: try again
    EXHAUSTED              failure with no attempts left: stop

Transition rules, checked in order after attempt ``n`` of ``0..retries``:

    1. exit 0 and success pattern            -> SUCCESS
    2. not-found, auth or quota pattern      -> NON_RETRYABLE_FAILURE
    3. rate-limit pattern and n < retries    -> RETRYABLE_FAILURE, wait (n + 1) * 0.5s
    4. exit code 124                         -> NON_RETRYABLE_FAILURE
    5. n < retries                           -> RETRYABLE_FAILURE, no wait
    6. otherwise                             -> EXHAUSTED
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from llm_radar.core.constants import RETRY_BACKOFF_STEP_SECONDS, TIMEOUT_EXIT_CODE
from llm_radar.execution.process import ProbeOutcome
from llm_radar.knowledge import CompiledKnowledgeBase


class RetryState(str, Enum):
    """Position of a job in the retry state machine."""

    ATTEMPTING = "attempting"
    SUCCESS = "success"
    NON_RETRYABLE_FAILURE = "non_retryable_failure"
    RETRYABLE_FAILURE = "retryable_failure"
    EXHAUSTED = "exhausted"

    @property
    def is_terminal(self) -> bool:
        """Whether the retry loop stops in this state."""
        return self in (
            RetryState.SUCCESS,
            RetryState.NON_RETRYABLE_FAILURE,
            RetryState.EXHAUSTED,
        )


@dataclass(frozen=True)
class RetryDecision:
    """What to do after an attempt."""

    state: RetryState
    delay_seconds: float = 0.0
    reason: str = ""

    @property
    def should_retry(self) -> bool:
        return self.state is RetryState.RETRYABLE_FAILURE


class RetryPolicy:
    """Decides after each attempt whether a probe is retried.

    Args:
        kb: Compiled knowledge base providing the patterns.
        retries: Extra attempts after the first (attempts run 0..retries).
        backoff_step_seconds: Linear backoff unit for rate limits.
    """

    def __init__(
        self,
        kb: CompiledKnowledgeBase,
        retries: int,
        backoff_step_seconds: float = RETRY_BACKOFF_STEP_SECONDS,
    ) -> None:
        if retries < 0:
            raise ValueError("retries must be >= 0")
        self.kb = kb
        self.retries = retries
        self.backoff_step_seconds = backoff_step_seconds

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def backoff_delay(self, attempt: int) -> float:
        """Wait before the attempt following a rate-limited ``attempt``."""
        return (attempt + 1) * self.backoff_step_seconds

    def evaluate(self, attempt: int, outcome: ProbeOutcome) -> RetryDecision:
        """Apply the transition rules to the outcome of ``attempt`` (0-based)."""
        output = outcome.output
        attempts_remain = attempt < self.retries

        if self.kb.is_success(outcome.exit_code, output):
            return RetryDecision(RetryState.SUCCESS, reason="success")

        if (
            self.kb.not_found_re.search(output)
            or self.kb.auth_re.search(output)
            or self.kb.quota_re.search(output)
        ):
            return RetryDecision(RetryState.NON_RETRYABLE_FAILURE, reason="permanent_error")

        if attempts_remain and self.kb.rate_limit_re.search(output):
            return RetryDecision(
                RetryState.RETRYABLE_FAILURE,
                delay_seconds=self.backoff_delay(attempt),
                reason="rate_limited",
            )

        if outcome.exit_code == TIMEOUT_EXIT_CODE:
            return RetryDecision(RetryState.NON_RETRYABLE_FAILURE, reason="timeout")

        if attempts_remain:
            return RetryDecision(RetryState.RETRYABLE_FAILURE, reason="unrecognized_failure")

        return RetryDecision(RetryState.EXHAUSTED, reason="attempts_exhausted")
