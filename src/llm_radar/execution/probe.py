"""Probe a single model through the opencode CLI.

Wraps `<probe> run --model <id> <prompt>` with the retry policy and turns
the last attempt into a classified ModelResult.

Only the last attempt is reported: its exit code, trimmed output and
duration end up in the result; earlier attempts are logged and discarded.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from llm_radar.classification import classify
from llm_radar.core.config import RunConfig
from llm_radar.core.logging import get_logger
from llm_radar.core.results import ModelResult
from llm_radar.execution.process import ProbeExecutor, ProbeOutcome
from llm_radar.execution.retry import RetryDecision, RetryPolicy, RetryState
from llm_radar.knowledge import CompiledKnowledgeBase
from llm_radar.utils.text import smart_trim

_logger = get_logger("probe")

Sleeper = Callable[[float], Awaitable[None]]


def build_probe_args(model: str, prompt: str) -> list[str]:
    """Arguments for a single test: ``run --model <id> <prompt>``."""
    return ["run", "--model", model, prompt]


class ModelProber:
    """Runs the retry loop for one model at a time.

    Safe to share between workers: it holds only read-only configuration
    and a stateless executor.
    """

    def __init__(
        self,
        config: RunConfig,
        kb: CompiledKnowledgeBase,
        executor: ProbeExecutor | None = None,
        policy: RetryPolicy | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.config = config
        self.kb = kb
        self.executor = executor or ProbeExecutor()
        self.policy = policy or RetryPolicy(kb, retries=config.retries)
        self._sleep = sleep

    async def test_model(self, model: str) -> ModelResult:
        """Probe ``model`` (with retries) and classify the last attempt."""
        args = build_probe_args(model, self.config.prompt)
        outcome = ProbeOutcome(output="", exit_code=0)
        decision = RetryDecision(RetryState.ATTEMPTING)
        log = _logger.bind(model=model)

        for attempt in range(self.policy.max_attempts):
            outcome = await self.executor.execute(
                self.config.timeout_seconds, self.config.probe_command, args
            )
            decision = self.policy.evaluate(attempt, outcome)
            log.debug(
                "probe.attempt_finished",
                attempt=attempt,
                exit_code=outcome.exit_code,
                state=decision.state.value,
                reason=decision.reason,
                duration_seconds=outcome.duration_seconds,
            )
            if decision.state.is_terminal:
                break
            if decision.delay_seconds > 0:
                log.info(
                    "probe.backoff",
                    attempt=attempt,
                    delay_seconds=decision.delay_seconds,
                )
                await self._sleep(decision.delay_seconds)

        output = smart_trim(outcome.output, self.config.max_output_kb)
        classification = classify(model, outcome.exit_code, output, self.kb)
        log.info(
            "probe.classified",
            category=classification.category.value,
            exit_code=outcome.exit_code,
            final_state=decision.state.value,
        )
        return ModelResult.from_classification(
            model,
            classification,
            exit_code=outcome.exit_code,
            output=output,
            duration_seconds=outcome.duration_seconds,
        )
