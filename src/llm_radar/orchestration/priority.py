"""Dispatch ordering for discovered models."""

from __future__ import annotations

from collections.abc import Collection, Sequence

from llm_radar.core.constants import DISCOUNT_PROVIDER_PREFIX


def prioritize_models(
    models: Sequence[str],
    free_models: Collection[str],
    discount_prefix: str = DISCOUNT_PROVIDER_PREFIX,
) -> list[str]:
    """Move known-free models first, then discount-provider models.

    The partition is stable: relative order inside each group is kept, and
    the result is a permutation of ``models``.
    """
    free: list[str] = []
    discounted: list[str] = []
    rest: list[str] = []
    for model in models:
        if model in free_models:
            free.append(model)
        elif model.startswith(discount_prefix):
            discounted.append(model)
        else:
            rest.append(model)
    return free + discounted + rest
