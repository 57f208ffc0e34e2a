from __future__ import annotations

from dataclasses import dataclass
import math

from ..float_bits import SINGLE, FloatFormat
from .step import step_backward

__all__ = [
    "DEFAULT_TICK_CEILING",
    "TickBudget",
    "build_backward_cache",
    "plan_tick_budget",
]

DEFAULT_TICK_CEILING = 150_000


@dataclass(frozen=True, slots=True)
class TickBudget:
    # `required` is None when the uncapped count is not finite.
    required: int | None
    max_ticks: int

    @property
    def capped(self) -> bool:
        return self.required is None or self.required > self.max_ticks


def plan_tick_budget(
    range_max: float,
    leniency: float,
    delta: float,
    *,
    ceiling: int = DEFAULT_TICK_CEILING,
    fmt: FloatFormat = SINGLE,
) -> TickBudget:
    """Ticks needed for the object to cover `range_max + leniency` from 0."""

    ceiling = int(ceiling)
    if ceiling < 0:
        raise ValueError(f"tick ceiling must be non-negative, got {ceiling}")
    span = fmt.div(fmt.add(range_max, leniency), delta)
    if not math.isfinite(span):
        return TickBudget(required=None, max_ticks=ceiling)
    required = max(0, int(math.ceil(span)))
    return TickBudget(required=required, max_ticks=min(required, ceiling))


def build_backward_cache(target: float, delta: float, max_ticks: int, fmt: FloatFormat = SINGLE) -> tuple[float, ...]:
    """`cache[i]` is `target` stepped backward `i` times; `len == max_ticks + 1`."""

    max_ticks = int(max_ticks)
    if max_ticks < 0:
        raise ValueError(f"max_ticks must be non-negative, got {max_ticks}")
    cache = [0.0] * (max_ticks + 1)
    cache[0] = fmt.round(target)
    for i in range(1, max_ticks + 1):
        cache[i] = step_backward(cache[i - 1], delta, fmt)
    return tuple(cache)
