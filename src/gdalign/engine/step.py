from __future__ import annotations

from ..errors import InvalidInput, ZeroDelta
from ..float_bits import SINGLE, FloatFormat

__all__ = [
    "MIN_TPS",
    "step_backward",
    "step_delta",
    "step_forward",
]

MIN_TPS = 0.000001


def step_delta(speed: float, tps: float, fmt: FloatFormat = SINGLE) -> float:
    """Per-tick movement `speed / tps`, rounded once at `fmt` width."""

    speed = fmt.round(speed)
    tps = fmt.round(tps)
    if not (tps >= fmt.round(MIN_TPS)):
        raise InvalidInput(f"tps must be at least {MIN_TPS}, got {tps!r}")
    delta = fmt.div(speed, tps)
    if delta == 0.0:
        raise ZeroDelta(f"per-tick movement rounds to zero (speed={speed!r}, tps={tps!r})")
    return delta


def step_forward(pos: float, delta: float, fmt: FloatFormat = SINGLE) -> float:
    return fmt.add(pos, delta)


def step_backward(pos: float, delta: float, fmt: FloatFormat = SINGLE) -> float:
    return fmt.sub(pos, delta)
