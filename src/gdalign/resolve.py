from __future__ import annotations

from dataclasses import dataclass
import math

from .errors import InvalidInput
from .float_bits import SINGLE, FloatFormat

__all__ = [
    "ResolvedFloat",
    "parse_non_negative",
    "resolve_displayed",
]


@dataclass(frozen=True, slots=True)
class ResolvedFloat:
    """A displayed decimal and every float it could have come from."""

    text: str
    canonical: float
    range_min: float
    range_max: float

    @property
    def float_range(self) -> tuple[float, float]:
        return (self.range_min, self.range_max)


def parse_non_negative(text: str, fmt: FloatFormat = SINGLE, *, name: str = "value") -> float:
    try:
        value = fmt.parse(text)
    except ValueError as exc:
        raise InvalidInput(f"{name} must be a number, got {text!r}") from exc
    if not math.isfinite(value):
        raise InvalidInput(f"{name} is out of range: {text!r}")
    if value < 0.0:
        raise InvalidInput(f"{name} must be non-negative, got {text!r}")
    # "-0" displays like "0"; keep positions on the +0.0 bit pattern.
    return value + 0.0


def resolve_displayed(text: str, fmt: FloatFormat = SINGLE) -> ResolvedFloat:
    """Resolve an on-screen position into its float and the adjacent floats.

    The range spans the bit-pattern predecessor and successor of the canonical
    value; the predecessor is clamped to 0 for the smallest positions.
    """

    canonical = parse_non_negative(text, fmt, name="position")
    bits = fmt.bits(canonical)
    prev = fmt.from_bits(bits - 1) if bits > 0 else 0.0
    nxt = fmt.from_bits(bits + 1)
    return ResolvedFloat(
        text=str(text).strip(),
        canonical=canonical,
        range_min=max(0.0, prev),
        range_max=nxt,
    )
