from __future__ import annotations

from ..float_bits import SINGLE, FloatFormat

__all__ = ["portal_candidates"]


def portal_candidates(backward_pos: float, fmt: FloatFormat = SINGLE) -> tuple[float, ...]:
    """Non-negative ULP neighbours of `backward_pos`: previous, exact, next.

    Backward stepping loses bits, so the true portal may sit one float either
    side of the naive inverse. The order is also closest-to-zero first.
    """

    bits = fmt.bits(backward_pos)
    out: list[float] = []
    if bits > 0:
        prev = fmt.from_bits(bits - 1)
        if prev >= 0.0:
            out.append(prev)
    if backward_pos >= 0.0:
        out.append(fmt.round(backward_pos))
    nxt = fmt.from_bits(bits + 1)
    if nxt >= 0.0:
        out.append(nxt)
    return tuple(out)
