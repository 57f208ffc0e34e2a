from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .engine.collector import Alignment
from .float_bits import f32

__all__ = [
    "DEFAULT_DISPLAY_LIMIT",
    "SampledAlignments",
    "format_alignment_table",
    "sample_alignments",
]

DEFAULT_DISPLAY_LIMIT = 1000

_COLUMN_WIDTH = 24
_RULE_WIDTH = 80


@dataclass(frozen=True, slots=True)
class SampledAlignments:
    rows: tuple[Alignment, ...]
    total: int
    was_limited: bool


def sample_alignments(alignments: Sequence[Alignment], limit: int = DEFAULT_DISPLAY_LIMIT) -> SampledAlignments:
    """Evenly thin `alignments` to about `limit` rows, always keeping both ends."""

    total = len(alignments)
    limit = int(limit)
    if total <= limit:
        return SampledAlignments(rows=tuple(alignments), total=total, was_limited=False)
    if limit < 2:
        raise ValueError(f"display limit must be at least 2, got {limit}")

    picked = [alignments[0], alignments[-1]]
    samples = limit - len(picked)
    if samples > 0:
        step = f32(float(total) / float(samples))
        for i in range(1, samples):
            index = int(f32(float(i) * step))
            index = min(max(index, 0), total - 1)
            picked.append(alignments[index])

    rows = sorted(set(picked), key=lambda a: a.ticks_since_portal)
    return SampledAlignments(rows=tuple(rows), total=total, was_limited=True)


def format_alignment_table(rows: Sequence[Alignment]) -> list[str]:
    w = _COLUMN_WIDTH
    lines = [
        f"{'Ticks since portal hit':<{w}} | {'portalX_min':<{w}} | {'portalX_max':<{w}}",
        "-" * _RULE_WIDTH,
    ]
    for row in rows:
        lines.append(f"{row.ticks_since_portal:>{w}} | {row.portal_min:>{w}.6f} | {row.portal_max:>{w}.6f}")
    return lines
