from __future__ import annotations

from dataclasses import dataclass, field

from ..float_bits import SINGLE, FloatFormat

__all__ = [
    "Alignment",
    "AlignmentCollector",
    "DEFAULT_RESULT_CAP",
]

DEFAULT_RESULT_CAP = 1_000_000


@dataclass(frozen=True, slots=True)
class Alignment:
    ticks_since_portal: int
    portal_min: float
    portal_max: float


@dataclass(slots=True)
class AlignmentCollector:
    leniency: float = 0.0
    result_cap: int = DEFAULT_RESULT_CAP
    fmt: FloatFormat = SINGLE
    alignments: list[Alignment] = field(default_factory=list)
    truncated: bool = False
    suppressed: int = 0

    def __post_init__(self) -> None:
        self.leniency = self.fmt.round(self.leniency)
        self.result_cap = int(self.result_cap)
        if self.result_cap < 0:
            raise ValueError(f"result cap must be non-negative, got {self.result_cap}")

    def widen(self, portal: float) -> tuple[float, float]:
        portal_min = max(0.0, self.fmt.sub(portal, self.leniency))
        portal_max = self.fmt.add(portal, self.leniency)
        return portal_min, portal_max

    def add(self, ticks: int, portal: float) -> Alignment | None:
        """Record the verified portal for `ticks`; returns None once the cap is hit."""

        ticks = int(ticks)
        if self.alignments and ticks <= self.alignments[-1].ticks_since_portal:
            raise ValueError(f"alignments must be added in increasing tick order (got {ticks})")
        if len(self.alignments) >= self.result_cap:
            self.truncated = True
            self.suppressed += 1
            return None
        portal_min, portal_max = self.widen(portal)
        alignment = Alignment(ticks_since_portal=ticks, portal_min=portal_min, portal_max=portal_max)
        self.alignments.append(alignment)
        return alignment

    def result(self) -> tuple[Alignment, ...]:
        return tuple(self.alignments)
