from __future__ import annotations

"""Forward verification of portal candidates against the target bit pattern."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Protocol, Sequence

from ..float_bits import SINGLE, FloatFormat
from .step import step_forward

__all__ = [
    "BruteForceVerifier",
    "PreimageVerifier",
    "TickVerifier",
    "VerifyStrategy",
    "make_verifier",
    "simulate_forward",
]


class VerifyStrategy(str, Enum):
    BRUTE_FORCE = "brute-force"
    PREIMAGE = "preimage"


class TickVerifier(Protocol):
    """Called once per tick, in increasing tick order starting at 0."""

    def best_portal(self, ticks: int, candidates: Sequence[float]) -> float | None: ...


def simulate_forward(pos: float, delta: float, ticks: int, fmt: FloatFormat = SINGLE) -> float:
    for _ in range(int(ticks)):
        pos = step_forward(pos, delta, fmt)
    return pos


def _closest_to_zero(matches: list[float]) -> float | None:
    best: float | None = None
    for cand in matches:
        if best is None or abs(cand) < abs(best):
            best = cand
    return best


@dataclass(slots=True)
class BruteForceVerifier:
    """Re-simulates every candidate from scratch: O(ticks) per check."""

    target: float
    delta: float
    fmt: FloatFormat = SINGLE
    _target_bits: int = field(init=False)

    def __post_init__(self) -> None:
        self._target_bits = self.fmt.bits(self.target)

    def matches(self, candidate: float, ticks: int) -> bool:
        pos = simulate_forward(candidate, self.delta, ticks, self.fmt)
        return self.fmt.bits(pos) == self._target_bits

    def best_portal(self, ticks: int, candidates: Sequence[float]) -> float | None:
        return _closest_to_zero([cand for cand in candidates if self.matches(cand, ticks)])


@dataclass(slots=True)
class PreimageVerifier:
    """Tracks the exact set of starts that land on the target in `ticks` steps.

    One forward step under round-to-nearest is monotone, so the starts that
    reach the target in exactly `k` ticks form one contiguous run of floats
    (in `FloatFormat.key` order). Each tick pulls the previous run back by a
    single step using a galloping search, and a candidate matches iff it lies
    in the run. Results are identical to `BruteForceVerifier`.
    """

    target: float
    delta: float
    fmt: FloatFormat = SINGLE
    ticks: int = field(init=False, default=0)
    # Inclusive key bounds; None once no start can reach the target.
    bounds: tuple[int, int] | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        key = self.fmt.key(self.target)
        self.bounds = (key, key)
        self.ticks = 0

    def _step_key(self, key: int) -> int:
        return self.fmt.key(step_forward(self.fmt.from_key(key), self.delta, self.fmt))

    def _first_key(self, pred: Callable[[int], bool], guess: int) -> int:
        """Smallest key with `pred` true (`max_key + 1` when none); `pred` is monotone."""

        lo_bound = self.fmt.min_key
        hi_bound = self.fmt.max_key
        guess = min(max(int(guess), lo_bound), hi_bound)
        step = 1
        if pred(guess):
            hi = guess
            while True:
                lo = hi - step
                if lo <= lo_bound:
                    if pred(lo_bound):
                        return lo_bound
                    lo = lo_bound
                    break
                if not pred(lo):
                    break
                hi = lo
                step *= 2
        else:
            lo = guess
            while True:
                hi = lo + step
                if hi >= hi_bound:
                    if not pred(hi_bound):
                        return hi_bound + 1
                    hi = hi_bound
                    break
                if pred(hi):
                    break
                lo = hi
                step *= 2
        while hi - lo > 1:
            mid = (lo + hi) // 2
            if pred(mid):
                hi = mid
            else:
                lo = mid
        return hi

    def _pull_back(self, bounds: tuple[int, int]) -> tuple[int, int] | None:
        lo_key, hi_key = bounds
        guess = self.fmt.key(self.fmt.sub(self.fmt.from_key(lo_key), self.delta))
        new_lo = self._first_key(lambda k: self._step_key(k) >= lo_key, guess)
        new_hi = self._first_key(lambda k: self._step_key(k) > hi_key, max(new_lo, guess)) - 1
        if new_lo > new_hi:
            return None
        return (new_lo, new_hi)

    def advance_to(self, ticks: int) -> None:
        ticks = int(ticks)
        if ticks < self.ticks:
            raise ValueError(f"preimage verifier cannot rewind from tick {self.ticks} to {ticks}")
        while self.ticks < ticks:
            if self.bounds is not None:
                self.bounds = self._pull_back(self.bounds)
            self.ticks += 1

    def contains(self, candidate: float) -> bool:
        if self.bounds is None:
            return False
        key = self.fmt.key(candidate)
        return self.bounds[0] <= key <= self.bounds[1]

    def best_portal(self, ticks: int, candidates: Sequence[float]) -> float | None:
        self.advance_to(ticks)
        return _closest_to_zero([cand for cand in candidates if self.contains(cand)])


def make_verifier(
    strategy: VerifyStrategy | str,
    *,
    target: float,
    delta: float,
    fmt: FloatFormat = SINGLE,
) -> TickVerifier:
    strategy = VerifyStrategy(strategy)
    if strategy is VerifyStrategy.BRUTE_FORCE:
        return BruteForceVerifier(target=target, delta=delta, fmt=fmt)
    return PreimageVerifier(target=target, delta=delta, fmt=fmt)
