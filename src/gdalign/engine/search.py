from __future__ import annotations

from dataclasses import dataclass, field
import math
import time
from typing import Callable

from ..debug_log import search_debug_log
from ..errors import AlignmentWarning, InvalidInput, ResultCapExceeded, TickCapExceeded
from ..float_bits import FloatFormat, Precision, float_format
from ..resolve import ResolvedFloat, resolve_displayed
from ..speeds import SpeedPreset, parse_speed
from .backward_cache import DEFAULT_TICK_CEILING, TickBudget, build_backward_cache, plan_tick_budget
from .candidates import portal_candidates
from .collector import DEFAULT_RESULT_CAP, Alignment, AlignmentCollector
from .step import step_delta
from .verify import VerifyStrategy, make_verifier

__all__ = [
    "ProgressCallback",
    "SearchParams",
    "SearchResult",
    "run_search",
]

ProgressCallback = Callable[[int, int], None]
StopCallback = Callable[[], bool]

DEFAULT_PROGRESS_EVERY = 1000


@dataclass(frozen=True, slots=True)
class SearchParams:
    target: str
    tps: float
    speed: SpeedPreset
    leniency: float = 0.0
    precision: Precision = Precision.SINGLE
    strategy: VerifyStrategy = VerifyStrategy.PREIMAGE
    tick_ceiling: int = DEFAULT_TICK_CEILING
    result_cap: int = DEFAULT_RESULT_CAP

    def __post_init__(self) -> None:
        try:
            speed = parse_speed(self.speed)
            precision = Precision(self.precision)
            strategy = VerifyStrategy(self.strategy)
            tps = float(self.tps)
            leniency = float(self.leniency)
            tick_ceiling = int(self.tick_ceiling)
            result_cap = int(self.result_cap)
        except (TypeError, ValueError) as exc:
            raise InvalidInput(str(exc)) from exc
        object.__setattr__(self, "speed", speed)
        object.__setattr__(self, "precision", precision)
        object.__setattr__(self, "strategy", strategy)

        if not math.isfinite(leniency) or leniency < 0.0:
            raise InvalidInput(f"leniency must be a finite non-negative number, got {self.leniency!r}")
        if tick_ceiling < 0:
            raise InvalidInput(f"tick ceiling must be non-negative, got {self.tick_ceiling!r}")
        if result_cap < 0:
            raise InvalidInput(f"result cap must be non-negative, got {self.result_cap!r}")
        object.__setattr__(self, "tps", tps)
        object.__setattr__(self, "leniency", leniency)
        object.__setattr__(self, "tick_ceiling", tick_ceiling)
        object.__setattr__(self, "result_cap", result_cap)

    @property
    def fmt(self) -> FloatFormat:
        return float_format(self.precision)


@dataclass(frozen=True, slots=True)
class SearchResult:
    params: SearchParams
    resolved: ResolvedFloat
    delta: float
    budget: TickBudget
    alignments: tuple[Alignment, ...]
    ticks_checked: int
    truncated_by_result_cap: bool = False
    cancelled: bool = False
    cache_seconds: float = 0.0
    search_seconds: float = 0.0
    warnings: tuple[AlignmentWarning, ...] = field(default_factory=tuple)

    @property
    def was_truncated_by_tick_cap(self) -> bool:
        return self.budget.capped

    @property
    def max_ticks(self) -> int:
        return self.budget.max_ticks

    @property
    def resolved_float_range(self) -> tuple[float, float]:
        return self.resolved.float_range


def run_search(
    params: SearchParams,
    *,
    progress: ProgressCallback | None = None,
    progress_every: int = DEFAULT_PROGRESS_EVERY,
    should_stop: StopCallback | None = None,
) -> SearchResult:
    """Find every (ticks, portal range) whose forward simulation hits the target bits.

    Raises `InvalidInput` for bad parameters and `ZeroDelta` before any work
    is done when the object cannot move. Cap hits are reported on the result.
    """

    fmt = params.fmt
    resolved = resolve_displayed(params.target, fmt)
    leniency = fmt.round(params.leniency)
    delta = step_delta(params.speed.units_per_second, params.tps, fmt)
    search_debug_log(
        "resolve",
        target=resolved.text,
        canonical=repr(resolved.canonical),
        range_min=repr(resolved.range_min),
        range_max=repr(resolved.range_max),
        delta=repr(delta),
        precision=fmt.precision.value,
    )

    warnings: list[AlignmentWarning] = []
    budget = plan_tick_budget(resolved.range_max, leniency, delta, ceiling=params.tick_ceiling, fmt=fmt)
    if budget.capped:
        required = "unbounded" if budget.required is None else f"{budget.required:,}"
        warnings.append(
            TickCapExceeded(f"search would require {required} ticks; limited to {budget.max_ticks:,}")
        )
        search_debug_log("tick_cap", required=budget.required, max_ticks=budget.max_ticks)

    t0 = time.perf_counter()
    cache = build_backward_cache(resolved.canonical, delta, budget.max_ticks, fmt)
    cache_seconds = time.perf_counter() - t0
    search_debug_log("cache_built", entries=len(cache), seconds=f"{cache_seconds:.6f}")

    verifier = make_verifier(params.strategy, target=resolved.canonical, delta=delta, fmt=fmt)
    collector = AlignmentCollector(leniency=leniency, result_cap=params.result_cap, fmt=fmt)
    every = max(1, int(progress_every))
    # Ticks 0..max_ticks inclusive.
    total_ticks = budget.max_ticks + 1
    cancelled = False
    ticks_checked = 0

    t1 = time.perf_counter()
    for ticks in range(total_ticks):
        backward_pos = cache[ticks]
        # Later ticks only step further below zero.
        if backward_pos < -leniency:
            break
        if should_stop is not None and should_stop():
            cancelled = True
            search_debug_log("cancelled", ticks=ticks)
            break
        best = verifier.best_portal(ticks, portal_candidates(backward_pos, fmt))
        if best is not None:
            collector.add(ticks, best)
            if collector.truncated:
                break
        ticks_checked = ticks + 1
        if progress is not None and ticks_checked % every == 0 and ticks_checked < total_ticks:
            progress(ticks_checked, total_ticks)
    search_seconds = time.perf_counter() - t1
    if progress is not None:
        progress(ticks_checked, total_ticks)

    if collector.truncated:
        warnings.append(
            ResultCapExceeded(f"stopped after {len(collector.alignments):,} alignments at tick {ticks}")
        )
        search_debug_log("result_cap", kept=len(collector.alignments), tick=ticks)

    result = SearchResult(
        params=params,
        resolved=resolved,
        delta=delta,
        budget=budget,
        alignments=collector.result(),
        ticks_checked=ticks_checked,
        truncated_by_result_cap=collector.truncated,
        cancelled=cancelled,
        cache_seconds=cache_seconds,
        search_seconds=search_seconds,
        warnings=tuple(warnings),
    )
    search_debug_log(
        "search_done",
        alignments=len(result.alignments),
        ticks_checked=ticks_checked,
        tick_capped=result.was_truncated_by_tick_cap,
        result_capped=result.truncated_by_result_cap,
        seconds=f"{search_seconds:.6f}",
    )
    return result
