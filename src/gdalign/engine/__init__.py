from __future__ import annotations

from .backward_cache import DEFAULT_TICK_CEILING, TickBudget, build_backward_cache, plan_tick_budget
from .candidates import portal_candidates
from .collector import DEFAULT_RESULT_CAP, Alignment, AlignmentCollector
from .search import SearchParams, SearchResult, run_search
from .step import step_backward, step_delta, step_forward
from .verify import BruteForceVerifier, PreimageVerifier, VerifyStrategy, make_verifier, simulate_forward

__all__ = [
    "Alignment",
    "AlignmentCollector",
    "BruteForceVerifier",
    "DEFAULT_RESULT_CAP",
    "DEFAULT_TICK_CEILING",
    "PreimageVerifier",
    "SearchParams",
    "SearchResult",
    "TickBudget",
    "VerifyStrategy",
    "build_backward_cache",
    "make_verifier",
    "plan_tick_budget",
    "portal_candidates",
    "run_search",
    "simulate_forward",
    "step_backward",
    "step_delta",
    "step_forward",
]
