from __future__ import annotations

import pytest

from gdalign.engine.backward_cache import build_backward_cache
from gdalign.engine.candidates import portal_candidates
from gdalign.engine.step import step_delta
from gdalign.engine.verify import (
    BruteForceVerifier,
    PreimageVerifier,
    VerifyStrategy,
    make_verifier,
    simulate_forward,
)
from gdalign.float_bits import DOUBLE, SINGLE, FloatFormat
from gdalign.speeds import SpeedPreset


def test_simulate_forward_applies_each_step() -> None:
    delta = step_delta(SpeedPreset.NORMAL.units_per_second, 240.0)
    pos = 3.0
    for _ in range(5):
        pos = SINGLE.add(pos, delta)
    assert simulate_forward(3.0, delta, 5) == pos
    assert simulate_forward(3.0, delta, 0) == 3.0


def test_brute_force_matches_only_exact_bits() -> None:
    delta = step_delta(SpeedPreset.NORMAL.units_per_second, 240.0)
    verifier = BruteForceVerifier(target=100.0, delta=delta)
    assert verifier.matches(100.0, 0)
    assert not verifier.matches(SINGLE.next_up(100.0), 0)
    assert verifier.best_portal(0, portal_candidates(100.0)) == 100.0


@pytest.mark.parametrize("fmt", [SINGLE, DOUBLE])
@pytest.mark.parametrize(
    ("target", "preset", "tps"),
    [
        (100.0, SpeedPreset.NORMAL, 240.0),
        (37.125, SpeedPreset.HALF, 60.0),
        (4096.0, SpeedPreset.QUADRUPLE, 360.0),
    ],
)
def test_preimage_membership_agrees_with_brute_force(
    fmt: FloatFormat, target: float, preset: SpeedPreset, tps: float
) -> None:
    delta = step_delta(preset.units_per_second, tps, fmt)
    target = fmt.round(target)
    brute = BruteForceVerifier(target=target, delta=delta, fmt=fmt)
    preimage = PreimageVerifier(target=target, delta=delta, fmt=fmt)
    cache = build_backward_cache(target, delta, 40, fmt)
    for ticks, backward in enumerate(cache):
        preimage.advance_to(ticks)
        probe = backward
        for _ in range(5):
            probe = fmt.next_down(probe)
        for _ in range(11):
            assert preimage.contains(probe) == brute.matches(probe, ticks), (ticks, probe)
            probe = fmt.next_up(probe)


def test_preimage_run_stays_put_when_steps_are_absorbed() -> None:
    delta = step_delta(SpeedPreset.QUADRUPLE.units_per_second, 30000.0)
    verifier = PreimageVerifier(target=1_000_000.0, delta=delta)
    verifier.advance_to(25)
    key = SINGLE.key(1_000_000.0)
    assert verifier.bounds == (key, key)


def test_preimage_verifier_cannot_rewind() -> None:
    verifier = PreimageVerifier(target=10.0, delta=1.0)
    verifier.advance_to(3)
    with pytest.raises(ValueError):
        verifier.advance_to(2)


def test_make_verifier_by_name() -> None:
    assert isinstance(make_verifier("brute-force", target=1.0, delta=0.5), BruteForceVerifier)
    assert isinstance(make_verifier(VerifyStrategy.PREIMAGE, target=1.0, delta=0.5), PreimageVerifier)
    with pytest.raises(ValueError):
        make_verifier("guess", target=1.0, delta=0.5)
