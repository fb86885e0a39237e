"""
N-body phase space (GENBOD) checks.

Tests:
    1. Four-momentum conservation for 2..5 body final states
    2. Mass-shell consistency of every generated particle
    3. Two-body identity in the centre-of-mass frame
    4. Forbidden final states and degenerate inputs raise
    5. Normalized weights stay within [0, 1]
"""
import math
import numpy as np
import pytest

from fusion.beam import BeamSampler
from fusion.exceptions import PhaseSpaceGenerationFailure
from fusion.kinematics import FourVector, total
from fusion.phase_space import PhaseSpaceGenerator, estimate_w_max, generate_n_body_decay, max_weight


def _assert_close(a, b, tol=1e-9, msg=""):
    assert abs(a - b) < tol, msg or f"Values differ: {a} vs {b} (tol={tol})"


BOOSTED_PARENT = FourVector(1500.0, 120.0, -40.0, 700.0)

FINAL_STATES = [
    [139.57, 139.57],
    [105.66, 0.511, 0.0],
    [100.0, 200.0, 150.0, 50.0],
    [10.0, 20.0, 30.0, 40.0, 50.0],
]


@pytest.mark.parametrize("masses", FINAL_STATES)
def test_four_momentum_conserved(masses):
    rng = np.random.default_rng(2024)
    for _ in range(50):
        fvs, _ = generate_n_body_decay(BOOSTED_PARENT, masses, rng)
        s = total(fvs)
        scale = BOOSTED_PARENT.E
        for got, want in zip(s.to_tuple(), BOOSTED_PARENT.to_tuple()):
            _assert_close(got, want, tol=1e-6 * scale)


@pytest.mark.parametrize("masses", FINAL_STATES)
def test_mass_shell(masses):
    rng = np.random.default_rng(11)
    fvs, _ = generate_n_body_decay(BOOSTED_PARENT, masses, rng)
    for fv, m in zip(fvs, masses):
        _assert_close(fv.mass2, m * m, tol=1e-6 * fv.E * fv.E)


def test_reaction_conserves_beam_plus_target(si26_setup, masses):
    config = si26_setup.build(masses)
    initial = BeamSampler(config).initial_state(142.0)
    generator = PhaseSpaceGenerator(np.random.default_rng(5))
    product_masses = [p.mass for p in config.products]
    for _ in range(100):
        fvs, _ = generator.generate(initial, product_masses)
        s = total(fvs)
        for got, want in zip(s.to_tuple(), initial.to_tuple()):
            _assert_close(got, want, tol=1e-6 * initial.E)


def test_two_body_identity_in_cm_frame(si26_setup, masses):
    """25Al at 142 MeV on a deuteron: back-to-back products sharing sqrt(s)."""
    config = si26_setup.build(masses)
    initial = BeamSampler(config).initial_state(142.0)
    sqrt_s = math.sqrt(initial.mass2)
    to_cm = -initial.beta()

    rng = np.random.default_rng(99)
    for _ in range(20):
        fvs, weight = generate_n_body_decay(initial, [p.mass for p in config.products], rng)
        p1, p2 = (fv.boost(to_cm) for fv in fvs)
        scale = max(p1.magnitude, 1.0)
        _assert_close(p1.px, -p2.px, tol=1e-6 * scale)
        _assert_close(p1.py, -p2.py, tol=1e-6 * scale)
        _assert_close(p1.pz, -p2.pz, tol=1e-6 * scale)
        _assert_close(p1.E + p2.E, sqrt_s, tol=1e-6 * sqrt_s)
        _assert_close(weight, 1.0, tol=1e-9)


def test_forbidden_final_state_raises():
    parent = FourVector(100.0, 0, 0, 0)
    with pytest.raises(PhaseSpaceGenerationFailure):
        generate_n_body_decay(parent, [60.0, 50.0], np.random.default_rng(1))


@pytest.mark.parametrize("masses", [[], [10.0], [-1.0, 2.0]])
def test_degenerate_inputs_raise(masses):
    with pytest.raises(PhaseSpaceGenerationFailure):
        generate_n_body_decay(FourVector(100.0, 0, 0, 0), masses, np.random.default_rng(1))


def test_threshold_gives_particles_at_rest():
    fvs, _ = generate_n_body_decay(FourVector(10.0, 0, 0, 0), [4.0, 6.0], np.random.default_rng(3))
    for fv in fvs:
        _assert_close(fv.magnitude, 0.0, tol=1e-9)


def test_weights_normalized():
    rng = np.random.default_rng(8)
    masses = [100.0, 200.0, 150.0, 50.0]
    for _ in range(500):
        _, w = generate_n_body_decay(BOOSTED_PARENT, masses, rng)
        assert 0.0 <= w <= 1.0 + 1e-12


def test_max_weight_two_body_is_breakup_momentum():
    # For two bodies the weight is fixed, so its bound equals it
    _, w = generate_n_body_decay(FourVector(1000.0, 0, 0, 0), [200.0, 300.0], np.random.default_rng(0))
    _assert_close(w, 1.0)
    assert max_weight(1000.0, [200.0, 300.0]) > 0


def test_estimate_w_max_bounded():
    w_max = estimate_w_max(BOOSTED_PARENT, [100.0, 200.0, 150.0], n_trials=500, rng=np.random.default_rng(4))
    assert 0.0 < w_max <= 1.0 + 1e-12
