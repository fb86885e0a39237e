"""
End-to-end runs of the event loop.

Tests:
    1. Every successful event records beam, product and decay observables
    2. Fixed seeds reproduce a run; per-event streams are order independent
    3. Forbidden reactions are skipped, not recorded
    4. Unweighting and the Q <= 0 guard show up in the counters
    5. Command-line driver
"""
import sys
from pathlib import Path
import numpy as np
import pytest

import monte_carlo
from fusion import HistogramSink, ReactionSetup, event_generator, simulate_batch, simulate_event
from fusion.exceptions import ConservationViolation, PhaseSpaceGenerationFailure
from fusion.kinematics import FourVector
from fusion.masses import MassTable
from fusion.phase_space import PhaseSpaceGenerator
from fusion.sink import Category

ROOT = Path(__file__).resolve().parents[1]


def _with_mg24(masses):
    table = {(A, Z): masses.lookup(A, Z) for A, Z in [(1, 0), (4, 2), (26, 14)]}
    table[(24, 12)] = 22341.9249
    return MassTable(table)


@pytest.fixture
def full_config(si26_setup, masses):
    return (
        si26_setup
        .set_excited_states(26, 14, [0.0, 5.92], [0.5, 0.5])
        .enable_decay(0)
        .add_decay_product(25, 13, "Al25")
        .add_decay_product(1, 1, "p")
        .enable_reconstruction("total_energy", "parent_energy", "parent_mass", "selected_pair")
        .select_products_for_reconstruction("Si26", "n")
        .build(masses)
    )


def test_batch_records_every_event(full_config):
    sink = HistogramSink()
    stats = simulate_batch(full_config, 300, sink, seed=1)

    assert stats["total"] == 300
    assert stats["success"] == 300
    assert stats["skipped"] == 0
    assert stats["conservation_violations"] == 0

    assert sink.count(Category("beam", "energy")) == 300
    assert sink.count(Category("beam", "position")) == 300
    assert sink.count(Category("product", "momentum_xy")) == 600
    for index in (0, 1):
        assert sink.count(Category("product", "angle", index)) == 300
        assert sink.count(Category("product", "energy", index)) == 300
        assert sink.count(Category("product", "angle_energy", index)) == 300
    assert sink.count(Category("total_energy", "invariant_mass_difference")) == 300
    assert sink.count(Category("selected_pair", "mass_difference")) == 300

    decays = sink.count(Category("decay", "angle", 0))
    assert 0 < decays < 300
    assert sink.count(Category("decay", "energy", 1)) == decays
    assert sink.count(Category("parent_mass", "mass_reconstructed")) == decays
    assert sink.count(Category("parent_energy", "energy_reconstructed")) == decays


def test_beam_energy_distribution(full_config):
    sink = HistogramSink()
    simulate_batch(full_config, 2000, sink, seed=2)
    energies = sink.values(Category("beam", "energy"))
    # nominal 142 MeV less a uniform 0-1 MeV loss
    assert energies.mean() == pytest.approx(141.5, abs=0.05)
    assert energies.min() > 140.5
    assert energies.max() < 142.5


def test_same_seed_same_run(full_config):
    a, b = HistogramSink(), HistogramSink()
    simulate_batch(full_config, 100, a, seed=7)
    simulate_batch(full_config, 100, b, seed=7)
    for category in a.categories():
        np.testing.assert_array_equal(a.values(category), b.values(category))
        np.testing.assert_array_equal(a.pairs(category), b.pairs(category))


def test_independent_streams_parallel_matches_serial(full_config):
    serial, parallel = HistogramSink(), HistogramSink()
    simulate_batch(full_config, 200, serial, seed=11, independent_streams=True)
    simulate_batch(full_config, 200, parallel, seed=11, workers=4)
    for category in serial.categories():
        np.testing.assert_allclose(np.sort(serial.values(category)), np.sort(parallel.values(category)))


def test_forbidden_reaction_skipped(masses):
    config = (
        ReactionSetup()
        .set_beam(142.0, 25, 13)
        .set_target(2, 1)
        .add_product(26, 14, "Si26", excitation_energy=30.0)
        .add_product(1, 0, "n")
        .build(masses)
    )
    with pytest.raises(PhaseSpaceGenerationFailure):
        simulate_event(config, HistogramSink(), np.random.default_rng(0))

    sink = HistogramSink()
    stats = simulate_batch(config, 50, sink, seed=0)
    assert stats["skipped"] == 50
    assert stats["success"] == 0
    assert sink.categories() == []


def test_decay_skipped_counter(si26_setup, masses):
    config = (
        si26_setup
        .set_excited_states(26, 14, [1.0], [1.0])
        .enable_decay(0)
        .add_decay_product(25, 13, "Al25")
        .add_decay_product(1, 1, "p")
        .build(masses)
    )
    sink = HistogramSink()
    stats = simulate_batch(config, 20, sink, seed=3)
    assert stats["success"] == 20
    assert stats["decay_skipped"] == 20
    assert sink.count(Category("decay", "angle", 0)) == 0


def test_unweighting_two_body_accepts_everything(si26_setup, masses):
    config = si26_setup.set_unweighting().build(masses)
    stats = simulate_batch(config, 50, HistogramSink(), seed=4)
    assert stats["rejected"] == 0
    assert stats["success"] == 50


def test_unweighting_three_body(masses):
    config = (
        ReactionSetup()
        .set_beam(200.0, 24, 12)
        .set_target(4, 2)
        .add_product(26, 14, "Si26")
        .add_product(1, 0, "n1")
        .add_product(1, 0, "n2")
        .set_unweighting()
        .build(_with_mg24(masses))
    )
    sink = HistogramSink()
    stats = simulate_batch(config, 200, sink, seed=5)
    assert stats["success"] + stats["rejected"] + stats["skipped"] == 200
    assert stats["success"] > 0
    assert sink.count(Category("beam", "energy")) == stats["success"]


def test_command_line(monkeypatch, capsys, tmp_path):
    output = tmp_path / "summary.csv"
    monkeypatch.setattr(sys, "argv", [
        "monte_carlo.py",
        "--config", str(ROOT / "configs" / "si26_decay.json"),
        "--events", "50",
        "--seed", "42",
        "--output", str(output),
    ])
    monte_carlo.main()
    out = capsys.readouterr().out
    assert "Generation Complete" in out
    assert "Successful events       : 50/50" in out
    assert "beam.energy" in out
    assert output.exists()


def test_command_line_bad_config(monkeypatch, tmp_path):
    path = tmp_path / "bad.json"
    path.write_text('{"beam": {"energy": 10.0, "A": 1, "Z": 1}, "target": {"A": 1, "Z": 0}, "products": []}')
    monkeypatch.setattr(sys, "argv", ["monte_carlo.py", "--config", str(path)])
    with pytest.raises(SystemExit) as excinfo:
        monte_carlo.main()
    assert excinfo.value.code == 2


def test_momentum_imbalance_counted(si26_setup, masses, monkeypatch):
    original = PhaseSpaceGenerator.generate

    def kicked(self, total, masses, rng=None):
        fvs, weight = original(self, total, masses, rng)
        first = fvs[0]
        fvs[0] = FourVector(first.E, first.px + 1.0, first.py, first.pz)
        return fvs, weight

    monkeypatch.setattr(PhaseSpaceGenerator, "generate", kicked)
    config = si26_setup.build(masses)
    with pytest.warns(ConservationViolation):
        stats = simulate_batch(config, 10, HistogramSink(), seed=8)
    assert stats["success"] == 10
    assert stats["conservation_violations"] == 10


def test_pool_submits_bounded_chunks(full_config, monkeypatch):
    submitted = []

    class RecordingExecutor(event_generator.ThreadPoolExecutor):
        def map(self, fn, *iterables, **kwargs):
            submitted.append(len(iterables[0]))
            return super().map(fn, *iterables, **kwargs)

    monkeypatch.setattr(event_generator, "ThreadPoolExecutor", RecordingExecutor)
    serial, parallel = HistogramSink(), HistogramSink()
    simulate_batch(full_config, 50, serial, seed=12, independent_streams=True, progress_every=7)
    stats = simulate_batch(full_config, 50, parallel, seed=12, workers=3, progress_every=7)

    assert stats["success"] == 50
    assert sum(submitted) == 50
    assert max(submitted) == 7
    for category in serial.categories():
        np.testing.assert_allclose(np.sort(serial.values(category)), np.sort(parallel.values(category)))
