import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional
import numpy as np

from .beam import BeamSampler
from .config import ReactionConfig
from .conservation import check_four_momentum, check_invariant_mass
from .decay import DecaySimulator
from .events import Event
from .excited_states import ExcitedStateSelector, candidate_masses
from .exceptions import NonPositiveDecayQValue, PhaseSpaceGenerationFailure
from .particles import Particle
from .phase_space import PhaseSpaceGenerator
from .recorder import KinematicsRecorder
from .reconstruction import ReconstructionEngine
from .sink import Category, StatisticalSink
from .unweighting import UnweightingController


logger = logging.getLogger(__name__)


def event_stream(seed: int, index: int) -> np.random.Generator:
    """Random stream for event ``index``, independent of every other event's."""
    return np.random.default_rng(np.random.SeedSequence(entropy=seed, spawn_key=(index,)))


def simulate_event(config: ReactionConfig,
                   sink: StatisticalSink,
                   rng: Optional[np.random.Generator] = None,
                   engine: Optional[ReconstructionEngine] = None,
                   unweighting_controller: Optional[UnweightingController] = None) -> Optional[Event]:
    """
    Generate one reaction event and forward its observations to ``sink``.

    Args:
        config: Immutable reaction configuration
        sink: Receives every observation of the event
        rng: Random stream for this event
        engine: Enabled reconstruction channels (built from config if omitted)
        unweighting_controller: Accept/reject on the phase-space weight

    Returns:
        The Event, or None if it was rejected by the unweighting controller

    Raises:
        PhaseSpaceGenerationFailure: not enough energy for the product masses;
        nothing has been recorded for the event
    """
    rng = rng or np.random.default_rng()
    engine = engine or ReconstructionEngine.from_config(config)
    beam = BeamSampler(config, rng)
    selector = ExcitedStateSelector(config, rng)
    generator = PhaseSpaceGenerator(rng)
    recorder = KinematicsRecorder(config.resolution, rng)

    # Step 1: Beam energy on target and initial four-momentum
    beam_energy = beam.sample()
    event = Event(beam_energy=beam_energy, initial=beam.initial_state(beam_energy))

    # Step 2: Excitation energies for this event
    products = [Particle(nuclide, selector.select(nuclide)) for nuclide in config.products]

    # Step 3: N-body phase space in the lab
    fvs, weight = generator.generate(event.initial, [p.mass for p in products])

    # Step 3b: Accept–reject unweighting (if enabled)
    if unweighting_controller is not None:
        if not unweighting_controller.accept(weight, rng):
            logger.debug("Event rejected by unweighting controller")
            return None
        weight = 1.0
    event.weight = weight

    # Step 4: Lab observables with angular resolution
    for index, (particle, fv) in enumerate(zip(products, fvs)):
        particle.fourvec = fv
        recorder.observe_product(particle)
        recorder.forward(sink, "product", index, particle)
    event.products = products

    # Step 5: Energy-momentum diagnostics
    mass_ok = check_invariant_mass(event.initial, fvs)
    event.conserved = check_four_momentum([event.initial], fvs) and mass_ok

    # Step 6: Decay of the excited parent
    if config.decay is not None:
        parent = products[config.decay.parent_index]
        if parent.excitation_energy > 0.0:
            event.parent_kinetic_energy = parent.kinetic_energy
            decayer = DecaySimulator(config.decay.products, generator, recorder)
            try:
                event.decay_products = decayer.decay(parent, rng)
            except NonPositiveDecayQValue as e:
                logger.warning(f"{e}; decay skipped for this event")
                event.decay_skipped = True
            else:
                daughter_fvs = [d.fourvec for d in event.decay_products]
                event.conserved = check_four_momentum([parent.fourvec], daughter_fvs) and event.conserved
                for index, daughter in enumerate(event.decay_products):
                    recorder.forward(sink, "decay", index, daughter)

    # Step 7: Reconstruction channels
    engine.run(event, config, sink)

    # Step 8: Beam observables
    sink.accumulate(Category("beam", "energy"), beam_energy)
    sink.accumulate_2d(Category("beam", "position"), *beam.sample_position())

    return event


def _unweighting_for(config: ReactionConfig, seed: Optional[int]) -> UnweightingController:
    nominal = BeamSampler(config).initial_state(config.beam.energy)
    return UnweightingController.from_estimate(nominal, candidate_masses(config), rng=np.random.default_rng(seed))


def _pooled(run_one, n: int, workers: int, progress_every: int):
    """
    Run events on a thread pool one chunk at a time, so at most a chunk of
    pending events is queued on the executor.
    """
    chunk = max(progress_every, workers) if progress_every else workers * 256
    with ThreadPoolExecutor(max_workers=workers) as executor:
        for start in range(0, n, chunk):
            yield from executor.map(run_one, range(start, min(start + chunk, n)))


def simulate_batch(config: ReactionConfig,
                   n: int,
                   sink: StatisticalSink,
                   seed: Optional[int] = None,
                   independent_streams: bool = False,
                   workers: int = 1,
                   progress_every: int = 10000) -> Dict[str, int]:
    """
    Run ``n`` events; all observations go to ``sink``.

    With one shared stream (the default) a run is reproducible as a whole
    sequence for a fixed seed. ``independent_streams`` derives one stream
    per event index from the master seed so each event is reproducible on
    its own; it is switched on automatically when ``workers`` > 1.

    Returns:
        Counters: success, skipped (phase space failed), rejected (unweighting),
        decay_skipped (Q <= 0), conservation_violations, total
    """
    if workers > 1 and not independent_streams:
        logger.info("Parallel run: using independent per-event streams")
        independent_streams = True
    if independent_streams and seed is None:
        seed = np.random.SeedSequence().entropy

    rng = np.random.default_rng(seed)
    engine = ReconstructionEngine.from_config(config)
    controller = _unweighting_for(config, seed) if config.unweight else None

    def run_one(i: int):
        stream = event_stream(seed, i) if independent_streams else rng
        try:
            return simulate_event(config, sink, stream, engine, controller)
        except PhaseSpaceGenerationFailure as e:
            logger.debug(f"Event {i+1}/{n} skipped: {e}")
            return e

    stats = {
        "success": 0,
        "skipped": 0,
        "rejected": 0,
        "decay_skipped": 0,
        "conservation_violations": 0,
        "total": n,
    }

    outcomes = _pooled(run_one, n, workers, progress_every) if workers > 1 else map(run_one, range(n))
    for i, outcome in enumerate(outcomes):
        if isinstance(outcome, PhaseSpaceGenerationFailure):
            stats["skipped"] += 1
        elif outcome is None:
            stats["rejected"] += 1
        else:
            stats["success"] += 1
            stats["decay_skipped"] += int(outcome.decay_skipped)
            stats["conservation_violations"] += int(not outcome.conserved)

        if progress_every and (i + 1) % progress_every == 0:
            logger.info(f"Processed {i+1}/{n} events ({stats['skipped']} skipped)")

    logger.info(
        f"✅ Batch complete: {stats['success']}/{n} succeeded, {stats['skipped']} skipped, "
        f"{stats['rejected']} rejected"
    )
    if stats["decay_skipped"]:
        logger.warning(f"Decay skipped in {stats['decay_skipped']} events (Q <= 0); check the excited-state table")
    if controller is not None:
        logger.info(f"Unweighting efficiency: {controller.efficiency:.3f}")

    return stats
