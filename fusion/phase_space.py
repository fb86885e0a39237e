"""
Lorentz-invariant phase space generator using the Raubold–Lynch (GENBOD) algorithm.

Supports arbitrary N-body final states. The returned weight is the
phase-space density of the sampled point divided by its kinematic
maximum, so it lies in [0, 1].

Units: MeV, c = 1
"""

from __future__ import annotations
import math
import numpy as np
from typing import List, Optional, Sequence, Tuple
from .exceptions import PhaseSpaceGenerationFailure
from .kinematics import FourVector, isotropic_direction, two_body_momentum


def max_weight(total_mass: float, masses: Sequence[float]) -> float:
    """Upper bound of the unnormalized GENBOD weight for this final state."""
    kinetic = total_mass - sum(masses)
    emmax = kinetic + masses[0]
    emmin = 0.0
    wtmax = 1.0
    for n in range(1, len(masses)):
        emmin += masses[n - 1]
        emmax += masses[n]
        wtmax *= two_body_momentum(emmax, emmin, masses[n])
    return wtmax


def generate_n_body_decay(
    parent_p4: FourVector,
    masses: Sequence[float],
    rng: Optional[np.random.Generator] = None,
) -> Tuple[List[FourVector], float]:
    """
    Generate one N-body final state from the total four-momentum ``parent_p4``.

    Parameters
    ----------
    parent_p4 : FourVector
        Total four-momentum (can be in any frame)
    masses : list of float
        Final-state rest masses (MeV), excitation energy included
    rng : numpy Generator, optional
        Random number generator

    Returns
    -------
    (final_particles, event_weight)
        final_particles: list of FourVector in the frame of ``parent_p4``
        event_weight: normalized phase-space weight

    Raises
    ------
    PhaseSpaceGenerationFailure
        Fewer than two particles, or not enough energy for the masses.
    """
    rng = rng or np.random.default_rng()
    masses = [float(m) for m in masses]
    N = len(masses)

    if N < 2:
        raise PhaseSpaceGenerationFailure("Need at least two final-state particles.")
    if any(m < 0 for m in masses):
        raise PhaseSpaceGenerationFailure("All masses must be non-negative.")

    M = parent_p4.mass
    kinetic = M - sum(masses)
    if parent_p4.mass2 <= 0 or kinetic < 0:
        raise PhaseSpaceGenerationFailure(f"Kinematically forbidden: Σm={sum(masses):.3f} > M={M:.3f}")

    # Invariant masses of the subsystems {0}, {0,1}, ..., {0..N-1}
    cuts = np.concatenate(([0.0], np.sort(rng.random(N - 2)), [1.0]))
    invariant = cuts * kinetic + np.cumsum(masses)

    momenta = [two_body_momentum(invariant[i + 1], invariant[i], masses[i + 1]) for i in range(N - 1)]
    weight = float(np.prod(momenta))

    # Add one particle at a time in the rest frame of the growing subsystem
    particles = [FourVector(masses[0], 0.0, 0.0, 0.0)]
    for i in range(N - 1):
        p_mag = momenta[i]
        direction = isotropic_direction(rng)
        beta = p_mag * direction / math.sqrt(p_mag**2 + invariant[i]**2)
        particles = [p.boost(beta) for p in particles]

        p_vec = -p_mag * direction
        E = math.sqrt(masses[i + 1]**2 + p_mag**2)
        particles.append(FourVector(E, p_vec[0], p_vec[1], p_vec[2]))

    # Boost to the frame parent_p4 is expressed in
    beta_parent = parent_p4.beta()
    final_lab = [p.boost(beta_parent) for p in particles]

    wtmax = max_weight(M, masses)
    return final_lab, (weight / wtmax if wtmax > 0 else 0.0)


class PhaseSpaceGenerator:
    """Relativistic N-body phase-space sampling bound to one random stream."""

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng or np.random.default_rng()

    def generate(self, total: FourVector, masses: Sequence[float],
                 rng: Optional[np.random.Generator] = None) -> Tuple[List[FourVector], float]:
        return generate_n_body_decay(total, masses, rng or self.rng)


def estimate_w_max(total: FourVector, masses: Sequence[float], n_trials: int = 5000,
                   rng: Optional[np.random.Generator] = None) -> float:
    """Largest weight seen over ``n_trials`` samples of the same final state."""
    rng = rng or np.random.default_rng()
    w_max = 0.0
    for _ in range(n_trials):
        _, w = generate_n_body_decay(total, masses, rng)
        w_max = max(w_max, w)
    if w_max <= 0:
        raise RuntimeError("Failed to estimate w_max (no event with positive weight)")
    return w_max
