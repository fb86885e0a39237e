"""
Per-event beam sampling.

The kinetic energy reaching the target is the nominal energy smeared by
the beam resolution, reduced by a uniformly distributed degrader loss,
then smeared again by energy straggling:

    E1 = Gaus(E0, sigma_beam) - L * U(0, 1)
    E  = Gaus(E1, sigma_straggling)
"""
from typing import Optional, Tuple
import numpy as np

from .config import ReactionConfig
from .kinematics import FourVector, momentum_from_kinetic


class BeamSampler:
    def __init__(self, config: ReactionConfig, rng: Optional[np.random.Generator] = None):
        self.nominal_energy = config.beam.energy
        self.beam_mass = config.beam.nuclide.mass
        self.target_mass = config.target.mass
        self.resolution = config.resolution
        self.rng = rng or np.random.default_rng()

    def sample(self) -> float:
        res = self.resolution
        e1 = self.rng.normal(self.nominal_energy, res.beam_sigma) - res.energy_loss * self.rng.uniform()
        return float(self.rng.normal(e1, res.straggling))

    def sample_position(self) -> Tuple[float, float]:
        """Transverse beam spot on target (mm)."""
        sigma = self.resolution.position
        return float(self.rng.normal(0.0, sigma)), float(self.rng.normal(0.0, sigma))

    def beam_fourvector(self, kinetic_energy: float) -> FourVector:
        """Beam along +z in the lab."""
        return FourVector(kinetic_energy + self.beam_mass, 0.0, 0.0,
                          momentum_from_kinetic(kinetic_energy, self.beam_mass))

    def initial_state(self, kinetic_energy: float) -> FourVector:
        """Beam plus target at rest."""
        return self.beam_fourvector(kinetic_energy) + FourVector(self.target_mass, 0.0, 0.0, 0.0)
