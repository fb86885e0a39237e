"""
Lab-frame observables and resolution smearing.

Reaction products are reported with a smeared polar angle and their
true kinetic energy. Decay products get both angle and kinetic energy
smeared, and their momentum is recomputed from the smeared energy so
the reported (E, p) pair stays on the mass shell. The unsmeared
four-momentum is left untouched for ground-truth comparisons.
"""
import math
from typing import Optional
import numpy as np

from .config import Resolution
from .kinematics import momentum_from_kinetic
from .particles import Particle
from .sink import Category, StatisticalSink


class KinematicsRecorder:
    def __init__(self, resolution: Resolution, rng: Optional[np.random.Generator] = None):
        self.resolution = resolution
        self.rng = rng or np.random.default_rng()

    def _smear_angle(self, theta: float) -> float:
        return theta + float(self.rng.normal(0.0, self.resolution.angle))

    def observe_product(self, particle: Particle) -> Particle:
        particle.theta_measured = self._smear_angle(particle.theta)
        particle.kinetic_measured = particle.kinetic_energy
        particle.momentum_measured = particle.momentum
        return particle

    def observe_decay_product(self, particle: Particle) -> Particle:
        particle.theta_measured = self._smear_angle(particle.theta)
        kinetic = particle.kinetic_energy + float(self.rng.normal(0.0, self.resolution.beam_sigma))
        particle.kinetic_measured = kinetic
        particle.momentum_measured = momentum_from_kinetic(kinetic - particle.excitation_energy, particle.mass)
        return particle

    @staticmethod
    def forward(sink: StatisticalSink, group: str, index: int, particle: Particle) -> None:
        """Angle (degrees), kinetic energy and their pair for one particle."""
        angle = math.degrees(particle.theta_measured)
        energy = particle.kinetic_measured
        sink.accumulate(Category(group, "angle", index), angle)
        sink.accumulate(Category(group, "energy", index), energy)
        sink.accumulate_2d(Category(group, "angle_energy", index), angle, energy)
        if group == "product":
            sink.accumulate_2d(Category(group, "momentum_xy"), particle.fourvec.px, particle.fourvec.py)
