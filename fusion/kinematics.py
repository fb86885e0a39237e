"""
Kinematics helpers for the reaction simulation.

Units: MeV (natural units c = 1).
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple
import numpy as np

# -----------------------------
# FourVector
# -----------------------------
@dataclass
class FourVector:
    E: float
    px: float
    py: float
    pz: float

    @classmethod
    def from_kinetic(cls, mass: float, kinetic_energy: float,
                     theta: float = 0.0, phi: float = 0.0) -> "FourVector":
        """Build a four-momentum from rest mass, kinetic energy and direction."""
        p = momentum_from_kinetic(kinetic_energy, mass)
        st = math.sin(theta)
        return cls(kinetic_energy + mass,
                   p * st * math.cos(phi),
                   p * st * math.sin(phi),
                   p * math.cos(theta))

    @property
    def p(self) -> np.ndarray:
        return np.array([self.px, self.py, self.pz], dtype=float)

    @property
    def magnitude(self) -> float:
        return float(np.linalg.norm(self.p))

    @property
    def mass2(self) -> float:
        return self.E * self.E - self.magnitude * self.magnitude

    @property
    def mass(self) -> float:
        return math.sqrt(max(self.mass2, 0.0))

    @property
    def theta(self) -> float:
        """Polar angle with respect to the beam (+z) axis."""
        return math.atan2(math.hypot(self.px, self.py), self.pz)

    @property
    def phi(self) -> float:
        return math.atan2(self.py, self.px)

    def beta(self) -> np.ndarray:
        if self.E == 0.0:
            return np.zeros(3, dtype=float)
        return self.p / self.E

    def boost(self, beta: np.ndarray) -> "FourVector":
        p4 = np.array([self.E, self.px, self.py, self.pz], dtype=float)
        b = np.asarray(beta, dtype=float)
        boosted = lorentz_boost_array(p4, b)
        return FourVector(float(boosted[0]), float(boosted[1]), float(boosted[2]), float(boosted[3]))

    def to_tuple(self) -> Tuple[float, float, float, float]:
        return (self.E, self.px, self.py, self.pz)

    def __add__(self, other: "FourVector") -> "FourVector":
        return FourVector(self.E + other.E, self.px + other.px, self.py + other.py, self.pz + other.pz)

    def __sub__(self, other: "FourVector") -> "FourVector":
        return FourVector(self.E - other.E, self.px - other.px, self.py - other.py, self.pz - other.pz)

    def __repr__(self) -> str:
        return f"FourVector(E={self.E:.6f}, px={self.px:.6f}, py={self.py:.6f}, pz={self.pz:.6f})"


def total(vectors: Iterable[FourVector]) -> FourVector:
    return sum(vectors, FourVector(0.0, 0.0, 0.0, 0.0))


# -----------------------------
# Lorentz boost
# -----------------------------
def lorentz_boost_array(p4: np.ndarray, beta: np.ndarray) -> np.ndarray:
    beta = np.asarray(beta, dtype=float)
    p4 = np.asarray(p4, dtype=float)
    beta2 = float(np.dot(beta, beta))
    if beta2 >= 1.0:
        raise ValueError("beta^2 < 1 required.")
    if beta2 <= 1e-18:
        return p4.copy()
    gamma = 1.0 / math.sqrt(1.0 - beta2)
    bp = float(np.dot(beta, p4[1:]))
    Eprime = gamma * (p4[0] + bp)
    factor = ((gamma - 1.0) * bp / beta2) + gamma * p4[0]
    pprime = p4[1:] + factor * beta
    return np.array([Eprime, pprime[0], pprime[1], pprime[2]], dtype=float)


# -----------------------------
# Isotropic direction
# -----------------------------
def isotropic_direction(rng: Optional[np.random.Generator] = None) -> np.ndarray:
    rng = rng or np.random.default_rng()
    u = rng.uniform(-1.0, 1.0)
    phi = rng.uniform(0.0, 2.0 * math.pi)
    sint = math.sqrt(max(0.0, 1.0 - u * u))
    return np.array([sint * math.cos(phi), sint * math.sin(phi), u], dtype=float)


# -----------------------------
# Scalar relations
# -----------------------------
def momentum_from_kinetic(kinetic_energy: float, mass: float) -> float:
    """p = sqrt(T (T + 2m)); clamped at zero for unphysical T."""
    return math.sqrt(max(kinetic_energy * (kinetic_energy + 2.0 * mass), 0.0))


def two_body_momentum(parent_mass: float, m1: float, m2: float) -> float:
    """Breakup momentum of parent_mass -> m1 + m2 in the parent rest frame."""
    if parent_mass <= 0.0:
        return 0.0
    term1 = parent_mass * parent_mass - (m1 + m2) ** 2
    term2 = parent_mass * parent_mass - (m1 - m2) ** 2
    return math.sqrt(max(term1 * term2, 0.0)) / (2.0 * parent_mass)
