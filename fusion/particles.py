from dataclasses import dataclass
from typing import Optional
from .kinematics import FourVector


@dataclass(frozen=True)
class Nuclide:
    """Nuclear species with its ground-state rest mass (MeV/c^2)."""

    A: int
    Z: int
    name: str
    mass: float = 0.0
    excitation_energy: float = 0.0

    @property
    def key(self):
        return (self.A, self.Z)


class Particle:
    """
    Per-event state of a reaction or decay product.

    The rest mass used for kinematics is the ground-state mass plus the
    excitation energy drawn for this event. Lab-frame observables are
    derived from ``fourvec``; the ``*_measured`` fields hold the
    resolution-smeared values filled in by the KinematicsRecorder.
    """

    def __init__(self, nuclide: Nuclide, excitation_energy: Optional[float] = None,
                 fourvec: Optional[FourVector] = None):
        self.nuclide = nuclide
        if excitation_energy is None:
            excitation_energy = nuclide.excitation_energy
        self.excitation_energy = excitation_energy
        self.fourvec = fourvec if fourvec is not None else FourVector(self.mass, 0.0, 0.0, 0.0)

        self.theta_measured: Optional[float] = None
        self.kinetic_measured: Optional[float] = None
        self.momentum_measured: Optional[float] = None

    @property
    def name(self) -> str:
        return self.nuclide.name

    @property
    def A(self) -> int:
        return self.nuclide.A

    @property
    def Z(self) -> int:
        return self.nuclide.Z

    @property
    def ground_state_mass(self) -> float:
        return self.nuclide.mass

    @property
    def mass(self) -> float:
        return self.nuclide.mass + self.excitation_energy

    # -------------------- Lab-frame observables --------------------

    @property
    def theta(self) -> float:
        return self.fourvec.theta

    @property
    def phi(self) -> float:
        return self.fourvec.phi

    @property
    def momentum(self) -> float:
        return self.fourvec.magnitude

    @property
    def kinetic_energy(self) -> float:
        """
        Lab kinetic energy measured from the ground-state rest mass, so an
        excited product reports its excitation energy on top of its motion.
        """
        return self.fourvec.E - self.ground_state_mass

    def measured_fourvector(self, use_azimuth: bool = False) -> FourVector:
        """
        Four-momentum rebuilt from the measured kinetic energy and the
        lab polar angle. The azimuth is taken as zero unless
        ``use_azimuth`` is set.
        """
        kinetic = self.kinetic_measured if self.kinetic_measured is not None else self.kinetic_energy
        phi = self.phi if use_azimuth else 0.0
        return FourVector.from_kinetic(self.mass, kinetic - self.excitation_energy, self.theta, phi)

    def __repr__(self):
        ex = f", Ex={self.excitation_energy:.3f} MeV" if self.excitation_energy else ""
        return (
            f"Particle(name={self.name}, A={self.A}, Z={self.Z}, mass={self.ground_state_mass:.3f} MeV/c²"
            f"{ex}, T={self.kinetic_energy:.3f} MeV, fv={self.fourvec})"
        )
