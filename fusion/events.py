from dataclasses import dataclass, field
from typing import List, Optional

from .kinematics import FourVector
from .particles import Particle


@dataclass
class Event:
    """
    Transient state of one simulated event.

    Created at the start of an iteration and discarded once its
    observations have been forwarded to the sink.
    """

    beam_energy: float
    initial: FourVector
    products: List[Particle] = field(default_factory=list)
    weight: float = 1.0
    decay_products: Optional[List[Particle]] = None
    parent_kinetic_energy: Optional[float] = None
    decay_skipped: bool = False
    conserved: bool = True

    @property
    def decayed(self) -> bool:
        return self.decay_products is not None

    def product_fourvectors(self) -> List[FourVector]:
        return [p.fourvec for p in self.products]
