"""
Decay in flight of an excited reaction product.

The parent's lab four-momentum fixes a boost vector; the breakup is
generated in the parent rest frame with the same N-body generator used
for the reaction, then every daughter is boosted back to the lab.
"""
import logging
from typing import List, Optional, Sequence
import numpy as np

from .conservation import decay_q_value
from .exceptions import NonPositiveDecayQValue
from .particles import Nuclide, Particle
from .phase_space import PhaseSpaceGenerator
from .recorder import KinematicsRecorder

logger = logging.getLogger(__name__)


class DecaySimulator:
    def __init__(self, daughters: Sequence[Nuclide], generator: PhaseSpaceGenerator,
                 recorder: KinematicsRecorder):
        self.daughters = list(daughters)
        self.generator = generator
        self.recorder = recorder

    @property
    def daughter_masses(self) -> List[float]:
        return [d.mass for d in self.daughters]

    def q_value(self, parent: Particle) -> float:
        return decay_q_value(parent.ground_state_mass, parent.excitation_energy, self.daughter_masses)

    def decay(self, parent: Particle, rng: Optional[np.random.Generator] = None) -> Optional[List[Particle]]:
        """
        Break up ``parent`` and return the lab-frame daughters, smeared by the
        recorder. Returns None for a ground-state parent.

        Raises
        ------
        NonPositiveDecayQValue
            The excited parent cannot reach the daughter mass sum.
        """
        if parent.excitation_energy <= 0.0:
            return None

        Q = self.q_value(parent)
        if Q <= 0:
            raise NonPositiveDecayQValue(Q, parent.name)

        boost = parent.fourvec.beta()
        parent_rest = parent.fourvec.boost(-boost)
        rest_frame, _ = self.generator.generate(parent_rest, self.daughter_masses, rng)

        daughters = []
        for nuclide, fv in zip(self.daughters, rest_frame):
            daughter = Particle(nuclide, 0.0, fv.boost(boost))
            daughters.append(self.recorder.observe_decay_product(daughter))

        logger.debug(
            f"{parent.name} (Ex={parent.excitation_energy:.3f} MeV, Q={Q:.3f} MeV) → "
            f"{' + '.join(d.name for d in daughters)}"
        )
        return daughters
