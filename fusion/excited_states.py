import itertools
from typing import List, Optional, Tuple
import numpy as np

from .config import ExcitedStateTable, ReactionConfig
from .particles import Nuclide


def choose_excitation(table: ExcitedStateTable, rng: Optional[np.random.Generator] = None) -> float:
    """
    Walk the cumulative branching probabilities and return the first state
    whose cumulative probability reaches a uniform draw.

    Probabilities are normalized when the table is built, so the walk
    always ends on a state; if rounding leaves the running sum just short
    of the draw, the last state is returned.
    """
    rng = rng or np.random.default_rng()
    u = rng.uniform()
    cumulative = 0.0
    for energy, probability in zip(table.energies, table.probabilities):
        cumulative += probability
        if u <= cumulative:
            return energy
    return table.energies[-1]


class ExcitedStateSelector:
    """Draws the per-event excitation energy of each product species."""

    def __init__(self, config: ReactionConfig, rng: Optional[np.random.Generator] = None):
        self.config = config
        self.rng = rng or np.random.default_rng()

    def select(self, species: Nuclide, rng: Optional[np.random.Generator] = None) -> float:
        table = self.config.excited_table(species)
        if table is None:
            return species.excitation_energy
        return choose_excitation(table, rng or self.rng)


def candidate_masses(config: ReactionConfig) -> List[Tuple[float, ...]]:
    """
    Every combination of product rest masses an event can draw: each
    product takes each state of its excited-state table with non-zero
    probability, or its fixed excitation when it has no table.
    """
    options = []
    for species in config.products:
        table = config.excited_table(species)
        if table is None:
            energies = [species.excitation_energy]
        else:
            energies = [e for e, p in zip(table.energies, table.probabilities) if p > 0.0]
        options.append(list(dict.fromkeys(species.mass + e for e in energies)))
    return list(itertools.product(*options))
