import sys
from pathlib import Path
sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest

from fusion.config import ReactionSetup
from fusion.masses import MassTable

# AME2020 atomic masses, MeV
MASSES = {
    (1, 0): 939.5654,
    (1, 1): 938.7831,
    (2, 1): 1876.1239,
    (4, 2): 3728.4013,
    (25, 13): 23278.4367,
    (26, 14): 24211.7019,
    (27, 14): 25137.9563,
}


@pytest.fixture
def masses():
    return MassTable(MASSES)


@pytest.fixture
def si26_setup():
    """25Al(d, n)26Si at 142 MeV, no decay or reconstruction yet."""
    return (
        ReactionSetup()
        .set_beam(142.0, 25, 13)
        .set_target(2, 1)
        .add_product(26, 14, "Si26")
        .add_product(1, 0, "n")
    )


@pytest.fixture
def si26_decay_setup(si26_setup):
    """Same reaction with 26Si(5.92 MeV) -> 25Al + p."""
    return (
        si26_setup
        .set_excited_states(26, 14, [5.92], [1.0])
        .enable_decay(0)
        .add_decay_product(25, 13, "Al25")
        .add_decay_product(1, 1, "p")
    )
