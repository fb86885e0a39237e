# conservation.py
# Q-values, nucleon bookkeeping and energy-momentum diagnostics.
#
# Diagnostics never raise: a mismatch beyond tolerance points at the
# generator or boost chain, so it is reported and the event goes on.
import logging
import math
import warnings
from typing import Dict, Iterable, List, Sequence, Tuple

from .exceptions import ConfigError, ConservationViolation
from .kinematics import FourVector, total

logger = logging.getLogger(__name__)

# MeV; initial vs final invariant mass
INVARIANT_MASS_TOLERANCE = 5.0


def q_value(beam_mass: float, target_mass: float, product_masses: Iterable[float]) -> float:
    """Q = M_beam + M_target - sum(M_products), ground-state masses."""
    return beam_mass + target_mass - sum(product_masses)


def decay_q_value(parent_mass: float, excitation_energy: float, daughter_masses: Iterable[float]) -> float:
    """Energy released by an excited parent breaking up into the daughters."""
    return parent_mass + excitation_energy - sum(daughter_masses)


def check_nucleon_numbers(beam: Tuple[int, int], target: Tuple[int, int],
                          products: Sequence[Tuple[int, int]]) -> None:
    """Raise ConfigError unless mass number A and charge Z are conserved."""
    A_initial = beam[0] + target[0]
    Z_initial = beam[1] + target[1]
    A_final = sum(A for A, _ in products)
    Z_final = sum(Z for _, Z in products)
    if A_initial != A_final or Z_initial != Z_final:
        raise ConfigError(
            f"Nucleon numbers not conserved: initial A={A_initial}, Z={Z_initial}; "
            f"final A={A_final}, Z={Z_final}"
        )


def check_energy_momentum(initial_vectors: List[FourVector], final_vectors: List[FourVector],
                          tol: float = 1e-6) -> Dict[str, float]:
    """Return diagnostic dict for full 4-momentum conservation.

    Returns dict with deltas for energy and momentum components and a
    boolean 'conserved' key summarizing result within tolerance.
    """
    i = total(initial_vectors)
    f = total(final_vectors)
    dE = i.E - f.E
    dPx = i.px - f.px
    dPy = i.py - f.py
    dPz = i.pz - f.pz
    conserved = (abs(dE) < tol and abs(dPx) < tol and abs(dPy) < tol and abs(dPz) < tol)
    return {
        'conserved': conserved,
        'deltaE': dE,
        'deltaPx': dPx,
        'deltaPy': dPy,
        'deltaPz': dPz,
        'E_initial': i.E,
        'E_final': f.E,
    }


def check_invariant_mass(initial: FourVector, final_vectors: List[FourVector],
                         tol: float = INVARIANT_MASS_TOLERANCE) -> bool:
    """
    Compare the invariant mass of the initial state with that of the summed
    final state. A mismatch beyond ``tol`` issues a ConservationViolation
    warning and returns False.
    """
    W_initial = initial.mass
    W_final = total(final_vectors).mass
    diff = abs(W_initial - W_final)
    if not math.isfinite(diff) or diff > tol:
        message = (
            f"Energy conservation violated: initial W = {W_initial:.4f} MeV, "
            f"final W = {W_final:.4f} MeV, difference = {diff:.4f} MeV"
        )
        logger.warning(message)
        warnings.warn(message, ConservationViolation, stacklevel=2)
        return False
    return True


def check_four_momentum(initial_vectors: List[FourVector], final_vectors: List[FourVector],
                        rel_tol: float = 1e-6) -> bool:
    """
    Component-wise four-momentum balance, tolerance relative to the initial
    energy. A mismatch issues a ConservationViolation warning and returns False.
    """
    scale = abs(total(initial_vectors).E) or 1.0
    diag = check_energy_momentum(initial_vectors, final_vectors, tol=rel_tol * scale)
    deltas = (diag['deltaE'], diag['deltaPx'], diag['deltaPy'], diag['deltaPz'])
    if diag['conserved'] and all(math.isfinite(d) for d in deltas):
        return True
    message = (
        f"Four-momentum not conserved: dE = {diag['deltaE']:.3e}, dPx = {diag['deltaPx']:.3e}, "
        f"dPy = {diag['deltaPy']:.3e}, dPz = {diag['deltaPz']:.3e} MeV"
    )
    logger.warning(message)
    warnings.warn(message, ConservationViolation, stacklevel=2)
    return False
