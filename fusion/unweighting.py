"""
Accept/reject on the normalized phase-space weight.

GENBOD weights are bounded by one, so the acceptance ceiling never
needs to exceed one even after the safety factor is applied.
"""
import logging
import threading
from typing import Optional, Sequence
import numpy as np

from .exceptions import PhaseSpaceGenerationFailure
from .kinematics import FourVector
from .phase_space import estimate_w_max

logger = logging.getLogger(__name__)


class UnweightingController:
    def __init__(self, w_max: float = 1.0, safety_factor: float = 1.2, ceiling: Optional[float] = 1.0):
        self.w_max = w_max * safety_factor
        if ceiling is not None:
            self.w_max = min(self.w_max, ceiling)
        self.accepted = 0
        self.rejected = 0
        self._lock = threading.Lock()

    @classmethod
    def from_estimate(cls, total: FourVector, mass_sets: Sequence[Sequence[float]], n_trials: int = 2000,
                      rng: Optional[np.random.Generator] = None, **kwargs) -> "UnweightingController":
        """
        Size the ceiling from trial runs at the nominal initial state, one per
        candidate set of product masses, keeping the largest weight seen.

        Mass sets that are closed at the nominal energy are skipped. If none
        is open, the analytic bound of one is used without a safety factor.
        """
        mass_sets = list(mass_sets)
        per_set = max(200, n_trials // max(len(mass_sets), 1))
        w_max = 0.0
        for masses in mass_sets:
            try:
                w_max = max(w_max, estimate_w_max(total, masses, n_trials=per_set, rng=rng))
            except (PhaseSpaceGenerationFailure, RuntimeError) as e:
                logger.debug(f"No w_max estimate for masses {list(masses)}: {e}")
        if w_max <= 0.0:
            logger.warning("Cannot estimate w_max at nominal beam energy; using 1.0")
            return cls(1.0, safety_factor=1.0, ceiling=kwargs.get("ceiling", 1.0))
        logger.info(f"Estimated w_max = {w_max:.3e} over {len(mass_sets)} mass set(s)")
        return cls(w_max, **kwargs)

    def accept(self, weight: float, rng: np.random.Generator) -> bool:
        keep = rng.uniform(0.0, self.w_max) < weight
        with self._lock:
            if keep:
                self.accepted += 1
            else:
                self.rejected += 1
        return keep

    @property
    def efficiency(self) -> float:
        tried = self.accepted + self.rejected
        return self.accepted / tried if tried > 0 else 0.0
