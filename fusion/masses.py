"""
Nuclide mass table: (A, Z) -> rest mass in MeV/c^2.

The on-disk format is the plain ``mass.dat`` layout, one nuclide per
line as whitespace-separated ``A Z mass``. A row with A = 0 ends the
table and the first row for a given (A, Z) wins.
"""
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union
import pandas as pd

from .exceptions import MassLookupError

logger = logging.getLogger(__name__)


class MassTable:
    """Read-only lookup of nuclear rest masses."""

    def __init__(self, masses: Optional[Mapping[Tuple[int, int], float]] = None):
        self._masses: Dict[Tuple[int, int], float] = {}
        for (A, Z), mass in (masses or {}).items():
            self._masses.setdefault((int(A), int(Z)), float(mass))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "MassTable":
        df = pd.read_csv(path, sep=r"\s+", header=None, names=["A", "Z", "mass"],
                         comment="#", usecols=[0, 1, 2])
        # A = 0 terminates the table
        terminator = (df["A"] == 0).to_numpy()
        if terminator.any():
            df = df.iloc[: int(terminator.argmax())]
        df = df.drop_duplicates(subset=["A", "Z"], keep="first")

        table = cls({(int(a), int(z)): float(m) for a, z, m in df.itertuples(index=False)})
        logger.info(f"Loaded {len(table)} nuclide masses from {path}")
        return table

    def lookup(self, A: int, Z: int) -> Optional[float]:
        """Return the rest mass, or None when (A, Z) is not tabulated."""
        return self._masses.get((int(A), int(Z)))

    def require(self, A: int, Z: int, name: str = "") -> float:
        mass = self.lookup(A, Z)
        if mass is None:
            logger.error(f"Mass not found: {name} (A={A}, Z={Z})")
            raise MassLookupError(A, Z, name)
        logger.debug(f"Found mass: {name} (A={A}, Z={Z}) = {mass:.4f} MeV")
        return mass

    def __contains__(self, key) -> bool:
        return tuple(key) in self._masses

    def __len__(self) -> int:
        return len(self._masses)
