"""
Statistical sinks that receive per-event observations.

Observations are keyed by a ``Category``: a group ("beam", "product",
"decay", or a reconstruction channel name), a quantity, and an optional
product / decay-product index.
"""
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List, NamedTuple, Optional, Tuple
import numpy as np
import pandas as pd


class Category(NamedTuple):
    group: str
    quantity: str
    index: Optional[int] = None

    def __str__(self):
        suffix = f"[{self.index}]" if self.index is not None else ""
        return f"{self.group}{suffix}.{self.quantity}"


class StatisticalSink(ABC):
    """Receiver for scalar and paired observations. Must not draw random numbers."""

    @abstractmethod
    def accumulate(self, category: Category, value: float) -> None:
        """Record one scalar observation."""

    @abstractmethod
    def accumulate_2d(self, category: Category, x: float, y: float) -> None:
        """Record one (x, y) observation."""


class HistogramSink(StatisticalSink):
    """
    In-memory sink keeping every observation so histograms can be binned
    after the run. Accumulation is guarded by a lock so a thread pool can
    share one sink.
    """

    def __init__(self):
        self._scalars: Dict[Category, List[float]] = defaultdict(list)
        self._pairs: Dict[Category, List[Tuple[float, float]]] = defaultdict(list)
        self._lock = threading.Lock()

    def accumulate(self, category: Category, value: float) -> None:
        with self._lock:
            self._scalars[category].append(float(value))

    def accumulate_2d(self, category: Category, x: float, y: float) -> None:
        with self._lock:
            self._pairs[category].append((float(x), float(y)))

    # -------------------- Access --------------------

    def categories(self) -> List[Category]:
        return sorted(set(self._scalars) | set(self._pairs), key=str)

    def values(self, category: Category) -> np.ndarray:
        return np.asarray(self._scalars.get(category, []), dtype=float)

    def pairs(self, category: Category) -> np.ndarray:
        return np.asarray(self._pairs.get(category, []), dtype=float).reshape(-1, 2)

    def count(self, category: Category) -> int:
        return len(self._scalars.get(category, ())) + len(self._pairs.get(category, ()))

    def histogram(self, category: Category, bins=100, range=None):
        """Return (counts, edges) for a scalar category."""
        return np.histogram(self.values(category), bins=bins, range=range)

    def histogram2d(self, category: Category, bins=100, range=None):
        xy = self.pairs(category)
        return np.histogram2d(xy[:, 0], xy[:, 1], bins=bins, range=range)

    def summary(self) -> pd.DataFrame:
        """Count, mean, standard deviation, minimum and maximum per scalar category."""
        rows = []
        for category in sorted(self._scalars, key=str):
            v = self.values(category)
            rows.append({
                "category": str(category),
                "count": len(v),
                "mean": float(np.mean(v)) if len(v) else np.nan,
                "std": float(np.std(v)) if len(v) else np.nan,
                "min": float(np.min(v)) if len(v) else np.nan,
                "max": float(np.max(v)) if len(v) else np.nan,
            })
        return pd.DataFrame(rows, columns=["category", "count", "mean", "std", "min", "max"])
