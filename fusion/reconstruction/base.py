from abc import ABC, abstractmethod
from typing import List, NamedTuple


class Comparison(NamedTuple):
    """One reconstructed quantity next to its true / reference value."""

    quantity: str
    reconstructed: float
    reference: float

    @property
    def difference(self) -> float:
        """Reference minus reconstructed."""
        return self.reference - self.reconstructed


class ReconstructionChannel(ABC):
    """
    Base class for all reconstruction channels.

    Implementations are pure functions of the event's four-momenta:
    no RNG, no mutation of the event or the configuration.
    """

    name: str = "abstract"
    description: str = ""

    @abstractmethod
    def reconstruct(self, event, config) -> List[Comparison]:
        """
        Return the comparisons available for this event.

        Args:
            event: fusion.events.Event after generation and decay
            config: fusion.config.ReactionConfig of the run

        Returns:
            Empty list when the event carries nothing to reconstruct
            (for example no decay took place).
        """
