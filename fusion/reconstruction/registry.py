"""
Reconstruction channel registry: maps channel names to implementations.

Channel names are the strings used in configuration files, e.g.
"total_energy" or "selected_pair".
"""
from typing import Dict, List, Type

from .base import ReconstructionChannel
from .parent import ParentEnergyReconstruction, ParentMassReconstruction
from .product_pair import SelectedPairReconstruction
from .total_energy import TotalEnergyReconstruction


_REGISTRY: Dict[str, Type[ReconstructionChannel]] = {}


def register(channel: Type[ReconstructionChannel]) -> Type[ReconstructionChannel]:
    """
    Register a channel class under its ``name``. Usable as a decorator.

    Example:
        >>> @register
        ... class Custom(ReconstructionChannel):
        ...     name = "custom"
    """
    _REGISTRY[channel.name] = channel
    return channel


def get_channel(name: str) -> ReconstructionChannel:
    """Instantiate the channel registered as ``name``; KeyError if unknown."""
    return _REGISTRY[name]()


def available_channels() -> List[str]:
    return list(_REGISTRY)


# ========== BUILT-IN CHANNELS ==========
register(TotalEnergyReconstruction)
register(ParentEnergyReconstruction)
register(ParentMassReconstruction)
register(SelectedPairReconstruction)
