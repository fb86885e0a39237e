"""
Reconstruction channels: infer parent-particle properties from measured
product kinematics and compare them with the simulated truth.

Usage:
    from fusion.reconstruction import ReconstructionEngine

    engine = ReconstructionEngine.from_config(config)
    engine.run(event, config, sink)
"""
from .base import Comparison, ReconstructionChannel
from .engine import ReconstructionEngine
from .parent import ParentEnergyReconstruction, ParentMassReconstruction
from .product_pair import SelectedPairReconstruction
from .registry import available_channels, get_channel, register
from .total_energy import TotalEnergyReconstruction

__all__ = [
    "Comparison",
    "ReconstructionChannel",
    "ReconstructionEngine",
    "ParentEnergyReconstruction",
    "ParentMassReconstruction",
    "SelectedPairReconstruction",
    "TotalEnergyReconstruction",
    "available_channels",
    "get_channel",
    "register",
]
