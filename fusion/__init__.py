"""
Relativistic fusion-evaporation reaction simulation.

Units: MeV (natural units c = 1).
"""
from .config import ReactionConfig, ReactionSetup, load_setup, setup_from_dict
from .event_generator import simulate_batch, simulate_event
from .masses import MassTable
from .sink import Category, HistogramSink, StatisticalSink

__all__ = [
    "ReactionConfig",
    "ReactionSetup",
    "load_setup",
    "setup_from_dict",
    "simulate_batch",
    "simulate_event",
    "MassTable",
    "Category",
    "HistogramSink",
    "StatisticalSink",
]
