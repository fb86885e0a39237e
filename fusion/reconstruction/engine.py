from typing import List, Sequence

from .base import Comparison, ReconstructionChannel
from .registry import get_channel
from ..sink import Category, StatisticalSink


class ReconstructionEngine:
    """Runs the enabled channels on each event and forwards the comparisons."""

    def __init__(self, channels: Sequence[ReconstructionChannel]):
        self.channels = list(channels)

    @classmethod
    def from_config(cls, config) -> "ReconstructionEngine":
        return cls([get_channel(name) for name in config.reconstruction.channels])

    def run(self, event, config, sink: StatisticalSink) -> List[Comparison]:
        results = []
        for channel in self.channels:
            for comparison in channel.reconstruct(event, config):
                emit(sink, channel.name, comparison)
                results.append(comparison)
        return results


def emit(sink: StatisticalSink, channel: str, comparison: Comparison) -> None:
    q = comparison.quantity
    sink.accumulate(Category(channel, f"{q}_reconstructed"), comparison.reconstructed)
    sink.accumulate(Category(channel, f"{q}_reference"), comparison.reference)
    sink.accumulate(Category(channel, f"{q}_difference"), comparison.difference)
