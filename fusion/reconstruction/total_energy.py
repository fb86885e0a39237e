from .base import Comparison, ReconstructionChannel
from ..kinematics import total


class TotalEnergyReconstruction(ReconstructionChannel):
    """Initial-state invariant mass against the summed final state."""

    name = "total_energy"
    description = "Invariant mass and total momentum of all reaction products"

    def reconstruct(self, event, config):
        final = total(event.product_fourvectors())
        return [
            Comparison("invariant_mass", final.mass, event.initial.mass),
            Comparison("momentum", final.magnitude, event.initial.magnitude),
        ]
