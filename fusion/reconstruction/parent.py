"""
Parent reconstruction from decay products.

The daughters' four-momenta are rebuilt from what a detector reports:
the resolution-smeared kinetic energy and the lab polar angle. In the
default "zero" azimuth mode every daughter is placed at phi = 0, which
is exact only when all daughters share one azimuth; "measured" uses
the true azimuth instead.
"""
from .base import Comparison, ReconstructionChannel
from ..kinematics import total


def measured_decay_sum(event, config):
    use_azimuth = config.reconstruction.decay_azimuth == "measured"
    return total(d.measured_fourvector(use_azimuth) for d in event.decay_products)


class ParentEnergyReconstruction(ReconstructionChannel):
    name = "parent_energy"
    description = "Parent lab kinetic energy from the summed decay products"

    def reconstruct(self, event, config):
        if not event.decayed:
            return []
        parent = measured_decay_sum(event, config)
        kinetic = parent.E - parent.mass
        return [Comparison("energy", kinetic, event.parent_kinetic_energy)]


class ParentMassReconstruction(ReconstructionChannel):
    name = "parent_mass"
    description = "Parent invariant mass from the summed decay products"

    def reconstruct(self, event, config):
        if not event.decayed:
            return []
        parent = measured_decay_sum(event, config)
        return [Comparison("mass", parent.mass, config.decay_parent.mass)]
