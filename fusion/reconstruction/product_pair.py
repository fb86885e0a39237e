from .base import Comparison, ReconstructionChannel


class SelectedPairReconstruction(ReconstructionChannel):
    """
    Treat two reaction products as the breakup of a notional parent.

    The reference mass is the configured parent nuclide (by default the
    nuclide with the summed A and Z); the reference energy is the sum of
    the two products' kinetic energies.
    """

    name = "selected_pair"
    description = "Mass and kinetic energy of a notional parent of two products"

    def reconstruct(self, event, config):
        i, j = config.reconstruction.pair
        first, second = event.products[i], event.products[j]

        parent = first.fourvec + second.fourvec
        mass = parent.mass
        return [
            Comparison("mass", mass, config.reconstruction.pair_parent.mass),
            Comparison("energy", parent.E - mass, first.kinetic_energy + second.kinetic_energy),
        ]
