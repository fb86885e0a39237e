"""Error types raised by the reaction simulation."""


class ConfigError(ValueError):
    """Invalid reaction configuration. Raised before the event loop starts."""


class MassLookupError(ConfigError):
    """A required nuclide is missing from the mass table."""

    def __init__(self, A: int, Z: int, name: str = ""):
        self.A = A
        self.Z = Z
        self.name = name
        label = f"{name} " if name else ""
        super().__init__(f"Mass not found for {label}(A={A}, Z={Z})")


class PhaseSpaceGenerationFailure(ValueError):
    """Not enough energy to produce the requested final state."""


class NonPositiveDecayQValue(ValueError):
    """Decay Q-value <= 0 for the current event."""

    def __init__(self, q_value: float, parent_name: str = ""):
        self.q_value = q_value
        super().__init__(f"Decay Q-value of {parent_name or 'parent'} is non-positive: {q_value:.4f} MeV")


class ConservationViolation(UserWarning):
    """Initial and final state disagree in invariant mass or four-momentum beyond tolerance."""
