"""
Reaction configuration.

``ReactionSetup`` collects beam, target, products, excited-state tables,
decay and reconstruction settings in the order an experiment is usually
described, then ``build()`` resolves every rest mass against a
``MassTable`` and returns an immutable ``ReactionConfig`` shared
read-only by all events.

JSON layout accepted by ``setup_from_dict`` / ``load_setup``::

    {
      "beam": {"energy": 142.0, "A": 25, "Z": 13},
      "target": {"A": 2, "Z": 1},
      "resolution": {"energy_loss": 1.0, "straggling": 0.05, "beam_sigma": 0.1,
                     "position": 0.5, "angle_deg": 0.1},
      "products": [{"A": 26, "Z": 14, "name": "Si26"}, {"A": 1, "Z": 0, "name": "n"}],
      "excited_states": [{"A": 26, "Z": 14, "energies": [5.92], "ratios": [1.0]}],
      "decay": {"parent": 0, "products": [{"A": 25, "Z": 13, "name": "Al25"},
                                          {"A": 1, "Z": 1, "name": "p"}]},
      "reconstruction": {"channels": ["parent_mass"], "pair": ["Al25", "p"],
                         "parent": {"A": 26, "Z": 14, "name": "Si26"},
                         "decay_azimuth": "zero"},
      "phase_space": {"unweight": false}
    }
"""
import json
import logging
import math
import numbers
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .conservation import check_nucleon_numbers, q_value
from .exceptions import ConfigError
from .masses import MassTable
from .particles import Nuclide
from .reconstruction.registry import available_channels

logger = logging.getLogger(__name__)

# Same ceiling as the GENBOD reference implementation
MAX_PRODUCTS = 18

AZIMUTH_MODES = ("zero", "measured")


@dataclass(frozen=True)
class Resolution:
    """Experimental resolution and beam-transport parameters."""

    energy_loss: float = 1.0          # MeV, upper edge of uniform degrader loss
    straggling: float = 0.05          # MeV, Gaussian straggling sigma
    beam_sigma: float = 0.05          # MeV, beam energy resolution sigma
    position: float = 0.5             # mm, target position resolution
    angle: float = math.radians(0.1)  # rad, angular resolution


@dataclass(frozen=True)
class Beam:
    energy: float  # nominal kinetic energy, MeV
    nuclide: Nuclide


@dataclass(frozen=True)
class ExcitedStateTable:
    """Excitation energies with branching probabilities normalized to one."""

    energies: Tuple[float, ...]
    probabilities: Tuple[float, ...]

    @classmethod
    def from_branching(cls, energies: Sequence[float], ratios: Sequence[float]) -> "ExcitedStateTable":
        if len(energies) != len(ratios):
            raise ConfigError(
                f"Number of excitation energies ({len(energies)}) must match "
                f"number of branching ratios ({len(ratios)})"
            )
        if not energies:
            raise ConfigError("Excited-state table needs at least one state")
        if any(r < 0 for r in ratios):
            raise ConfigError("Branching ratios must be non-negative")
        total = float(sum(ratios))
        if total <= 0.0:
            raise ConfigError("Branching ratios sum to zero")
        return cls(
            energies=tuple(float(e) for e in energies),
            probabilities=tuple(float(r) / total for r in ratios),
        )

    def __len__(self):
        return len(self.energies)


@dataclass(frozen=True)
class DecayConfig:
    parent_index: int
    products: Tuple[Nuclide, ...]


@dataclass(frozen=True)
class ReconstructionConfig:
    channels: Tuple[str, ...] = ()
    pair: Optional[Tuple[int, int]] = None
    pair_parent: Optional[Nuclide] = None
    decay_azimuth: str = "zero"


@dataclass(frozen=True)
class ReactionConfig:
    beam: Beam
    target: Nuclide
    products: Tuple[Nuclide, ...]
    resolution: Resolution = Resolution()
    excited_states: Mapping[Tuple[int, int], ExcitedStateTable] = field(default_factory=dict)
    decay: Optional[DecayConfig] = None
    reconstruction: ReconstructionConfig = ReconstructionConfig()
    unweight: bool = False

    @property
    def q_value(self) -> float:
        return q_value(self.beam.nuclide.mass, self.target.mass, [p.mass for p in self.products])

    @property
    def decay_parent(self) -> Optional[Nuclide]:
        if self.decay is None:
            return None
        return self.products[self.decay.parent_index]

    def excited_table(self, nuclide: Nuclide) -> Optional[ExcitedStateTable]:
        return self.excited_states.get(nuclide.key)


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------
_Species = Tuple[int, int, str, float]
_ProductRef = Union[int, str]


def _is_index(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


class ReactionSetup:
    """Mutable reaction description; ``build()`` freezes it into a ReactionConfig."""

    def __init__(self):
        self.beam: Optional[Tuple[float, int, int]] = None
        self.target: Optional[Tuple[int, int]] = None
        self.resolution = Resolution()
        self.products: List[_Species] = []
        self.excited_states: Dict[Tuple[int, int], ExcitedStateTable] = {}
        self.decay_index: Optional[int] = None
        self.decay_products: List[_Species] = []
        self.channels: List[str] = []
        self.pair: Optional[Tuple[_ProductRef, _ProductRef]] = None
        self.pair_parent: Optional[Tuple[int, int, str]] = None
        self.decay_azimuth = "zero"
        self.unweight = False

    # -------------------- Beam / target --------------------

    def set_beam(self, energy: float, A: int, Z: int) -> "ReactionSetup":
        self.beam = (float(energy), int(A), int(Z))
        return self

    def set_target(self, A: int, Z: int) -> "ReactionSetup":
        self.target = (int(A), int(Z))
        return self

    def set_experimental_parameters(self, energy_loss: float, straggling: float, beam_sigma: float,
                                    position: float, angle: float) -> "ReactionSetup":
        """Angles in radians, energies in MeV, position in mm."""
        if min(energy_loss, straggling, beam_sigma, position, angle) < 0:
            raise ConfigError("Experimental resolution parameters must be non-negative")
        self.resolution = Resolution(energy_loss, straggling, beam_sigma, position, angle)
        return self

    # -------------------- Products --------------------

    def add_product(self, A: int, Z: int, name: str, excitation_energy: float = 0.0) -> "ReactionSetup":
        if len(self.products) >= MAX_PRODUCTS:
            raise ConfigError(f"At most {MAX_PRODUCTS} reaction products are supported")
        if excitation_energy < 0:
            raise ConfigError(f"Excitation energy of {name} must be non-negative")
        self.products.append((int(A), int(Z), name, float(excitation_energy)))
        if excitation_energy > 0.0:
            logger.info(f"Added product: {name} (A={A}, Z={Z}) with excitation energy {excitation_energy} MeV")
        else:
            logger.info(f"Added product: {name} (A={A}, Z={Z}) - ground state")
        return self

    def set_excited_states(self, A: int, Z: int, energies: Sequence[float],
                           ratios: Sequence[float]) -> "ReactionSetup":
        table = ExcitedStateTable.from_branching(energies, ratios)
        self.excited_states[(int(A), int(Z))] = table
        logger.info(f"Set {len(table)} excited states for nucleus A={A}, Z={Z}")
        for i, (e, r) in enumerate(zip(table.energies, table.probabilities)):
            logger.debug(f"  State {i}: {e} MeV (ratio: {r:.4f})")
        return self

    # -------------------- Decay --------------------

    def enable_decay(self, product_index: int) -> "ReactionSetup":
        if not _is_index(product_index) or not 0 <= product_index < len(self.products):
            raise ConfigError(f"Invalid product index for decay: {product_index!r}")
        self.decay_index = int(product_index)
        logger.info(f"Decay enabled for product: {self.products[product_index][2]}")
        return self

    def add_decay_product(self, A: int, Z: int, name: str) -> "ReactionSetup":
        if self.decay_index is None:
            raise ConfigError("Decay not enabled; call enable_decay() first")
        self.decay_products.append((int(A), int(Z), name, 0.0))
        logger.info(f"Added decay product: {name} (A={A}, Z={Z})")
        return self

    def disable_decay(self) -> "ReactionSetup":
        self.decay_index = None
        self.decay_products = []
        return self

    # -------------------- Reconstruction --------------------

    def enable_reconstruction(self, *channels: str) -> "ReactionSetup":
        known = available_channels()
        for channel in channels:
            if channel not in known:
                raise ConfigError(f"Unknown reconstruction channel '{channel}' (known: {', '.join(known)})")
            if channel not in self.channels:
                self.channels.append(channel)
        return self

    def disable_reconstruction(self, *channels: str) -> "ReactionSetup":
        self.channels = [c for c in self.channels if c not in channels]
        return self

    def select_products_for_reconstruction(self, first: _ProductRef, second: _ProductRef) -> "ReactionSetup":
        """Products may be given by index or by name; resolved at build time."""
        self.pair = (first, second)
        return self

    def set_parent_particle(self, A: int, Z: int, name: str) -> "ReactionSetup":
        self.pair_parent = (int(A), int(Z), name)
        return self

    def set_decay_azimuth(self, mode: str) -> "ReactionSetup":
        if mode not in AZIMUTH_MODES:
            raise ConfigError(f"decay_azimuth must be one of {AZIMUTH_MODES}, got '{mode}'")
        self.decay_azimuth = mode
        return self

    def set_unweighting(self, enabled: bool = True) -> "ReactionSetup":
        self.unweight = bool(enabled)
        return self

    # -------------------- Build --------------------

    def _resolve_product(self, ref: _ProductRef) -> int:
        names = [p[2] for p in self.products]
        if isinstance(ref, str):
            if ref not in names:
                raise ConfigError(f"Product '{ref}' not found (available: {', '.join(names)})")
            # a repeated name selects the last product carrying it
            return len(names) - 1 - names[::-1].index(ref)
        if not _is_index(ref):
            raise ConfigError(f"Product must be given by name or integer index, got {ref!r}")
        if not 0 <= ref < len(self.products):
            raise ConfigError(f"Product index {ref} out of range [0, {len(self.products) - 1}]")
        return int(ref)

    def _resolve_pair(self) -> Optional[Tuple[int, int]]:
        if self.pair is None:
            return None
        i, j = (self._resolve_product(ref) for ref in self.pair)
        if i == j:
            raise ConfigError("Cannot select the same product twice for reconstruction")
        return i, j

    def build(self, masses: MassTable) -> ReactionConfig:
        """Validate, look up every rest mass and freeze the configuration."""
        if self.beam is None or self.target is None:
            raise ConfigError("Beam and target must be set")
        if len(self.products) < 2:
            raise ConfigError("At least two reaction products are required")

        energy, beam_A, beam_Z = self.beam
        target_A, target_Z = self.target
        check_nucleon_numbers(
            (beam_A, beam_Z), (target_A, target_Z), [(p[0], p[1]) for p in self.products]
        )

        beam = Beam(energy, Nuclide(beam_A, beam_Z, "beam", masses.require(beam_A, beam_Z, "beam")))
        target = Nuclide(target_A, target_Z, "target", masses.require(target_A, target_Z, "target"))
        products = tuple(
            Nuclide(A, Z, name, masses.require(A, Z, name), ex) for A, Z, name, ex in self.products
        )

        decay = None
        if self.decay_index is not None:
            if len(self.decay_products) < 2:
                raise ConfigError("A decay needs at least two decay products")
            if len(self.decay_products) > MAX_PRODUCTS:
                raise ConfigError(f"At most {MAX_PRODUCTS} decay products are supported")
            decay = DecayConfig(
                parent_index=self.decay_index,
                products=tuple(Nuclide(A, Z, name, masses.require(A, Z, name))
                               for A, Z, name, _ in self.decay_products),
            )

        for channel in ("parent_energy", "parent_mass"):
            if channel in self.channels and decay is None:
                raise ConfigError(f"Reconstruction channel '{channel}' requires a decay configuration")

        pair = self._resolve_pair()
        pair_parent = None
        if "selected_pair" in self.channels:
            if pair is None:
                raise ConfigError("Pair reconstruction enabled without selected products")
            if self.pair_parent is not None:
                A, Z, name = self.pair_parent
            else:
                first, second = products[pair[0]], products[pair[1]]
                A, Z = first.A + second.A, first.Z + second.Z
                name = f"Parent_{first.name}_{second.name}"
            pair_parent = Nuclide(A, Z, name, masses.require(A, Z, name))

        config = ReactionConfig(
            beam=beam,
            target=target,
            products=products,
            resolution=self.resolution,
            excited_states=MappingProxyType(dict(self.excited_states)),
            decay=decay,
            reconstruction=ReconstructionConfig(
                channels=tuple(self.channels),
                pair=pair,
                pair_parent=pair_parent,
                decay_azimuth=self.decay_azimuth,
            ),
            unweight=self.unweight,
        )
        logger.info(f"Reaction configured: Q-value = {config.q_value:.3f} MeV, {len(products)} products")
        return config


# ---------------------------------------------------------------------------
# Dict / JSON loading
# ---------------------------------------------------------------------------
def _species(entry: Mapping, what: str) -> Tuple[int, int, str]:
    try:
        A, Z = int(entry["A"]), int(entry["Z"])
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"{what} needs integer 'A' and 'Z': {entry!r}") from e
    return A, Z, str(entry.get("name", f"A{A}Z{Z}"))


def setup_from_dict(data: Mapping) -> ReactionSetup:
    """Translate a parsed JSON configuration into a ReactionSetup."""
    setup = ReactionSetup()
    try:
        beam = data["beam"]
        setup.set_beam(float(beam["energy"]), int(beam["A"]), int(beam["Z"]))
        target = data["target"]
        setup.set_target(int(target["A"]), int(target["Z"]))
    except KeyError as e:
        raise ConfigError(f"Missing configuration key: {e}") from e

    res = data.get("resolution")
    if res:
        defaults = Resolution()
        angle = math.radians(res["angle_deg"]) if "angle_deg" in res else res.get("angle", defaults.angle)
        setup.set_experimental_parameters(
            float(res.get("energy_loss", defaults.energy_loss)),
            float(res.get("straggling", defaults.straggling)),
            float(res.get("beam_sigma", defaults.beam_sigma)),
            float(res.get("position", defaults.position)),
            float(angle),
        )

    for entry in data.get("products", []):
        A, Z, name = _species(entry, "Product")
        setup.add_product(A, Z, name, float(entry.get("excitation_energy", 0.0)))

    for entry in data.get("excited_states", []):
        A, Z, _ = _species(entry, "Excited-state table")
        setup.set_excited_states(A, Z, entry.get("energies", []), entry.get("ratios", []))

    decay = data.get("decay")
    if decay:
        if "parent" not in decay:
            raise ConfigError("Decay configuration needs a 'parent' product index")
        setup.enable_decay(decay["parent"])
        for entry in decay.get("products", []):
            setup.add_decay_product(*_species(entry, "Decay product"))

    reco = data.get("reconstruction", {})
    setup.enable_reconstruction(*reco.get("channels", []))
    if "pair" in reco:
        pair = reco["pair"]
        if len(pair) != 2:
            raise ConfigError("'pair' must name exactly two products")
        setup.select_products_for_reconstruction(pair[0], pair[1])
    if "parent" in reco:
        setup.set_parent_particle(*_species(reco["parent"], "Reconstruction parent"))
    if "decay_azimuth" in reco:
        setup.set_decay_azimuth(reco["decay_azimuth"])

    setup.set_unweighting(bool(data.get("phase_space", {}).get("unweight", False)))
    return setup


def load_setup(path: Union[str, Path]) -> ReactionSetup:
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Cannot parse configuration {path}: {e}") from e
    return setup_from_dict(data)
