"""Raw resource extraction: single extractors and pressurized resource wells."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Union

from errors import IncompatibilityError, StructuralError, UnknownReferenceError, ValidationError
from items import Item
from production_line import clock_power_factor, validate_clock_speed


class Purity(IntEnum):
    """resource node purity levels"""

    IMPURE = 0
    NORMAL = 1
    PURE = 2


_PURITY_MULTIPLIERS = [0.5, 1.0, 2.0]  # impure, normal, pure

# Resource well satellites at 100% pressurizer clock, indexed by purity
_WELL_EXTRACTOR_RATES = [30.0, 60.0, 120.0]

PRESSURIZER_BASE_POWER = 150.0  # MW


class ExtractorType(Enum):
    """extraction buildings"""

    MINER_MK1 = "Miner Mk.1"
    MINER_MK2 = "Miner Mk.2"
    MINER_MK3 = "Miner Mk.3"
    WATER_EXTRACTOR = "Water Extractor"
    OIL_EXTRACTOR = "Oil Extractor"
    RESOURCE_WELL_EXTRACTOR = "Resource Well Extractor"


# (base rate per minute for a normal node, base power in MW)
_EXTRACTORS = {
    ExtractorType.MINER_MK1: (60.0, 5.0),
    ExtractorType.MINER_MK2: (120.0, 15.0),
    ExtractorType.MINER_MK3: (240.0, 45.0),
    ExtractorType.WATER_EXTRACTOR: (120.0, 20.0),
    ExtractorType.OIL_EXTRACTOR: (120.0, 40.0),
    # powered by the pressurizer
    ExtractorType.RESOURCE_WELL_EXTRACTOR: (60.0, 0.0),
}

_MINABLE = frozenset({
    Item.IRON_ORE,
    Item.COPPER_ORE,
    Item.LIMESTONE,
    Item.COAL,
    Item.CATERIUM_ORE,
    Item.RAW_QUARTZ,
    Item.SULFUR,
    Item.BAUXITE,
    Item.URANIUM,
    Item.SAM,
})

_EXTRACTABLE = {
    ExtractorType.MINER_MK1: _MINABLE,
    ExtractorType.MINER_MK2: _MINABLE,
    ExtractorType.MINER_MK3: _MINABLE,
    ExtractorType.WATER_EXTRACTOR: frozenset({Item.WATER}),
    ExtractorType.OIL_EXTRACTOR: frozenset({Item.CRUDE_OIL}),
    ExtractorType.RESOURCE_WELL_EXTRACTOR: frozenset({Item.NITROGEN_GAS, Item.CRUDE_OIL, Item.WATER}),
}


def purity_multiplier(purity: Purity) -> float:
    return _PURITY_MULTIPLIERS[purity]


def base_rate(extractor_type: ExtractorType) -> float:
    return _EXTRACTORS[extractor_type][0]


def base_power_consumption(extractor_type: ExtractorType) -> float:
    return _EXTRACTORS[extractor_type][1]


def supports_purity(extractor_type: ExtractorType) -> bool:
    """Check if an extractor's rate depends on node purity (all but water extractors)."""
    return extractor_type is not ExtractorType.WATER_EXTRACTOR


def is_compatible_extractor(extractor_type: ExtractorType, item: Item) -> bool:
    return item in _EXTRACTABLE[extractor_type]


def calculate_extraction_rate(extractor_type: ExtractorType, purity: Purity | None) -> float:
    """Extraction rate of one extractor on one node.

    Precondition:
        purity is None exactly when the extractor does not support purity

    Postcondition:
        returns base_rate x purity multiplier, or base_rate when purity is None

    Args:
        extractor_type: extraction building
        purity: node purity, or None

    Returns:
        items (or m3) per minute
    """
    if purity is None:
        return base_rate(extractor_type)
    return base_rate(extractor_type) * purity_multiplier(purity)


def _check_extractor(extractor_type: ExtractorType, item: Item, purity: Purity | None) -> None:
    """Validate extractor/item compatibility and purity presence.

    Raises:
        IncompatibilityError: if the extractor cannot extract item
        ValidationError: if purity is missing for a purity-aware extractor, or
            given for one that ignores purity
    """
    if not is_compatible_extractor(extractor_type, item):
        raise IncompatibilityError(f"Extractor {extractor_type.value} cannot extract item {item.value}")
    if supports_purity(extractor_type) and purity is None:
        raise ValidationError(f"Extractor {extractor_type.value} requires a purity level")
    if not supports_purity(extractor_type) and purity is not None:
        raise ValidationError(f"Extractor {extractor_type.value} does not use purity levels")


@dataclass
class RawInput:
    """a single extractor on a resource node"""

    id: int
    extractor_type: ExtractorType
    item: Item
    purity: Purity | None = None
    quantity_per_min: float = field(init=False)

    def __post_init__(self):
        _check_extractor(self.extractor_type, self.item, self.purity)
        self.quantity_per_min = calculate_extraction_rate(self.extractor_type, self.purity)

    def power_consumption(self) -> float:
        return base_power_consumption(self.extractor_type)

    def validate(self) -> None:
        _check_extractor(self.extractor_type, self.item, self.purity)


@dataclass
class ResourceWellPressurizer:
    """the powered building at the center of a resource well"""

    id: int
    clock_speed: float = 100.0

    def __post_init__(self):
        validate_clock_speed(self.clock_speed)

    def power_consumption(self) -> float:
        """Power draw in MW, same non-linear law as production machines."""
        return PRESSURIZER_BASE_POWER * clock_power_factor(self.clock_speed)

    def set_clock_speed(self, clock_speed: float) -> None:
        validate_clock_speed(clock_speed)
        self.clock_speed = clock_speed


@dataclass(frozen=True)
class ResourceWellExtractor:
    """an unpowered satellite extractor of a resource well"""

    id: int
    purity: Purity

    def extraction_rate(self, pressurizer_clock_speed: float) -> float:
        return _WELL_EXTRACTOR_RATES[self.purity] * (pressurizer_clock_speed / 100.0)


def _check_unique_extractor_ids(extractors: list[ResourceWellExtractor]) -> None:
    seen = set()
    for extractor in extractors:
        if extractor.id in seen:
            raise ValidationError(f"Extractor with ID {extractor.id} already exists")
        seen.add(extractor.id)


@dataclass
class ResourceWellInput:
    """One pressurizer powering one or more satellite extractors.

    The pressurizer bears the whole power cost; the satellites set the yield.
    quantity_per_min is derived from the satellites and the pressurizer
    clock on every read, and the well always keeps at least one satellite
    with unique ids.
    """

    id: int
    item: Item
    pressurizer: ResourceWellPressurizer
    extractors: list[ResourceWellExtractor]

    def __post_init__(self):
        if not is_compatible_extractor(ExtractorType.RESOURCE_WELL_EXTRACTOR, self.item):
            raise IncompatibilityError(
                f"Extractor {ExtractorType.RESOURCE_WELL_EXTRACTOR.value} cannot extract item {self.item.value}"
            )
        if not self.extractors:
            raise StructuralError("Resource Well system must have at least one extractor")
        _check_unique_extractor_ids(self.extractors)
        self.extractors = list(self.extractors)

    @property
    def extractor_type(self) -> ExtractorType:
        return ExtractorType.RESOURCE_WELL_EXTRACTOR

    @property
    def purity(self) -> None:
        # Purity lives on each satellite
        return None

    @property
    def quantity_per_min(self) -> float:
        return sum(extractor.extraction_rate(self.pressurizer.clock_speed) for extractor in self.extractors)

    def power_consumption(self) -> float:
        return self.pressurizer.power_consumption()

    def set_clock_speed(self, clock_speed: float) -> None:
        """Change the pressurizer clock speed.

        Raises:
            ValidationError: if clock_speed is outside [0, 250]
        """
        self.pressurizer.set_clock_speed(clock_speed)

    def add_extractor(self, extractor: ResourceWellExtractor) -> None:
        """Attach a satellite extractor.

        Raises:
            ValidationError: if a satellite with the same id is already attached
        """
        if any(existing.id == extractor.id for existing in self.extractors):
            raise ValidationError(f"Extractor with ID {extractor.id} already exists")
        self.extractors.append(extractor)

    def remove_extractor(self, extractor_id: int) -> ResourceWellExtractor:
        """Detach a satellite extractor and return it.

        Precondition:
            the well has at least one satellite

        Postcondition:
            on success the satellite is gone
            on error nothing changes

        Args:
            extractor_id: id of the satellite to remove

        Returns:
            the removed satellite

        Raises:
            UnknownReferenceError: if no satellite has extractor_id
            StructuralError: if it is the last satellite
        """
        for index, extractor in enumerate(self.extractors):
            if extractor.id == extractor_id:
                break
        else:
            raise UnknownReferenceError(f"Extractor with ID {extractor_id} not found")
        if len(self.extractors) == 1:
            raise StructuralError("Resource Well system must have at least one extractor")
        return self.extractors.pop(index)

    def validate(self) -> None:
        if not self.extractors:
            raise StructuralError("Resource Well system must have at least one extractor")
        _check_unique_extractor_ids(self.extractors)
        validate_clock_speed(self.pressurizer.clock_speed)


RawInputSource = Union[RawInput, ResourceWellInput]
