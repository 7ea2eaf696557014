"""Power generators: linear clock scaling for output, fuel and waste."""

from dataclasses import dataclass, field
from enum import Enum

from errors import IncompatibilityError, StructuralError, ValidationError
from items import Item
from production_line import validate_clock_speed


class GeneratorType(Enum):
    """power generator buildings"""

    BIOMASS = "Biomass Burner"
    COAL = "Coal Generator"
    FUEL = "Fuel Generator"
    NUCLEAR = "Nuclear Power Plant"
    GEOTHERMAL = "Geothermal Generator"


# MW at 100% clock speed
_BASE_POWER_OUTPUT = {
    GeneratorType.BIOMASS: 30.0,
    GeneratorType.COAL: 75.0,
    GeneratorType.FUEL: 150.0,
    GeneratorType.NUCLEAR: 2500.0,
    GeneratorType.GEOTHERMAL: 200.0,
}

# items/min for solid fuels, m3/min for liquid fuels, at 100% clock speed
_BASE_FUEL_CONSUMPTION = {
    GeneratorType.BIOMASS: 4.5,
    GeneratorType.COAL: 15.0,
    GeneratorType.FUEL: 4.5,
    GeneratorType.NUCLEAR: 0.025,
    GeneratorType.GEOTHERMAL: 0.0,
}

_COMPATIBLE_FUELS = {
    GeneratorType.BIOMASS: frozenset({
        Item.BIOMASS,
        Item.LEAVES,
        Item.WOOD,
        Item.MYCELIA,
        Item.FLOWER_PETALS,
        Item.BACON_AGARIC,
        Item.PALEBERRY,
    }),
    GeneratorType.COAL: frozenset({Item.COAL, Item.COMPACTED_COAL, Item.PETROLEUM_COKE}),
    GeneratorType.FUEL: frozenset({Item.FUEL, Item.TURBOFUEL, Item.LIQUID_BIOFUEL}),
    GeneratorType.NUCLEAR: frozenset({Item.URANIUM_FUEL_ROD}),
    GeneratorType.GEOTHERMAL: frozenset(),
}

# Higher grade fuels burn less volume for the same output; missing entries are 1.0
_FUEL_MULTIPLIERS = {
    (GeneratorType.COAL, Item.COMPACTED_COAL): 0.8,
    (GeneratorType.COAL, Item.PETROLEUM_COKE): 1.2,
    (GeneratorType.FUEL, Item.TURBOFUEL): 0.25,
    (GeneratorType.FUEL, Item.LIQUID_BIOFUEL): 1.33,
}

# (waste item, items/min at 100% clock speed)
_WASTE = {
    GeneratorType.NUCLEAR: (Item.URANIUM_WASTE, 0.025),
}


def base_power_output(generator_type: GeneratorType) -> float:
    return _BASE_POWER_OUTPUT[generator_type]


def base_fuel_consumption(generator_type: GeneratorType) -> float:
    return _BASE_FUEL_CONSUMPTION[generator_type]


def is_compatible_fuel(generator_type: GeneratorType, fuel: Item) -> bool:
    """Check if a generator type can burn the given fuel."""
    return fuel in _COMPATIBLE_FUELS[generator_type]


def fuel_consumption_multiplier(generator_type: GeneratorType, fuel: Item | None) -> float:
    """Relative fuel volume burned for a fuel in a generator type.

    Precondition:
        fuel is compatible with generator_type, or None for geothermal

    Postcondition:
        returns 0.0 for geothermal generators
        returns 1.0 for fuels without a listed efficiency

    Args:
        generator_type: generator building
        fuel: fuel item

    Returns:
        multiplier applied to the base fuel consumption
    """
    if generator_type is GeneratorType.GEOTHERMAL:
        return 0.0
    return _FUEL_MULTIPLIERS.get((generator_type, fuel), 1.0)


def produces_waste(generator_type: GeneratorType) -> bool:
    return generator_type in _WASTE


@dataclass
class GeneratorGroup:
    """a group of identical generators at the same clock speed"""

    count: int
    clock_speed: float = 100.0

    def __post_init__(self):
        _validate_count(self.count)
        validate_clock_speed(self.clock_speed)

    def power_generation(self, base_power: float) -> float:
        return base_power * (self.clock_speed / 100.0) * self.count

    def fuel_consumption(self, base_consumption: float, fuel_multiplier: float) -> float:
        return base_consumption * fuel_multiplier * (self.clock_speed / 100.0) * self.count

    def waste_production(self, base_waste: float) -> float:
        return base_waste * (self.clock_speed / 100.0) * self.count

    def set_clock_speed(self, clock_speed: float) -> None:
        """Set the clock speed; on error the previous value is kept.

        Raises:
            ValidationError: if clock_speed is outside [0, 250]
        """
        validate_clock_speed(clock_speed)
        self.clock_speed = clock_speed

    def set_number_of_generators(self, count: int) -> None:
        """Set the number of generators; on error the previous value is kept.

        Raises:
            ValidationError: if count is not positive
        """
        _validate_count(count)
        self.count = count


def _validate_count(count: int) -> None:
    if count <= 0:
        raise ValidationError(f"Generator count {count} is invalid. Must be greater than 0")


@dataclass
class PowerGenerator:
    """Power generation system of a factory: one generator type and fuel, many groups.

    Construction checks that the fuel fits the generator type. Geothermal
    generators take no fuel and must be built with PowerGenerator.geothermal().
    """

    id: int
    generator_type: GeneratorType
    fuel_type: Item | None
    groups: list[GeneratorGroup] = field(default_factory=list)

    def __post_init__(self):
        if self.generator_type is GeneratorType.GEOTHERMAL:
            if self.fuel_type is not None:
                raise IncompatibilityError("Geothermal generators do not use fuel")
        elif self.fuel_type is None or not is_compatible_fuel(self.generator_type, self.fuel_type):
            raise IncompatibilityError(
                f"Generator {self.generator_type.value} cannot use fuel "
                f"{self.fuel_type.value if self.fuel_type else None}"
            )

    @classmethod
    def geothermal(cls, generator_id: int) -> "PowerGenerator":
        """Create a geothermal generator (no fuel)."""
        return cls(generator_id, GeneratorType.GEOTHERMAL, None)

    def add_group(self, group: GeneratorGroup) -> None:
        self.groups.append(group)

    def remove_group(self, index: int) -> GeneratorGroup:
        """Remove and return the generator group at index.

        Raises:
            IndexError: if there is no group at index
        """
        if not 0 <= index < len(self.groups):
            raise IndexError(f"Generator group at index {index} not found")
        return self.groups.pop(index)

    def total_power_generation(self) -> float:
        """Total MW generated; linear in clock speed."""
        base_power = base_power_output(self.generator_type)
        return sum(group.power_generation(base_power) for group in self.groups)

    def total_fuel_consumption(self) -> float:
        """Total fuel burned per minute; 0 for geothermal."""
        if self.generator_type is GeneratorType.GEOTHERMAL:
            return 0.0
        base_consumption = base_fuel_consumption(self.generator_type)
        multiplier = fuel_consumption_multiplier(self.generator_type, self.fuel_type)
        return sum(group.fuel_consumption(base_consumption, multiplier) for group in self.groups)

    def waste_production_rate(self) -> float:
        if not produces_waste(self.generator_type):
            return 0.0
        _, base_waste = _WASTE[self.generator_type]
        return sum(group.waste_production(base_waste) for group in self.groups)

    def waste_product(self) -> Item | None:
        if not produces_waste(self.generator_type):
            return None
        return _WASTE[self.generator_type][0]

    def validate(self) -> None:
        """Check fuel compatibility, group ranges, and that there is at least one group.

        Raises:
            IncompatibilityError: if the fuel does not fit the generator type
            StructuralError: if there are no groups
            ValidationError: if a group is out of range
        """
        if self.generator_type is not GeneratorType.GEOTHERMAL and (
            self.fuel_type is None or not is_compatible_fuel(self.generator_type, self.fuel_type)
        ):
            raise IncompatibilityError(
                f"Generator {self.generator_type.value} cannot use fuel "
                f"{self.fuel_type.value if self.fuel_type else None}"
            )
        if not self.groups:
            raise StructuralError("Power generator must have at least one group")
        for group in self.groups:
            _validate_count(group.count)
            validate_clock_speed(group.clock_speed)


@dataclass
class FactoryPowerStats:
    """power statistics of a single factory"""

    factory_id: int
    factory_name: str
    generation: float
    consumption: float
    generator_count: int
    generator_types: list[GeneratorType]
    balance: float = field(init=False)

    def __post_init__(self):
        self.balance = self.generation - self.consumption

    def has_surplus(self) -> bool:
        return self.balance > 0.0

    def has_deficit(self) -> bool:
        return self.balance < 0.0

    def is_balanced(self) -> bool:
        return abs(self.balance) < 1e-9


@dataclass
class PowerStats:
    """power statistics for every factory plus engine-wide totals"""

    total_generation: float
    total_consumption: float
    factory_stats: list[FactoryPowerStats] = field(default_factory=list)
    power_balance: float = field(init=False)

    def __post_init__(self):
        self.power_balance = self.total_generation - self.total_consumption

    def has_surplus(self) -> bool:
        return self.power_balance > 0.0

    def has_deficit(self) -> bool:
        return self.power_balance < 0.0

    def is_balanced(self) -> bool:
        return abs(self.power_balance) < 1e-9
