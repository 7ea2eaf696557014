"""Production lines: machine groups running one recipe, and blueprints of such lines."""

from dataclasses import dataclass, field
from typing import Union

from errors import StructuralError, ValidationError
from items import Item
from recipes import get_machine, get_recipe

# Power draw grows as clock^log2(5): doubling the clock costs ~2.5x power
POWER_EXPONENT = 1.321928

MIN_CLOCK_SPEED = 0.0
MAX_CLOCK_SPEED = 250.0


def validate_clock_speed(clock_speed: float, label: str = "Clock speed") -> None:
    """Check that a clock speed / overclock percentage is in [0, 250].

    Raises:
        ValidationError: if clock_speed is out of range
    """
    if not MIN_CLOCK_SPEED <= clock_speed <= MAX_CLOCK_SPEED:
        raise ValidationError(
            f"{label} {clock_speed} is invalid. Must be between 0.000 and 250.000"
        )


def clock_power_factor(clock_speed: float) -> float:
    """Power factor for a clock speed percentage: (clock/100)^1.321928."""
    return (clock_speed / 100.0) ** POWER_EXPONENT


@dataclass(frozen=True)
class MachineGroup:
    """N identical machines at one overclock and augment configuration"""

    count: int
    overclock: float = 100.0
    augments: int = 0  # augments (somersloops) per machine

    def __post_init__(self):
        if self.count <= 0:
            raise ValidationError(f"Machine count {self.count} is invalid. Must be greater than 0")
        if self.augments < 0:
            raise ValidationError(f"Augment count {self.augments} is invalid. Must not be negative")
        validate_clock_speed(self.overclock, "Overclock")


def _augment_multiplier(group: MachineGroup, max_augment: int) -> float:
    """Output multiplier granted by a group's augments: 1 + augments / max_augment.

    Precondition:
        group.augments <= max_augment (checked when the group was added)

    Postcondition:
        returns 1.0 for a group without augments
        returns 2.0 when every augment slot is filled

    Args:
        group: machine group
        max_augment: augment slots of the recipe's machine type

    Returns:
        output multiplier >= 1.0
    """
    if group.augments > 0:
        return 1.0 + group.augments / max_augment
    return 1.0


@dataclass
class ProductionLineRecipe:
    """machine groups all running the same recipe"""

    id: int
    name: str
    recipe: str
    description: str | None = None
    machine_groups: list[MachineGroup] = field(default_factory=list)

    def __post_init__(self):
        # Fail fast on names missing from the catalog
        get_recipe(self.recipe)
        self.machine_groups = list(self.machine_groups)
        self.validate()

    @property
    def machine(self) -> str:
        return get_recipe(self.recipe).machine

    def add_machine_group(self, group: MachineGroup) -> None:
        """Add a machine group to the production line.

        Precondition:
            group is a MachineGroup (count > 0 already enforced)

        Postcondition:
            group is appended to machine_groups
            on error, machine_groups is unchanged

        Args:
            group: machine group to add

        Raises:
            ValidationError: if the group carries more augments than the machine
                type allows, or its overclock is outside [0, 250]
        """
        max_augment = get_machine(self.machine).max_augment
        if group.augments > max_augment:
            raise ValidationError(
                f"Cannot add machine group with more augments than the machine type allows "
                f"{group.augments} > {max_augment}"
            )
        validate_clock_speed(group.overclock, "Overclock")
        self.machine_groups.append(group)

    def remove_machine_group(self, index: int) -> MachineGroup:
        """Remove and return the machine group at index.

        Raises:
            IndexError: if there is no group at index
        """
        if not 0 <= index < len(self.machine_groups):
            raise IndexError(f"Machine group at index {index} not found")
        return self.machine_groups.pop(index)

    def total_machines(self) -> int:
        return sum(group.count for group in self.machine_groups)

    def total_augments(self) -> int:
        return sum(group.count * group.augments for group in self.machine_groups)

    def output_rate(self) -> list[tuple[Item, float]]:
        """Output rates, one entry per (recipe output, machine group).

        Postcondition:
            each rate = per-machine rate x overclock/100 x count x augment multiplier
            entries are not merged by item

        Returns:
            list of (item, rate per minute)
        """
        recipe = get_recipe(self.recipe)
        max_augment = get_machine(recipe.machine).max_augment
        result = []
        for item, rate in recipe.outputs.items():
            for group in self.machine_groups:
                machine_output = rate * (group.overclock / 100.0) * group.count
                result.append((item, machine_output * _augment_multiplier(group, max_augment)))
        return result

    def input_rate(self) -> list[tuple[Item, float]]:
        """Input rates, one entry per (recipe input, machine group).

        Augments boost outputs only; inputs scale with overclock and count.
        """
        recipe = get_recipe(self.recipe)
        result = []
        for item, rate in recipe.inputs.items():
            for group in self.machine_groups:
                result.append((item, rate * (group.overclock / 100.0) * group.count))
        return result

    def total_power_consumption(self) -> float:
        """Total power draw in MW.

        Power multiplier = (1 + augments / max_augment)^2
        Power usage = base power x power multiplier x (clock/100)^1.321928, per machine
        """
        machine = get_machine(self.machine)
        total_power = 0.0
        for group in self.machine_groups:
            power_multiplier = _augment_multiplier(group, machine.max_augment) ** 2
            total_power += (
                machine.base_power_mw
                * power_multiplier
                * clock_power_factor(group.overclock)
                * group.count
            )
        return total_power

    def validate(self) -> None:
        """Re-check every group against the recipe's machine type.

        Raises:
            ValidationError: if a group is out of range for this machine
        """
        max_augment = get_machine(self.machine).max_augment
        for group in self.machine_groups:
            if group.augments > max_augment:
                raise ValidationError(
                    f"Machine group has more augments than the machine type allows "
                    f"{group.augments} > {max_augment}"
                )
            validate_clock_speed(group.overclock, "Overclock")


def _merge_rates(rates: list[tuple[Item, float]], result: dict[Item, float]) -> None:
    for item, rate in rates:
        result[item] = result.get(item, 0.0) + rate


@dataclass
class ProductionLineBlueprint:
    """a named bundle of recipe lines that is placed as one unit"""

    id: int
    name: str
    description: str | None = None
    production_lines: list[ProductionLineRecipe] = field(default_factory=list)

    def add_production_line(self, line: ProductionLineRecipe) -> None:
        self.production_lines.append(line)

    def total_machines(self) -> int:
        return sum(line.total_machines() for line in self.production_lines)

    def total_augments(self) -> int:
        return sum(line.total_augments() for line in self.production_lines)

    def output_rate(self) -> list[tuple[Item, float]]:
        """Output rates of all nested lines, summed per item in first-seen order."""
        result: dict[Item, float] = {}
        for line in self.production_lines:
            _merge_rates(line.output_rate(), result)
        return list(result.items())

    def input_rate(self) -> list[tuple[Item, float]]:
        """Input rates of all nested lines, summed per item in first-seen order."""
        result: dict[Item, float] = {}
        for line in self.production_lines:
            _merge_rates(line.input_rate(), result)
        return list(result.items())

    def total_power_consumption(self) -> float:
        return sum(line.total_power_consumption() for line in self.production_lines)

    def validate(self) -> None:
        """Check that the blueprint holds at least one valid recipe line.

        Raises:
            StructuralError: if the blueprint is empty
            ValidationError: if a nested line is invalid
        """
        if not self.production_lines:
            raise StructuralError(f"Blueprint '{self.name}' must contain at least one production line")
        for line in self.production_lines:
            line.validate()


ProductionLine = Union[ProductionLineRecipe, ProductionLineBlueprint]
