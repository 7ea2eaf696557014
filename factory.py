"""A factory: production lines, raw inputs and generators, and its item balance."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from errors import ValidationError
from items import Item
from logistics import LogisticsFlux
from power_generator import PowerGenerator
from production_line import ProductionLine
from raw_input import RawInputSource

_LOGGER = logging.getLogger("satisflow")


@dataclass
class Factory:
    """One production facility.

    The factory owns its production lines, raw inputs and power generators.
    Logistics lines are owned by the engine; the factory only keeps the ids
    of the lines arriving at it (logistics_input) and leaving it
    (logistics_output). items holds the net rate per item from the last
    calculate_items() call.
    """

    id: int
    name: str
    description: str | None = None
    production_lines: dict[int, ProductionLine] = field(default_factory=dict)
    raw_inputs: dict[int, RawInputSource] = field(default_factory=dict)
    power_generators: dict[int, PowerGenerator] = field(default_factory=dict)
    logistics_input: list[int] = field(default_factory=list)
    logistics_output: list[int] = field(default_factory=list)
    items: dict[Item, float] = field(default_factory=dict)

    # ========== Production lines ==========

    def add_production_line(self, line: ProductionLine) -> None:
        """Add a production line.

        Precondition:
            line is a ProductionLineRecipe or ProductionLineBlueprint

        Postcondition:
            line is stored under line.id
            on error production_lines is unchanged

        Raises:
            ValidationError: if the id is already used or a machine group is invalid
            StructuralError: if a blueprint holds no recipe lines
        """
        if line.id in self.production_lines:
            raise ValidationError(f"Production line with id {line.id} already exists")
        line.validate()
        self.production_lines[line.id] = line
        _LOGGER.debug("Factory %s: added production line %s (%s)", self.id, line.id, line.name)

    def remove_production_line(self, line_id: int) -> ProductionLine | None:
        return self.production_lines.pop(line_id, None)

    # ========== Raw inputs ==========

    def add_raw_input(self, raw_input: RawInputSource) -> None:
        """Add a raw input (single extractor or resource well).

        Raises:
            ValidationError: if the id is already used or the purity is inconsistent
            IncompatibilityError: if the extractor cannot extract the item
            StructuralError: if a resource well has no extractors
        """
        if raw_input.id in self.raw_inputs:
            raise ValidationError(f"Raw input with id {raw_input.id} already exists")
        raw_input.validate()
        self.raw_inputs[raw_input.id] = raw_input
        _LOGGER.debug("Factory %s: added raw input %s (%s)", self.id, raw_input.id, raw_input.item.value)

    def remove_raw_input(self, raw_input_id: int) -> RawInputSource | None:
        return self.raw_inputs.pop(raw_input_id, None)

    def get_raw_input(self, raw_input_id: int) -> RawInputSource | None:
        return self.raw_inputs.get(raw_input_id)

    # ========== Power generators ==========

    def add_power_generator(self, generator: PowerGenerator) -> None:
        """Add a power generator.

        Raises:
            ValidationError: if the id is already used or a group is out of range
            IncompatibilityError: if the fuel does not fit the generator type
            StructuralError: if the generator has no groups
        """
        if generator.id in self.power_generators:
            raise ValidationError(f"Power generator with id {generator.id} already exists")
        generator.validate()
        self.power_generators[generator.id] = generator
        _LOGGER.debug(
            "Factory %s: added %s generator %s", self.id, generator.generator_type.value, generator.id
        )

    def remove_power_generator(self, generator_id: int) -> PowerGenerator | None:
        return self.power_generators.pop(generator_id, None)

    def get_power_generator(self, generator_id: int) -> PowerGenerator | None:
        return self.power_generators.get(generator_id)

    # ========== Power ==========

    def total_power_consumption(self) -> float:
        """Power drawn by production lines (MW).

        Raw input and generator power are reported separately and are not part
        of this total.
        """
        return sum(line.total_power_consumption() for line in self.production_lines.values())

    def raw_input_power_consumption(self) -> float:
        """Power drawn by extractors and resource well pressurizers (MW)."""
        return sum(raw_input.power_consumption() for raw_input in self.raw_inputs.values())

    def total_power_generation(self) -> float:
        return sum(generator.total_power_generation() for generator in self.power_generators.values())

    def power_balance(self) -> float:
        return self.total_power_generation() - self.total_power_consumption()

    # ========== Item balance ==========

    def calculate_items(self, logistics_lines: Mapping[int, LogisticsFlux]) -> dict[Item, float]:
        """Recompute the net item balance of the factory.

        Precondition:
            logistics_lines maps ids to lines and contains every id in
            logistics_input and logistics_output

        Postcondition:
            self.items is rebuilt from scratch and returned
            net[item] = incoming - outgoing + raw inputs + production outputs - production inputs
            contributions are summed in a fixed order (incoming logistics,
            outgoing logistics, raw inputs, production lines) so repeated calls
            give identical results

        Args:
            logistics_lines: the engine's logistics registry

        Returns:
            the new items map
        """
        items: dict[Item, float] = {}

        def add(item: Item, quantity: float) -> None:
            items[item] = items.get(item, 0.0) + quantity

        for line_id in self.logistics_input:
            for flow in logistics_lines[line_id].items():
                add(flow.item, flow.quantity_per_min)

        for line_id in self.logistics_output:
            for flow in logistics_lines[line_id].items():
                add(flow.item, -flow.quantity_per_min)

        for raw_input in self.raw_inputs.values():
            add(raw_input.item, raw_input.quantity_per_min)

        for line in self.production_lines.values():
            for item, quantity in line.output_rate():
                add(item, quantity)
            for item, quantity in line.input_rate():
                add(item, -quantity)

        self.items = items
        return items
