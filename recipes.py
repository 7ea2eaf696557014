import json
import os
from collections import defaultdict
from dataclasses import dataclass

from frozendict import frozendict

from items import Item, item_by_name

# All quantities are "per minute" for one machine at 100% clock speed

_DATA_DIR = os.path.dirname(os.path.abspath(__file__))


@dataclass(frozen=True)
class Recipe:
    """a Satisfactory recipe"""

    machine: str
    inputs: frozendict[Item, float]
    outputs: frozendict[Item, float]


@dataclass(frozen=True)
class MachineType:
    """a production building: base power draw and augment (somersloop) slots"""

    name: str
    base_power_mw: float
    max_augment: int


def _load_json(filename: str):
    with open(os.path.join(_DATA_DIR, filename), "r", encoding="utf-8") as f:
        return json.load(f)


_RECIPES: dict[str, dict[str, dict[str, dict[str, float]]]] = _load_json("recipes.json")
_MACHINES: dict[str, dict[str, float]] = _load_json("machines.json")
_FLUIDS: dict[str, str] = _load_json("fluids.json")


_BY_OUTPUT: dict[Item, list[str]] = defaultdict(list)
_BY_MACHINE: dict[str, dict[str, Recipe]] = defaultdict(dict)
_ALL_RECIPES: dict[str, Recipe] = dict()
_RECIPE_NAMES: dict[Recipe, str] = dict()
_MACHINE_TYPES: dict[str, MachineType] = dict()
_FLUID_COLORS: dict[Item, str] = dict()


def _convert_rates(rates: dict[str, float]) -> frozendict[Item, float]:
    """Convert a raw name -> rate mapping into an Item-keyed frozendict.

    Precondition:
        every key of rates is an item display name listed in items.json

    Postcondition:
        returns frozendict with Item keys and float values, in the same order

    Args:
        rates: raw mapping from recipes.json

    Returns:
        frozendict mapping Item -> rate per minute

    Raises:
        KeyError: if a name is not a known item
    """
    return frozendict((item_by_name(name), float(rate)) for name, rate in rates.items())


def _create_recipe_object(machine: str, recipe_data: dict[str, dict[str, float]]) -> Recipe:
    """Create a Recipe object from raw JSON data.

    Precondition:
        machine is a machine listed in machines.json
        recipe_data contains "in" and "out" keys with dict values

    Postcondition:
        returns a Recipe with frozen, Item-keyed inputs/outputs

    Args:
        machine: machine type name
        recipe_data: raw recipe dict with "in" and "out" keys

    Returns:
        Recipe object
    """
    if machine not in _MACHINES:
        raise KeyError(f"Recipe uses unknown machine: {machine}")
    return Recipe(machine, _convert_rates(recipe_data["in"]), _convert_rates(recipe_data["out"]))


def _register_recipe(recipe: Recipe, recipe_name: str) -> None:
    """Register a recipe in the lookup tables.

    Postcondition:
        recipe is registered in _BY_MACHINE, _ALL_RECIPES, _RECIPE_NAMES and,
        for each of its outputs, in _BY_OUTPUT

    Args:
        recipe: Recipe object to register
        recipe_name: name of the recipe
    """
    _BY_MACHINE[recipe.machine][recipe_name] = recipe
    _ALL_RECIPES[recipe_name] = recipe
    _RECIPE_NAMES[recipe] = recipe_name
    for output in recipe.outputs:
        _BY_OUTPUT[output].append(recipe_name)


def _populate_lookups():
    """Initialize all module-level lookup tables from the JSON catalogs.

    Postcondition:
        _MACHINE_TYPES holds one MachineType per machines.json entry
        _ALL_RECIPES, _BY_MACHINE, _BY_OUTPUT, _RECIPE_NAMES hold every recipe
        _FLUID_COLORS maps each fluid Item to its hex color
    """
    for name, data in _MACHINES.items():
        _MACHINE_TYPES[name] = MachineType(name, float(data["power"]), int(data["max_augment"]))

    for machine, recipes in _RECIPES.items():
        for recipe_name, recipe_data in recipes.items():
            _register_recipe(_create_recipe_object(machine, recipe_data), recipe_name)

    for fluid, color in _FLUIDS.items():
        _FLUID_COLORS[item_by_name(fluid)] = color

_populate_lookups()


def get_recipe(recipe_name: str) -> Recipe:
    """Get a recipe by name.

    Args:
        recipe_name: name of the recipe, e.g. "Iron Ingot"

    Returns:
        the Recipe

    Raises:
        KeyError: if the recipe is not in the catalog
    """
    return _ALL_RECIPES[recipe_name]


def get_machine(machine: str) -> MachineType:
    """Get the machine type record for a machine name.

    Raises:
        KeyError: if machine is not in machines.json
    """
    return _MACHINE_TYPES[machine]


def get_load(machine: str) -> float:
    """Get the base power consumption for a given machine type.

    Precondition:
        machine is a non-empty string
        _MACHINE_TYPES is populated

    Postcondition:
        returns the power consumption in MW at 100% clock speed

    Args:
        machine: machine type name

    Returns:
        power consumption in megawatts

    Raises:
        KeyError: if machine is not in the catalog
    """
    return _MACHINE_TYPES[machine].base_power_mw


def get_max_augment(machine: str) -> int:
    """Get how many augment (somersloop) slots a machine type has per machine."""
    return _MACHINE_TYPES[machine].max_augment


def get_all_machines() -> dict[str, MachineType]:
    """Get all machine types by name (a copy)."""
    return _MACHINE_TYPES.copy()


def get_all_recipes_by_machine() -> dict[str, dict[str, Recipe]]:
    """Get all recipes grouped by machine type.

    Postcondition:
        returns a copy of recipes indexed by machine
        modifications to returned dict do not affect _BY_MACHINE

    Returns:
        dict mapping machine name -> dict of (recipe_name -> Recipe)
    """
    return {machine: recipes.copy() for machine, recipes in _BY_MACHINE.items()}


def get_all_recipes() -> dict[str, Recipe]:
    """Get all recipes by name.

    Postcondition:
        returns a shallow copy of all recipes
        modifications to returned dict do not affect _ALL_RECIPES

    Returns:
        dict mapping recipe name -> Recipe object
    """
    return _ALL_RECIPES.copy()


def get_recipes_for(output: Item) -> list[tuple[str, Recipe]]:
    """Get all recipes that produce a given item.

    Args:
        output: item to find recipes for

    Returns:
        list of (recipe_name, Recipe) tuples in catalog order, empty if none
    """
    return [(name, _ALL_RECIPES[name]) for name in _BY_OUTPUT.get(output, [])]


def find_recipe_name(recipe: Recipe) -> str:
    """Find the name of a given Recipe object.

    Raises:
        KeyError: if recipe is not in the catalog
    """
    return _RECIPE_NAMES[recipe]


def get_fluids() -> list[Item]:
    """Get all fluid items."""
    return list(_FLUID_COLORS.keys())


def is_fluid(item: Item) -> bool:
    """Check if an item is a fluid (moved by pipelines rather than conveyors)."""
    return item in _FLUID_COLORS


def get_fluid_color(fluid: Item) -> str:
    """Get the hex color code for a given fluid.

    Args:
        fluid: fluid item

    Returns:
        hex color code as string (e.g., "#2f7ed8")

    Raises:
        KeyError: if fluid is not a fluid
    """
    return _FLUID_COLORS[fluid]
