"""Save files: the JSON snapshot of an engine and the codecs for every entity in it.

A snapshot is a plain JSON document:

    {
        "version": "0.1.0",
        "created_at": "...", "last_modified": "...", "game_version": null,
        "engine": {"factories": {"1": {...}}, "logistics_lines": {"1": {...}}}
    }

Items, machine and generator types are written by display name; purity and
conveyor/pipeline marks by member name. Decoding goes through the validating
constructors, so a snapshot that decodes is a valid engine state.
"""

import json
import logging
from dataclasses import dataclass

from errors import SatisflowError, SnapshotFormatError
from factory import Factory
from items import Item, item_by_name
from logistics import (
    TRANSPORT_CLASSES,
    Bus,
    Conveyor,
    ConveyorSpeed,
    DroneTransport,
    LogisticsFlux,
    Pipeline,
    PipelineCapacity,
    Train,
    TransportType,
    TruckTransport,
    Wagon,
    WagonType,
)
from power_generator import GeneratorGroup, GeneratorType, PowerGenerator
from production_line import MachineGroup, ProductionLine, ProductionLineBlueprint, ProductionLineRecipe
from raw_input import (
    ExtractorType,
    Purity,
    RawInput,
    RawInputSource,
    ResourceWellExtractor,
    ResourceWellInput,
    ResourceWellPressurizer,
)

_LOGGER = logging.getLogger("satisflow")

_SAVE_FIELDS = ("version", "created_at", "last_modified", "engine")


@dataclass
class SaveFileSummary:
    """what a save file holds, without decoding its entities"""

    version: str
    created_at: str
    last_modified: str
    factory_count: int
    logistics_count: int


@dataclass
class SaveFile:
    """A versioned engine snapshot.

    engine is the JSON-ready dict {"factories": {...}, "logistics_lines": {...}}
    produced by Engine.save_to_snapshot().
    """

    version: str
    created_at: str
    last_modified: str
    engine: dict
    game_version: str | None = None

    def to_json(self) -> str:
        return json.dumps(
            {
                "version": self.version,
                "created_at": self.created_at,
                "last_modified": self.last_modified,
                "game_version": self.game_version,
                "engine": self.engine,
            },
            indent=2,
        )

    @classmethod
    def from_json(cls, text: str) -> "SaveFile":
        """Parse a save file document.

        Only the envelope is checked here; entities are decoded when the
        snapshot is loaded into an engine.

        Raises:
            SnapshotFormatError: if text is not JSON or lacks a required field
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SnapshotFormatError(f"Invalid save file: {exc}") from exc
        if not isinstance(data, dict):
            raise SnapshotFormatError("Invalid save file: top level must be an object")
        missing = [name for name in _SAVE_FIELDS if name not in data]
        if missing:
            raise SnapshotFormatError(f"Invalid save file: missing {', '.join(missing)}")
        engine = data["engine"]
        if not isinstance(engine, dict) or not isinstance(engine.get("factories", {}), dict) or not isinstance(
            engine.get("logistics_lines", {}), dict
        ):
            raise SnapshotFormatError("Invalid save file: engine must hold factories and logistics_lines objects")
        return cls(
            version=str(data["version"]),
            created_at=str(data["created_at"]),
            last_modified=str(data["last_modified"]),
            engine=engine,
            game_version=data.get("game_version"),
        )

    def save_to_file(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        _LOGGER.info("Saved snapshot version %s to %s", self.version, path)

    @classmethod
    def load_from_file(cls, path: str) -> "SaveFile":
        with open(path, "r", encoding="utf-8") as f:
            save = cls.from_json(f.read())
        _LOGGER.info("Read snapshot version %s from %s", save.version, path)
        return save

    def summary(self) -> SaveFileSummary:
        return SaveFileSummary(
            version=self.version,
            created_at=self.created_at,
            last_modified=self.last_modified,
            factory_count=len(self.engine.get("factories", {})),
            logistics_count=len(self.engine.get("logistics_lines", {})),
        )


# ========== Encoding ==========


def _encode_item(item: Item | None) -> str | None:
    return None if item is None else item.value


def _encode_production_line(line: ProductionLine) -> dict:
    if isinstance(line, ProductionLineBlueprint):
        return {
            "type": "blueprint",
            "id": line.id,
            "name": line.name,
            "description": line.description,
            "production_lines": [_encode_production_line(nested) for nested in line.production_lines],
        }
    return {
        "type": "recipe",
        "id": line.id,
        "name": line.name,
        "description": line.description,
        "recipe": line.recipe,
        "machine_groups": [
            {"count": group.count, "overclock": group.overclock, "augments": group.augments}
            for group in line.machine_groups
        ],
    }


def _encode_raw_input(raw_input: RawInputSource) -> dict:
    if isinstance(raw_input, ResourceWellInput):
        return {
            "type": "resource_well",
            "id": raw_input.id,
            "item": _encode_item(raw_input.item),
            "pressurizer": {
                "id": raw_input.pressurizer.id,
                "clock_speed": raw_input.pressurizer.clock_speed,
            },
            "extractors": [
                {"id": extractor.id, "purity": extractor.purity.name} for extractor in raw_input.extractors
            ],
        }
    return {
        "type": "extractor",
        "id": raw_input.id,
        "extractor_type": raw_input.extractor_type.value,
        "item": _encode_item(raw_input.item),
        "purity": None if raw_input.purity is None else raw_input.purity.name,
    }


def _encode_power_generator(generator: PowerGenerator) -> dict:
    return {
        "id": generator.id,
        "generator_type": generator.generator_type.value,
        "fuel_type": _encode_item(generator.fuel_type),
        "groups": [{"count": group.count, "clock_speed": group.clock_speed} for group in generator.groups],
    }


def encode_factory(factory: Factory) -> dict:
    """Encode a factory and everything it owns; logistics lines are referenced by id."""
    return {
        "id": factory.id,
        "name": factory.name,
        "description": factory.description,
        "production_lines": {
            str(line_id): _encode_production_line(line) for line_id, line in factory.production_lines.items()
        },
        "raw_inputs": {
            str(raw_id): _encode_raw_input(raw_input) for raw_id, raw_input in factory.raw_inputs.items()
        },
        "power_generators": {
            str(gen_id): _encode_power_generator(generator)
            for gen_id, generator in factory.power_generators.items()
        },
        "logistics_input": list(factory.logistics_input),
        "logistics_output": list(factory.logistics_output),
    }


def _encode_transport(transport: TransportType) -> dict:
    if isinstance(transport, Bus):
        return {
            "type": "Bus",
            "bus_id": transport.bus_id,
            "bus_name": transport.bus_name,
            "conveyors": [
                {
                    "line_id": conveyor.line_id,
                    "speed": conveyor.speed.name,
                    "item": _encode_item(conveyor.item),
                    "quantity_per_min": conveyor.quantity_per_min,
                }
                for conveyor in transport.conveyors
            ],
            "pipelines": [
                {
                    "pipeline_id": pipeline.pipeline_id,
                    "capacity": pipeline.capacity.name,
                    "item": _encode_item(pipeline.item),
                    "quantity_per_min": pipeline.quantity_per_min,
                }
                for pipeline in transport.pipelines
            ],
        }
    if isinstance(transport, Train):
        return {
            "type": "Train",
            "train_id": transport.train_id,
            "train_name": transport.train_name,
            "wagons": [
                {
                    "wagon_id": wagon.wagon_id,
                    "wagon_type": wagon.wagon_type.value,
                    "item": _encode_item(wagon.item),
                    "quantity_per_min": wagon.quantity_per_min,
                }
                for wagon in transport.wagons
            ],
        }
    if isinstance(transport, TruckTransport):
        return {
            "type": "Truck",
            "truck_id": transport.truck_id,
            "item": _encode_item(transport.item),
            "quantity_per_min": transport.quantity_per_min,
        }
    if isinstance(transport, DroneTransport):
        return {
            "type": "Drone",
            "drone_id": transport.drone_id,
            "item": _encode_item(transport.item),
            "quantity_per_min": transport.quantity_per_min,
        }
    raise TypeError(f"Invalid transport type: {type(transport).__name__}")


def encode_logistics_line(line: LogisticsFlux) -> dict:
    return {
        "id": line.id,
        "from_factory": line.from_factory,
        "to_factory": line.to_factory,
        "transport": _encode_transport(line.transport),
        "transport_details": line.transport_details,
    }


# ========== Decoding ==========


def _decode_item(name: str | None) -> Item | None:
    return None if name is None else item_by_name(name)


def _decode_purity(name: str | None) -> Purity | None:
    return None if name is None else Purity[name]


def _decode_recipe_line(data: dict) -> ProductionLineRecipe:
    line = ProductionLineRecipe(
        id=int(data["id"]),
        name=data["name"],
        recipe=data["recipe"],
        description=data.get("description"),
    )
    for group in data["machine_groups"]:
        line.add_machine_group(
            MachineGroup(
                count=int(group["count"]),
                overclock=float(group["overclock"]),
                augments=int(group.get("augments", 0)),
            )
        )
    return line


def _decode_production_line(data: dict) -> ProductionLine:
    if data["type"] == "blueprint":
        blueprint = ProductionLineBlueprint(
            id=int(data["id"]),
            name=data["name"],
            description=data.get("description"),
        )
        for nested in data["production_lines"]:
            blueprint.add_production_line(_decode_recipe_line(nested))
        return blueprint
    if data["type"] == "recipe":
        return _decode_recipe_line(data)
    raise ValueError(f"Invalid production line type: {data['type']}")


def _decode_raw_input(data: dict) -> RawInputSource:
    if data["type"] == "resource_well":
        pressurizer = data["pressurizer"]
        return ResourceWellInput(
            id=int(data["id"]),
            item=_decode_item(data["item"]),
            pressurizer=ResourceWellPressurizer(
                id=int(pressurizer["id"]),
                clock_speed=float(pressurizer["clock_speed"]),
            ),
            extractors=[
                ResourceWellExtractor(id=int(extractor["id"]), purity=Purity[extractor["purity"]])
                for extractor in data["extractors"]
            ],
        )
    if data["type"] == "extractor":
        return RawInput(
            id=int(data["id"]),
            extractor_type=ExtractorType(data["extractor_type"]),
            item=_decode_item(data["item"]),
            purity=_decode_purity(data.get("purity")),
        )
    raise ValueError(f"Invalid raw input type: {data['type']}")


def _decode_power_generator(data: dict) -> PowerGenerator:
    generator = PowerGenerator(
        id=int(data["id"]),
        generator_type=GeneratorType(data["generator_type"]),
        fuel_type=_decode_item(data.get("fuel_type")),
    )
    for group in data["groups"]:
        generator.add_group(GeneratorGroup(count=int(group["count"]), clock_speed=float(group["clock_speed"])))
    return generator


def decode_factory(data: dict) -> Factory:
    """Rebuild a factory and everything it owns.

    Postcondition:
        every production line, raw input and generator went through its
        validating constructor and the factory's add_* method
        logistics_input / logistics_output are left empty; the engine
        re-registers them from its logistics lines

    Args:
        data: one entry of the snapshot's "factories" object

    Returns:
        the rebuilt factory

    Raises:
        SnapshotFormatError: if a field is missing or has the wrong shape
        SatisflowError: if a decoded entity fails validation
    """
    try:
        factory = Factory(id=int(data["id"]), name=data["name"], description=data.get("description"))
        for line in data.get("production_lines", {}).values():
            factory.add_production_line(_decode_production_line(line))
        for raw_input in data.get("raw_inputs", {}).values():
            factory.add_raw_input(_decode_raw_input(raw_input))
        for generator in data.get("power_generators", {}).values():
            factory.add_power_generator(_decode_power_generator(generator))
    except SatisflowError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise SnapshotFormatError(f"Invalid factory in save file: {exc}") from exc
    return factory


def _decode_transport(data: dict) -> TransportType:
    kind = data["type"]
    if kind not in TRANSPORT_CLASSES:
        raise ValueError(f"Invalid transport type: {kind}")
    if kind == "Bus":
        bus = Bus(bus_id=int(data["bus_id"]), bus_name=data["bus_name"])
        for conveyor in data.get("conveyors", []):
            bus.add_conveyor(
                Conveyor(
                    line_id=int(conveyor["line_id"]),
                    speed=ConveyorSpeed[conveyor["speed"]],
                    item=_decode_item(conveyor["item"]),
                    quantity_per_min=float(conveyor["quantity_per_min"]),
                )
            )
        for pipeline in data.get("pipelines", []):
            bus.add_pipeline(
                Pipeline(
                    pipeline_id=int(pipeline["pipeline_id"]),
                    capacity=PipelineCapacity[pipeline["capacity"]],
                    item=_decode_item(pipeline["item"]),
                    quantity_per_min=float(pipeline["quantity_per_min"]),
                )
            )
        return bus
    if kind == "Train":
        train = Train(train_id=int(data["train_id"]), train_name=data["train_name"])
        for wagon in data.get("wagons", []):
            train.add_wagon(
                Wagon(
                    wagon_id=int(wagon["wagon_id"]),
                    wagon_type=WagonType(wagon["wagon_type"]),
                    item=_decode_item(wagon["item"]),
                    quantity_per_min=float(wagon["quantity_per_min"]),
                )
            )
        return train
    if kind == "Truck":
        return TruckTransport(
            truck_id=int(data["truck_id"]),
            item=_decode_item(data["item"]),
            quantity_per_min=float(data["quantity_per_min"]),
        )
    return DroneTransport(
        drone_id=int(data["drone_id"]),
        item=_decode_item(data["item"]),
        quantity_per_min=float(data["quantity_per_min"]),
    )


def decode_logistics_line(data: dict) -> LogisticsFlux:
    """Rebuild a logistics line; endpoint ids are checked by the engine.

    Raises:
        SnapshotFormatError: if a field is missing or has the wrong shape
    """
    try:
        return LogisticsFlux(
            id=int(data["id"]),
            from_factory=int(data["from_factory"]),
            to_factory=int(data["to_factory"]),
            transport=_decode_transport(data["transport"]),
            transport_details=data.get("transport_details", ""),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise SnapshotFormatError(f"Invalid logistics line in save file: {exc}") from exc
