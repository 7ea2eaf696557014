"""Tests for snapshots: engine round trips, save file envelopes and the version gate"""

import json

import pytest
from pytest import raises

from engine import Engine
from errors import InvalidVersionFormatError, SaveTooNewError, SnapshotFormatError, ValidationError
from items import Item
from logistics import (
    Bus,
    Conveyor,
    ConveyorSpeed,
    DroneTransport,
    Pipeline,
    PipelineCapacity,
    Train,
    TruckTransport,
    Wagon,
    WagonType,
)
from power_generator import GeneratorGroup, GeneratorType, PowerGenerator
from production_line import MachineGroup, ProductionLineBlueprint, ProductionLineRecipe
from raw_input import (
    ExtractorType,
    Purity,
    RawInput,
    ResourceWellExtractor,
    ResourceWellInput,
    ResourceWellPressurizer,
)
from save_file import SaveFile
from version import ENGINE_VERSION


def _sample_engine():
    engine = Engine()
    north = engine.create_factory("North", "oil and plastic")
    south = engine.create_factory("South")

    factory = engine.get_factory_mut(north)
    plastic = ProductionLineRecipe(1, "Plastic", "Plastic", "refinery row")
    plastic.add_machine_group(MachineGroup(2, 150.0, 1))
    plastic.add_machine_group(MachineGroup(1))
    factory.add_production_line(plastic)
    factory.add_raw_input(RawInput(1, ExtractorType.OIL_EXTRACTOR, Item.CRUDE_OIL, Purity.PURE))
    factory.add_raw_input(RawInput(2, ExtractorType.WATER_EXTRACTOR, Item.WATER))
    factory.add_raw_input(
        ResourceWellInput(
            3,
            Item.NITROGEN_GAS,
            ResourceWellPressurizer(1, 150.0),
            [ResourceWellExtractor(1, Purity.NORMAL), ResourceWellExtractor(2, Purity.PURE)],
        )
    )
    factory.add_power_generator(PowerGenerator(1, GeneratorType.FUEL, Item.TURBOFUEL, [GeneratorGroup(3, 120.0)]))
    geothermal = PowerGenerator.geothermal(2)
    geothermal.add_group(GeneratorGroup(1))
    factory.add_power_generator(geothermal)

    factory = engine.get_factory_mut(south)
    blueprint = ProductionLineBlueprint(5, "Rods and screws")
    rods = ProductionLineRecipe(1, "Rods", "Iron Rod")
    rods.add_machine_group(MachineGroup(2))
    screws = ProductionLineRecipe(2, "Screws", "Screw")
    screws.add_machine_group(MachineGroup(3, 90.0))
    blueprint.add_production_line(rods)
    blueprint.add_production_line(screws)
    factory.add_production_line(blueprint)

    bus = Bus(1, "Main").add_conveyor(Conveyor(1, ConveyorSpeed.MK4, Item.PLASTIC, 40.0))
    bus.add_pipeline(Pipeline(1, PipelineCapacity.MK2, Item.HEAVY_OIL_RESIDUE, 20.0))
    engine.create_logistics_line(north, south, bus, "main bus")
    train = Train(2, "Express").add_wagon(Wagon(1, WagonType.CARGO, Item.SCREW, 100.0))
    engine.create_logistics_line(south, north, train)
    engine.create_logistics_line(north, south, TruckTransport(3, Item.CRUDE_OIL, 30.0))
    engine.create_logistics_line(south, north, DroneTransport(4, Item.IRON_ROD, 5.0))
    return engine


def _counts(engine):
    return {
        factory.name: (
            len(factory.production_lines),
            len(factory.raw_inputs),
            len(factory.power_generators),
            sorted(line.name for line in factory.production_lines.values()),
        )
        for factory in engine.get_all_factories().values()
    }


def test_snapshot_round_trip():
    """load(save(engine)) preserves structure and names"""
    engine = _sample_engine()
    loaded = Engine.load_from_snapshot(engine.save_to_snapshot())
    assert len(loaded.get_all_factories()) == len(engine.get_all_factories())
    assert len(loaded.get_all_logistics()) == len(engine.get_all_logistics())
    assert _counts(loaded) == _counts(engine)


def test_json_round_trip_preserves_balances():
    """a reloaded engine computes the same items and power"""
    engine = _sample_engine()
    loaded = Engine.load_from_json(engine.save_to_json())
    assert loaded.update() == pytest.approx(engine.update())
    assert loaded.global_power_stats().power_balance == pytest.approx(engine.global_power_stats().power_balance)
    for factory_id, factory in engine.get_all_factories().items():
        reloaded = loaded.get_factory(factory_id)
        assert reloaded.logistics_input == factory.logistics_input
        assert reloaded.logistics_output == factory.logistics_output

    well = loaded.get_factory(1).raw_inputs[3]
    assert isinstance(well, ResourceWellInput)
    assert well.quantity_per_min == pytest.approx(270.0)
    assert loaded.get_factory(1).power_generators[2].fuel_type is None
    assert isinstance(loaded.get_factory(2).production_lines[5], ProductionLineBlueprint)
    transports = [line.transport for line in loaded.get_all_logistics().values()]
    assert [type(t) for t in transports] == [Bus, Train, TruckTransport, DroneTransport]


def test_ids_continue_after_load():
    """new ids never collide with loaded ones"""
    engine = _sample_engine()
    engine.delete_factory(engine.create_factory("temporary"))
    loaded = Engine.load_from_snapshot(engine.save_to_snapshot())
    assert loaded.create_factory("Next") == 3
    assert loaded.create_logistics_line(1, 3, TruckTransport(9, Item.COAL, 1.0)) == 5


def test_save_file_envelope(tmp_path):
    """file helpers, timestamps and summary"""
    engine = _sample_engine()
    engine.game_version = "1.0"
    first = engine.save_to_snapshot()
    assert first.version == ENGINE_VERSION
    second = engine.save_to_snapshot()
    assert second.created_at == first.created_at

    path = tmp_path / "factory.json"
    second.save_to_file(str(path))
    loaded = SaveFile.load_from_file(str(path))
    assert loaded == second
    summary = loaded.summary()
    assert (summary.factory_count, summary.logistics_count) == (2, 4)
    assert summary.version == ENGINE_VERSION

    engine.save_to_file(str(path))
    reloaded = Engine.load_from_file(str(path))
    assert reloaded.created_at == first.created_at
    assert reloaded.game_version == "1.0"


def test_newer_major_rejected():
    """a save from a future major version is refused"""
    save = _sample_engine().save_to_snapshot()
    major = int(ENGINE_VERSION.split(".")[0])
    save.version = f"{major + 1}.0.0"
    with raises(SaveTooNewError):
        Engine.load_from_snapshot(save)


def test_minor_difference_accepted():
    """minor and patch differences load"""
    save = _sample_engine().save_to_snapshot()
    major = int(ENGINE_VERSION.split(".")[0])
    save.version = f"{major}.99.7"
    assert len(Engine.load_from_snapshot(save).get_all_factories()) == 2


def test_malformed_version_rejected():
    """the version must parse before anything is decoded"""
    save = _sample_engine().save_to_snapshot()
    save.version = "1.2"
    with raises(InvalidVersionFormatError):
        Engine.load_from_snapshot(save)


def test_malformed_json():
    """broken documents raise SnapshotFormatError"""
    with raises(SnapshotFormatError):
        SaveFile.from_json("{not json")
    with raises(SnapshotFormatError):
        SaveFile.from_json("[]")
    with raises(SnapshotFormatError):
        SaveFile.from_json(json.dumps({"version": ENGINE_VERSION}))


def test_malformed_entities():
    """missing fields and dangling references raise SnapshotFormatError"""
    data = json.loads(_sample_engine().save_to_json())
    del data["engine"]["factories"]["1"]["name"]
    with raises(SnapshotFormatError):
        Engine.load_from_json(json.dumps(data))

    data = json.loads(_sample_engine().save_to_json())
    data["engine"]["logistics_lines"]["1"]["transport"]["type"] = "Hyper Tube"
    with raises(SnapshotFormatError):
        Engine.load_from_json(json.dumps(data))

    data = json.loads(_sample_engine().save_to_json())
    del data["engine"]["factories"]["2"]
    with raises(SnapshotFormatError):
        Engine.load_from_json(json.dumps(data))


def test_invalid_entities_rejected_on_load():
    """decoded entities go through validation"""
    data = json.loads(_sample_engine().save_to_json())
    data["engine"]["factories"]["1"]["production_lines"]["1"]["machine_groups"][0]["overclock"] = 400.0
    with raises(ValidationError):
        Engine.load_from_json(json.dumps(data))


def test_map_key_must_match_id():
    """a factory or logistics line stored under another id is refused"""
    data = json.loads(_sample_engine().save_to_json())
    data["engine"]["factories"]["1"]["id"] = 7
    with raises(SnapshotFormatError):
        Engine.load_from_json(json.dumps(data))

    data = json.loads(_sample_engine().save_to_json())
    data["engine"]["logistics_lines"]["2"]["id"] = 9
    with raises(SnapshotFormatError):
        Engine.load_from_json(json.dumps(data))


def test_duplicate_well_extractors_rejected_on_load():
    """a resource well with repeated satellite ids does not load"""
    data = json.loads(_sample_engine().save_to_json())
    extractors = data["engine"]["factories"]["1"]["raw_inputs"]["3"]["extractors"]
    extractors[1]["id"] = extractors[0]["id"]
    with raises(ValidationError):
        Engine.load_from_json(json.dumps(data))
