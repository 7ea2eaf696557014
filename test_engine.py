"""Tests for the engine: factory registry, logistics registry and aggregates"""

import pytest
from pytest import raises

from engine import Engine
from errors import UnknownReferenceError
from items import Item
from logistics import Bus, Conveyor, ConveyorSpeed, DroneTransport, TruckTransport
from power_generator import GeneratorGroup, GeneratorType, PowerGenerator
from production_line import MachineGroup, ProductionLineRecipe
from raw_input import ExtractorType, Purity, RawInput


def _two_factories():
    engine = Engine()
    mine = engine.create_factory("Mine", "Iron ore outpost")
    works = engine.create_factory("Works")
    engine.get_factory_mut(mine).add_raw_input(
        RawInput(1, ExtractorType.MINER_MK2, Item.IRON_ORE, Purity.NORMAL)
    )
    smelters = ProductionLineRecipe(1, "Ingots", "Iron Ingot")
    smelters.add_machine_group(MachineGroup(4))
    engine.get_factory_mut(works).add_production_line(smelters)
    return engine, mine, works


def test_create_factory_ids():
    """ids are assigned from 1 and never reused"""
    engine = Engine()
    first = engine.create_factory("A")
    second = engine.create_factory("B", "second")
    assert (first, second) == (1, 2)
    assert engine.get_factory(second).description == "second"
    engine.delete_factory(second)
    assert engine.create_factory("C") == 3
    assert engine.get_factory(99) is None
    assert set(engine.get_all_factories()) == {1, 3}


def test_create_logistics_line_registers_ids():
    """a new line is listed on both endpoints"""
    engine, mine, works = _two_factories()
    line_id = engine.create_logistics_line(mine, works, TruckTransport(1, Item.IRON_ORE, 120.0), "road")
    assert engine.get_factory(mine).logistics_output == [line_id]
    assert engine.get_factory(works).logistics_input == [line_id]
    line = engine.get_logistics_line(line_id)
    assert (line.from_factory, line.to_factory, line.transport_details) == (mine, works, "road")
    assert engine.get_all_logistics() == {line_id: line}


def test_create_logistics_line_unknown_factory():
    """unknown endpoints are rejected before anything changes"""
    engine, mine, _ = _two_factories()
    with raises(UnknownReferenceError):
        engine.create_logistics_line(mine, 42, TruckTransport(1, Item.IRON_ORE, 1.0))
    with raises(UnknownReferenceError):
        engine.create_logistics_line(42, mine, TruckTransport(1, Item.IRON_ORE, 1.0))
    assert engine.get_all_logistics() == {}
    assert engine.get_factory(mine).logistics_output == []


def test_update_sums_factories():
    """the global map is the sum of every factory's balance"""
    engine, mine, works = _two_factories()
    engine.create_logistics_line(mine, works, TruckTransport(1, Item.IRON_ORE, 120.0))
    totals = engine.update()
    assert engine.get_factory(mine).items == {Item.IRON_ORE: 0.0}
    assert engine.get_factory(works).items[Item.IRON_INGOT] == 120.0
    assert totals[Item.IRON_ORE] == pytest.approx(0.0)
    assert totals[Item.IRON_INGOT] == pytest.approx(120.0)
    assert engine.update() == totals


def test_update_returns_new_map():
    """callers can mutate the result freely"""
    engine, _, _ = _two_factories()
    totals = engine.update()
    totals.clear()
    assert engine.update()


def test_delete_logistics_line():
    """deleting a line removes it from both endpoints"""
    engine, mine, works = _two_factories()
    line_id = engine.create_logistics_line(mine, works, DroneTransport(1, Item.IRON_ORE, 10.0))
    removed = engine.delete_logistics_line(line_id)
    assert removed.id == line_id
    assert engine.get_logistics_line(line_id) is None
    assert engine.get_factory(mine).logistics_output == []
    assert engine.get_factory(works).logistics_input == []
    with raises(UnknownReferenceError):
        engine.delete_logistics_line(line_id)


def test_delete_factory_cascades():
    """deleting a factory removes every line touching it"""
    engine, mine, works = _two_factories()
    third = engine.create_factory("Depot")
    to_works = engine.create_logistics_line(mine, works, TruckTransport(1, Item.IRON_ORE, 60.0))
    back = engine.create_logistics_line(works, mine, TruckTransport(2, Item.IRON_INGOT, 30.0))
    kept = engine.create_logistics_line(mine, third, TruckTransport(3, Item.IRON_ORE, 60.0))

    engine.delete_factory(works)
    assert engine.get_factory(works) is None
    assert set(engine.get_all_logistics()) == {kept}
    assert to_works not in engine.get_factory(mine).logistics_output
    assert back not in engine.get_factory(mine).logistics_input
    assert engine.get_factory(mine).logistics_output == [kept]
    with raises(UnknownReferenceError):
        engine.delete_factory(works)


def test_global_power_stats():
    """per factory stats plus totals"""
    engine, mine, works = _two_factories()
    engine.get_factory_mut(mine).add_power_generator(
        PowerGenerator(1, GeneratorType.COAL, Item.COAL, [GeneratorGroup(2)])
    )
    engine.get_factory_mut(mine).add_power_generator(
        PowerGenerator(2, GeneratorType.COAL, Item.COMPACTED_COAL, [GeneratorGroup(1)])
    )
    stats = engine.global_power_stats()
    assert stats.total_generation == pytest.approx(225.0)
    assert stats.total_consumption == pytest.approx(16.0)
    assert stats.power_balance == pytest.approx(209.0)
    assert stats.has_surplus()

    by_id = {stat.factory_id: stat for stat in stats.factory_stats}
    assert by_id[mine].generator_count == 2
    assert by_id[mine].generator_types == [GeneratorType.COAL]
    assert by_id[works].has_deficit()
    assert by_id[works].factory_name == "Works"


def test_reset():
    """reset clears everything and restarts ids"""
    engine, mine, works = _two_factories()
    engine.create_logistics_line(
        mine, works, Bus(1, "b").add_conveyor(Conveyor(1, ConveyorSpeed.MK1, Item.IRON_ORE, 60.0))
    )
    engine.reset()
    assert engine.get_all_factories() == {}
    assert engine.get_all_logistics() == {}
    assert engine.create_factory("again") == 1


def test_reset_clears_game_version():
    """nothing from before a reset leaks into the next save"""
    engine, _, _ = _two_factories()
    engine.game_version = "1.0"
    engine.save_to_snapshot()
    engine.reset()
    assert engine.game_version is None
    assert engine.created_at is None
    assert engine.save_to_snapshot().game_version is None
