"""Tests for the logistics network diagram"""

from engine import Engine
from items import Item
from logistics import Bus, Conveyor, ConveyorSpeed, DroneTransport, Pipeline, PipelineCapacity
from network_graph import _get_conveyor_stripe_color, _get_pipeline_stripe_color, render_logistics_network


def test_conveyor_stripes():
    """one black stripe per belt mark"""
    assert _get_conveyor_stripe_color(ConveyorSpeed.MK1) == "black"
    assert _get_conveyor_stripe_color(ConveyorSpeed.MK2) == "black:white:black"
    stripes = _get_conveyor_stripe_color(ConveyorSpeed.MK6).split(":")
    assert stripes.count("black") == 6
    assert stripes.count("white") == 5


def test_pipeline_stripes():
    """fluid colour between grey borders"""
    assert _get_pipeline_stripe_color(PipelineCapacity.MK1, Item.WATER) == "grey:#2f7ed8:#2f7ed8:grey"
    mk2 = _get_pipeline_stripe_color(PipelineCapacity.MK2, Item.FUEL).split(":")
    assert mk2[0] == mk2[-1] == "grey"
    assert mk2[1:-1] == ["#e5a029"] * 5


def test_render_logistics_network():
    """factories become nodes, item flows become edges"""
    engine = Engine()
    north = engine.create_factory("North")
    south = engine.create_factory("South")
    bus = Bus(1, "Main").add_conveyor(Conveyor(1, ConveyorSpeed.MK3, Item.IRON_PLATE, 200.0))
    bus.add_pipeline(Pipeline(1, PipelineCapacity.MK1, Item.WATER, 120.5))
    engine.create_logistics_line(north, south, bus)
    engine.create_logistics_line(south, north, DroneTransport(2, Item.COMPUTER, 2.0))

    source = render_logistics_network(engine).source
    print(source)
    assert "factory_1" in source
    assert "factory_2" in source
    assert "North" in source and "South" in source
    assert source.count("factory_1 -> factory_2") == 2
    assert source.count("factory_2 -> factory_1") == 1
    assert "200/min" in source
    assert "120.50/min" in source
    assert "black:white:black:white:black" in source
    assert "#2f7ed8" in source
    assert "DRN-2" in source


def test_render_empty_engine():
    """an empty engine renders an empty graph"""
    source = render_logistics_network(Engine()).source
    assert "->" not in source
