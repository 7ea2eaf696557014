"""Graphviz diagram of the logistics network between factories."""

import graphviz

from engine import Engine
from factory import Factory
from items import Item
from logistics import Bus, ConveyorSpeed, DroneTransport, LogisticsFlux, PipelineCapacity, Train, TruckTransport
from recipes import get_fluid_color, is_fluid

# Edge colours for carriers that are not striped by mark
_TRAIN_COLOR = "saddlebrown"
_TRUCK_COLOR = "darkorange"
_DRONE_COLOR = "purple"


def _get_conveyor_stripe_color(speed: ConveyorSpeed) -> str:
    """Graphviz color string with one black stripe per belt mark.

    Postcondition:
        number of black stripes equals the mark number
        white stripes separate the black ones
        Mk.1: "black", Mk.3: "black:white:black:white:black"

    Args:
        speed: conveyor belt speed

    Returns:
        graphviz color specification string
    """
    return ":".join(["black"] * speed.mark).replace(":", ":white:")


def _get_pipeline_stripe_color(capacity: PipelineCapacity, fluid: Item) -> str:
    """Graphviz color string with the fluid's colour between grey borders.

    Mk.1 gets two fluid stripes, Mk.2 gets five. Items without a fluid
    colour are drawn in grey.
    """
    color = get_fluid_color(fluid) if is_fluid(fluid) else "grey"
    stripes = 2 if capacity is PipelineCapacity.MK1 else 5
    return ":".join(["grey"] + [color] * stripes + ["grey"])


def _format_rate(rate: float) -> str:
    return str(int(rate)) if rate == int(rate) else f"{rate:.2f}"


def _factory_node_id(factory_id: int) -> str:
    return f"factory_{factory_id}"


def _add_factory_node(dot: graphviz.Digraph, factory: Factory) -> None:
    balance = factory.power_balance()
    dot.node(
        _factory_node_id(factory.id),
        f"{factory.name}\n{balance:+.1f} MW",
        shape="box",
        style="filled",
        fillcolor="lightblue" if balance >= 0 else "salmon",
    )


def _flow_edges(line: LogisticsFlux) -> list[tuple[Item, float, str]]:
    """(item, rate, colour) for every flow of a logistics line, in carrier order."""
    transport = line.transport
    if isinstance(transport, Bus):
        edges = [
            (conveyor.item, conveyor.quantity_per_min, _get_conveyor_stripe_color(conveyor.speed))
            for conveyor in transport.conveyors
        ]
        edges.extend(
            (pipeline.item, pipeline.quantity_per_min, _get_pipeline_stripe_color(pipeline.capacity, pipeline.item))
            for pipeline in transport.pipelines
        )
        return edges
    if isinstance(transport, Train):
        return [(wagon.item, wagon.quantity_per_min, _TRAIN_COLOR) for wagon in transport.wagons]
    if isinstance(transport, TruckTransport):
        return [(transport.item, transport.quantity_per_min, _TRUCK_COLOR)]
    if isinstance(transport, DroneTransport):
        return [(transport.item, transport.quantity_per_min, _DRONE_COLOR)]
    raise TypeError(f"Invalid transport type: {type(transport).__name__}")


def render_logistics_network(engine: Engine) -> graphviz.Digraph:
    """Draw every factory and every item flow between them.

    Precondition:
        every logistics line references factories held by engine

    Postcondition:
        one box node per factory, labelled with its name and power balance
        one edge per item flow, labelled "item\\nrate/min" and coloured by carrier
        the engine is not modified

    Args:
        engine: the engine to draw

    Returns:
        graphviz digraph; call .render() or .source on it
    """
    dot = graphviz.Digraph(comment="Logistics Network")
    dot.attr(rankdir="LR")
    for factory in engine.get_all_factories().values():
        _add_factory_node(dot, factory)
    for line in engine.get_all_logistics().values():
        for item, rate, color in _flow_edges(line):
            dot.edge(
                _factory_node_id(line.from_factory),
                _factory_node_id(line.to_factory),
                label=f"{item.value}\n{_format_rate(rate)}/min",
                color=color,
                penwidth="2",
                tooltip=line.transport.transport_id(),
            )
    return dot
