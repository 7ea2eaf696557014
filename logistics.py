"""Transport links between factories and the item flows they carry.

Every carrier (bus, train, truck, drone) answers the same questions: which
item flows it carries, its prefixed transport id, its optional name and its
type name. Flows are reported one per conveyor, pipeline or wagon, in
declaration order, and are never merged by item here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from items import Item


@dataclass(frozen=True)
class ItemFlow:
    """one item moving at a fixed rate"""

    item: Item
    quantity_per_min: float


class ConveyorSpeed(Enum):
    """conveyor belt marks and their capacity in items/min"""

    MK1 = 60.0
    MK2 = 120.0
    MK3 = 270.0
    MK4 = 480.0
    MK5 = 780.0
    MK6 = 1200.0

    @property
    def mark(self) -> int:
        return int(self.name[2:])

    def item_per_min(self) -> float:
        return self.value


class PipelineCapacity(Enum):
    """pipeline marks and their capacity in m3/min"""

    MK1 = 300.0
    MK2 = 600.0

    @property
    def mark(self) -> int:
        return int(self.name[2:])

    def m3_per_min(self) -> float:
        return self.value


class WagonType(Enum):
    CARGO = "Cargo"
    FLUID = "Fluid"


@dataclass
class Conveyor:
    line_id: int
    speed: ConveyorSpeed
    item: Item
    quantity_per_min: float


@dataclass
class Pipeline:
    pipeline_id: int
    capacity: PipelineCapacity
    item: Item
    quantity_per_min: float


@dataclass
class Wagon:
    wagon_id: int
    wagon_type: WagonType
    item: Item
    quantity_per_min: float


@dataclass
class Bus:
    """a bundle of conveyors and pipelines running side by side"""

    bus_id: int
    bus_name: str
    conveyors: list[Conveyor] = field(default_factory=list)
    pipelines: list[Pipeline] = field(default_factory=list)

    def add_conveyor(self, conveyor: Conveyor) -> "Bus":
        self.conveyors.append(conveyor)
        return self

    def add_pipeline(self, pipeline: Pipeline) -> "Bus":
        self.pipelines.append(pipeline)
        return self

    def items(self) -> list[ItemFlow]:
        """Conveyor flows first, then pipeline flows, each in declaration order."""
        flows = [ItemFlow(c.item, c.quantity_per_min) for c in self.conveyors]
        flows.extend(ItemFlow(p.item, p.quantity_per_min) for p in self.pipelines)
        return flows

    def transport_id(self) -> str:
        return f"BUS-{self.bus_id}"

    def transport_name(self) -> str | None:
        return self.bus_name

    def transport_type_name(self) -> str:
        return "Bus"


@dataclass
class Train:
    train_id: int
    train_name: str
    wagons: list[Wagon] = field(default_factory=list)

    def add_wagon(self, wagon: Wagon) -> "Train":
        self.wagons.append(wagon)
        return self

    def items(self) -> list[ItemFlow]:
        return [ItemFlow(w.item, w.quantity_per_min) for w in self.wagons]

    def transport_id(self) -> str:
        return f"TRN-{self.train_id}"

    def transport_name(self) -> str | None:
        return self.train_name

    def transport_type_name(self) -> str:
        return "Train"


@dataclass
class TruckTransport:
    truck_id: int
    item: Item
    quantity_per_min: float

    def items(self) -> list[ItemFlow]:
        return [ItemFlow(self.item, self.quantity_per_min)]

    def transport_id(self) -> str:
        return f"TRK-{self.truck_id}"

    def transport_name(self) -> str | None:
        return None

    def transport_type_name(self) -> str:
        return "Truck"


@dataclass
class DroneTransport:
    drone_id: int
    item: Item
    quantity_per_min: float

    def items(self) -> list[ItemFlow]:
        return [ItemFlow(self.item, self.quantity_per_min)]

    def transport_id(self) -> str:
        return f"DRN-{self.drone_id}"

    def transport_name(self) -> str | None:
        return None

    def transport_type_name(self) -> str:
        return "Drone"


TransportType = Union[Bus, Train, TruckTransport, DroneTransport]

# The closed set of carriers; save files and diagrams dispatch on these
TRANSPORT_CLASSES: dict[str, type] = {
    "Bus": Bus,
    "Train": Train,
    "Truck": TruckTransport,
    "Drone": DroneTransport,
}


@dataclass
class LogisticsFlux:
    """a directed transport link from one factory to another"""

    id: int
    from_factory: int
    to_factory: int
    transport: TransportType
    transport_details: str = ""

    def items(self) -> list[ItemFlow]:
        return self.transport.items()

    def total_quantity_per_min(self) -> float:
        return sum(flow.quantity_per_min for flow in self.items())
