"""The engine: every factory, the logistics registry, and global aggregates."""

import logging
from datetime import datetime, timezone

from errors import SnapshotFormatError, UnknownReferenceError, VersionError
from factory import Factory
from items import Item
from logistics import LogisticsFlux, TransportType
from power_generator import FactoryPowerStats, PowerStats
from save_file import SaveFile, decode_factory, decode_logistics_line, encode_factory, encode_logistics_line
from version import ENGINE_VERSION, SaveVersion, check_compatibility

_LOGGER = logging.getLogger("satisflow")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Engine:
    """Owns all factories and the canonical id -> LogisticsFlux registry.

    Factory and logistics ids are assigned from counters that only move
    forward: deleting an entity never frees its id, and loading a snapshot
    continues past the highest loaded id.
    """

    def __init__(self):
        self.factories: dict[int, Factory] = {}
        self.logistics_lines: dict[int, LogisticsFlux] = {}
        self._next_factory_id = 1
        self._next_logistics_id = 1
        self.created_at: str | None = None
        self.game_version: str | None = None

    # ========== Factories ==========

    def create_factory(self, name: str, description: str | None = None) -> int:
        factory_id = self._next_factory_id
        self._next_factory_id += 1
        self.factories[factory_id] = Factory(factory_id, name, description)
        _LOGGER.debug("Created factory %s (%s)", factory_id, name)
        return factory_id

    def get_factory(self, factory_id: int) -> Factory | None:
        return self.factories.get(factory_id)

    def get_factory_mut(self, factory_id: int) -> Factory | None:
        """Same as get_factory; the returned factory may be mutated in place."""
        return self.factories.get(factory_id)

    def get_all_factories(self) -> dict[int, Factory]:
        return self.factories

    def delete_factory(self, factory_id: int) -> Factory:
        """Delete a factory and every logistics line arriving at or leaving it.

        Precondition:
            factory_id names an existing factory

        Postcondition:
            the factory is gone
            no logistics line references factory_id
            the other endpoint of each removed line no longer lists its id

        Args:
            factory_id: id of the factory to delete

        Returns:
            the deleted factory

        Raises:
            UnknownReferenceError: if factory_id is unknown
        """
        if factory_id not in self.factories:
            raise UnknownReferenceError(f"Factory with id {factory_id} does not exist")
        connected = [
            line_id
            for line_id, line in self.logistics_lines.items()
            if factory_id in (line.from_factory, line.to_factory)
        ]
        for line_id in connected:
            self.delete_logistics_line(line_id)
        factory = self.factories.pop(factory_id)
        _LOGGER.debug("Deleted factory %s and %d logistics lines", factory_id, len(connected))
        return factory

    # ========== Logistics ==========

    def create_logistics_line(
        self,
        from_factory: int,
        to_factory: int,
        transport: TransportType,
        transport_details: str = "",
    ) -> int:
        """Link two factories with a transport.

        Postcondition:
            the line is in the registry and its id is appended to the source
            factory's logistics_output and the destination's logistics_input

        Raises:
            UnknownReferenceError: if either factory is unknown; nothing is changed
        """
        for factory_id in (from_factory, to_factory):
            if factory_id not in self.factories:
                raise UnknownReferenceError(f"Factory with id {factory_id} does not exist")
        line_id = self._next_logistics_id
        self._next_logistics_id += 1
        self._register_logistics_line(LogisticsFlux(line_id, from_factory, to_factory, transport, transport_details))
        _LOGGER.debug(
            "Created logistics line %s (%s) from factory %s to %s",
            line_id,
            transport.transport_id(),
            from_factory,
            to_factory,
        )
        return line_id

    def _register_logistics_line(self, line: LogisticsFlux) -> None:
        self.logistics_lines[line.id] = line
        self.factories[line.from_factory].logistics_output.append(line.id)
        self.factories[line.to_factory].logistics_input.append(line.id)

    def get_logistics_line(self, line_id: int) -> LogisticsFlux | None:
        return self.logistics_lines.get(line_id)

    def get_all_logistics(self) -> dict[int, LogisticsFlux]:
        return self.logistics_lines

    def delete_logistics_line(self, line_id: int) -> LogisticsFlux:
        """Remove a logistics line from the registry and from both endpoints.

        Raises:
            UnknownReferenceError: if line_id is unknown
        """
        if line_id not in self.logistics_lines:
            raise UnknownReferenceError(f"Logistics line with id {line_id} does not exist")
        line = self.logistics_lines.pop(line_id)
        source = self.factories.get(line.from_factory)
        if source is not None and line_id in source.logistics_output:
            source.logistics_output.remove(line_id)
        destination = self.factories.get(line.to_factory)
        if destination is not None and line_id in destination.logistics_input:
            destination.logistics_input.remove(line_id)
        _LOGGER.debug("Deleted logistics line %s", line_id)
        return line

    # ========== Aggregates ==========

    def update(self) -> dict[Item, float]:
        """Recompute every factory's items and sum them.

        Returns:
            a new dict of net rate per item over all factories
        """
        global_items: dict[Item, float] = {}
        for factory in self.factories.values():
            for item, quantity in factory.calculate_items(self.logistics_lines).items():
                global_items[item] = global_items.get(item, 0.0) + quantity
        return global_items

    def global_power_stats(self) -> PowerStats:
        total_generation = 0.0
        total_consumption = 0.0
        factory_stats = []
        for factory_id, factory in self.factories.items():
            generation = factory.total_power_generation()
            consumption = factory.total_power_consumption()
            generator_types = []
            for generator in factory.power_generators.values():
                if generator.generator_type not in generator_types:
                    generator_types.append(generator.generator_type)
            factory_stats.append(
                FactoryPowerStats(
                    factory_id=factory_id,
                    factory_name=factory.name,
                    generation=generation,
                    consumption=consumption,
                    generator_count=len(factory.power_generators),
                    generator_types=generator_types,
                )
            )
            total_generation += generation
            total_consumption += consumption
        return PowerStats(total_generation, total_consumption, factory_stats)

    def reset(self) -> None:
        self.factories.clear()
        self.logistics_lines.clear()
        self._next_factory_id = 1
        self._next_logistics_id = 1
        self.created_at = None
        self.game_version = None
        _LOGGER.info("Engine reset")

    # ========== Snapshots ==========

    def save_to_snapshot(self) -> SaveFile:
        """Encode the engine as a SaveFile stamped with the engine version.

        created_at is fixed by the first save (or the loaded snapshot);
        last_modified is refreshed on every save.
        """
        now = _now()
        if self.created_at is None:
            self.created_at = now
        save = SaveFile(
            version=ENGINE_VERSION,
            created_at=self.created_at,
            last_modified=now,
            game_version=self.game_version,
            engine={
                "factories": {str(factory_id): encode_factory(factory) for factory_id, factory in self.factories.items()},
                "logistics_lines": {
                    str(line_id): encode_logistics_line(line) for line_id, line in self.logistics_lines.items()
                },
            },
        )
        _LOGGER.info(
            "Saved snapshot with %d factories and %d logistics lines",
            len(self.factories),
            len(self.logistics_lines),
        )
        return save

    @classmethod
    def load_from_snapshot(cls, save: SaveFile) -> "Engine":
        """Build a new engine from a snapshot.

        Precondition:
            save came from SaveFile.from_json / load_from_file or save_to_snapshot

        Postcondition:
            the version gate has accepted save.version
            every entity was rebuilt through its validating constructor
            id counters continue after the highest loaded ids

        Args:
            save: the snapshot

        Returns:
            the new engine

        Raises:
            InvalidVersionFormatError: if save.version is not MAJOR.MINOR.PATCH
            SaveTooNewError, SaveTooOldError: if the major version differs
            SnapshotFormatError: if an entity is malformed or a logistics line
                references a factory missing from the snapshot
        """
        save_version = SaveVersion.parse(save.version)
        try:
            check_compatibility(save_version)
        except VersionError:
            _LOGGER.info("Rejected snapshot version %s", save_version)
            raise

        engine = cls()
        engine.created_at = save.created_at
        engine.game_version = save.game_version
        for key, data in save.engine.get("factories", {}).items():
            factory = decode_factory(data)
            if str(factory.id) != str(key):
                raise SnapshotFormatError(f"Factory key {key!r} does not match its id {factory.id}")
            if factory.id in engine.factories:
                raise SnapshotFormatError(f"Duplicate factory id {factory.id} in save file")
            engine.factories[factory.id] = factory
        lines = []
        for key, data in save.engine.get("logistics_lines", {}).items():
            line = decode_logistics_line(data)
            if str(line.id) != str(key):
                raise SnapshotFormatError(f"Logistics line key {key!r} does not match its id {line.id}")
            lines.append(line)
        for line in sorted(lines, key=lambda line: line.id):
            if line.id in engine.logistics_lines:
                raise SnapshotFormatError(f"Duplicate logistics line id {line.id} in save file")
            for factory_id in (line.from_factory, line.to_factory):
                if factory_id not in engine.factories:
                    raise SnapshotFormatError(
                        f"Logistics line {line.id} references unknown factory {factory_id}"
                    )
            engine._register_logistics_line(line)
        engine._next_factory_id = max(engine.factories, default=0) + 1
        engine._next_logistics_id = max(engine.logistics_lines, default=0) + 1
        _LOGGER.info(
            "Loaded snapshot version %s with %d factories and %d logistics lines",
            save_version,
            len(engine.factories),
            len(engine.logistics_lines),
        )
        return engine

    def save_to_json(self) -> str:
        return self.save_to_snapshot().to_json()

    @classmethod
    def load_from_json(cls, text: str) -> "Engine":
        return cls.load_from_snapshot(SaveFile.from_json(text))

    def save_to_file(self, path: str) -> None:
        self.save_to_snapshot().save_to_file(path)

    @classmethod
    def load_from_file(cls, path: str) -> "Engine":
        return cls.load_from_snapshot(SaveFile.load_from_file(path))
