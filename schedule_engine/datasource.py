"""
Data sources feeding the schedule engine.

The engine never queries storage itself; it reads already-scoped entity
lists through a ScheduleDataSource. InMemoryDataSource covers tests, the CLI
and callers that load rows themselves.
"""

import json
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from schedule_engine.config import EngineConfig
from schedule_engine.models import (
    Booking,
    CustomSchedule,
    Equipment,
    PlantRoom,
    Property,
    PropertyRule,
    Technician,
    Unit,
)

logger = logging.getLogger(__name__)


class ScheduleDataError(Exception):
    """Raised when snapshot data cannot be read or parsed."""
    pass


class ScheduleDataSource(ABC):
    """Read-only provider of the entities the engine consumes."""

    @abstractmethod
    def get_properties(self) -> List[Property]:
        """Properties of the company, in display order."""

    @abstractmethod
    def get_technicians(self) -> List[Technician]:
        """Technicians known to the company."""

    @abstractmethod
    def get_units(self, property_id: str) -> List[Unit]:
        """Active units of a property."""

    @abstractmethod
    def get_bookings(self, property_id: str) -> List[Booking]:
        """Bookings on the property's units."""

    @abstractmethod
    def get_custom_schedules(self, property_id: str) -> Dict[str, CustomSchedule]:
        """Active custom schedules of the property, keyed by unit id."""

    @abstractmethod
    def get_property_rules(self, property_id: str) -> List[PropertyRule]:
        """Active scheduling rules of a property."""

    @abstractmethod
    def get_plant_rooms(self, property_id: str) -> List[PlantRoom]:
        """Active plant rooms of a property."""

    @abstractmethod
    def get_equipment(self, property_id: str) -> List[Equipment]:
        """Active equipment of a property."""


class InMemoryDataSource(ScheduleDataSource):
    """
    Data source over entity lists held in memory.

    Bookings and custom schedules reference units only; they are attached to
    the property of their unit.
    """

    def __init__(
        self,
        properties: Iterable[Property] = (),
        technicians: Iterable[Technician] = (),
        units: Iterable[Unit] = (),
        bookings: Iterable[Booking] = (),
        custom_schedules: Iterable[CustomSchedule] = (),
        property_rules: Iterable[PropertyRule] = (),
        plant_rooms: Iterable[PlantRoom] = (),
        equipment: Iterable[Equipment] = (),
    ):
        self._properties = list(properties)
        self._technicians = list(technicians)

        self._units: Dict[str, List[Unit]] = defaultdict(list)
        unit_property: Dict[str, str] = {}
        for unit in units:
            self._units[unit.property_id].append(unit)
            unit_property[unit.id] = unit.property_id

        self._bookings: Dict[str, List[Booking]] = defaultdict(list)
        for booking in bookings:
            property_id = unit_property.get(booking.unit_id)
            if property_id is not None:
                self._bookings[property_id].append(booking)

        # Later rows for the same unit replace earlier ones
        self._custom: Dict[str, Dict[str, CustomSchedule]] = defaultdict(dict)
        for schedule in custom_schedules:
            property_id = unit_property.get(schedule.unit_id)
            if property_id is not None and schedule.is_active:
                self._custom[property_id][schedule.unit_id] = schedule

        self._rules: Dict[str, List[PropertyRule]] = defaultdict(list)
        for rule in property_rules:
            self._rules[rule.property_id].append(rule)

        self._plant_rooms: Dict[str, List[PlantRoom]] = defaultdict(list)
        for room in plant_rooms:
            self._plant_rooms[room.property_id].append(room)

        self._equipment: Dict[str, List[Equipment]] = defaultdict(list)
        for item in equipment:
            self._equipment[item.property_id].append(item)

    # -------------------------------------------------------------------------
    # ScheduleDataSource
    # -------------------------------------------------------------------------

    def get_properties(self) -> List[Property]:
        return sorted(self._properties, key=lambda p: p.name)

    def get_technicians(self) -> List[Technician]:
        return list(self._technicians)

    def get_units(self, property_id: str) -> List[Unit]:
        return [u for u in self._units.get(property_id, []) if u.is_active]

    def get_bookings(self, property_id: str) -> List[Booking]:
        return list(self._bookings.get(property_id, []))

    def get_custom_schedules(self, property_id: str) -> Dict[str, CustomSchedule]:
        return dict(self._custom.get(property_id, {}))

    def get_property_rules(self, property_id: str) -> List[PropertyRule]:
        return [r for r in self._rules.get(property_id, []) if r.is_active]

    def get_plant_rooms(self, property_id: str) -> List[PlantRoom]:
        return [r for r in self._plant_rooms.get(property_id, []) if r.is_active]

    def get_equipment(self, property_id: str) -> List[Equipment]:
        return [e for e in self._equipment.get(property_id, []) if e.is_active]

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any], config: Optional[EngineConfig] = None) -> 'InMemoryDataSource':
        """
        Build from raw rows.

        Expected keys (all optional): properties, technicians (profile rows),
        units, bookings, custom_schedules, property_rules, plant_rooms,
        equipment.

        Raises:
            ScheduleDataError: If a row is missing a required field
        """
        config = config or EngineConfig()
        if not isinstance(data, dict):
            raise ScheduleDataError(f"Snapshot must be a mapping, got {type(data).__name__}")

        try:
            technicians = [
                Technician.from_profile(row)
                for row in _rows(data, 'technicians')
                if str(row.get('role') or '').lower() in config.technician_roles
            ]
            custom_schedules = [
                schedule
                for schedule in (CustomSchedule.from_record(row) for row in _rows(data, 'custom_schedules'))
                if schedule is not None
            ]
            source = cls(
                properties=[Property.from_record(row) for row in _rows(data, 'properties')],
                technicians=technicians,
                units=[Unit.from_record(row) for row in _rows(data, 'units')],
                bookings=[Booking.from_record(row) for row in _rows(data, 'bookings')],
                custom_schedules=custom_schedules,
                property_rules=[PropertyRule.from_record(row) for row in _rows(data, 'property_rules')],
                plant_rooms=[PlantRoom.from_record(row) for row in _rows(data, 'plant_rooms')],
                equipment=[Equipment.from_record(row) for row in _rows(data, 'equipment')],
            )
        except KeyError as e:
            raise ScheduleDataError(f"Snapshot row is missing required field {e}") from e

        logger.info(
            f"Loaded snapshot: {len(source._properties)} properties, "
            f"{sum(len(u) for u in source._units.values())} units, "
            f"{sum(len(b) for b in source._bookings.values())} bookings"
        )
        return source

    @classmethod
    def from_file(cls, path: str, config: Optional[EngineConfig] = None) -> 'InMemoryDataSource':
        """
        Load a YAML or JSON snapshot file.

        Raises:
            ScheduleDataError: If the file is missing or cannot be parsed
        """
        snapshot_file = Path(path)
        if not snapshot_file.exists():
            raise ScheduleDataError(f"Snapshot file not found: {snapshot_file}")

        try:
            with open(snapshot_file) as f:
                if snapshot_file.suffix.lower() == '.json':
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ScheduleDataError(f"Failed to read snapshot {snapshot_file}: {e}") from e

        return cls.from_dict(data or {}, config)


def _rows(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    rows = data.get(key) or []
    if not isinstance(rows, list):
        raise ScheduleDataError(f"Snapshot section '{key}' must be a list")
    return [row for row in rows if isinstance(row, dict)]
