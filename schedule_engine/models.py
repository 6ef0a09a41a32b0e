"""
Domain models for the task scheduling engine.

Entities are read-only snapshots handed to the engine by the data layer.
Each entity has a ``from_record`` constructor accepting the raw row shape
stored by the property-management backend (``schedule_config``,
``rule_config``, ``service_types`` ...).
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from common.data_utils import (
    convert_to_bool,
    convert_to_date,
    convert_to_int,
    convert_to_list,
    convert_to_str,
    convert_to_str_list,
    convert_to_str_list_map,
)

logger = logging.getLogger(__name__)

CUSTOM_FREQUENCY = 'custom'
RANDOM_SELECTION = 'random_selection'

DEFAULT_SERVICE_TYPE = 'full_service'
DEFAULT_RULE_SERVICE_TYPE = 'test_only'
EQUIPMENT_SERVICE_TYPE = 'equipment_check'
EQUIPMENT_UNIT_TYPE = 'equipment'


class TaskType(Enum):
    """Kind of generated task."""
    SERVICE = 'service'
    PLANT_CHECK = 'plant_check'


class TaskStatus(Enum):
    """Task status. Generated tasks always start as pending."""
    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    SKIPPED = 'skipped'


class Priority(Enum):
    """Task priority."""
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'

    @property
    def rank(self) -> int:
        """Higher rank wins a deduplication conflict."""
        return _PRIORITY_RANK[self]

    @property
    def sort_order(self) -> int:
        """Position in the final task list (high first)."""
        return 3 - _PRIORITY_RANK[self]

    @classmethod
    def for_occupancy(cls, is_occupied: bool) -> 'Priority':
        """High when the unit has guests, medium otherwise."""
        return cls.HIGH if is_occupied else cls.MEDIUM


_PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class TaskSource(Enum):
    """Which evaluator generated a task."""
    DEFAULT = 'default'
    CUSTOM = 'custom'
    ARRIVAL = 'arrival'
    OCCUPANCY_MINIMUM = 'occupancy_minimum'
    RULE = 'rule'
    PLANT_ROOM = 'plant_room'
    EQUIPMENT = 'equipment'


class ScheduleShape(Enum):
    """Storage tag of a custom schedule body."""
    SIMPLE = 'simple'
    COMPLEX = 'complex'


# =============================================================================
# Property-level entities
# =============================================================================

@dataclass(frozen=True)
class Property:
    """A managed property (resort, villa complex, hotel)."""
    id: str
    name: str

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'Property':
        return cls(id=str(record['id']), name=convert_to_str(record.get('name')) or '')

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name}


@dataclass(frozen=True)
class Technician:
    """Company staff member who can be handed tasks."""
    id: str
    name: str
    role: Optional[str] = None

    @classmethod
    def from_profile(cls, record: Dict[str, Any]) -> 'Technician':
        """Build from a profile row (first_name, last_name, role)."""
        first = convert_to_str(record.get('first_name')) or ''
        last = convert_to_str(record.get('last_name')) or ''
        name = convert_to_str(record.get('name')) or f"{first} {last}".strip() or 'Technician'
        return cls(id=str(record['id']), name=name, role=convert_to_str(record.get('role')))

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name}


@dataclass(frozen=True)
class Unit:
    """A serviceable water body (pool or spa variant)."""
    id: str
    property_id: str
    name: str
    unit_type: Optional[str] = None
    water_type: Optional[str] = None
    service_frequency: Optional[str] = None
    is_active: bool = True

    @property
    def is_custom(self) -> bool:
        return self.service_frequency == CUSTOM_FREQUENCY

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'Unit':
        return cls(
            id=str(record['id']),
            property_id=str(record.get('property_id') or ''),
            name=convert_to_str(record.get('name')) or '',
            unit_type=convert_to_str(record.get('unit_type')),
            water_type=convert_to_str(record.get('water_type')),
            service_frequency=convert_to_str(record.get('service_frequency')),
            is_active=convert_to_bool(record.get('is_active', True)),
        )


@dataclass(frozen=True)
class Booking:
    """Guest stay on a unit. Both ends of the interval count as occupied."""
    unit_id: str
    check_in_date: Optional[date]
    check_out_date: Optional[date]
    id: Optional[str] = None
    booking_source: Optional[str] = None

    def covers(self, day: date) -> bool:
        if self.check_in_date is None or self.check_out_date is None:
            return False
        return self.check_in_date <= day <= self.check_out_date

    def arrives_on(self, day: date) -> bool:
        return self.check_in_date is not None and self.check_in_date == day

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'Booking':
        return cls(
            unit_id=str(record['unit_id']),
            check_in_date=convert_to_date(record.get('check_in_date')),
            check_out_date=convert_to_date(record.get('check_out_date')),
            id=convert_to_str(record.get('id')),
            booking_source=convert_to_str(record.get('booking_source')),
        )


# =============================================================================
# Custom schedule bodies
# =============================================================================

@dataclass(frozen=True)
class SimpleScheduleConfig:
    """Single recurrence with one service kind."""
    frequency: Optional[str]
    service_type: Optional[str] = None
    time_preference: Optional[str] = None
    day_preference: Optional[str] = None
    specific_days: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimpleScheduleConfig':
        return cls(
            frequency=convert_to_str(data.get('frequency')),
            service_type=convert_to_str(data.get('service_type')),
            time_preference=convert_to_str(data.get('time_preference')),
            day_preference=convert_to_str(data.get('day_preference')),
            specific_days=tuple(convert_to_str_list(data.get('specific_days'))),
        )


@dataclass(frozen=True)
class ScheduleEntry:
    """One independent recurrence inside a complex schedule."""
    frequency: Optional[str]
    time: Optional[str] = None
    days: Tuple[str, ...] = ()
    service_types: Tuple[str, ...] = ()
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScheduleEntry':
        return cls(
            frequency=convert_to_str(data.get('frequency')),
            time=convert_to_str(data.get('time')),
            days=tuple(convert_to_str_list(data.get('days'))),
            service_types=tuple(convert_to_str_list(data.get('service_types'))),
            name=convert_to_str(data.get('name')),
        )


@dataclass(frozen=True)
class ComplexScheduleConfig:
    """Ordered list of independent recurrence entries."""
    entries: Tuple[ScheduleEntry, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ComplexScheduleConfig':
        entries = []
        for raw in convert_to_list(data.get('schedules')):
            if isinstance(raw, dict):
                entries.append(ScheduleEntry.from_dict(raw))
            else:
                logger.warning(f"Ignoring malformed complex schedule entry: {raw!r}")
        return cls(entries=tuple(entries))


@dataclass(frozen=True)
class OccupancyRules:
    """Booking-driven additions that can sit alongside either schedule shape."""
    on_arrival: bool = False
    weekly_minimum: bool = False
    weekly_day: str = 'monday'
    biweekly_minimum: bool = False
    biweekly_day: str = 'monday'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OccupancyRules':
        return cls(
            on_arrival=convert_to_bool(data.get('on_arrival')),
            weekly_minimum=convert_to_bool(data.get('weekly_minimum')),
            weekly_day=convert_to_str(data.get('weekly_day')) or 'monday',
            biweekly_minimum=convert_to_bool(data.get('biweekly_minimum')),
            biweekly_day=convert_to_str(data.get('biweekly_day')) or 'monday',
        )


ScheduleBody = Union[SimpleScheduleConfig, ComplexScheduleConfig]

_SHAPE_PARSERS = {
    ScheduleShape.SIMPLE: SimpleScheduleConfig.from_dict,
    ScheduleShape.COMPLEX: ComplexScheduleConfig.from_dict,
}


@dataclass(frozen=True)
class CustomSchedule:
    """
    Per-unit schedule used when the unit's frequency is ``custom``.

    ``body`` is the tagged variant selected by ``shape``; resolvers switch on
    ``shape`` only.
    """
    unit_id: str
    shape: ScheduleShape
    body: ScheduleBody
    service_types: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    occupancy_rules: Optional[OccupancyRules] = None
    time_preference: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True

    def service_kind_for(self, bucket: Optional[str], default: str = DEFAULT_SERVICE_TYPE) -> str:
        """First service kind registered for a recurrence bucket."""
        kinds = self.service_types.get(bucket or '') or ()
        return kinds[0] if kinds else default

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> Optional['CustomSchedule']:
        """
        Build from a custom_schedules row.

        Returns None when the shape tag is not one of the known shapes.
        """
        tag = convert_to_str(record.get('schedule_type'))
        try:
            shape = ScheduleShape(tag)
        except ValueError:
            logger.warning(
                f"Custom schedule for unit {record.get('unit_id')} has unknown "
                f"schedule_type '{tag}', ignoring"
            )
            return None

        raw_config = record.get('schedule_config')
        if not isinstance(raw_config, dict):
            raw_config = {}

        raw_occupancy = raw_config.get('occupancy_rules')
        occupancy = OccupancyRules.from_dict(raw_occupancy) if isinstance(raw_occupancy, dict) else None

        service_types = {
            bucket: tuple(kinds)
            for bucket, kinds in convert_to_str_list_map(record.get('service_types')).items()
        }

        return cls(
            unit_id=str(record['unit_id']),
            shape=shape,
            body=_SHAPE_PARSERS[shape](raw_config),
            service_types=service_types,
            occupancy_rules=occupancy,
            time_preference=convert_to_str(raw_config.get('time_preference')),
            name=convert_to_str(record.get('name')),
            description=convert_to_str(record.get('description')),
            is_active=convert_to_bool(record.get('is_active', True)),
        )


# =============================================================================
# Property rules
# =============================================================================

@dataclass(frozen=True)
class RandomSelectionConfig:
    """Body of a random_selection rule."""
    frequency: Optional[str]
    selection_count: Optional[int] = 1
    service_type: Optional[str] = None
    time_preference: Optional[str] = None
    service_types: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    target_unit_types: Tuple[str, ...] = ()
    target_water_types: Tuple[str, ...] = ()
    target_units: Tuple[str, ...] = ()
    limit_to_shared_facilities: bool = False

    def service_kind(self) -> str:
        if self.service_type:
            return self.service_type
        kinds = self.service_types.get(self.frequency or '') or ()
        return kinds[0] if kinds else DEFAULT_RULE_SERVICE_TYPE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RandomSelectionConfig':
        # Builder forms store single-value filters next to the list forms
        unit_types = convert_to_str_list(data.get('target_unit_types')) or \
            convert_to_str_list(data.get('unit_type_filter'))
        water_types = convert_to_str_list(data.get('target_water_types')) or \
            convert_to_str_list(data.get('water_type_filter'))

        return cls(
            frequency=convert_to_str(data.get('frequency')),
            selection_count=convert_to_int(data.get('selection_count')),
            service_type=convert_to_str(data.get('service_type')),
            time_preference=convert_to_str(data.get('time_preference')),
            service_types={
                bucket: tuple(kinds)
                for bucket, kinds in convert_to_str_list_map(data.get('service_types')).items()
            },
            target_unit_types=tuple(unit_types),
            target_water_types=tuple(water_types),
            target_units=tuple(convert_to_str_list(data.get('target_units'))),
            limit_to_shared_facilities=convert_to_bool(data.get('limit_to_shared_facilities')),
        )


@dataclass(frozen=True)
class PropertyRule:
    """
    Property-scoped scheduling rule.

    Column-level target filters take precedence over the ones stored inside
    the rule config when they are non-empty.
    """
    id: str
    property_id: str
    rule_type: str
    config: RandomSelectionConfig
    rule_name: Optional[str] = None
    priority: int = 0
    is_active: bool = True
    target_unit_types: Tuple[str, ...] = ()
    target_water_types: Tuple[str, ...] = ()
    target_units: Tuple[str, ...] = ()

    @property
    def unit_type_filter(self) -> Tuple[str, ...]:
        return self.target_unit_types or self.config.target_unit_types

    @property
    def water_type_filter(self) -> Tuple[str, ...]:
        return self.target_water_types or self.config.target_water_types

    @property
    def unit_id_filter(self) -> Tuple[str, ...]:
        return self.target_units or self.config.target_units

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'PropertyRule':
        raw_config = record.get('rule_config')
        if not isinstance(raw_config, dict):
            raw_config = {}
        return cls(
            id=str(record['id']),
            property_id=str(record.get('property_id') or ''),
            rule_type=convert_to_str(record.get('rule_type')) or RANDOM_SELECTION,
            config=RandomSelectionConfig.from_dict(raw_config),
            rule_name=convert_to_str(record.get('rule_name')),
            priority=convert_to_int(record.get('priority')) or 0,
            is_active=convert_to_bool(record.get('is_active', True)),
            target_unit_types=tuple(convert_to_str_list(record.get('target_unit_types'))),
            target_water_types=tuple(convert_to_str_list(record.get('target_water_types'))),
            target_units=tuple(convert_to_str_list(record.get('target_units'))),
        )


# =============================================================================
# Periodic check targets
# =============================================================================

def _optional_times(value: Any) -> Optional[Tuple[str, ...]]:
    # None means "use defaults"; an explicit empty list means "no times"
    if value is None:
        return None
    return tuple(convert_to_str_list(value))


@dataclass(frozen=True)
class PlantRoom:
    """Plant room with its own check recurrence."""
    id: str
    property_id: str
    name: str
    check_frequency: Optional[str] = None
    check_times: Optional[Tuple[str, ...]] = None
    check_days: Tuple[Union[int, str], ...] = ()
    is_active: bool = True

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'PlantRoom':
        return cls(
            id=str(record['id']),
            property_id=str(record.get('property_id') or ''),
            name=convert_to_str(record.get('name')) or '',
            check_frequency=convert_to_str(record.get('check_frequency')),
            check_times=_optional_times(record.get('check_times')),
            check_days=tuple(convert_to_list(record.get('check_days'))),
            is_active=convert_to_bool(record.get('is_active', True)),
        )


@dataclass(frozen=True)
class Equipment:
    """Plant equipment with an optional maintenance schedule."""
    id: str
    property_id: str
    name: str
    maintenance_frequency: Optional[str] = None
    maintenance_times: Optional[Tuple[str, ...]] = None
    measurement_config: Optional[Dict[str, Any]] = None
    maintenance_scheduled: bool = False
    unit_id: Optional[str] = None
    is_active: bool = True

    @property
    def is_schedulable(self) -> bool:
        """Only measured equipment with maintenance enabled produces tasks."""
        return (
            self.measurement_config is not None
            and self.maintenance_scheduled
            and bool(self.maintenance_frequency)
        )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'Equipment':
        return cls(
            id=str(record['id']),
            property_id=str(record.get('property_id') or ''),
            name=convert_to_str(record.get('name')) or '',
            maintenance_frequency=convert_to_str(record.get('maintenance_frequency')),
            maintenance_times=_optional_times(record.get('maintenance_times')),
            measurement_config=record.get('measurement_config'),
            maintenance_scheduled=convert_to_bool(record.get('maintenance_scheduled')),
            unit_id=convert_to_str(record.get('unit_id')),
            is_active=convert_to_bool(record.get('is_active', True)),
        )


# =============================================================================
# Output
# =============================================================================

@dataclass(frozen=True)
class Task:
    """A generated task. Never stored, recomputed on every run."""
    id: str
    type: TaskType
    property_id: str
    property_name: str
    scheduled_time: str
    priority: Priority
    source: TaskSource
    service_type: Optional[str] = None
    unit_id: Optional[str] = None
    unit_name: Optional[str] = None
    unit_type: Optional[str] = None
    plant_room_id: Optional[str] = None
    plant_room_name: Optional[str] = None
    equipment_id: Optional[str] = None
    is_occupied: bool = False
    status: TaskStatus = TaskStatus.PENDING

    @classmethod
    def for_unit(
        cls,
        task_id: str,
        prop: Property,
        unit: Unit,
        service_type: str,
        scheduled_time: str,
        priority: Priority,
        source: TaskSource,
        is_occupied: bool = False,
    ) -> 'Task':
        """Service task on a unit."""
        return cls(
            id=task_id,
            type=TaskType.SERVICE,
            property_id=prop.id,
            property_name=prop.name,
            unit_id=unit.id,
            unit_name=unit.name,
            unit_type=unit.unit_type,
            service_type=service_type,
            scheduled_time=scheduled_time,
            priority=priority,
            source=source,
            is_occupied=is_occupied,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            'id': self.id,
            'type': self.type.value,
            'property_id': self.property_id,
            'property_name': self.property_name,
            'unit_id': self.unit_id,
            'unit_name': self.unit_name,
            'unit_type': self.unit_type,
            'plant_room_id': self.plant_room_id,
            'plant_room_name': self.plant_room_name,
            'equipment_id': self.equipment_id,
            'service_type': self.service_type,
            'scheduled_time': self.scheduled_time,
            'status': self.status.value,
            'priority': self.priority.value,
            'is_occupied': self.is_occupied,
            'source': self.source.value,
        }

    def __repr__(self):
        target = self.unit_id or self.plant_room_id or self.equipment_id
        return f"<Task({self.id}, {self.type.value}, target={target}, priority={self.priority.value})>"
