"""
Schedule Engine - builds the day's task list across properties.

Entity data is loaded up front, each property is resolved on a worker pool,
and the per-property slices are merged sequentially by the TaskAggregator.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Union

from schedule_engine.aggregator import TaskAggregator
from schedule_engine.config import EngineConfig
from schedule_engine.datasource import ScheduleDataSource
from schedule_engine.models import (
    Booking,
    CustomSchedule,
    Equipment,
    PlantRoom,
    Property,
    PropertyRule,
    Task,
    Technician,
    Unit,
)
from schedule_engine.occupancy import OccupancyIndex
from schedule_engine.periodic_checks import PeriodicCheckScheduler
from schedule_engine.property_rules import PropertyRuleEngine
from schedule_engine.unit_resolver import UnitScheduleResolver
from common.date_utils import parse_date_string

logger = logging.getLogger(__name__)

ALL_PROPERTIES = 'all'


@dataclass
class PropertySnapshot:
    """Everything needed to resolve one property, already in memory."""
    property: Property
    units: List[Unit] = field(default_factory=list)
    bookings: List[Booking] = field(default_factory=list)
    custom_schedules: Dict[str, CustomSchedule] = field(default_factory=dict)
    rules: List[PropertyRule] = field(default_factory=list)
    plant_rooms: List[PlantRoom] = field(default_factory=list)
    equipment: List[Equipment] = field(default_factory=list)


@dataclass
class ScheduleResult:
    """Ordered tasks plus the lookups callers render alongside them."""
    date: date
    properties: List[Property]
    technicians: List[Technician]
    tasks: List[Task]
    duplicates_removed: int = 0
    duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            'date': self.date.isoformat(),
            'properties': [p.to_dict() for p in self.properties],
            'technicians': [t.to_dict() for t in self.technicians],
            'tasks': [t.to_dict() for t in self.tasks],
        }


class ScheduleEngine:
    """
    Main engine that produces the daily task list.

    Responsibilities:
    - Select the properties in scope
    - Load each property's entities from the data source
    - Resolve properties concurrently (pure, read-only work)
    - Merge and order the results in a single thread
    """

    def __init__(self, data_source: ScheduleDataSource, config: Optional[EngineConfig] = None):
        """
        Initialize schedule engine.

        Args:
            data_source: Provider of properties, units, bookings, rules, ...
            config: Engine configuration
        """
        self.data_source = data_source
        self.config = config or EngineConfig()

        self.unit_resolver = UnitScheduleResolver(self.config)
        self.rule_engine = PropertyRuleEngine(self.config)
        self.check_scheduler = PeriodicCheckScheduler(self.config)

    def generate(
        self,
        day: Union[date, str, None] = None,
        property_id: Optional[str] = None,
    ) -> ScheduleResult:
        """
        Generate the task list for a date.

        Args:
            day: Date or YYYY-MM-DD string (default: today)
            property_id: Restrict to one property; None, '' or 'all' for every property

        Returns:
            ScheduleResult with ordered tasks

        Raises:
            ValueError: If day is a string that is not a valid date
        """
        started = time.monotonic()
        day = _coerce_date(day)

        properties = self.data_source.get_properties()
        technicians = self.data_source.get_technicians()
        targets = self.target_properties(properties, property_id)

        snapshots = [self.load_snapshot(prop) for prop in targets]
        slices = self._resolve_all(snapshots, day)

        aggregator = TaskAggregator(day)
        for task_slice in slices:
            aggregator.extend(task_slice)
        tasks = aggregator.results()

        result = ScheduleResult(
            date=day,
            properties=properties,
            technicians=technicians,
            tasks=tasks,
            duplicates_removed=aggregator.duplicate_count,
            duration_seconds=round(time.monotonic() - started, 3),
        )

        logger.info(
            f"Generated {len(tasks)} tasks for {day.isoformat()} across "
            f"{len(targets)} properties ({result.duplicates_removed} duplicates removed, "
            f"{result.duration_seconds}s)"
        )
        return result

    @staticmethod
    def target_properties(properties: List[Property], property_id: Optional[str]) -> List[Property]:
        """Properties in scope for a run."""
        if not property_id or property_id == ALL_PROPERTIES:
            return list(properties)
        return [p for p in properties if p.id == property_id]

    def load_snapshot(self, prop: Property) -> PropertySnapshot:
        """Read a property's entities from the data source."""
        return PropertySnapshot(
            property=prop,
            units=self.data_source.get_units(prop.id),
            bookings=self.data_source.get_bookings(prop.id),
            custom_schedules=self.data_source.get_custom_schedules(prop.id),
            rules=self.data_source.get_property_rules(prop.id),
            plant_rooms=self.data_source.get_plant_rooms(prop.id),
            equipment=self.data_source.get_equipment(prop.id),
        )

    def resolve_property(self, snapshot: PropertySnapshot, day: date) -> List[Task]:
        """
        Candidate tasks for one property, in source order: unit schedules,
        property rules, plant rooms, equipment.
        """
        prop = snapshot.property
        occupancy = OccupancyIndex.build(snapshot.bookings, day)
        claimed = self.rule_engine.claimed_unit_types(snapshot.rules)

        tasks = self.unit_resolver.resolve(
            prop,
            snapshot.units,
            day,
            occupancy,
            custom_schedules=snapshot.custom_schedules,
            claimed_unit_types=claimed,
        )
        tasks.extend(self.rule_engine.evaluate(prop, snapshot.units, snapshot.rules, day, occupancy))
        tasks.extend(self.check_scheduler.schedule(prop, snapshot.plant_rooms, snapshot.equipment, day))

        logger.debug(
            f"Property {prop.id}: {len(tasks)} candidate tasks "
            f"({len(occupancy.occupied)} occupied, {len(occupancy.arriving)} arriving)"
        )
        return tasks

    def _resolve_all(self, snapshots: List[PropertySnapshot], day: date) -> List[List[Task]]:
        if not snapshots:
            return []

        workers = self.config.worker_count(len(snapshots))
        if workers == 1:
            return [self.resolve_property(s, day) for s in snapshots]

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='schedule') as executor:
            futures = [executor.submit(self.resolve_property, s, day) for s in snapshots]
            slices = []
            for snapshot, future in zip(snapshots, futures):
                try:
                    slices.append(future.result())
                except Exception:
                    logger.exception(f"Failed to resolve property {snapshot.property.id}")
                    raise
            return slices


def _coerce_date(day: Union[date, str, None]) -> date:
    if day is None:
        return date.today()
    if isinstance(day, str):
        return parse_date_string(day)
    return day
