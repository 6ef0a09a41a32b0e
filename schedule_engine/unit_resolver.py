"""
Per-unit schedule resolution.

Turns each unit's default recurrence or custom schedule into candidate
service tasks for one date.
"""

import logging
from datetime import date
from typing import Dict, FrozenSet, Iterable, List, Optional

from schedule_engine.config import EngineConfig
from schedule_engine.frequency import is_biweekly_week, matches_frequency
from schedule_engine.models import (
    DEFAULT_SERVICE_TYPE,
    ComplexScheduleConfig,
    CustomSchedule,
    Priority,
    Property,
    ScheduleShape,
    SimpleScheduleConfig,
    Task,
    TaskSource,
    Unit,
)
from schedule_engine.occupancy import OccupancyIndex
from common.date_utils import normalize_weekday, weekday_number

logger = logging.getLogger(__name__)


class UnitScheduleResolver:
    """
    Resolves unit schedules into service tasks.

    Order of evaluation per unit:
    1. Units of a kind claimed by a property rule only get arrival tasks
    2. ``custom`` units use their CustomSchedule (none -> no tasks)
    3. Everything else uses the unit's default recurrence
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def resolve(
        self,
        prop: Property,
        units: Iterable[Unit],
        day: date,
        occupancy: OccupancyIndex,
        custom_schedules: Optional[Dict[str, CustomSchedule]] = None,
        claimed_unit_types: FrozenSet[str] = frozenset(),
    ) -> List[Task]:
        """
        Resolve service tasks for every active unit of a property.

        Args:
            prop: Property being scheduled
            units: Units of the property
            day: Date being scheduled
            occupancy: Occupancy lookups for the property and date
            custom_schedules: unit_id -> CustomSchedule
            claimed_unit_types: Unit kinds whose routine service comes from property rules

        Returns:
            List of candidate tasks
        """
        custom_schedules = custom_schedules or {}
        tasks: List[Task] = []

        for unit in units:
            if not unit.is_active:
                continue
            schedule = custom_schedules.get(unit.id) if unit.is_custom else None

            if unit.unit_type in claimed_unit_types:
                arrival = self._arrival_task(prop, unit, schedule, day, occupancy)
                if arrival is not None:
                    tasks.append(arrival)
                continue

            tasks.extend(self.resolve_unit(prop, unit, day, occupancy, schedule))

        return tasks

    def resolve_unit(
        self,
        prop: Property,
        unit: Unit,
        day: date,
        occupancy: OccupancyIndex,
        schedule: Optional[CustomSchedule] = None,
    ) -> List[Task]:
        """Resolve tasks for a single unit."""
        if unit.is_custom:
            if schedule is None:
                logger.debug(f"Unit {unit.id} is custom but has no custom schedule, skipping")
                return []
            return self._resolve_custom(prop, unit, schedule, day, occupancy)

        return self._resolve_default(prop, unit, day, occupancy)

    # -------------------------------------------------------------------------
    # Default recurrence
    # -------------------------------------------------------------------------

    def _resolve_default(
        self,
        prop: Property,
        unit: Unit,
        day: date,
        occupancy: OccupancyIndex,
    ) -> List[Task]:
        is_occupied = occupancy.is_occupied(unit.id)
        if not unit.service_frequency:
            return []
        if not matches_frequency(unit.service_frequency, day, is_occupied=is_occupied):
            return []

        return [Task.for_unit(
            task_id=f"service-{unit.id}-{day.isoformat()}",
            prop=prop,
            unit=unit,
            service_type=DEFAULT_SERVICE_TYPE,
            scheduled_time=self.config.default_service_time,
            priority=Priority.for_occupancy(is_occupied),
            source=TaskSource.DEFAULT,
            is_occupied=is_occupied,
        )]

    # -------------------------------------------------------------------------
    # Custom schedules
    # -------------------------------------------------------------------------

    def _resolve_custom(
        self,
        prop: Property,
        unit: Unit,
        schedule: CustomSchedule,
        day: date,
        occupancy: OccupancyIndex,
    ) -> List[Task]:
        if schedule.shape is ScheduleShape.SIMPLE:
            tasks = self._resolve_simple(prop, unit, schedule, day, occupancy)
        elif schedule.shape is ScheduleShape.COMPLEX:
            tasks = self._resolve_complex(prop, unit, schedule, day, occupancy)
        else:
            tasks = []

        arrival = self._arrival_task(prop, unit, schedule, day, occupancy)
        if arrival is not None:
            tasks.append(arrival)

        if not tasks:
            minimum = self._minimum_task(prop, unit, schedule, day, occupancy)
            if minimum is not None:
                tasks.append(minimum)

        return tasks

    def _resolve_simple(
        self,
        prop: Property,
        unit: Unit,
        schedule: CustomSchedule,
        day: date,
        occupancy: OccupancyIndex,
    ) -> List[Task]:
        body: SimpleScheduleConfig = schedule.body
        is_occupied = occupancy.is_occupied(unit.id)

        if not matches_frequency(
            body.frequency,
            day,
            preferred_day=body.day_preference,
            explicit_days=body.specific_days,
            is_occupied=is_occupied,
        ):
            return []

        time = body.time_preference or self.config.default_service_time
        return [Task.for_unit(
            task_id=f"custom-{unit.id}-{day.isoformat()}-{time}",
            prop=prop,
            unit=unit,
            service_type=schedule.service_kind_for(
                body.frequency, default=body.service_type or DEFAULT_SERVICE_TYPE
            ),
            scheduled_time=time,
            priority=Priority.for_occupancy(is_occupied),
            source=TaskSource.CUSTOM,
            is_occupied=is_occupied,
        )]

    def _resolve_complex(
        self,
        prop: Property,
        unit: Unit,
        schedule: CustomSchedule,
        day: date,
        occupancy: OccupancyIndex,
    ) -> List[Task]:
        body: ComplexScheduleConfig = schedule.body
        is_occupied = occupancy.is_occupied(unit.id)
        tasks = []

        # Entries are independent; several may fire on the same day
        for entry in body.entries:
            if not matches_frequency(
                entry.frequency,
                day,
                explicit_days=entry.days,
                is_occupied=is_occupied,
            ):
                continue

            time = entry.time or self.config.default_service_time
            service_type = entry.service_types[0] if entry.service_types else DEFAULT_SERVICE_TYPE
            tasks.append(Task.for_unit(
                task_id=f"custom-{unit.id}-{day.isoformat()}-{time}-{service_type}",
                prop=prop,
                unit=unit,
                service_type=service_type,
                scheduled_time=time,
                priority=Priority.for_occupancy(is_occupied),
                source=TaskSource.CUSTOM,
                is_occupied=is_occupied,
            ))

        return tasks

    # -------------------------------------------------------------------------
    # Occupancy rules
    # -------------------------------------------------------------------------

    def _arrival_task(
        self,
        prop: Property,
        unit: Unit,
        schedule: Optional[CustomSchedule],
        day: date,
        occupancy: OccupancyIndex,
    ) -> Optional[Task]:
        if schedule is None or schedule.occupancy_rules is None:
            return None
        if not schedule.occupancy_rules.on_arrival or not occupancy.is_arriving(unit.id):
            return None

        return Task.for_unit(
            task_id=f"arrival-{unit.id}-{day.isoformat()}",
            prop=prop,
            unit=unit,
            service_type=schedule.service_kind_for('daily'),
            scheduled_time=schedule.time_preference or self.config.default_service_time,
            priority=Priority.HIGH,
            source=TaskSource.ARRIVAL,
            is_occupied=occupancy.is_occupied(unit.id),
        )

    def _minimum_task(
        self,
        prop: Property,
        unit: Unit,
        schedule: CustomSchedule,
        day: date,
        occupancy: OccupancyIndex,
    ) -> Optional[Task]:
        """
        Floor service for units whose schedule produced nothing today.

        weekly_minimum fires on weekly_day; biweekly_minimum fires on
        biweekly_day in alternating weeks.
        """
        rules = schedule.occupancy_rules
        if rules is None:
            return None

        dow = weekday_number(day)
        bucket = None
        if rules.weekly_minimum and normalize_weekday(rules.weekly_day) == dow:
            bucket = 'weekly'
        elif (rules.biweekly_minimum and normalize_weekday(rules.biweekly_day) == dow
                and is_biweekly_week(day)):
            bucket = 'biweekly'
        if bucket is None:
            return None

        is_occupied = occupancy.is_occupied(unit.id)
        return Task.for_unit(
            task_id=f"minimum-{unit.id}-{day.isoformat()}",
            prop=prop,
            unit=unit,
            service_type=schedule.service_kind_for(bucket),
            scheduled_time=schedule.time_preference or self.config.default_service_time,
            priority=Priority.for_occupancy(is_occupied),
            source=TaskSource.OCCUPANCY_MINIMUM,
            is_occupied=is_occupied,
        )
