"""
Plant-room check and equipment maintenance scheduling.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from schedule_engine.config import EngineConfig
from schedule_engine.frequency import should_check_today
from schedule_engine.models import (
    EQUIPMENT_SERVICE_TYPE,
    EQUIPMENT_UNIT_TYPE,
    Equipment,
    PlantRoom,
    Priority,
    Property,
    Task,
    TaskSource,
    TaskType,
)

logger = logging.getLogger(__name__)


class PeriodicCheckScheduler:
    """
    Generates plant-room checks and equipment maintenance tasks.

    Plant-room checks are always high priority; equipment maintenance is
    medium. One task is emitted per configured time of day.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def schedule(
        self,
        prop: Property,
        plant_rooms: Iterable[PlantRoom],
        equipment: Iterable[Equipment],
        day: date,
    ) -> List[Task]:
        """Plant-room checks followed by equipment maintenance for a property."""
        return (self.plant_room_tasks(prop, plant_rooms, day)
                + self.equipment_tasks(prop, equipment, day))

    def plant_room_tasks(self, prop: Property, plant_rooms: Iterable[PlantRoom], day: date) -> List[Task]:
        tasks = []
        for room in plant_rooms:
            if not room.is_active:
                continue
            if not should_check_today(room.check_frequency, day, room.check_days):
                continue

            times = room.check_times
            if times is None:
                times = self.config.default_plant_check_times

            for time in times:
                tasks.append(Task(
                    id=f"plant-{room.id}-{day.isoformat()}-{time}",
                    type=TaskType.PLANT_CHECK,
                    property_id=prop.id,
                    property_name=prop.name,
                    plant_room_id=room.id,
                    plant_room_name=room.name,
                    scheduled_time=time,
                    priority=Priority.HIGH,
                    source=TaskSource.PLANT_ROOM,
                ))
        return tasks

    def equipment_tasks(self, prop: Property, equipment: Iterable[Equipment], day: date) -> List[Task]:
        tasks = []
        for item in equipment:
            if not item.is_active:
                continue
            if not item.is_schedulable:
                continue
            if not should_check_today(item.maintenance_frequency, day):
                continue

            times = item.maintenance_times
            if times is None:
                times = self.config.default_equipment_times

            for time in times:
                tasks.append(Task(
                    id=f"equip-{item.id}-{day.isoformat()}-{time}",
                    type=TaskType.SERVICE,
                    property_id=prop.id,
                    property_name=prop.name,
                    unit_id=item.unit_id,
                    unit_name=item.name,
                    unit_type=EQUIPMENT_UNIT_TYPE,
                    equipment_id=item.id,
                    service_type=EQUIPMENT_SERVICE_TYPE,
                    scheduled_time=time,
                    priority=Priority.MEDIUM,
                    source=TaskSource.EQUIPMENT,
                ))
        return tasks
