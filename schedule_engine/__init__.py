"""
Maintenance Task Schedule Engine

Builds the day's list of pool and spa service tasks, plant-room checks and
equipment maintenance across properties:
- Default and custom (simple / complex / occupancy) unit schedules
- Seeded random rotation of shared facilities via property rules
- Plant-room and equipment check recurrences
- Deduplication and priority ordering of the merged task list
"""

from pathlib import Path

# Read version from VERSION file
_version_file = Path(__file__).parent / 'VERSION'
if _version_file.exists():
    __version__ = _version_file.read_text().strip()
else:
    __version__ = '1.0.0'


def get_version():
    """Return the current engine version."""
    return __version__


from schedule_engine.config import EngineConfig
from schedule_engine.models import (
    Booking,
    CustomSchedule,
    Equipment,
    PlantRoom,
    Priority,
    Property,
    PropertyRule,
    Task,
    TaskType,
    Technician,
    Unit,
)
from schedule_engine.frequency import matches_frequency, should_check_today
from schedule_engine.occupancy import OccupancyIndex
from schedule_engine.unit_resolver import UnitScheduleResolver
from schedule_engine.property_rules import PropertyRuleEngine
from schedule_engine.periodic_checks import PeriodicCheckScheduler
from schedule_engine.aggregator import TaskAggregator, merge_tasks
from schedule_engine.datasource import InMemoryDataSource, ScheduleDataError, ScheduleDataSource
from schedule_engine.engine import ScheduleEngine, ScheduleResult

__all__ = [
    '__version__',
    'get_version',
    'EngineConfig',
    'Booking',
    'CustomSchedule',
    'Equipment',
    'PlantRoom',
    'Priority',
    'Property',
    'PropertyRule',
    'Task',
    'TaskType',
    'Technician',
    'Unit',
    'matches_frequency',
    'should_check_today',
    'OccupancyIndex',
    'UnitScheduleResolver',
    'PropertyRuleEngine',
    'PeriodicCheckScheduler',
    'TaskAggregator',
    'merge_tasks',
    'InMemoryDataSource',
    'ScheduleDataError',
    'ScheduleDataSource',
    'ScheduleEngine',
    'ScheduleResult',
]
