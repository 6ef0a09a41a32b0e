import pytest

from schedule_engine.config import EngineConfig
from schedule_engine.datasource import InMemoryDataSource
from schedule_engine.engine import ScheduleEngine
from schedule_engine.models import Priority, TaskSource, TaskType
from conftest import MONDAY, TUESDAY


@pytest.fixture
def engine(snapshot) -> ScheduleEngine:
    return ScheduleEngine(InMemoryDataSource.from_dict(snapshot))


def _summary(tasks):
    return [(t.property_id, t.unit_id or t.plant_room_id, t.scheduled_time, t.priority.value, t.source.value)
            for t in tasks]


def test_monday_end_to_end(engine):
    result = engine.generate(MONDAY)

    assert _summary(result.tasks) == [
        ("p1", "u2", "08:00", "high", "custom"),
        ("p1", "u2", "08:00", "high", "arrival"),
        ("p1", "pr1", "09:00", "high", "plant_room"),
        ("p1", "u3", "10:00", "high", "rule"),
        ("p1", "pr1", "15:00", "high", "plant_room"),
        ("p2", "u5", "09:00", "medium", "default"),
        ("p1", "u1", "09:00", "medium", "default"),
        ("p1", None, "11:00", "medium", "equipment"),
    ]
    assert result.duplicates_removed == 0
    assert result.tasks[0].service_type == "test_only"
    assert result.tasks[1].service_type == "full_service"


def test_tuesday_end_to_end(engine):
    tasks = engine.generate(TUESDAY).tasks
    assert _summary(tasks) == [
        ("p1", "u2", "08:00", "high", "custom"),
        ("p1", "pr1", "09:00", "high", "plant_room"),
        ("p1", "u3", "10:00", "high", "rule"),
        ("p1", "pr1", "15:00", "high", "plant_room"),
        ("p2", "u5", "09:00", "medium", "default"),
    ]


def test_claimed_pool_not_serviced_twice(engine):
    tasks = engine.generate(MONDAY, property_id="p1").tasks
    assert [t.source for t in tasks if t.unit_id == "u3"] == [TaskSource.RULE]


def test_result_lookups(engine):
    result = engine.generate("2025-06-02")
    assert result.date == MONDAY
    assert [p.name for p in result.properties] == ["Coral Villas", "Palm Resort"]
    assert [(t.id, t.name) for t in result.technicians] == [("t1", "Ana Silva"), ("t2", "Ben")]


@pytest.mark.parametrize("scope", [None, "", "all"])
def test_all_properties_scope(engine, scope):
    assert {t.property_id for t in engine.generate(MONDAY, scope).tasks} == {"p1", "p2"}


def test_single_property_scope(engine):
    result = engine.generate(MONDAY, property_id="p2")
    assert [t.unit_id for t in result.tasks] == ["u5"]
    # Lookups still list every property
    assert len(result.properties) == 2


def test_unknown_property_yields_no_tasks(engine):
    assert engine.generate(MONDAY, property_id="missing").tasks == []


def test_empty_source_yields_no_tasks():
    result = ScheduleEngine(InMemoryDataSource()).generate(MONDAY)
    assert result.tasks == []
    assert result.properties == []


def test_invalid_date_string(engine):
    with pytest.raises(ValueError):
        engine.generate("02/06/2025")


def test_same_day_is_reproducible(engine):
    assert [t.id for t in engine.generate(MONDAY).tasks] == [t.id for t in engine.generate(MONDAY).tasks]


def test_duplicate_entries_collapse(snapshot):
    snapshot["custom_schedules"] = [{
        "unit_id": "u2",
        "schedule_type": "complex",
        "schedule_config": {"schedules": [
            {"frequency": "daily", "time": "08:00", "service_types": ["test_only"]},
            {"frequency": "weekly", "time": "08:00", "service_types": ["test_only"]},
        ]},
    }]
    result = ScheduleEngine(InMemoryDataSource.from_dict(snapshot)).generate(MONDAY, "p1")
    assert len([t for t in result.tasks if t.unit_id == "u2"]) == 1
    assert result.duplicates_removed == 1


def test_sequential_and_parallel_runs_agree(snapshot):
    source = InMemoryDataSource.from_dict(snapshot)
    sequential = ScheduleEngine(source, EngineConfig(max_workers=1)).generate(MONDAY)
    parallel = ScheduleEngine(source, EngineConfig(max_workers=4)).generate(MONDAY)
    assert [t.id for t in sequential.tasks] == [t.id for t in parallel.tasks]


def test_result_to_dict(engine):
    data = engine.generate(MONDAY, "p2").to_dict()
    assert data["date"] == "2025-06-02"
    assert data["tasks"][0]["status"] == "pending"
    assert data["tasks"][0]["type"] == TaskType.SERVICE.value
    assert data["tasks"][0]["priority"] == Priority.MEDIUM.value
    assert {"id": "t1", "name": "Ana Silva"} in data["technicians"]
