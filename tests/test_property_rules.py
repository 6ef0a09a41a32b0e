from datetime import timedelta

import pytest

from schedule_engine.config import EngineConfig
from schedule_engine.models import Booking, Priority, PropertyRule, TaskSource, Unit
from schedule_engine.occupancy import OccupancyIndex
from schedule_engine.property_rules import PropertyRuleEngine
from conftest import MONDAY, THURSDAY, TUESDAY

SHARED_POOLS = [
    Unit(id=f"pool{i}", property_id="p1", name=f"Pool {i}", unit_type="main_pool",
         water_type="chlorine" if i % 2 else "salt", service_frequency="daily")
    for i in range(1, 6)
]
VILLA_SPA = Unit(id="spa1", property_id="p1", name="Villa Spa", unit_type="villa_spa",
                 water_type="hot", service_frequency="weekly")


@pytest.fixture
def engine(config) -> PropertyRuleEngine:
    return PropertyRuleEngine(config)


def _rule(rule_id="r1", priority=0, **rule_config) -> PropertyRule:
    record = {
        "id": rule_id,
        "property_id": "p1",
        "rule_type": rule_config.pop("rule_type", "random_selection"),
        "priority": priority,
        "is_active": rule_config.pop("is_active", True),
        "rule_config": {"frequency": "daily", **rule_config},
    }
    return PropertyRule.from_record(record)


def test_two_of_five_shared_facilities(engine, prop):
    rule = _rule(selection_count=2, target_unit_types=["main_pool"])
    pool_ids = {u.id for u in SHARED_POOLS}

    for offset in range(10):
        day = MONDAY + timedelta(days=offset)
        tasks = engine.evaluate(prop, SHARED_POOLS + [VILLA_SPA], [rule], day)
        chosen = {t.unit_id for t in tasks}
        assert len(tasks) == 2
        assert len(chosen) == 2
        assert chosen <= pool_ids
        assert all(t.priority is Priority.HIGH and t.source is TaskSource.RULE for t in tasks)


def test_selection_is_deterministic(engine, prop):
    rule = _rule(selection_count=2)
    first = engine.evaluate(prop, SHARED_POOLS, [rule], MONDAY)
    second = PropertyRuleEngine(EngineConfig()).evaluate(prop, SHARED_POOLS, [rule], MONDAY)
    assert [t.unit_id for t in first] == [t.unit_id for t in second]


def test_selection_varies_across_dates(engine, prop):
    rule = _rule(selection_count=2)
    picks = {
        frozenset(t.unit_id for t in engine.evaluate(prop, SHARED_POOLS, [rule], MONDAY + timedelta(days=i)))
        for i in range(30)
    }
    assert len(picks) > 1


def test_task_fields(engine, prop):
    rule = _rule(selection_count=1, time_preference="10:30", service_type="deep_clean")
    task = engine.evaluate(prop, SHARED_POOLS, [rule], MONDAY)[0]
    assert task.scheduled_time == "10:30"
    assert task.service_type == "deep_clean"
    assert task.id == f"rule-r1-{task.unit_id}-2025-06-02-10:30"


def test_service_kind_defaults(engine, prop):
    by_bucket = _rule(service_types={"daily": ["full_service"]})
    fallback = _rule()
    assert engine.evaluate(prop, SHARED_POOLS, [by_bucket], MONDAY)[0].service_type == "full_service"
    assert engine.evaluate(prop, SHARED_POOLS, [fallback], MONDAY)[0].service_type == "test_only"
    assert engine.evaluate(prop, SHARED_POOLS, [fallback], MONDAY)[0].scheduled_time == "09:00"


def test_frequency_gate(engine, prop):
    rule = _rule(frequency="twice_weekly")
    assert len(engine.evaluate(prop, SHARED_POOLS, [rule], THURSDAY)) == 1
    assert engine.evaluate(prop, SHARED_POOLS, [rule], TUESDAY) == []


def test_filters_narrow_pool(engine):
    rule = _rule(target_unit_types=["main_pool"], target_water_types=["salt"])
    pool = engine.candidate_pool(rule, SHARED_POOLS + [VILLA_SPA])
    assert [u.id for u in pool] == ["pool2", "pool4"]

    by_id = _rule(target_units={"ids": ["pool3", "spa1"]})
    assert [u.id for u in engine.candidate_pool(by_id, SHARED_POOLS + [VILLA_SPA])] == ["pool3", "spa1"]


def test_builder_single_value_filters(engine):
    rule = _rule(unit_type_filter="villa_spa")
    assert [u.id for u in engine.candidate_pool(rule, SHARED_POOLS + [VILLA_SPA])] == ["spa1"]


def test_column_filters_take_precedence(engine):
    rule = PropertyRule.from_record({
        "id": "r1",
        "property_id": "p1",
        "target_unit_types": ["villa_spa"],
        "rule_config": {"frequency": "daily", "target_unit_types": ["main_pool"]},
    })
    assert [u.id for u in engine.candidate_pool(rule, SHARED_POOLS + [VILLA_SPA])] == ["spa1"]


def test_limit_to_shared_facilities(engine):
    rule = _rule(limit_to_shared_facilities=True)
    pool = engine.candidate_pool(rule, SHARED_POOLS + [VILLA_SPA])
    assert VILLA_SPA not in pool
    assert len(pool) == 5


def test_empty_pool_skips_rule(engine, prop):
    rule = _rule(target_unit_types=["kids_pool"])
    assert engine.evaluate(prop, SHARED_POOLS, [rule], MONDAY) == []
    assert engine.evaluate(prop, [], [rule], MONDAY) == []


def test_inactive_units_not_selected(engine, prop):
    closed = Unit(id="closed", property_id="p1", name="Closed", unit_type="main_pool", is_active=False)
    rule = _rule(selection_count=10, target_unit_types=["main_pool"])
    tasks = engine.evaluate(prop, SHARED_POOLS + [closed], [rule], MONDAY)
    assert len(tasks) == 5
    assert "closed" not in {t.unit_id for t in tasks}


@pytest.mark.parametrize("requested, expected", [(None, 1), (0, 1), (-3, 1), (3, 3), (500, 50)])
def test_selection_count_clamped(engine, requested, expected):
    assert engine.selection_count(_rule(selection_count=requested)) == expected


def test_inactive_and_unsupported_rules_skipped(engine, prop):
    rules = [
        _rule("r1", is_active=False),
        _rule("r2", rule_type="round_robin"),
    ]
    assert engine.evaluate(prop, SHARED_POOLS, rules, MONDAY) == []


def test_rules_run_in_priority_order(engine, prop):
    rules = [_rule("late", priority=5), _rule("early", priority=1)]
    tasks = engine.evaluate(prop, SHARED_POOLS, rules, MONDAY)
    assert [t.id.split("-")[1] for t in tasks] == ["early", "late"]


def test_occupied_pick_is_flagged(engine, prop):
    rule = _rule(selection_count=5)
    occupancy = OccupancyIndex.build(
        [Booking(unit_id="pool1", check_in_date=MONDAY, check_out_date=THURSDAY)], MONDAY
    )
    tasks = engine.evaluate(prop, SHARED_POOLS, [rule], MONDAY, occupancy)
    flags = {t.unit_id: t.is_occupied for t in tasks}
    assert flags["pool1"] is True
    assert not any(v for k, v in flags.items() if k != "pool1")


def test_claimed_unit_types(engine):
    assert engine.claimed_unit_types([_rule(target_unit_types=["main_pool", "villa_spa"])]) == {"main_pool"}
    assert engine.claimed_unit_types([_rule()]) == {"main_pool", "kids_pool", "main_spa"}
    assert engine.claimed_unit_types([_rule(is_active=False)]) == frozenset()
    assert engine.claimed_unit_types([_rule(rule_type="round_robin")]) == frozenset()
