"""
Property-level scheduling rules.

Random selection rules rotate routine testing across a pool of shared
facilities: "N of these M facilities get a service every day". The chosen
units are a pure function of (property, date), so re-running the schedule
for the same day always yields the same picks.
"""

import logging
from datetime import date
from typing import FrozenSet, Iterable, List, Optional

from schedule_engine.config import EngineConfig
from schedule_engine.frequency import matches_frequency
from schedule_engine.models import (
    RANDOM_SELECTION,
    Priority,
    Property,
    PropertyRule,
    Task,
    TaskSource,
    Unit,
)
from schedule_engine.occupancy import OccupancyIndex
from schedule_engine.rng import SeededRandom, pick_random_distinct, selection_seed

logger = logging.getLogger(__name__)


class PropertyRuleEngine:
    """
    Evaluates property rules for one property and date.

    Only ``random_selection`` is implemented; other rule types are skipped.
    Rules run in ascending priority order.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    @staticmethod
    def active_rules(rules: Iterable[PropertyRule]) -> List[PropertyRule]:
        """Active rules sorted by priority (lower number first)."""
        return sorted((r for r in rules if r.is_active), key=lambda r: r.priority)

    def claimed_unit_types(self, rules: Iterable[PropertyRule]) -> FrozenSet[str]:
        """
        Shared-facility kinds whose routine service is owned by active rules.

        A rule without a unit-type filter reaches every kind, so it claims
        all shared-facility kinds.
        """
        shared = self.config.shared_facility_types
        claimed = set()
        for rule in self.active_rules(rules):
            if rule.rule_type != RANDOM_SELECTION:
                continue
            if rule.unit_type_filter:
                claimed.update(shared.intersection(rule.unit_type_filter))
            else:
                claimed.update(shared)
        return frozenset(claimed)

    def evaluate(
        self,
        prop: Property,
        units: Iterable[Unit],
        rules: Iterable[PropertyRule],
        day: date,
        occupancy: Optional[OccupancyIndex] = None,
    ) -> List[Task]:
        """
        Evaluate every active rule of a property.

        Args:
            prop: Property being scheduled
            units: Units of the property
            rules: Property rules
            day: Date being scheduled
            occupancy: Optional occupancy lookups, used to flag occupied picks

        Returns:
            List of rule-generated tasks
        """
        units = list(units)
        occupancy = occupancy or OccupancyIndex.empty(day)
        tasks: List[Task] = []

        if not units:
            return tasks

        for rule in self.active_rules(rules):
            if rule.rule_type != RANDOM_SELECTION:
                logger.debug(f"Rule {rule.id} has unsupported type '{rule.rule_type}', skipping")
                continue
            tasks.extend(self._evaluate_random_selection(prop, units, rule, day, occupancy))

        return tasks

    def candidate_pool(self, rule: PropertyRule, units: Iterable[Unit]) -> List[Unit]:
        """
        Active units that pass every filter the rule sets.

        Absent filters impose no constraint.
        """
        pool = [u for u in units if u.is_active]

        unit_types = rule.unit_type_filter
        if not unit_types and rule.config.limit_to_shared_facilities:
            unit_types = tuple(self.config.shared_facility_types)
        if unit_types:
            pool = [u for u in pool if u.unit_type in unit_types]

        water_types = rule.water_type_filter
        if water_types:
            pool = [u for u in pool if u.water_type in water_types]

        unit_ids = rule.unit_id_filter
        if unit_ids:
            pool = [u for u in pool if u.id in unit_ids]

        return pool

    def selection_count(self, rule: PropertyRule) -> int:
        """Requested count clamped to 1..max_selection_count."""
        count = rule.config.selection_count or 1
        return max(1, min(self.config.max_selection_count, count))

    @staticmethod
    def select_units(property_id: str, day: date, pool: List[Unit], count: int) -> List[Unit]:
        """Deterministic pick of ``count`` distinct units for (property, date)."""
        rng = SeededRandom(selection_seed(property_id, day.isoformat()))
        return pick_random_distinct(pool, count, rng)

    def _evaluate_random_selection(
        self,
        prop: Property,
        units: List[Unit],
        rule: PropertyRule,
        day: date,
        occupancy: OccupancyIndex,
    ) -> List[Task]:
        cfg = rule.config
        if not matches_frequency(cfg.frequency, day):
            return []

        pool = self.candidate_pool(rule, units)
        if not pool:
            logger.debug(f"Rule {rule.id} on property {prop.id} has an empty candidate pool, skipping")
            return []

        chosen = self.select_units(prop.id, day, pool, self.selection_count(rule))
        time = cfg.time_preference or self.config.default_service_time
        service_type = cfg.service_kind()

        logger.debug(
            f"Rule {rule.id} picked {len(chosen)}/{len(pool)} units on {day.isoformat()}: "
            f"{', '.join(u.id for u in chosen)}"
        )

        return [
            Task.for_unit(
                task_id=f"rule-{rule.id}-{unit.id}-{day.isoformat()}-{time}",
                prop=prop,
                unit=unit,
                service_type=service_type,
                scheduled_time=time,
                priority=Priority.HIGH,
                source=TaskSource.RULE,
                is_occupied=occupancy.is_occupied(unit.id),
            )
            for unit in chosen
        ]
