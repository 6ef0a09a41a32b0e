"""
Occupancy lookups built from booking intervals.
"""

from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, Iterable

from schedule_engine.models import Booking


@dataclass(frozen=True)
class OccupancyIndex:
    """
    Occupied and arriving unit sets for one property on one date.

    A unit is occupied when a booking satisfies
    ``check_in_date <= date <= check_out_date`` and arriving when a booking's
    ``check_in_date`` equals the date.
    """
    day: date
    occupied: FrozenSet[str] = frozenset()
    arriving: FrozenSet[str] = frozenset()

    @classmethod
    def build(cls, bookings: Iterable[Booking], day: date) -> 'OccupancyIndex':
        occupied = set()
        arriving = set()
        for booking in bookings:
            if booking.covers(day):
                occupied.add(booking.unit_id)
            if booking.arrives_on(day):
                arriving.add(booking.unit_id)
        return cls(day=day, occupied=frozenset(occupied), arriving=frozenset(arriving))

    @classmethod
    def empty(cls, day: date) -> 'OccupancyIndex':
        return cls(day=day)

    def is_occupied(self, unit_id: str) -> bool:
        return unit_id in self.occupied

    def is_arriving(self, unit_id: str) -> bool:
        return unit_id in self.arriving

    def __repr__(self):
        return (f"<OccupancyIndex({self.day.isoformat()}, occupied={len(self.occupied)}, "
                f"arriving={len(self.arriving)})>")
