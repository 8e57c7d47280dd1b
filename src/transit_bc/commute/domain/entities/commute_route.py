from datetime import date
from enum import IntFlag
from typing import List


class Weekday(IntFlag):
    """Days a commute route is active, stored as a bitset."""
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 4
    THURSDAY = 8
    FRIDAY = 16
    SATURDAY = 32
    SUNDAY = 64

    @classmethod
    def for_date(cls, day: date) -> "Weekday":
        return cls(1 << day.weekday())

    @classmethod
    def from_names(cls, names: List[str]) -> "Weekday":
        flags = cls(0)
        for name in names:
            flags |= cls[name.upper()]
        return flags

    @classmethod
    def weekdays(cls) -> "Weekday":
        return cls.MONDAY | cls.TUESDAY | cls.WEDNESDAY | cls.THURSDAY | cls.FRIDAY

    def names(self) -> List[str]:
        return [day.name.lower() for day in Weekday if day & self]
