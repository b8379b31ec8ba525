"""Weekday scheduling for habits.

Weekdays follow the Sunday-first convention (Sunday=1 ... Saturday=7)
regardless of locale. Storage encodes a set of days as a bitmask with bit
``1 << (day - 1)``; the mask never leaves the storage layer.
"""
from datetime import date

from morningproof.schemas.habit import ALL_DAYS, WEEKDAYS, WEEKENDS, Weekday

ABBREVIATED_DAY_NAMES = {
    Weekday.SUNDAY: "Sun",
    Weekday.MONDAY: "Mon",
    Weekday.TUESDAY: "Tue",
    Weekday.WEDNESDAY: "Wed",
    Weekday.THURSDAY: "Thu",
    Weekday.FRIDAY: "Fri",
    Weekday.SATURDAY: "Sat",
}


def weekday_of(d: date) -> Weekday:
    # isoweekday: Monday=1 ... Sunday=7
    return Weekday(d.isoweekday() % 7 + 1)


def is_active_on(d: date, active_days) -> bool:
    return weekday_of(d) in active_days


def _preset_name(active_days) -> str | None:
    days = frozenset(active_days)
    if days == ALL_DAYS:
        return "Every day"
    if days == WEEKDAYS:
        return "Weekdays"
    if days == WEEKENDS:
        return "Weekends"
    return None


def display_string(active_days) -> str:
    preset = _preset_name(active_days)
    if preset:
        return preset
    if not active_days:
        return "Never"
    return ", ".join(ABBREVIATED_DAY_NAMES[Weekday(d)] for d in sorted(active_days))


def short_display_string(active_days) -> str:
    preset = _preset_name(active_days)
    if preset:
        return preset
    return f"{len(active_days)} days"


def to_mask(active_days) -> int:
    mask = 0
    for day in active_days:
        mask |= 1 << (int(day) - 1)
    return mask


def from_mask(mask: int | None) -> set[Weekday]:
    if mask is None:
        return set(ALL_DAYS)
    return {day for day in Weekday if mask & (1 << (day - 1))}
