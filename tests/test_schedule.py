from datetime import date

from morningproof.schemas.habit import ALL_DAYS, WEEKDAYS, WEEKENDS, Weekday
from morningproof.services.schedule import (
    display_string,
    from_mask,
    is_active_on,
    short_display_string,
    to_mask,
    weekday_of,
)


def test_weekday_is_sunday_first():
    assert weekday_of(date(2024, 3, 10)) == Weekday.SUNDAY
    assert weekday_of(date(2024, 3, 4)) == Weekday.MONDAY
    assert weekday_of(date(2024, 3, 9)) == Weekday.SATURDAY
    assert int(Weekday.SUNDAY) == 1
    assert int(Weekday.SATURDAY) == 7


def test_is_active_on():
    wednesday = date(2024, 3, 6)
    assert is_active_on(wednesday, WEEKDAYS)
    assert not is_active_on(wednesday, WEEKENDS)
    assert not is_active_on(wednesday, set())


def test_display_presets():
    assert display_string(ALL_DAYS) == "Every day"
    assert display_string(set(WEEKDAYS)) == "Weekdays"
    assert display_string(WEEKENDS) == "Weekends"
    assert display_string(set()) == "Never"


def test_display_custom_days_in_sunday_first_order():
    days = {Weekday.FRIDAY, Weekday.MONDAY, Weekday.WEDNESDAY}
    assert display_string(days) == "Mon, Wed, Fri"
    assert display_string({Weekday.SATURDAY, Weekday.SUNDAY, Weekday.MONDAY}) == "Sun, Mon, Sat"
    assert short_display_string(days) == "3 days"
    assert short_display_string(WEEKENDS) == "Weekends"


def test_mask_conversion():
    assert to_mask(ALL_DAYS) == 127
    assert to_mask({Weekday.SUNDAY}) == 1
    assert to_mask({Weekday.SATURDAY}) == 64
    assert from_mask(to_mask(WEEKDAYS)) == set(WEEKDAYS)


def test_missing_mask_means_every_day():
    assert from_mask(None) == set(ALL_DAYS)
    assert from_mask(0) == set()
