from datetime import date, datetime

from morningproof.schemas.achievement import AchievementCategory, AchievementStats, UserAchievements
from morningproof.schemas.streak import StreakState
from morningproof.services import achievement_service as svc

NOW = datetime(2024, 3, 6, 7, 0)


def _ids(definitions):
    return [d.id for d in definitions]


def test_catalog_shape():
    ids = _ids(svc.ACHIEVEMENT_CATALOG)
    assert len(ids) == len(set(ids)) == 34
    assert ids[0] == "first_bed"
    assert {a.id for a in svc.ACHIEVEMENT_CATALOG if a.is_hidden} == {"speed_demon", "new_year"}
    assert svc.ACHIEVEMENTS_BY_ID["early_bird_30"].secondary_requirement == 7


def test_record_day_counts_once_per_day():
    stats = AchievementStats()
    day = date(2024, 3, 6)
    assert svc.record_day(stats, day, datetime(2024, 3, 6, 6, 30))
    assert not svc.record_day(stats, day, datetime(2024, 3, 6, 6, 30))
    assert stats.total_completions == 1
    assert stats.early_completions == {7: 1}


def test_early_thresholds_are_strict():
    stats = AchievementStats()
    svc.record_day(stats, date(2024, 3, 5), datetime(2024, 3, 5, 5, 59))
    svc.record_day(stats, date(2024, 3, 6), datetime(2024, 3, 6, 7, 0))
    assert stats.early_completions == {6: 1, 7: 1}


def test_adjacent_saturday_sunday_counts_weekend():
    stats = AchievementStats()
    svc.record_day(stats, date(2024, 3, 9), datetime(2024, 3, 9, 8, 0))
    svc.record_day(stats, date(2024, 3, 10), datetime(2024, 3, 10, 8, 0))
    assert stats.completed_weekends == 1
    assert stats.last_saturday is None


def test_sunday_without_previous_saturday_does_not_count():
    stats = AchievementStats()
    svc.record_day(stats, date(2024, 3, 2), datetime(2024, 3, 2, 8, 0))
    svc.record_day(stats, date(2024, 3, 10), datetime(2024, 3, 10, 8, 0))
    assert stats.completed_weekends == 0


def test_monday_and_new_year():
    stats = AchievementStats()
    svc.record_day(stats, date(2024, 1, 1), datetime(2024, 1, 1, 8, 0))
    assert stats.monday_completions == 1
    assert stats.completed_on_new_year

    unlocked = svc.evaluate(UserAchievements(), stats, NOW)
    assert "new_year" in _ids(unlocked)


def test_comeback_tracking():
    stats = AchievementStats()
    svc.record_day(stats, date(2024, 3, 6), datetime(2024, 3, 6, 8, 0), lost_streak=8)
    assert stats.comeback_count == 1
    assert stats.last_lost_streak == 8

    svc.sync_streak(stats, StreakState(current_streak=1, longest_streak=8))
    unlocked = _ids(svc.evaluate(UserAchievements(), stats, NOW))
    assert "bounce_back" in unlocked
    assert "phoenix_rising" not in unlocked


def test_evaluate_returns_only_new_unlocks():
    stats = AchievementStats(current_streak=7, longest_streak=7, total_completions=10)
    achievements = UserAchievements()

    first = _ids(svc.evaluate(achievements, stats, NOW))
    assert first == ["first_bed", "three_days", "one_week", "total_10", "perfect_week"]

    assert svc.evaluate(achievements, stats, NOW) == []
    assert achievements.unlocked_count == 5


def test_unlocks_are_never_removed():
    achievements = UserAchievements()
    svc.evaluate(achievements, AchievementStats(current_streak=3), NOW)
    before = dict(achievements.unlocked)

    svc.evaluate(achievements, AchievementStats(current_streak=0), datetime(2024, 3, 9, 7, 0))
    assert achievements.unlocked == before


def test_speed_demon_never_unlocks():
    stats = AchievementStats(
        current_streak=400, total_completions=2000, comeback_count=20, completed_weekends=10,
        monday_completions=20, early_completions={6: 50, 7: 50}, last_lost_streak=30,
        completed_on_new_year=True,
    )
    achievements = UserAchievements()
    svc.evaluate(achievements, stats, NOW)
    assert not achievements.is_unlocked("speed_demon")
    assert achievements.unlocked_count == 33


def test_listings():
    achievements = UserAchievements()
    visible = svc.visible_achievements(achievements.unlocked_ids)
    assert len(visible) == 32

    achievements.unlock("new_year", NOW)
    assert len(svc.visible_achievements(achievements.unlocked_ids)) == 33

    grouped = svc.achievements_by_category()
    assert len(grouped[AchievementCategory.STREAK]) == 10
    assert svc.unlocked_count_by_category(achievements)[AchievementCategory.SPECIAL] == 1

    assert svc.next_achievement(achievements).id == "first_bed"
    achievements.unlock("first_bed", NOW)
    assert svc.next_achievement(achievements).id == "three_days"
