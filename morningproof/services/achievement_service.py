import logging
from datetime import date, datetime, timedelta

from morningproof.schemas.achievement import (
    AchievementCategory,
    AchievementDefinition,
    AchievementStats,
    AchievementType,
    UserAchievements,
)
from morningproof.schemas.habit import Weekday
from morningproof.schemas.streak import StreakState
from morningproof.services.schedule import weekday_of

logger = logging.getLogger(__name__)


EARLY_HOUR_THRESHOLDS = (6, 7)


DEFAULT_ACHIEVEMENTS: list[dict] = [
    # streak milestones
    {"id": "first_bed", "title": "First Step", "description": "Locked in your first perfect morning",
     "icon": "bed.double.fill", "category": "streak", "type": "streak", "requirement": 1},
    {"id": "three_days", "title": "Getting Started", "description": "3 day streak",
     "icon": "flame", "category": "streak", "type": "streak", "requirement": 3},
    {"id": "one_week", "title": "One Week Wonder", "description": "7 day streak",
     "icon": "flame.fill", "category": "streak", "type": "streak", "requirement": 7},
    {"id": "two_weeks", "title": "Habit Forming", "description": "14 day streak",
     "icon": "star.fill", "category": "streak", "type": "streak", "requirement": 14},
    {"id": "three_weeks", "title": "Committed", "description": "21 day streak - it's a habit now!",
     "icon": "star.circle.fill", "category": "streak", "type": "streak", "requirement": 21},
    {"id": "one_month", "title": "Monthly Master", "description": "30 day streak",
     "icon": "crown", "category": "streak", "type": "streak", "requirement": 30},
    {"id": "sixty_days", "title": "Unstoppable", "description": "60 day streak",
     "icon": "crown.fill", "category": "streak", "type": "streak", "requirement": 60},
    {"id": "ninety_days", "title": "Quarter Champion", "description": "90 day streak",
     "icon": "trophy", "category": "streak", "type": "streak", "requirement": 90},
    {"id": "half_year", "title": "Half Year Hero", "description": "180 day streak",
     "icon": "trophy.fill", "category": "streak", "type": "streak", "requirement": 180},
    {"id": "one_year", "title": "Legendary", "description": "365 day streak - You're a legend!",
     "icon": "medal.fill", "category": "streak", "type": "streak", "requirement": 365},
    # total completions
    {"id": "total_10", "title": "Getting Consistent", "description": "10 total completions",
     "icon": "10.circle.fill", "category": "cumulative", "type": "total_completions", "requirement": 10},
    {"id": "total_25", "title": "Quarter Century", "description": "25 total completions",
     "icon": "25.circle.fill", "category": "cumulative", "type": "total_completions", "requirement": 25},
    {"id": "total_50", "title": "Fifty Strong", "description": "50 total completions",
     "icon": "50.circle.fill", "category": "cumulative", "type": "total_completions", "requirement": 50},
    {"id": "total_100", "title": "Century Club", "description": "100 total completions",
     "icon": "100.circle.fill", "category": "cumulative", "type": "total_completions", "requirement": 100},
    {"id": "total_250", "title": "Dedicated", "description": "250 total completions",
     "icon": "rosette", "category": "cumulative", "type": "total_completions", "requirement": 250},
    {"id": "total_500", "title": "500 Strong", "description": "500 total completions",
     "icon": "shield.fill", "category": "cumulative", "type": "total_completions", "requirement": 500},
    {"id": "total_1000", "title": "Thousand Days", "description": "1000 total completions - incredible!",
     "icon": "sparkles", "category": "cumulative", "type": "total_completions", "requirement": 1000},
    # early completions
    {"id": "early_bird_1", "title": "Early Bird", "description": "Complete before 7 AM",
     "icon": "sunrise", "category": "timing", "type": "early_completion",
     "requirement": 1, "secondary_requirement": 7},
    {"id": "early_bird_7", "title": "Dawn Patrol", "description": "Complete before 7 AM, 7 times",
     "icon": "sunrise.fill", "category": "timing", "type": "early_completion",
     "requirement": 7, "secondary_requirement": 7},
    {"id": "early_bird_30", "title": "Rise and Shine", "description": "Complete before 7 AM, 30 times",
     "icon": "sun.max.fill", "category": "timing", "type": "early_completion",
     "requirement": 30, "secondary_requirement": 7},
    {"id": "super_early_1", "title": "Before Dawn", "description": "Complete before 6 AM",
     "icon": "moon.stars", "category": "timing", "type": "early_completion",
     "requirement": 1, "secondary_requirement": 6},
    {"id": "super_early_10", "title": "Night Owl Reformed", "description": "Complete before 6 AM, 10 times",
     "icon": "moon.stars.fill", "category": "timing", "type": "early_completion",
     "requirement": 10, "secondary_requirement": 6},
    # comebacks
    {"id": "bounce_back", "title": "Bounce Back", "description": "Complete a day after losing a 7+ day streak",
     "icon": "arrow.uturn.up", "category": "comeback", "type": "comeback", "requirement": 7},
    {"id": "phoenix_rising", "title": "Phoenix Rising", "description": "Rebuild to a 14-day streak after losing one",
     "icon": "bird.fill", "category": "comeback", "type": "comeback", "requirement": 14},
    {"id": "never_give_up", "title": "Never Give Up", "description": "Comeback 3 times after losing streaks",
     "icon": "figure.stand", "category": "comeback", "type": "comeback", "requirement": 3},
    {"id": "resilient", "title": "Resilient", "description": "Comeback 5 times after losing streaks",
     "icon": "bolt.heart.fill", "category": "comeback", "type": "comeback", "requirement": 5},
    {"id": "unbreakable_spirit", "title": "Unbreakable Spirit", "description": "Comeback 10 times - nothing stops you!",
     "icon": "flame.circle.fill", "category": "comeback", "type": "comeback", "requirement": 10},
    # special
    {"id": "perfect_week", "title": "Perfect Week", "description": "Complete every day for 7 days straight",
     "icon": "calendar.badge.checkmark", "category": "special", "type": "perfect_week", "requirement": 7},
    {"id": "weekend_warrior_1", "title": "Weekend Warrior", "description": "Complete on both Saturday and Sunday",
     "icon": "figure.run", "category": "special", "type": "weekend_warrior", "requirement": 1},
    {"id": "weekend_warrior_4", "title": "Weekend Champion", "description": "Complete 4 full weekends",
     "icon": "figure.run.circle.fill", "category": "special", "type": "weekend_warrior", "requirement": 4},
    {"id": "monday_motivation_5", "title": "Monday Motivation", "description": "Complete on 5 Mondays",
     "icon": "m.circle", "category": "special", "type": "monday_motivation", "requirement": 5},
    {"id": "monday_motivation_10", "title": "Monday Master", "description": "Complete on 10 Mondays",
     "icon": "m.circle.fill", "category": "special", "type": "monday_motivation", "requirement": 10},
    {"id": "speed_demon", "title": "Speed Demon", "description": "Complete within 5 minutes of waking",
     "icon": "hare.fill", "category": "special", "type": "special", "requirement": 1, "is_hidden": True},
    {"id": "new_year", "title": "New Year, New You", "description": "Complete on January 1st",
     "icon": "party.popper.fill", "category": "special", "type": "special", "requirement": 1, "is_hidden": True},
]

ACHIEVEMENT_CATALOG: tuple[AchievementDefinition, ...] = tuple(
    AchievementDefinition(**payload) for payload in DEFAULT_ACHIEVEMENTS
)

ACHIEVEMENTS_BY_ID: dict[str, AchievementDefinition] = {a.id: a for a in ACHIEVEMENT_CATALOG}


def record_day(
    stats: AchievementStats,
    day: date,
    completed_at: datetime,
    lost_streak: int = 0,
) -> bool:
    """Fold one locked-in day into the cumulative stats.

    A day is recorded at most once; repeated calls for the same day are
    ignored.
    """
    if stats.last_recorded_date == day:
        return False

    stats.total_completions += 1

    for threshold in EARLY_HOUR_THRESHOLDS:
        if completed_at.hour < threshold:
            stats.early_completions[threshold] = stats.early_completions.get(threshold, 0) + 1

    weekday = weekday_of(day)
    if weekday == Weekday.MONDAY:
        stats.monday_completions += 1
    elif weekday == Weekday.SATURDAY:
        stats.last_saturday = day
    elif weekday == Weekday.SUNDAY:
        if stats.last_saturday is not None and day - stats.last_saturday == timedelta(days=1):
            stats.completed_weekends += 1
        stats.last_saturday = None

    if day.month == 1 and day.day == 1:
        stats.completed_on_new_year = True

    if lost_streak >= 1:
        stats.last_lost_streak = lost_streak
        stats.comeback_count += 1

    stats.last_recorded_date = day
    return True


def sync_streak(stats: AchievementStats, state: StreakState) -> AchievementStats:
    stats.current_streak = state.current_streak
    stats.longest_streak = state.longest_streak
    return stats


def _matches_condition(achievement: AchievementDefinition, stats: AchievementStats) -> bool:
    kind = achievement.type

    if kind == AchievementType.STREAK:
        return stats.current_streak >= achievement.requirement

    if kind == AchievementType.TOTAL_COMPLETIONS:
        return stats.total_completions >= achievement.requirement

    if kind == AchievementType.EARLY_COMPLETION:
        if achievement.secondary_requirement is None:
            return False
        count = stats.early_completions.get(achievement.secondary_requirement, 0)
        return count >= achievement.requirement

    if kind == AchievementType.COMEBACK:
        if achievement.id == "bounce_back":
            return stats.last_lost_streak >= 7 and stats.current_streak >= 1
        if achievement.id == "phoenix_rising":
            return stats.comeback_count >= 1 and stats.current_streak >= 14
        return stats.comeback_count >= achievement.requirement

    if kind == AchievementType.PERFECT_WEEK:
        return stats.current_streak >= 7

    if kind == AchievementType.WEEKEND_WARRIOR:
        return stats.completed_weekends >= achievement.requirement

    if kind == AchievementType.MONDAY_MOTIVATION:
        return stats.monday_completions >= achievement.requirement

    if kind == AchievementType.SPECIAL:
        if achievement.id == "new_year":
            return stats.completed_on_new_year
        return False

    return False


def evaluate(
    user_achievements: UserAchievements,
    stats: AchievementStats,
    now: datetime,
) -> list[AchievementDefinition]:
    """Unlock every matching achievement; return only this call's unlocks."""
    unlocked: list[AchievementDefinition] = []
    for achievement in ACHIEVEMENT_CATALOG:
        if user_achievements.is_unlocked(achievement.id):
            continue
        if _matches_condition(achievement, stats):
            user_achievements.unlock(achievement.id, now)
            unlocked.append(achievement)
            logger.info("Achievement unlocked: %s", achievement.id)
    return unlocked


def visible_achievements(unlocked_ids: set[str]) -> list[AchievementDefinition]:
    return [a for a in ACHIEVEMENT_CATALOG if not a.is_hidden or a.id in unlocked_ids]


def achievements_by_category() -> dict[AchievementCategory, list[AchievementDefinition]]:
    grouped: dict[AchievementCategory, list[AchievementDefinition]] = {c: [] for c in AchievementCategory}
    for achievement in ACHIEVEMENT_CATALOG:
        grouped[achievement.category].append(achievement)
    return grouped


def unlocked_count_by_category(user_achievements: UserAchievements) -> dict[AchievementCategory, int]:
    return {
        category: sum(1 for a in items if user_achievements.is_unlocked(a.id))
        for category, items in achievements_by_category().items()
    }


def next_achievement(user_achievements: UserAchievements) -> AchievementDefinition | None:
    for achievement in ACHIEVEMENT_CATALOG:
        if achievement.category == AchievementCategory.STREAK and not user_achievements.is_unlocked(achievement.id):
            return achievement
    return None
