from morningproof.schemas.habit import (
    HabitConfig,
    HabitDefinition,
    HabitType,
    VerificationTier,
)


PREDEFINED_HABITS: list[dict] = [
    {
        "habit_type": HabitType.MADE_BED,
        "display_name": "Made Bed",
        "icon": "bed.double.fill",
        "tier": VerificationTier.AI_PHOTO,
        "category": "home",
    },
    {
        "habit_type": HabitType.SUNLIGHT_EXPOSURE,
        "display_name": "Morning Sunlight",
        "icon": "sun.max.fill",
        "tier": VerificationTier.AI_PHOTO,
        "category": "health",
    },
    {
        "habit_type": HabitType.MORNING_STEPS,
        "display_name": "Morning Walk",
        "icon": "figure.walk",
        "tier": VerificationTier.AUTO_TRACKED,
        "category": "movement",
        "default_goal": 500,
        "minimum_goal": 100,
        "unit": "steps",
    },
    {
        "habit_type": HabitType.SLEEP_DURATION,
        "display_name": "Sleep Goal",
        "icon": "moon.zzz.fill",
        "tier": VerificationTier.AUTO_TRACKED,
        "category": "health",
        "default_goal": 7,
        "minimum_goal": 1,
        "unit": "hours",
    },
    {
        "habit_type": HabitType.DRANK_WATER,
        "display_name": "Drank Water",
        "icon": "drop.fill",
        "tier": VerificationTier.MANUAL,
        "category": "health",
        "requires_hold_to_confirm": True,
    },
    {
        "habit_type": HabitType.MORNING_STRETCH,
        "display_name": "Morning Stretch",
        "icon": "figure.flexibility",
        "tier": VerificationTier.MANUAL,
        "category": "movement",
        "requires_hold_to_confirm": True,
    },
    {
        "habit_type": HabitType.NO_SNOOZE,
        "display_name": "No Snooze",
        "icon": "alarm.fill",
        "tier": VerificationTier.MANUAL,
        "category": "discipline",
    },
    {
        "habit_type": HabitType.JOURNALING,
        "display_name": "Journaling",
        "icon": "book.fill",
        "tier": VerificationTier.JOURNAL,
        "category": "mind",
        "minimum_text_length": 10,
    },
    {
        "habit_type": HabitType.MEDITATION,
        "display_name": "Meditation",
        "icon": "brain.head.profile",
        "tier": VerificationTier.MANUAL,
        "category": "mind",
    },
    {
        "habit_type": HabitType.BREAKFAST,
        "display_name": "Made Breakfast",
        "icon": "fork.knife",
        "tier": VerificationTier.MANUAL,
        "category": "health",
    },
]

HABIT_CATALOG: dict[HabitType, HabitDefinition] = {
    payload["habit_type"]: HabitDefinition(**payload) for payload in PREDEFINED_HABITS
}

DEFAULT_ENABLED = {
    HabitType.MADE_BED,
    HabitType.MORNING_STEPS,
    HabitType.SLEEP_DURATION,
    HabitType.DRANK_WATER,
}


def get_definition(habit_type: HabitType) -> HabitDefinition:
    return HABIT_CATALOG[HabitType(habit_type)]


def default_habit_configs() -> list[HabitConfig]:
    return [
        HabitConfig(
            habit_type=habit_type,
            is_enabled=habit_type in DEFAULT_ENABLED,
            display_order=index,
            active_days=set(definition.default_active_days),
        )
        for index, (habit_type, definition) in enumerate(HABIT_CATALOG.items())
    ]


def merge_with_defaults(configs: list[HabitConfig]) -> list[HabitConfig]:
    """Add a disabled config for every predefined habit missing from ``configs``.

    An empty list yields the full default set.
    """
    if not configs:
        return default_habit_configs()
    present = {c.habit_type for c in configs}
    merged = list(configs)
    next_order = max((c.display_order for c in configs), default=-1) + 1
    for config in default_habit_configs():
        if config.habit_type in present:
            continue
        config.is_enabled = False
        config.display_order = next_order
        next_order += 1
        merged.append(config)
    return merged
