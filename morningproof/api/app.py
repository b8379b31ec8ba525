import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from morningproof.config import settings
from morningproof.core.database import async_session_factory, init_models
from morningproof.core.scheduler import decay_scheduler
from morningproof.repositories.data_store import SqlDataStore
from morningproof.repositories.profile_repo import ProfileRepository
from morningproof.schemas.habit import (
    CustomVerificationType,
    HabitType,
    VerificationData,
    VerificationOutcome,
    Weekday,
)
from morningproof.services import achievement_service
from morningproof.services.routine_service import RoutineService


class ProfileCreatePayload(BaseModel):
    user_name: str = Field(default="", max_length=255)
    timezone: str | None = None
    morning_cutoff_minutes: int | None = Field(default=None, ge=0, le=24 * 60 - 1)
    allow_streak_recovery: bool | None = None


class MeasurementPayload(BaseModel):
    value: float = Field(ge=0)
    verification: VerificationData | None = None


class JournalPayload(BaseModel):
    text: str


class CustomCompletePayload(BaseModel):
    success: bool = True
    verification: VerificationData | None = None


class HabitConfigPatch(BaseModel):
    is_enabled: bool | None = None
    goal: int | None = None
    active_days: list[Weekday] | None = None


class CustomHabitPayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    icon: str = "star.fill"
    verification_type: CustomVerificationType = CustomVerificationType.HONOR_SYSTEM
    ai_prompt: str | None = None
    active_days: list[Weekday] | None = None


class SettingsPatch(BaseModel):
    user_name: str | None = None
    timezone: str | None = None
    morning_cutoff_minutes: int | None = Field(default=None, ge=0, le=24 * 60 - 1)
    allow_streak_recovery: bool | None = None


app = FastAPI(title="MorningProof API", version="1.0.0")
logger = logging.getLogger(__name__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# callable returning local wall-clock time; None means the profile's timezone
app.state.clock = None

# only profiles that exist get a lock
_profile_locks: dict[int, asyncio.Lock] = {}


async def _profile_lock(profile_id: int) -> asyncio.Lock:
    lock = _profile_locks.get(profile_id)
    if lock is None:
        async with async_session_factory() as session:
            if not await ProfileRepository(session).get_by_id(profile_id):
                raise HTTPException(status_code=404, detail="Profile not found")
        lock = _profile_locks.setdefault(profile_id, asyncio.Lock())
    return lock


@asynccontextmanager
async def _routine(profile_id: int):
    async with await _profile_lock(profile_id):
        async with async_session_factory() as session:
            if not await ProfileRepository(session).get_by_id(profile_id):
                raise HTTPException(status_code=404, detail="Profile not found")
            service = await RoutineService.open(
                SqlDataStore(session, profile_id),
                profile_id=profile_id,
                clock=app.state.clock,
            )
            yield service
            await session.commit()


def _serialize_achievement(achievement, user_achievements) -> dict:
    unlocked_at = user_achievements.unlocked_date(achievement.id)
    return {
        **achievement.model_dump(mode="json"),
        "is_unlocked": unlocked_at is not None,
        "unlocked_at": unlocked_at.isoformat() if unlocked_at else None,
    }


@app.on_event("startup")
async def startup():
    await init_models()
    if settings.SCHEDULER_ENABLED:
        decay_scheduler.start()
        logger.info("Streak decay scheduler started (every %s min)", settings.DECAY_CHECK_MINUTES)


@app.on_event("shutdown")
async def shutdown():
    decay_scheduler.shutdown()


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(request, exc: SQLAlchemyError):
    from fastapi.responses import JSONResponse
    logger.error("DB error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Database unavailable. Check DATABASE_URL and connectivity."},
    )


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/v1/profiles")
async def create_profile(payload: ProfileCreatePayload):
    async with async_session_factory() as session:
        fields = {k: v for k, v in payload.model_dump().items() if v is not None}
        profile = await ProfileRepository(session).create_profile(
            timezone=fields.pop("timezone", settings.TIMEZONE),
            morning_cutoff_minutes=fields.pop("morning_cutoff_minutes", settings.MORNING_CUTOFF_MINUTES),
            allow_streak_recovery=fields.pop("allow_streak_recovery", settings.ALLOW_STREAK_RECOVERY),
            **fields,
        )
        service = await RoutineService.open(
            SqlDataStore(session, profile.id), profile_id=profile.id, clock=app.state.clock
        )
        await session.commit()
        logger.info("Profile %s created", profile.id)
        return service.snapshot()


@app.get("/api/v1/profiles/{profile_id}/today")
async def get_today(profile_id: int):
    async with _routine(profile_id) as service:
        return service.snapshot()


@app.get("/api/v1/profiles/{profile_id}/history")
async def get_history(profile_id: int, days: int = 30):
    async with _routine(profile_id) as service:
        return {"days": await service.history(days)}


@app.post("/api/v1/profiles/{profile_id}/habits/journaling/journal")
async def complete_journal(profile_id: int, payload: JournalPayload):
    async with _routine(profile_id) as service:
        return await service.complete_journal(payload.text)


@app.post("/api/v1/profiles/{profile_id}/habits/{habit_type}/complete")
async def complete_habit(profile_id: int, habit_type: HabitType, payload: VerificationOutcome):
    async with _routine(profile_id) as service:
        return await service.complete_habit(habit_type, payload)


@app.post("/api/v1/profiles/{profile_id}/habits/{habit_type}/measurement")
async def record_measurement(profile_id: int, habit_type: HabitType, payload: MeasurementPayload):
    async with _routine(profile_id) as service:
        return await service.record_measurement(habit_type, payload.value, payload.verification)


@app.patch("/api/v1/profiles/{profile_id}/habits/{habit_type}")
async def update_habit(profile_id: int, habit_type: HabitType, payload: HabitConfigPatch):
    async with _routine(profile_id) as service:
        return await service.update_habit_config(
            habit_type,
            is_enabled=payload.is_enabled,
            goal=payload.goal,
            active_days=payload.active_days,
        )


@app.post("/api/v1/profiles/{profile_id}/custom-habits")
async def add_custom_habit(profile_id: int, payload: CustomHabitPayload):
    async with _routine(profile_id) as service:
        return await service.add_custom_habit(
            name=payload.name.strip(),
            icon=payload.icon,
            verification_type=payload.verification_type,
            ai_prompt=payload.ai_prompt,
            active_days=payload.active_days,
        )


@app.delete("/api/v1/profiles/{profile_id}/custom-habits/{custom_habit_id}")
async def delete_custom_habit(profile_id: int, custom_habit_id: str):
    async with _routine(profile_id) as service:
        result = await service.delete_custom_habit(custom_habit_id)
        if result.get("skipped"):
            raise HTTPException(status_code=404, detail="Custom habit not found")
        return result


@app.post("/api/v1/profiles/{profile_id}/custom-habits/{custom_habit_id}/complete")
async def complete_custom_habit(profile_id: int, custom_habit_id: str, payload: CustomCompletePayload):
    outcome = VerificationOutcome(success=payload.success, verification=payload.verification)
    async with _routine(profile_id) as service:
        return await service.complete_custom_habit(custom_habit_id, outcome)


@app.post("/api/v1/profiles/{profile_id}/lock-in")
async def lock_in(profile_id: int):
    async with _routine(profile_id) as service:
        return await service.lock_in()


@app.post("/api/v1/profiles/{profile_id}/streak/recover")
async def recover_streak(profile_id: int):
    async with _routine(profile_id) as service:
        return await service.recover_streak()


@app.get("/api/v1/profiles/{profile_id}/achievements")
async def get_achievements(profile_id: int):
    async with _routine(profile_id) as service:
        user_achievements = service.achievements
        visible = achievement_service.visible_achievements(user_achievements.unlocked_ids)
        next_up = achievement_service.next_achievement(user_achievements)
        return {
            "unlocked_count": user_achievements.unlocked_count,
            "total": len(achievement_service.ACHIEVEMENT_CATALOG),
            "by_category": {
                category.value: {"title": category.display_name, "unlocked": count}
                for category, count in achievement_service.unlocked_count_by_category(user_achievements).items()
            },
            "achievements": [_serialize_achievement(a, user_achievements) for a in visible],
            "next_achievement": next_up.model_dump(mode="json") if next_up else None,
        }


@app.patch("/api/v1/profiles/{profile_id}/settings")
async def patch_settings(profile_id: int, payload: SettingsPatch):
    async with _routine(profile_id) as service:
        return await service.update_settings(**payload.model_dump())


@app.post("/api/v1/profiles/{profile_id}/reset")
async def reset_profile(profile_id: int):
    async with _routine(profile_id) as service:
        await service.reset_all_data()
        return service.snapshot()
