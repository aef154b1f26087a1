"""REST API routes for placement, login and progress tracking."""

import functools
from datetime import date, datetime

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from adaptive_duo.assessment.guidance import get_level_description, get_recommendations
from adaptive_duo.assessment.placement import (
    InvalidInputError,
    apply_placement_result,
    evaluate_placement_test,
)
from adaptive_duo.config import get_settings
from adaptive_duo.models.placement import GradedAnswer
from adaptive_duo.models.profile import Skill, UserProfile
from adaptive_duo.progression import ledger
from adaptive_duo.storage.kv import FileStore, KeyValueStore, MemoryStore
from adaptive_duo.storage.user_profile import ProfileStore

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


@functools.lru_cache
def get_profile_store() -> ProfileStore:
    """Profile store for the configured backend (shared across requests)."""
    settings = get_settings()
    kv: KeyValueStore
    if settings.storage_backend == "memory":
        kv = MemoryStore()
    else:
        kv = FileStore(settings.profiles_dir)
    logger.info("profile_store_ready", backend=settings.storage_backend)
    return ProfileStore(kv)


def require_user(store: ProfileStore = Depends(get_profile_store)) -> UserProfile:
    profile = store.load_active_user()
    if not profile.is_authed:
        raise HTTPException(status_code=401, detail="Not logged in")
    return profile


class EvaluateRequest(BaseModel):
    answers: list[GradedAnswer] = Field(min_length=1)
    apply: bool = False
    target_skill: Skill = Skill.VOCAB


class LoginRequest(BaseModel):
    email: str
    name: str | None = None


class PracticeAnswerRequest(BaseModel):
    skill: Skill
    is_correct: bool
    prompt: str = ""


class LevelUpRequest(BaseModel):
    passed: bool | None = None
    total: int | None = Field(default=None, ge=0)
    correct: int | None = Field(default=None, ge=0)


def _profile_response(profile: UserProfile) -> dict:
    return profile.model_dump(mode="json")


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.post("/placement/evaluate")
async def evaluate_placement(
    request: EvaluateRequest,
    store: ProfileStore = Depends(get_profile_store),
) -> dict:
    """Evaluate a placement test and optionally store the level on the active user."""
    try:
        result = evaluate_placement_test(request.answers)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    response = {
        "level": result.determined_level.value,
        "score": result.score,
        "total_questions": result.total_questions,
        "correct_answers": result.correct_answers,
        "confidence": result.confidence.value,
        "reasoning": result.reasoning,
        "level_description": get_level_description(result.determined_level),
        "recommendations": get_recommendations(result),
        "breakdown": {
            level.value: tally.model_dump() for level, tally in result.correct_by_level.items()
        },
        "highest_correct_level": result.highest_correct_level.value,
    }

    if request.apply:
        profile = require_user(store)
        updated = apply_placement_result(profile, result, request.target_skill)
        store.save(updated)
        response["stored_level"] = updated.cefr_level.value

    return response


@router.post("/users/login")
async def login(
    request: LoginRequest,
    store: ProfileStore = Depends(get_profile_store),
) -> dict:
    email = request.email.strip()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="Invalid email")
    return _profile_response(store.login(email, request.name))


@router.post("/users/logout")
async def logout(store: ProfileStore = Depends(get_profile_store)) -> dict:
    store.logout()
    return {"status": "ok"}


@router.get("/users/me")
async def current_user(store: ProfileStore = Depends(get_profile_store)) -> dict:
    """Active profile, or the unauthenticated placeholder."""
    return _profile_response(store.load_active_user())


@router.post("/progress/daily-login")
async def daily_login(
    profile: UserProfile = Depends(require_user),
    store: ProfileStore = Depends(get_profile_store),
) -> dict:
    updated = ledger.apply_daily_login_bonus(profile, date.today())
    store.save(updated)
    return _profile_response(updated)


@router.post("/progress/practice")
async def practice_answer(
    request: PracticeAnswerRequest,
    profile: UserProfile = Depends(require_user),
    store: ProfileStore = Depends(get_profile_store),
) -> dict:
    updated = ledger.record_practice_answer(
        profile, request.skill, request.is_correct, request.prompt
    )
    store.save(updated)
    return _profile_response(updated)


@router.post("/progress/level-up")
async def level_up(
    request: LevelUpRequest,
    profile: UserProfile = Depends(require_user),
    store: ProfileStore = Depends(get_profile_store),
) -> dict:
    """Apply a level-up exam outcome, given directly or as a score."""
    if request.total is not None and request.correct is not None:
        if request.correct > request.total:
            raise HTTPException(status_code=400, detail="correct exceeds total")
    passed = request.passed
    if passed is None:
        if request.total is None or request.correct is None:
            raise HTTPException(status_code=400, detail="Provide passed or total and correct")
        passed = ledger.level_up_passed(request.correct, request.total)

    updated = ledger.apply_level_up_pass(profile, passed, request.total, request.correct)
    store.save(updated)
    return {"passed": passed, "profile": _profile_response(updated)}


@router.get("/progress/summary")
async def progress_summary(profile: UserProfile = Depends(require_user)) -> dict:
    """Dashboard figures for the active user."""
    now = datetime.now()
    return {
        "cefr_level": profile.cefr_level.value,
        "xp_total": profile.xp_total,
        "level_xp": profile.level_xp,
        "level_up_threshold": ledger.LEVEL_UP_THRESHOLD,
        "level_progress_percent": ledger.level_progress_percent(profile),
        "xp_to_next_level": ledger.xp_to_next_level(profile),
        "needs_level_up": ledger.needs_level_up(profile),
        "streak_days": profile.streak_days,
        "month_xp": ledger.xp_earned_in_month(profile, now.year, now.month),
        "mastery": {skill.value: score for skill, score in profile.mastery_map.items()},
        "rewards": {
            "daily_login": ledger.DAILY_LOGIN_XP,
            "daily_words_done": ledger.DAILY_WORDS_DONE_XP,
            "correct_answer": ledger.CORRECT_ANSWER_XP,
            "practice_done": ledger.PRACTICE_DONE_XP,
            "writing_done": ledger.WRITING_DONE_XP,
        },
    }
