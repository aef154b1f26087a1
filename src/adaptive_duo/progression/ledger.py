"""XP, streak and level-up bookkeeping.

Every function here is pure: it returns an updated copy of the profile and
leaves persistence to the caller.
"""

from datetime import date, datetime, timedelta

import structlog
from pydantic import BaseModel

from adaptive_duo.assessment.placement import round_half_up
from adaptive_duo.models.profile import PROGRESSION, ActivityRecord, Skill, UserProfile
from adaptive_duo.progression.mastery import update_mastery

logger = structlog.get_logger()

DAILY_LOGIN_XP = 10
DAILY_WORDS_DONE_XP = 25
CORRECT_ANSWER_XP = 2
PRACTICE_DONE_XP = 50
WRITING_DONE_XP = 30
LEVEL_UP_THRESHOLD = 300
LEVEL_UP_BONUS_XP = 50
LEVEL_UP_PASS_PERCENT = 80

# Recorded on a level-up when the caller does not report the exam score.
PLACEHOLDER_LEVEL_UP_TOTAL = 100
PLACEHOLDER_LEVEL_UP_CORRECT = 85


class ActivityMeta(BaseModel):
    """Describes the activity an XP grant came from."""

    title: str | None = None
    total: int = 0
    correct: int = 0
    skill: Skill = Skill.VOCAB


def grant_xp(
    profile: UserProfile,
    amount: int,
    meta: ActivityMeta | None = None,
    now: datetime | None = None,
) -> UserProfile:
    """Add XP to the lifetime total and the level counter.

    A history record is prepended only when ``meta`` names the activity.
    ``amount`` is not checked for sign.
    """
    update: dict = {
        "xp_total": profile.xp_total + amount,
        "level_xp": profile.level_xp + amount,
    }
    if meta is not None and meta.title:
        record = ActivityRecord(
            timestamp=now or datetime.now(),
            title=meta.title,
            total_questions=meta.total,
            correct_answers=meta.correct,
            xp_earned=amount,
            skill=meta.skill,
        )
        update["activity_history"] = [record, *profile.activity_history]
    return profile.model_copy(update=update)


def needs_level_up(profile: UserProfile) -> bool:
    return profile.level_xp >= LEVEL_UP_THRESHOLD


def level_progress_percent(profile: UserProfile) -> int:
    """Progress toward the next level-up test, 0-100."""
    pct = round_half_up(profile.level_xp / LEVEL_UP_THRESHOLD * 100)
    return max(0, min(100, pct))


def xp_to_next_level(profile: UserProfile) -> int:
    return max(0, LEVEL_UP_THRESHOLD - profile.level_xp)


def xp_earned_in_month(profile: UserProfile, year: int, month: int) -> int:
    return sum(
        record.xp_earned
        for record in profile.activity_history
        if record.timestamp.year == year and record.timestamp.month == month
    )


def apply_daily_login_bonus(
    profile: UserProfile,
    today: date | None = None,
    now: datetime | None = None,
) -> UserProfile:
    """Grant the once-per-day login bonus and maintain the streak.

    Calling this again on the same day returns the profile unchanged. The
    history record is stamped on ``today``.
    """
    now = now or datetime.now()
    today = today or now.date()
    if now.date() != today:
        now = datetime.combine(today, now.timetz())
    if profile.last_login_date == today:
        return profile

    if profile.last_login_date == today - timedelta(days=1):
        streak = profile.streak_days + 1
    else:
        streak = 1

    updated = profile.model_copy(update={"streak_days": streak, "last_login_date": today})
    updated = grant_xp(
        updated,
        DAILY_LOGIN_XP,
        ActivityMeta(title="Daily login bonus", total=1, correct=1, skill=Skill.VOCAB),
        now=now,
    )
    logger.info("daily_login_bonus", email=profile.email, streak=streak)
    return updated


def level_up_passed(correct: int, total: int) -> bool:
    """Whether a level-up exam score clears the pass mark."""
    if total <= 0:
        return False
    return round_half_up(correct / total * 100) >= LEVEL_UP_PASS_PERCENT


def apply_level_up_pass(
    profile: UserProfile,
    passed: bool,
    total: int | None = None,
    correct: int | None = None,
    now: datetime | None = None,
) -> UserProfile:
    """Apply the outcome of a level-up exam.

    On a pass the learner advances one step along the progression (C1 is
    terminal), the level counter resets and a bonus is granted. On a fail
    the level counter is halved.

    Args:
        profile: Current profile.
        passed: Exam outcome.
        total: Questions in the exam, recorded in history when given.
        correct: Correct answers, recorded in history when given.
        now: Timestamp for the history record.

    Returns:
        Updated copy of the profile.
    """
    if not passed:
        logger.info("level_up_failed", email=profile.email, level=profile.cefr_level.value)
        return profile.model_copy(update={"level_xp": profile.level_xp // 2})

    idx = PROGRESSION.index(profile.cefr_level)
    new_level = PROGRESSION[min(idx + 1, len(PROGRESSION) - 1)]

    if total is None or correct is None:
        total, correct = PLACEHOLDER_LEVEL_UP_TOTAL, PLACEHOLDER_LEVEL_UP_CORRECT

    record = ActivityRecord(
        timestamp=now or datetime.now(),
        title=f"Level Up: {profile.cefr_level.value} -> {new_level.value}",
        total_questions=total,
        correct_answers=correct,
        xp_earned=LEVEL_UP_BONUS_XP,
        skill=Skill.VOCAB,
    )
    logger.info(
        "level_up_passed",
        email=profile.email,
        old_level=profile.cefr_level.value,
        new_level=new_level.value,
    )
    return profile.model_copy(
        update={
            "cefr_level": new_level,
            "level_xp": 0,
            "xp_total": profile.xp_total + LEVEL_UP_BONUS_XP,
            "activity_history": [record, *profile.activity_history],
        }
    )


def record_practice_answer(
    profile: UserProfile,
    skill: Skill,
    is_correct: bool,
    prompt: str,
    now: datetime | None = None,
) -> UserProfile:
    """Update mastery for a practice answer and reward a correct one."""
    updated = update_mastery(profile, skill, is_correct)
    if is_correct:
        updated = grant_xp(
            updated,
            CORRECT_ANSWER_XP,
            ActivityMeta(title=f"Practice: {prompt}", total=1, correct=1, skill=skill),
            now=now,
        )
    return updated
