"""Best-effort recovery of persisted profile data.

``sanitize_user`` accepts anything a store might hand back (current
snake_case documents, the older camelCase browser format, or garbage) and
always returns a valid ``UserProfile``. Fields that are missing or have the
wrong type fall back to the defaults of a fresh profile.
"""

import json
import math
from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from typing import Any, Callable, Collection

import structlog
from pydantic import ValidationError

from adaptive_duo.models.profile import (
    DEFAULT_MASTERY,
    PROGRESSION,
    SCHEMA_VERSION,
    ActivityRecord,
    CEFRLevel,
    LearningReason,
    LevelPath,
    PlacementInfo,
    Skill,
    UserProfile,
    new_profile,
)

logger = structlog.get_logger()

PLACEHOLDER_EMAIL = "demo@local"
PLACEHOLDER_NAME = "Demo"


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Rejected:
    reason: str


Parsed = Ok | Rejected

_ABSENT = Rejected("missing")


def _lookup(raw: dict, *names: str) -> Parsed:
    """First present key among ``names`` (current name first, then legacy)."""
    for name in names:
        if name in raw:
            return Ok(raw[name])
    return _ABSENT


def _raw(raw: dict, *names: str) -> Any:
    found = _lookup(raw, *names)
    return found.value if isinstance(found, Ok) else None


def _number(value: Any) -> Parsed:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return Rejected("not a number")
    try:
        finite = math.isfinite(value)
    except OverflowError:
        return Rejected("out of range")
    return Ok(value) if finite else Rejected("not finite")


def parse_str(value: Any) -> Parsed:
    return Ok(value) if isinstance(value, str) else Rejected("not a string")


def parse_int(value: Any) -> Parsed:
    parsed = _number(value)
    return Ok(int(parsed.value)) if isinstance(parsed, Ok) else parsed


def parse_float(value: Any) -> Parsed:
    parsed = _number(value)
    return Ok(float(parsed.value)) if isinstance(parsed, Ok) else parsed


def parse_bool(value: Any) -> Parsed:
    return Ok(value) if isinstance(value, bool) else Rejected("not a boolean")


def parse_datetime(value: Any) -> Parsed:
    if isinstance(value, datetime):
        return Ok(value)
    if isinstance(value, str):
        try:
            return Ok(datetime.fromisoformat(value))
        except ValueError:
            return Rejected("bad timestamp")
    return Rejected("not a timestamp")


def parse_date(value: Any) -> Parsed:
    if isinstance(value, datetime):
        return Ok(value.date())
    if isinstance(value, date):
        return Ok(value)
    if isinstance(value, str):
        try:
            return Ok(date.fromisoformat(value))
        except ValueError:
            parsed = parse_datetime(value)
            if isinstance(parsed, Ok):
                return Ok(parsed.value.date())
            return Rejected("bad date")
    return Rejected("not a date")


def enum_parser(
    enum_cls: type[StrEnum], allowed: Collection[StrEnum] | None = None
) -> Callable[[Any], Parsed]:
    def parse(value: Any) -> Parsed:
        try:
            member = enum_cls(value)
        except (TypeError, ValueError):
            return Rejected(f"unknown {enum_cls.__name__}")
        if allowed is not None and member not in allowed:
            return Rejected(f"{member} not allowed")
        return Ok(member)

    return parse


parse_stored_level = enum_parser(CEFRLevel, PROGRESSION)
parse_skill = enum_parser(Skill)
parse_reason = enum_parser(LearningReason)
parse_level_path = enum_parser(LevelPath)


def _field(
    raw: dict,
    names: tuple[str, ...],
    parser: Callable[[Any], Parsed],
    default: Any,
) -> Any:
    found = _lookup(raw, *names)
    if isinstance(found, Rejected):
        return default
    if found.value is None:
        return default
    parsed = parser(found.value)
    if isinstance(parsed, Rejected):
        logger.debug("profile_field_defaulted", field=names[0], reason=parsed.reason)
        return default
    return parsed.value


def _sanitize_mastery(raw: Any) -> dict[Skill, float]:
    source = raw if isinstance(raw, dict) else {}
    mastery = {}
    for skill in Skill:
        value = _field(source, (skill.value,), parse_float, DEFAULT_MASTERY)
        mastery[skill] = max(0.0, min(1.0, value))
    return mastery


def _sanitize_placement(raw: Any, fallback_level: CEFRLevel) -> PlacementInfo | None:
    if not isinstance(raw, dict):
        return None
    return PlacementInfo(
        cefr_level=_field(raw, ("cefr_level", "cefr"), parse_stored_level, fallback_level),
        target_skill=_field(raw, ("target_skill", "targetSkill"), parse_skill, Skill.VOCAB),
        score=_field(raw, ("score",), parse_int, None),
    )


def _sanitize_record(raw: dict, now: datetime) -> ActivityRecord:
    total = max(0, _field(raw, ("total_questions", "total"), parse_int, 0))
    correct = max(0, _field(raw, ("correct_answers", "correct"), parse_int, 0))
    return ActivityRecord(
        timestamp=_field(raw, ("timestamp", "atISO"), parse_datetime, now),
        title=_field(raw, ("title", "lessonTitle"), parse_str, "Activity"),
        total_questions=total,
        correct_answers=min(correct, total),
        xp_earned=_field(raw, ("xp_earned", "xpEarned"), parse_int, 0),
        skill=_field(raw, ("skill",), parse_skill, Skill.VOCAB),
    )


def _sanitize_history(raw: Any) -> list[ActivityRecord]:
    if not isinstance(raw, list):
        return []
    now = datetime.now()
    return [_sanitize_record(item, now) for item in raw if isinstance(item, dict)]


def sanitize_user(raw: Any) -> UserProfile:
    """Build a valid profile from loosely-typed persisted data. Never raises."""
    if not isinstance(raw, dict):
        logger.warning("profile_not_a_mapping", type=type(raw).__name__)
        return new_profile(PLACEHOLDER_EMAIL, PLACEHOLDER_NAME)

    email = _field(raw, ("email",), parse_str, PLACEHOLDER_EMAIL)
    name = _field(raw, ("name",), parse_str, None)
    base = new_profile(email, name)
    cefr_level = _field(raw, ("cefr_level", "cefr"), parse_stored_level, base.cefr_level)

    version = _field(raw, ("schema_version",), parse_int, 0)
    if version != SCHEMA_VERSION:
        logger.info("profile_migrated", email=base.email, from_version=version)

    try:
        return UserProfile(
            id=_field(raw, ("id",), parse_str, base.id),
            email=base.email,
            name=name if name is not None else base.name,
            created_at=_field(
                raw, ("created_at", "createdAtISO"), parse_datetime, base.created_at
            ),
            is_authed=_field(raw, ("is_authed", "isAuthed"), parse_bool, base.is_authed),
            cefr_level=cefr_level,
            placement_info=_sanitize_placement(
                _raw(raw, "placement_info", "lastPlacement"),
                cefr_level,
            ),
            daily_minutes=_field(raw, ("daily_minutes", "dailyMinutes"), parse_int, None),
            daily_word_target=_field(
                raw, ("daily_word_target", "dailyWordTarget"), parse_int, None
            ),
            xp_total=_field(raw, ("xp_total", "xpTotal"), parse_int, base.xp_total),
            level_xp=_field(raw, ("level_xp", "levelXp"), parse_int, base.level_xp),
            streak_days=_field(raw, ("streak_days", "streak"), parse_int, base.streak_days),
            last_login_date=_field(raw, ("last_login_date", "lastLoginISO"), parse_date, None),
            mastery_map=_sanitize_mastery(_raw(raw, "mastery_map", "mastery")),
            forced_skill=_field(raw, ("forced_skill", "forcedSkill"), parse_skill, None),
            activity_history=_sanitize_history(_raw(raw, "activity_history", "history")),
            knows_cefr=_field(raw, ("knows_cefr", "knowsCefr"), parse_bool, None),
            intended_cefr=_field(
                raw, ("intended_cefr", "intendedCefr"), parse_stored_level, None
            ),
            level_path=_field(raw, ("level_path", "levelPath"), parse_level_path, None),
            reason=_field(raw, ("reason",), parse_reason, None),
        )
    except ValidationError as e:
        logger.warning("profile_recovery_failed", email=base.email, error=str(e))
        return base


def decode_profile(blob: bytes) -> UserProfile | None:
    """Decode a stored blob. Returns None when it is not a JSON object."""
    try:
        raw = json.loads(blob)
    except (UnicodeDecodeError, ValueError, RecursionError):
        logger.warning("profile_blob_undecodable")
        return None
    if not isinstance(raw, dict):
        logger.warning("profile_blob_not_an_object")
        return None
    return sanitize_user(raw)


def encode_profile(profile: UserProfile) -> bytes:
    return profile.model_dump_json().encode("utf-8")
