"""User profile model for tracking learning progress across sessions."""

import uuid
from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SCHEMA_VERSION = 1
DEFAULT_MASTERY = 0.2


class CEFRLevel(StrEnum):
    """CEFR proficiency levels, lowest first."""

    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"


# Levels a learner can hold. C2 is only ever produced by the placement evaluator.
PROGRESSION: tuple[CEFRLevel, ...] = (
    CEFRLevel.A1,
    CEFRLevel.A2,
    CEFRLevel.B1,
    CEFRLevel.B2,
    CEFRLevel.C1,
)


def to_stored_level(level: CEFRLevel) -> CEFRLevel:
    """Map any CEFR level onto the stored progression (C2 becomes C1)."""
    return level if level in PROGRESSION else PROGRESSION[-1]


class Skill(StrEnum):
    """Skill tags used for mastery tracking and activity history."""

    VOCAB = "vocab"
    GRAMMAR = "grammar"
    READING = "reading"
    WRITING = "writing"
    LISTENING = "listening"
    SPEAKING = "speaking"


class LearningReason(StrEnum):
    WORK = "work"
    SCHOOL = "school"
    TRAVEL = "travel"
    CULTURE = "culture"
    FAMILY = "family"
    CHALLENGE = "challenge"
    OTHER = "other"


class LevelPath(StrEnum):
    BEGINNER = "beginner"
    KNOW_SOME = "know_some"


def default_mastery() -> dict[Skill, float]:
    return {skill: DEFAULT_MASTERY for skill in Skill}


class ActivityRecord(BaseModel):
    """A completed activity in the user's history. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=datetime.now)
    title: str
    total_questions: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    xp_earned: int = 0
    skill: Skill = Skill.VOCAB

    @model_validator(mode="after")
    def _correct_within_total(self) -> "ActivityRecord":
        if self.correct_answers > self.total_questions:
            raise ValueError("correct_answers cannot exceed total_questions")
        return self


class PlacementInfo(BaseModel):
    """Outcome of the most recent placement evaluation."""

    cefr_level: CEFRLevel
    target_skill: Skill = Skill.VOCAB
    score: int | None = None

    @field_validator("cefr_level")
    @classmethod
    def _in_progression(cls, value: CEFRLevel) -> CEFRLevel:
        if value not in PROGRESSION:
            raise ValueError(f"{value} is not a stored CEFR level")
        return value


class UserProfile(BaseModel):
    schema_version: int = SCHEMA_VERSION
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    email: str
    name: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    is_authed: bool = True
    cefr_level: CEFRLevel = CEFRLevel.A1
    placement_info: PlacementInfo | None = None
    daily_minutes: int | None = None
    daily_word_target: int | None = None
    xp_total: int = 0
    level_xp: int = 0
    streak_days: int = 0
    last_login_date: date | None = None
    mastery_map: dict[Skill, float] = Field(default_factory=default_mastery)
    forced_skill: Skill | None = None
    activity_history: list[ActivityRecord] = Field(default_factory=list)  # most recent first
    # Onboarding answers
    knows_cefr: bool | None = None
    intended_cefr: CEFRLevel | None = None
    level_path: LevelPath | None = None
    reason: LearningReason | None = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("cefr_level", "intended_cefr")
    @classmethod
    def _stored_level(cls, value: CEFRLevel | None) -> CEFRLevel | None:
        if value is not None and value not in PROGRESSION:
            raise ValueError(f"{value} is not a stored CEFR level")
        return value

    @field_validator("mastery_map")
    @classmethod
    def _complete_mastery(cls, value: dict[Skill, float]) -> dict[Skill, float]:
        merged = default_mastery()
        for skill, score in value.items():
            merged[skill] = max(0.0, min(1.0, score))
        return merged


def new_profile(email: str, name: str | None = None) -> UserProfile:
    """Create a fresh, authenticated profile for a first login."""
    email = email.strip().lower()
    return UserProfile(email=email, name=name or email.split("@")[0])
