"""Placement test input and result models."""

from enum import StrEnum

from pydantic import BaseModel, Field

from adaptive_duo.models.profile import CEFRLevel


class Confidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class GradedAnswer(BaseModel):
    """A single graded placement answer tagged with its question's level."""

    question_id: str
    is_correct: bool
    cefr_level: CEFRLevel
    difficulty: int = Field(default=5, ge=1, le=10)
    user_answer: str | None = None
    correct_answer: str | None = None


class LevelTally(BaseModel):
    """Correct and attempted counts for one CEFR level."""

    correct: int = 0
    total: int = 0

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0


class PlacementResult(BaseModel):
    """Outcome of a placement evaluation."""

    determined_level: CEFRLevel
    score: int
    total_questions: int
    correct_answers: int
    correct_by_level: dict[CEFRLevel, LevelTally]
    highest_correct_level: CEFRLevel
    confidence: Confidence
    reasoning: str
