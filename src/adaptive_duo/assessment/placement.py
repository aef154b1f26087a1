"""CEFR placement evaluation from graded answers."""

from collections.abc import Sequence

import structlog

from adaptive_duo.assessment.guidance import LEVEL_SUMMARIES
from adaptive_duo.models.placement import Confidence, GradedAnswer, LevelTally, PlacementResult
from adaptive_duo.models.profile import (
    CEFRLevel,
    PlacementInfo,
    Skill,
    UserProfile,
    to_stored_level,
)

logger = structlog.get_logger()

MASTERY_THRESHOLD = 0.70

# Per-level pass marks for the lenient pass used when no level is mastered
FALLBACK_THRESHOLDS: dict[CEFRLevel, float] = {
    CEFRLevel.A1: 0.50,
    CEFRLevel.A2: 0.50,
    CEFRLevel.B1: 0.60,
    CEFRLevel.B2: 0.60,
    CEFRLevel.C1: 0.70,
    CEFRLevel.C2: 0.70,
}

HIGH_CONFIDENCE_ACCURACY = 0.80
LOW_CONFIDENCE_ACCURACY = 0.60


class InvalidInputError(ValueError):
    """Raised when placement input cannot be evaluated."""


def round_half_up(value: float) -> int:
    return int(value + 0.5)


def tally_by_level(answers: Sequence[GradedAnswer]) -> dict[CEFRLevel, LevelTally]:
    tallies = {level: LevelTally() for level in CEFRLevel}
    for answer in answers:
        tally = tallies[answer.cefr_level]
        tally.total += 1
        if answer.is_correct:
            tally.correct += 1
    return tallies


def _highest_correct_level(tallies: dict[CEFRLevel, LevelTally]) -> CEFRLevel:
    for level in reversed(CEFRLevel):
        if tallies[level].correct > 0:
            return level
    return CEFRLevel.A1


def _mastered_level(tallies: dict[CEFRLevel, LevelTally]) -> CEFRLevel | None:
    """Highest level answered at or above the mastery threshold."""
    for level in reversed(CEFRLevel):
        tally = tallies[level]
        if tally.total > 0 and tally.accuracy >= MASTERY_THRESHOLD:
            return level
    return None


def _fallback_level(tallies: dict[CEFRLevel, LevelTally]) -> CEFRLevel:
    """Lenient bottom-up pass.

    Each attempted level is checked against its own threshold and a passing
    level replaces the result, so the outcome may skip a failed level below it.
    """
    determined = CEFRLevel.A1
    for level in CEFRLevel:
        tally = tallies[level]
        if tally.total > 0 and tally.accuracy >= FALLBACK_THRESHOLDS[level]:
            determined = level
    return determined


def _confidence(accuracy: float) -> Confidence:
    if accuracy >= HIGH_CONFIDENCE_ACCURACY:
        return Confidence.HIGH
    if accuracy < LOW_CONFIDENCE_ACCURACY:
        return Confidence.LOW
    return Confidence.MEDIUM


def build_reasoning(
    level: CEFRLevel,
    tallies: dict[CEFRLevel, LevelTally],
    highest_correct: CEFRLevel,
    total_correct: int,
    total_questions: int,
) -> str:
    accuracy = round_half_up(tallies[level].accuracy * 100)
    return (
        f"Based on {total_correct}/{total_questions} correct answers, you demonstrated "
        f"{accuracy}% mastery at {level.value} level questions. You are assessed as a "
        f"{LEVEL_SUMMARIES[level]}. Your highest correctly answered level was "
        f"{highest_correct.value}."
    )


def evaluate_placement_test(answers: Sequence[GradedAnswer]) -> PlacementResult:
    """Determine a CEFR level from a batch of graded answers.

    The highest level answered with at least 70% accuracy wins. When no level
    reaches that, a lenient pass with per-level thresholds is used instead.

    Args:
        answers: Graded answers, each tagged with its question's level.

    Returns:
        PlacementResult with level, score, per-level breakdown and confidence.

    Raises:
        InvalidInputError: If ``answers`` is empty.
    """
    if not answers:
        raise InvalidInputError("placement evaluation requires at least one answer")

    tallies = tally_by_level(answers)
    total_questions = len(answers)
    total_correct = sum(1 for a in answers if a.is_correct)
    score = round_half_up(total_correct / total_questions * 100)

    highest_correct = _highest_correct_level(tallies)
    mastered = _mastered_level(tallies)
    determined = mastered if mastered is not None else _fallback_level(tallies)
    confidence = _confidence(tallies[determined].accuracy)

    result = PlacementResult(
        determined_level=determined,
        score=score,
        total_questions=total_questions,
        correct_answers=total_correct,
        correct_by_level=tallies,
        highest_correct_level=highest_correct,
        confidence=confidence,
        reasoning=build_reasoning(
            determined, tallies, highest_correct, total_correct, total_questions
        ),
    )
    logger.info(
        "placement_evaluated",
        determined_level=determined.value,
        score=score,
        confidence=confidence.value,
        used_fallback=mastered is None,
    )
    return result


def apply_placement_result(
    profile: UserProfile,
    result: PlacementResult,
    target_skill: Skill = Skill.VOCAB,
) -> UserProfile:
    """Store a placement outcome on a profile.

    A C2 result is stored as C1, the top of the learner progression.
    """
    level = to_stored_level(result.determined_level)
    info = PlacementInfo(cefr_level=level, target_skill=target_skill, score=result.score)
    return profile.model_copy(update={"cefr_level": level, "placement_info": info})
