"""Per-skill mastery updates."""

from adaptive_duo.models.profile import DEFAULT_MASTERY, Skill, UserProfile

CORRECT_DELTA = 0.02
INCORRECT_DELTA = -0.01


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def update_mastery(profile: UserProfile, skill: Skill, is_correct: bool) -> UserProfile:
    """Nudge one skill's mastery after a graded answer.

    Args:
        profile: Current profile (left untouched).
        skill: Skill the answer exercised.
        is_correct: Whether the answer was correct.

    Returns:
        Updated copy of the profile.
    """
    mastery = dict(profile.mastery_map)
    current = mastery.get(skill, DEFAULT_MASTERY)
    delta = CORRECT_DELTA if is_correct else INCORRECT_DELTA
    mastery[skill] = clamp01(current + delta)
    return profile.model_copy(update={"mastery_map": mastery})
