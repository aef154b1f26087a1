"""Smoke tests for Pydantic models."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from adaptive_duo.models.placement import Confidence, GradedAnswer, LevelTally
from adaptive_duo.models.profile import (
    PROGRESSION,
    ActivityRecord,
    CEFRLevel,
    PlacementInfo,
    Skill,
    UserProfile,
    new_profile,
    to_stored_level,
)


class TestCEFRLevel:
    def test_enum_values(self):
        assert [level.value for level in CEFRLevel] == ["A1", "A2", "B1", "B2", "C1", "C2"]

    def test_progression_stops_at_c1(self):
        assert PROGRESSION[-1] == CEFRLevel.C1
        assert CEFRLevel.C2 not in PROGRESSION

    def test_to_stored_level(self):
        assert to_stored_level(CEFRLevel.B2) == CEFRLevel.B2
        assert to_stored_level(CEFRLevel.C2) == CEFRLevel.C1


class TestActivityRecord:
    def test_instantiation(self):
        record = ActivityRecord(title="Practice", total_questions=5, correct_answers=3)
        assert isinstance(record.timestamp, datetime)
        assert record.skill == Skill.VOCAB
        assert record.xp_earned == 0

    def test_correct_cannot_exceed_total(self):
        with pytest.raises(ValidationError):
            ActivityRecord(title="Broken", total_questions=2, correct_answers=3)

    def test_frozen(self):
        record = ActivityRecord(title="Practice", total_questions=1, correct_answers=1)
        with pytest.raises(ValidationError):
            record.title = "Changed"


class TestPlacementInfo:
    def test_defaults(self):
        info = PlacementInfo(cefr_level=CEFRLevel.B1)
        assert info.target_skill == Skill.VOCAB
        assert info.score is None

    def test_rejects_c2(self):
        with pytest.raises(ValidationError):
            PlacementInfo(cefr_level=CEFRLevel.C2)


class TestUserProfile:
    def test_new_profile_defaults(self):
        profile = new_profile("Learner@Example.com")
        assert profile.email == "learner@example.com"
        assert profile.name == "learner"
        assert profile.is_authed is True
        assert profile.cefr_level == CEFRLevel.A1
        assert profile.xp_total == 0
        assert profile.level_xp == 0
        assert profile.streak_days == 0
        assert profile.last_login_date is None
        assert profile.activity_history == []
        assert set(profile.mastery_map) == set(Skill)
        assert all(v == 0.2 for v in profile.mastery_map.values())

    def test_ids_are_unique(self):
        assert new_profile("a@x.com").id != new_profile("a@x.com").id

    def test_partial_mastery_is_completed_and_clamped(self):
        profile = UserProfile(email="a@x.com", mastery_map={"grammar": 1.7})
        assert profile.mastery_map[Skill.GRAMMAR] == 1.0
        assert profile.mastery_map[Skill.SPEAKING] == 0.2

    def test_stored_level_rejects_c2(self):
        with pytest.raises(ValidationError):
            UserProfile(email="a@x.com", cefr_level="C2")

    def test_required_field_email(self):
        with pytest.raises(ValidationError):
            UserProfile()


class TestPlacementModels:
    def test_graded_answer(self):
        answer = GradedAnswer(question_id="q1", is_correct=True, cefr_level="B2", difficulty=6)
        assert answer.cefr_level == CEFRLevel.B2

    def test_graded_answer_difficulty_range(self):
        with pytest.raises(ValidationError):
            GradedAnswer(question_id="q1", is_correct=True, cefr_level="B2", difficulty=11)

    def test_tally_accuracy(self):
        assert LevelTally().accuracy == 0.0
        assert LevelTally(correct=3, total=4).accuracy == pytest.approx(0.75)

    def test_confidence_values(self):
        assert Confidence.HIGH == "high"
        assert Confidence.LOW == "low"
