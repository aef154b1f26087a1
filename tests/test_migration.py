"""Tests for best-effort profile recovery."""

import json
from datetime import date, datetime, timezone

import pytest

from adaptive_duo.models.profile import (
    ActivityRecord,
    CEFRLevel,
    LearningReason,
    LevelPath,
    PlacementInfo,
    Skill,
    UserProfile,
)
from adaptive_duo.storage.migration import (
    PLACEHOLDER_EMAIL,
    decode_profile,
    encode_profile,
    sanitize_user,
)


@pytest.fixture
def full_profile() -> UserProfile:
    return UserProfile(
        id="abc123",
        email="learner@example.com",
        name="Learner",
        created_at=datetime(2026, 9, 1, 8, 15, 30, 123456),
        is_authed=True,
        cefr_level=CEFRLevel.B2,
        placement_info=PlacementInfo(
            cefr_level=CEFRLevel.B1, target_skill=Skill.READING, score=64
        ),
        daily_minutes=20,
        daily_word_target=10,
        xp_total=1240,
        level_xp=180,
        streak_days=6,
        last_login_date=date(2026, 10, 18),
        mastery_map={
            Skill.VOCAB: 0.37,
            Skill.GRAMMAR: 0.81,
            Skill.READING: 0.0,
            Skill.WRITING: 1.0,
            Skill.LISTENING: 0.2,
            Skill.SPEAKING: 0.55,
        },
        forced_skill=Skill.LISTENING,
        activity_history=[
            ActivityRecord(
                timestamp=datetime(2026, 10, 18, 19, 0, 5),
                title="Practice: Past simple",
                total_questions=1,
                correct_answers=1,
                xp_earned=2,
                skill=Skill.GRAMMAR,
            ),
            ActivityRecord(
                timestamp=datetime(2026, 10, 17, 7, 30, tzinfo=timezone.utc),
                title="Daily login bonus",
                total_questions=1,
                correct_answers=1,
                xp_earned=10,
            ),
        ],
        knows_cefr=False,
        intended_cefr=CEFRLevel.B1,
        level_path=LevelPath.KNOW_SOME,
        reason=LearningReason.TRAVEL,
    )


class TestRoundTrip:
    def test_full_profile(self, full_profile):
        assert sanitize_user(json.loads(full_profile.model_dump_json())) == full_profile

    def test_minimal_profile(self):
        profile = UserProfile(email="min@example.com", name="")
        assert sanitize_user(json.loads(profile.model_dump_json())) == profile

    def test_blob_round_trip(self, full_profile):
        assert decode_profile(encode_profile(full_profile)) == full_profile


class TestLegacyFormat:
    def test_camel_case_document(self):
        raw = {
            "id": "legacy-1",
            "email": "Old@Example.com",
            "name": "Old",
            "createdAtISO": "2025-12-01T10:00:00.000Z",
            "isAuthed": False,
            "cefr": "B1",
            "xpTotal": 120,
            "levelXp": 40,
            "streak": 3,
            "lastLoginISO": "2026-10-18",
            "mastery": {"vocab": 0.5, "grammar": "high"},
            "history": [
                {
                    "atISO": "2026-10-18T08:00:00.000Z",
                    "lessonTitle": "Practice: x",
                    "total": 1,
                    "correct": 1,
                    "xpEarned": 2,
                }
            ],
            "lastPlacement": {"cefr": "B1", "score": 70},
            "knowsCefr": True,
            "levelPath": "know_some",
            "reason": "work",
        }
        profile = sanitize_user(raw)
        assert profile.id == "legacy-1"
        assert profile.email == "old@example.com"
        assert profile.is_authed is False
        assert profile.cefr_level == CEFRLevel.B1
        assert profile.xp_total == 120
        assert profile.level_xp == 40
        assert profile.streak_days == 3
        assert profile.last_login_date == date(2026, 10, 18)
        assert profile.created_at.year == 2025
        assert profile.mastery_map[Skill.VOCAB] == 0.5
        assert profile.mastery_map[Skill.GRAMMAR] == 0.2
        record = profile.activity_history[0]
        assert record.title == "Practice: x"
        assert record.skill == Skill.VOCAB
        assert record.xp_earned == 2
        assert profile.placement_info == PlacementInfo(cefr_level=CEFRLevel.B1, score=70)
        assert profile.knows_cefr is True
        assert profile.level_path == LevelPath.KNOW_SOME
        assert profile.reason == LearningReason.WORK


class TestRecovery:
    @pytest.mark.parametrize("raw", [None, "profile", 42, [1, 2, 3]])
    def test_non_mapping_gives_fresh_profile(self, raw):
        profile = sanitize_user(raw)
        assert profile.email == PLACEHOLDER_EMAIL
        assert profile.cefr_level == CEFRLevel.A1

    def test_empty_mapping(self):
        profile = sanitize_user({})
        assert profile.email == PLACEHOLDER_EMAIL
        assert profile.xp_total == 0
        assert profile.activity_history == []

    def test_wrong_types_are_defaulted(self):
        profile = sanitize_user(
            {
                "email": "x@example.com",
                "cefr_level": "Z9",
                "xp_total": "100",
                "level_xp": True,
                "is_authed": "yes",
                "streak_days": None,
                "last_login_date": "yesterday",
                "forced_skill": "juggling",
                "intended_cefr": "C2",
                "reason": "boredom",
                "activity_history": "not a list",
            }
        )
        assert profile.cefr_level == CEFRLevel.A1
        assert profile.xp_total == 0
        assert profile.level_xp == 0
        assert profile.is_authed is True
        assert profile.streak_days == 0
        assert profile.last_login_date is None
        assert profile.forced_skill is None
        assert profile.intended_cefr is None
        assert profile.reason is None
        assert profile.activity_history == []

    def test_stored_c2_is_not_a_valid_level(self):
        assert sanitize_user({"cefr": "C2"}).cefr_level == CEFRLevel.A1

    def test_mastery_clamped(self):
        profile = sanitize_user({"mastery_map": {"vocab": 5, "grammar": -1, "reading": True}})
        assert profile.mastery_map[Skill.VOCAB] == 1.0
        assert profile.mastery_map[Skill.GRAMMAR] == 0.0
        assert profile.mastery_map[Skill.READING] == 0.2

    def test_history_items_repaired(self):
        profile = sanitize_user(
            {
                "activity_history": [
                    "junk",
                    {"title": "Overcounted", "total_questions": 2, "correct_answers": 5},
                    {"total_questions": -3, "skill": "speaking"},
                ]
            }
        )
        assert len(profile.activity_history) == 2
        first, second = profile.activity_history
        assert (first.total_questions, first.correct_answers) == (2, 2)
        assert second.title == "Activity"
        assert second.total_questions == 0
        assert second.skill == Skill.SPEAKING

    def test_oversized_numbers_are_defaulted(self):
        huge = 10**400
        profile = sanitize_user(
            {
                "email": "a@b.com",
                "xp_total": huge,
                "level_xp": huge,
                "mastery_map": {"vocab": huge, "grammar": 0.9},
                "activity_history": [{"title": "Big", "total_questions": huge}],
            }
        )
        assert profile.email == "a@b.com"
        assert profile.xp_total == 0
        assert profile.level_xp == 0
        assert profile.mastery_map[Skill.VOCAB] == 0.2
        assert profile.mastery_map[Skill.GRAMMAR] == 0.9
        assert profile.activity_history[0].total_questions == 0

    def test_oversized_blob_still_loads(self):
        blob = b'{"email": "a@b.com", "level_xp": ' + b"9" * 400 + b"}"
        profile = decode_profile(blob)
        assert profile is not None
        assert profile.level_xp == 0

    def test_placement_falls_back_to_profile_level(self):
        profile = sanitize_user(
            {"cefr": "A2", "lastPlacement": {"cefr": "C2", "targetSkill": "chess"}}
        )
        assert profile.placement_info.cefr_level == CEFRLevel.A2
        assert profile.placement_info.target_skill == Skill.VOCAB
        assert profile.placement_info.score is None


class TestDecodeProfile:
    @pytest.mark.parametrize(
        "blob",
        [b"not json", b"[]", b'"text"', b"\x80\x81", b"[" * 100000],
        ids=["garbage", "array", "string", "bad_utf8", "deeply_nested"],
    )
    def test_undecodable_returns_none(self, blob):
        assert decode_profile(blob) is None

    def test_object_is_sanitized(self):
        profile = decode_profile(b'{"email": "a@b.com", "xp_total": 7}')
        assert profile.email == "a@b.com"
        assert profile.xp_total == 7
