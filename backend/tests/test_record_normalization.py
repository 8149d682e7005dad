from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from resilience_hub.core.emotions import (
    NEGATIVE_EMOTIONS,
    POSITIVE_EMOTIONS,
    CoreEmotion,
    format_distortion_name,
    parse_core_emotion,
)
from resilience_hub.schemas.records import (
    EmotionRecord,
    JournalEntry,
    ReframePracticeResult,
    ThoughtRecord,
)
from resilience_hub.utils.numbers import mean, percentage, round_half_up


class TestEmotionCatalog:
    """Tests for the core emotion catalog."""

    def test_balance_families(self):
        assert POSITIVE_EMOTIONS == {CoreEmotion.JOY, CoreEmotion.LOVE}
        assert NEGATIVE_EMOTIONS == {
            CoreEmotion.SADNESS, CoreEmotion.FEAR, CoreEmotion.ANGER, CoreEmotion.DISGUST
        }

    @pytest.mark.parametrize("label, expected", [
        ("Joy", CoreEmotion.JOY),
        ("  sadness ", CoreEmotion.SADNESS),
        ("TRUST", CoreEmotion.TRUST),
        ("Happiness", None),
        ("", None),
        (None, None),
    ])
    def test_parse_core_emotion(self, label, expected):
        assert parse_core_emotion(label) is expected


class TestDistortionNames:
    """Tests for format_distortion_name."""

    @pytest.mark.parametrize("raw, expected", [
        ("all-or-nothing", "All Or Nothing"),
        ("mind_reading", "Mind Reading"),
        ("fortuneTelling", "Fortune Telling"),
        ("catastrophizing", "Catastrophizing"),
        ("SHOULD statements", "Should Statements"),
        (None, "Unknown"),
    ])
    def test_format(self, raw, expected):
        assert format_distortion_name(raw) == expected


class TestRecordNormalization:
    """Tests for the canonical record models."""

    def test_emotion_prefers_timestamp_over_created_at(self):
        record = EmotionRecord.model_validate({
            "id"         : 1,
            "coreEmotion": "Joy",
            "intensity"  : 7,
            "timestamp"  : "2026-10-01T08:00:00Z",
            "createdAt"  : "2026-10-02T08:00:00Z",
        })
        assert record.occurred_at == datetime(2026, 10, 1, 8, tzinfo=timezone.utc)

    def test_emotion_from_database_row(self):
        record = EmotionRecord.model_validate({
            "id"          : 1,
            "user_id"     : 3,
            "core_emotion": "Fear",
            "intensity"   : 4,
            "timestamp"   : None,
            "created_at"  : datetime(2026, 10, 2, 9, 30),
        })
        # Naive database values are read as UTC
        assert record.occurred_at == datetime(2026, 10, 2, 9, 30, tzinfo=timezone.utc)
        assert record.user_id == 3

    def test_intensity_out_of_range_is_rejected(self):
        with pytest.raises(ValidationError):
            EmotionRecord.model_validate({
                "id": 1, "coreEmotion": "Joy", "intensity": 11, "timestamp": "2026-10-01T08:00:00Z",
            })

    def test_thought_without_distortions(self):
        thought = ThoughtRecord.model_validate({
            "id"                  : 1,
            "automaticThoughts"   : "I always fail.",
            "cognitiveDistortions": None,
            "createdAt"           : "2026-10-01T08:00:00Z",
        })
        assert thought.cognitive_distortions == []
        assert thought.is_challenged is False

    def test_journal_tags_from_database_column(self):
        entry = JournalEntry.model_validate({
            "id"        : 1,
            "title"     : "Morning",
            "content"   : "Slept well.",
            "tags"      : None,
            "created_at": datetime(2026, 10, 1, 7, tzinfo=timezone.utc),
        })
        assert entry.tags == []

    @pytest.mark.parametrize("counts, correct, total", [
        ({"correctAnswers": 3, "totalQuestions": 5}, 3, 5),
        ({"correctCount": 3, "totalCount": 5}, 3, 5),
        ({"correct_answers": 3, "total_questions": 5}, 3, 5),
        ({"correctAnswers": 0, "correctCount": 2, "totalQuestions": 4}, 2, 4),
        ({"totalQuestions": 0}, 0, 1),
        ({}, 0, 1),
    ])
    def test_practice_count_spellings(self, counts, correct, total):
        result = ReframePracticeResult.model_validate({
            "id": 1, "score": 70, "createdAt": "2026-10-01T08:00:00Z", **counts,
        })
        assert result.correct_answers == correct
        assert result.total_questions == total

    def test_null_score_becomes_zero(self):
        result = ReframePracticeResult.model_validate({
            "id": 1, "score": None, "streak_count": None, "created_at": "2026-10-01T08:00:00Z",
        })
        assert result.score == 0
        assert result.streak_count == 0

    def test_records_are_immutable(self):
        result = ReframePracticeResult.model_validate({"id": 1, "createdAt": "2026-10-01T08:00:00Z"})
        with pytest.raises(ValidationError):
            result.score = 99


class TestNumbers:
    """Tests for the rounding helpers."""

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -2
        assert round_half_up(7.25, 1) == 7.3
        assert isinstance(round_half_up(4.0), int)

    def test_mean_of_nothing(self):
        assert mean([]) == 0.0

    def test_percentage_guards_zero(self):
        assert percentage(3, 0) == 0
        assert percentage(1, 3) == 33
