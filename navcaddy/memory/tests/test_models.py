"""
Tests for memory data models.
"""

import pytest
from datetime import datetime, timedelta, timezone

from navcaddy.memory.models import (
    MAX_CONVERSATION_TURNS,
    ConversationTurn,
    MissDirection,
    MissPattern,
    PressureContext,
    Role,
    Round,
    SessionContext,
    Shot,
    from_epoch_millis,
    to_epoch_millis,
)
from navcaddy.shared.errors import ValidationError


class TestShot:

    def test_timestamp_truncated_to_milliseconds(self, shot_factory):
        shot = shot_factory()
        stamped = Shot(
            club=shot.club,
            lie=shot.lie,
            timestamp=datetime(2025, 6, 1, 12, 0, 0, 123456, tzinfo=timezone.utc),
        )
        assert stamped.timestamp.microsecond == 123000

    def test_persistence_round_trip(self, shot_factory):
        shot = Shot(
            club=shot_factory().club,
            lie=shot_factory().lie,
            miss_direction=MissDirection.PUSH,
            pressure_context=PressureContext(is_user_tagged=True, scoring_context="must make par"),
            hole_number=17,
            notes="wind gusting",
        )
        assert Shot.from_dict(shot.to_dict()) == shot

    def test_hole_number_bounds(self, shot_factory):
        club = shot_factory().club
        with pytest.raises(ValidationError):
            Shot(club=club, lie=shot_factory().lie, hole_number=19)
        with pytest.raises(ValidationError):
            Shot(club=club, lie=shot_factory().lie, hole_number=0)

    @pytest.mark.parametrize("direction, expected", [
        (MissDirection.SLICE, True),
        (MissDirection.FAT, True),
        (MissDirection.STRAIGHT, False),
        (None, False),
    ])
    def test_is_miss(self, shot_factory, direction, expected):
        assert shot_factory(direction=direction).is_miss is expected

    def test_pressure_from_either_flag(self):
        assert PressureContext(is_inferred=True).has_pressure
        assert PressureContext(is_user_tagged=True).has_pressure
        assert not PressureContext(scoring_context="casual").has_pressure


class TestMissPattern:

    def test_confidence_bounds(self, seven_iron):
        now = datetime.now(timezone.utc)
        with pytest.raises(ValidationError):
            MissPattern(id="p", direction=MissDirection.HOOK, frequency=1, confidence=1.5, last_occurrence=now)
        with pytest.raises(ValidationError):
            MissPattern(id="p", direction=MissDirection.HOOK, frequency=1, confidence=float("nan"), last_occurrence=now)

    def test_frequency_must_be_positive(self):
        with pytest.raises(ValidationError):
            MissPattern(
                id="p", direction=MissDirection.HOOK, frequency=0, confidence=0.5,
                last_occurrence=datetime.now(timezone.utc),
            )

    def test_round_trip(self, seven_iron):
        pattern = MissPattern(
            id="7-iron:slice:pressure",
            direction=MissDirection.SLICE,
            frequency=3,
            confidence=0.6,
            last_occurrence=datetime.now(timezone.utc),
            club=seven_iron,
            pressure_context=PressureContext(is_user_tagged=True),
        )
        assert MissPattern.from_dict(pattern.to_dict()) == pattern


class TestSessionContext:

    def test_history_keeps_most_recent_turns(self):
        context = SessionContext.empty()
        for i in range(MAX_CONVERSATION_TURNS + 2):
            context = context.adding_turn(ConversationTurn(role=Role.USER, content=f"turn {i}"))

        assert len(context.conversation_history) == MAX_CONVERSATION_TURNS
        assert context.conversation_history[0].content == "turn 2"
        assert context.conversation_history[-1].content == f"turn {MAX_CONVERSATION_TURNS + 1}"

    def test_oversized_history_rejected(self):
        turns = tuple(ConversationTurn(role=Role.USER, content=str(i)) for i in range(MAX_CONVERSATION_TURNS + 1))
        with pytest.raises(ValidationError):
            SessionContext(session_id="default", conversation_history=turns)

    def test_empty_context(self):
        assert SessionContext.empty().is_empty
        assert SessionContext.empty().to_prompt_context() == {}
        assert not SessionContext(session_id="default", current_hole=4).is_empty

    def test_prompt_context(self, shot_factory):
        context = SessionContext(
            session_id="default",
            current_round=Round(course_name="Pebble Beach"),
            current_hole=7,
            last_shot=shot_factory(direction=MissDirection.PULL),
        ).adding_turn(ConversationTurn(role=Role.ASSISTANT, content="Opening Stats Lookup."))

        prompt = context.to_prompt_context()

        assert prompt["course_name"] == "Pebble Beach"
        assert prompt["current_hole"] == 7
        assert prompt["last_shot"]["miss_direction"] == "PULL"
        assert prompt["conversation_history"] == [{"role": "assistant", "content": "Opening Stats Lookup."}]

    def test_round_trip(self, shot_factory):
        context = SessionContext(
            session_id="default",
            current_round=Round(course_name="Bandon", scores={1: 4, 2: 5}),
            current_hole=3,
            last_shot=shot_factory(),
            last_recommendation="Take one more club",
        ).adding_turn(ConversationTurn(role=Role.USER, content="what should I hit"))

        assert SessionContext.from_dict(context.to_dict()) == context


class TestRound:

    def test_with_score_returns_new_round(self):
        original = Round(course_name="Torrey Pines")
        scored = original.with_score(1, 4).with_score(2, 3)

        assert original.scores == {}
        assert scored.scores == {1: 4, 2: 3}
        assert scored.total_strokes == 7

    def test_invalid_scores_rejected(self):
        with pytest.raises(ValidationError):
            Round(scores={1: 0})
        with pytest.raises(ValidationError):
            Round(scores={19: 4})


def test_epoch_millis_round_trip():
    moment = datetime(2024, 3, 9, 8, 30, 15, 250000, tzinfo=timezone.utc)
    assert from_epoch_millis(to_epoch_millis(moment)) == moment
    assert to_epoch_millis(moment + timedelta(microseconds=999)) == to_epoch_millis(moment)
