"""Tests for the legacy-field normalization boundary and event validation."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from rink_reports.exceptions import ValidationError
from rink_reports.models import GoalEvent, MalformedEvent, PenaltyEvent
from rink_reports.normalization import (
    canonical_fields,
    normalize_event,
    normalize_events,
    normalize_team_name,
)

HOME = "Ice Hawks"


def _goal(**overrides):
    payload = {
        "kind": "goal",
        "game_id": "game-1",
        "team_name": HOME,
        "player_name": "Adams",
        "period": 1,
        "clock": "15:00",
        "recorded_at": "2025-03-12T19:05:00Z",
    }
    payload.update(overrides)
    return payload


class TestCanonicalFields:
    @pytest.mark.parametrize("team_key", ["teamName", "scoringTeam", "scoringTeamId", "team"])
    def test_team_aliases(self, team_key):
        fields = canonical_fields({team_key: HOME, "time": "10:00"})
        assert fields["team_name"] == HOME

    @pytest.mark.parametrize("clock_key", ["time", "timeRemaining", "goalTime"])
    def test_clock_aliases(self, clock_key):
        assert canonical_fields({clock_key: "10:00"})["clock"] == "10:00"

    def test_first_non_empty_alias_wins(self):
        fields = canonical_fields({"teamName": "  ", "scoringTeam": HOME})
        assert fields["team_name"] == HOME

    def test_kind_inferred_from_penalty_fields(self):
        assert canonical_fields({"penaltyLength": 2})["kind"] == "penalty"
        assert canonical_fields({"infraction": "Hooking"})["kind"] == "penalty"

    def test_kind_defaults_to_goal(self):
        assert canonical_fields({"scorer": "Adams"})["kind"] == "goal"

    def test_numeric_ids_become_text(self):
        fields = canonical_fields({"gameId": 42, "scorerId": 7, "scoringTeamId": 3})
        assert fields["game_id"] == "42"
        assert fields["player_name"] == "7"
        assert fields["team_name"] == "3"

    def test_single_assist_is_listed(self):
        assert canonical_fields({"assistId": "Brown"})["assists"] == ["Brown"]

    def test_game_id_fallback(self):
        assert canonical_fields({}, game_id="g-9")["game_id"] == "g-9"


class TestNormalizeEvent:
    def test_goal(self):
        event = normalize_event(_goal(assists=["Brown", "Cole"]))
        assert isinstance(event, GoalEvent)
        assert event.assists == ["Brown", "Cole"]
        assert event.recorded_at == datetime(2025, 3, 12, 19, 5, tzinfo=UTC)

    def test_penalty(self, sample_legacy_penalty):
        event = normalize_event(sample_legacy_penalty)
        assert isinstance(event, PenaltyEvent)
        assert event.duration_minutes == 2
        assert event.penalty_type == "Hooking"
        assert event.period == 4
        assert event.is_overtime

    def test_names_collapse_whitespace(self):
        event = normalize_event(_goal(team_name="  Ice   Hawks "))
        assert event.team_name == HOME

    def test_game_seconds(self):
        event = normalize_event(_goal(period=2, clock="15:00"))
        assert event.clock_seconds_remaining == 900
        assert event.game_seconds == 1200 + 300

    def test_passes_canonical_events_through(self):
        event = normalize_event(_goal())
        assert normalize_event(event) is event

    @pytest.mark.parametrize(
        "overrides",
        [
            {"clock": "1500"},
            {"clock": "15:75"},
            {"clock": "21:00"},
            {"period": 5},
            {"period": 0},
            {"team_name": None},
            {"player_name": ""},
            {"recorded_at": None},
        ],
    )
    def test_invalid_goal_fields(self, overrides):
        with pytest.raises(ValidationError):
            normalize_event(_goal(**overrides))

    @pytest.mark.parametrize("duration", [2, "2", 2.0, "2.0"])
    def test_whole_penalty_durations(self, duration):
        payload = _goal(kind="penalty", penalty_type="Hooking", duration_minutes=duration)
        assert normalize_event(payload).duration_minutes == 2

    def test_non_object_payload(self):
        with pytest.raises(ValidationError) as excinfo:
            normalize_event(None)
        assert excinfo.value.errors == ["payload is not an object"]

    @pytest.mark.parametrize("duration", ["0", "11", "two", None, 2.5, "2.5", True])
    def test_invalid_penalty_duration(self, duration):
        payload = _goal(kind="penalty", penalty_type="Hooking", duration_minutes=duration)
        with pytest.raises(ValidationError):
            normalize_event(payload)

    def test_penalty_requires_type(self):
        with pytest.raises(ValidationError) as excinfo:
            normalize_event(_goal(kind="penalty", duration_minutes=2))
        assert excinfo.value.kind == "penalty"

    def test_too_many_assists(self):
        with pytest.raises(ValidationError):
            normalize_event(_goal(assists=["A", "B", "C"]))

    def test_scorer_cannot_assist(self):
        with pytest.raises(ValidationError):
            normalize_event(_goal(assists=["Adams"]))

    def test_error_keeps_recoverable_fields(self):
        with pytest.raises(ValidationError) as excinfo:
            normalize_event(_goal(clock="bad"))
        assert excinfo.value.kind == "goal"
        assert excinfo.value.team_name == HOME
        assert excinfo.value.player_name == "Adams"
        assert any("clock" in message for message in excinfo.value.errors)

    def test_unknown_kind(self):
        with pytest.raises(ValidationError) as excinfo:
            normalize_event(_goal(kind="faceoff"))
        assert excinfo.value.kind is None


class TestNormalizeEvents:
    def test_never_raises_and_keeps_order(self):
        events = normalize_events([_goal(), _goal(clock="bad"), _goal(player_name="Brown")])
        assert isinstance(events[0], GoalEvent)
        assert isinstance(events[1], MalformedEvent)
        assert events[2].player_name == "Brown"

    def test_malformed_event_recovers_fields(self):
        (event,) = normalize_events([_goal(clock="bad")])
        assert event.kind == "goal"
        assert event.team_name == HOME
        assert event.game_id == "game-1"
        assert event.recorded_at == datetime(2025, 3, 12, 19, 5, tzinfo=UTC)
        assert event.raw["clock"] == "bad"

    def test_malformed_penalty_keeps_duration(self):
        (event,) = normalize_events([{"penalizedTeam": HOME, "penaltyLength": "4"}])
        assert event.kind == "penalty"
        assert event.duration_minutes == 4

    def test_malformed_penalty_drops_fractional_duration(self):
        (event,) = normalize_events([{"penalizedTeam": HOME, "penaltyLength": 2.5}])
        assert event.duration_minutes is None

    @pytest.mark.parametrize("row", [None, ["goal", HOME], "goal", 42])
    def test_non_object_rows_become_malformed(self, row):
        events = normalize_events([_goal(), row, _goal(player_name="Brown")], game_id="game-1")

        assert isinstance(events[1], MalformedEvent)
        assert events[1].errors == ["payload is not an object"]
        assert events[1].raw == {}
        assert events[1].kind is None
        assert events[1].game_id == "game-1"
        assert events[2].player_name == "Brown"


class TestNormalizeTeamName:
    def test_empty(self):
        assert normalize_team_name("   ") is None
        assert normalize_team_name(None) is None

    def test_collapses(self):
        assert normalize_team_name(" Polar \t Wolves ") == "Polar Wolves"
