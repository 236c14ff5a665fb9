"""Tests for recording events and deriving state after each append."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from rink_reports.config import ReportConfig, Settings
from rink_reports.exceptions import ValidationError
from rink_reports.models import GoalContext, PenaltyContext, Strength
from rink_reports.persistence import InMemoryEventLog, InMemoryGameDirectory
from rink_reports.services.game_events import GameEventService
from rink_reports.services.reconstructor import reconstruct

_MOD = "rink_reports.services.game_events"

HOME = "Ice Hawks"
AWAY = "Polar Wolves"
GAME_ID = "game-1"


def _payload(kind="goal", team=HOME, player="Adams", clock="15:00", minute=0, **extra):
    payload = {
        "eventType": kind,
        "teamName": team,
        "playerName": player,
        "period": 1,
        "time": clock,
        "recordedAt": f"2025-03-12T19:{minute:02d}:00Z",
    }
    payload.update(extra)
    return payload


def _service(game_info, **report_overrides):
    settings = Settings(reports=ReportConfig(**report_overrides))
    return GameEventService(InMemoryEventLog(), InMemoryGameDirectory([game_info]), settings)


class TestRecordEvent:
    def test_goal_is_appended_and_classified(self, game_info):
        service = _service(game_info)
        recorded = service.record_event(GAME_ID, _payload())

        assert recorded.event.event_id is not None
        assert recorded.goal.context == GoalContext.FIRST_GOAL
        assert recorded.state.score == {HOME: 1, AWAY: 0}
        assert recorded.division == "Gold"
        assert len(service.event_log.get_events(GAME_ID)) == 1

    def test_penalty_then_power_play_goal(self, game_info):
        service = _service(game_info)
        penalty = service.record_event(
            GAME_ID,
            _payload("penalty", team=HOME, clock="10:00", penaltyType="Tripping", penaltyLength=2),
        )
        goal = service.record_event(GAME_ID, _payload(team=AWAY, player="Diaz", clock="09:00", minute=1))

        assert penalty.penalty.context == PenaltyContext.FIRST_PENALTY
        assert penalty.penalty.strength_after.advantaged_team == AWAY
        assert goal.goal.strength == Strength.POWER_PLAY

    def test_invalid_event_is_not_appended(self, game_info):
        service = _service(game_info)
        with pytest.raises(ValidationError):
            service.record_event(GAME_ID, _payload(clock="25:00"))
        assert service.event_log.get_events(GAME_ID) == []

    @pytest.mark.parametrize("incremental", [True, False])
    def test_modes_agree_with_full_replay(self, game_info, incremental):
        service = _service(game_info, incremental_reconstruction=incremental, verify_replay=True)
        payloads = [
            _payload(minute=0),
            _payload("penalty", team=AWAY, player="Cole", clock="12:00", minute=1, infraction="Slashing", length=2),
            _payload(team=AWAY, player="Diaz", clock="11:00", minute=2),
            _payload(player="Brown", clock="05:00", minute=3, assistedBy=["Adams"]),
        ]
        recorded = None
        for payload in payloads:
            recorded = service.record_event(GAME_ID, payload)

        expected = reconstruct(service.event_log.get_events(GAME_ID), game_info)
        assert recorded.state == expected
        assert service.game_state(GAME_ID) == expected

    def test_late_entry_replays(self, game_info):
        service = _service(game_info)
        service.record_event(GAME_ID, _payload(team=HOME, minute=10))
        recorded = service.record_event(GAME_ID, _payload(team=AWAY, player="Diaz", clock="18:00", minute=5))

        assert [g.team_name for g in recorded.state.goals] == [AWAY, HOME]
        assert recorded.goal.context == GoalContext.FIRST_GOAL

    @patch(f"{_MOD}.logger")
    def test_unattributed_event_is_logged(self, mock_logger, game_info):
        service = _service(game_info)
        recorded = service.record_event(GAME_ID, _payload(team="Ghost Skaters"))

        assert recorded.unattributed is True
        assert recorded.state.score["Ghost Skaters"] == 1
        events = [c.args[0] for c in mock_logger.warning.call_args_list]
        assert "unattributed_event" in events


class TestLookupFailure:
    @patch(f"{_MOD}.logger")
    def test_missing_game_degrades_to_unknown(self, mock_logger):
        service = GameEventService(InMemoryEventLog(), InMemoryGameDirectory())
        recorded = service.record_event("nowhere", _payload(team="Anyone"))

        assert recorded.division == "Unknown"
        assert recorded.unattributed is False
        assert recorded.state.score == {"Anyone": 1}
        mock_logger.warning.assert_any_call("game_lookup_failed", game_id="nowhere", reason="game not found")

    def test_directory_error_does_not_abort(self):
        games = MagicMock()
        games.get_game.side_effect = ConnectionError("directory offline")
        service = GameEventService(InMemoryEventLog(), games)
        recorded = service.record_event(GAME_ID, _payload())
        assert recorded.division == "Unknown"
        assert recorded.goal is not None

    def test_game_state_for_unknown_game(self):
        service = GameEventService(InMemoryEventLog(), InMemoryGameDirectory())
        state = service.game_state("nowhere")
        assert state.score == {}


class TestGameState:
    @patch(f"{_MOD}.logger")
    def test_legacy_rows_are_normalized_and_rejections_logged(self, mock_logger, game_info):
        log = InMemoryEventLog()
        log.extend_raw(
            GAME_ID,
            [
                {"scoringTeam": HOME, "scorer": "Adams", "period": "1", "goalTime": "14:00",
                 "timestamp": "2025-03-12T19:01:00Z"},
                {"scoringTeam": AWAY, "scorer": "Diaz", "period": "1", "goalTime": "whenever",
                 "timestamp": "2025-03-12T19:02:00Z"},
            ],
        )
        service = GameEventService(log, InMemoryGameDirectory([game_info]))
        state = service.game_state(GAME_ID)

        assert state.score == {HOME: 1, AWAY: 1}
        assert len(state.goals) == 1
        assert len(state.rejected) == 1
        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.args[0] == "events_rejected"


# ---------------------------------------------------------------------------
# Tracker lifetime
# ---------------------------------------------------------------------------
class TestTrackerLifetime:
    def test_oldest_tracker_is_evicted_past_capacity(self, game_info):
        other = game_info.model_copy(update={"game_id": "game-2"})
        settings = Settings(reports=ReportConfig(max_tracked_games=1))
        service = GameEventService(InMemoryEventLog(), InMemoryGameDirectory([game_info, other]), settings)

        service.record_event(GAME_ID, _payload())
        assert service.tracked_games == [GAME_ID]
        service.record_event("game-2", _payload(team=AWAY, player="Diaz"))
        assert service.tracked_games == ["game-2"]

    def test_evicted_game_rebuilds_from_log(self, game_info):
        other = game_info.model_copy(update={"game_id": "game-2"})
        settings = Settings(reports=ReportConfig(max_tracked_games=1))
        service = GameEventService(InMemoryEventLog(), InMemoryGameDirectory([game_info, other]), settings)

        service.record_event(GAME_ID, _payload())
        service.record_event("game-2", _payload(team=AWAY, player="Diaz"))
        recorded = service.record_event(GAME_ID, _payload(team=AWAY, player="Diaz", clock="10:00", minute=1))

        assert recorded.state.score == {HOME: 1, AWAY: 1}
        assert recorded.goal.context == GoalContext.TYING
        assert recorded.state == reconstruct(service.event_log.get_events(GAME_ID), game_info, game_id=GAME_ID)

    def test_recently_used_tracker_survives(self, game_info):
        others = [game_info.model_copy(update={"game_id": f"game-{n}"}) for n in (2, 3)]
        settings = Settings(reports=ReportConfig(max_tracked_games=2))
        service = GameEventService(InMemoryEventLog(), InMemoryGameDirectory([game_info, *others]), settings)

        service.record_event(GAME_ID, _payload())
        service.record_event("game-2", _payload())
        service.record_event(GAME_ID, _payload(clock="10:00", minute=1))
        service.record_event("game-3", _payload())

        assert service.tracked_games == [GAME_ID, "game-3"]

    @patch(f"{_MOD}.logger")
    def test_tracker_dropped_once_final_score_is_submitted(self, mock_logger, game_info):
        final = game_info.model_copy(update={"final_score": {HOME: 2, AWAY: 0}})
        games = InMemoryGameDirectory([game_info])
        service = GameEventService(InMemoryEventLog(), games, Settings())

        service.record_event(GAME_ID, _payload())
        assert service.tracked_games == [GAME_ID]

        games.add(final)
        recorded = service.record_event(GAME_ID, _payload(player="Brown", clock="10:00", minute=1))

        assert service.tracked_games == []
        assert recorded.state.score == {HOME: 2, AWAY: 0}
        mock_logger.debug.assert_any_call("game_tracker_evicted", game_id=GAME_ID, reason="final_score")

    def test_parity_mode_keeps_no_trackers(self, game_info):
        service = _service(game_info, incremental_reconstruction=False)
        service.record_event(GAME_ID, _payload())
        assert service.tracked_games == []
