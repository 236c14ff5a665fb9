"""Record scorekeeper events and derive the game's state after each append.

Two derivation modes:
- incremental (default): one GameStateTracker per game folds only new events;
  trackers are bounded and dropped once a game's final score is in
- parity: the full log is re-read and replayed after every append

Either way the returned state equals reconstruct() over the stored log.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Mapping

from ..config import Settings, settings as default_settings
from ..exceptions import LookupFailure
from ..logging import logger
from ..models import (
    UNKNOWN_DIVISION,
    DerivedGameState,
    GameInfo,
    GoalEvent,
    GoalRecord,
    PenaltyEvent,
    PenaltyRecord,
)
from ..normalization import normalize_event
from ..persistence.protocols import EventLog, GameDirectory
from .reconstructor import GameStateTracker, reconstruct


@dataclass(frozen=True)
class RecordedEvent:
    """A committed event together with its classification and the new state."""

    event: GoalEvent | PenaltyEvent
    division: str
    state: DerivedGameState
    goal: GoalRecord | None = None
    penalty: PenaltyRecord | None = None

    @property
    def unattributed(self) -> bool:
        record = self.goal or self.penalty
        return bool(record and record.unattributed)


class GameEventService:
    def __init__(
        self,
        event_log: EventLog,
        games: GameDirectory,
        settings: Settings | None = None,
    ) -> None:
        self.event_log = event_log
        self.games = games
        self.settings = settings or default_settings
        self._trackers: OrderedDict[str, GameStateTracker] = OrderedDict()

    def lookup_game(self, game_id: str) -> GameInfo | None:
        """Resolve game metadata; failures degrade to None and are logged."""
        try:
            game = self.games.get_game(game_id)
            if game is None:
                raise LookupFailure(game_id)
            return game
        except LookupFailure as exc:
            logger.warning("game_lookup_failed", game_id=game_id, reason=exc.reason)
        except Exception as exc:
            logger.warning("game_lookup_failed", game_id=game_id, reason=str(exc))
        return None

    @property
    def tracked_games(self) -> list[str]:
        """Games with an in-memory tracker, least recently used first."""
        return list(self._trackers)

    def _tracker(self, game_id: str, game: GameInfo | None) -> GameStateTracker:
        tracker = self._trackers.get(game_id)
        if tracker is None or (tracker.game is None and game is not None):
            tracker = GameStateTracker(game=game, game_id=game_id)
        self._trackers[game_id] = tracker
        self._trackers.move_to_end(game_id)

        limit = self.settings.reports.max_tracked_games
        while len(self._trackers) > limit:
            evicted, _ = self._trackers.popitem(last=False)
            logger.debug("game_tracker_evicted", game_id=evicted, reason="capacity", limit=limit)
        return tracker

    def _derive(self, game_id: str, game: GameInfo | None) -> DerivedGameState:
        events = self.event_log.get_events(game_id)
        if not self.settings.reports.incremental_reconstruction:
            return reconstruct(events, game, game_id=game_id)

        tracker = self._tracker(game_id, game)
        state = tracker.sync(events)
        if self.settings.reports.verify_replay:
            tracker.verify(events)
        if game is not None and game.has_complete_summary:
            # A later append for this game rebuilds from the log
            self._trackers.pop(game_id, None)
            logger.debug("game_tracker_evicted", game_id=game_id, reason="final_score")
        return state

    def record_event(self, game_id: str, raw: Mapping[str, Any] | GoalEvent | PenaltyEvent) -> RecordedEvent:
        """
        Validate, append and classify one event.

        Raises:
            ValidationError: the payload is malformed; nothing is appended.
        """
        event = normalize_event(raw, game_id)
        committed = self.event_log.append_event(game_id, event)
        game = self.lookup_game(game_id)
        state = self._derive(game_id, game)

        goal = next((r for r in reversed(state.goals) if r.event == committed), None)
        penalty = next((r for r in reversed(state.penalties) if r.event == committed), None)
        recorded = RecordedEvent(
            event=committed,
            division=game.division if game else UNKNOWN_DIVISION,
            state=state,
            goal=goal,
            penalty=penalty,
        )

        if recorded.unattributed:
            logger.warning(
                "unattributed_event",
                game_id=game_id,
                event_id=committed.event_id,
                team_name=committed.team_name,
                home_team=game.home_team if game else None,
                away_team=game.away_team if game else None,
            )
        logger.info(
            "game_event_recorded",
            game_id=game_id,
            event_id=committed.event_id,
            kind=committed.kind,
            context=(goal.context.value if goal else penalty.context.value if penalty else None),
            score=state.score,
        )
        return recorded

    def game_state(self, game_id: str) -> DerivedGameState:
        """Reconstruct a game's current state from its full log."""
        game = self.lookup_game(game_id)
        state = reconstruct(self.event_log.get_events(game_id), game, game_id=game_id)
        if state.rejected:
            logger.warning(
                "events_rejected",
                game_id=game_id,
                count=len(state.rejected),
                errors=[r.event.errors for r in state.rejected],
            )
        return state
