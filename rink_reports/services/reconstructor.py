"""
State Reconstructor: derive match state from a game's ordered event log.

DESIGN PRINCIPLES:
- reconstruct() is a pure fold over the log ordered by recorded-at
  (ties keep insertion order); it never mutates the events
- apply_event() folds one more event onto a COPY of a state, so
  apply_event(reconstruct(E[:n]), E[n]) == reconstruct(E[:n + 1])
- Malformed events never abort the fold: they are excluded from
  classification but a goal whose team is known still counts on the scoreboard
- Events from a team that is not attached to the game are counted and flagged
  unattributed, never silently credited to either side

GameStateTracker keeps the last snapshot plus a watermark so appends fold
only new events; anything arriving out of order falls back to a full replay.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Mapping, Sequence

from ..config import settings
from ..logging import logger
from ..models import (
    DerivedGameState,
    GameInfo,
    GoalEvent,
    GoalRecord,
    MalformedEvent,
    PenaltyEvent,
    PenaltyRecord,
    RejectedEvent,
)
from ..normalization import normalize_events
from .classifier import (
    classify_goal_context,
    classify_goal_situation,
    classify_goal_strength,
    classify_penalty_context,
    penalty_window,
    strength_after_penalty,
    strength_at,
)

CanonicalEvent = GoalEvent | PenaltyEvent | MalformedEvent

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


# ============================================================================
# STATE HELPERS
# ============================================================================


def initial_state(game: GameInfo | None = None, game_id: str | None = None) -> DerivedGameState:
    """Zero state: 0-0 for a known game, empty score map otherwise."""
    if game is None:
        return DerivedGameState(game_id=game_id)
    return DerivedGameState(
        game_id=game.game_id,
        home_team=game.home_team,
        away_team=game.away_team,
        score={game.home_team: 0, game.away_team: 0},
    )


def _copy_state(state: DerivedGameState) -> DerivedGameState:
    """Copy containers; records inside are frozen and safely shared."""
    return replace(
        state,
        score=dict(state.score),
        goals=list(state.goals),
        penalties=list(state.penalties),
        rejected=list(state.rejected),
        penalty_windows=list(state.penalty_windows),
        pim_by_team=dict(state.pim_by_team),
        pim_by_player=dict(state.pim_by_player),
    )


def order_events(events: Iterable[CanonicalEvent]) -> list[CanonicalEvent]:
    """Order by recorded-at, keeping insertion order for ties.

    An event with no recoverable timestamp keeps its slot after the event
    before it.
    """
    keyed: list[tuple[datetime, int, CanonicalEvent]] = []
    last_seen: datetime | None = None
    for index, event in enumerate(events):
        recorded = event.recorded_at or last_seen
        if event.recorded_at is not None:
            last_seen = event.recorded_at
        keyed.append((recorded or _EARLIEST, index, event))
    keyed.sort(key=lambda item: (item[0], item[1]))
    return [event for _, _, event in keyed]


def _is_unattributed(state: DerivedGameState, team: str) -> bool:
    if not (state.home_team and state.away_team):
        return False
    return team not in (state.home_team, state.away_team)


def _opponents(state: DerivedGameState, team: str) -> list[str]:
    return [name for name in state.teams if name != team]


def _events_before(state: DerivedGameState, kind: str) -> int:
    """Earlier events of one kind, rejected ones included."""
    records = state.goals if kind == "goal" else state.penalties
    return len(records) + sum(1 for r in state.rejected if r.event.kind == kind)


# ============================================================================
# FOLD
# ============================================================================


def _fold_goal(state: DerivedGameState, event: GoalEvent) -> None:
    team = event.team_name
    opponents = _opponents(state, team)
    score_before = dict(state.score)
    goals_before = _events_before(state, "goal")

    context = classify_goal_context(score_before, team, opponents, goals_before)
    situation = classify_goal_situation(event)
    strength = classify_goal_strength(state.penalty_windows, team, opponents, event.game_seconds)

    state.score[team] = state.score.get(team, 0) + 1
    scorer_goals = 1 + sum(
        1
        for record in state.goals
        if record.event.player_name == event.player_name and record.team_name == team
    )
    state.goals.append(
        GoalRecord(
            event=event,
            sequence_number=goals_before + 1,
            context=context,
            situation=situation,
            strength=strength,
            score_before=score_before,
            score_after=dict(state.score),
            scorer_goals_in_game=scorer_goals,
            unattributed=_is_unattributed(state, team),
        )
    )


def _fold_penalty(state: DerivedGameState, event: PenaltyEvent) -> None:
    team = event.team_name
    penalties_before = _events_before(state, "penalty")
    sequence_number = penalties_before + 1
    context = classify_penalty_context(event, penalties_before)
    window = penalty_window(event, sequence_number)
    strength = strength_after_penalty(state.penalty_windows, window, _opponents(state, team))

    state.penalty_windows.append(window)
    state.pim_by_team[team] = state.pim_by_team.get(team, 0) + event.duration_minutes
    player_key = (event.player_name, team)
    state.pim_by_player[player_key] = state.pim_by_player.get(player_key, 0) + event.duration_minutes
    state.penalties.append(
        PenaltyRecord(
            event=event,
            sequence_number=sequence_number,
            context=context,
            strength_after=strength,
            unattributed=_is_unattributed(state, team),
        )
    )


def _fold_malformed(state: DerivedGameState, event: MalformedEvent, position: int) -> None:
    score_applied = False
    pim_applied = False
    team = event.team_name

    if event.kind == "goal" and team:
        state.score[team] = state.score.get(team, 0) + 1
        score_applied = True

    clock = settings.game_clock
    duration = event.duration_minutes
    if (
        event.kind == "penalty"
        and team
        and duration is not None
        and clock.min_penalty_minutes <= duration <= clock.max_penalty_minutes
    ):
        state.pim_by_team[team] = state.pim_by_team.get(team, 0) + duration
        if event.player_name:
            player_key = (event.player_name, team)
            state.pim_by_player[player_key] = state.pim_by_player.get(player_key, 0) + duration
        pim_applied = True

    state.rejected.append(
        RejectedEvent(
            event=event,
            position=position,
            score_applied=score_applied,
            pim_applied=pim_applied,
        )
    )


def _fold_into(state: DerivedGameState, event: CanonicalEvent) -> None:
    """Fold one event into ``state`` in place."""
    position = state.events_processed
    state.events_processed += 1
    if event.recorded_at is not None:
        state.last_recorded_at = event.recorded_at

    if isinstance(event, MalformedEvent):
        _fold_malformed(state, event, position)
        return

    if isinstance(event, GoalEvent):
        _fold_goal(state, event)
    else:
        _fold_penalty(state, event)

    state.game_seconds = max(state.game_seconds, event.game_seconds)
    state.strength = strength_at(state.penalty_windows, state.teams, state.game_seconds)


def apply_event(state: DerivedGameState, event: CanonicalEvent | Mapping) -> DerivedGameState:
    """Return a new state with one more event folded in."""
    (canonical,) = normalize_events([event], state.game_id)
    next_state = _copy_state(state)
    _fold_into(next_state, canonical)
    return next_state


def reconstruct(
    events: Iterable[CanonicalEvent | Mapping],
    game: GameInfo | None = None,
    *,
    game_id: str | None = None,
) -> DerivedGameState:
    """
    Rebuild a game's state from its full event log.

    Args:
        events: The game's events in log order (raw payloads are normalized)
        game: Game metadata; enables 0-0 initialization and unattributed flags
        game_id: Used when no game metadata is available

    Returns:
        Fully populated DerivedGameState. Empty input yields 0-0 with no
        active penalties.
    """
    resolved_id = game.game_id if game is not None else game_id
    state = initial_state(game, resolved_id)
    for event in order_events(normalize_events(events, resolved_id)):
        _fold_into(state, event)
    return state


# ============================================================================
# INCREMENTAL TRACKING
# ============================================================================


class GameStateTracker:
    """Checkpointed state for one game.

    Holds the last DerivedGameState and the events folded into it. Appending
    folds only events past the watermark; an event recorded before the
    watermark triggers a full replay so the result always equals
    reconstruct() over the same events.
    """

    def __init__(self, game: GameInfo | None = None, game_id: str | None = None) -> None:
        self.game = game
        self.game_id = game.game_id if game is not None else game_id
        self._events: list[CanonicalEvent] = []
        self._state = initial_state(game, self.game_id)
        self.replay_count = 0

    @property
    def state(self) -> DerivedGameState:
        return self._state

    @property
    def events(self) -> Sequence[CanonicalEvent]:
        return tuple(self._events)

    def _replay(self) -> DerivedGameState:
        self.replay_count += 1
        self._events = order_events(self._events)
        self._state = reconstruct(self._events, self.game, game_id=self.game_id)
        return self._state

    def advance(self, new_events: Iterable[CanonicalEvent | Mapping]) -> DerivedGameState:
        """Fold newly appended events; replay from scratch if any is out of order."""
        incoming = normalize_events(new_events, self.game_id)
        if not incoming:
            return self._state

        watermark = self._state.last_recorded_at
        out_of_order = False
        for event in incoming:
            if watermark is not None and event.recorded_at is not None and event.recorded_at < watermark:
                out_of_order = True
            if event.recorded_at is not None:
                watermark = max(watermark, event.recorded_at) if watermark else event.recorded_at

        self._events.extend(incoming)
        if out_of_order:
            return self._replay()

        next_state = _copy_state(self._state)
        for event in order_events(incoming):
            _fold_into(next_state, event)
        self._state = next_state
        return self._state

    def sync(self, log_events: Sequence[CanonicalEvent | Mapping]) -> DerivedGameState:
        """Catch up with the full ordered log returned by the event log.

        Only the tail past the watermark is folded when the already-folded
        prefix is unchanged.
        """
        events = normalize_events(log_events, self.game_id)
        processed = len(self._events)
        prefix_intact = len(events) >= processed and (
            processed == 0 or events[processed - 1] == self._events[-1]
        )
        if not prefix_intact:
            self._events = list(events)
            return self._replay()
        return self.advance(events[processed:])

    def verify(self, events: Iterable[CanonicalEvent | Mapping] | None = None) -> bool:
        """Recompute from scratch and compare with the checkpointed state.

        ``events`` defaults to the events folded so far; pass the event log's
        current contents to check against the source of truth.
        """
        source = self._events if events is None else events
        expected = reconstruct(source, self.game, game_id=self.game_id)
        if expected == self._state:
            return True
        logger.error(
            "incremental_state_mismatch",
            game_id=self.game_id,
            expected_score=expected.score,
            tracked_score=self._state.score,
            expected_events=expected.events_processed,
            tracked_events=self._state.events_processed,
        )
        return False
