"""In-memory collaborators for tests and embedding."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from itertools import count
from typing import Any, Iterable, Mapping

from ..models import DivisionReport, GameInfo, GoalEvent, PenaltyEvent
from ..normalization import normalize_events
from ..services.reconstructor import order_events
from ..utils.datetime_utils import ensure_utc
from .protocols import LoggedEvent


class InMemoryEventLog:
    """Append-only per-game log.

    Raw payloads may be seeded with ``extend_raw`` to simulate legacy rows;
    they pass through the normalization boundary on read.
    """

    def __init__(self) -> None:
        self._rows: dict[str, list[Mapping[str, Any] | GoalEvent | PenaltyEvent]] = defaultdict(list)
        self._ids = count(1)

    def get_events(self, game_id: str) -> list[LoggedEvent]:
        return order_events(normalize_events(self._rows.get(game_id, []), game_id))

    def append_event(self, game_id: str, event: GoalEvent | PenaltyEvent) -> GoalEvent | PenaltyEvent:
        committed = event
        if event.event_id is None:
            committed = event.model_copy(update={"event_id": f"evt-{next(self._ids)}"})
        self._rows[game_id].append(committed)
        return committed

    def extend_raw(self, game_id: str, raws: Iterable[Mapping[str, Any]]) -> None:
        self._rows[game_id].extend(raws)


class InMemoryGameDirectory:
    def __init__(self, games: Iterable[GameInfo] = ()) -> None:
        self._games: dict[str, GameInfo] = {}
        for game in games:
            self.add(game)

    def add(self, game: GameInfo) -> None:
        self._games[game.game_id] = game

    def get_game(self, game_id: str) -> GameInfo | None:
        return self._games.get(game_id)

    def list_games(self, division: str, start: datetime, end: datetime) -> list[GameInfo]:
        start, end = ensure_utc(start), ensure_utc(end)
        selected = [
            game
            for game in self._games.values()
            if game.division == division
            and game.played_at is not None
            and start <= ensure_utc(game.played_at) <= end
        ]
        return sorted(selected, key=lambda g: (ensure_utc(g.played_at), g.game_id))


class InMemoryReportStore:
    def __init__(self) -> None:
        self._reports: dict[tuple[str, str], DivisionReport] = {}

    def upsert_report(self, report: DivisionReport) -> None:
        self._reports[(report.division, report.week_id)] = report

    def get_report(self, division: str, week_id: str) -> DivisionReport | None:
        return self._reports.get((division, week_id))

    def __len__(self) -> int:
        return len(self._reports)
