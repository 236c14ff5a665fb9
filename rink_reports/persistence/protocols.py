"""Collaborator interfaces consumed by the analytics core.

The core never talks to storage directly; it reads and appends through these
narrow protocols so in-memory and SQL-backed implementations are
interchangeable.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from ..models import DivisionReport, GameInfo, GoalEvent, MalformedEvent, PenaltyEvent

LoggedEvent = GoalEvent | PenaltyEvent | MalformedEvent


class EventLog(Protocol):
    def get_events(self, game_id: str) -> Sequence[LoggedEvent]:
        """Events for one game ordered by recorded-at, ties in insertion order."""
        ...

    def append_event(self, game_id: str, event: GoalEvent | PenaltyEvent) -> GoalEvent | PenaltyEvent:
        """Append and return the committed event with its assigned identifier."""
        ...


class GameDirectory(Protocol):
    def get_game(self, game_id: str) -> GameInfo | None:
        ...

    def list_games(self, division: str, start: datetime, end: datetime) -> Sequence[GameInfo]:
        """Games in a division played within ``[start, end]``."""
        ...


class ReportStore(Protocol):
    def upsert_report(self, report: DivisionReport) -> None:
        """Overwrite the report stored for the report's division and week."""
        ...

    def get_report(self, division: str, week_id: str) -> DivisionReport | None:
        ...
