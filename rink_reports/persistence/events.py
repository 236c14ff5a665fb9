"""Per-game event log backed by the game_log_events table.

Payloads are stored as JSON exactly as committed. Legacy rows written by
older scorekeeper clients keep their original field spellings and are
normalized on read.
"""

from __future__ import annotations

from typing import Any, Mapping
from uuid import uuid4

from sqlalchemy import select

from ..db import GameLogEvent, get_session
from ..logging import logger
from ..models import GoalEvent, PenaltyEvent
from ..normalization import normalize_events
from ..services.reconstructor import order_events
from .games import SessionFactory
from .protocols import LoggedEvent


class SqlEventLog:
    def __init__(self, session_factory: SessionFactory = get_session) -> None:
        self._session_factory = session_factory

    def get_events(self, game_id: str) -> list[LoggedEvent]:
        with self._session_factory() as session:
            payloads = session.execute(
                select(GameLogEvent.payload)
                .where(GameLogEvent.game_ref == game_id)
                .order_by(GameLogEvent.id)
            ).scalars().all()
        # Insertion order from the id column; recorded-at ordering with ties
        # kept in insertion order is applied after normalization
        return order_events(normalize_events(payloads, game_id))

    def append_event(self, game_id: str, event: GoalEvent | PenaltyEvent) -> GoalEvent | PenaltyEvent:
        committed = event
        if event.event_id is None:
            committed = event.model_copy(update={"event_id": uuid4().hex})
        with self._session_factory() as session:
            session.add(
                GameLogEvent(
                    game_ref=game_id,
                    event_ref=committed.event_id,
                    kind=committed.kind,
                    recorded_at=committed.recorded_at,
                    payload=committed.model_dump(mode="json"),
                )
            )
        logger.debug("game_event_appended", game_id=game_id, event_id=committed.event_id, kind=committed.kind)
        return committed

    def append_raw(self, game_id: str, raw: Mapping[str, Any]) -> None:
        """Store a payload as-is, bypassing validation (legacy imports)."""
        with self._session_factory() as session:
            session.add(
                GameLogEvent(
                    game_ref=game_id,
                    event_ref=str(raw.get("id") or raw.get("eventId") or uuid4().hex),
                    kind=str(raw.get("eventType") or raw.get("kind") or "unknown"),
                    recorded_at=None,
                    payload=dict(raw),
                )
            )
