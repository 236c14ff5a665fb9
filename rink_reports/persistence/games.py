"""Game directory backed by the league_games table."""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db import LeagueGame, get_session
from ..logging import logger
from ..models import GameInfo
from ..utils.datetime_utils import ensure_utc

SessionFactory = Callable[[], AbstractContextManager[Session]]


def _to_game_info(row: LeagueGame) -> GameInfo:
    return GameInfo(
        game_id=row.game_ref,
        home_team=row.home_team,
        away_team=row.away_team,
        division=row.division,
        played_at=ensure_utc(row.played_at) if row.played_at else None,
        final_score=row.final_score,
    )


def upsert_game(session: Session, game: GameInfo) -> LeagueGame:
    """Create or update a game row by its external reference."""
    row = session.execute(
        select(LeagueGame).where(LeagueGame.game_ref == game.game_id)
    ).scalar_one_or_none()
    created = row is None
    if row is None:
        row = LeagueGame(game_ref=game.game_id)
        session.add(row)
    row.home_team = game.home_team
    row.away_team = game.away_team
    row.division = game.division
    row.played_at = ensure_utc(game.played_at) if game.played_at else None
    row.final_score = dict(game.final_score) if game.final_score is not None else None
    session.flush()
    logger.debug("league_game_upserted", game_id=game.game_id, created=created)
    return row


class SqlGameDirectory:
    def __init__(self, session_factory: SessionFactory = get_session) -> None:
        self._session_factory = session_factory

    def add(self, game: GameInfo) -> None:
        with self._session_factory() as session:
            upsert_game(session, game)

    def get_game(self, game_id: str) -> GameInfo | None:
        with self._session_factory() as session:
            row = session.execute(
                select(LeagueGame).where(LeagueGame.game_ref == game_id)
            ).scalar_one_or_none()
            return _to_game_info(row) if row is not None else None

    def list_games(self, division: str, start: datetime, end: datetime) -> list[GameInfo]:
        with self._session_factory() as session:
            rows = session.execute(
                select(LeagueGame)
                .where(
                    LeagueGame.division == division,
                    LeagueGame.played_at.is_not(None),
                    LeagueGame.played_at >= ensure_utc(start),
                    LeagueGame.played_at <= ensure_utc(end),
                )
                .order_by(LeagueGame.played_at, LeagueGame.game_ref)
            ).scalars().all()
            return [_to_game_info(row) for row in rows]
