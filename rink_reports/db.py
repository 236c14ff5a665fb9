"""
Database helpers for the rink reports service.

This module provides synchronous database session management for Celery tasks
and the ORM models backing the SQL collaborators: scheduled games, the
per-game event log, and generated division reports.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

from sqlalchemy import (
    JSON,
    DateTime,
    Engine,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings
from .logging import logger


class Base(DeclarativeBase):
    pass


class LeagueGame(Base):
    """Scheduled game with its teams, division and submitted final score."""

    __tablename__ = "league_games"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_ref: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    home_team: Mapped[str] = mapped_column(String(200), nullable=False)
    away_team: Mapped[str] = mapped_column(String(200), nullable=False)
    division: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    played_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Keyed by team name; null until the scorekeeper submits the game
    final_score: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("idx_league_games_division_played", "division", "played_at"),)


class GameLogEvent(Base):
    """One scorekeeper event. Rows are append-only."""

    __tablename__ = "game_log_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_ref: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("league_games.game_ref", ondelete="CASCADE"),
        nullable=False,
    )
    event_ref: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    recorded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("idx_game_log_events_game_recorded", "game_ref", "recorded_at", "id"),)


class DivisionReportRecord(Base):
    """Latest generated report per division and week. Overwritten on regeneration."""

    __tablename__ = "division_reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    report_ref: Mapped[str] = mapped_column(String(120), nullable=False)
    division: Mapped[str] = mapped_column(String(50), nullable=False)
    week_id: Mapped[str] = mapped_column(String(20), nullable=False)
    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (UniqueConstraint("division", "week_id", name="uq_division_reports_division_week"),)


# Lazy-loaded engine and session factory to avoid connecting at import time
_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def _get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = settings.database_url
        kwargs: dict[str, Any] = {"echo": settings.sql_echo, "future": True}
        if url.startswith("sqlite") and ":memory:" in url:
            # One shared connection so every session sees the same in-memory database
            kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
        else:
            kwargs["pool_pre_ping"] = True
        _engine = create_engine(url, **kwargs)
    return _engine


def _get_session_factory() -> sessionmaker[Session]:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            bind=_get_engine(),
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            class_=Session,
        )
    return _SessionLocal


def init_db() -> None:
    """Create tables that do not exist yet."""
    Base.metadata.create_all(_get_engine())


@contextmanager
def get_session() -> Iterator[Session]:
    """
    Provide a transactional database session context manager.

    Use this in Celery tasks and other synchronous code paths.
    Automatically handles commit/rollback and session cleanup.

    Usage:
        with get_session() as session:
            session.add(record)
            # Commit happens automatically on exit
    """
    session = _get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception as exc:
        session.rollback()
        logger.exception("db_session_rollback", error=str(exc))
        raise
    finally:
        session.close()


__all__ = [
    "Base",
    "DivisionReportRecord",
    "GameLogEvent",
    "LeagueGame",
    "get_session",
    "init_db",
]
