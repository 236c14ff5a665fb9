"""Shared pytest fixtures and configuration."""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest

# Set required environment variables before any imports
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("ENVIRONMENT", "development")

HOME = "Ice Hawks"
AWAY = "Polar Wolves"
GAME_ID = "game-1"
# Wednesday of ISO-style week 2025-W10 (first Monday of 2025 is Jan 6)
GAME_DAY = datetime(2025, 3, 12, 19, 0, tzinfo=UTC)


@pytest.fixture
def game_info():
    from rink_reports.models import GameInfo

    return GameInfo(
        game_id=GAME_ID,
        home_team=HOME,
        away_team=AWAY,
        division="Gold",
        played_at=GAME_DAY,
        final_score=None,
    )


@pytest.fixture
def clock_stamp():
    """Monotonic recorded-at timestamps, one minute apart."""
    ticks = count()

    def _next() -> datetime:
        return GAME_DAY + timedelta(minutes=next(ticks))

    return _next


@pytest.fixture
def make_goal(clock_stamp):
    from rink_reports.models import GoalEvent

    def _make(team=HOME, player="Skater One", period=1, clock="15:00", assists=(), recorded_at=None, **extra):
        return GoalEvent(
            game_id=extra.pop("game_id", GAME_ID),
            team_name=team,
            player_name=player,
            period=period,
            clock=clock,
            assists=list(assists),
            recorded_at=recorded_at or clock_stamp(),
            **extra,
        )

    return _make


@pytest.fixture
def make_penalty(clock_stamp):
    from rink_reports.models import PenaltyEvent

    def _make(
        team=HOME,
        player="Skater One",
        period=1,
        clock="10:00",
        penalty_type="Tripping",
        duration=2,
        recorded_at=None,
        **extra,
    ):
        return PenaltyEvent(
            game_id=extra.pop("game_id", GAME_ID),
            team_name=team,
            player_name=player,
            period=period,
            clock=clock,
            penalty_type=penalty_type,
            duration_minutes=duration,
            recorded_at=recorded_at or clock_stamp(),
            **extra,
        )

    return _make


@pytest.fixture
def sample_legacy_goal():
    """Goal payload as written by an older scorekeeper client."""
    return {
        "eventType": "goal",
        "gameId": GAME_ID,
        "scoringTeam": HOME,
        "scorer": "Skater One",
        "assistedBy": ["Skater Two"],
        "period": "2",
        "timeRemaining": "12:34",
        "timestampRecorded": "2025-03-12T19:30:00Z",
    }


@pytest.fixture
def sample_legacy_penalty():
    return {
        "eventType": "penalty",
        "gameId": GAME_ID,
        "penalizedTeam": AWAY,
        "penalizedPlayer": "Skater Nine",
        "infraction": "Hooking",
        "penaltyLength": "2",
        "period": "OT",
        "time": "03:15",
        "recordedAt": "2025-03-12T20:40:00Z",
    }
