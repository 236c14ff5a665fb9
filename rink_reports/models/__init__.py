"""Common typed models shared across services."""

from .game_state import (
    DerivedGameState,
    GameSituation,
    GoalContext,
    GoalRecord,
    PenaltyContext,
    PenaltyRecord,
    PenaltyWindow,
    RejectedEvent,
    Strength,
    StrengthSituation,
)
from .schemas import (
    UNKNOWN_DIVISION,
    DivisionReport,
    GameEvent,
    GameInfo,
    GameResult,
    GoalEvent,
    MalformedEvent,
    PenaltyEvent,
    PlayerSeasonStat,
    ReportTotals,
    StandoutPlayer,
    TeamSeasonStat,
)

__all__ = [
    "UNKNOWN_DIVISION",
    "GoalEvent",
    "PenaltyEvent",
    "GameEvent",
    "MalformedEvent",
    "GameInfo",
    "PlayerSeasonStat",
    "TeamSeasonStat",
    "GameResult",
    "StandoutPlayer",
    "ReportTotals",
    "DivisionReport",
    "DerivedGameState",
    "GoalRecord",
    "PenaltyRecord",
    "RejectedEvent",
    "PenaltyWindow",
    "StrengthSituation",
    "GoalContext",
    "GameSituation",
    "PenaltyContext",
    "Strength",
]
