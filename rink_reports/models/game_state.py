"""
Game State Types: derived, never-persisted state reconstructed from an event log.

A DerivedGameState is always a pure function of a game's events up to some
point. Records inside it are frozen; the reconstructor copies containers when
folding so earlier snapshots are never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .schemas import GoalEvent, MalformedEvent, PenaltyEvent


class GoalContext(str, Enum):
    """Score context of a goal, judged against the score just before it."""
    FIRST_GOAL = "first-goal-of-game"
    TYING = "tying-goal"
    GO_AHEAD = "go-ahead-goal"
    INSURANCE = "insurance-goal"
    REGULAR = "regular-goal"


class GameSituation(str, Enum):
    """Regulation or overtime."""
    REGULAR = "regular-goal"
    OVERTIME = "overtime-goal"


class Strength(str, Enum):
    EVEN = "even-strength"
    POWER_PLAY = "power-play"
    SHORT_HANDED = "short-handed"
    FIVE_ON_THREE = "5-on-3-or-worse"


class PenaltyContext(str, Enum):
    FIRST_PENALTY = "first-penalty-of-game"
    MAJOR = "major-penalty"
    MISCONDUCT = "misconduct-penalty"
    DOUBLE_MINOR = "double-minor"
    REGULAR = "regular-penalty"


@dataclass(frozen=True)
class PenaltyWindow:
    """Game-time span ``[start_seconds, end_seconds)`` during which a penalty is served."""
    team_name: str
    player_name: str
    start_seconds: int
    end_seconds: int
    sequence_number: int

    def is_active(self, at_seconds: int) -> bool:
        return self.start_seconds <= at_seconds < self.end_seconds


@dataclass(frozen=True)
class StrengthSituation:
    label: Strength = Strength.EVEN
    # Team with the manpower advantage; None at even strength
    advantaged_team: str | None = None


@dataclass(frozen=True)
class GoalRecord:
    event: GoalEvent
    sequence_number: int
    context: GoalContext
    situation: GameSituation
    strength: Strength
    score_before: dict[str, int]
    score_after: dict[str, int]
    scorer_goals_in_game: int
    unattributed: bool = False

    @property
    def team_name(self) -> str:
        return self.event.team_name


@dataclass(frozen=True)
class PenaltyRecord:
    event: PenaltyEvent
    sequence_number: int
    context: PenaltyContext
    strength_after: StrengthSituation
    unattributed: bool = False

    @property
    def team_name(self) -> str:
        return self.event.team_name


@dataclass(frozen=True)
class RejectedEvent:
    """A malformed event excluded from classification.

    ``score_applied`` is True when a goal still counted toward the score
    because its team was recoverable.
    """
    event: MalformedEvent
    position: int
    score_applied: bool = False
    pim_applied: bool = False


@dataclass
class DerivedGameState:
    """Everything derivable from one game's event log.

    ``events_processed`` and ``last_recorded_at`` form the watermark used by
    incremental reconstruction.
    """

    game_id: str | None = None
    home_team: str | None = None
    away_team: str | None = None
    score: dict[str, int] = field(default_factory=dict)
    goals: list[GoalRecord] = field(default_factory=list)
    penalties: list[PenaltyRecord] = field(default_factory=list)
    rejected: list[RejectedEvent] = field(default_factory=list)
    penalty_windows: list[PenaltyWindow] = field(default_factory=list)
    strength: StrengthSituation = field(default_factory=StrengthSituation)
    pim_by_team: dict[str, int] = field(default_factory=dict)
    # Keyed by (player_name, team_name)
    pim_by_player: dict[tuple[str, str], int] = field(default_factory=dict)
    game_seconds: int = 0
    events_processed: int = 0
    last_recorded_at: datetime | None = None

    @property
    def teams(self) -> tuple[str, ...]:
        """Teams attached to the game, or every team seen when the game is unknown."""
        if self.home_team and self.away_team:
            return (self.home_team, self.away_team)
        seen: list[str] = []
        for team in [*self.score, *self.pim_by_team]:
            if team not in seen:
                seen.append(team)
        return tuple(seen)

    @property
    def total_goals(self) -> int:
        return sum(self.score.values())

    @property
    def total_penalties(self) -> int:
        return len(self.penalties) + sum(1 for r in self.rejected if r.pim_applied)

    @property
    def unattributed_count(self) -> int:
        return sum(1 for g in self.goals if g.unattributed) + sum(
            1 for p in self.penalties if p.unattributed
        )

    def goals_by_team(self) -> dict[str, int]:
        """Count goal events per team, including rejected goals that still scored."""
        counts: dict[str, int] = {}
        for record in self.goals:
            counts[record.team_name] = counts.get(record.team_name, 0) + 1
        for rejected in self.rejected:
            if rejected.score_applied and rejected.event.team_name:
                team = rejected.event.team_name
                counts[team] = counts.get(team, 0) + 1
        return counts
