"""Pydantic models for scorekeeper events, game records and division reports."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from ..config import settings
from ..utils.datetime_utils import ensure_utc
from ..utils.parsing import parse_clock, parse_period, parse_whole_number

EventKind = Literal["goal", "penalty"]
StandoutTag = Literal["hat-trick hero", "playmaker", "consistent performer", "contributor"]

UNKNOWN_DIVISION = "Unknown"


class _GameEventBase(BaseModel):
    """Fields shared by every scorekeeper event.

    ``clock`` is the time remaining in the period (counts down from the period
    length). ``recorded_at`` is when the scorekeeper entered the event and is
    the ordering key within a game's log.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str | None = None
    game_id: str
    team_name: str = Field(min_length=1)
    player_name: str = Field(min_length=1)
    period: int
    clock: str
    recorded_at: datetime

    @field_validator("team_name", "player_name", mode="before")
    @classmethod
    def _collapse_whitespace(cls, value: Any) -> Any:
        if isinstance(value, str):
            return " ".join(value.split())
        return value

    @field_validator("game_id", mode="before")
    @classmethod
    def _stringify_game_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("period", mode="before")
    @classmethod
    def _parse_period(cls, value: Any) -> int:
        period = parse_period(value, settings.game_clock.regulation_periods)
        if period is None:
            msg = f"period must be 1-{settings.game_clock.regulation_periods} or OT"
            raise ValueError(msg)
        return period

    @field_validator("clock", mode="before")
    @classmethod
    def _validate_clock(cls, value: Any) -> str:
        seconds = parse_clock(value)
        if seconds is None:
            raise ValueError("clock must be in MM:SS format")
        if seconds > settings.game_clock.period_length_minutes * 60:
            raise ValueError("clock exceeds the period length")
        return str(value).strip()

    @field_validator("recorded_at")
    @classmethod
    def _normalize_recorded_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def is_overtime(self) -> bool:
        return self.period > settings.game_clock.regulation_periods

    @property
    def clock_seconds_remaining(self) -> int:
        return parse_clock(self.clock) or 0

    @property
    def game_seconds(self) -> int:
        """Elapsed game time in seconds, continuous across periods."""
        period_seconds = settings.game_clock.period_length_minutes * 60
        return (self.period - 1) * period_seconds + (period_seconds - self.clock_seconds_remaining)


class GoalEvent(_GameEventBase):
    kind: Literal["goal"] = "goal"
    # First assist, then second assist
    assists: list[str] = Field(default_factory=list)
    goal_type: str = "even strength"
    shot_type: str | None = None
    breakaway: bool = False

    @field_validator("assists", mode="before")
    @classmethod
    def _clean_assists(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple)):
            return [" ".join(str(name).split()) for name in value if name and str(name).strip()]
        return value

    @model_validator(mode="after")
    def _check_assists(self) -> GoalEvent:
        if len(self.assists) > 2:
            raise ValueError("a goal has at most two assists")
        if self.player_name in self.assists:
            raise ValueError("scorer cannot assist on their own goal")
        return self


class PenaltyEvent(_GameEventBase):
    kind: Literal["penalty"] = "penalty"
    penalty_type: str = Field(min_length=1)
    duration_minutes: int

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def _validate_duration(cls, value: Any) -> int:
        clock = settings.game_clock
        minutes = parse_whole_number(value)
        if minutes is None:
            raise ValueError("duration must be a whole number of minutes")
        if minutes < clock.min_penalty_minutes or minutes > clock.max_penalty_minutes:
            msg = (
                f"duration must be between {clock.min_penalty_minutes} "
                f"and {clock.max_penalty_minutes} minutes"
            )
            raise ValueError(msg)
        return minutes


GameEvent = Annotated[GoalEvent | PenaltyEvent, Field(discriminator="kind")]


class MalformedEvent(BaseModel):
    """An event that failed validation, kept in log order with what could be recovered."""

    model_config = ConfigDict(frozen=True)

    kind: EventKind | None = None
    game_id: str | None = None
    team_name: str | None = None
    player_name: str | None = None
    duration_minutes: int | None = None
    recorded_at: datetime | None = None
    errors: list[str] = Field(default_factory=list)
    raw: dict[str, Any] = Field(default_factory=dict)


class GameInfo(BaseModel):
    """Game metadata from the schedule plus the scorekeeper's submitted summary."""

    game_id: str
    home_team: str
    away_team: str
    division: str = UNKNOWN_DIVISION
    played_at: datetime | None = None
    # Submitted final score keyed by team name; None until the game is submitted
    final_score: dict[str, int] | None = None

    @field_validator("game_id", mode="before")
    @classmethod
    def _stringify_game_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def teams(self) -> tuple[str, str]:
        return (self.home_team, self.away_team)

    @property
    def has_complete_summary(self) -> bool:
        if not self.final_score:
            return False
        return all(team in self.final_score for team in self.teams)


class PlayerSeasonStat(BaseModel):
    player_name: str
    team_name: str
    goals: int = 0
    assists: int = 0
    penalty_minutes: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def points(self) -> int:
        return self.goals + self.assists


class TeamSeasonStat(BaseModel):
    team_name: str
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    penalty_minutes: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def goal_differential(self) -> int:
        return self.goals_for - self.goals_against


class GameResult(BaseModel):
    """Per-game rollup consumed by the highlight rules."""

    game_id: str
    division: str = UNKNOWN_DIVISION
    teams: list[str] = Field(default_factory=list)
    scores: dict[str, int] = Field(default_factory=dict)
    total_goals: int = 0
    total_penalties: int = 0
    penalty_minutes: int = 0
    summary_complete: bool = False


class StandoutPlayer(BaseModel):
    name: str
    team: str
    goals: int
    assists: int
    points: int
    stats: str
    tag: StandoutTag
    highlight: str


class ReportTotals(BaseModel):
    games: int = 0
    goals: int = 0
    penalties: int = 0
    penalty_minutes: int = 0


class DivisionReport(BaseModel):
    """Rink report for one division and week. Always rebuilt whole, never patched."""

    report_id: str
    division: str
    week_id: str
    week_label: str
    title: str
    author: str
    published_at: datetime
    highlights: list[str] = Field(default_factory=list)
    standout_players: list[StandoutPlayer] = Field(default_factory=list)
    league_updates: list[str] = Field(default_factory=list)
    top_scorers: list[PlayerSeasonStat] = Field(default_factory=list)
    player_stats: list[PlayerSeasonStat] = Field(default_factory=list)
    team_stats: list[TeamSeasonStat] = Field(default_factory=list)
    games: list[GameResult] = Field(default_factory=list)
    totals: ReportTotals = Field(default_factory=ReportTotals)
