"""
Cross-Game Aggregator: fold reconstructed games into player and team season stats.

IMPORTANT:
- Player stats always count every classified goal, assist and penalty minute,
  even for games whose final-score summary is missing
- Team games played / wins / losses / goals for and against come ONLY from a
  complete final-score summary; anything else is an AggregationGap
- Equal final scores are neither a win nor a loss (there is no tie column)
- Team penalty minutes always come from classified penalties

Ranking chain for players (deterministic):
1. points, descending
2. goals, descending
3. player name, ascending
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..config import settings
from ..exceptions import AggregationGap
from ..logging import logger
from ..models import (
    UNKNOWN_DIVISION,
    DerivedGameState,
    GameInfo,
    GameResult,
    PlayerSeasonStat,
    ReportTotals,
    TeamSeasonStat,
)

PlayerKey = tuple[str, str]


@dataclass
class Aggregation:
    """Everything one aggregation run produced."""

    players: dict[PlayerKey, PlayerSeasonStat] = field(default_factory=dict)
    teams: dict[str, TeamSeasonStat] = field(default_factory=dict)
    results: list[GameResult] = field(default_factory=list)
    totals: ReportTotals = field(default_factory=ReportTotals)
    gaps: list[AggregationGap] = field(default_factory=list)


# =============================================================================
# PER GAME
# =============================================================================


def summarize_game(game: GameInfo | None, state: DerivedGameState) -> GameResult:
    """
    Roll one game up into the shape the highlight rules read.

    Scores come from the submitted final score when it is complete, otherwise
    from the reconstructed scoreboard.
    """
    complete = game is not None and game.has_complete_summary
    if complete:
        teams = list(game.teams)
        scores = {team: int(game.final_score[team]) for team in teams}
    else:
        teams = list(game.teams) if game is not None else list(state.teams)
        scores = {team: state.score.get(team, 0) for team in teams}

    return GameResult(
        game_id=game.game_id if game is not None else (state.game_id or ""),
        division=game.division if game is not None else UNKNOWN_DIVISION,
        teams=teams,
        scores=scores,
        total_goals=sum(scores.values()),
        total_penalties=state.total_penalties,
        penalty_minutes=sum(state.pim_by_team.values()),
        summary_complete=complete,
    )


def _player(players: dict[PlayerKey, PlayerSeasonStat], name: str, team: str) -> PlayerSeasonStat:
    key = (name, team)
    stat = players.get(key)
    if stat is None:
        stat = PlayerSeasonStat(player_name=name, team_name=team)
        players[key] = stat
    return stat


def _team(teams: dict[str, TeamSeasonStat], name: str) -> TeamSeasonStat:
    stat = teams.get(name)
    if stat is None:
        stat = TeamSeasonStat(team_name=name)
        teams[name] = stat
    return stat


def _fold_players(players: dict[PlayerKey, PlayerSeasonStat], state: DerivedGameState) -> None:
    for record in state.goals:
        team = record.team_name
        _player(players, record.event.player_name, team).goals += 1
        for assister in record.event.assists:
            _player(players, assister, team).assists += 1
    for (name, team), minutes in state.pim_by_player.items():
        _player(players, name, team).penalty_minutes += minutes


def _fold_team_record(teams: dict[str, TeamSeasonStat], game: GameInfo) -> None:
    home, away = game.teams
    final = game.final_score or {}
    for team, opponent in ((home, away), (away, home)):
        stat = _team(teams, team)
        scored, allowed = int(final[team]), int(final[opponent])
        stat.games_played += 1
        stat.goals_for += scored
        stat.goals_against += allowed
        if scored > allowed:
            stat.wins += 1
        elif scored < allowed:
            stat.losses += 1


def _gap_reason(game: GameInfo | None) -> str | None:
    if game is None:
        return "game metadata unavailable"
    if not game.final_score:
        return "final score not submitted"
    if not game.has_complete_summary:
        return "final score missing a team"
    return None


# =============================================================================
# ACROSS GAMES
# =============================================================================


def aggregate(games: Iterable[tuple[GameInfo | None, DerivedGameState]]) -> Aggregation:
    """
    Fold every game's derived state into season stats.

    Args:
        games: (game metadata, reconstructed state) pairs; metadata may be None
            when the lookup failed

    Returns:
        Aggregation with player and team stats, per-game results, week totals
        and the games excluded from team records.
    """
    result = Aggregation()

    for game, state in games:
        _fold_players(result.players, state)
        for team, minutes in state.pim_by_team.items():
            _team(result.teams, team).penalty_minutes += minutes

        summary = summarize_game(game, state)
        result.results.append(summary)

        reason = _gap_reason(game)
        if reason is None:
            _fold_team_record(result.teams, game)
        else:
            gap = AggregationGap(summary.game_id, reason)
            result.gaps.append(gap)
            logger.warning("aggregation_gap", game_id=gap.game_id, reason=gap.reason)

    result.totals = ReportTotals(
        games=len(result.results),
        goals=sum(r.total_goals for r in result.results),
        penalties=sum(r.total_penalties for r in result.results),
        penalty_minutes=sum(r.penalty_minutes for r in result.results),
    )
    return result


def rank_players(players: Iterable[PlayerSeasonStat]) -> list[PlayerSeasonStat]:
    """Order by points desc, goals desc, name asc (team name breaks exact duplicates)."""
    return sorted(players, key=lambda p: (-p.points, -p.goals, p.player_name, p.team_name))


def top_scorers(players: Iterable[PlayerSeasonStat], limit: int | None = None) -> list[PlayerSeasonStat]:
    """Ranked players with at least one point."""
    if limit is None:
        limit = settings.highlights.top_scorer_count
    return [p for p in rank_players(players) if p.points > 0][:limit]


def rank_teams(teams: Iterable[TeamSeasonStat]) -> list[TeamSeasonStat]:
    """Standings order: wins, goal differential, goals for, then name."""
    return sorted(
        teams,
        key=lambda t: (-t.wins, -t.goal_differential, -t.goals_for, t.team_name),
    )


def leading_scorer(players: Sequence[PlayerSeasonStat]) -> PlayerSeasonStat | None:
    ranked = top_scorers(players, limit=1)
    return ranked[0] if ranked else None
