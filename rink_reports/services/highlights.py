"""
Report Highlight Generator: bounded, prioritized highlight strings and standouts.

Highlight rules (fixed priority, each capped, combined list capped):
1. High-scoring games   total goals >= threshold
2. Hat tricks           player goals in the window >= threshold
3. Nail-biters          exactly two teams, final margin of one
4. Physical matchups    total penalties >= threshold
5. Shutouts             one team held to zero, total goals > 0

When no rule fires, three generic summary lines are used instead.
"""

from __future__ import annotations

from typing import Sequence

from ..config import HighlightConfig, settings
from ..models import GameResult, PlayerSeasonStat, ReportTotals, StandoutPlayer
from .aggregator import leading_scorer, rank_players, top_scorers


def _high_scoring(results: Sequence[GameResult], config: HighlightConfig) -> list[str]:
    return [
        f"High-scoring thriller: {' vs '.join(r.teams)} combines for {r.total_goals} goals"
        for r in results
        if r.total_goals >= config.high_scoring_goals
    ]


def _hat_tricks(players: Sequence[PlayerSeasonStat], config: HighlightConfig) -> list[str]:
    return [
        f"{p.player_name} records hat trick with {p.goals} goals"
        for p in rank_players(players)
        if p.goals >= config.hat_trick_goals
    ]


def _nail_biters(results: Sequence[GameResult], config: HighlightConfig) -> list[str]:
    lines = []
    for r in results:
        if len(r.teams) != 2:
            continue
        first, second = (r.scores.get(team, 0) for team in r.teams)
        if abs(first - second) != 1:
            continue
        winner, loser = r.teams if first > second else reversed(r.teams)
        lines.append(f"Nail-biter: {winner} edges {loser} in one-goal thriller")
    return lines


def _physical(results: Sequence[GameResult], config: HighlightConfig) -> list[str]:
    return [
        f"Physical matchup: {' vs '.join(r.teams)} accumulates {r.total_penalties} penalties"
        for r in results
        if r.total_penalties >= config.penalty_heavy_count
    ]


def _shutouts(results: Sequence[GameResult], config: HighlightConfig) -> list[str]:
    lines = []
    for r in results:
        if len(r.teams) != 2 or r.total_goals <= 0:
            continue
        blanked = [team for team in r.teams if r.scores.get(team, 0) == 0]
        if len(blanked) != 1:
            continue
        loser = blanked[0]
        winner = next(team for team in r.teams if team != loser)
        lines.append(f"Shutout: {winner} blanks {loser} {r.scores.get(winner, 0)}-0")
    return lines


# Priority order
HIGHLIGHT_RULES = (_high_scoring, _hat_tricks, _nail_biters, _physical, _shutouts)


def fallback_highlights(totals: ReportTotals, players: Sequence[PlayerSeasonStat]) -> list[str]:
    lines = [
        f"{totals.games} exciting games played this week",
        f"Players combined for {totals.goals} goals across all matchups",
    ]
    leader = leading_scorer(players)
    if leader is not None:
        lines.append(f"{leader.player_name} leads weekly scoring with {leader.points} points")
    return lines


def generate_highlights(
    results: Sequence[GameResult],
    players: Sequence[PlayerSeasonStat],
    totals: ReportTotals,
    config: HighlightConfig | None = None,
) -> list[str]:
    """
    Apply the highlight rules in priority order.

    Args:
        results: Per-game results for the window
        players: Player stats for the window
        totals: Week totals, used by the fallback lines
        config: Thresholds and caps (defaults to settings)

    Returns:
        At most ``max_highlights`` lines; each rule contributes at most
        ``per_rule_cap`` of them.
    """
    config = config or settings.highlights
    highlights: list[str] = []
    for rule in HIGHLIGHT_RULES:
        if rule is _hat_tricks:
            lines = rule(players, config)
        else:
            lines = rule(results, config)
        highlights.extend(lines[: config.per_rule_cap])

    if not highlights:
        return fallback_highlights(totals, players)
    return highlights[: config.max_highlights]


def standout_tag(player: PlayerSeasonStat, config: HighlightConfig | None = None) -> tuple[str, str]:
    """Tag and tag sentence for a standout player (first match wins)."""
    config = config or settings.highlights
    if player.goals >= config.hat_trick_hero_goals:
        return "hat-trick hero", f"Hat trick hero with {player.goals} goals"
    if player.assists >= config.playmaker_assists:
        return "playmaker", f"Playmaker extraordinaire with {player.assists} assists"
    if player.points >= config.consistent_points:
        return "consistent performer", f"Consistent performer with {player.points} points"
    return "contributor", f"Solid contributor with {player.goals}G, {player.assists}A"


def standout_players(
    players: Sequence[PlayerSeasonStat],
    config: HighlightConfig | None = None,
) -> list[StandoutPlayer]:
    config = config or settings.highlights
    standouts = []
    for player in top_scorers(players, limit=config.standout_count):
        tag, sentence = standout_tag(player, config)
        standouts.append(
            StandoutPlayer(
                name=player.player_name,
                team=player.team_name,
                goals=player.goals,
                assists=player.assists,
                points=player.points,
                stats=f"{player.goals} goals, {player.assists} assists this week",
                tag=tag,
                highlight=sentence,
            )
        )
    return standouts


def league_updates(division: str, totals: ReportTotals, players: Sequence[PlayerSeasonStat]) -> list[str]:
    updates = [
        f"{division} division completed {totals.games} games this week",
        f"Players scored {totals.goals} goals across all matchups",
    ]
    if totals.penalty_minutes > 0:
        updates.append(f"{totals.penalty_minutes} penalty minutes assessed this week")
    if any(p.goals > 0 for p in players):
        average = totals.goals / max(totals.games, 1)
        updates.append(f"Average of {average:.1f} goals per game this week")
    return updates
