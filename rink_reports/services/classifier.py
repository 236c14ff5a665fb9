"""
Event Classifier: labels for a new goal or penalty given the state before it.

IMPORTANT:
- This module contains PURE FUNCTIONS only (no storage access, no logging)
- Every function judges the new event against the state immediately
  preceding it; the reconstructor applies the event afterwards
- Penalty windows are measured in game-clock time, never wall-clock time

Goal context (first match wins):
1. first-goal-of-game
2. tying-goal       (scorer was behind, now level)
3. go-ahead-goal    (scorer was level or behind, now strictly ahead)
4. insurance-goal   (scorer was already ahead)
5. regular-goal

Penalty context (first match wins):
1. first-penalty-of-game
2. major-penalty    (label in the major/fighting vocabulary)
3. misconduct-penalty
4. double-minor     (duration above the minor length)
5. regular-penalty
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Mapping, Sequence

from ..config import ClassifierConfig, settings
from ..exceptions import ValidationError
from ..models import (
    GameSituation,
    GoalContext,
    GoalEvent,
    MalformedEvent,
    PenaltyContext,
    PenaltyEvent,
    PenaltyWindow,
    Strength,
    StrengthSituation,
)


# =============================================================================
# INPUT CHECKS
# =============================================================================


def require_classifiable(event: GoalEvent | PenaltyEvent | MalformedEvent) -> None:
    """Raise ValidationError unless the event carries every field classification reads."""
    if isinstance(event, MalformedEvent):
        raise ValidationError(
            event.errors or ["event failed validation"],
            kind=event.kind,
            team_name=event.team_name,
            player_name=event.player_name,
        )
    if not isinstance(event, (GoalEvent, PenaltyEvent)):
        raise ValidationError([f"unsupported event type: {type(event).__name__}"])


# =============================================================================
# PENALTY WINDOWS
# =============================================================================


def penalty_window(event: PenaltyEvent, sequence_number: int) -> PenaltyWindow:
    """Game-time window served for a penalty, starting at the infraction."""
    start = event.game_seconds
    return PenaltyWindow(
        team_name=event.team_name,
        player_name=event.player_name,
        start_seconds=start,
        end_seconds=start + event.duration_minutes * 60,
        sequence_number=sequence_number,
    )


def active_penalty_counts(windows: Iterable[PenaltyWindow], at_seconds: int) -> Counter[str]:
    """Count penalties being served per team at a game time."""
    counts: Counter[str] = Counter()
    for window in windows:
        if window.is_active(at_seconds):
            counts[window.team_name] += 1
    return counts


def _opponent_value(values: Mapping[str, int], team: str, opponents: Sequence[str]) -> int:
    """Largest value among the opponents; a lone unknown opponent counts as zero."""
    others = [values.get(name, 0) for name in opponents if name != team]
    return max(others, default=0)


def strength_at(
    windows: Iterable[PenaltyWindow],
    teams: Sequence[str],
    at_seconds: int,
) -> StrengthSituation:
    """
    Manpower situation across a game's teams at a game time.

    The team serving the fewest penalties holds the advantage; a gap of two
    or more is 5-on-3-or-worse.
    """
    counts = active_penalty_counts(windows, at_seconds)
    if len(teams) < 2:
        return StrengthSituation()
    ordered = sorted(teams, key=lambda name: (counts.get(name, 0), teams.index(name)))
    fewest = counts.get(ordered[0], 0)
    most = counts.get(ordered[-1], 0)
    gap = most - fewest
    if gap == 0:
        return StrengthSituation()
    label = Strength.FIVE_ON_THREE if gap >= 2 else Strength.POWER_PLAY
    return StrengthSituation(label=label, advantaged_team=ordered[0])


# =============================================================================
# GOALS
# =============================================================================


def classify_goal_context(
    score_before: Mapping[str, int],
    scoring_team: str,
    opponents: Sequence[str],
    goals_before: int | None = None,
) -> GoalContext:
    """
    Classify a goal against the score immediately preceding it.

    This is a PURE FUNCTION - no side effects.

    Args:
        score_before: Score by team before the goal
        scoring_team: Team credited with the goal
        opponents: The other team(s) in the game
        goals_before: Goal events earlier in the log, rejected ones included
            (defaults to the goals on the scoreboard)

    Returns:
        GoalContext label (first match wins)

    Example:
        >>> classify_goal_context({"A": 1, "B": 0}, "B", ["A"])
        <GoalContext.TYING: 'tying-goal'>
    """
    if goals_before is None:
        goals_before = sum(score_before.values())
    if goals_before == 0:
        return GoalContext.FIRST_GOAL

    before_for = score_before.get(scoring_team, 0)
    before_against = _opponent_value(score_before, scoring_team, opponents)
    after_for = before_for + 1

    if before_for < before_against and after_for == before_against:
        return GoalContext.TYING
    if before_for <= before_against and after_for > before_against:
        return GoalContext.GO_AHEAD
    if before_for > before_against:
        return GoalContext.INSURANCE
    return GoalContext.REGULAR


def classify_goal_situation(event: GoalEvent) -> GameSituation:
    """Regulation or overtime goal."""
    require_classifiable(event)
    return GameSituation.OVERTIME if event.is_overtime else GameSituation.REGULAR


def classify_goal_strength(
    windows: Iterable[PenaltyWindow],
    scoring_team: str,
    opponents: Sequence[str],
    at_seconds: int,
) -> Strength:
    """
    Strength from the scoring team's point of view at the goal's game time.

    Equal active penalties is even strength; fewer than the opponent is a
    power play; more is short-handed.
    """
    counts = active_penalty_counts(windows, at_seconds)
    own = counts.get(scoring_team, 0)
    against = _opponent_value(counts, scoring_team, opponents)
    if own == against:
        return Strength.EVEN
    if own < against:
        return Strength.POWER_PLAY
    return Strength.SHORT_HANDED


# =============================================================================
# PENALTIES
# =============================================================================


def _matches(label: str, vocabulary: Iterable[str]) -> bool:
    lowered = label.lower()
    return any(term.lower() in lowered for term in vocabulary)


def classify_penalty_context(
    event: PenaltyEvent,
    penalties_before: int,
    config: ClassifierConfig | None = None,
) -> PenaltyContext:
    """
    Classify a penalty given how many penalties the game already has.

    Args:
        event: The new penalty
        penalties_before: Number of penalties recorded earlier in the game
        config: Vocabulary and thresholds (defaults to settings)

    Returns:
        PenaltyContext label (first match wins)
    """
    require_classifiable(event)
    config = config or settings.classifier
    if penalties_before == 0:
        return PenaltyContext.FIRST_PENALTY
    if _matches(event.penalty_type, config.major_vocabulary):
        return PenaltyContext.MAJOR
    if _matches(event.penalty_type, config.misconduct_vocabulary):
        return PenaltyContext.MISCONDUCT
    if event.duration_minutes > config.double_minor_threshold_minutes:
        return PenaltyContext.DOUBLE_MINOR
    return PenaltyContext.REGULAR


def strength_after_penalty(
    windows_before: Iterable[PenaltyWindow],
    new_window: PenaltyWindow,
    opponents: Sequence[str],
) -> StrengthSituation:
    """
    Manpower situation once a new penalty starts being served.

    - penalized team already short-handed: 5-on-3-or-worse for the opponent
    - penalty offsets the penalized team's own power play: even strength
    - otherwise: power play for the opponent

    When the penalized team still has fewer players in the box afterwards it
    keeps its power play.
    """
    at_seconds = new_window.start_seconds
    counts = active_penalty_counts([*windows_before, new_window], at_seconds)
    penalized = new_window.team_name
    own = counts.get(penalized, 0)
    rivals = [name for name in opponents if name != penalized]
    against = _opponent_value(counts, penalized, rivals)
    gap = own - against

    if gap == 0:
        return StrengthSituation()
    if gap > 0:
        beneficiary = max(rivals, key=lambda name: (-counts.get(name, 0), -rivals.index(name)), default=None)
        label = Strength.FIVE_ON_THREE if gap >= 2 else Strength.POWER_PLAY
        return StrengthSituation(label=label, advantaged_team=beneficiary)
    label = Strength.FIVE_ON_THREE if gap <= -2 else Strength.POWER_PLAY
    return StrengthSituation(label=label, advantaged_team=penalized)
