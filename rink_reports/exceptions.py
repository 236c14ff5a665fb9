"""Typed failure conditions for game reconstruction and reporting.

None of these abort a whole computation. Callers log them and continue with
partial results; only event recording surfaces ValidationError to its caller.
"""

from __future__ import annotations


class RinkReportError(RuntimeError):
    """Base class for rink report failures."""


class ValidationError(RinkReportError):
    """A single event is malformed (missing field, unparseable clock or duration).

    Carries whatever core fields could still be recovered from the payload so
    the reconstructor can apply a goal's raw score contribution.
    """

    def __init__(
        self,
        errors: list[str],
        *,
        kind: str | None = None,
        team_name: str | None = None,
        player_name: str | None = None,
    ) -> None:
        super().__init__("; ".join(errors) or "invalid event")
        self.errors = list(errors)
        self.kind = kind
        self.team_name = team_name
        self.player_name = player_name


class LookupFailure(RinkReportError):
    """Game metadata could not be resolved."""

    def __init__(self, game_id: str, reason: str = "game not found") -> None:
        super().__init__(f"{game_id}: {reason}")
        self.game_id = game_id
        self.reason = reason


class AggregationGap(RinkReportError):
    """A game has no usable final-score summary for win/loss tallies."""

    def __init__(self, game_id: str, reason: str) -> None:
        super().__init__(f"{game_id}: {reason}")
        self.game_id = game_id
        self.reason = reason
