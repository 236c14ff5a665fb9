"""Division Report Builder: assemble and store one report per division and week.

Reports are always rebuilt whole from the event log and upserted; nothing is
patched in place. A failure in one division never stops the others.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from ..config import Settings, settings as default_settings
from ..logging import logger
from ..models import DerivedGameState, DivisionReport, GameInfo, GameResult
from ..persistence.protocols import EventLog, GameDirectory, ReportStore
from ..utils.datetime_utils import now_utc, week_label, week_window
from .aggregator import Aggregation, aggregate, rank_players, rank_teams, top_scorers
from .highlights import generate_highlights, league_updates, standout_players
from .reconstructor import reconstruct


def report_id(division: str, week_id: str) -> str:
    return f"{division}-{week_id}"


def build_report(
    division: str,
    aggregation: Aggregation,
    results: list[GameResult] | None = None,
    week_id: str = "current",
    published_at: datetime | None = None,
    config: Settings | None = None,
) -> DivisionReport:
    """
    Assemble a DivisionReport from aggregated stats. Pure: no storage access.

    Args:
        division: Division name
        aggregation: Output of aggregate() for the division's games
        results: Per-game results; defaults to the aggregation's own
        week_id: Week the report covers
        published_at: Publication timestamp (defaults to now)
        config: Settings providing highlight thresholds and the author name
    """
    config = config or default_settings
    results = aggregation.results if results is None else results
    players = list(aggregation.players.values())

    return DivisionReport(
        report_id=report_id(division, week_id),
        division=division,
        week_id=week_id,
        week_label=week_label(week_id),
        title=f"{division} Division Weekly Roundup",
        author=config.reports.author,
        published_at=published_at or now_utc(),
        highlights=generate_highlights(results, players, aggregation.totals, config.highlights),
        standout_players=standout_players(players, config.highlights),
        league_updates=league_updates(division, aggregation.totals, players),
        top_scorers=top_scorers(players, limit=config.highlights.top_scorer_count),
        player_stats=rank_players(players),
        team_stats=rank_teams(aggregation.teams.values()),
        games=results,
        totals=aggregation.totals,
    )


class DivisionReportBuilder:
    def __init__(
        self,
        event_log: EventLog,
        games: GameDirectory,
        report_store: ReportStore,
        settings: Settings | None = None,
    ) -> None:
        self.event_log = event_log
        self.games = games
        self.report_store = report_store
        self.settings = settings or default_settings

    def _reconstruct_game(self, game: GameInfo) -> DerivedGameState:
        state = reconstruct(self.event_log.get_events(game.game_id), game)
        if state.rejected:
            logger.warning(
                "events_rejected",
                game_id=game.game_id,
                count=len(state.rejected),
                errors=[r.event.errors for r in state.rejected],
            )
        if state.unattributed_count:
            logger.warning(
                "unattributed_events",
                game_id=game.game_id,
                count=state.unattributed_count,
                teams=list(game.teams),
            )
        return state

    def generate(self, division: str, week_id: str = "current", now: datetime | None = None) -> DivisionReport:
        """Rebuild and store the report for one division and week.

        Raises:
            ValueError: the week id is not recognised.
        """
        start, end = week_window(week_id, now)
        games = self.games.list_games(division, start, end)
        logger.info(
            "division_report_generation_started",
            division=division,
            week_id=week_id,
            window_start=start.isoformat(),
            window_end=end.isoformat(),
            games=len(games),
        )

        aggregation = aggregate((game, self._reconstruct_game(game)) for game in games)
        report = build_report(division, aggregation, week_id=week_id, config=self.settings)
        self.report_store.upsert_report(report)

        logger.info(
            "division_report_generated",
            report_id=report.report_id,
            highlights=len(report.highlights),
            standouts=len(report.standout_players),
            aggregation_gaps=len(aggregation.gaps),
        )
        return report

    def generate_all(self, week_id: str = "current", now: datetime | None = None) -> list[dict[str, Any]]:
        """Generate every configured division, collecting per-division outcomes."""
        outcomes: list[dict[str, Any]] = []
        for division in self.settings.reports.divisions:
            try:
                report = self.generate(division, week_id, now)
            except Exception as exc:
                logger.exception("division_report_failed", division=division, week_id=week_id, error=str(exc))
                outcomes.append({"division": division, "success": False, "error": str(exc)})
                continue
            outcomes.append({"division": division, "success": True, "report_id": report.report_id})
        return outcomes
