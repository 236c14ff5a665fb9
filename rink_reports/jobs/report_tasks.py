"""Celery tasks that rebuild division rink reports."""

from __future__ import annotations

from celery import shared_task

from ..logging import logger
from ..persistence.events import SqlEventLog
from ..persistence.games import SqlGameDirectory
from ..persistence.reports import SqlReportStore
from ..services.report_builder import DivisionReportBuilder


def _builder() -> DivisionReportBuilder:
    return DivisionReportBuilder(
        event_log=SqlEventLog(),
        games=SqlGameDirectory(),
        report_store=SqlReportStore(),
    )


@shared_task(name="generate_weekly_rink_reports")
def generate_weekly_rink_reports(week_id: str | None = None) -> dict:
    """Rebuild every configured division's report for a week.

    Args:
        week_id: ``current``, ``week-N`` or ``YYYY-Www`` (default: current)

    Returns:
        Summary dict with per-division outcomes
    """
    week_id = week_id or "current"
    logger.info("weekly_rink_reports_started", week_id=week_id)

    outcomes = _builder().generate_all(week_id)
    succeeded = sum(1 for o in outcomes if o["success"])

    logger.info(
        "weekly_rink_reports_completed",
        week_id=week_id,
        succeeded=succeeded,
        failed=len(outcomes) - succeeded,
    )
    return {
        "week_id": week_id,
        "succeeded": succeeded,
        "failed": len(outcomes) - succeeded,
        "divisions": outcomes,
    }


@shared_task(name="generate_division_rink_report")
def generate_division_rink_report(division: str, week_id: str | None = None) -> dict:
    """Rebuild one division's report on demand."""
    week_id = week_id or "current"
    report = _builder().generate(division, week_id)
    return {
        "report_id": report.report_id,
        "division": division,
        "week_id": week_id,
        "highlights": len(report.highlights),
    }
