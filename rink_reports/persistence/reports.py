"""Division report storage. One row per (division, week), overwritten on regeneration."""

from __future__ import annotations

from sqlalchemy import select

from ..db import DivisionReportRecord, get_session
from ..logging import logger
from ..models import DivisionReport
from .games import SessionFactory


class SqlReportStore:
    def __init__(self, session_factory: SessionFactory = get_session) -> None:
        self._session_factory = session_factory

    def upsert_report(self, report: DivisionReport) -> None:
        payload = report.model_dump(mode="json")
        with self._session_factory() as session:
            row = session.execute(
                select(DivisionReportRecord).where(
                    DivisionReportRecord.division == report.division,
                    DivisionReportRecord.week_id == report.week_id,
                )
            ).scalar_one_or_none()
            created = row is None
            if row is None:
                row = DivisionReportRecord(division=report.division, week_id=report.week_id)
                session.add(row)
            row.report_ref = report.report_id
            row.published_at = report.published_at
            row.payload = payload
        logger.info(
            "division_report_upserted",
            report_id=report.report_id,
            division=report.division,
            week_id=report.week_id,
            created=created,
        )

    def get_report(self, division: str, week_id: str) -> DivisionReport | None:
        with self._session_factory() as session:
            payload = session.execute(
                select(DivisionReportRecord.payload).where(
                    DivisionReportRecord.division == division,
                    DivisionReportRecord.week_id == week_id,
                )
            ).scalar_one_or_none()
        if payload is None:
            return None
        return DivisionReport.model_validate(payload)
