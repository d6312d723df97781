"""
Daily report router.

POST /users/{user_id}/reports          — submit (upsert) a day's report
GET  /users/{user_id}/reports/today    — today's stored report, if any
GET  /users/{user_id}/reports?month=   — one month of history, newest first
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ramadan_tracker.core.config import EngineConfig, get_engine_config
from ramadan_tracker.db.base import get_db
from ramadan_tracker.models.daily_report import DailyReport
from ramadan_tracker.schemas.common import ErrorResponse, ValidationErrorResponse
from ramadan_tracker.schemas.report import (
    DailyReportOut,
    ProgressOut,
    RejectionOut,
    ReportHistoryResponse,
    ReportSubmission,
    SubmissionResponse,
    TodayReportResponse,
    XpBreakdownOut,
)
from ramadan_tracker.services.calendar import today_in_timezone
from ramadan_tracker.services.progress import get_user
from ramadan_tracker.services.reports import (
    get_report,
    list_reports_for_month,
    submit_daily_report,
)

router = APIRouter(prefix="/users/{user_id}/reports", tags=["reports"])


def _report_to_response(report: DailyReport) -> DailyReportOut:
    return DailyReportOut.model_validate(report)


@router.post(
    "",
    response_model=SubmissionResponse,
    summary="Submit the daily report",
    responses={
        200: {"description": "Report stored; XP and progress recomputed."},
        404: {"model": ErrorResponse, "description": "Unknown user."},
        409: {"model": ErrorResponse, "description": "Concurrent submission for the same user; retry."},
        422: {"model": ErrorResponse, "description": "Malformed or semantically invalid report."},
        500: {"model": ErrorResponse, "description": "Mission catalog is misconfigured."},
    },
)
def submit_report(
    user_id: str,
    payload: ReportSubmission,
    report_date: Optional[date] = Query(
        default=None,
        description="Calendar day being reported. Defaults to today in the reporting timezone.",
        examples=["2026-03-01"],
    ),
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config),
):
    """
    Upsert the report for `(user_id, report_date)`:

    - selections that are not eligible today are dropped and listed in
      `rejections` (the rest of the report is still stored);
    - XP is computed from the effective selection only;
    - lifetime XP and the fasting streak are recomputed from full history.

    Resubmitting the same day overwrites the stored report.
    """
    today = today_in_timezone(config.report_timezone)
    result = submit_daily_report(
        db=db,
        user_id=user_id,
        report_date=report_date or today,
        submission=payload,
        config=config,
        today=today,
    )
    return SubmissionResponse(
        report_date=result.report_date,
        xp_gained=result.xp_gained,
        breakdown=XpBreakdownOut(**result.breakdown.to_dict()),
        rejections=[RejectionOut(**r.to_dict()) for r in result.rejections],
        progress=ProgressOut(**vars(result.progress)),
    )


@router.get(
    "/today",
    response_model=TodayReportResponse,
    summary="Today's report",
    responses={404: {"model": ErrorResponse, "description": "Unknown user."}},
)
def today_report(
    user_id: str,
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config),
):
    """Return today's stored report, or `report: null` when nothing was submitted yet."""
    get_user(db, user_id)
    today = today_in_timezone(config.report_timezone)
    report = get_report(db, user_id, today)
    return TodayReportResponse(
        report_date=today,
        report=_report_to_response(report) if report else None,
    )


@router.get(
    "",
    response_model=ReportHistoryResponse,
    summary="Monthly report history",
    responses={
        404: {"model": ErrorResponse, "description": "Unknown user."},
        422: {"model": ValidationErrorResponse, "description": "month is not YYYY-MM."},
    },
)
def report_history(
    user_id: str,
    month: str = Query(
        pattern=r"^\d{4}-(0[1-9]|1[0-2])$",
        description="Month as YYYY-MM.",
        examples=["2026-03"],
    ),
    db: Session = Depends(get_db),
):
    get_user(db, user_id)
    year, mon = (int(p) for p in month.split("-"))
    reports = list_reports_for_month(db, user_id, year, mon)
    return ReportHistoryResponse(
        month=month,
        reports=[_report_to_response(r) for r in reports],
    )
