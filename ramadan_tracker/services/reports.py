"""
Report service: the daily submission pipeline and report queries.

Public API
----------
submit_daily_report(db, user_id, report_date, submission, config, …) -> SubmissionResult
get_report(db, user_id, report_date)                                 -> DailyReport | None
list_reports_for_month(db, user_id, year, month)                     -> list[DailyReport]

Pipeline (one transaction, one commit)
--------------------------------------
  0. report_date after today         ReportValidationError
  1. load + verify catalog           ConfigurationError
  2. semantic validation             ReportValidationError (nothing stored)
  3. lock the user row               SELECT … FOR UPDATE
  4. read full history, gate         IneligibleSelection advisories
  5. merge with the stored row       prayer log, timestamps, visit history,
                                     kultum submitted_at
  6. score                           services/xp_calculator.py
  7. upsert (user_id, report_date)   overwrite, never duplicate
  8. recompute aggregates            services/progress.py
  9. commit                          IntegrityError / StaleDataError -> ConflictError
"""
from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ramadan_tracker.core.config import EngineConfig
from ramadan_tracker.core.errors import (
    ConflictError,
    InvalidKultumVideoError,
    ReportValidationError,
)
from ramadan_tracker.models.daily_report import DailyReport
from ramadan_tracker.models.teacher_video import TeacherVideo
from ramadan_tracker.schemas.report import KultumReport, ReportSubmission
from ramadan_tracker.services.calendar import is_festival_day, today_in_timezone, utc_now_iso
from ramadan_tracker.services.catalog import MissionCatalog, load_catalog
from ramadan_tracker.services.eligibility import (
    IneligibleSelection,
    ReportSnapshot,
    gate,
    linked_codes,
)
from ramadan_tracker.services.progress import UserProgress, get_user, recompute_user_progress
from ramadan_tracker.services.xp_calculator import XpBreakdown, score

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass
class SubmissionResult:
    report: DailyReport
    report_date: date
    breakdown: XpBreakdown
    rejections: list[IneligibleSelection]
    progress: UserProgress

    @property
    def xp_gained(self) -> int:
        return self.breakdown.total


# ---------------------------------------------------------------------------
# Validation (before gating)
# ---------------------------------------------------------------------------

def _check_narration(
    submission: ReportSubmission, catalog: MissionCatalog, config: EngineConfig
) -> None:
    """Selected codes plus the codes implied by sub-reports (e.g. kultum)."""
    if (submission.narration or "").strip():
        return
    candidates = dict.fromkeys([
        *submission.selected_codes,
        *linked_codes({"kultum_report": submission.kultum_report}, config),
    ])
    for code in candidates:
        entry = catalog.get(code)
        if entry is not None and entry.requires_narration:
            raise ReportValidationError(
                message=f"Mission {code} requires a narration.",
                field="narration",
            )


def _resolve_kultum(
    db: Session, report: Optional[KultumReport], submitted_at: str
) -> Optional[dict[str, Any]]:
    """Attach the reference video to the summary, or reject the submission."""
    if report is None:
        return None
    video = (
        db.query(TeacherVideo)
        .filter(
            TeacherVideo.id == report.teacher_video_id,
            TeacherVideo.active == True,  # noqa
        )
        .first()
    )
    if video is None:
        raise InvalidKultumVideoError(report.teacher_video_id)
    return {
        "teacher_video_id": video.id,
        "video_id": video.video_id,
        "youtube_url": video.youtube_url,
        "title": video.title,
        "ustadz": video.ustadz,
        "ringkasan": report.ringkasan,
        "poin_pelajaran": [p for p in report.poin_pelajaran if p],
        "submitted_at": submitted_at,
    }


# ---------------------------------------------------------------------------
# Merge helpers (caller-side merge; the store itself only overwrites)
# ---------------------------------------------------------------------------

def _keep_earlier(incoming: dict[str, Any], stored: dict[str, Any]) -> dict[str, Any]:
    """Entries already stored for the day win over a later resubmission."""
    merged = {k: v for k, v in incoming.items() if v}
    merged.update({k: v for k, v in (stored or {}).items() if v})
    return merged


def _keep_kultum_submitted_at(
    kultum: Optional[dict[str, Any]], stored: Optional[dict[str, Any]]
) -> Optional[dict[str, Any]]:
    """An unchanged summary keeps the time it was first submitted."""
    if not kultum or not stored or not stored.get("submitted_at"):
        return kultum
    unchanged = all(
        kultum.get(key) == stored.get(key)
        for key in ("teacher_video_id", "ringkasan", "poin_pelajaran")
    )
    if unchanged:
        return {**kultum, "submitted_at": stored["submitted_at"]}
    return kultum


def _checklist_timestamps(
    codes: list[str],
    incoming: dict[str, str],
    stored: dict[str, str],
    now_iso: str,
) -> dict[str, str]:
    out: dict[str, str] = {}
    for code in codes:
        value = incoming.get(code)
        if isinstance(value, str) and value.strip():
            out[code] = value
        elif stored.get(code):
            out[code] = stored[code]
        else:
            out[code] = now_iso
    return out


def _dump(model) -> Optional[dict[str, Any]]:
    return model.model_dump(mode="json") if model is not None else None


# ---------------------------------------------------------------------------
# Public: submission
# ---------------------------------------------------------------------------

def submit_daily_report(
    db: Session,
    user_id: str,
    report_date: date,
    submission: ReportSubmission,
    config: EngineConfig,
    today: Optional[date] = None,
    festival_check: Callable[[date], bool] = is_festival_day,
) -> SubmissionResult:
    """
    Validate, gate, score and upsert one day's report, then recompute the
    user's aggregates. Commits once; rolls back on any error.
    """
    today = today or today_in_timezone(config.report_timezone)
    if report_date > today:
        raise ReportValidationError(
            message=f"Cannot report {report_date} before it happens (today is {today}).",
            field="report_date",
        )
    now_iso = utc_now_iso()

    catalog = load_catalog(db, config)
    _check_narration(submission, catalog, config)
    kultum = _resolve_kultum(db, submission.kultum_report, now_iso)

    try:
        get_user(db, user_id, for_update=True)
        history = db.query(DailyReport).filter(DailyReport.user_id == user_id).all()
        existing = next((r for r in history if r.report_date == report_date), None)
        stored: dict[str, Any] = dict(existing.answers or {}) if existing else {}
        kultum = _keep_kultum_submitted_at(kultum, stored.get("kultum_report"))

        sub_reports: dict[str, Any] = {
            "tadarus_report": _dump(submission.tadarus_report),
            "idulfitri_report": _dump(submission.idulfitri_report),
            "zakat_fitrah": _dump(submission.zakat_fitrah),
            "silaturahim_report": _dump(submission.silaturahim_report),
            "kultum_report": kultum,
        }

        gated = gate(
            today=report_date,
            selected_codes=submission.selected_codes,
            history=[
                ReportSnapshot(r.report_date, frozenset(r.selected_codes))
                for r in history
            ],
            catalog=catalog,
            config=config,
            sub_reports=sub_reports,
            festival_check=festival_check,
        )

        prayer_reports = _keep_earlier(
            submission.prayer_reports.model_dump(), stored.get("prayer_reports", {})
        )
        prayer_timestamps = _keep_earlier(
            submission.prayer_report_timestamps.model_dump(),
            stored.get("prayer_report_timestamps", {}),
        )

        breakdown = score(
            effective_codes=gated.effective_codes,
            sub_reports=sub_reports,
            fasting=submission.fasting,
            prayer_log=prayer_reports,
            catalog=catalog,
            config=config,
            sunnah_boost=submission.sunnah_boost,
            murajaah_xp_bonus=submission.murajaah_xp_bonus,
        )

        if submission.silaturahim_history is not None:
            visit_history = [_dump(v) for v in submission.silaturahim_history]
        else:
            visit_history = stored.get("silaturahim_history") or []

        answers: dict[str, Any] = {
            "fasting": submission.fasting,
            "selected_codes": gated.effective_codes,
            "sunnah_boost": submission.sunnah_boost,
            "prayer_reports": prayer_reports,
            "prayer_report_timestamps": prayer_timestamps,
            "checklist_timestamps": _checklist_timestamps(
                gated.effective_codes,
                submission.checklist_timestamps,
                stored.get("checklist_timestamps") or {},
                now_iso,
            ),
            "murajaah_xp_bonus": submission.murajaah_xp_bonus,
            **sub_reports,
            "silaturahim_history": visit_history,
            "rejections": [r.to_dict() for r in gated.rejections],
        }
        narration = (submission.narration or "").strip() or None

        if existing is not None:
            report = existing
        else:
            report = DailyReport(user_id=user_id, report_date=report_date)
            db.add(report)
        report.answers = answers
        report.narration = narration
        report.xp_gained = breakdown.total
        report.bonus_xp = breakdown.perfect_day_bonus
        report.breakdown = breakdown.to_dict()
        db.flush()

        progress = recompute_user_progress(db, user_id, today)
        db.commit()
    except (IntegrityError, StaleDataError) as exc:
        db.rollback()
        logger.warning("Conflict while submitting %s for %s: %s", report_date, user_id, exc)
        raise ConflictError(user_id, report_date) from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(report)
    logger.info(
        "Report %s for %s stored: xp=%d bonus=%d rejected=%d total_xp=%d streak=%d",
        report_date, user_id, breakdown.total, breakdown.perfect_day_bonus,
        len(gated.rejections), progress.total_xp, progress.current_streak,
    )
    return SubmissionResult(
        report=report,
        report_date=report_date,
        breakdown=breakdown,
        rejections=gated.rejections,
        progress=progress,
    )


# ---------------------------------------------------------------------------
# Public: queries
# ---------------------------------------------------------------------------

def get_report(db: Session, user_id: str, report_date: date) -> Optional[DailyReport]:
    return (
        db.query(DailyReport)
        .filter(DailyReport.user_id == user_id, DailyReport.report_date == report_date)
        .first()
    )


def list_reports_for_month(db: Session, user_id: str, year: int, month: int) -> list[DailyReport]:
    """Reports in the calendar month, newest first."""
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])
    return (
        db.query(DailyReport)
        .filter(
            DailyReport.user_id == user_id,
            DailyReport.report_date >= first,
            DailyReport.report_date <= last,
        )
        .order_by(DailyReport.report_date.desc())
        .all()
    )
