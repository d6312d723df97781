"""
Progress Recomputation: lifetime XP and fasting streak, rebuilt from the
complete report history on every submission.

Public API
----------
compute_streak(reports, today)             -> int           (pure)
compute_level(total_xp)                    -> LevelInfo     (pure)
recompute_user_progress(db, user_id, today) -> UserProgress (flush, no commit)
get_user_progress(db, user_id)             -> UserProgress  (read cached aggregates)

Streak walk
-----------
Reports are visited newest first with a cursor starting at `today`:
  report on the cursor day, fasting      -> streak += 1, cursor -= 1 day
  report on the cursor day, not fasting  -> stop
  report older than the cursor (gap)     -> stop
  report newer than the cursor           -> skip (future-dated artifact)

Nothing else may write users.total_xp / current_streak / last_report_date.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Protocol

from sqlalchemy.orm import Session

from ramadan_tracker.core.errors import UserNotFoundError
from ramadan_tracker.models.daily_report import DailyReport
from ramadan_tracker.models.user import User

logger = logging.getLogger(__name__)

XP_PER_LEVEL = 100


class _StreakReport(Protocol):
    report_date: date

    @property
    def fasting(self) -> bool: ...


@dataclass
class LevelInfo:
    level: int
    next_level_xp: int


@dataclass
class UserProgress:
    user_id: str
    total_xp: int
    current_streak: int
    level: int
    next_level_xp: int
    last_report_date: Optional[date] = None


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def compute_level(total_xp: int) -> LevelInfo:
    level = max(1, total_xp // XP_PER_LEVEL + 1)
    return LevelInfo(level=level, next_level_xp=level * XP_PER_LEVEL)


def compute_streak(reports: Iterable[_StreakReport], today: date) -> int:
    """`reports` may come in any order; they are walked newest first."""
    ordered = sorted(reports, key=lambda r: r.report_date, reverse=True)
    streak = 0
    cursor = today
    for report in ordered:
        if report.report_date != cursor:
            if report.report_date < cursor:
                break
            continue
        if not report.fasting:
            break
        streak += 1
        cursor = cursor - timedelta(days=1)
    return streak


def _to_progress(user: User) -> UserProgress:
    info = compute_level(user.total_xp)
    return UserProgress(
        user_id=user.id,
        total_xp=user.total_xp,
        current_streak=user.current_streak,
        level=info.level,
        next_level_xp=info.next_level_xp,
        last_report_date=user.last_report_date,
    )


# ---------------------------------------------------------------------------
# Public: DB backed
# ---------------------------------------------------------------------------

def get_user(db: Session, user_id: str, for_update: bool = False) -> User:
    q = db.query(User).filter(User.id == user_id)
    if for_update:
        q = q.with_for_update()
    user = q.first()
    if user is None:
        raise UserNotFoundError(user_id)
    return user


def recompute_user_progress(db: Session, user_id: str, today: date) -> UserProgress:
    """
    Re-derive and stage (flush) the user's aggregates from every report.
    total_xp, current_streak and last_report_date are assigned together so
    they land in the same UPDATE; the caller commits or rolls back.
    """
    user = get_user(db, user_id)
    reports = (
        db.query(DailyReport)
        .filter(DailyReport.user_id == user_id)
        .order_by(DailyReport.report_date.desc())
        .all()
    )

    total_xp = sum(r.xp_gained for r in reports)
    streak = compute_streak(reports, today)

    user.total_xp = total_xp
    user.current_streak = streak
    user.last_report_date = reports[0].report_date if reports else None
    db.flush()

    logger.debug(
        "Recomputed progress for %s: total_xp=%d streak=%d reports=%d",
        user_id, total_xp, streak, len(reports),
    )
    return _to_progress(user)


def get_user_progress(db: Session, user_id: str) -> UserProgress:
    return _to_progress(get_user(db, user_id))
