"""
Leaderboard: students ranked by cached total_xp.

Reads the aggregates written by services/progress.py; never recomputes.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from ramadan_tracker.models.user import User

STUDENT_ROLES = ("siswa", "user")
LEADERBOARD_LIMIT = 50


def get_leaderboard(
    db: Session,
    scope: str = "school",
    classroom: Optional[str] = None,
    limit: int = LEADERBOARD_LIMIT,
) -> list[User]:
    q = db.query(User).filter(User.role.in_(STUDENT_ROLES))
    if scope == "classroom" and classroom:
        q = q.filter(User.classroom == classroom)
    return (
        q.order_by(User.total_xp.desc(), User.current_streak.desc(), User.id)
        .limit(limit)
        .all()
    )
