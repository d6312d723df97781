"""
Catalog and leaderboard router.

GET /missions      — active missions, ordered by category then id
GET /leaderboard   — top students by total XP (school or classroom scope)
"""
from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ramadan_tracker.db.base import get_db
from ramadan_tracker.models.mission import Mission
from ramadan_tracker.schemas.progress import (
    LeaderboardEntry,
    LeaderboardResponse,
    MissionListResponse,
    MissionOut,
)
from ramadan_tracker.services.leaderboard import get_leaderboard
from ramadan_tracker.services.progress import get_user

router = APIRouter(tags=["catalog"])


@router.get(
    "/missions",
    response_model=MissionListResponse,
    summary="Active mission catalog",
)
def list_missions(db: Session = Depends(get_db)):
    rows = (
        db.query(Mission)
        .filter(Mission.active == True)  # noqa
        .order_by(Mission.category, Mission.id)
        .all()
    )
    return MissionListResponse(missions=[MissionOut.model_validate(m) for m in rows])


@router.get(
    "/leaderboard",
    response_model=LeaderboardResponse,
    summary="XP leaderboard",
)
def leaderboard(
    scope: Literal["school", "classroom"] = Query(default="school"),
    user_id: Optional[str] = Query(
        default=None,
        description="Required for scope=classroom: ranks the user's classroom.",
    ),
    db: Session = Depends(get_db),
):
    """
    Classroom scope falls back to the whole school when the user has no
    classroom on record.
    """
    classroom = None
    if scope == "classroom" and user_id:
        classroom = get_user(db, user_id).classroom
    effective_scope = "classroom" if classroom else "school"
    users = get_leaderboard(db, scope=effective_scope, classroom=classroom)
    return LeaderboardResponse(
        scope=effective_scope,
        ranking=[
            LeaderboardEntry(
                rank=i + 1,
                id=u.id,
                name=u.name,
                classroom=u.classroom,
                total_xp=u.total_xp,
                current_streak=u.current_streak,
            )
            for i, u in enumerate(users)
        ],
    )
