"""
Progress and badges router.

GET  /users/{user_id}/progress  — cached aggregates + level
GET  /users/{user_id}/badges    — badges from a server-assembled snapshot
POST /badges/evaluate           — badges from a caller-supplied snapshot
"""
from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ramadan_tracker.core.config import EngineConfig, get_engine_config
from ramadan_tracker.db.base import get_db
from ramadan_tracker.schemas.common import ErrorResponse
from ramadan_tracker.schemas.progress import BadgeListResponse, BadgeOut, BadgeStatsIn
from ramadan_tracker.schemas.report import ProgressOut
from ramadan_tracker.services.badges import BadgeSourceStats, build_badges, collect_badge_stats
from ramadan_tracker.services.progress import get_user, get_user_progress

router = APIRouter(tags=["progress"])


def _badge_response(stats: BadgeSourceStats) -> BadgeListResponse:
    views = build_badges(stats)
    return BadgeListResponse(
        unlocked=sum(1 for v in views if v.unlocked),
        total=len(views),
        stats=BadgeStatsIn(**asdict(stats)),
        badges=[BadgeOut(**v.to_dict()) for v in views],
    )


@router.get(
    "/users/{user_id}/progress",
    response_model=ProgressOut,
    summary="Lifetime XP, streak and level",
    responses={404: {"model": ErrorResponse, "description": "Unknown user."}},
)
def user_progress(user_id: str, db: Session = Depends(get_db)):
    """Level = floor(total_xp / 100) + 1."""
    return ProgressOut(**vars(get_user_progress(db, user_id)))


@router.get(
    "/users/{user_id}/badges",
    response_model=BadgeListResponse,
    summary="Badge progress for a user",
    responses={404: {"model": ErrorResponse, "description": "Unknown user."}},
)
def user_badges(
    user_id: str,
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config),
):
    """
    Builds the stats snapshot from the user's history and the school /
    classroom XP rankings, then derives every badge fresh.
    """
    user = get_user(db, user_id)
    return _badge_response(collect_badge_stats(db, user, config))


@router.post(
    "/badges/evaluate",
    response_model=BadgeListResponse,
    summary="Derive badges from a snapshot",
)
def evaluate_badges(payload: BadgeStatsIn):
    """Pure evaluation; nothing is read or stored."""
    return _badge_response(BadgeSourceStats(**payload.model_dump()))
