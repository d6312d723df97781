"""
Progress, badge, mission and leaderboard schemas.

GET  /users/{user_id}/progress  → ProgressOut (schemas/report.py)
GET  /users/{user_id}/badges    → BadgeListResponse
POST /badges/evaluate           → BadgeStatsIn → BadgeListResponse
GET  /missions                  → MissionListResponse
GET  /leaderboard               → LeaderboardResponse
"""
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class BadgeStatsIn(BaseModel):
    """Aggregate snapshot assembled by the caller."""
    total_xp: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0)
    total_reports: int = Field(default=0, ge=0)
    fasting_days: int = Field(default=0, ge=0)
    narrated_days: int = Field(default=0, ge=0)
    unique_mission_count: int = Field(default=0, ge=0)
    perfect_days: int = Field(default=0, ge=0)
    high_sunnah_days: int = Field(default=0, ge=0)
    school_rank: int = Field(default=0, ge=0, description="1-based; 0 when unranked.")
    total_users: int = Field(default=0, ge=0)
    class_rank: int = Field(default=0, ge=0, description="1-based; 0 when unranked.")
    class_size: int = Field(default=0, ge=0)


class BadgeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    subtitle: str
    progress: int = Field(description="0–100")
    category: Literal["Achievement", "Award"]
    current: int
    target: int
    unlocked: bool
    icon: str


class BadgeListResponse(BaseModel):
    unlocked: int
    total: int
    stats: BadgeStatsIn
    badges: list[BadgeOut]


class MissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    title: str
    category: str
    xp: int
    requires_narration: bool


class MissionListResponse(BaseModel):
    missions: list[MissionOut]


class LeaderboardEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int
    id: str
    name: str
    classroom: Optional[str] = None
    total_xp: int
    current_streak: int


class LeaderboardResponse(BaseModel):
    scope: Literal["school", "classroom"]
    ranking: list[LeaderboardEntry]
