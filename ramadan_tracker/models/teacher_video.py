from datetime import datetime
from sqlalchemy import Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from ramadan_tracker.db.base import Base


class TeacherVideo(Base):
    """Reference video a kultum (short talk) summary must point at."""

    __tablename__ = "teacher_videos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    youtube_url: Mapped[str] = mapped_column(String(512), nullable=False, unique=True)
    video_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    ustadz: Mapped[str | None] = mapped_column(String(128), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
