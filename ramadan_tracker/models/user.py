"""
User: identity is owned by the external auth layer; this table only
caches the derived progress aggregates.

total_xp / current_streak / last_report_date are written exclusively by
services/progress.py. `progress_version` is the optimistic-lock counter:
a concurrent writer that bumped it first makes our flush fail with
StaleDataError.
"""
from datetime import datetime, date
from sqlalchemy import Integer, String, DateTime, Date, func
from sqlalchemy.orm import Mapped, mapped_column

from ramadan_tracker.db.base import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    classroom: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="siswa")

    total_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_report_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    progress_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": progress_version}
