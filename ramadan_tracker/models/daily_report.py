"""
DailyReport: one row per (user_id, report_date).

The unique constraint backs the upsert performed by services/reports.py:
resubmitting the same day overwrites the row in place.

answers: JSON payload kept verbatim so every aggregate can be replayed
(effective codes, fasting flag, sub-reports, timestamps, prayer log).
breakdown: XP per source as scored at submission time.
"""
from datetime import datetime, date
from typing import Any

from sqlalchemy import Integer, String, Text, DateTime, Date, ForeignKey, JSON, func, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ramadan_tracker.db.base import Base


class DailyReport(Base):
    __tablename__ = "daily_reports"
    __table_args__ = (
        UniqueConstraint("user_id", "report_date", name="uq_daily_reports_user_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    report_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    answers: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    narration: Mapped[str | None] = mapped_column(Text, nullable=True)
    xp_gained: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bonus_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    breakdown: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def fasting(self) -> bool:
        return bool((self.answers or {}).get("fasting"))

    @property
    def selected_codes(self) -> list[str]:
        codes = (self.answers or {}).get("selected_codes") or []
        return [c for c in codes if isinstance(c, str)]
