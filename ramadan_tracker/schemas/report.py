"""
Daily report request / response schemas.

POST /users/{user_id}/reports  → ReportSubmission → SubmissionResponse

Shape rules live here (lengths, ranges, verse order); anything that needs
the database (catalog narration flags, reference videos) is checked by
services/reports.py.
"""
from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PrayerMode = Literal["Berjamaah", "Munfarid"]


# ---------------------------------------------------------------------------
# Sub-reports
# ---------------------------------------------------------------------------

class PrayerReports(BaseModel):
    """Attendance mode per daily prayer. Omitted prayers score nothing."""
    model_config = ConfigDict(extra="forbid")

    Subuh: Optional[PrayerMode] = None
    Dzuhur: Optional[PrayerMode] = None
    Ashar: Optional[PrayerMode] = None
    Maghrib: Optional[PrayerMode] = None
    Isya: Optional[PrayerMode] = None


class PrayerReportTimestamps(BaseModel):
    model_config = ConfigDict(extra="forbid")

    Subuh: Optional[str] = None
    Dzuhur: Optional[str] = None
    Ashar: Optional[str] = None
    Maghrib: Optional[str] = None
    Isya: Optional[str] = None


class TadarusReport(BaseModel):
    """Scripture reading: one surah range plus the verse count actually read."""
    surah_name: Annotated[str, Field(min_length=1, max_length=140)]
    ayat_from: Annotated[int, Field(ge=1, le=1000)]
    ayat_to: Annotated[int, Field(ge=1, le=1000)]
    total_ayat_read: Annotated[int, Field(ge=1, le=1000)]

    @field_validator("surah_name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_range(self) -> "TadarusReport":
        if self.ayat_to < self.ayat_from:
            raise ValueError("ayat_to must not be smaller than ayat_from")
        return self


class IdulfitriReport(BaseModel):
    place: Annotated[str, Field(max_length=180)]
    khatib: Annotated[str, Field(max_length=140)]
    khutbah_summary: Annotated[str, Field(max_length=1000)]


class ZakatFitrah(BaseModel):
    via: Annotated[str, Field(max_length=120)]
    address: Annotated[str, Field(max_length=220)]
    date: Annotated[str, Field(max_length=30)]
    form: Literal["Beras", "Uang"]
    amount: Annotated[str, Field(max_length=120)]


class SilaturahimEntry(BaseModel):
    """Visit to a teacher / relative. The photo lives in external storage."""
    teacher_name: Annotated[str, Field(min_length=1, max_length=160)]
    location: Annotated[str, Field(min_length=1, max_length=220)]
    recorded_at: Annotated[str, Field(min_length=1, max_length=40)]
    purpose: Optional[Annotated[str, Field(max_length=500)]] = None
    lesson_summary: Optional[Annotated[str, Field(max_length=800)]] = None
    proof_photo_url: Optional[Annotated[str, Field(max_length=1200)]] = None
    proof_photo_object_key: Optional[Annotated[str, Field(max_length=600)]] = None

    @field_validator("teacher_name", "location", "recorded_at", mode="before")
    @classmethod
    def strip_required(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class KultumReport(BaseModel):
    """Short-talk summary tied to one of the ustadz reference videos."""
    teacher_video_id: Annotated[int, Field(gt=0)]
    ringkasan: Annotated[str, Field(min_length=120, max_length=2000)]
    poin_pelajaran: Annotated[
        list[Annotated[str, Field(min_length=3, max_length=240)]],
        Field(min_length=1, max_length=3),
    ]

    @field_validator("ringkasan", mode="before")
    @classmethod
    def strip_summary(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("poin_pelajaran", mode="before")
    @classmethod
    def strip_points(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [p.strip() if isinstance(p, str) else p for p in v]
        return v


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------

class ReportSubmission(BaseModel):
    """Raw daily submission as sent by the checklist UI."""

    selected_codes: list[str] = Field(
        default_factory=list,
        description="Mission codes ticked by the user (pre-gate).",
        examples=[["CATATAN_PUASA_DAN_JAMAAH", "SHALAT_TARAWIH"]],
    )
    fasting: bool = Field(description="Whether the user fasted today.")
    narration: Optional[Annotated[str, Field(max_length=400)]] = Field(
        default=None,
        description="Free-text reflection; required by missions flagged requires_narration.",
    )
    sunnah_boost: Annotated[int, Field(ge=0, le=100)] = 0
    prayer_reports: PrayerReports = Field(default_factory=PrayerReports)
    checklist_timestamps: dict[str, str] = Field(
        default_factory=dict,
        description="code → ISO timestamp when the checkbox was ticked.",
    )
    prayer_report_timestamps: PrayerReportTimestamps = Field(
        default_factory=PrayerReportTimestamps
    )
    murajaah_xp_bonus: Annotated[int, Field(ge=0, le=500)] = 0
    tadarus_report: Optional[TadarusReport] = None
    idulfitri_report: Optional[IdulfitriReport] = None
    zakat_fitrah: Optional[ZakatFitrah] = None
    silaturahim_report: Optional[SilaturahimEntry] = None
    silaturahim_history: Optional[list[SilaturahimEntry]] = None
    kultum_report: Optional[KultumReport] = None

    @field_validator("selected_codes")
    @classmethod
    def strip_codes(cls, v: list[str]) -> list[str]:
        return [c.strip() for c in v if c and c.strip()]


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class RejectionOut(BaseModel):
    code: str
    reason: str


class XpBreakdownOut(BaseModel):
    total: int
    perfect_day_bonus: int
    base_missions: int
    prayer: int
    scripture: int
    boost: int
    memorization: int
    per_code: dict[str, int] = Field(default_factory=dict)


class ProgressOut(BaseModel):
    user_id: str
    total_xp: int
    current_streak: int
    level: int
    next_level_xp: int
    last_report_date: Optional[date] = None


class SubmissionResponse(BaseModel):
    report_date: date
    xp_gained: int
    breakdown: XpBreakdownOut
    rejections: list[RejectionOut]
    progress: ProgressOut


class DailyReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    report_date: date
    answers: dict[str, Any]
    narration: Optional[str] = None
    xp_gained: int
    bonus_xp: int
    breakdown: Optional[dict[str, Any]] = None


class TodayReportResponse(BaseModel):
    report_date: date
    report: Optional[DailyReportOut] = None


class ReportHistoryResponse(BaseModel):
    month: str
    reports: list[DailyReportOut]
