"""
Badge Deriver.

build_badges(stats)              -> list[BadgeView]     (pure)
collect_badge_stats(db, user, …) -> BadgeSourceStats    (history + rankings)

Definitions are static; nothing here is persisted. The completionist badge
("legenda_ibadah") counts the other unlocked badges, so it is evaluated
after every base badge.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable

from sqlalchemy.orm import Session

from ramadan_tracker.core.config import EngineConfig
from ramadan_tracker.models.daily_report import DailyReport
from ramadan_tracker.models.user import User
from ramadan_tracker.services.leaderboard import STUDENT_ROLES

ACHIEVEMENT = "Achievement"
AWARD = "Award"


@dataclass
class BadgeSourceStats:
    total_xp: int = 0
    current_streak: int = 0
    total_reports: int = 0
    fasting_days: int = 0
    narrated_days: int = 0
    unique_mission_count: int = 0
    perfect_days: int = 0
    high_sunnah_days: int = 0
    school_rank: int = 0
    total_users: int = 0
    class_rank: int = 0
    class_size: int = 0


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    title: str
    subtitle: str
    target: int
    category: str
    icon: str
    value: Callable[[BadgeSourceStats], int]


@dataclass
class BadgeView:
    id: str
    title: str
    subtitle: str
    progress: int
    category: str
    current: int
    target: int
    unlocked: bool
    icon: str

    def to_dict(self) -> dict:
        return asdict(self)


def _top(rank: int, population: int, cutoff: int) -> int:
    return 1 if population > 0 and 0 < rank <= cutoff else 0


BASE_DEFINITIONS: tuple[BadgeDefinition, ...] = (
    BadgeDefinition("bintang_subuh", "Bintang Subuh", "7 laporan ibadah awal",
                    7, ACHIEVEMENT, "SB", lambda s: s.total_reports),
    BadgeDefinition("penjaga_dzuhur", "Penjaga Dzuhur", "10 hari puasa tercatat",
                    10, AWARD, "DZ", lambda s: s.fasting_days),
    BadgeDefinition("ksatria_ashar", "Ksatria Ashar", "Streak 5 hari",
                    5, ACHIEVEMENT, "AS", lambda s: s.current_streak),
    BadgeDefinition("cahaya_maghrib", "Cahaya Maghrib", "20 laporan ibadah",
                    20, AWARD, "MG", lambda s: s.total_reports),
    BadgeDefinition("penutup_isya", "Penutup Isya", "30 laporan ibadah",
                    30, ACHIEVEMENT, "IS", lambda s: s.total_reports),
    BadgeDefinition("raja_streak", "Raja Streak", "Streak 10 hari",
                    10, AWARD, "ST", lambda s: s.current_streak),
    BadgeDefinition("pejuang_ramadhan", "Pejuang Ramadhan", "15 hari puasa tercatat",
                    15, ACHIEVEMENT, "RM", lambda s: s.fasting_days),
    BadgeDefinition("ahli_konsisten", "Ahli Konsisten", "45 laporan ibadah",
                    45, AWARD, "AK", lambda s: s.total_reports),
    BadgeDefinition("sang_reflektor", "Sang Reflektor", "15 catatan refleksi",
                    15, ACHIEVEMENT, "RF", lambda s: s.narrated_days),
    BadgeDefinition("pemburu_xp", "Pemburu XP", "Kumpulkan 500 XP",
                    500, AWARD, "XP", lambda s: s.total_xp),
    BadgeDefinition("penakluk_misi", "Penakluk Misi", "Selesaikan 20 misi unik",
                    20, ACHIEVEMENT, "MS", lambda s: s.unique_mission_count),
    BadgeDefinition("bintang_sunnah", "Bintang Sunnah", "10 hari sunnah boost >= 50",
                    10, AWARD, "SN", lambda s: s.high_sunnah_days),
    BadgeDefinition("penjaga_puasa", "Penjaga Puasa", "25 hari puasa tercatat",
                    25, ACHIEVEMENT, "PS", lambda s: s.fasting_days),
    BadgeDefinition("hari_sempurna", "Hari Sempurna", "8 hari bonus perfect day",
                    8, AWARD, "HS", lambda s: s.perfect_days),
    BadgeDefinition("teladan_kelas", "Teladan Kelas", "Masuk Top 3 kelas",
                    1, ACHIEVEMENT, "TK", lambda s: _top(s.class_rank, s.class_size, 3)),
    BadgeDefinition("teladan_sekolah", "Teladan Sekolah", "Masuk Top 10 sekolah",
                    1, AWARD, "TS", lambda s: _top(s.school_rank, s.total_users, 10)),
    BadgeDefinition("mentor_kebaikan", "Mentor Kebaikan", "Punya 1200 XP",
                    1200, ACHIEVEMENT, "MK", lambda s: s.total_xp),
)

COMPLETIONIST_ID = "legenda_ibadah"


def progress_percent(current: int, target: int) -> int:
    if target <= 0:
        return 100
    ratio = max(Decimal(0), min(Decimal(1), Decimal(current) / Decimal(target)))
    return int((ratio * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _view(defn: BadgeDefinition, current: int) -> BadgeView:
    progress = progress_percent(current, defn.target)
    return BadgeView(
        id=defn.id,
        title=defn.title,
        subtitle=defn.subtitle,
        progress=progress,
        category=defn.category,
        current=current,
        target=defn.target,
        unlocked=progress >= 100,
        icon=defn.icon,
    )


def build_badges(
    stats: BadgeSourceStats,
    definitions: tuple[BadgeDefinition, ...] = BASE_DEFINITIONS,
) -> list[BadgeView]:
    views = [_view(d, d.value(stats)) for d in definitions]

    completionist = BadgeDefinition(
        COMPLETIONIST_ID, "Legenda Ibadah", "Selesaikan semua badge lain",
        len(definitions), AWARD, "LG", lambda s: 0,
    )
    unlocked = sum(1 for v in views if v.unlocked)
    views.append(_view(completionist, unlocked))
    return views


# ---------------------------------------------------------------------------
# Snapshot assembly
# ---------------------------------------------------------------------------

def _rank_of(user_id: str, ranked_ids: list[str]) -> int:
    try:
        return ranked_ids.index(user_id) + 1
    except ValueError:
        return 0


def collect_badge_stats(db: Session, user: User, config: EngineConfig) -> BadgeSourceStats:
    """Assemble the snapshot from the user's reports and the XP rankings."""
    reports = db.query(DailyReport).filter(DailyReport.user_id == user.id).all()

    unique_codes: set[str] = set()
    for r in reports:
        unique_codes.update(r.selected_codes)

    school = [
        row.id
        for row in (
            db.query(User.id)
            .filter(User.role.in_(STUDENT_ROLES))
            .order_by(User.total_xp.desc(), User.id)
            .all()
        )
    ]
    classroom: list[str] = []
    if user.classroom:
        classroom = [
            row.id
            for row in (
                db.query(User.id)
                .filter(User.classroom == user.classroom, User.role.in_(STUDENT_ROLES))
                .order_by(User.total_xp.desc(), User.id)
                .all()
            )
        ]

    return BadgeSourceStats(
        total_xp=user.total_xp,
        current_streak=user.current_streak,
        total_reports=len(reports),
        fasting_days=sum(1 for r in reports if r.fasting),
        narrated_days=sum(1 for r in reports if (r.narration or "").strip()),
        unique_mission_count=len(unique_codes),
        perfect_days=sum(1 for r in reports if (r.bonus_xp or 0) > 0),
        high_sunnah_days=sum(
            1 for r in reports
            if ((r.answers or {}).get("sunnah_boost") or 0) >= config.high_sunnah_threshold
        ),
        school_rank=_rank_of(user.id, school),
        total_users=len(school),
        class_rank=_rank_of(user.id, classroom),
        class_size=len(classroom),
    )
