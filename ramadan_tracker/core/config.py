from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://ramadan:ramadan@db:5432/ramadan"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Comma-separated allowed origins, or "*" to allow all.
    CORS_ORIGINS: str = "*"

    # Calendar day boundaries for reports are taken in this zone.
    REPORT_TIMEZONE: str = "Asia/Jakarta"

    # Comma-separated ISO dates on which the festival prayer counts.
    # Empty means "1 Syawal according to the Hijri calendar".
    IDULFITRI_DATES: str = ""

    CATALOG_CHECK_ON_STARTUP: bool = True

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def idulfitri_dates_list(self) -> list[date]:
        return [
            date.fromisoformat(d.strip())
            for d in self.IDULFITRI_DATES.split(",")
            if d.strip()
        ]


settings = Settings()


# ---------------------------------------------------------------------------
# Engine configuration (scoring + gating constants)
# ---------------------------------------------------------------------------

PRAYER_KEYS = ("Subuh", "Dzuhur", "Ashar", "Maghrib", "Isya")


@dataclass(frozen=True)
class EngineConfig:
    """Constants consumed by the gate, the XP calculator and the orchestrator.

    Built once from `Settings` and passed explicitly to every component so
    tests can swap any value without touching the environment.
    """
    primary_codes: tuple[str, ...] = (
        "HAFALAN_SURAT_PENDEK",
        "CATATAN_PUASA_DAN_JAMAAH",
        "TADARUS_RAMADAN",
    )
    perfect_day_bonus: int = 20

    festival_code: str = "SHALAT_IDULFITRI"
    festival_dates: tuple[date, ...] = ()
    one_time_codes: tuple[str, ...] = ("SHALAT_IDULFITRI",)

    # Codes whose catalog value is ignored in favour of a flat score.
    flat_scores: dict[str, int] = field(default_factory=lambda: {
        "SILATURAHIM": 20,
        "SILATURRAHIM_RAMADAN": 20,
        "REFLEKSI_DIRI": 15,
    })
    per_verse_code: str = "TADARUS_RAMADAN"
    xp_per_verse: int = 1
    max_verses: int = 5000

    prayer_xp_by_mode: dict[str, int] = field(default_factory=lambda: {
        "Berjamaah": 27,
        "Munfarid": 20,
    })
    sunnah_boost_cap: int = 100
    murajaah_bonus_cap: int = 500
    high_sunnah_threshold: int = 50

    # Sub-report field name -> catalog code it implies.
    sub_report_links: dict[str, str] = field(default_factory=lambda: {
        "kultum_report": "KULTUM_CERAMAH",
    })

    report_timezone: str = "Asia/Jakarta"

    @classmethod
    def from_settings(cls, s: Settings) -> "EngineConfig":
        return cls(
            festival_dates=tuple(s.idulfitri_dates_list),
            report_timezone=s.REPORT_TIMEZONE,
        )

    @property
    def required_codes(self) -> set[str]:
        """Every code the engine refers to by name; all must be in the catalog."""
        return (
            set(self.primary_codes)
            | set(self.flat_scores)
            | {self.per_verse_code, self.festival_code}
            | set(self.one_time_codes)
            | set(self.sub_report_links.values())
        )


engine_config = EngineConfig.from_settings(settings)


def get_engine_config() -> EngineConfig:
    """FastAPI dependency; overridden in tests."""
    return engine_config
