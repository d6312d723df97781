"""
XP Calculator: pure, stateless scoring of one day.

score(effective_codes, sub_reports, fasting, prayer_log, catalog, config,
      sunnah_boost=0, murajaah_xp_bonus=0) -> XpBreakdown

Sources (summed independently)
------------------------------
  base_missions  catalog xp per effective code, except:
                   flat-score codes (visit x2, reflection) -> fixed value
                   per-verse code (tadarus) -> scripture points instead
  scripture      total_ayat_read x xp_per_verse (0 when no tadarus report)
  bonus          perfect day: fasting AND every primary code effective
  prayer         per prayer: congregation / individual fixed value
  boost          self-reported sunnah boost, clamped to [0, cap]
  memorization   externally tracked murajaah bonus, clamped to [0, cap]

Inputs must already be gated and merged; this module does no I/O.
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Iterable, Mapping, Optional

from ramadan_tracker.core.config import EngineConfig, PRAYER_KEYS
from ramadan_tracker.services.catalog import MissionCatalog


@dataclass
class XpBreakdown:
    total: int
    perfect_day_bonus: int
    base_missions: int
    prayer: int
    scripture: int
    boost: int
    memorization: int
    per_code: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _clamp_int(value: Any, low: int, high: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return low
    return max(low, min(high, value))


def scripture_xp(tadarus_report: Optional[Mapping[str, Any]], config: EngineConfig) -> int:
    if not tadarus_report:
        return 0
    verses = _clamp_int(tadarus_report.get("total_ayat_read"), 0, config.max_verses)
    return verses * config.xp_per_verse


def prayer_xp(prayer_log: Optional[Mapping[str, str]], config: EngineConfig) -> int:
    log = prayer_log or {}
    return sum(config.prayer_xp_by_mode.get(log.get(key) or "", 0) for key in PRAYER_KEYS)


def is_perfect_day(fasting: bool, effective_codes: Iterable[str], config: EngineConfig) -> bool:
    chosen = set(effective_codes)
    return bool(fasting) and all(code in chosen for code in config.primary_codes)


def score(
    effective_codes: Iterable[str],
    sub_reports: Mapping[str, Any],
    fasting: bool,
    prayer_log: Optional[Mapping[str, str]],
    catalog: MissionCatalog,
    config: EngineConfig,
    sunnah_boost: int = 0,
    murajaah_xp_bonus: int = 0,
) -> XpBreakdown:
    codes = [code for code in dict.fromkeys(effective_codes) if code in catalog]

    per_code: dict[str, int] = {}
    for code in codes:
        if code in config.flat_scores:
            per_code[code] = config.flat_scores[code]
        elif code == config.per_verse_code:
            per_code[code] = scripture_xp(sub_reports.get("tadarus_report"), config)
        else:
            per_code[code] = catalog.base_xp(code)

    scripture = per_code.get(config.per_verse_code, 0)
    base = sum(per_code.values()) - scripture
    bonus = config.perfect_day_bonus if is_perfect_day(fasting, codes, config) else 0
    prayer = prayer_xp(prayer_log, config)
    boost = _clamp_int(sunnah_boost, 0, config.sunnah_boost_cap)
    memorization = _clamp_int(murajaah_xp_bonus, 0, config.murajaah_bonus_cap)

    return XpBreakdown(
        total=base + scripture + bonus + prayer + boost + memorization,
        perfect_day_bonus=bonus,
        base_missions=base,
        prayer=prayer,
        scripture=scripture,
        boost=boost,
        memorization=memorization,
        per_code=per_code,
    )
