"""
Calendar helpers.

is_festival_day(day)        -> bool   1 Syawal (10th Hijri month) check
today_in_timezone(tz_name)  -> date   report date in the reporting zone

The Hijri conversion uses the Umm al-Qura tables shipped by hijri-converter.
Kept behind one small function so tests and deployments that announce the
festival date by decree (IDULFITRI_DATES) can bypass it entirely.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from hijri_converter import Gregorian

SYAWAL = 10


def is_festival_day(day: date) -> bool:
    try:
        hijri = Gregorian(day.year, day.month, day.day).to_hijri()
    except OverflowError:
        # Outside the supported Umm al-Qura range.
        return False
    return hijri.month == SYAWAL and hijri.day == 1


def today_in_timezone(tz_name: str) -> date:
    return datetime.now(tz=ZoneInfo(tz_name)).date()


def utc_now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()
