"""
Eligibility Gate: filters a day's selected mission codes before scoring.

Public API
----------
gate(today, selected_codes, history, catalog, config, ...) -> GateResult

Rules
-----
Each rule answers "is this code allowed today?" with either None (allowed)
or a human-readable reason. Rules run in order; the first reason wins and
the code is dropped from the effective selection. Default rules:

  1. SeasonalWindowRule: the festival prayer only counts on the festival
     day (configured dates, else 1 Syawal via services/calendar.py).
  2. OneTimeRule: a one-time code counts at most once across the
     user's whole history; another report date already holding it in its
     effective selection blocks today.

Codes missing from the active catalog are dropped before the rules run.
Sub-reports listed in `config.sub_report_links` add their code implicitly.

Gating is re-run on every submission, including resubmissions of the same
day, so a window that closed or a code claimed elsewhere is always honoured.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol, Sequence

from ramadan_tracker.core.config import EngineConfig
from ramadan_tracker.services.calendar import is_festival_day
from ramadan_tracker.services.catalog import MissionCatalog

logger = logging.getLogger(__name__)

REASON_INACTIVE = "not an active mission"
REASON_FESTIVAL_ONLY = "only active on festival day"
REASON_ONCE_ONLY = "can only be counted once"


# ---------------------------------------------------------------------------
# Result / input types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IneligibleSelection:
    """Advisory record for a code that was selected but not honoured."""
    code: str
    reason: str

    def to_dict(self) -> dict:
        return {"code": self.code, "reason": self.reason}


@dataclass
class GateResult:
    effective_codes: list[str]
    rejections: list[IneligibleSelection] = field(default_factory=list)


@dataclass(frozen=True)
class ReportSnapshot:
    """The part of a stored report the gate cares about."""
    report_date: date
    selected_codes: frozenset[str]


@dataclass
class GateContext:
    today: date
    history: Sequence[ReportSnapshot]
    config: EngineConfig
    festival_check: Callable[[date], bool]


class GateRule(Protocol):
    def check(self, code: str, ctx: GateContext) -> Optional[str]: ...


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

class SeasonalWindowRule:
    def __init__(self, code: str, reason: str = REASON_FESTIVAL_ONLY):
        self.code = code
        self.reason = reason

    def in_window(self, ctx: GateContext) -> bool:
        if ctx.config.festival_dates:
            return ctx.today in ctx.config.festival_dates
        return ctx.festival_check(ctx.today)

    def check(self, code: str, ctx: GateContext) -> Optional[str]:
        if code != self.code:
            return None
        return None if self.in_window(ctx) else self.reason


class OneTimeRule:
    def __init__(self, codes: Iterable[str], reason: str = REASON_ONCE_ONLY):
        self.codes = frozenset(codes)
        self.reason = reason

    def check(self, code: str, ctx: GateContext) -> Optional[str]:
        if code not in self.codes:
            return None
        for report in ctx.history:
            if report.report_date != ctx.today and code in report.selected_codes:
                return self.reason
        return None


def default_rules(config: EngineConfig) -> list[GateRule]:
    return [
        SeasonalWindowRule(config.festival_code),
        OneTimeRule(config.one_time_codes),
    ]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def linked_codes(sub_reports: Mapping[str, Any], config: EngineConfig) -> list[str]:
    """Codes implied by the presence of a sub-report (e.g. kultum summary)."""
    return [
        code
        for report_key, code in config.sub_report_links.items()
        if sub_reports.get(report_key)
    ]


def _dedupe(codes: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for code in codes:
        if code not in seen:
            seen.add(code)
            out.append(code)
    return out


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def gate(
    today: date,
    selected_codes: Iterable[str],
    history: Sequence[ReportSnapshot],
    catalog: MissionCatalog,
    config: EngineConfig,
    sub_reports: Optional[Mapping[str, Any]] = None,
    rules: Optional[Sequence[GateRule]] = None,
    festival_check: Callable[[date], bool] = is_festival_day,
) -> GateResult:
    """
    Return the effective selection for `today` (the report's calendar date)
    plus one IneligibleSelection per dropped code. Input order is kept;
    duplicates collapse; linked codes are appended.
    """
    candidates = _dedupe([
        *selected_codes,
        *linked_codes(sub_reports or {}, config),
    ])
    ctx = GateContext(
        today=today,
        history=history,
        config=config,
        festival_check=festival_check,
    )
    active_rules = rules if rules is not None else default_rules(config)

    result = GateResult(effective_codes=[])
    for code in candidates:
        reason: Optional[str] = None
        if code not in catalog:
            reason = REASON_INACTIVE
        else:
            for rule in active_rules:
                reason = rule.check(code, ctx)
                if reason:
                    break
        if reason:
            result.rejections.append(IneligibleSelection(code=code, reason=reason))
        else:
            result.effective_codes.append(code)

    if result.rejections:
        logger.info(
            "Gated out %d code(s) for %s: %s",
            len(result.rejections),
            today,
            ", ".join(f"{r.code} ({r.reason})" for r in result.rejections),
        )
    return result
