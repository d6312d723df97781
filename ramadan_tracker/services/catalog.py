"""
Mission catalog provider.

load_catalog(db, config)  -> MissionCatalog   (active missions only)
verify_catalog(catalog, config)               (raises ConfigurationError)

The engine reads the catalog; it never writes it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ramadan_tracker.core.config import EngineConfig
from ramadan_tracker.core.errors import ConfigurationError
from ramadan_tracker.models.mission import Mission

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MissionEntry:
    code: str
    title: str
    category: str
    xp: int
    requires_narration: bool = False


class MissionCatalog:
    """Immutable code -> MissionEntry lookup."""

    def __init__(self, entries: list[MissionEntry]):
        self._by_code = {e.code: e for e in entries}

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def __len__(self) -> int:
        return len(self._by_code)

    def get(self, code: str) -> MissionEntry | None:
        return self._by_code.get(code)

    def base_xp(self, code: str) -> int:
        entry = self._by_code.get(code)
        return entry.xp if entry else 0

    @property
    def codes(self) -> set[str]:
        return set(self._by_code)


def verify_catalog(catalog: MissionCatalog, config: EngineConfig) -> None:
    missing = config.required_codes - catalog.codes
    if missing:
        logger.error("Mission catalog missing required codes: %s", sorted(missing))
        raise ConfigurationError(missing)


def load_catalog(db: Session, config: EngineConfig) -> MissionCatalog:
    rows = (
        db.query(Mission)
        .filter(Mission.active == True)  # noqa
        .order_by(Mission.category, Mission.id)
        .all()
    )
    catalog = MissionCatalog([
        MissionEntry(
            code=m.code,
            title=m.title,
            category=m.category,
            xp=m.xp,
            requires_narration=m.requires_narration,
        )
        for m in rows
    ])
    verify_catalog(catalog, config)
    return catalog
