"""
Contexte et résultat communs aux parseurs de mise en page.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..errors import EmptyResultError, ParseError, ScheduleError
from ..locations import ZONE_IDS, DutyLocation
from ..models import DutyRecord, ZoneDutyRecord
from ..scanner import ColumnScanner

log = logging.getLogger(__name__)


@dataclass
class ParseContext:
    """Ce dont un parseur a besoin en plus des pages."""
    location: DutyLocation
    scanner: ColumnScanner
    now: dt.datetime
    pdf_url: Optional[str] = None
    issues: List[ScheduleError] = field(default_factory=list)

    def report(self, error: ParseError) -> None:
        """Défaut local : consigné, la ligne / la page est ignorée."""
        log.debug("[%s] %s", self.location.id, error)
        self.issues.append(error)

    def skip_page(self, number: int, reason: str = "aucune ligne exploitable") -> None:
        log.info("[%s] Page %s ignorée : %s", self.location.id, number, reason)


@dataclass
class ParseResult:
    location: DutyLocation
    records: List[DutyRecord] = field(default_factory=list)
    zone_records: List[ZoneDutyRecord] = field(default_factory=list)
    issues: List[ScheduleError] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.records and not self.zone_records

    def raise_for_empty(self) -> None:
        if self.is_empty:
            raise EmptyResultError(self.location.id)

    def errors_of(self, kind: type) -> List[ScheduleError]:
        return [e for e in self.issues if isinstance(e, kind)]

    def by_location(self) -> List[Tuple[DutyLocation, List[DutyRecord]]]:
        """La région, puis chaque ZBS dans l'ordre du catalogue."""
        out = [(self.location, list(self.records))]
        if self.zone_records:
            for zone_id in ZONE_IDS:
                out.append((
                    DutyLocation.from_id(zone_id),
                    [r.for_zone(zone_id) for r in self.zone_records],
                ))
        return out
