"""
Résolution temporelle : quelle garde est active à un instant donné, et
quelle est la suivante.

Fonctions pures sur une liste d'enregistrements triés. L'absence de
résultat (ResolutionMiss) est un None explicite, jamais une exception.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import List, Optional, Sequence

from .models import DutyRecord, Pharmacy
from .temporal import DutyTimeSpan

log = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
WARNING_THRESHOLD = 30
GAP_TOLERANCE = 2


# ─────────────────────────────────────────────────────────────
# STRUCTURES DE DONNÉES
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ActiveShift:
    """Un enregistrement et la plage retenue dans cet enregistrement."""
    record: DutyRecord
    span: DutyTimeSpan

    @property
    def pharmacies(self) -> List[Pharmacy]:
        return self.record.pharmacies_for(self.span) or []

    @property
    def start(self) -> dt.datetime:
        return self.span.start_on(self.record.date)

    @property
    def end(self) -> dt.datetime:
        return self.span.end_on(self.record.date)

    def same_as(self, other: Optional["ActiveShift"]) -> bool:
        return (
            other is not None
            and other.span is self.span
            and other.record.date.sort_key() == self.record.date.sort_key()
        )


@dataclass(frozen=True)
class NextShift:
    shift: ActiveShift
    minutes_until_change: Optional[int] = None
    gap_minutes: Optional[int] = None

    @property
    def should_show_warning(self) -> bool:
        return should_show_warning(self.minutes_until_change)

    @property
    def has_gap(self) -> bool:
        return self.gap_minutes is not None and self.gap_minutes > GAP_TOLERANCE


# ─────────────────────────────────────────────────────────────
# RECHERCHE
# ─────────────────────────────────────────────────────────────

def _resolved(records: Sequence[DutyRecord]) -> List[DutyRecord]:
    return [r for r in records if r.date.is_resolved]


def find_active(records: Sequence[DutyRecord], instant: dt.datetime) -> Optional[ActiveShift]:
    """
    Première plage contenant ``instant`` ; à défaut, première plage du
    premier enregistrement du même jour civil (tolère les trous aux
    changements de garde).
    """
    candidates = _resolved(records)
    for record in candidates:
        for span in record.shifts:
            if span.contains(instant, record.date):
                return ActiveShift(record, span)

    # Repli sur le jour civil
    for record in candidates:
        if record.shifts and record.date.to_date() == instant.date():
            span = next(iter(record.shifts))
            log.debug("Aucune plage exacte à %s, repli sur %s (%s)", instant, record.date, span.label)
            return ActiveShift(record, span)
    return None


def find_for_date(records: Sequence[DutyRecord], date: dt.date) -> Optional[DutyRecord]:
    if isinstance(date, dt.datetime):
        date = date.date()
    for record in _resolved(records):
        if record.date.to_date() == date:
            return record
    return None


def find_next(
    records: Sequence[DutyRecord], current_record: DutyRecord, current_span: DutyTimeSpan
) -> Optional[ActiveShift]:
    """
    Garde active une minute après la fin de la plage courante (le lendemain
    pour une plage qui passe minuit). Même mécanisme pour jour -> nuit,
    nuit -> jour et 24h -> 24h.
    """
    current = ActiveShift(current_record, current_span)
    probe = current.end + dt.timedelta(minutes=1)
    found = find_active(records, probe)
    if current.same_as(found):
        return None
    return found


# ─────────────────────────────────────────────────────────────
# MINUTES ET AVERTISSEMENTS
# ─────────────────────────────────────────────────────────────

def minutes_until_shift_end(span: DutyTimeSpan, now: dt.datetime) -> int:
    current = now.hour * 60 + now.minute
    if not span.spans_midnight:
        return span.end_minutes - current
    if current >= span.start_minutes:
        return (MINUTES_PER_DAY - current) + span.end_minutes
    return span.end_minutes - current


def should_show_warning(minutes: Optional[int]) -> bool:
    return minutes is not None and 0 < minutes <= WARNING_THRESHOLD


def gap_minutes(current: ActiveShift, following: ActiveShift) -> int:
    """Minutes entre la fin de la garde courante et le début de la suivante."""
    return int((following.start - current.end).total_seconds() // 60)


def has_gap(current: ActiveShift, following: ActiveShift) -> bool:
    return gap_minutes(current, following) > GAP_TOLERANCE


# ─────────────────────────────────────────────────────────────
# ÉTAT D'UNE REQUÊTE
# ─────────────────────────────────────────────────────────────

class ResolutionState(Enum):
    NO_DATA = "no_data"
    SEARCHING = "searching"
    FOUND = "found"
    NOT_FOUND = "not_found"


class Resolution:
    """
    Une requête : NO_DATA -> SEARCHING -> FOUND | NOT_FOUND.
    La garde suivante n'est calculée qu'à la première lecture.
    """

    def __init__(self, records: Sequence[DutyRecord], instant: dt.datetime):
        self.records = list(records)
        self.instant = instant
        self.active: Optional[ActiveShift] = None
        self.state = ResolutionState.SEARCHING if self.records else ResolutionState.NO_DATA

    @classmethod
    def resolve(cls, records: Sequence[DutyRecord], instant: dt.datetime) -> "Resolution":
        resolution = cls(records, instant)
        if resolution.state is ResolutionState.NO_DATA:
            return resolution
        resolution.active = find_active(resolution.records, instant)
        resolution.state = ResolutionState.FOUND if resolution.active else ResolutionState.NOT_FOUND
        return resolution

    @property
    def found(self) -> bool:
        return self.state is ResolutionState.FOUND

    @property
    def minutes_until_end(self) -> Optional[int]:
        if self.active is None:
            return None
        return minutes_until_shift_end(self.active.span, self.instant)

    @cached_property
    def next_shift(self) -> Optional[NextShift]:
        if self.active is None:
            return None
        following = find_next(self.records, self.active.record, self.active.span)
        if following is None:
            return None
        return NextShift(following, self.minutes_until_end, gap_minutes(self.active, following))

    def __repr__(self) -> str:
        return f"Resolution({self.state.name}, {self.instant:%Y-%m-%d %H:%M})"
