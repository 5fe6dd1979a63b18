"""
Façade du moteur : source de documents -> parseur -> résolveur, avec
consultation du Schedule Store.

Les fonctions ``resolve_*`` sont pures. ScheduleEngine ajoute le cache et
le chargement concurrent des régions.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from tqdm import tqdm

from .config import Config, config, local_now
from .errors import UnknownLocationError
from .locations import REGIONS, RURAL_REGION_ID, ZONES, DutyLocation
from .models import DutyRecord, Pharmacy, ZoneDutyRecord
from .parsers import ParseResult, parse_document
from .resolver import Resolution, find_for_date, should_show_warning
from .scanner import ColumnScanner, make_scanner
from .store import ZONE_CACHE_KEY, MemoryScheduleStore, ScheduleStore
from .temporal import DutyTimeSpan

log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# RÉPONSES
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class NextShiftSummary:
    pharmacies: List[Pharmacy]
    label: str
    span: DutyTimeSpan
    record: DutyRecord
    minutes_until: Optional[int]
    is_gapped: bool = False

    @property
    def should_show_warning(self) -> bool:
        return should_show_warning(self.minutes_until)


@dataclass(frozen=True)
class CurrentDuty:
    """Réponse à « qui est de garde maintenant ? »."""
    location: DutyLocation
    active_pharmacies: List[Pharmacy]
    active_span_label: str
    active_span: DutyTimeSpan
    record: DutyRecord
    minutes_until_end: Optional[int] = None
    next_shift: Optional[NextShiftSummary] = None
    # ZBS seulement : pharmacies listées hors de leur horaire nominal
    outside_nominal_hours: bool = False

    @property
    def should_show_warning(self) -> bool:
        return should_show_warning(self.minutes_until_end)


def resolve_current(location_id: str, records: Sequence[DutyRecord], now: dt.datetime) -> Optional[CurrentDuty]:
    location = DutyLocation.from_id(location_id)
    resolution = Resolution.resolve(records, now)
    if not resolution.found:
        log.info("[%s] Aucune garde à %s (%s)", location_id, now, resolution.state.name)
        return None

    active = resolution.active
    following = resolution.next_shift
    summary = None
    if following is not None:
        summary = NextShiftSummary(
            pharmacies=following.shift.pharmacies,
            label=following.shift.span.label,
            span=following.shift.span,
            record=following.shift.record,
            minutes_until=following.minutes_until_change,
            is_gapped=following.has_gap,
        )
    return CurrentDuty(
        location=location,
        active_pharmacies=active.pharmacies,
        active_span_label=active.span.label,
        active_span=active.span,
        record=active.record,
        minutes_until_end=resolution.minutes_until_end,
        next_shift=summary,
    )


def resolve_for_date(location_id: str, records: Sequence[DutyRecord], date: dt.date) -> Optional[DutyRecord]:
    DutyLocation.from_id(location_id)
    return find_for_date(records, date)


def resolve_zone(zone_id: str, zone_records: Sequence[ZoneDutyRecord], now: dt.datetime) -> Optional[CurrentDuty]:
    """
    Même forme que resolve_current, limitée à une ZBS. Les pharmacies hors
    de l'horaire nominal de la zone restent listées, avec un indicateur.
    """
    if zone_id not in ZONES:
        raise UnknownLocationError(zone_id)
    zone = ZONES[zone_id]
    current = resolve_current(zone_id, [r.for_zone(zone_id) for r in zone_records], now)
    if current is None:
        return None
    outside = not zone.opening_span.contains_time_of_day(now.hour, now.minute)
    if outside:
        log.debug("[%s] %s hors horaire nominal (%s)", zone_id, now.strftime("%H:%M"), zone.hours_label)
    return replace(current, outside_nominal_hours=outside)


# ─────────────────────────────────────────────────────────────
# MOTEUR
# ─────────────────────────────────────────────────────────────

class ScheduleEngine:
    """
    Charge, met en cache et résout les calendriers.

    Protocole de cache : sauf ``force_refresh``, ``is_fresh`` puis ``get``
    avant tout parsing ; ``put`` pour chaque localisation d'un résultat non
    vide. Les rafraîchissements d'une même région sont sérialisés.
    """

    def __init__(
        self,
        source,
        store: Optional[ScheduleStore] = None,
        scanner: Optional[ColumnScanner] = None,
        clock: Optional[Callable[[], dt.datetime]] = None,
        cfg: Config = config,
    ):
        self.source = source
        self.cfg = cfg
        self.store = store or MemoryScheduleStore(ttl=dt.timedelta(hours=cfg.cache_ttl_hours))
        self.scanner = scanner or make_scanner(cfg.scan_backend)
        self.clock = clock or (lambda: local_now(cfg))
        self.results: Dict[str, ParseResult] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    def _cached(self, key: str, force_refresh: bool) -> Optional[list]:
        if force_refresh or not self.store.is_fresh(key):
            return None
        cached = self.store.get(key)
        if cached is not None:
            log.debug("[%s] Cache frais : %d enregistrements", key, len(cached))
        return cached

    def refresh(self, region_id: str) -> ParseResult:
        """Télécharge et parse le PDF d'une région ; stocke un résultat non vide."""
        pages = self.source.fetch(region_id)
        url_for = getattr(self.source, "url_for", None)
        result = parse_document(
            region_id, pages, scanner=self.scanner, now=self.clock(),
            pdf_url=url_for(region_id) if url_for else None,
        )
        self.results[region_id] = result
        if result.is_empty:
            return result
        for location, records in result.by_location():
            self.store.put(location.id, records)
        if result.zone_records:
            self.store.put(ZONE_CACHE_KEY, result.zone_records)
        return result

    def load(self, location_id: str, force_refresh: bool = False) -> List[DutyRecord]:
        location = DutyLocation.from_id(location_id)
        with self._lock_for(location.owner_region_id):
            cached = self._cached(location.id, force_refresh)
            if cached is not None:
                return cached
            result = self.refresh(location.owner_region_id)
        for loc, records in result.by_location():
            if loc.id == location.id:
                return records
        return []

    def load_zones(self, force_refresh: bool = False) -> List[ZoneDutyRecord]:
        with self._lock_for(RURAL_REGION_ID):
            cached = self._cached(ZONE_CACHE_KEY, force_refresh)
            if cached is not None:
                return cached
            return list(self.refresh(RURAL_REGION_ID).zone_records)

    def current(self, location_id: str, now: Optional[dt.datetime] = None,
                force_refresh: bool = False) -> Optional[CurrentDuty]:
        return resolve_current(location_id, self.load(location_id, force_refresh), now or self.clock())

    def current_zone(self, zone_id: str, now: Optional[dt.datetime] = None,
                     force_refresh: bool = False) -> Optional[CurrentDuty]:
        return resolve_zone(zone_id, self.load_zones(force_refresh), now or self.clock())

    def for_date(self, location_id: str, date: dt.date, force_refresh: bool = False) -> Optional[DutyRecord]:
        return resolve_for_date(location_id, self.load(location_id, force_refresh), date)

    def load_all(
        self,
        location_ids: Optional[Iterable[str]] = None,
        max_workers: Optional[int] = None,
        force_refresh: bool = False,
    ) -> Dict[str, List[DutyRecord]]:
        """Une tâche par localisation ; aucun ordre garanti entre régions."""
        ids = list(location_ids) if location_ids is not None else list(REGIONS)
        results: Dict[str, List[DutyRecord]] = {}
        with ThreadPoolExecutor(max_workers=max_workers or self.cfg.max_workers) as pool:
            futures = {pool.submit(self.load, loc, force_refresh): loc for loc in ids}
            for future in tqdm(as_completed(futures), total=len(futures), desc="Calendriers"):
                loc = futures[future]
                try:
                    results[loc] = future.result()
                except Exception as exc:
                    log.error("[%s] Chargement impossible : %s", loc, exc)
                    results[loc] = []
        return results
