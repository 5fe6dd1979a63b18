"""
Schedule Store : cache des listes d'enregistrements par localisation.

Contrat : ``get``, ``put``, ``is_fresh``, ``clear``. Une mise à jour
remplace toujours la liste complète d'une clé. Les lignes ZBS de la région
rurale sont rangées sous ``ZONE_CACHE_KEY``.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple, Union

from .config import Config
from .export import record_from_dict, record_to_dict, zone_record_from_dict, zone_record_to_dict
from .locations import RURAL_REGION_ID
from .models import DutyRecord, ZoneDutyRecord

log = logging.getLogger(__name__)

ZONE_CACHE_KEY = f"{RURAL_REGION_ID}:zbs"

Records = List[Union[DutyRecord, ZoneDutyRecord]]
Clock = Callable[[], dt.datetime]


class ScheduleStore:
    """Interface commune ; ``ttl`` fixe la fraîcheur d'une entrée."""

    def __init__(self, ttl: dt.timedelta = dt.timedelta(hours=24), clock: Optional[Clock] = None):
        self.ttl = ttl
        self.clock = clock or dt.datetime.now

    def get(self, key: str) -> Optional[Records]:
        raise NotImplementedError

    def put(self, key: str, records: Records) -> None:
        raise NotImplementedError

    def updated_at(self, key: str) -> Optional[dt.datetime]:
        raise NotImplementedError

    def clear(self, key: Optional[str] = None) -> None:
        raise NotImplementedError

    def is_fresh(self, key: str) -> bool:
        stamp = self.updated_at(key)
        return stamp is not None and self.clock() - stamp < self.ttl


# ─────────────────────────────────────────────────────────────
# MÉMOIRE
# ─────────────────────────────────────────────────────────────

class MemoryScheduleStore(ScheduleStore):

    def __init__(self, ttl: dt.timedelta = dt.timedelta(hours=24), clock: Optional[Clock] = None):
        super().__init__(ttl, clock)
        self._entries: Dict[str, Tuple[dt.datetime, Records]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Records]:
        with self._lock:
            entry = self._entries.get(key)
        return list(entry[1]) if entry else None

    def put(self, key: str, records: Records) -> None:
        with self._lock:
            self._entries[key] = (self.clock(), list(records))

    def updated_at(self, key: str) -> Optional[dt.datetime]:
        with self._lock:
            entry = self._entries.get(key)
        return entry[0] if entry else None

    def clear(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


# ─────────────────────────────────────────────────────────────
# SUPABASE
# ─────────────────────────────────────────────────────────────

class SupabaseScheduleStore(ScheduleStore):
    """
    Une ligne par clé : ``location_id``, ``payload`` (JSON), ``updated_at``.
    Upsert sur ``location_id``. Une panne du service vaut absence de cache.
    """

    def __init__(
        self,
        client,
        table: str = "duty_schedules",
        ttl: dt.timedelta = dt.timedelta(hours=24),
        clock: Optional[Clock] = None,
    ):
        super().__init__(ttl, clock)
        self.client = client
        self.table = table

    @classmethod
    def from_config(cls, cfg: Config) -> "SupabaseScheduleStore":
        from supabase import create_client

        if not cfg.supabase_url or not cfg.supabase_key:
            raise ValueError("définir SUPABASE_URL et SUPABASE_SERVICE_ROLE_KEY (ou SUPABASE_ANON_KEY)")
        return cls(
            create_client(cfg.supabase_url, cfg.supabase_key),
            table=cfg.supabase_table,
            ttl=dt.timedelta(hours=cfg.cache_ttl_hours),
        )

    def _row(self, key: str) -> Optional[Dict]:
        try:
            resp = self.client.table(self.table).select("*").eq("location_id", key).execute()
        except Exception as exc:
            log.error("Supabase : lecture de %s impossible : %s", key, exc)
            return None
        rows = resp.data or []
        return rows[0] if rows else None

    def get(self, key: str) -> Optional[Records]:
        row = self._row(key)
        if row is None:
            return None
        decode = zone_record_from_dict if key == ZONE_CACHE_KEY else record_from_dict
        return [decode(item) for item in row.get("payload") or []]

    def put(self, key: str, records: Records) -> None:
        encode = zone_record_to_dict if key == ZONE_CACHE_KEY else record_to_dict
        row = {
            "location_id": key,
            "payload": [encode(r) for r in records],
            "updated_at": self.clock().replace(microsecond=0).isoformat(),
        }
        try:
            self.client.table(self.table).upsert(row, on_conflict="location_id").execute()
        except Exception as exc:
            log.error("Supabase : écriture de %s impossible : %s", key, exc)

    def updated_at(self, key: str) -> Optional[dt.datetime]:
        row = self._row(key)
        if row is None or not row.get("updated_at"):
            return None
        stamp = dt.datetime.fromisoformat(str(row["updated_at"]).replace("Z", "+00:00"))
        # timestamptz renvoyé en UTC : ramené à l'heure locale naïve
        if stamp.tzinfo is not None:
            stamp = stamp.astimezone().replace(tzinfo=None)
        return stamp

    def clear(self, key: Optional[str] = None) -> None:
        query = self.client.table(self.table).delete()
        query = query.eq("location_id", key) if key is not None else query.neq("location_id", "")
        query.execute()


def make_store(cfg: Config) -> ScheduleStore:
    """Supabase si les identifiants sont définis, sinon cache mémoire."""
    if cfg.supabase_url and cfg.supabase_key:
        return SupabaseScheduleStore.from_config(cfg)
    return MemoryScheduleStore(ttl=dt.timedelta(hours=cfg.cache_ttl_hours))
