"""
Configuration du moteur, lue depuis l'environnement.

Charge .env.local (ou .env) à la racine du projet, comme les scripts
d'import, puis construit un objet Config immuable.
"""

from __future__ import annotations

import datetime as dt
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

log = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env.local")
load_dotenv(PROJECT_ROOT / ".env")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on", "oui")


@dataclass(frozen=True)
class Config:
    """Paramètres d'exécution (journalisation, cache, extraction, réseau)."""

    log_level: str = "INFO"
    timezone: str = "Europe/Madrid"

    # Cache
    cache_ttl_hours: float = 24.0

    # Extraction PDF : "coordinates" (balayage) ou "text" (flux de texte)
    scan_backend: str = "coordinates"

    # Réseau
    http_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    listing_url: str = "https://cofsegovia.com/farmacias-de-guardia/"
    scrape_urls: bool = False
    max_workers: int = 4

    # Supabase (store distant optionnel)
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_table: str = "duty_schedules"

    @classmethod
    def from_env(cls) -> "Config":
        """Construit la configuration depuis les variables d'environnement."""
        return cls(
            log_level=os.getenv("GUARDIA_LOG_LEVEL", "INFO").upper(),
            timezone=os.getenv("GUARDIA_TIMEZONE", "Europe/Madrid"),
            cache_ttl_hours=float(os.getenv("GUARDIA_CACHE_TTL_HOURS", "24")),
            scan_backend=os.getenv("GUARDIA_SCAN_BACKEND", "coordinates").lower(),
            http_timeout=float(os.getenv("GUARDIA_HTTP_TIMEOUT", "30")),
            user_agent=os.getenv("GUARDIA_USER_AGENT", DEFAULT_USER_AGENT),
            listing_url=os.getenv(
                "GUARDIA_LISTING_URL", "https://cofsegovia.com/farmacias-de-guardia/"
            ),
            scrape_urls=_env_bool("GUARDIA_SCRAPE_URLS", False),
            max_workers=int(os.getenv("GUARDIA_MAX_WORKERS", "4")),
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=(
                os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY")
            ),
            supabase_table=os.getenv("GUARDIA_SUPABASE_TABLE", "duty_schedules"),
        )


config = Config.from_env()


def local_now(cfg: Config = config) -> dt.datetime:
    """Heure civile locale naïve du fuseau configuré."""
    try:
        zone = ZoneInfo(cfg.timezone)
    except ZoneInfoNotFoundError:
        log.warning("Fuseau %r inconnu, heure système utilisée", cfg.timezone)
        return dt.datetime.now()
    return dt.datetime.now(zone).replace(tzinfo=None)
