"""
Sources de documents : PDF -> liste de PageContent.

Une source ne lève jamais : un échec réseau ou un PDF illisible donne une
liste vide, journalisée.
"""

from __future__ import annotations

import io
import logging
import threading
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Union

import pdfplumber
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import Config, config
from .locations import REGIONS, DutyLocation
from .scanner import PageContent, Word
from .url_scraper import discover_pdf_urls

log = logging.getLogger(__name__)

PdfInput = Union[str, Path, BinaryIO]


# ─────────────────────────────────────────────────────────────
# EXTRACTION PDF
# ─────────────────────────────────────────────────────────────

def load_pages(source: PdfInput, with_words: bool = True) -> List[PageContent]:
    """
    Extrait chaque page : mots positionnés (si ``with_words``) et flux de texte.
    Le backend texte n'a besoin que du flux.
    """
    pages: List[PageContent] = []
    try:
        with pdfplumber.open(source) as pdf:
            for number, page in enumerate(pdf.pages, start=1):
                words: List[Word] = []
                if with_words:
                    words = [
                        Word(w["text"], float(w["x0"]), float(w["x1"]), float(w["top"]), float(w["bottom"]))
                        for w in page.extract_words(x_tolerance=3, y_tolerance=3)
                    ]
                text = page.extract_text(x_tolerance=3, y_tolerance=3) or ""
                pages.append(PageContent(number, float(page.width), float(page.height), words, text))
    except Exception as exc:
        log.error("PDF illisible (%s) : %s", source if isinstance(source, (str, Path)) else "flux", exc)
        return []
    log.debug("%d pages extraites", len(pages))
    return pages


def create_session(cfg: Config = config) -> requests.Session:
    """Session HTTP avec retry automatique."""
    session = requests.Session()
    retry_strategy = Retry(
        total=5,
        backoff_factor=2,                         # 2s, 4s, 8s, 16s, 32s
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({
        "User-Agent": cfg.user_agent,
        "Accept": "application/pdf,text/html;q=0.9,*/*;q=0.8",
        "Accept-Language": "es-ES,es;q=0.9,en;q=0.8",
    })
    return session


# ─────────────────────────────────────────────────────────────
# SOURCES
# ─────────────────────────────────────────────────────────────

class PdfDocumentSource:
    """Téléchargement du PDF de la région (URL du catalogue ou découverte)."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        cfg: Config = config,
        with_words: Optional[bool] = None,
    ):
        self.cfg = cfg
        self.session = session or create_session(cfg)
        self.with_words = cfg.scan_backend != "text" if with_words is None else with_words
        self._discovered: Optional[Dict[str, str]] = None
        self._lock = threading.Lock()

    def discovered_urls(self) -> Dict[str, str]:
        with self._lock:
            if self._discovered is None:
                self._discovered = discover_pdf_urls(self.session, self.cfg.listing_url, self.cfg.http_timeout)
            return self._discovered

    def url_for(self, location_id: str) -> str:
        region_id = DutyLocation.from_id(location_id).owner_region_id
        default = REGIONS[region_id].pdf_url
        if not self.cfg.scrape_urls:
            return default
        url = self.discovered_urls().get(region_id)
        if url and url != default:
            log.info("[%s] URL mise à jour : %s", region_id, url)
        return url or default

    def fetch(self, location_id: str) -> List[PageContent]:
        url = self.url_for(location_id)
        log.info("[%s] Téléchargement de %s", location_id, url)
        try:
            resp = self.session.get(url, timeout=self.cfg.http_timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            log.error("[%s] ✗ Erreur réseau : %s", location_id, e)
            return []
        return load_pages(io.BytesIO(resp.content), with_words=self.with_words)


class LocalDocumentSource:
    """PDF locaux indexés par identifiant de région."""

    def __init__(self, paths: Dict[str, PdfInput], with_words: bool = True):
        self.paths = {k: Path(v) if isinstance(v, str) else v for k, v in paths.items()}
        self.with_words = with_words

    def url_for(self, location_id: str) -> Optional[str]:
        region_id = DutyLocation.from_id(location_id).owner_region_id
        path = self.paths.get(region_id)
        return str(path) if isinstance(path, Path) else None

    def fetch(self, location_id: str) -> List[PageContent]:
        region_id = DutyLocation.from_id(location_id).owner_region_id
        path = self.paths.get(region_id)
        if path is None:
            log.warning("[%s] Aucun PDF local configuré", region_id)
            return []
        if isinstance(path, Path) and not path.exists():
            log.error("[%s] Fichier introuvable : %s", region_id, path)
            return []
        return load_pages(path, with_words=self.with_words)
