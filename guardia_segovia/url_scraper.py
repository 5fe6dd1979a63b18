"""
Découverte des URL de PDF sur la page de publication du Colegio.

Les URL par défaut du catalogue changent à chaque nouveau calendrier ;
la page de publication liste les PDF en cours. Chaque lien .pdf est
classé par mots-clés de région (URL d'abord, texte du lien ensuite).
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from .directory import ascii_upper
from .locations import REGIONS
from .models import clean_space
from .year_detection import year_from_url

log = logging.getLogger(__name__)


def extract_pdf_links(html: str, base_url: str = "") -> List[Tuple[str, str]]:
    """Tous les liens .pdf de la page : (URL absolue, texte du lien)."""
    soup = BeautifulSoup(html, "lxml")
    links: List[Tuple[str, str]] = []
    seen = set()
    for a in soup.find_all("a", href=True):
        url = urljoin(base_url, a["href"].strip())
        if not urlparse(url).path.lower().endswith(".pdf") or url in seen:
            continue
        seen.add(url)
        text = clean_space(a.get_text(" "))
        if not text and a.parent is not None:
            text = clean_space(a.parent.get_text(" "))
        links.append((url, text))
    return links


def classify_link(url: str, text: str = "") -> Optional[str]:
    """Identifiant de région d'un lien, ou None."""
    for haystack in (ascii_upper(urlparse(url).path.replace("-", " ").replace("_", " ")), ascii_upper(text)):
        for region in REGIONS.values():
            if any(ascii_upper(keyword) in haystack for keyword in region.keywords):
                return region.id
    return None


def classify_links(html: str, base_url: str = "") -> Dict[str, str]:
    """Région -> URL ; à égalité de région, l'année d'URL la plus récente l'emporte."""
    found: Dict[str, str] = {}
    for url, text in extract_pdf_links(html, base_url):
        region_id = classify_link(url, text)
        if region_id is None:
            log.debug("Lien PDF non classé : %s", url)
            continue
        current = found.get(region_id)
        if current is None or (year_from_url(url) or 0) > (year_from_url(current) or 0):
            found[region_id] = url
    return found


def discover_pdf_urls(session: requests.Session, listing_url: str, timeout: float = 30) -> Dict[str, str]:
    """Télécharge la page de publication ; {} en cas d'erreur réseau."""
    log.info("Recherche des calendriers sur %s", listing_url)
    try:
        resp = session.get(listing_url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        log.error("Page de publication inaccessible : %s", e)
        return {}
    found = classify_links(resp.text, listing_url)
    log.info("%d calendrier(s) trouvé(s) : %s", len(found), ", ".join(sorted(found)))
    return found
