"""
Détection de l'année d'un calendrier dont les dates n'impriment pas l'année.

Sources, par priorité : l'URL du PDF (année la plus à droite), le texte de
la première page, une forme dégradée ('2.025', '2 0 2 5'), puis l'année
courante. Si le calendrier commence en décembre, l'année retenue est
décrémentée : elle désigne alors l'année de la première date du document.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

log = logging.getLogger(__name__)

RE_URL_YEAR = re.compile(r"(\d{4})")
RE_TEXT_YEAR = re.compile(r"\b(20[2-3]\d)(?:\s*-\s*20[2-3]\d)?\b")
RE_FLEXIBLE_YEAR = re.compile(r"2\D?0\D?([2-3])\D?(\d)")
RE_DECEMBER = re.compile(r"\b\d{1,2}[‐-]dic\b", re.IGNORECASE)

MAX_DRIFT = 2
DECEMBER_WINDOW = 500


@dataclass(frozen=True)
class YearDetection:
    year: int
    source: str  # url | pdf | flexible | fallback
    adjusted_for_december: bool = False
    warning: Optional[str] = None


def _in_range(year: int) -> bool:
    return 2020 <= year <= 2039


def validate_year(year: int, current: int) -> Tuple[bool, Optional[str]]:
    """Valide à ±2 ans de l'année courante ; avertit à la limite."""
    drift = abs(year - current)
    if drift > MAX_DRIFT:
        return False, f"Année {year} hors plage (±{MAX_DRIFT} ans autour de {current})"
    if drift == MAX_DRIFT:
        return True, f"Année {year} en limite de plage (±{MAX_DRIFT} ans autour de {current})"
    return True, None


def year_from_url(url: Optional[str]) -> Optional[int]:
    """/2026/01/RURALES-2025.pdf -> 2025 (la plus à droite valide)."""
    for raw in reversed(RE_URL_YEAR.findall(url or "")):
        if _in_range(int(raw)):
            return int(raw)
    return None


def year_from_text(text: str) -> Optional[int]:
    m = RE_TEXT_YEAR.search(text or "")
    return int(m.group(1)) if m else None


def year_flexible(text: str) -> Optional[int]:
    m = RE_FLEXIBLE_YEAR.search(text or "")
    if not m:
        return None
    year = int(f"20{m.group(1)}{m.group(2)}")
    return year if _in_range(year) else None


def starts_in_december(text: str) -> bool:
    return bool(RE_DECEMBER.search((text or "")[:DECEMBER_WINDOW]))


def detect_year(text: str, pdf_url: Optional[str] = None, now: Optional[dt.datetime] = None) -> YearDetection:
    """Année de la première date du calendrier."""
    current = (now or dt.datetime.now()).year
    year, source, warning = current, "fallback", None

    for candidate, origin in (
        (year_from_url(pdf_url), "url"),
        (year_from_text(text), "pdf"),
        (year_flexible(text), "flexible"),
    ):
        if candidate is None:
            continue
        valid, message = validate_year(candidate, current)
        if valid:
            year, source, warning = candidate, origin, message
            break
        log.debug("Année %s (%s) rejetée : %s", candidate, origin, message)

    if starts_in_december(text):
        log.info("Calendrier commençant en décembre : année %s ramenée à %s", year, year - 1)
        return YearDetection(
            year - 1, source, True,
            f"Année {year} ramenée à {year - 1} (dates de décembre en tête de document)",
        )
    return YearDetection(year, source, False, warning)
