"""
Segovia Capital : calendrier à trois colonnes (date, garde de jour, garde de nuit).

Chaque date est alignée positionnellement avec le N-ième bloc pharmacie de
jour et le N-ième bloc de nuit ; les indices où l'une des trois listes
manque sont abandonnés.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Sequence, Tuple

from ..errors import ParseError
from ..models import PHARMACY_MARKER, DutyRecord, Pharmacy, clean_space
from ..scanner import Column, ColumnLayout, PageContent
from ..temporal import SPANISH_DATE_RE, DutyTimeSpan, parse_spanish_date, MONTH_PATTERN, WEEKDAY_PATTERN
from .common import ParseContext

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Géométrie de la page
# ---------------------------------------------------------------------------

PAGE_MARGIN = 40.0
DATE_COLUMN_RATIO = 0.22
COLUMN_GAP = 5.0
DEFAULT_PAGE_WIDTH = 595.0  # A4 portrait

MIN_DATE_LENGTH = 15

RE_SEPARATOR = re.compile(r"^[\s\-_=.·•*]+$")
RE_DIGITS = re.compile(r"^\d+$")
RE_WEEKDAY = re.compile(rf"\b({WEEKDAY_PATTERN})\b", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Segmentation du flux texte
# ---------------------------------------------------------------------------

RE_TWO_NAMES = re.compile(r"^(FARMACIA.*)(FARMACIA.*)$", re.IGNORECASE)

# 'lunes, 1 de enero de 2025 C/ REAL, 3 AV. FERNÁNDEZ LADREDA S/N'
RE_DATE_WITH_ADDRESSES = re.compile(
    rf"^((?:{WEEKDAY_PATTERN}),\s*\d{{1,2}}\s*de\s*(?:{MONTH_PATTERN})(?:\s+de\s+\d{{4}})?)\s+"
    r"(.+?)(?:,\s*)?(\d+|S/N)\s+(.+?)(?:,\s*)?(\d+|S/N)$",
    re.IGNORECASE,
)

RE_PHONE_CELL = re.compile(r"(?:(\([^)]+\))\s*)?Tfno:\s*(\d{3}\s*\d{6})", re.IGNORECASE)


def _format_address(street: str, number: str) -> str:
    street = clean_space(street).rstrip(",")
    return f"{street} S/N" if number.upper() == "S/N" else f"{street}, {number}"


def segment_line(line: str) -> Dict[str, str]:
    """Découpe une ligne du flux texte en cellules date / jour / nuit."""
    text = clean_space(line)

    m = RE_TWO_NAMES.match(text)
    if m:
        return {"day": m.group(1).strip(), "night": m.group(2).strip()}
    if text.upper().startswith(PHARMACY_MARKER):
        return {"day": text}

    m = RE_DATE_WITH_ADDRESSES.match(text)
    if m:
        return {
            "date": m.group(1),
            "day": _format_address(m.group(2), m.group(3)),
            "night": _format_address(m.group(4), m.group(5)),
        }
    m = SPANISH_DATE_RE.search(text)
    if m:
        return {"date": m.group(0)}

    phones = list(RE_PHONE_CELL.finditer(text))
    if phones:
        cells = [clean_space(p.group(0)) for p in phones]
        return dict(zip(("day", "night"), cells))
    return {}


def capital_layout(page: PageContent) -> ColumnLayout:
    width = page.width or DEFAULT_PAGE_WIDTH
    content = width - 2 * PAGE_MARGIN
    date_width = content * DATE_COLUMN_RATIO
    pharmacy_width = (content - date_width) / 2
    # Chaque colonne de pharmacies commence après la précédente et l'écart
    day_x = PAGE_MARGIN + date_width + COLUMN_GAP
    night_x = day_x + pharmacy_width + COLUMN_GAP
    return ColumnLayout(
        columns=(
            Column("date", PAGE_MARGIN, date_width, 0),
            Column("day", day_x, pharmacy_width, 1),
            Column("night", night_x, pharmacy_width, 2),
        ),
        segmenter=segment_line,
    )


# ---------------------------------------------------------------------------
# Colonnes
# ---------------------------------------------------------------------------

def date_lines(texts: Sequence[str]) -> List[str]:
    """Lignes de date (> 15 caractères, avec un jour de semaine), sans doublon."""
    seen, out = set(), []
    for text in texts:
        text = clean_space(text)
        if len(text) > MIN_DATE_LENGTH and RE_WEEKDAY.search(text) and text not in seen:
            seen.add(text)
            out.append(text)
    return out


def group_pharmacy_lines(texts: Sequence[str], ctx: ParseContext, page: int) -> List[Pharmacy]:
    """
    Regroupe une colonne pharmacie en blocs (nom FARMACIA, adresse, infos),
    un bloc par ligne de date.
    """
    groups: List[List[str]] = []
    for text in texts:
        text = clean_space(text)
        if len(text) <= 3 or RE_SEPARATOR.match(text) or RE_DIGITS.match(text):
            continue
        if PHARMACY_MARKER in text.upper():
            groups.append([text])
        elif groups:
            groups[-1].append(text)

    pharmacies: List[Pharmacy] = []
    for group in groups:
        pharmacy = Pharmacy.parse(group) if 2 <= len(group) <= 3 else None
        if pharmacy is None:
            ctx.report(ParseError("bloc pharmacie incohérent", text=" | ".join(group), page=page))
            continue
        pharmacies.append(pharmacy)
    return pharmacies


def parse_page(page: PageContent, ctx: ParseContext) -> List[DutyRecord]:
    columns = ctx.scanner.scan_columns(page, capital_layout(page))
    day = group_pharmacy_lines([f.text for f in columns["day"]], ctx, page.number)
    night = group_pharmacy_lines([f.text for f in columns["night"]], ctx, page.number)

    dates = []
    seen = set()
    for text in date_lines(f.text for f in columns["date"]):
        try:
            date = parse_spanish_date(text, now=ctx.now)
        except ParseError as exc:
            exc.page = page.number
            ctx.report(exc)
            continue
        if date.sort_key() in seen:
            continue
        seen.add(date.sort_key())
        dates.append(date)

    count = min(len(dates), len(day), len(night))
    if count < max(len(dates), len(day), len(night)):
        ctx.report(ParseError(
            f"colonnes inégales (dates={len(dates)}, jour={len(day)}, nuit={len(night)}), "
            f"{count} lignes retenues",
            page=page.number,
        ))

    return [
        DutyRecord(dates[i], {
            DutyTimeSpan.CAPITAL_DAY: [day[i]],
            DutyTimeSpan.CAPITAL_NIGHT: [night[i]],
        })
        for i in range(count)
    ]


def parse(pages: Sequence[PageContent], ctx: ParseContext) -> Tuple[List[DutyRecord], list]:
    records: List[DutyRecord] = []
    for page in pages:
        page_records = parse_page(page, ctx)
        if not page_records:
            ctx.skip_page(page.number)
            continue
        log.debug("[%s] Page %s : %d dates", ctx.location.id, page.number, len(page_records))
        records.extend(page_records)
    return records, []
