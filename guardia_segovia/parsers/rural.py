"""
Segovia Rural : grille des zones de santé (ZBS).

Une ligne par date ('01-ene-25'), une colonne par ZBS publiée. Chaque
ligne produit un ZoneDutyRecord complet (toutes les ZBS, y compris
Cantalejo qui n'apparaît jamais dans le PDF) et un enregistrement régional
de 24 heures listant toutes les pharmacies de la ligne.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..directory import (
    CANTALEJO_OVERRIDE,
    CANTALEJO_ZONE_ID,
    RURAL_DIRECTORY,
    RURAL_ZONE_KEYS,
    expand_combined_token,
    find_zone_keys,
    needs_alternation,
    resolve_alternating_entry,
)
from ..errors import ParseError
from ..locations import ZONES, Zone
from ..models import DutyRecord, Pharmacy, ZoneDutyRecord, clean_space
from ..scanner import RE_CELL_DELIMITER, Column, ColumnLayout, PageContent, ScanRow
from ..temporal import COMPACT_DATE_RE, DutyDate, DutyTimeSpan, parse_compact_date
from .common import ParseContext

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Géométrie (points PDF, page paysage)
# ---------------------------------------------------------------------------

DATE_COLUMN = Column("date", 42, 42, 0)

ZONE_COLUMNS: Tuple[Column, ...] = (
    Column("riaza-sepulveda", 175, 200, 1),
    Column("la-granja", 390, 100, 2),
    Column("la-sierra", 500, 70, 3),
    Column("fuentiduena", 570, 50, 4),
    Column("carbonero", 620, 80, 5),
    Column("navas-asuncion", 700, 65, 6),
    Column("villacastin", 770, 60, 7),
)

# Écart maximal entre une ligne datée et sa ligne de continuation
CONTINUATION_GAP = 12.0
MIN_ORDINAL_CELLS = 3


def misplaced_cell(zone_id: str, text: str) -> bool:
    """Cellule qui cite un village d'une autre ZBS et aucun des siens."""
    if find_zone_keys(text, zone_id) or needs_alternation(zone_id, text):
        return False
    return any(
        find_zone_keys(text, other) or needs_alternation(other, text)
        for other in RURAL_ZONE_KEYS
        if other != zone_id
    )


def segment_line(line: str) -> Dict[str, str]:
    """
    Flux texte : cellules séparées (2+ espaces, tabulation, '|') lues par
    rang ; sinon recherche des villages connus de chaque ZBS dans la ligne.

    Une case vide ne laisse pas de délimiteur : dès qu'une cellule lue par
    rang appartient à une autre ZBS, toute la ligne passe en recherche par
    mot-clé.
    """
    parts = [p.strip() for p in RE_CELL_DELIMITER.split(line) if p.strip()]
    columns = (DATE_COLUMN,) + ZONE_COLUMNS
    cells: Dict[str, str] = {}
    if len(parts) >= MIN_ORDINAL_CELLS:
        cells = {col.name: part for col, part in zip(columns, parts)}
        shifted = [name for name, text in cells.items() if name != "date" and misplaced_cell(name, text)]
        if not shifted:
            return cells
        log.debug("Cellules décalées %s, recherche par mot-clé : %r", shifted, line)
        cells = {}
    m = COMPACT_DATE_RE.search(line)
    if m:
        cells["date"] = m.group(0)
    for col in ZONE_COLUMNS:
        keys = find_zone_keys(line, col.name)
        if not keys and needs_alternation(col.name, line):
            keys = ["LA GRANJA"]
        if keys:
            cells[col.name] = " | ".join(keys)
    return cells


RURAL_LAYOUT = ColumnLayout(columns=(DATE_COLUMN,) + ZONE_COLUMNS, segmenter=segment_line)


# ---------------------------------------------------------------------------
# Cellules
# ---------------------------------------------------------------------------

def zone_info(zone: Zone) -> str:
    return f"Horario: {zone.hours_label} - ZBS: {zone.name}"


def cell_tokens(zone_id: str, text: str, date: DutyDate) -> List[str]:
    """Jetons de recherche d'une cellule, dans l'ordre du PDF."""
    tokens: List[str] = []
    for part in text.split("|"):
        part = clean_space(part)
        if not part:
            continue
        expanded = expand_combined_token(part, zone_id, date)
        zone_keys = find_zone_keys(part, zone_id)
        if len(expanded) > 1:
            tokens.extend(expanded)
        elif zone_keys:
            tokens.extend(zone_keys)
        elif needs_alternation(zone_id, part):
            tokens.append(resolve_alternating_entry(zone_id, date))
        else:
            tokens.append(part)
    return tokens


def zone_pharmacies(zone: Zone, text: str, date: DutyDate, ctx: ParseContext) -> List[Pharmacy]:
    info = zone_info(zone)
    if zone.id == CANTALEJO_ZONE_ID:
        tokens: Sequence[str] = CANTALEJO_OVERRIDE
    else:
        tokens = cell_tokens(zone.id, text, date)

    pharmacies: List[Pharmacy] = []
    for token in tokens:
        pharmacy = RURAL_DIRECTORY.lookup(token, zone_id=zone.id, issues=ctx.issues, additional_info=info)
        if pharmacy not in pharmacies:
            pharmacies.append(pharmacy)
    return pharmacies


# ---------------------------------------------------------------------------
# Lignes
# ---------------------------------------------------------------------------

def row_date(row: ScanRow) -> Optional[str]:
    """Jeton de date de la ligne : colonne date, sinon n'importe quelle cellule."""
    for text in [row.get("date")] + list(row.cells.values()):
        m = COMPACT_DATE_RE.search(text or "")
        if m:
            return m.group(0)
    return None


def merge_continuations(rows: List[ScanRow], page: PageContent) -> List[Tuple[str, ScanRow]]:
    """
    Associe chaque ligne datée à ses lignes de continuation (cellule sur
    deux lignes). Sans coordonnées, une ligne de texte est une ligne logique.
    """
    merged: List[Tuple[str, ScanRow]] = []
    for row in rows:
        token = row_date(row)
        if token is not None:
            merged.append((token, ScanRow(row.y, dict(row.cells))))
            continue
        if not merged or not page.words or row.y - merged[-1][1].y > CONTINUATION_GAP:
            continue
        target = merged[-1][1]
        for name, text in row.cells.items():
            if name == "date":
                continue
            target.cells[name] = f"{target.cells[name]} {text}" if name in target.cells else text
    return merged


def build_records(
    date: DutyDate, row: ScanRow, ctx: ParseContext
) -> Tuple[ZoneDutyRecord, Optional[DutyRecord]]:
    by_zone: Dict[str, List[Pharmacy]] = {}
    published: List[Pharmacy] = []
    for zone in ZONES.values():
        pharmacies = zone_pharmacies(zone, row.get(zone.id), date, ctx)
        by_zone[zone.id] = pharmacies
        if zone.id != CANTALEJO_ZONE_ID:
            published.extend(pharmacies)

    zone_record = ZoneDutyRecord(date, by_zone)
    if not published:
        return zone_record, None
    everyone = [p for zone_id in by_zone for p in by_zone[zone_id]]
    return zone_record, DutyRecord(date, {DutyTimeSpan.FULL_DAY: everyone})


def parse(pages: Sequence[PageContent], ctx: ParseContext) -> Tuple[List[DutyRecord], List[ZoneDutyRecord]]:
    records: List[DutyRecord] = []
    zone_records: List[ZoneDutyRecord] = []

    for page in pages:
        rows = ctx.scanner.scan_rows(page, RURAL_LAYOUT)
        count = 0
        for token, row in merge_continuations(rows, page):
            try:
                date = parse_compact_date(token)
                if not date.is_resolved:
                    raise ParseError("date sans année", text=token, page=page.number)
            except ParseError as exc:
                exc.page = page.number
                ctx.report(exc)
                continue

            zone_record, regional = build_records(date, row, ctx)
            zone_records.append(zone_record)
            if regional is not None:
                records.append(regional)
            count += 1

        if not count:
            ctx.skip_page(page.number)
        else:
            log.debug("[%s] Page %s : %d lignes", ctx.location.id, page.number, count)

    return records, zone_records
