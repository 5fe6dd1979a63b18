"""
Cuéllar et El Espinar / San Rafael : calendriers hebdomadaires à deux colonnes.

Le document est lu ligne par ligne (une seule colonne pleine largeur). Les
jetons 'dd-mmm' s'accumulent jusqu'à ce qu'une pharmacie soit identifiée :
soit par une clé de l'annuaire présente dans la ligne, soit par un bloc
libre de trois lignes portant le marqueur FARMACIA. Chaque date accumulée
devient une garde de 24 heures pour cette pharmacie.

L'année n'est jamais imprimée : elle part de l'année détectée pour la
première date du document et s'incrémente à chaque passage au 1er janvier.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..directory import CUELLAR_DIRECTORY, EL_ESPINAR_DIRECTORY, PharmacyDirectory, ascii_upper
from ..errors import ParseError
from ..models import PHARMACY_MARKER, DutyRecord, Pharmacy, clean_space
from ..scanner import Column, ColumnLayout, PageContent
from ..temporal import DutyDate, DutyTimeSpan, find_compact_dates, is_new_year_token, parse_compact_date
from ..year_detection import detect_year
from .common import ParseContext

log = logging.getLogger(__name__)

HEADER_MARKERS = ("COLEGIO", "TURNOS", "LUNES MARTES")
FREE_BLOCK_SIZE = 3
FULL_WIDTH = 10_000.0


# ─────────────────────────────────────────────────────────────
# PROFILS
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class WeeklyProfile:
    """Ce qui distingue les deux calendriers hebdomadaires."""
    directory: PharmacyDirectory
    identify: Callable[[str], Optional[str]]


def identify_cuellar(line: str) -> Optional[str]:
    """Ligne composite : la clé de rue figure au milieu des dates."""
    return CUELLAR_DIRECTORY.find_key(line)


def identify_el_espinar(line: str) -> Optional[str]:
    upper = ascii_upper(line)
    if "HONTANILLA" in upper:
        return "AV. HONTANILLA 18"
    if "MARQUES PERALES" in upper:
        return "C/ MARQUES PERALES"
    if upper.endswith("SAN RAFAEL"):
        return "SAN RAFAEL"
    return None


CUELLAR_PROFILE = WeeklyProfile(CUELLAR_DIRECTORY, identify_cuellar)
EL_ESPINAR_PROFILE = WeeklyProfile(EL_ESPINAR_DIRECTORY, identify_el_espinar)


def weekly_layout(page: PageContent) -> ColumnLayout:
    return ColumnLayout(
        columns=(Column("line", 0.0, page.width or FULL_WIDTH, 0),),
        segmenter=lambda line: {"line": line},
    )


def is_header(line: str) -> bool:
    upper = ascii_upper(line)
    return any(marker in upper for marker in HEADER_MARKERS)


def parse_free_block(lines: Sequence[str]) -> Optional[Pharmacy]:
    """
    Bloc libre de trois lignes : nom en bas (infos, adresse, nom) ou en haut
    (nom, adresse, infos). Sans marqueur FARMACIA, le bloc est rejeté.
    """
    if PHARMACY_MARKER in lines[-1].upper():
        batch = Pharmacy.parse_batch(lines)
        if batch:
            return batch[0]
    return Pharmacy.parse(lines)


# ─────────────────────────────────────────────────────────────
# PARSING
# ─────────────────────────────────────────────────────────────

class RunningYear:
    """Compteur d'année incrémenté à chaque 1er janvier rencontré."""

    def __init__(self, start: int):
        self.year = start
        self.last: Optional[DutyDate] = None

    def resolve(self, token: str) -> DutyDate:
        if is_new_year_token(token) and self.last is not None and self.last.month != "enero":
            self.year += 1
            log.debug("Passage au 1er janvier : année %s", self.year)
        date = parse_compact_date(token, self.year)
        self.last = date
        return date


def parse_with_profile(
    pages: Sequence[PageContent], ctx: ParseContext, profile: WeeklyProfile
) -> Tuple[List[DutyRecord], list]:
    first_text = "\n".join(pages[0].lines()) if pages else ""
    detection = detect_year(first_text, ctx.pdf_url, ctx.now)
    if detection.warning:
        log.warning("[%s] %s", ctx.location.id, detection.warning)
    counter = RunningYear(detection.year)

    records: List[DutyRecord] = []
    pending: Dict[Tuple[int, int, int], DutyDate] = {}
    free_lines: List[str] = []

    def flush(pharmacy: Pharmacy) -> int:
        for date in pending.values():
            records.append(DutyRecord(date, {DutyTimeSpan.FULL_DAY: [pharmacy]}))
        emitted = len(pending)
        pending.clear()
        free_lines.clear()
        return emitted

    for page in pages:
        emitted = 0
        fragments = ctx.scanner.scan_columns(page, weekly_layout(page))["line"]
        for fragment in fragments:
            line = clean_space(fragment.text)
            if not line or is_header(line):
                continue

            tokens = find_compact_dates(line)
            for token in tokens:
                try:
                    date = counter.resolve(token)
                except ParseError as exc:
                    exc.page = page.number
                    ctx.report(exc)
                    continue
                pending.setdefault(date.sort_key(), date)

            key = profile.identify(line)
            if key is not None:
                pharmacy = profile.directory.lookup(key, issues=ctx.issues)
                emitted += flush(pharmacy)
                continue

            if tokens:
                free_lines.clear()
                continue
            free_lines.append(line)
            if len(free_lines) == FREE_BLOCK_SIZE:
                pharmacy = parse_free_block(free_lines)
                if pharmacy is None:
                    ctx.report(ParseError(
                        "bloc sans nom de pharmacie", text=" | ".join(free_lines), page=page.number
                    ))
                    free_lines.clear()
                elif pending:
                    emitted += flush(pharmacy)
                else:
                    free_lines.clear()

        if not emitted:
            ctx.skip_page(page.number)

    if pending:
        ctx.report(ParseError(
            f"{len(pending)} dates sans pharmacie en fin de document",
            text=", ".join(str(d) for d in pending.values()),
        ))
    return records, []


def parse_cuellar(pages: Sequence[PageContent], ctx: ParseContext) -> Tuple[List[DutyRecord], list]:
    return parse_with_profile(pages, ctx, CUELLAR_PROFILE)


def parse_el_espinar(pages: Sequence[PageContent], ctx: ParseContext) -> Tuple[List[DutyRecord], list]:
    return parse_with_profile(pages, ctx, EL_ESPINAR_PROFILE)
