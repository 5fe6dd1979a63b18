"""
Parseurs de mise en page, un par famille de calendrier.

``parse_document`` route un identifiant de localisation vers sa variante
via ``PARSER_TABLE`` et injecte le ColumnScanner.
"""

from __future__ import annotations

import datetime as dt
import logging
from enum import Enum
from typing import Dict, Optional, Sequence

from ..errors import EmptyResultError, ParseError, ScheduleError
from ..locations import (
    CAPITAL_REGION_ID,
    CUELLAR_REGION_ID,
    EL_ESPINAR_REGION_ID,
    RURAL_REGION_ID,
    DutyLocation,
)
from ..models import sort_records
from ..scanner import ColumnScanner, PageContent, make_scanner
from . import capital, rural, weekly
from .common import ParseContext, ParseResult

log = logging.getLogger(__name__)


class ParserKind(Enum):
    CAPITAL = "capital"
    CUELLAR = "cuellar"
    EL_ESPINAR = "el-espinar"
    RURAL = "rural"

    @property
    def parse(self):
        return {
            ParserKind.CAPITAL: capital.parse,
            ParserKind.CUELLAR: weekly.parse_cuellar,
            ParserKind.EL_ESPINAR: weekly.parse_el_espinar,
            ParserKind.RURAL: rural.parse,
        }[self]


PARSER_TABLE: Dict[str, ParserKind] = {
    CAPITAL_REGION_ID: ParserKind.CAPITAL,
    CUELLAR_REGION_ID: ParserKind.CUELLAR,
    EL_ESPINAR_REGION_ID: ParserKind.EL_ESPINAR,
    RURAL_REGION_ID: ParserKind.RURAL,
}


def parse_document(
    location_id: str,
    pages: Sequence[PageContent],
    scanner: Optional[ColumnScanner] = None,
    now: Optional[dt.datetime] = None,
    pdf_url: Optional[str] = None,
) -> ParseResult:
    """
    Parse les pages d'un PDF. Une ZBS est parsée via sa région (un seul
    PDF rural). Ne lève pas : un document vide donne un résultat vide
    accompagné d'une EmptyResultError dans ``issues``.
    """
    location = DutyLocation.from_id(location_id)
    if not location.is_region:
        location = DutyLocation.from_id(location.owner_region_id)
    kind = PARSER_TABLE[location.id]

    ctx = ParseContext(
        location=location,
        scanner=scanner or make_scanner(),
        now=now or dt.datetime.now(),
        pdf_url=pdf_url,
    )
    result = ParseResult(location, issues=ctx.issues)
    try:
        records, zone_records = kind.parse(pages, ctx)
    except ScheduleError as exc:
        log.error("[%s] Parsing interrompu : %s", location.id, exc)
        ctx.issues.append(exc)
        records, zone_records = [], []
    except Exception as exc:
        log.exception("[%s] Erreur inattendue du parseur %s", location.id, kind.value)
        ctx.report(ParseError(f"erreur inattendue ({type(exc).__name__}: {exc})"))
        records, zone_records = [], []

    result.records = sort_records(records)
    result.zone_records = sort_records(zone_records)
    if result.is_empty:
        log.warning("[%s] Aucun enregistrement extrait (%d pages)", location.id, len(pages))
        result.issues.append(EmptyResultError(location.id))
    else:
        log.info(
            "[%s] %d enregistrements, %d lignes ZBS, %d incidents (backend %s)",
            location.id, len(result.records), len(result.zone_records),
            len(result.issues), ctx.scanner.name,
        )
    return result


__all__ = ["ParseContext", "ParseResult", "ParserKind", "PARSER_TABLE", "parse_document"]
