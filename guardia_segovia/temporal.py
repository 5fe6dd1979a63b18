"""
Modèle temporel : dates de garde en espagnol et plages horaires nommées.

Fonctions pures, aucune E/S. Toutes les heures sont exprimées en heure
civile locale (datetimes naïfs) ; les calendriers publiés et leurs
consommateurs partagent le même fuseau.
"""

from __future__ import annotations

import calendar
import datetime as dt
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple, Union

from .errors import ParseError


# ---------------------------------------------------------------------------
# Constantes
# ---------------------------------------------------------------------------

MONTHS_ES = {
    "enero":      1,
    "febrero":    2,
    "marzo":      3,
    "abril":      4,
    "mayo":       5,
    "junio":      6,
    "julio":      7,
    "agosto":     8,
    "septiembre": 9,
    "setiembre":  9,
    "octubre":    10,
    "noviembre":  11,
    "diciembre":  12,
}

MONTH_NAMES = {
    1: "enero", 2: "febrero", 3: "marzo", 4: "abril", 5: "mayo", 6: "junio",
    7: "julio", 8: "agosto", 9: "septiembre", 10: "octubre", 11: "noviembre",
    12: "diciembre",
}

MONTH_ABBREVIATIONS = {
    "ene": 1, "feb": 2, "mar": 3, "abr": 4, "may": 5, "jun": 6,
    "jul": 7, "ago": 8, "sep": 9, "oct": 10, "nov": 11, "dic": 12,
}

# Index = datetime.date.weekday() (lundi = 0)
WEEKDAYS_ES = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"]

WEEKDAY_PATTERN = r"lunes|martes|mi[ée]rcoles|jueves|viernes|s[áa]bado|domingo"
MONTH_PATTERN = "|".join(sorted(MONTHS_ES, key=len, reverse=True))

# 'lunes, 15 de julio de 2025', 'martes, 2 de enero'
SPANISH_DATE_RE = re.compile(
    rf"\b({WEEKDAY_PATTERN}),\s*(\d{{1,2}})\s+de\s+({MONTH_PATTERN})(?:\s+(?:de\s+)?(\d{{4}}))?\b",
    re.IGNORECASE,
)

# '01-ene', '11-ago-25', '3‐dic' (tiret Unicode compris)
COMPACT_DATE_RE = re.compile(
    r"(?<!\d)(\d{1,2})\s*[‐‑–-]\s*([A-Za-zÁÉÍÓÚáéíóú]{3})[A-Za-zÁÉÍÓÚáéíóú]*\.?"
    r"(?:\s*[‐‑–-]\s*(\d{2}|\d{4}))?(?!\d)"
)

DateLike = Union["DutyDate", dt.date]


# ---------------------------------------------------------------------------
# Utilitaires
# ---------------------------------------------------------------------------

def month_number(month: str) -> Optional[int]:
    """Numéro du mois pour un nom complet ou une abréviation espagnole."""
    key = (month or "").strip().lower().rstrip(".")
    if key in MONTHS_ES:
        return MONTHS_ES[key]
    return MONTH_ABBREVIATIONS.get(key[:3])


def weekday_name_for(day: dt.date) -> str:
    return WEEKDAYS_ES[day.weekday()]


def _normalize_weekday(name: str) -> str:
    low = name.strip().lower()
    return {"miercoles": "miércoles", "sabado": "sábado"}.get(low, low)


def _max_day(month: int, year: Optional[int]) -> int:
    if year is None:
        return 29 if month == 2 else calendar.monthrange(2023, month)[1]
    return calendar.monthrange(year, month)[1]


# ---------------------------------------------------------------------------
# DutyDate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DutyDate:
    """Date de garde telle qu'imprimée, l'année pouvant rester inconnue."""
    weekday_name: str
    day: int
    month: str
    year: Optional[int] = None

    def __post_init__(self) -> None:
        number = month_number(self.month)
        if number is None:
            raise ParseError("mois inconnu", text=self.month)
        object.__setattr__(self, "month", MONTH_NAMES[number])
        if not 1 <= self.day <= _max_day(number, self.year):
            raise ParseError(f"jour {self.day} invalide pour {self.month}")

    @property
    def month_number(self) -> int:
        return MONTHS_ES[self.month]

    @property
    def is_resolved(self) -> bool:
        return self.year is not None

    def with_year(self, year: int) -> "DutyDate":
        resolved = replace(self, year=year)
        return replace(resolved, weekday_name=weekday_name_for(resolved.to_date()))

    def to_date(self) -> dt.date:
        if self.year is None:
            raise ParseError("année non résolue", text=str(self))
        return dt.date(self.year, self.month_number, self.day)

    def sort_key(self, default_year: int = 0) -> Tuple[int, int, int]:
        year = self.year if self.year is not None else default_year
        return year, self.month_number, self.day

    @classmethod
    def from_date(cls, day: dt.date) -> "DutyDate":
        return cls(weekday_name_for(day), day.day, MONTH_NAMES[day.month], day.year)

    def __str__(self) -> str:
        text = f"{self.weekday_name}, {self.day} de {self.month}"
        return f"{text} de {self.year}" if self.year is not None else text


def _as_date(value: DateLike) -> dt.date:
    if isinstance(value, DutyDate):
        return value.to_date()
    if isinstance(value, dt.datetime):
        return value.date()
    return value


# ---------------------------------------------------------------------------
# Parsing des dates
# ---------------------------------------------------------------------------

def parse_spanish_date(text: str, now: Optional[dt.datetime] = None) -> DutyDate:
    """
    Extrait une DutyDate d'un texte libre ('lunes, 15 de julio de 2025').

    Sans année imprimée : année courante de ``now``, sauf le 1er et le 2
    janvier qui appartiennent à l'année suivante (les calendriers sont
    publiés en décembre et débordent sur janvier).
    """
    m = SPANISH_DATE_RE.search(text or "")
    if not m:
        raise ParseError("date espagnole introuvable", text=text)

    weekday = _normalize_weekday(m.group(1))
    day = int(m.group(2))
    month = m.group(3).lower()
    if m.group(4):
        year = int(m.group(4))
    else:
        current = (now or dt.datetime.now()).year
        year = current + 1 if month == "enero" and day in (1, 2) else current

    try:
        return DutyDate(weekday, day, month, year)
    except ParseError as exc:
        raise ParseError(str(exc), text=text) from exc


def parse_compact_date(token: str, year: Optional[int] = None) -> DutyDate:
    """
    Date compacte 'dd-mmm' ou 'dd-mmm-yy' ('01-ene', '11-ago-25').

    Une année à deux chiffres dans le jeton l'emporte sur ``year``.
    """
    m = COMPACT_DATE_RE.search(token or "")
    if not m:
        raise ParseError("date compacte introuvable", text=token)
    day = int(m.group(1))
    month = MONTH_ABBREVIATIONS.get(m.group(2).lower())
    if month is None:
        raise ParseError("abréviation de mois inconnue", text=token)
    if m.group(3):
        raw_year = int(m.group(3))
        year = 2000 + raw_year if raw_year < 100 else raw_year
    if year is None:
        return DutyDate("", day, MONTH_NAMES[month], None)
    return DutyDate("", day, MONTH_NAMES[month], year).with_year(year)


def find_compact_dates(text: str) -> List[str]:
    """Tous les jetons 'dd-mmm' d'une ligne, dans l'ordre de lecture."""
    return [m.group(0).strip() for m in COMPACT_DATE_RE.finditer(text or "")]


def is_new_year_token(token: str) -> bool:
    """Vrai pour un jeton '1-ene' / '01-ene'."""
    m = COMPACT_DATE_RE.search(token or "")
    return bool(m) and int(m.group(1)) == 1 and m.group(2).lower() == "ene"


def to_datetime(date: DateLike, hour: int, minute: int) -> dt.datetime:
    """Combine une date résolue et une heure locale en instant comparable."""
    day = _as_date(date)
    return dt.datetime(day.year, day.month, day.day, hour, minute)


# ---------------------------------------------------------------------------
# DutyTimeSpan
# ---------------------------------------------------------------------------

class DutyTimeSpan(Enum):
    """Plages de garde nommées ; ensemble fermé de constantes."""

    CAPITAL_DAY = (10, 15, 22, 0, "Guardia diurna", "☀️")
    CAPITAL_NIGHT = (22, 0, 10, 15, "Guardia nocturna", "🌙")
    FULL_DAY = (0, 0, 23, 59, "Guardia de 24 horas", "🕐")
    RURAL_DAYTIME = (10, 0, 20, 0, "Guardia diurna", "🌤️")
    RURAL_EXTENDED_DAYTIME = (10, 0, 22, 0, "Guardia diurna extendida", "🌇")

    def __init__(self, start_hour, start_minute, end_hour, end_minute, label, icon):
        self.start_hour = start_hour
        self.start_minute = start_minute
        self.end_hour = end_hour
        self.end_minute = end_minute
        self.label = label
        self.icon = icon

    @property
    def start_minutes(self) -> int:
        return self.start_hour * 60 + self.start_minute

    @property
    def end_minutes(self) -> int:
        return self.end_hour * 60 + self.end_minute

    @property
    def spans_midnight(self) -> bool:
        return self.end_minutes < self.start_minutes

    @property
    def key(self) -> str:
        """Forme sérialisée 'H:MM-H:MM'."""
        return (
            f"{self.start_hour}:{self.start_minute:02d}-"
            f"{self.end_hour}:{self.end_minute:02d}"
        )

    @classmethod
    def from_key(cls, key: str) -> "DutyTimeSpan":
        for span in cls:
            if span.key == key or span.name == key:
                return span
        raise ValueError(f"Plage horaire inconnue : {key!r}")

    def contains_time_of_day(self, hour: int, minute: int) -> bool:
        current = hour * 60 + minute
        if self.spans_midnight:
            # OU : soit la partie du soir, soit celle du lendemain matin
            return current >= self.start_minutes or current <= self.end_minutes
        return self.start_minutes <= current <= self.end_minutes

    def start_on(self, date: DateLike) -> dt.datetime:
        return to_datetime(date, self.start_hour, self.start_minute)

    def end_on(self, date: DateLike) -> dt.datetime:
        end = to_datetime(date, self.end_hour, self.end_minute)
        if self.spans_midnight:
            end += dt.timedelta(days=1)
        return end

    def contains(self, instant: dt.datetime, reference_date: DateLike) -> bool:
        """Vrai si ``instant`` tombe dans la plage ancrée sur ``reference_date``."""
        moment = instant.replace(second=0, microsecond=0)
        return self.start_on(reference_date) <= moment <= self.end_on(reference_date)

    def is_same_day(self, reference_date: DateLike, instant: dt.datetime) -> bool:
        return _as_date(reference_date) == instant.date()

    def __str__(self) -> str:
        return f"{self.label} ({self.start_hour:02d}:{self.start_minute:02d} - {self.end_hour:02d}:{self.end_minute:02d})"
