"""
Configuration globale de pytest pour guardia_segovia.

Ajoute la racine du projet au sys.path et fournit des pages synthétiques
(mots positionnés et flux de texte) pour chaque famille de calendrier.
Aucun accès réseau, aucun vrai PDF.
"""

import datetime as dt
import sys
from pathlib import Path

import pytest

root_path = Path(__file__).parent.parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))

from guardia_segovia.models import DutyRecord, Pharmacy  # noqa: E402
from guardia_segovia.scanner import PageContent, Word  # noqa: E402
from guardia_segovia.temporal import DutyDate, DutyTimeSpan  # noqa: E402


def word(text, x0, top, x1=None, height=8.0):
    return Word(text, float(x0), float(x1 if x1 is not None else x0 + 6 * len(text)), float(top), float(top) + height)


# ---------------------------------------------------------------------------
# Segovia Capital
# ---------------------------------------------------------------------------

CAPITAL_TEXT = """CALENDARIO DE GUARDIAS SEGOVIA CAPITAL
FARMACIA ANA GÓMEZ FARMACIA LUIS PÉREZ
martes, 15 de julio de 2025 C/ REAL, 3 AV. FERNÁNDEZ LADREDA S/N
Tfno: 921 111111 Tfno: 921 222222
FARMACIA CARMEN RUIZ FARMACIA JOSÉ SANZ
miércoles, 16 de julio de 2025 PLAZA MAYOR, 12 C/ SAN FRANCISCO, 7
Tfno: 921 333333 Tfno: 921 444444
"""

DATE_X, DAY_X, NIGHT_X = 45, 170, 370


def capital_block(top, date, day, night):
    words = [word(date, DATE_X, top + 12, x1=150)]
    for i, (d, n) in enumerate(zip(day, night)):
        words.append(word(d, DAY_X, top + 12 * i, x1=340))
        words.append(word(n, NIGHT_X, top + 12 * i, x1=540))
    return words


CAPITAL_WORDS = (
    capital_block(
        100, "martes, 15 de julio de 2025",
        ["FARMACIA ANA GÓMEZ", "C/ REAL, 3", "Tfno: 921 111111"],
        ["FARMACIA LUIS PÉREZ", "AV. FERNÁNDEZ LADREDA S/N", "Tfno: 921 222222"],
    )
    + capital_block(
        150, "miércoles, 16 de julio de 2025",
        ["FARMACIA CARMEN RUIZ", "PLAZA MAYOR, 12", "Tfno: 921 333333"],
        ["FARMACIA JOSÉ SANZ", "C/ SAN FRANCISCO, 7", "Tfno: 921 444444"],
    )
)


@pytest.fixture
def now():
    return dt.datetime(2025, 7, 15, 12, 0)


@pytest.fixture
def capital_text_page():
    return PageContent(1, 595.0, 842.0, [], CAPITAL_TEXT)


@pytest.fixture
def capital_word_page():
    return PageContent(1, 595.0, 842.0, list(CAPITAL_WORDS), "")


# ---------------------------------------------------------------------------
# Cuéllar et El Espinar
# ---------------------------------------------------------------------------

CUELLAR_TEXT = """COLEGIO OFICIAL DE FARMACEUTICOS DE SEGOVIA
TURNOS DE GUARDIA CUELLAR 2025
LUNES MARTES MIERCOLES JUEVES VIERNES SABADO DOMINGO
30-dic 31-dic 01-ene 02-ene Ctra. BAHABON
03-ene 04-ene 05-ene C/ RESINA
"""

EL_ESPINAR_TEXT = """GUARDIAS EL ESPINAR 2025
06-ene 07-ene 08-ene AV. HONTANILLA 18
09-ene 10-ene C/ MARQUES PERALES 2
11-ene 12-ene SAN RAFAEL
"""


@pytest.fixture
def cuellar_page():
    return PageContent(1, 595.0, 842.0, [], CUELLAR_TEXT)


@pytest.fixture
def el_espinar_page():
    return PageContent(1, 595.0, 842.0, [], EL_ESPINAR_TEXT)


# ---------------------------------------------------------------------------
# Segovia Rural
# ---------------------------------------------------------------------------

RURAL_TEXT = """SERVICIOS DE URGENCIA RURALES 2025
FECHA  RIAZA/SEPULVEDA  LA GRANJA  LA SIERRA  FUENTIDUEÑA  CARBONERO  NAVAS  VILLACASTIN
06-ene-25  RIAZA  LA GRANJA  PRÁDENA  HONTALBILLA  NAVALMANZANO  COCA  VILLACASTÍN
13-ene-25  S.E. GORMAZ (SORIA) SEPÚLVEDA  LA GRANJA  ARCONES  TORRECILLA  CANTIMPALOS  NIEVA  ZARZUELA M.
"""

RURAL_X = {
    "date": 45,
    "riaza-sepulveda": 180,
    "la-granja": 400,
    "la-sierra": 505,
    "fuentiduena": 572,
    "carbonero": 625,
    "navas-asuncion": 705,
    "villacastin": 772,
}

RURAL_X1 = {
    "date": 80,
    "riaza-sepulveda": 300,
    "la-granja": 470,
    "la-sierra": 560,
    "fuentiduena": 615,
    "carbonero": 690,
    "navas-asuncion": 760,
    "villacastin": 825,
}


def rural_row(top, cells):
    return [word(text, RURAL_X[name], top, x1=RURAL_X1[name]) for name, text in cells.items()]


RURAL_WORDS = (
    rural_row(100, {
        "date": "06-ene-25", "riaza-sepulveda": "RIAZA", "la-granja": "LA GRANJA",
        "la-sierra": "PRÁDENA", "fuentiduena": "HONTALBILLA", "carbonero": "NAVALMANZANO",
        "navas-asuncion": "COCA", "villacastin": "VILLACASTÍN",
    })
    + rural_row(140, {
        "date": "13-ene-25", "riaza-sepulveda": "S.E. GORMAZ (SORIA)", "la-granja": "LA GRANJA",
        "la-sierra": "ARCONES",
    })
    # Seconde ligne de la cellule combinée
    + rural_row(150, {"riaza-sepulveda": "SEPÚLVEDA"})
)


@pytest.fixture
def rural_text_page():
    return PageContent(1, 842.0, 595.0, [], RURAL_TEXT)


@pytest.fixture
def rural_word_page():
    return PageContent(1, 842.0, 595.0, list(RURAL_WORDS), "")


# ---------------------------------------------------------------------------
# Enregistrements prêts à résoudre
# ---------------------------------------------------------------------------

PHARMACY_A = Pharmacy("FARMACIA A", "C/ REAL, 3", "921111111")
PHARMACY_B = Pharmacy("FARMACIA B", "AV. FERNÁNDEZ LADREDA S/N", "921222222")
PHARMACY_C = Pharmacy("FARMACIA C", "PLAZA MAYOR, 12")
PHARMACY_D = Pharmacy("FARMACIA D", "C/ SAN FRANCISCO, 7")


def capital_record(month_day, day_pharmacy, night_pharmacy):
    date = DutyDate.from_date(dt.date(2025, 7, month_day))
    return DutyRecord(date, {
        DutyTimeSpan.CAPITAL_DAY: [day_pharmacy],
        DutyTimeSpan.CAPITAL_NIGHT: [night_pharmacy],
    })


@pytest.fixture
def capital_records():
    return [
        capital_record(15, PHARMACY_A, PHARMACY_B),
        capital_record(16, PHARMACY_C, PHARMACY_D),
    ]
