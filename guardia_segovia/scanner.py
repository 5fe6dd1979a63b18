"""
Scanner de colonnes : texte d'une page PDF -> fragments par colonne.

Deux backends interchangeables produisent la même forme de sortie
(``Dict[nom de colonne, List[Fragment]]``, puis des lignes ``ScanRow``) :

  - CoordinateSweepBackend : balaye chaque bande verticale de colonne par
    fenêtres de hauteur fixe et collecte les mots positionnés rencontrés ;
  - TextStreamBackend : parcourt le texte dans l'ordre de lecture et
    découpe chaque ligne en cellules (délimiteurs ou segmenteur dédié).

Les parseurs reçoivent un ColumnScanner injecté ; ils ne savent pas quel
backend est utilisé.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# STRUCTURES DE DONNÉES
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Word:
    """Mot positionné (repère pdfplumber : ``top`` croît vers le bas)."""
    text: str
    x0: float
    x1: float
    top: float
    bottom: float

    @property
    def center_x(self) -> float:
        return (self.x0 + self.x1) / 2

    @property
    def center_y(self) -> float:
        return (self.top + self.bottom) / 2


@dataclass
class PageContent:
    """Contenu d'une page : mots positionnés et/ou flux de texte."""
    number: int
    width: float = 0.0
    height: float = 0.0
    words: List[Word] = field(default_factory=list)
    text: str = ""

    def lines(self) -> List[str]:
        """Lignes non vides dans l'ordre de lecture."""
        if self.text:
            return [line.strip() for line in self.text.splitlines() if line.strip()]
        # Pas de flux texte : reconstruction des lignes depuis les mots
        lines: List[Tuple[float, List[Word]]] = []
        for word in sorted(self.words, key=lambda w: (w.top, w.x0)):
            if lines and abs(word.top - lines[-1][0]) <= 2.0:
                lines[-1][1].append(word)
            else:
                lines.append((word.top, [word]))
        return [
            " ".join(w.text for w in sorted(ws, key=lambda w: w.x0)).strip()
            for _, ws in lines
        ]


Segmenter = Callable[[str], Dict[str, str]]


@dataclass(frozen=True)
class Column:
    """Bande verticale (x, largeur) ; ``index`` = rang ordinal pour le flux texte."""
    name: str
    x: float = 0.0
    width: float = 0.0
    index: int = 0

    def contains_x(self, x: float) -> bool:
        return self.x <= x < self.x + self.width


@dataclass(frozen=True)
class ColumnLayout:
    columns: Tuple[Column, ...]
    segmenter: Optional[Segmenter] = None

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.columns]


@dataclass(frozen=True)
class Fragment:
    """Texte trouvé dans une colonne ; ``row`` ancre la ligne logique."""
    y: float
    text: str
    row: float


@dataclass
class ScanRow:
    y: float
    cells: Dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> str:
        return self.cells.get(name, "")


# ─────────────────────────────────────────────────────────────
# UTILITAIRES
# ─────────────────────────────────────────────────────────────

def remove_duplicate_adjacent(fragments: Sequence[Fragment], tolerance: float = 0.5) -> List[Fragment]:
    """
    Fusionne les fragments adjacents identiques ancrés sur la même ligne
    logique (fenêtres de balayage qui se chevauchent) ; garde le premier.
    """
    out: List[Fragment] = []
    for frag in fragments:
        if out and frag.text == out[-1].text and abs(frag.row - out[-1].row) <= tolerance:
            continue
        out.append(frag)
    return out


RE_CELL_DELIMITER = re.compile(r"\s{2,}|\t+|\s*\|\s*")


def ordinal_segmenter(layout: ColumnLayout) -> Segmenter:
    """Segmenteur par défaut : cellules séparées par 2+ espaces, tabulations ou '|'."""
    ordered = sorted(layout.columns, key=lambda c: c.index)

    def segment(line: str) -> Dict[str, str]:
        parts = [p.strip() for p in RE_CELL_DELIMITER.split(line) if p.strip()]
        return {col.name: part for col, part in zip(ordered, parts)}

    return segment


# ─────────────────────────────────────────────────────────────
# BACKENDS
# ─────────────────────────────────────────────────────────────

class TextStreamBackend:
    """Lecture séquentielle du texte ; une ligne de texte = une ligne logique."""

    name = "text"
    row_tolerance = 0.0

    def scan(self, page: PageContent, layout: ColumnLayout) -> Dict[str, List[Fragment]]:
        segment = layout.segmenter or ordinal_segmenter(layout)
        out: Dict[str, List[Fragment]] = {name: [] for name in layout.names}
        for i, line in enumerate(page.lines()):
            for name, text in segment(line).items():
                text = text.strip()
                if text and name in out:
                    out[name].append(Fragment(float(i), text, float(i)))
        return {name: remove_duplicate_adjacent(frags) for name, frags in out.items()}


class CoordinateSweepBackend:
    """
    Balayage vertical par fenêtres de ``scan_height`` avançant de
    ``scan_increment``. Un mot appartient à une fenêtre si son centre
    vertical y tombe, et à une colonne si son centre horizontal est dans
    la bande.

    Avec ``scan_height`` > ``scan_increment`` les fenêtres se chevauchent :
    chaque mot n'est rapporté que par la première fenêtre qui le contient.
    """

    name = "coordinates"

    def __init__(self, scan_height: float = 8.0, scan_increment: float = 8.0, start_y: float = 0.0):
        if scan_increment <= 0:
            raise ValueError("scan_increment doit être positif")
        self.scan_height = scan_height
        self.scan_increment = scan_increment
        self.start_y = start_y

    @property
    def row_tolerance(self) -> float:
        return self.scan_height / 2

    def scan_column(self, page: PageContent, column: Column) -> List[Fragment]:
        in_column = [w for w in page.words if column.contains_x(w.center_x)]
        height = page.height or max((w.bottom for w in page.words), default=0.0)
        hits: List[Fragment] = []
        claimed: Set[int] = set()
        y = self.start_y
        while y < height:
            indexes = [
                i for i, w in enumerate(in_column)
                if i not in claimed and y <= w.center_y < y + self.scan_height
            ]
            claimed.update(indexes)
            window = [in_column[i] for i in indexes]
            if window:
                window.sort(key=lambda w: (round(w.top), w.x0))
                text = " ".join(w.text for w in window).strip()
                if text:
                    hits.append(Fragment(y, text, min(w.top for w in window)))
            y += self.scan_increment
        return remove_duplicate_adjacent(hits)

    def scan(self, page: PageContent, layout: ColumnLayout) -> Dict[str, List[Fragment]]:
        if not page.words:
            log.debug("Page %s sans mots positionnés : lecture du flux texte", page.number)
            return TextStreamBackend().scan(page, layout)
        return {col.name: self.scan_column(page, col) for col in layout.columns}


# ─────────────────────────────────────────────────────────────
# SCANNER
# ─────────────────────────────────────────────────────────────

class ColumnScanner:
    """Façade commune aux deux backends."""

    def __init__(self, backend=None):
        self.backend = backend or CoordinateSweepBackend()

    @property
    def name(self) -> str:
        return self.backend.name

    def scan_columns(self, page: PageContent, layout: ColumnLayout) -> Dict[str, List[Fragment]]:
        return self.backend.scan(page, layout)

    def scan_rows(
        self, page: PageContent, layout: ColumnLayout, tolerance: Optional[float] = None
    ) -> List[ScanRow]:
        """Regroupe les fragments de toutes les colonnes par ligne logique."""
        if tolerance is None:
            tolerance = self.backend.row_tolerance if page.words else 0.0
        columns = self.scan_columns(page, layout)
        order = {name: i for i, name in enumerate(layout.names)}
        tagged = sorted(
            ((frag.row, order[name], name, frag) for name, frags in columns.items() for frag in frags),
            key=lambda t: (t[0], t[1]),
        )
        rows: List[ScanRow] = []
        for anchor, _, name, frag in tagged:
            if not rows or anchor - rows[-1].y > tolerance:
                rows.append(ScanRow(anchor))
            row = rows[-1]
            row.cells[name] = f"{row.cells[name]} {frag.text}" if name in row.cells else frag.text
        return rows


def make_scanner(backend: str = "coordinates", **options) -> ColumnScanner:
    """'coordinates' (balayage) ou 'text' (flux séquentiel)."""
    if backend == "coordinates":
        return ColumnScanner(CoordinateSweepBackend(**options))
    if backend == "text":
        return ColumnScanner(TextStreamBackend())
    raise ValueError(f"Backend d'extraction inconnu : {backend!r}")
