"""
Catalogue statique des régions et des zones de santé (ZBS).

Une région possède son propre PDF ; une ZBS est une subdivision de la
région rurale. DutyLocation unifie les deux et sert de clé de cache et
de routage vers le bon parseur.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import UnknownLocationError
from .temporal import DutyTimeSpan


# ─────────────────────────────────────────────────────────────
# STRUCTURES DE DONNÉES
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Region:
    id: str
    name: str
    icon: str
    pdf_url: str
    notes: Optional[str] = None
    has_24_hour_pharmacies: bool = False
    is_monthly_schedule: bool = False
    # Mot-clé de l'URL / du lien sur la page de publication
    keywords: tuple = ()


@dataclass(frozen=True)
class Zone:
    id: str
    name: str
    icon: str
    notes: Optional[str] = None
    # Horaire nominal d'ouverture des pharmacies de la zone
    opening_span: DutyTimeSpan = DutyTimeSpan.RURAL_DAYTIME

    @property
    def hours_label(self) -> str:
        return {
            DutyTimeSpan.FULL_DAY: "24h",
            DutyTimeSpan.RURAL_EXTENDED_DAYTIME: "10h-22h",
        }.get(self.opening_span, "10h-20h")


@dataclass(frozen=True)
class DutyLocation:
    """Région ou ZBS ; une région est sa propre propriétaire."""
    id: str
    name: str
    icon: str
    notes: Optional[str]
    owner_region_id: str

    @property
    def is_region(self) -> bool:
        return self.owner_region_id == self.id

    @property
    def owner_region(self) -> Region:
        return REGIONS[self.owner_region_id]

    @classmethod
    def from_region(cls, region: Region) -> "DutyLocation":
        return cls(region.id, region.name, region.icon, region.notes, region.id)

    @classmethod
    def from_zone(cls, zone: Zone) -> "DutyLocation":
        return cls(zone.id, zone.name, zone.icon, zone.notes, RURAL_REGION_ID)

    @classmethod
    def from_id(cls, location_id: str) -> "DutyLocation":
        if location_id in REGIONS:
            return cls.from_region(REGIONS[location_id])
        if location_id in ZONES:
            return cls.from_zone(ZONES[location_id])
        raise UnknownLocationError(location_id)


# ─────────────────────────────────────────────────────────────
# CATALOGUE
# ─────────────────────────────────────────────────────────────

CAPITAL_REGION_ID = "segovia-capital"
CUELLAR_REGION_ID = "cuellar"
EL_ESPINAR_REGION_ID = "el-espinar"
RURAL_REGION_ID = "segovia-rural"

_PDF_BASE = "https://cofsegovia.com/wp-content/uploads"

REGIONS: Dict[str, Region] = {
    r.id: r for r in [
        Region(
            CAPITAL_REGION_ID, "Segovia Capital", "🏙",
            f"{_PDF_BASE}/2025/05/CALENDARIO-GUARDIAS-SEGOVIA-CAPITAL-DIA-2025.pdf",
            notes="Incluye guardias diurnas y nocturnas",
            has_24_hour_pharmacies=False, is_monthly_schedule=False,
            keywords=("capital",),
        ),
        Region(
            CUELLAR_REGION_ID, "Cuéllar", "🌳",
            f"{_PDF_BASE}/2025/01/GUARDIAS-CUELLAR_2025.pdf",
            notes="Servicios semanales excepto primera semana de septiembre",
            has_24_hour_pharmacies=True,
            keywords=("cuellar", "cuéllar"),
        ),
        Region(
            EL_ESPINAR_REGION_ID, "El Espinar / San Rafael", "⛰",
            f"{_PDF_BASE}/2025/01/Guardias-EL-ESPINAR_2025.pdf",
            notes="Servicios semanales",
            has_24_hour_pharmacies=True,
            keywords=("espinar", "san rafael"),
        ),
        Region(
            RURAL_REGION_ID, "Segovia Rural", "🚜",
            f"{_PDF_BASE}/2025/06/SERVICIOS-DE-URGENCIA-RURALES-2025.pdf",
            notes="Servicios de urgencia rurales",
            has_24_hour_pharmacies=True,
            keywords=("rural",),
        ),
    ]
}

ZONES: Dict[str, Zone] = {
    z.id: z for z in [
        Zone("riaza-sepulveda", "Riaza / Sepúlveda", "🏔️", "Zona de alta montaña",
             DutyTimeSpan.FULL_DAY),
        Zone("la-granja", "La Granja", "🏰", "Real Sitio con palacio histórico",
             DutyTimeSpan.RURAL_EXTENDED_DAYTIME),
        Zone("la-sierra", "La Sierra", "⛰️", "Zona de sierra"),
        Zone("fuentiduena", "Fuentidueña", "🏞️", "Zona de valle"),
        Zone("carbonero", "Carbonero", "🌲", "Zona de pinares"),
        Zone("navas-asuncion", "Navas de la Asunción", "🏘️", "Zona de pueblos pequeños"),
        Zone("villacastin", "Villacastín", "🚂", "Nudo ferroviario"),
        Zone("cantalejo", "Cantalejo", "🏘️", "Turno no publicado en el PDF"),
    ]
}

# Ordre d'affichage des ZBS
ZONE_IDS: List[str] = list(ZONES)


def all_locations() -> List[DutyLocation]:
    """Toutes les régions puis toutes les ZBS."""
    return (
        [DutyLocation.from_region(r) for r in REGIONS.values()]
        + [DutyLocation.from_zone(z) for z in ZONES.values()]
    )
