"""
Modèles de données : pharmacie, enregistrement de garde, enregistrement par ZBS.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar

from .temporal import DutyDate, DutyTimeSpan

log = logging.getLogger(__name__)

PHARMACY_MARKER = "FARMACIA"
NO_PHONE = "No disponible"
NO_ADDRESS = "Dirección no disponible"

RE_PHONE = re.compile(r"Tfno:\s*(\d{3}\s*\d{6})", re.IGNORECASE)


def clean_space(value: object) -> str:
    """Normalise les espaces (y compris insécables) d'un texte."""
    text = str(value or "").replace("\xa0", " ")
    return re.sub(r"\s+", " ", text).strip()


def split_phone(text: str) -> tuple:
    """Sépare 'Tfno: 921 123456' du reste d'une ligne d'informations."""
    m = RE_PHONE.search(text)
    if not m:
        return None, clean_space(text)
    phone = clean_space(m.group(1))
    rest = clean_space(text[:m.start()] + " " + text[m.end():])
    return phone, rest


# ---------------------------------------------------------------------------
# Pharmacie
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Pharmacy:
    """Fiche pharmacie immuable."""
    name: str
    address: str
    phone: str = NO_PHONE
    additional_info: Optional[str] = None

    @property
    def has_phone(self) -> bool:
        return bool(self.phone) and self.phone != NO_PHONE

    @property
    def formatted_phone(self) -> str:
        """Numéro regroupé par blocs de trois chiffres ('921 123 456')."""
        if not self.has_phone:
            return self.phone
        digits = self.phone.replace(" ", "")
        return " ".join(digits[i:i + 3] for i in range(0, len(digits), 3))

    @classmethod
    def parse(cls, lines: Sequence[str]) -> Optional["Pharmacy"]:
        """
        Construit une pharmacie depuis un bloc de lignes libres :
        nom (contient FARMACIA), puis adresse, puis infos + téléphone.
        Retourne None si le bloc ne respecte pas ce schéma.
        """
        clean = [clean_space(line) for line in lines if clean_space(line)]
        name_index = next(
            (i for i, line in enumerate(clean) if PHARMACY_MARKER in line.upper()), None
        )
        if name_index is None:
            log.debug("Bloc sans marqueur FARMACIA : %s", clean)
            return None
        rest = clean[name_index + 1:]
        if not rest:
            log.debug("Bloc sans adresse après %r", clean[name_index])
            return None

        phone, info = split_phone(" ".join(rest[1:]))
        return cls(
            name=clean[name_index],
            address=rest[0],
            phone=phone or NO_PHONE,
            additional_info=info or None,
        )

    @classmethod
    def parse_batch(cls, lines: Sequence[str]) -> List["Pharmacy"]:
        """
        Découpe en groupes fixes de trois lignes (infos, adresse, nom : ordre
        de bas en haut de la colonne). Un groupe dont le nom ne contient pas
        FARMACIA est rejeté.
        """
        clean = [clean_space(line) for line in lines if clean_space(line)]
        if len(clean) % 3:
            log.debug("%d lignes, pas un multiple de 3 : dernier groupe incomplet", len(clean))

        pharmacies: List[Pharmacy] = []
        for i in range(0, len(clean) - 2, 3):
            info, address, name = clean[i:i + 3]
            if PHARMACY_MARKER not in name.upper():
                log.debug("Groupe rejeté, nom invalide : %r", name)
                continue
            phone, rest = split_phone(info)
            pharmacies.append(cls(name, address, phone or NO_PHONE, rest or None))
        return pharmacies


# ---------------------------------------------------------------------------
# Enregistrements de garde
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DutyRecord:
    """Une date et, pour chaque plage, la liste des pharmacies de garde."""
    date: DutyDate
    shifts: Dict[DutyTimeSpan, List[Pharmacy]] = field(default_factory=dict, hash=False)

    def pharmacies_for(self, span: DutyTimeSpan) -> Optional[List[Pharmacy]]:
        """None si la plage n'existe pas, [] si personne n'est de garde."""
        if span not in self.shifts:
            return None
        return list(self.shifts[span])

    @property
    def spans(self) -> List[DutyTimeSpan]:
        return list(self.shifts)


@dataclass(frozen=True)
class ZoneDutyRecord:
    """Ligne du calendrier rural : ZBS -> pharmacies, pour toutes les ZBS."""
    date: DutyDate
    pharmacies_by_zone: Dict[str, List[Pharmacy]] = field(default_factory=dict, hash=False)

    def pharmacies_for_zone(self, zone_id: str) -> List[Pharmacy]:
        return list(self.pharmacies_by_zone.get(zone_id, []))

    @property
    def available_zone_ids(self) -> List[str]:
        return sorted(self.pharmacies_by_zone)

    def for_zone(self, zone_id: str) -> DutyRecord:
        """Vue mono-zone sous forme de garde de 24 heures."""
        return DutyRecord(self.date, {DutyTimeSpan.FULL_DAY: self.pharmacies_for_zone(zone_id)})


Record = TypeVar("Record", DutyRecord, ZoneDutyRecord)


def sort_records(records: Iterable[Record]) -> List[Record]:
    """Tri croissant (année, mois, jour) ; tri stable, l'ordre des lignes départage."""
    return sorted(records, key=lambda r: r.date.sort_key())
