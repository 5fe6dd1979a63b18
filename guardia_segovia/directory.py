"""
Annuaire des pharmacies : jetons bruts du PDF -> fiches complètes.

Les tables sont des constantes de module en lecture seule (MappingProxyType),
partageables sans verrou entre threads. Les PDF de Cuéllar, El Espinar et
des zones rurales n'impriment qu'un jeton (rue, village) ; la fiche complète
vient d'ici. Un jeton absent ne fait jamais échouer un parsing : une fiche
de remplacement est produite et l'absence est journalisée.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
import unicodedata
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .errors import DirectoryMissError, ScheduleError
from .locations import CUELLAR_REGION_ID, EL_ESPINAR_REGION_ID, RURAL_REGION_ID
from .models import NO_ADDRESS, NO_PHONE, Pharmacy
from .temporal import DutyDate

log = logging.getLogger(__name__)

Entry = Tuple[str, str, str]  # (nom, adresse, téléphone)


# ---------------------------------------------------------------------------
# Normalisation des jetons
# ---------------------------------------------------------------------------

RE_ANY_SPACE = re.compile(r"[\s\u00A0\u2000-\u200A\u2028\u2029\u202F\u205F\u3000]+")


def normalize_token(value: object) -> str:
    """Majuscules, espaces (y compris Unicode) réduits à un seul."""
    return RE_ANY_SPACE.sub(" ", str(value or "")).strip().upper()


def ascii_upper(value: object) -> str:
    """Convertit en majuscules ASCII sans accents."""
    text = str(value or "").replace("ª", "A").replace("º", "O")
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return normalize_token(text)


# ---------------------------------------------------------------------------
# Annuaire
# ---------------------------------------------------------------------------

class PharmacyDirectory:
    """Table statique jeton -> fiche, avec surcharges par ZBS."""

    def __init__(
        self,
        name: str,
        entries: Mapping[str, Entry],
        overrides: Optional[Mapping[str, Mapping[str, Entry]]] = None,
    ):
        self.name = name
        self._entries = MappingProxyType({normalize_token(k): v for k, v in entries.items()})
        self._folded = MappingProxyType({ascii_upper(k): normalize_token(k) for k in entries})
        self._overrides = MappingProxyType({
            zone: MappingProxyType({normalize_token(k): v for k, v in table.items()})
            for zone, table in (overrides or {}).items()
        })

    @property
    def keys(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, token: object) -> bool:
        return self._find(str(token), None) is not None

    def __len__(self) -> int:
        return len(self._entries) + sum(len(t) for t in self._overrides.values())

    def _find(self, token: str, zone_id: Optional[str]) -> Optional[Entry]:
        key = normalize_token(token)
        if zone_id and key in self._overrides.get(zone_id, {}):
            return self._overrides[zone_id][key]
        if key in self._entries:
            return self._entries[key]
        folded = self._folded.get(ascii_upper(token))
        if folded is not None:
            return self._entries[folded]
        for table in self._overrides.values():
            if key in table:
                return table[key]
        return None

    def get(self, token: str, zone_id: Optional[str] = None) -> Optional[Pharmacy]:
        entry = self._find(token, zone_id)
        if entry is None:
            return None
        name, address, phone = entry
        return Pharmacy(name, address, phone)

    def lookup(
        self,
        raw_token: str,
        zone_id: Optional[str] = None,
        issues: Optional[List[ScheduleError]] = None,
        additional_info: Optional[str] = None,
    ) -> Pharmacy:
        """
        Recherche exacte insensible à la casse (puis aux accents).
        En cas d'absence : fiche de remplacement portant le jeton brut.
        """
        entry = self._find(raw_token, zone_id)
        if entry is None:
            log.warning(
                "Annuaire %s : aucune fiche pour %r%s",
                self.name, raw_token, f" (ZBS {zone_id})" if zone_id else "",
            )
            if issues is not None:
                issues.append(DirectoryMissError(raw_token, zone_id))
            return Pharmacy(normalize_token(raw_token) or raw_token, NO_ADDRESS, NO_PHONE, additional_info)
        name, address, phone = entry
        return Pharmacy(name, address, phone, additional_info)

    def find_key(self, text: str) -> Optional[str]:
        """Clé la plus longue contenue dans une ligne composite, sinon None."""
        haystack = normalize_token(text)
        folded = ascii_upper(text)
        best: Optional[str] = None
        for key in self._entries:
            if key in haystack or ascii_upper(key) in folded:
                if best is None or len(key) > len(best):
                    best = key
        return best


# ---------------------------------------------------------------------------
# Règles particulières de la région rurale
# ---------------------------------------------------------------------------

# Cellule combinée : deux villages dans une seule case du PDF
COMBINED_CELLS: Dict[Tuple[str, ...], Tuple[str, ...]] = {
    ("S.E. GORMAZ", "SEPULVEDA"): ("S.E. GORMAZ (SORIA)", "SEPÚLVEDA"),
}

# Alternance hebdomadaire : date de référence, (semaines paires, semaines impaires)
ALTERNATIONS: Dict[str, Tuple[dt.date, Tuple[str, str]]] = {
    "la-granja": (
        dt.date(2024, 12, 30),
        ("LA GRANJA - DOLORES", "LA GRANJA - VALENCIANA"),
    ),
}
ALTERNATION_TRIGGERS = {"la-granja": "LA GRANJA"}

CANTALEJO_ZONE_ID = "cantalejo"
CANTALEJO_OVERRIDE = ("CANTALEJO-1", "CANTALEJO-2")


def expand_combined_token(
    raw_token: str, zone_id: Optional[str] = None, date: Optional[Union[DutyDate, dt.date]] = None
) -> List[str]:
    """
    Une cellule contenant deux villages donne deux clés de recherche ;
    toute autre cellule donne sa propre clé.
    """
    folded = ascii_upper(raw_token)
    for markers, keys in COMBINED_CELLS.items():
        if all(marker in folded for marker in markers):
            log.debug("Cellule combinée %r (ZBS %s, %s) -> %s", raw_token, zone_id, date, list(keys))
            return list(keys)
    return [normalize_token(raw_token)]


def resolve_alternating_entry(zone_id: str, date: Union[DutyDate, dt.date]) -> Optional[str]:
    """
    Pharmacie de la semaine pour une ZBS dont le PDF n'imprime que le nom
    générique : semaines écoulées depuis la référence, paire ou impaire.
    None pour une ZBS sans alternance.
    """
    if zone_id not in ALTERNATIONS:
        return None
    reference, (even, odd) = ALTERNATIONS[zone_id]
    if isinstance(date, DutyDate):
        if not date.is_resolved:
            log.warning("Alternance %s : année inconnue pour %s, %s par défaut", zone_id, date, even)
            return even
        date = date.to_date()
    weeks = (date - reference).days // 7
    return even if weeks % 2 == 0 else odd


def needs_alternation(zone_id: str, raw_token: str) -> bool:
    trigger = ALTERNATION_TRIGGERS.get(zone_id)
    return trigger is not None and trigger in ascii_upper(raw_token)


# ---------------------------------------------------------------------------
# Données
# ---------------------------------------------------------------------------

CUELLAR_DIRECTORY = PharmacyDirectory(
    "Cuéllar",
    {
        "Av C.J. CELA": (
            "Farmacia Fernando Redondo",
            "Av. Camilo Jose Cela, 46, 40200 Cuéllar, Segovia",
            NO_PHONE,
        ),
        "Ctra. BAHABON": (
            "Farmacia San Andrés",
            "Ctra. Bahabón, 9, 40200 Cuéllar, Segovia",
            "921144794",
        ),
        "C/ RESINA": (
            "Farmacia Ldo. Fco. Javier Alcaraz García de la Barrera",
            "C. Resina, 14, 40200 Cuéllar, Segovia",
            "921144812",
        ),
        "STA. MARINA": (
            "Farmacia Ldo. César Cabrerizo Izquierdo",
            "Calle Sta. Marina, 5, 40200 Cuéllar, Segovia",
            "921140606",
        ),
    },
)

EL_ESPINAR_DIRECTORY = PharmacyDirectory(
    "El Espinar",
    {
        "AV. HONTANILLA 18": (
            "FARMACIA ANA MARÍA APARICIO HERNAN",
            "Av. Hontanilla, 18, 40400 El Espinar, Segovia",
            "921 181 011",
        ),
        "C/ MARQUES PERALES": (
            "Farmacia Lda M J. Bartolomé Sánchez",
            "Calle del, C. Marqués de Perales, 2, 40400, Segovia",
            "921 181 171",
        ),
        "SAN RAFAEL": (
            "Farmacia San Rafael",
            "Tr.ª Alto del León, 19, 40410 San Rafael, Segovia",
            "921 171 105",
        ),
    },
)

RURAL_DIRECTORY = PharmacyDirectory(
    "Segovia Rural",
    {
        # ZBS Riaza / Sepúlveda
        "RIAZA": ("Farmacia César Fernando Gutiérrez Miguel",
                  "C. Ricardo Provencio, 16, 40500 Riaza, Segovia", "921550131"),
        "SEPÚLVEDA": ("Farmacia Francisco Ruiz Carrasco",
                      "Pl. España, 16, 40300 Sepúlveda, Segovia", "921540018"),
        "S.E. GORMAZ (SORIA)": ("Farmacia Irigoyen",
                                "C. Escuelas, 5, 42330 San Esteban de Gormaz, Soria", "975350208"),
        "CEREZO ABAJO": ("Farmacia Mario Caballero Serrano",
                         "C. Real, 2, 40591 Cerezo de Abajo, Segovia", "921557110"),
        "BOCEGUILLAS": ("Farmacia Lcda Mª del Pilar Villas Miguel",
                        "C. Bayona, 21, 40560 Boceguillas, Segovia", "921543849"),
        "AYLLÓN": ("Farmacia Luis de la Peña Buquerin",
                   "Plaza Mayor, 12, 40520 Ayllón, Segovia", "921553003"),
        # ZBS La Granja
        "LA GRANJA - VALENCIANA": ("Farmacia Cristina Mínguez Del Pozo",
                                   "C. Valenciana, 3, BAJO, 40100 Real Sitio de San Ildefonso, Segovia",
                                   "921470038"),
        "LA GRANJA - DOLORES": ("Farmacia Almudena Martínez Pardo del Valle",
                                "Plaza los de Dolores, 7, 40100 Real Sitio de San Ildefonso, Segovia",
                                "921472391"),
        # ZBS La Sierra
        "PRÁDENA": ("Farmacia Ana Belén Tomero Díez",
                    "Calle Pl., 18, 40165 Prádena, Segovia", "921507050"),
        "ARCONES": ("Farmacia Teresa Laporta Sánchez",
                    "Pl. Mayor, 3, 40164 Arcones, Segovia", "921504134"),
        "NAVAFRÍA": ("Farmacia Martín Cuesta",
                     "C. la Reina, 0, 40161 Navafría, Segovia", "921506113"),
        "TORREVAL": ("Farmacia Lda. Mónica Carrasco Herrero",
                     "Travesia la Fragua, 16, 40171 Torre Val de San Pedro, Segovia", "921506028"),
        # ZBS Fuentidueña
        "HONTALBILLA": ("Farmacia Lcdo Burgos Burgos Isabel",
                        "Plaza Mayor, 1, 40353 Hontalbilla, Segovia", "921148190"),
        "TORRECILLA": ("Farmacia Lcdo Gallego Esteban Fernando",
                       "C. Povedas, 6, 40359 Torrecilla del Pinar, Segovia", NO_PHONE),
        # Coquille du PDF pour TORRECILLA
        "TORRECELLA": ("Farmacia Lcdo Gallego Esteban Fernando",
                       "C. Povedas, 6, 40359 Torrecilla del Pinar, Segovia", NO_PHONE),
        "OLOMBRADA": ("Dr. Jesús Santos del Cura",
                      "C. Real, 3, 40220 Olombrada, Segovia", "921164327"),
        "FUENTIDUEÑA": ("Farmacia Fuentidueña",
                        "C. Real, 40, 40357 Fuentidueña, Segovia", "921533630"),
        "SACRAMENIA": ("Farmacia Gloria Hernando Bayón",
                       "C. Manuel Sanz Burgoa, 14, 40237 Sacramenia, Segovia", "921527501"),
        "FUENTESAUCO": ("Farmacia Paloma María Prieto Pérez",
                        "S N, Plaza Mercado, 0, 40355 Fuentesaúco de Fuentidueña, Segovia", NO_PHONE),
        # ZBS Carbonero
        "NAVALMANZANO": ("Farmacia Carmen I. Tomero Díez",
                         "Pl. Mayor, 2, 40280 Navalmanzano, Segovia", "921575109"),
        "CARBONERO M": ("Farmacia Carbonero",
                        "Pl. Pósito Real, 1, 40270 Carbonero el Mayor, Segovia", "921560427"),
        "ZARZUELA PINAR": ("Farmacia Maria Sol Benito Sanz",
                           "C/ Caño, 7, 40293 Zarzuela del Pinar (Segovia)", "921574621"),
        "ESCARABAJOSA": ("Farmacia GILSANZ",
                         "Pl. Mayor, 40291 Escarabajosa de Cabezas, Segovia", "921562159"),
        "LASTRAS DE CUÉLLAR": ("Farmacia Mª Antonia Sacristán Rodríguez",
                               "C. Rincón, 3, 40352 Lastras de Cuéllar, Segovia", "921169250"),
        "FUENTEPELAYO": ("Farmacia Lda. Patricia Avellón Senovilla",
                         "C. Santillana, 3, 40260 Fuentepelayo, Segovia", "921574392"),
        "CANTIMPALOS": ("Farmacia Enrique Covisa Nager",
                        "Pl. Mayor, 17, 40360 Cantimpalos, Segovia", "921496025"),
        "AGUILAFUENTE": ("Farmacia Miriam Chamorro García",
                         "Av. del Escultor D. Florentino Trapero, 5, 40340 Aguilafuente, Segovia",
                         "921572445"),
        "MOZONCILLO": ("Farmacia Isabel Frías López",
                       "C. Real, 16-18, 40250 Mozoncillo, Segovia", "921577273"),
        "ESCALONA": ("Farmacia Matilde García García",
                     "C. de la Cruz, 6, 40350 Escalona del Prado, Segovia", "921570026"),
        # ZBS Navas de la Asunción
        "COCA": ("Farmacia Ana Isabel Maroto Arenas",
                 "Pl. Arco, 2, 40480 Coca, Segovia", "921586677"),
        "STA. Mª REAL": ("Farmacia Pilar Tribiño Mendiola",
                         "Pl. Mayor, 11, 40440 Santa María la Real de Nieva, Segovia", "921594013"),
        "NIEVA": ("Farmacia María Dolores Gómez Roán",
                  "Calle Ayuntamiento, 12, 40447 Nieva, Segovia", "921594727"),
        "SANTIUSTE": ("Farmacia Lda Amparo Maroto Gomez",
                      "Pl. Iglesia, 5, 40460 Santiuste de San Juan Bautista, Segovia", "921596259"),
        "NAVAS DE ORO": ("Farmacia Cubero. Gdo. Sergio Cubero de Blas",
                         "C. Libertad, 1, 40470 Navas de Oro, Segovia", "921591585"),
        "NAVA DE LA A": ("Farmacia Ldo. Vicente Rebollo Antolín Javier",
                         "C. de Elías Vírseda, 3, 40450 Nava de la Asunción, Segovia", "921580533"),
        "BERNARDOS": ("Farmacia Lcdo Casado Rata Coral",
                      "Pl. Mayor, 8, 40430 Bernardos, Segovia", "921566012"),
        # ZBS Villacastín
        "VILLACASTÍN": ("Farmacia Cristina Herradón Gil-Gallardo",
                        "Calle Iglesia, 18, 40150 Villacastín, Segovia", "921198173"),
        "ZARZUELA M.": ("Farmacia María A. Reviriego Morcuende",
                        "Av. San Antonio, 2, 40152 Zarzuela del Monte, Segovia", "921198297"),
        "NAVAS DE SA": ("Farmacia María José Martín Barguilla",
                        "C. Diana, 21, 40408 Navas de San Antonio, Segovia", "921193128"),
        "MAELLO (ÁVILA)": ("Farmacia Noelia Guerra García",
                           "Calle Vilorio, 8, 05291 Maello, Ávila", "921192126"),
    },
    overrides={
        # Cantalejo n'apparaît pas dans le PDF : saisie manuelle
        CANTALEJO_ZONE_ID: {
            "CANTALEJO-1": ("Farmacia en Cantalejo",
                            "C. Frontón, 15, 40320 Cantalejo, Segovia", "921520053"),
            "CANTALEJO-2": ("Farmacia Carmen Bautista",
                            "C. Inge Martín Gil, 10, 40320 Cantalejo, Segovia", "921520005"),
        },
    },
)

# Clés de l'annuaire rural par ZBS (recherche par mot-clé sur une ligne entière)
RURAL_ZONE_KEYS: Dict[str, Tuple[str, ...]] = {
    "riaza-sepulveda": ("RIAZA", "SEPÚLVEDA", "S.E. GORMAZ (SORIA)", "CEREZO ABAJO",
                        "BOCEGUILLAS", "AYLLÓN"),
    "la-granja": ("LA GRANJA - VALENCIANA", "LA GRANJA - DOLORES"),
    "la-sierra": ("PRÁDENA", "ARCONES", "NAVAFRÍA", "TORREVAL"),
    "fuentiduena": ("HONTALBILLA", "TORRECILLA", "TORRECELLA", "OLOMBRADA",
                    "FUENTIDUEÑA", "SACRAMENIA", "FUENTESAUCO"),
    "carbonero": ("NAVALMANZANO", "CARBONERO M", "ZARZUELA PINAR", "ESCARABAJOSA",
                  "LASTRAS DE CUÉLLAR", "FUENTEPELAYO", "CANTIMPALOS", "AGUILAFUENTE",
                  "MOZONCILLO", "ESCALONA"),
    "navas-asuncion": ("COCA", "STA. Mª REAL", "NIEVA", "SANTIUSTE", "NAVAS DE ORO",
                       "NAVA DE LA A", "BERNARDOS"),
    "villacastin": ("VILLACASTÍN", "ZARZUELA M.", "NAVAS DE SA", "MAELLO (ÁVILA)"),
}


def find_zone_keys(text: str, zone_id: str) -> List[str]:
    """
    Clés de la ZBS présentes dans un texte, dans l'ordre d'apparition.
    Les cellules combinées sont développées avant la recherche.
    """
    folded = ascii_upper(text)
    found: List[Tuple[int, str]] = []
    zone_keys = RURAL_ZONE_KEYS.get(zone_id, ())
    for markers, keys in COMBINED_CELLS.items():
        if all(marker in folded for marker in markers) and keys[0] in zone_keys:
            found.extend((folded.find(markers[i]), key) for i, key in enumerate(keys))
    for key in zone_keys:
        position = folded.find(ascii_upper(key))
        if position >= 0 and all(key != k for _, k in found):
            found.append((position, key))
    return [key for _, key in sorted(found)]


DIRECTORIES: Dict[str, PharmacyDirectory] = {
    CUELLAR_REGION_ID: CUELLAR_DIRECTORY,
    EL_ESPINAR_REGION_ID: EL_ESPINAR_DIRECTORY,
    RURAL_REGION_ID: RURAL_DIRECTORY,
}


def directory_for(location_id: str) -> Optional[PharmacyDirectory]:
    return DIRECTORIES.get(location_id)


def lookup(
    raw_token: str,
    zone_id: Optional[str] = None,
    issues: Optional[List[ScheduleError]] = None,
) -> Pharmacy:
    """Recherche dans l'annuaire rural (le seul indexé par ZBS)."""
    return RURAL_DIRECTORY.lookup(raw_token, zone_id=zone_id, issues=issues)
