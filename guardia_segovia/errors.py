"""
Taxonomie des erreurs du moteur de résolution des gardes.

Les parseurs ne laissent jamais remonter ces exceptions au-delà de leur
frontière : ParseError est attrapée au niveau de la ligne / de la page,
DirectoryMissError et EmptyResultError sont consignées dans la liste
``issues`` du résultat de parsing.
"""

from __future__ import annotations

from typing import Optional


class ScheduleError(Exception):
    """Base de toutes les erreurs du moteur."""


class ParseError(ScheduleError):
    """Défaut local (date illisible, colonne incomplète, nom sans marqueur)."""

    def __init__(self, message: str, text: Optional[str] = None, page: Optional[int] = None):
        super().__init__(message)
        self.text = text
        self.page = page

    def __str__(self) -> str:
        base = super().__str__()
        if self.page is not None:
            base = f"page {self.page}: {base}"
        if self.text:
            base = f"{base} ({self.text!r})"
        return base


class DirectoryMissError(ScheduleError):
    """Jeton brut absent de l'annuaire des pharmacies."""

    def __init__(self, token: str, zone_id: Optional[str] = None):
        where = f" (ZBS {zone_id})" if zone_id else ""
        super().__init__(f"Aucune fiche pour le jeton {token!r}{where}")
        self.token = token
        self.zone_id = zone_id


class EmptyResultError(ScheduleError):
    """Le document complet n'a produit aucun enregistrement."""

    def __init__(self, location_id: str):
        super().__init__(f"Aucun enregistrement extrait pour {location_id}")
        self.location_id = location_id


class UnknownLocationError(ScheduleError, KeyError):
    """Identifiant de région / ZBS inconnu du catalogue."""

    def __init__(self, location_id: str):
        super().__init__(f"Localisation inconnue : {location_id!r}")
        self.location_id = location_id

    def __str__(self) -> str:
        return self.args[0]
