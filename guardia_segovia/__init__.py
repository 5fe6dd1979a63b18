"""
guardia_segovia : calendriers des pharmacies de garde de la province de Segovia.

PDF du Colegio de Farmacéuticos -> enregistrements de garde -> « qui est de
garde maintenant ? » pour une région ou une zone de santé rurale.
"""

from .engine import CurrentDuty, NextShiftSummary, ScheduleEngine, resolve_current, resolve_for_date, resolve_zone
from .locations import REGIONS, ZONES, DutyLocation
from .models import DutyRecord, Pharmacy, ZoneDutyRecord
from .parsers import parse_document
from .temporal import DutyDate, DutyTimeSpan

__version__ = "0.1.0"

__all__ = [
    "CurrentDuty",
    "DutyDate",
    "DutyLocation",
    "DutyRecord",
    "DutyTimeSpan",
    "NextShiftSummary",
    "Pharmacy",
    "REGIONS",
    "ScheduleEngine",
    "ZONES",
    "ZoneDutyRecord",
    "parse_document",
    "resolve_current",
    "resolve_for_date",
    "resolve_zone",
]
