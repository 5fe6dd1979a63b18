"""
Export des enregistrements : dictionnaires JSON (stores) et DataFrames
pandas (CSV, une ligne par date x plage x pharmacie).
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import os
from typing import Dict, List, Sequence, Tuple

import pandas as pd

from .models import DutyRecord, Pharmacy, ZoneDutyRecord
from .temporal import DutyDate, DutyTimeSpan

log = logging.getLogger(__name__)

CSV_COLUMNS = [
    "location_id", "date", "weekday", "span_key", "span_label", "start", "end",
    "pharmacy_name", "address", "phone", "additional_info",
]


# ---------------------------------------------------------------------------
# Dictionnaires JSON
# ---------------------------------------------------------------------------

def date_to_dict(date: DutyDate) -> Dict:
    return {"weekday": date.weekday_name, "day": date.day, "month": date.month, "year": date.year}


def date_from_dict(data: Dict) -> DutyDate:
    return DutyDate(data.get("weekday", ""), int(data["day"]), data["month"], data.get("year"))


def pharmacy_to_dict(pharmacy: Pharmacy) -> Dict:
    return {
        "name": pharmacy.name,
        "address": pharmacy.address,
        "phone": pharmacy.phone,
        "additional_info": pharmacy.additional_info,
    }


def pharmacy_from_dict(data: Dict) -> Pharmacy:
    return Pharmacy(data["name"], data["address"], data["phone"], data.get("additional_info"))


def record_to_dict(record: DutyRecord) -> Dict:
    return {
        "date": date_to_dict(record.date),
        "shifts": {
            span.key: [pharmacy_to_dict(p) for p in pharmacies]
            for span, pharmacies in record.shifts.items()
        },
    }


def record_from_dict(data: Dict) -> DutyRecord:
    return DutyRecord(
        date_from_dict(data["date"]),
        {
            DutyTimeSpan.from_key(key): [pharmacy_from_dict(p) for p in pharmacies]
            for key, pharmacies in data.get("shifts", {}).items()
        },
    )


def zone_record_to_dict(record: ZoneDutyRecord) -> Dict:
    return {
        "date": date_to_dict(record.date),
        "zones": {
            zone_id: [pharmacy_to_dict(p) for p in pharmacies]
            for zone_id, pharmacies in record.pharmacies_by_zone.items()
        },
    }


def zone_record_from_dict(data: Dict) -> ZoneDutyRecord:
    return ZoneDutyRecord(
        date_from_dict(data["date"]),
        {
            zone_id: [pharmacy_from_dict(p) for p in pharmacies]
            for zone_id, pharmacies in data.get("zones", {}).items()
        },
    )


# ---------------------------------------------------------------------------
# DataFrames
# ---------------------------------------------------------------------------

def records_to_frame(location_id: str, records: Sequence[DutyRecord]) -> pd.DataFrame:
    """Une ligne par (date, plage, pharmacie) ; les dates sans année sont ignorées."""
    rows: List[Dict] = []
    for record in records:
        if not record.date.is_resolved:
            continue
        for span, pharmacies in record.shifts.items():
            for pharmacy in pharmacies:
                rows.append({
                    "location_id":     location_id,
                    "date":            record.date.to_date().isoformat(),
                    "weekday":         record.date.weekday_name,
                    "span_key":        span.key,
                    "span_label":      span.label,
                    "start":           span.start_on(record.date).isoformat(timespec="minutes"),
                    "end":             span.end_on(record.date).isoformat(timespec="minutes"),
                    "pharmacy_name":   pharmacy.name,
                    "address":         pharmacy.address,
                    "phone":           pharmacy.formatted_phone,
                    "additional_info": pharmacy.additional_info,
                })
    if not rows:
        return pd.DataFrame(columns=CSV_COLUMNS)
    return (
        pd.DataFrame(rows, columns=CSV_COLUMNS)
        .drop_duplicates(subset=["date", "span_key", "pharmacy_name"])
        .sort_values(["date", "start"], kind="stable")
        .reset_index(drop=True)
    )


def write_outputs(frame: pd.DataFrame, output_dir: str, location_id: str) -> Tuple[str, str]:
    """Écrit le CSV et un résumé JSON ; retourne leurs chemins."""
    os.makedirs(output_dir, exist_ok=True)
    csv_path = os.path.join(output_dir, f"guardias_{location_id}.csv")
    summary_path = os.path.join(output_dir, f"guardias_{location_id}_resumen.json")

    frame.to_csv(csv_path, index=False, encoding="utf-8-sig")
    summary = {
        "location_id": location_id,
        "generated_at": dt.datetime.now().replace(microsecond=0).isoformat(),
        "stats": {
            "rows": int(len(frame)),
            "dates": int(frame["date"].nunique()) if len(frame) else 0,
            "unique_pharmacies": int(frame["pharmacy_name"].nunique()) if len(frame) else 0,
            "first_date": frame["date"].min() if len(frame) else None,
            "last_date": frame["date"].max() if len(frame) else None,
        },
    }
    with open(summary_path, "w", encoding="utf-8") as fh:
        json.dump(summary, fh, ensure_ascii=False, indent=2)
    log.info("✅ CSV sauvegardé : %s (%d lignes)", csv_path, len(frame))
    return csv_path, summary_path
