"""
Point d'entrée en ligne de commande : qui est de garde à Segovia ?

Usage:
  guardia-segovia --location segovia-capital
  guardia-segovia --zone la-granja --at 2025-07-15T21:45
  guardia-segovia --location cuellar --pdf GUARDIAS-CUELLAR_2025.pdf --output-dir out/
  guardia-segovia --all --force-refresh
"""

from __future__ import annotations

import argparse
import datetime as dt
import logging
from dataclasses import replace
from typing import List, Optional

from .config import config
from .document_source import LocalDocumentSource, PdfDocumentSource
from .engine import CurrentDuty, ScheduleEngine
from .export import records_to_frame, write_outputs
from .locations import REGIONS, ZONE_IDS, DutyLocation
from .scanner import make_scanner
from .store import make_store

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Farmacias de guardia en Segovia : résolution des calendriers PDF du Colegio."
    )
    parser.add_argument(
        "--location", default="segovia-capital", choices=list(REGIONS) + ZONE_IDS,
        help="Région ou ZBS (défaut: segovia-capital).",
    )
    parser.add_argument("--zone", choices=ZONE_IDS, default=None, help="ZBS de la région rurale.")
    parser.add_argument("--pdf", default=None, help="PDF local à utiliser au lieu du téléchargement.")
    parser.add_argument(
        "--at", type=dt.datetime.fromisoformat, default=None,
        help="Instant ISO (ex: 2025-07-15T21:45), défaut: maintenant.",
    )
    parser.add_argument(
        "--date", type=dt.date.fromisoformat, default=None,
        help="Afficher le calendrier d'un jour (ex: 2025-07-15).",
    )
    parser.add_argument("--backend", choices=["coordinates", "text"], default=None,
                        help="Backend d'extraction (défaut: GUARDIA_SCAN_BACKEND).")
    parser.add_argument("--force-refresh", action="store_true", help="Ignorer le cache.")
    parser.add_argument("--output-dir", default=None, help="Exporter les gardes en CSV dans ce répertoire.")
    parser.add_argument("--all", action="store_true", help="Charger les quatre régions en parallèle.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Journalisation DEBUG.")
    return parser


def print_duty(duty: Optional[CurrentDuty], now: dt.datetime) -> None:
    if duty is None:
        print(f"  ⚠️  Aucune pharmacie de garde trouvée à {now:%d/%m/%Y %H:%M}")
        return
    print(f"  {duty.active_span.icon} {duty.active_span} — {duty.record.date}")
    for pharmacy in duty.active_pharmacies:
        print(f"     • {pharmacy.name}")
        print(f"       {pharmacy.address} | Tfno: {pharmacy.formatted_phone}")
        if pharmacy.additional_info:
            print(f"       {pharmacy.additional_info}")
    if duty.outside_nominal_hours:
        print("  ⚠️  Hors de l'horaire habituel de la zone : appeler avant de se déplacer.")
    if duty.should_show_warning:
        print(f"  ⏰ Fin du service dans {duty.minutes_until_end} minutes.")
    nxt = duty.next_shift
    if nxt is not None:
        names = ", ".join(p.name for p in nxt.pharmacies) or "—"
        gap = " (interruption)" if nxt.is_gapped else ""
        print(f"  ➡️  Ensuite : {nxt.label}, {nxt.record.date}{gap} : {names}")


def export(engine: ScheduleEngine, location_ids: List[str], output_dir: str, force_refresh: bool) -> None:
    for location_id in location_ids:
        frame = records_to_frame(location_id, engine.load(location_id, force_refresh))
        csv_path, _ = write_outputs(frame, output_dir, location_id)
        print(f"  📄 {location_id:<16}: {csv_path}")


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    cfg = config if args.backend is None else replace(config, scan_backend=args.backend)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else cfg.log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    location_id = args.zone or args.location
    region_id = DutyLocation.from_id(location_id).owner_region_id
    if args.pdf:
        source = LocalDocumentSource({region_id: args.pdf}, with_words=cfg.scan_backend != "text")
    else:
        source = PdfDocumentSource(cfg=cfg)
    engine = ScheduleEngine(source, store=make_store(cfg), scanner=make_scanner(cfg.scan_backend), cfg=cfg)
    now = args.at or engine.clock()

    print(f"\n{'='*60}")
    print("  💊 Farmacias de guardia — Segovia")
    print(f"{'='*60}")
    print(f"  Localisation : {location_id if not args.all else 'toutes les régions'}")
    print(f"  Instant      : {now:%d/%m/%Y %H:%M}")
    print(f"  Backend      : {engine.scanner.name}")
    if args.pdf:
        print(f"  PDF          : {args.pdf}")
    print()

    if args.all:
        loaded = engine.load_all(force_refresh=args.force_refresh)
        for loc in REGIONS:
            print(f"  {REGIONS[loc].icon} {REGIONS[loc].name:<24}: {len(loaded.get(loc, []))} jours")
            print_duty(engine.current(loc, now), now)
        if args.output_dir:
            export(engine, list(REGIONS), args.output_dir, force_refresh=False)
        print()
        return

    if args.zone:
        duty = engine.current_zone(args.zone, now, force_refresh=args.force_refresh)
    else:
        duty = engine.current(location_id, now, force_refresh=args.force_refresh)
    print_duty(duty, now)

    if args.date:
        record = engine.for_date(location_id, args.date)
        print(f"\n  📅 {args.date:%d/%m/%Y}")
        if record is None:
            print("     Aucune garde publiée pour ce jour.")
        else:
            for span, pharmacies in record.shifts.items():
                print(f"     {span.icon} {span.label} : {', '.join(p.name for p in pharmacies) or '—'}")

    result = engine.results.get(region_id)
    if result is not None:
        print(f"\n  📊 Statistiques :")
        print(f"     Enregistrements : {len(result.records)}")
        if result.zone_records:
            print(f"     Lignes ZBS      : {len(result.zone_records)}")
        print(f"     Incidents       : {len(result.issues)}")

    if args.output_dir:
        export(engine, [location_id], args.output_dir, force_refresh=False)
    print()


if __name__ == "__main__":
    main()
