"""
Tests des modèles : pharmacie, enregistrements, tri.
"""

import datetime as dt

from guardia_segovia.models import NO_PHONE, DutyRecord, Pharmacy, ZoneDutyRecord, sort_records
from guardia_segovia.temporal import DutyDate, DutyTimeSpan


class TestPharmacy:
    def test_parse_block(self):
        """Nom, adresse, puis infos et téléphone."""
        pharmacy = Pharmacy.parse(["FARMACIA MAYOR", "C/ MAYOR, 1", "(Junto a la iglesia) Tfno: 921 123456"])
        assert pharmacy.name == "FARMACIA MAYOR"
        assert pharmacy.address == "C/ MAYOR, 1"
        assert pharmacy.phone == "921 123456"
        assert pharmacy.additional_info == "(Junto a la iglesia)"

    def test_parse_without_phone(self):
        pharmacy = Pharmacy.parse(["FARMACIA MAYOR", "C/ MAYOR, 1"])
        assert pharmacy.phone == NO_PHONE
        assert not pharmacy.has_phone
        assert pharmacy.formatted_phone == NO_PHONE

    def test_parse_rejects_blocks(self):
        """Pas de marqueur FARMACIA ou pas d'adresse : None."""
        assert Pharmacy.parse(["C/ MAYOR, 1", "Tfno: 921 123456"]) is None
        assert Pharmacy.parse(["FARMACIA SOLA"]) is None

    def test_parse_batch(self):
        """Groupes de trois lignes, nom en dernier ; un nom invalide est rejeté."""
        lines = [
            "Tfno: 921 000001", "C/ UNO, 1", "FARMACIA UNO",
            "Tfno: 921 000002", "C/ DOS, 2", "CENTRO DE SALUD",
            "Tfno: 921 000003", "C/ TRES, 3", "FARMACIA TRES",
        ]
        batch = Pharmacy.parse_batch(lines)
        assert [p.name for p in batch] == ["FARMACIA UNO", "FARMACIA TRES"]
        assert batch[1].phone == "921 000003"

    def test_formatted_phone(self):
        assert Pharmacy("F", "A", "921123456").formatted_phone == "921 123 456"
        assert Pharmacy("F", "A", "921 181 011").formatted_phone == "921 181 011"


class TestRecords:
    def test_pharmacies_for(self):
        """None pour une plage absente, [] pour une plage vide."""
        record = DutyRecord(DutyDate.from_date(dt.date(2025, 7, 15)), {DutyTimeSpan.CAPITAL_DAY: []})
        assert record.pharmacies_for(DutyTimeSpan.CAPITAL_DAY) == []
        assert record.pharmacies_for(DutyTimeSpan.CAPITAL_NIGHT) is None

    def test_zone_view(self):
        """La vue d'une ZBS est une garde de 24 heures."""
        pharmacy = Pharmacy("Farmacia Coca", "Pl. Arco, 2")
        record = ZoneDutyRecord(DutyDate.from_date(dt.date(2025, 1, 6)), {"navas-asuncion": [pharmacy]})
        view = record.for_zone("navas-asuncion")
        assert view.pharmacies_for(DutyTimeSpan.FULL_DAY) == [pharmacy]
        assert record.for_zone("villacastin").pharmacies_for(DutyTimeSpan.FULL_DAY) == []

    def test_sort_is_stable(self):
        """Tri par date ; à date égale, l'ordre d'origine est conservé."""
        day = DutyDate.from_date(dt.date(2025, 1, 2))
        first = DutyRecord(day, {DutyTimeSpan.FULL_DAY: [Pharmacy("A", "x")]})
        second = DutyRecord(day, {DutyTimeSpan.FULL_DAY: [Pharmacy("B", "y")]})
        earlier = DutyRecord(DutyDate.from_date(dt.date(2024, 12, 31)), {})
        ordered = sort_records([first, second, earlier])
        assert ordered[0] is earlier
        assert ordered[1] is first and ordered[2] is second
