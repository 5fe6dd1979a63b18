"""
Tests des calendriers hebdomadaires de Cuéllar et d'El Espinar.
"""

import datetime as dt

from guardia_segovia.errors import ParseError
from guardia_segovia.parsers import parse_document
from guardia_segovia.parsers.weekly import RunningYear, identify_el_espinar, is_header, parse_free_block
from guardia_segovia.scanner import PageContent, make_scanner
from guardia_segovia.temporal import DutyTimeSpan

NOW = dt.datetime(2025, 1, 10, 12, 0)
TEXT = make_scanner("text")


def only_pharmacy(record):
    pharmacies = record.pharmacies_for(DutyTimeSpan.FULL_DAY)
    assert len(pharmacies) == 1
    return pharmacies[0]


class TestRunningYear:
    def test_increments_on_new_year(self):
        """Le 1er janvier après décembre fait passer à l'année suivante."""
        counter = RunningYear(2024)
        dates = [counter.resolve(t) for t in ("30-dic", "31-dic", "01-ene", "02-ene")]
        assert [d.year for d in dates] == [2024, 2024, 2025, 2025]

    def test_first_token_is_new_year(self):
        """Un document qui commence le 1er janvier garde l'année détectée."""
        counter = RunningYear(2025)
        assert counter.resolve("01-ene").year == 2025


class TestHelpers:
    def test_header(self):
        assert is_header("LUNES MARTES MIÉRCOLES JUEVES")
        assert is_header("Colegio Oficial de Farmacéuticos")
        assert not is_header("06-ene 07-ene C/ RESINA")

    def test_identify_el_espinar(self):
        assert identify_el_espinar("06-ene AV. HONTANILLA 18") == "AV. HONTANILLA 18"
        assert identify_el_espinar("09-ene C/ MARQUÉS PERALES 2") == "C/ MARQUES PERALES"
        assert identify_el_espinar("11-ene 12-ene SAN RAFAEL") == "SAN RAFAEL"
        assert identify_el_espinar("SAN RAFAEL 11-ene") is None

    def test_free_block_orders(self):
        """Nom en bas ou nom en haut du bloc libre."""
        bottom = parse_free_block(["Tfno: 921 000000", "C/ NUEVA, 1", "FARMACIA NUEVA"])
        top = parse_free_block(["FARMACIA NUEVA", "C/ NUEVA, 1", "Tfno: 921 000000"])
        assert bottom == top
        assert bottom.phone == "921 000000"
        assert parse_free_block(["C/ NUEVA, 1", "Tfno: 921 000000", "Centro"]) is None


class TestCuellar:
    def test_december_start_and_rollover(self, cuellar_page):
        """Dates de décembre en tête : année - 1, puis passage au 1er janvier."""
        result = parse_document("cuellar", [cuellar_page], scanner=TEXT, now=NOW)
        dates = [r.date.to_date() for r in result.records]
        assert dates == [
            dt.date(2024, 12, 30), dt.date(2024, 12, 31), dt.date(2025, 1, 1), dt.date(2025, 1, 2),
            dt.date(2025, 1, 3), dt.date(2025, 1, 4), dt.date(2025, 1, 5),
        ]
        assert result.records[0].date.weekday_name == "lunes"

    def test_pharmacies_from_directory(self, cuellar_page):
        """Chaque date accumulée reçoit la pharmacie de la clé de rue."""
        result = parse_document("cuellar", [cuellar_page], scanner=TEXT, now=NOW)
        first, last = only_pharmacy(result.records[0]), only_pharmacy(result.records[-1])
        assert first.name == "Farmacia San Andrés"
        assert first.phone == "921144794"
        assert last.name == "Farmacia Ldo. Fco. Javier Alcaraz García de la Barrera"
        assert all(r.spans == [DutyTimeSpan.FULL_DAY] for r in result.records)

    def test_year_from_url(self, cuellar_page):
        result = parse_document(
            "cuellar", [cuellar_page], scanner=TEXT, now=NOW,
            pdf_url="https://cofsegovia.com/wp-content/uploads/2025/01/GUARDIAS-CUELLAR_2025.pdf",
        )
        assert result.records[0].date.year == 2024

    def test_unknown_street_is_not_a_pharmacy(self):
        """Sans clé connue ni bloc libre, les dates restent en attente et un incident est consigné."""
        page = PageContent(1, text="GUARDIAS CUELLAR 2025\n07-jul 08-jul C/ DESCONOCIDA\n")
        result = parse_document("cuellar", [page], scanner=TEXT, now=NOW)
        assert result.is_empty
        assert result.errors_of(ParseError)


class TestElEspinar:
    def test_three_pharmacies(self, el_espinar_page):
        result = parse_document("el-espinar", [el_espinar_page], scanner=TEXT, now=NOW)
        assert len(result.records) == 7
        names = [only_pharmacy(r).name for r in result.records]
        assert names[:3] == ["FARMACIA ANA MARÍA APARICIO HERNAN"] * 3
        assert names[3:5] == ["Farmacia Lda M J. Bartolomé Sánchez"] * 2
        assert names[5:] == ["Farmacia San Rafael"] * 2
        assert result.records[0].date.to_date() == dt.date(2025, 1, 6)

    def test_free_block(self):
        """Pharmacie hors annuaire : bloc libre de trois lignes."""
        text = (
            "GUARDIAS EL ESPINAR 2025\n"
            "13-ene 14-ene\n"
            "Tfno: 921 000000\n"
            "C/ NUEVA, 1\n"
            "FARMACIA NUEVA\n"
        )
        result = parse_document("el-espinar", [PageContent(1, text=text)], scanner=TEXT, now=NOW)
        assert [r.date.day for r in result.records] == [13, 14]
        pharmacy = only_pharmacy(result.records[0])
        assert (pharmacy.name, pharmacy.address, pharmacy.phone) == ("FARMACIA NUEVA", "C/ NUEVA, 1", "921 000000")

    def test_trailing_dates_reported(self, el_espinar_page):
        """Des dates sans pharmacie en fin de document sont signalées, pas inventées."""
        page = PageContent(1, text=el_espinar_page.text + "13-ene 14-ene\n")
        result = parse_document("el-espinar", [page], scanner=TEXT, now=NOW)
        assert len(result.records) == 7
        assert len(result.errors_of(ParseError)) == 1
