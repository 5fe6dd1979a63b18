"""
Tests du modèle temporel : dates espagnoles, dates compactes et plages horaires.
"""

import datetime as dt

import pytest

from guardia_segovia.errors import ParseError
from guardia_segovia.temporal import (
    DutyDate,
    DutyTimeSpan,
    find_compact_dates,
    is_new_year_token,
    month_number,
    parse_compact_date,
    parse_spanish_date,
)


class TestSpanishDate:
    def test_full_date(self):
        """Date complète avec l'année imprimée."""
        date = parse_spanish_date("martes, 15 de julio de 2025")
        assert (date.weekday_name, date.day, date.month, date.year) == ("martes", 15, "julio", 2025)
        assert date.to_date() == dt.date(2025, 7, 15)

    def test_date_inside_line(self):
        """La date est trouvée au milieu d'une ligne plus longue."""
        date = parse_spanish_date("Guardia: lunes, 1 de diciembre de 2025 C/ REAL, 3")
        assert date.to_date() == dt.date(2025, 12, 1)

    def test_missing_year_uses_current_year(self):
        """Sans année : année courante de l'instant de référence."""
        date = parse_spanish_date("viernes, 3 de enero", now=dt.datetime(2025, 1, 10))
        assert date.year == 2025

    def test_first_days_of_january_belong_to_next_year(self):
        """Le 1er et le 2 janvier sans année tombent l'année suivante."""
        now = dt.datetime(2024, 12, 20)
        assert parse_spanish_date("miércoles, 1 de enero", now=now).year == 2025
        assert parse_spanish_date("jueves, 2 de enero", now=now).year == 2025

    def test_third_of_january_keeps_current_year(self):
        """En décembre, seul le début de janvier passe à l'année suivante."""
        now = dt.datetime(2025, 12, 28)
        assert parse_spanish_date("jueves, 1 de enero", now=now).year == 2026
        assert parse_spanish_date("viernes, 2 de enero", now=now).year == 2026
        assert parse_spanish_date("viernes, 3 de enero", now=now).year == 2025

    def test_weekday_without_accent_is_normalized(self):
        date = parse_spanish_date("miercoles, 16 de julio de 2025")
        assert date.weekday_name == "miércoles"

    def test_invalid_day_raises(self):
        """Un jour hors du mois est un défaut de parsing."""
        with pytest.raises(ParseError):
            parse_spanish_date("lunes, 31 de febrero de 2025")

    def test_no_date_raises(self):
        with pytest.raises(ParseError):
            parse_spanish_date("FARMACIA SIN FECHA")


class TestCompactDate:
    def test_two_digit_year(self):
        """'11-ago-25' : année 2025, jour de semaine recalculé."""
        date = parse_compact_date("11-ago-25")
        assert date.to_date() == dt.date(2025, 8, 11)
        assert date.weekday_name == "lunes"

    def test_without_year(self):
        """Sans année fournie, la date reste non résolue."""
        date = parse_compact_date("01-ene")
        assert not date.is_resolved
        with pytest.raises(ParseError):
            date.to_date()

    def test_with_explicit_year(self):
        date = parse_compact_date("01-ene", 2026)
        assert date.to_date() == dt.date(2026, 1, 1)
        assert date.weekday_name == "jueves"

    def test_token_year_wins(self):
        """L'année du jeton l'emporte sur l'année passée en paramètre."""
        assert parse_compact_date("06-ene-25", 2030).year == 2025

    def test_unicode_hyphen(self):
        assert parse_compact_date("3‐dic", 2024).to_date() == dt.date(2024, 12, 3)

    def test_unknown_month_raises(self):
        with pytest.raises(ParseError):
            parse_compact_date("05-xyz", 2025)

    def test_find_compact_dates(self):
        """Tous les jetons d'une ligne composite, dans l'ordre."""
        tokens = find_compact_dates("30-dic 31-dic 01-ene 02-ene Ctra. BAHABON")
        assert tokens == ["30-dic", "31-dic", "01-ene", "02-ene"]

    def test_new_year_token(self):
        assert is_new_year_token("01-ene")
        assert is_new_year_token("1-ene")
        assert not is_new_year_token("11-ene")
        assert not is_new_year_token("01-feb")


class TestDutyDate:
    def test_month_abbreviation_normalized(self):
        """Le mois est toujours stocké sous son nom complet."""
        assert DutyDate("", 5, "Ene", 2025).month == "enero"
        assert month_number("sept.") == 9

    def test_february_29_without_year(self):
        """Le 29 février est accepté tant que l'année est inconnue."""
        assert DutyDate("", 29, "febrero").day == 29
        with pytest.raises(ParseError):
            DutyDate("", 29, "febrero", 2025)

    def test_str_and_sort_key(self):
        date = DutyDate.from_date(dt.date(2025, 7, 15))
        assert str(date) == "martes, 15 de julio de 2025"
        assert date.sort_key() == (2025, 7, 15)

    def test_with_year_recomputes_weekday(self):
        date = DutyDate("", 30, "diciembre").with_year(2024)
        assert date.weekday_name == "lunes"


class TestDutyTimeSpan:
    def test_day_span_bounds(self):
        """Bornes incluses pour la garde de jour."""
        span = DutyTimeSpan.CAPITAL_DAY
        assert span.contains_time_of_day(10, 15)
        assert span.contains_time_of_day(22, 0)
        assert not span.contains_time_of_day(22, 1)
        assert not span.contains_time_of_day(10, 14)

    def test_night_span_crosses_midnight(self):
        """La plage de nuit couvre le soir ou le lendemain matin."""
        span = DutyTimeSpan.CAPITAL_NIGHT
        assert span.spans_midnight
        assert span.contains_time_of_day(23, 0)
        assert span.contains_time_of_day(9, 0)
        assert not span.contains_time_of_day(12, 0)

    @pytest.mark.parametrize("span", list(DutyTimeSpan))
    def test_every_minute_of_day(self, span):
        """Minute par minute : plage simple par intervalle, plage de nuit par OU."""
        start = span.start_hour * 60 + span.start_minute
        end = span.end_hour * 60 + span.end_minute
        for minute in range(1440):
            if end < start:
                expected = minute >= start or minute <= end
            else:
                expected = start <= minute <= end
            assert span.contains_time_of_day(minute // 60, minute % 60) == expected, minute

    def test_day_and_night_cover_the_clock(self):
        """Jour et nuit couvrent toute la journée et ne partagent que leurs bornes."""
        day = {m for m in range(1440) if DutyTimeSpan.CAPITAL_DAY.contains_time_of_day(m // 60, m % 60)}
        night = {m for m in range(1440) if DutyTimeSpan.CAPITAL_NIGHT.contains_time_of_day(m // 60, m % 60)}
        assert day | night == set(range(1440))
        assert day & night == {10 * 60 + 15, 22 * 60}
        assert 23 * 60 in night and 10 * 60 in night and 15 * 60 not in night

    def test_end_on_next_day(self):
        end = DutyTimeSpan.CAPITAL_NIGHT.end_on(dt.date(2025, 7, 15))
        assert end == dt.datetime(2025, 7, 16, 10, 15)

    def test_contains_anchored_on_date(self):
        """Un instant du lendemain matin appartient à la nuit de la veille."""
        span = DutyTimeSpan.CAPITAL_NIGHT
        assert span.contains(dt.datetime(2025, 7, 16, 9, 0), dt.date(2025, 7, 15))
        assert not span.contains(dt.datetime(2025, 7, 16, 9, 0), dt.date(2025, 7, 16))

    def test_keys(self):
        assert DutyTimeSpan.CAPITAL_DAY.key == "10:15-22:00"
        assert DutyTimeSpan.FULL_DAY.key == "0:00-23:59"
        assert DutyTimeSpan.from_key("22:00-10:15") is DutyTimeSpan.CAPITAL_NIGHT
        assert DutyTimeSpan.from_key("RURAL_DAYTIME") is DutyTimeSpan.RURAL_DAYTIME

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            DutyTimeSpan.from_key("8:00-9:00")
