"""
Tests de la ligne de commande (source et store simulés).
"""

import datetime as dt

import pytest

from guardia_segovia import cli
from guardia_segovia.store import MemoryScheduleStore


class StaticSource:
    def __init__(self, pages):
        self.pages = pages

    def url_for(self, location_id):
        return None

    def fetch(self, location_id):
        return self.pages.get(location_id, [])


@pytest.fixture
def offline(monkeypatch, capital_text_page, rural_text_page):
    pages = {"segovia-capital": [capital_text_page], "segovia-rural": [rural_text_page]}
    monkeypatch.setattr(cli, "LocalDocumentSource", lambda paths, with_words=True: StaticSource(pages))
    monkeypatch.setattr(cli, "make_store", lambda cfg: MemoryScheduleStore())


class TestParser:
    def test_arguments(self):
        args = cli.build_parser().parse_args(["--zone", "la-granja", "--at", "2025-07-15T21:45"])
        assert args.zone == "la-granja"
        assert args.at == dt.datetime(2025, 7, 15, 21, 45)
        assert args.location == "segovia-capital"

    def test_unknown_location(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--location", "madrid"])


class TestMain:
    def test_current_duty(self, offline, capsys, tmp_path):
        cli.main([
            "--location", "segovia-capital", "--pdf", "capital.pdf", "--backend", "text",
            "--at", "2025-07-15T21:45", "--output-dir", str(tmp_path),
        ])
        out = capsys.readouterr().out
        assert "FARMACIA ANA GÓMEZ" in out
        assert "FARMACIA LUIS PÉREZ" in out
        assert "15 minutes" in out
        assert (tmp_path / "guardias_segovia-capital.csv").exists()

    def test_zone(self, offline, capsys):
        cli.main(["--zone", "la-sierra", "--pdf", "rurales.pdf", "--backend", "text", "--at", "2025-01-06T21:00"])
        out = capsys.readouterr().out
        assert "Farmacia Ana Belén Tomero Díez" in out
        assert "Hors de l'horaire habituel" in out
