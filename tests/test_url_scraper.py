"""
Tests de la découverte des URL de calendriers sur la page de publication.
"""

import requests

from guardia_segovia.url_scraper import classify_link, classify_links, discover_pdf_urls, extract_pdf_links

BASE = "https://cofsegovia.com/farmacias-de-guardia/"

HTML = """
<html><body>
<ul>
  <li><a href="/wp-content/uploads/2025/05/CALENDARIO-GUARDIAS-SEGOVIA-CAPITAL-DIA-2025.pdf">Segovia Capital</a></li>
  <li><a href="https://cofsegovia.com/wp-content/uploads/2025/01/GUARDIAS-CUELLAR_2025.pdf">Cuéllar 2025</a></li>
  <li><a href="https://cofsegovia.com/wp-content/uploads/2026/01/GUARDIAS-CUELLAR_2026.pdf">Cuéllar</a></li>
  <li><a href="https://cofsegovia.com/wp-content/uploads/2025/01/calendario.pdf">El Espinar y San Rafael</a></li>
  <li>Rurales <a href="https://cofsegovia.com/wp-content/uploads/2025/06/SERVICIOS-DE-URGENCIA-RURALES-2025.pdf"></a></li>
  <li><a href="/contacto/">Contacto</a></li>
  <li><a href="https://cofsegovia.com/wp-content/uploads/2025/02/memoria.pdf">Memoria anual</a></li>
</ul>
</body></html>
"""


class FakeResponse:
    def __init__(self, text, status=200):
        self.text = text
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status}")


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error

    def get(self, url, timeout=None):
        if self.error is not None:
            raise self.error
        return self.response


class TestExtraction:
    def test_pdf_links_only(self):
        """Seuls les liens .pdf sont retenus, en URL absolues."""
        links = extract_pdf_links(HTML, BASE)
        urls = [url for url, _ in links]
        assert len(urls) == 6
        assert urls[0] == "https://cofsegovia.com/wp-content/uploads/2025/05/CALENDARIO-GUARDIAS-SEGOVIA-CAPITAL-DIA-2025.pdf"
        assert all(url.endswith(".pdf") for url in urls)

    def test_empty_link_text_uses_parent(self):
        links = dict(extract_pdf_links(HTML, BASE))
        rural = "https://cofsegovia.com/wp-content/uploads/2025/06/SERVICIOS-DE-URGENCIA-RURALES-2025.pdf"
        assert links[rural] == "Rurales"


class TestClassification:
    def test_by_url_then_text(self):
        assert classify_link("https://x/GUARDIAS-CUELLAR_2025.pdf") == "cuellar"
        assert classify_link("https://x/calendario.pdf", "El Espinar y San Rafael") == "el-espinar"
        assert classify_link("https://x/memoria.pdf", "Memoria anual") is None

    def test_most_recent_year_wins(self):
        found = classify_links(HTML, BASE)
        assert set(found) == {"segovia-capital", "cuellar", "el-espinar", "segovia-rural"}
        assert found["cuellar"].endswith("GUARDIAS-CUELLAR_2026.pdf")


class TestDiscovery:
    def test_discover(self):
        found = discover_pdf_urls(FakeSession(FakeResponse(HTML)), BASE)
        assert found["el-espinar"].endswith("calendario.pdf")

    def test_network_error(self):
        """Erreur réseau : aucune URL, pas d'exception."""
        assert discover_pdf_urls(FakeSession(error=requests.ConnectionError("down")), BASE) == {}
        assert discover_pdf_urls(FakeSession(FakeResponse("", status=503)), BASE) == {}
