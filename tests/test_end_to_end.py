"""Render real PDFs when Playwright's Chromium is installed."""

from io import BytesIO
from pathlib import Path

import pytest

sync_api = pytest.importorskip("playwright.sync_api")
pdfminer_high_level = pytest.importorskip("pdfminer.high_level")

from artifacts import SCRATCH_DIR_NAME  # noqa: E402
from config_loader import ConverterConfig  # noqa: E402
from html_to_pdf import ConversionRequest, HtmlToPdfConverter  # noqa: E402
from renderer import ChromiumRenderer  # noqa: E402


def _chromium_available() -> bool:
    try:
        with sync_api.sync_playwright() as playwright:
            browser = playwright.chromium.launch(
                headless=True, args=["--no-sandbox"]
            )
            browser.close()
    except sync_api.Error:
        return False
    return True


pytestmark = pytest.mark.skipif(
    not _chromium_available(), reason="Playwright Chromium is not installed"
)


@pytest.fixture
def converter(tmp_path: Path) -> HtmlToPdfConverter:
    config = ConverterConfig(temp_dir=str(tmp_path), retry_attempts=2)
    return HtmlToPdfConverter(config, renderer=ChromiumRenderer())


def _text(pdf_bytes: bytes) -> str:
    return pdfminer_high_level.extract_text(BytesIO(pdf_bytes))


def test_inline_fragment_renders_pdf(
    tmp_path: Path, converter: HtmlToPdfConverter
) -> None:
    pdf_bytes = converter.convert(ConversionRequest(content="<p>hi</p>"))

    assert pdf_bytes.startswith(b"%PDF")
    assert "hi" in _text(pdf_bytes)
    assert list((tmp_path / SCRATCH_DIR_NAME).iterdir()) == []


def test_local_file_uri_renders_pdf(
    tmp_path: Path, converter: HtmlToPdfConverter
) -> None:
    page = tmp_path / "page.html"
    page.write_text(
        "<html><body><h1>Quarterly report</h1></body></html>",
        encoding="utf-8",
    )

    pdf_bytes = converter.convert(
        ConversionRequest(
            content=str(page), is_uri=True, page_settings={"format": "A4"}
        )
    )

    assert pdf_bytes.startswith(b"%PDF")
    assert "Quarterly report" in _text(pdf_bytes)
