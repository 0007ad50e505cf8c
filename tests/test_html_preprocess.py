import sys

import pytest
from bs4 import BeautifulSoup

from html_preprocess import (
    PreprocessingError,
    build_reset_css,
    convert_pt_to_px,
    has_root_element,
    normalize_html,
    wrap_fragment,
)


def test_fragment_is_wrapped_with_utf8_document() -> None:
    output = normalize_html("<p>hi</p>", platform="linux")

    assert output.lstrip().lower().startswith("<html")
    soup = BeautifulSoup(output, "lxml")
    meta = soup.head.find("meta", attrs={"http-equiv": "Content-Type"})
    assert meta is not None
    assert "charset=utf-8" in meta["content"]
    assert soup.body.p.get_text() == "hi"


@pytest.mark.parametrize(
    "fragment",
    ["", "plain text", "<div><span>nested</span></div>", "<body><p>x</p></body>"],
)
def test_output_always_has_root(fragment: str) -> None:
    output = normalize_html(fragment, platform="linux")
    assert has_root_element(output)
    assert BeautifulSoup(output, "lxml").head.style is not None


def test_root_with_attributes_is_not_wrapped_again() -> None:
    html = '<html lang="en"><body><p>x</p></body></html>'
    assert wrap_fragment(html) == html

    output = normalize_html(html, platform="linux")
    assert output.lower().count("<html") == 1


def test_existing_style_gets_reset_prepended() -> None:
    html = (
        "<html><head><style>p { color: red; }</style></head>"
        "<body><p>x</p></body></html>"
    )
    soup = BeautifulSoup(normalize_html(html, platform="windows"), "lxml")

    styles = soup.head.find_all("style")
    assert len(styles) == 1
    text = styles[0].get_text()
    assert text.index("box-sizing: border-box") < text.index("color: red")


def test_style_is_created_when_missing() -> None:
    html = "<html><body><p>x</p></body></html>"
    soup = BeautifulSoup(normalize_html(html, platform="windows"), "lxml")

    assert "font-family: 'Microsoft YaHei';" in soup.head.style.get_text()


def test_custom_font_family() -> None:
    output = normalize_html("<p>x</p>", font_family="'Noto Sans'")
    assert "font-family: 'Noto Sans';" in output


def test_metric_adjustments_only_off_windows() -> None:
    linux_css = build_reset_css("linux")
    windows_css = build_reset_css("windows")

    assert "letter-spacing: -0.01em;" in linux_css
    assert "line-height: 1.4;" in linux_css
    assert "letter-spacing" not in windows_css
    assert "line-height" not in windows_css
    assert "margin: 0;" in windows_css
    assert "text-size-adjust: 100%;" in windows_css


@pytest.mark.parametrize("value", [None, b"<p>bytes</p>", 42])
def test_non_text_input_is_rejected(value: object) -> None:
    with pytest.raises(PreprocessingError):
        normalize_html(value)  # type: ignore[arg-type]


def test_pt_to_px_converts_points() -> None:
    assert convert_pt_to_px("font-size: 12pt;") == "font-size: 16px;"


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("9pt", "12px"),
        ("10.5pt", "14px"),
        ("11pt", "14.67px"),
        ("margin: 3pt 6pt", "margin: 4px 8px"),
    ],
)
def test_pt_to_px_values(source: str, expected: str) -> None:
    assert convert_pt_to_px(source) == expected


@pytest.mark.parametrize(
    "source", ["width: 12px", "margin: 3em", "padding: 12", "12pts", "opt"]
)
def test_pt_to_px_leaves_other_units(source: str) -> None:
    assert convert_pt_to_px(source) == source


def test_pt_to_px_gated_by_platform(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "platform", "linux")

    assert convert_pt_to_px("12pt", platform="win32") == "12pt"
    assert convert_pt_to_px("12pt", platform="linux") == "16px"
