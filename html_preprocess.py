"""Normalize inline HTML so it renders the same way on every host."""

from __future__ import annotations

import re
from typing import Any, Optional

try:
    from bs4 import (  # type: ignore[import-not-found]
        BeautifulSoup,
        ParserRejectedMarkup,
    )
except ImportError as exc:
    raise SystemExit(
        "Missing dependency 'beautifulsoup4'. Install with pip install"
        " beautifulsoup4 lxml"
    ) from exc

from chrome_finder import WINDOWS, current_platform

DEFAULT_FONT_FAMILY = "'Microsoft YaHei'"
CONTENT_TYPE_META = (
    '<meta http-equiv="Content-Type" content="text/html; charset=utf-8"/>'
)

RE_HTML_ROOT = re.compile(r"<html[\s>]", re.IGNORECASE)
RE_HEAD_OR_BODY = re.compile(r"<(head|body)[\s>]", re.IGNORECASE)
RE_POINT_SIZE = re.compile(r"(?<![\w.])(\d+(?:\.\d+)?)pt\b")

PX_PER_PT = 96 / 72


class PreprocessingError(ValueError):
    """Raised when input markup cannot be turned into a document."""


def has_root_element(html: str) -> bool:
    """Return True when ``html`` already carries an ``<html>`` element."""

    return RE_HTML_ROOT.search(html) is not None


def wrap_fragment(html: str) -> str:
    """Wrap a bare fragment in an ``<html>`` document declaring UTF-8."""

    if has_root_element(html):
        return html
    if RE_HEAD_OR_BODY.search(html):
        return f"<html>{html}</html>"
    return (
        f"<html><head>{CONTENT_TYPE_META}</head>"
        f"<body>{html}</body></html>"
    )


def build_reset_css(
    platform: Optional[str] = None,
    font_family: str = DEFAULT_FONT_FAMILY,
) -> str:
    """Return the reset stylesheet for the target ``platform``.

    Fonts are metric-compatible on Windows only; elsewhere a tighter
    letter-spacing and explicit line-height keep page breaks aligned.
    """

    declarations = [
        "box-sizing: border-box;",
        f"font-family: {font_family};",
        "margin: 0;",
        "padding: 0;",
    ]
    if current_platform(platform) != WINDOWS:
        declarations.append("letter-spacing: -0.01em;")
        declarations.append("line-height: 1.4;")

    body = "\n    ".join(declarations)
    return (
        "\n* {\n    text-size-adjust: 100%;\n    border: 0;\n}\n\n"
        f"html,\nbody,\ntable {{\n    {body}\n}}\n"
    )


def _parse(html: str) -> Any:
    try:
        soup: Any = BeautifulSoup(html, "lxml")
    except ParserRejectedMarkup as exc:
        raise PreprocessingError(f"Unable to parse HTML: {exc}") from exc
    if soup.html is None:
        raise PreprocessingError("Parsed HTML has no root element")
    return soup


def normalize_html(
    raw_html: str,
    *,
    platform: Optional[str] = None,
    font_family: str = DEFAULT_FONT_FAMILY,
) -> str:
    """Return ``raw_html`` as a full document carrying the reset styles."""

    if not isinstance(raw_html, str):
        raise PreprocessingError(
            f"HTML content must be text, got {type(raw_html).__name__}"
        )

    wrapped = not has_root_element(raw_html)
    soup = _parse(wrap_fragment(raw_html))

    head = soup.head
    if head is None:
        head = soup.new_tag("head")
        soup.html.insert(0, head)

    if wrapped and head.find("meta", attrs={"http-equiv": True}) is None:
        meta = soup.new_tag(
            "meta",
            attrs={
                "http-equiv": "Content-Type",
                "content": "text/html; charset=utf-8",
            },
        )
        head.insert(0, meta)

    reset_css = build_reset_css(platform, font_family)
    style = head.find("style")
    if style is None:
        style = soup.new_tag("style")
        style.string = reset_css
        head.append(style)
    else:
        style.string = reset_css + style.get_text()

    return str(soup)


def _format_px(value: float) -> str:
    return f"{round(value, 2):.2f}".rstrip("0").rstrip(".")


def convert_pt_to_px(html: str, platform: Optional[str] = None) -> str:
    """Rewrite ``<number>pt`` sizes as pixels at 96/72 DPI.

    When ``platform`` is given the rewrite only happens on that platform.
    """

    if platform is not None and current_platform() != current_platform(
        platform
    ):
        return html

    return RE_POINT_SIZE.sub(
        lambda match: f"{_format_px(float(match.group(1)) * PX_PER_PT)}px",
        html,
    )


__all__ = [
    "DEFAULT_FONT_FAMILY",
    "PreprocessingError",
    "build_reset_css",
    "convert_pt_to_px",
    "has_root_element",
    "normalize_html",
    "wrap_fragment",
]
