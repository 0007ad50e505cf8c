"""Headless Chromium renderer that turns a URI or markup into PDF bytes."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Mapping, Optional, Protocol, Sequence
from urllib.parse import urlparse

try:
    from playwright.sync_api import (  # type: ignore[import-not-found]
        Error as PlaywrightError,
        sync_playwright,
    )
except ImportError as exc:  # pragma: no cover - surfacing missing dependency
    raise SystemExit(
        "Missing dependency 'playwright'. Install with pip install"
        " playwright && playwright install chromium"
    ) from exc

WaitUntilLiteral = Literal["commit", "domcontentloaded", "load", "networkidle"]
DEFAULT_WAIT_UNTIL: WaitUntilLiteral = "networkidle"
DEFAULT_TIMEOUT_MS = 30_000


class RendererError(RuntimeError):
    """Raised when the browser fails to produce a PDF."""


class InvalidTargetError(ValueError):
    """Raised when a render target cannot be used at all."""


@dataclass(frozen=True, slots=True)
class RenderTarget:
    """What the renderer should load: a URI or a markup string."""

    value: str
    is_markup: bool = False

    @classmethod
    def for_uri(cls, uri: str) -> "RenderTarget":
        """Return a URI target, converting existing local files to file URIs."""

        if not uri or not uri.strip():
            raise InvalidTargetError("URI target must not be blank")
        if not urlparse(uri).scheme or _is_drive_path(uri):
            path = Path(uri).expanduser()
            if path.is_file():
                return cls(path.resolve().as_uri())
        return cls(uri)

    @classmethod
    def for_markup(cls, markup: str) -> "RenderTarget":
        return cls(markup, is_markup=True)


def _is_drive_path(value: str) -> bool:
    return len(value) > 2 and value[1] == ":" and value[2] in "\\/"


class Renderer(Protocol):
    """Callable contract consumed by the conversion orchestrator."""

    def __call__(
        self,
        target: RenderTarget,
        settings: Mapping[str, Any],
        arguments: Sequence[str],
    ) -> bytes: ...


class ChromiumRenderer:
    """Render targets to PDF through Playwright's bundled or a local Chromium.

    Each call launches and closes its own browser process.
    """

    def __init__(
        self,
        executable_path: Optional[str] = None,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        wait_until: WaitUntilLiteral = DEFAULT_WAIT_UNTIL,
    ) -> None:
        self.executable_path = executable_path
        self.timeout_ms = timeout_ms
        self.wait_until: WaitUntilLiteral = wait_until

    def __call__(
        self,
        target: RenderTarget,
        settings: Mapping[str, Any],
        arguments: Sequence[str],
    ) -> bytes:
        try:
            with sync_playwright() as playwright_context:  # type: ignore[misc]
                browser: Any = playwright_context.chromium.launch(
                    headless=True,
                    executable_path=self.executable_path,
                    args=list(arguments),
                    timeout=self.timeout_ms,
                )
                try:
                    page: Any = browser.new_page()
                    if target.is_markup:
                        page.set_content(
                            target.value,
                            wait_until=self.wait_until,
                            timeout=self.timeout_ms,
                        )
                    else:
                        page.goto(
                            target.value,
                            wait_until=self.wait_until,
                            timeout=self.timeout_ms,
                        )
                    pdf_bytes: bytes = page.pdf(**dict(settings))
                finally:
                    browser.close()
        except PlaywrightError as exc:
            raise RendererError(str(exc)) from exc

        if not pdf_bytes:
            raise RendererError("Renderer returned an empty document")
        return pdf_bytes


__all__ = [
    "ChromiumRenderer",
    "DEFAULT_TIMEOUT_MS",
    "InvalidTargetError",
    "RenderTarget",
    "Renderer",
    "RendererError",
]
