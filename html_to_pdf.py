"""Convert inline HTML or a URI into PDF bytes with headless Chromium."""

from __future__ import annotations

import argparse
import base64
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import chrome_finder
from artifacts import scratch_file
from config_loader import ConfigError, ConverterConfig, load_converter_config
from html_preprocess import PreprocessingError, convert_pt_to_px, normalize_html
from renderer import (
    ChromiumRenderer,
    InvalidTargetError,
    Renderer,
    RendererError,
    RenderTarget,
)
from retry import RetryExhausted, execute

DEFAULT_BROWSER_ARGUMENTS: Tuple[str, ...] = (
    "--disable-dev-shm-usage",
    "--ignore-certificate-errors",
)
LINUX_BROWSER_ARGUMENTS: Tuple[str, ...] = ("--no-sandbox",)
PDF_SIGNATURE = b"%PDF"


class ConversionError(RuntimeError):
    """Raised when a conversion fails after retries and fallback."""

    def __init__(
        self, message: str, causes: Sequence[BaseException] = ()
    ) -> None:
        super().__init__(message)
        self.causes: Tuple[BaseException, ...] = tuple(causes)


@dataclass(frozen=True, slots=True)
class ConversionRequest:
    """A single HTML or URI conversion job."""

    content: str
    is_uri: bool = False
    page_settings: Optional[Mapping[str, Any]] = None
    extra_arguments: Tuple[str, ...] = ()


def build_browser_arguments(
    *groups: Iterable[str], platform: Optional[str] = None
) -> List[str]:
    """Merge argument groups with the defaults, keeping first occurrences."""

    defaults: Tuple[str, ...] = DEFAULT_BROWSER_ARGUMENTS
    if chrome_finder.current_platform(platform) == chrome_finder.LINUX:
        defaults = defaults + LINUX_BROWSER_ARGUMENTS

    merged: List[str] = []
    for group in (*groups, defaults):
        for argument in group:
            if argument not in merged:
                merged.append(argument)
    return merged


def _locate_browser(
    config: ConverterConfig, log: logging.Logger
) -> Optional[str]:
    """Return the configured or discovered browser path, if any."""

    if config.browser_path:
        return config.browser_path
    try:
        path = chrome_finder.find()
    except chrome_finder.UnsupportedPlatformError as exc:
        log.info("%s Using Playwright's bundled Chromium.", exc)
        return None
    if path is None:
        log.info("No local Chrome found; using Playwright's bundled Chromium.")
    else:
        log.debug("Using browser executable %s", path)
    return path


class HtmlToPdfConverter:
    """Run conversions with retries, scratch files and a fallback policy."""

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        *,
        renderer: Optional[Renderer] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or ConverterConfig()
        self.log = logger or logging.getLogger(__name__)
        self.renderer: Renderer = renderer or ChromiumRenderer(
            _locate_browser(self.config, self.log),
            timeout_ms=self.config.timeout_ms,
        )

    def preprocess(self, html: str) -> str:
        """Return ``html`` normalized for rendering."""

        processed = normalize_html(html, font_family=self.config.font_family)
        if self.config.convert_pt_to_px:
            processed = convert_pt_to_px(
                processed, self.config.pt_to_px_platform
            )
        return processed

    def convert(self, request: ConversionRequest) -> bytes:
        """Render ``request`` to PDF bytes or raise ``ConversionError``."""

        settings = (
            request.page_settings
            if request.page_settings is not None
            else self.config.page_settings
        )
        arguments = build_browser_arguments(
            self.config.extra_arguments, request.extra_arguments
        )

        if request.is_uri:
            target = RenderTarget.for_uri(request.content)
            try:
                return self._render_with_retries(target, settings, arguments)
            except RetryExhausted as exc:
                raise ConversionError(
                    f"Failed to convert {request.content}: {exc}", exc.causes
                ) from exc

        html = self.preprocess(request.content)
        with scratch_file(
            html, base_dir=self.config.temp_dir, logger=self.log
        ) as artifact:
            try:
                return self._render_with_retries(
                    RenderTarget.for_uri(artifact.uri), settings, arguments
                )
            except RetryExhausted as exc:
                if self.config.fallback_policy != "inline":
                    raise ConversionError(
                        f"Failed to convert HTML: {exc}", exc.causes
                    ) from exc
                return self._render_fallback(
                    request.content, settings, arguments, exc
                )

    def _render_once(
        self,
        target: RenderTarget,
        settings: Mapping[str, Any],
        arguments: Sequence[str],
    ) -> bytes:
        pdf_bytes = self.renderer(target, settings, arguments)
        if not pdf_bytes.startswith(PDF_SIGNATURE):
            raise RendererError("Renderer output is not a PDF document")
        return pdf_bytes

    def _render_with_retries(
        self,
        target: RenderTarget,
        settings: Mapping[str, Any],
        arguments: Sequence[str],
    ) -> bytes:
        attempts = self.config.retry_attempts

        def log_failure(attempt_number: int, error: BaseException) -> None:
            self.log.warning(
                "Render attempt %d/%d failed: %s",
                attempt_number,
                attempts,
                error,
            )

        try:
            return execute(
                lambda: self._render_once(target, settings, arguments),
                max_attempts=attempts,
                retry_interval=self.config.retry_interval,
                retry_on=(RendererError,),
                on_failure=log_failure,
            )
        except RetryExhausted:
            self.log.error("Rendering failed after %d attempts", attempts)
            raise

    def _render_fallback(
        self,
        raw_html: str,
        settings: Mapping[str, Any],
        arguments: Sequence[str],
        exhausted: RetryExhausted,
    ) -> bytes:
        """Render the original markup directly, bypassing the scratch file."""

        self.log.warning("Falling back to rendering the raw HTML inline")
        try:
            return self._render_once(
                RenderTarget.for_markup(raw_html), settings, arguments
            )
        except RendererError as exc:
            causes = list(exhausted.causes)
            if all(str(cause) != str(exc) for cause in causes):
                causes.append(exc)
            raise ConversionError(
                f"Failed to convert HTML, inline fallback also failed: {exc}",
                causes,
            ) from exc


def to_base64(pdf_bytes: bytes) -> str:
    """Return ``pdf_bytes`` encoded for text transports."""

    return base64.b64encode(pdf_bytes).decode("ascii")


def resolve_output_name(
    name: Optional[str], fallback: Optional[str] = None
) -> str:
    """Return a download file name that always ends in ``.pdf``."""

    chosen = (name or "").strip()
    if not chosen:
        chosen = fallback or f"HtmlToPdf {datetime.now():%y-%m-%d}"
    if chosen.lower().endswith(".pdf"):
        return chosen
    return f"{chosen}.pdf"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments for the HTML to PDF converter."""

    parser = argparse.ArgumentParser(
        description="Convert an HTML file, stdin or a URI into a PDF.",
    )
    parser.add_argument(
        "source",
        help="HTML file path, '-' for stdin, or a URI when --uri is set.",
    )
    parser.add_argument(
        "--uri",
        action="store_true",
        help="Treat SOURCE as a URI to load instead of HTML content.",
    )
    parser.add_argument(
        "--output",
        help="Output PDF path (defaults to the source name or a dated name).",
    )
    parser.add_argument(
        "--base64",
        action="store_true",
        help="Print the PDF as base64 to stdout instead of writing a file.",
    )
    parser.add_argument("--config", help="Path to config JSON file.")
    parser.add_argument(
        "--retries", type=int, help="Override the render attempt count."
    )
    parser.add_argument(
        "--retry-interval-ms",
        type=int,
        help="Delay between render attempts in milliseconds.",
    )
    parser.add_argument(
        "--browser-arg",
        action="append",
        default=[],
        help="Extra Chromium argument (repeatable).",
    )
    parser.add_argument(
        "--fallback",
        choices=("fail", "inline"),
        help="What to do once retries are exhausted for inline HTML.",
    )
    parser.add_argument(
        "--pt-to-px",
        action="store_true",
        help="Rewrite point sizes to pixels before rendering.",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging."
    )
    return parser.parse_args(argv)


def _read_source(args: argparse.Namespace) -> Tuple[str, Optional[str]]:
    """Return the request content and a default output stem."""

    if args.uri:
        return args.source, None
    if args.source == "-":
        return sys.stdin.read(), None
    source_path = Path(args.source)
    if not source_path.exists():
        raise SystemExit(f"Input HTML not found: {source_path}")
    return source_path.read_text(encoding="utf-8"), source_path.stem


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for the ``html_to_pdf`` CLI."""

    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = load_converter_config(
            args.config,
            retry_attempts=args.retries,
            retry_interval_ms=args.retry_interval_ms,
            fallback_policy=args.fallback,
            convert_pt_to_px=True if args.pt_to_px else None,
        )
    except ConfigError as exc:
        raise SystemExit(f"Config error: {exc}") from exc

    content, stem = _read_source(args)
    request = ConversionRequest(
        content=content,
        is_uri=args.uri,
        extra_arguments=tuple(args.browser_arg),
    )

    converter = HtmlToPdfConverter(config)
    try:
        pdf_bytes = converter.convert(request)
    except PreprocessingError as exc:
        raise SystemExit(f"Invalid HTML: {exc}") from exc
    except InvalidTargetError as exc:
        raise SystemExit(f"Invalid URI: {exc}") from exc
    except ConversionError as exc:
        for cause in exc.causes:
            print(f"⚠️ {cause}", file=sys.stderr)
        raise SystemExit(f"Conversion failed: {exc}") from exc

    if args.base64:
        print(to_base64(pdf_bytes))
        return

    output_path = Path(resolve_output_name(args.output, stem))
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(pdf_bytes)
    print(f"✅ PDF written: {output_path}")


__all__ = [
    "ConversionError",
    "ConversionRequest",
    "DEFAULT_BROWSER_ARGUMENTS",
    "HtmlToPdfConverter",
    "build_browser_arguments",
    "resolve_output_name",
    "to_base64",
]


if __name__ == "__main__":
    main()
