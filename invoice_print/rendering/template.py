"""HTML template rendering through headless Chromium.

The invoice is bound into ``receipt.html`` with Jinja2, loaded into a fresh
browser page and printed to PDF. The whole bind-launch-load-export sequence
is retried; every attempt gets its own browser, which is closed when the
attempt ends, successful or not::

    Idle -> Launching -> Loading -> Exporting -> Done
                 \\           \\          \\
                  +-----------+----------+--> Retrying -> Launching
                                           \\-> Failed
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, ContextManager, Iterator, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from ..config import Settings
from ..errors import RenderError
from ..layout import PagePreset, get_preset
from ..models import InvoiceDocument

logger = logging.getLogger(__name__)

TEMPLATE_NAME = "receipt.html"
VIEWPORT = {"width": 800, "height": 600}
PAGE_MARGIN = {"top": "5mm", "right": "5mm", "bottom": "5mm", "left": "5mm"}
CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--no-first-run",
    "--no-zygote",
    "--disable-extensions",
]

EngineFactory = Callable[[int], ContextManager[Any]]


class RenderState(str, Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    LOADING = "loading"
    EXPORTING = "exporting"
    RETRYING = "retrying"
    DONE = "done"
    FAILED = "failed"


@contextmanager
def chromium_session(timeout_ms: int) -> Iterator[Any]:
    """Launch an isolated headless Chromium and always tear it down."""
    from playwright.sync_api import sync_playwright

    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(headless=True, args=CHROMIUM_ARGS, timeout=timeout_ms)
        try:
            yield browser
        finally:
            try:
                browser.close()
            except Exception as exc:
                logger.error("Error closing browser: %s", exc)


class TemplateRenderer:
    name = "template"

    def __init__(
        self,
        template_dir: str,
        preset: PagePreset,
        max_retries: int = 3,
        retry_delay_ms: int = 2000,
        timeout_ms: int = 60000,
        engine_factory: EngineFactory = chromium_session,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.template_dir = template_dir
        self.preset = preset
        self.max_retries = max_retries
        self.retry_delay_ms = retry_delay_ms
        self.timeout_ms = timeout_ms
        self.engine_factory = engine_factory
        self.sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings) -> "TemplateRenderer":
        return cls(
            template_dir=settings.template_dir,
            preset=get_preset(settings.page_preset),
            max_retries=settings.render_max_retries,
            retry_delay_ms=settings.render_retry_delay_ms,
            timeout_ms=settings.page_load_timeout_ms,
        )

    def bind(self, document: InvoiceDocument) -> str:
        env = Environment(
            loader=FileSystemLoader(self.template_dir),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
        )
        template = env.get_template(TEMPLATE_NAME)
        return template.render(page_width=self.preset.css_width, **document.to_template_context())

    def _attempt(self, document: InvoiceDocument, attempt: int) -> bytes:
        html = self.bind(document)
        self._log_state(document, attempt, RenderState.LAUNCHING)
        with self.engine_factory(self.timeout_ms) as browser:
            page = browser.new_page(viewport=VIEWPORT)
            page.set_default_timeout(self.timeout_ms)

            self._log_state(document, attempt, RenderState.LOADING)
            page.set_content(html, wait_until="networkidle", timeout=self.timeout_ms)

            self._log_state(document, attempt, RenderState.EXPORTING)
            return page.pdf(
                width=self.preset.css_width,
                print_background=True,
                margin=PAGE_MARGIN,
                prefer_css_page_size=True,
            )

    def _log_state(self, document: InvoiceDocument, attempt: int, state: RenderState) -> None:
        logger.debug(
            "Invoice %s attempt %d/%d: %s",
            document.invoice_id,
            attempt,
            self.max_retries,
            state.value,
        )

    def render(self, document: InvoiceDocument) -> bytes:
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                pdf_bytes = self._attempt(document, attempt)
            except Exception as exc:
                last_error = exc
                logger.error(
                    "PDF generation attempt %d/%d for invoice %s failed: %s",
                    attempt,
                    self.max_retries,
                    document.invoice_id,
                    exc,
                )
                if attempt < self.max_retries:
                    self._log_state(document, attempt, RenderState.RETRYING)
                    self.sleep(self.retry_delay_ms / 1000.0)
                continue

            self._log_state(document, attempt, RenderState.DONE)
            logger.info(
                "Rendered invoice %s from template on attempt %d (%d bytes)",
                document.invoice_id,
                attempt,
                len(pdf_bytes),
            )
            return pdf_bytes

        self._log_state(document, self.max_retries, RenderState.FAILED)
        raise RenderError(
            f"Failed to generate PDF after {self.max_retries} attempts: {last_error}",
            attempts=self.max_retries,
        ) from last_error
