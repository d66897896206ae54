"""Request lifecycle: validate, normalize, render, optionally print, respond."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Dict, Optional, Tuple

from .config import Settings
from .errors import InputError, InvoiceTooLargeError, RenderError
from .layout import get_preset
from .models import InvoiceDocument, PrintTarget, PrintTargetKind
from .money import build_document
from .pagination import estimate_page_count, max_items_for_pages
from .printing import PrintDispatcher

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "PDF generated successfully"
FALSE_STRINGS = {"", "0", "false", "no", "off"}

Response = Tuple[int, Dict[str, Any]]
RenderFn = Callable[[InvoiceDocument], bytes]


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)


def parse_print_target(payload: Dict[str, Any]) -> PrintTarget:
    """``printerId`` selects the cloud API; a ``status`` flag selects the local printer."""
    printer_id = payload.get("printerId")
    if printer_id is not None and str(printer_id).strip():
        return PrintTarget.cloud(str(printer_id).strip())

    flag = payload.get("status", payload.get("print"))
    if _truthy(flag):
        printer_name = payload.get("printerName", payload.get("printName"))
        if printer_name is not None and not isinstance(printer_name, str):
            raise InputError("'printerName' must be a string.")
        return PrintTarget.local(printer_name)

    return PrintTarget.none()


def error_body(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}


class PrintPipeline:
    def __init__(
        self,
        settings: Settings,
        render: RenderFn,
        dispatcher: PrintDispatcher,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self.settings = settings
        self.render = render
        self.dispatcher = dispatcher
        self.today = today or date.today
        self.preset = get_preset(settings.page_preset)

    def prepare(self, payload: Dict[str, Any]) -> InvoiceDocument:
        document = build_document(payload, today=self.today())
        pages = estimate_page_count(len(document.items), self.preset)
        if pages > self.settings.max_pages:
            raise InvoiceTooLargeError(
                f"Invoice would render {pages} pages; maximum is {self.settings.max_pages} "
                f"({max_items_for_pages(self.settings.max_pages, self.preset)} items)."
            )
        return document

    def render_only(self, payload: Dict[str, Any]) -> bytes:
        document = self.prepare(payload)
        logger.info("Generating PDF for invoice %s", document.invoice_id)
        return self.render(document)

    def handle(self, payload: Dict[str, Any]) -> Response:
        try:
            document = self.prepare(payload)
            target = parse_print_target(payload)
        except InputError as exc:
            logger.info("Rejected invoice payload: %s", exc)
            return exc.status, error_body(str(exc))

        logger.info("Generating PDF for invoice %s", document.invoice_id)
        try:
            pdf_bytes = self.render(document)
        except RenderError as exc:
            logger.error(
                "Rendering invoice %s failed after %d attempt(s): %s",
                document.invoice_id,
                exc.attempts,
                exc,
            )
            return exc.status, error_body(str(exc))

        print_result = None
        if target.kind != PrintTargetKind.NONE:
            logger.info("Print requested for invoice %s via %s", document.invoice_id, target.kind.value)
            print_result = self.dispatcher.dispatch(pdf_bytes, target)
            logger.info("Print status for invoice %s: %s", document.invoice_id, print_result)

        # Dispatch failures are reported in printResult, never as a request failure.
        return 200, {
            "success": True,
            "printResult": print_result.to_dict() if print_result else None,
            "message": print_result.message if print_result else DEFAULT_MESSAGE,
        }
