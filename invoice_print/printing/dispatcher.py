"""Routing of a rendered PDF to its print target."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..config import Settings
from ..errors import ConfigError, DispatchError
from ..models import PrintResult, PrintTarget, PrintTargetKind
from .cloud import CloudPrintClient
from .local import LocalPrinter

logger = logging.getLogger(__name__)

NOT_REQUESTED_MESSAGE = "Printing not requested"


class PrintDispatcher:
    """Submits a PDF to the requested target; failures come back as values."""

    def __init__(
        self,
        settings: Settings,
        local_printer: Optional[LocalPrinter] = None,
        cloud_factory: Callable[[Settings], CloudPrintClient] = CloudPrintClient.from_settings,
    ) -> None:
        self.settings = settings
        self.local_printer = local_printer or LocalPrinter(
            tmpdir=settings.print_tmpdir,
            timeout_ms=settings.print_command_timeout_ms,
        )
        self.cloud_factory = cloud_factory

    def _print_cloud(self, pdf_bytes: bytes, printer_id: Optional[str]) -> PrintResult:
        if not printer_id:
            raise DispatchError("A printerId is required for cloud printing.")
        with self.cloud_factory(self.settings) as client:
            job_id = client.submit(pdf_bytes, printer_id)
        logger.info("Cloud print job %s accepted for printer %s", job_id, printer_id)
        return PrintResult(True, "Print job submitted successfully", job_id)

    def dispatch(self, pdf_bytes: bytes, target: PrintTarget) -> PrintResult:
        if target.kind == PrintTargetKind.NONE:
            return PrintResult(True, NOT_REQUESTED_MESSAGE, None)

        try:
            if target.kind == PrintTargetKind.LOCAL:
                return self.local_printer.print_pdf(pdf_bytes, target.printer_name)
            if target.kind == PrintTargetKind.CLOUD_API:
                return self._print_cloud(pdf_bytes, target.printer_id)
            raise DispatchError(f"Unknown print target: {target.kind}")
        except (DispatchError, ConfigError) as exc:
            logger.warning("Dispatch to %s target failed: %s", target.kind.value, exc)
            return PrintResult(False, str(exc))
        except Exception as exc:
            logger.exception("Unexpected error dispatching to %s target", target.kind.value)
            return PrintResult(False, f"Printing error: {exc}")
