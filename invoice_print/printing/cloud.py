"""Client for the PrintNode-style cloud print API."""

from __future__ import annotations

import base64
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import requests

from ..config import Settings
from ..errors import ConfigError, DispatchError

logger = logging.getLogger(__name__)

JOB_SOURCE = "invoice-print-service"


def _remote_message(response: Optional[requests.Response]) -> Optional[str]:
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message")
        return str(message) if message else None
    return None


def _printer_ref(printer_id: str) -> Union[int, str]:
    text = str(printer_id).strip()
    return int(text) if text.isdigit() else text


class CloudPrintClient:
    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.printnode.com",
        paper: str = "80mm x 297mm",
        timeout_ms: int = 30000,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ConfigError("PRINTNODE_API_KEY is not configured; cloud printing is unavailable.")
        self.base_url = base_url.rstrip("/")
        self.paper = paper
        self.timeout = timeout_ms / 1000.0
        self.session = session or requests.Session()
        # Basic auth with the API key as user name and an empty password.
        self.session.auth = (api_key, "")

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudPrintClient":
        return cls(
            api_key=settings.print_api_key,
            base_url=settings.print_api_url,
            paper=settings.print_paper,
            timeout_ms=settings.print_api_timeout_ms,
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "CloudPrintClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as exc:
            message = _remote_message(getattr(exc, "response", None)) or str(exc)
            logger.error("%s %s failed: %s", method, url, message)
            raise DispatchError(message) from exc
        try:
            return response.json()
        except ValueError as exc:
            raise DispatchError(f"Invalid JSON from print service: {exc}") from exc

    def build_job(self, pdf_bytes: bytes, printer_id: str, title: Optional[str] = None) -> Dict[str, Any]:
        return {
            "printerId": _printer_ref(printer_id),
            "title": title or f"Invoice {datetime.now().isoformat(timespec='seconds')}",
            "contentType": "pdf_base64",
            "content": base64.b64encode(pdf_bytes).decode("ascii"),
            "source": JOB_SOURCE,
            "options": {"paper": self.paper},
            "qty": 1,
        }

    def submit(self, pdf_bytes: bytes, printer_id: str, title: Optional[str] = None) -> str:
        job = self.build_job(pdf_bytes, printer_id, title)
        logger.info("Submitting print job %r to printer %s", job["title"], job["printerId"])
        job_id = self._request("POST", "/printjobs", json=job)
        return str(job_id)

    def list_printers(self) -> List[Dict[str, Any]]:
        printers = self._request("GET", "/printers")
        if not isinstance(printers, list):
            raise DispatchError("Unexpected printer list from print service.")
        return printers
