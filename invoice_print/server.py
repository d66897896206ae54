"""HTTP server entrypoints for invoice rendering and printing."""

from __future__ import annotations

import errno
import json
import logging
import multiprocessing as mp
import threading
from concurrent.futures import Future, ProcessPoolExecutor, TimeoutError as FutureTimeoutError
from concurrent.futures.process import BrokenProcessPool
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Dict, Optional, Tuple

from .config import Settings, load_settings
from .errors import ConfigError, DispatchError, InputError, RenderError
from .logs import setup_logging
from .models import InvoiceDocument
from .pipeline import PrintPipeline, error_body
from .printing import CloudPrintClient, PrintDispatcher
from .rendering import Renderer, build_renderer

logger = logging.getLogger(__name__)

ValidationError = Tuple[int, Dict[str, Any]]

DISCONNECT_ERRNOS = {errno.EPIPE, errno.ECONNRESET, errno.ETIMEDOUT}


def is_client_disconnect(exc: BaseException) -> bool:
    if isinstance(exc, (BrokenPipeError, ConnectionResetError, TimeoutError)):
        return True
    return isinstance(exc, OSError) and exc.errno in DISCONNECT_ERRNOS


class RenderPool:
    """Runs renders in worker processes; the worker count bounds browser instances."""

    def __init__(self, renderer: Renderer, max_workers: int, timeout_ms: int) -> None:
        self.renderer = renderer
        self.max_workers = max_workers
        self.timeout_ms = timeout_ms
        self._lock = threading.Lock()
        self._executor: Optional[ProcessPoolExecutor] = None

    def _create(self) -> ProcessPoolExecutor:
        return ProcessPoolExecutor(max_workers=self.max_workers, mp_context=mp.get_context("spawn"))

    def get(self) -> ProcessPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = self._create()
            return self._executor

    def restart(self, previous: ProcessPoolExecutor) -> ProcessPoolExecutor:
        with self._lock:
            if self._executor is previous:
                previous.shutdown(wait=False, cancel_futures=True)
                self._executor = None
            if self._executor is None:
                logger.warning("Restarting render worker pool")
                self._executor = self._create()
            return self._executor

    def submit(self, document: InvoiceDocument) -> "Future[bytes]":
        executor = self.get()
        try:
            return executor.submit(self.renderer.render, document)
        except BrokenProcessPool:
            return self.restart(executor).submit(self.renderer.render, document)

    def render(self, document: InvoiceDocument) -> bytes:
        future = self.submit(document)
        try:
            return future.result(timeout=self.timeout_ms / 1000.0)
        except FutureTimeoutError as exc:
            # The worker keeps running; there is no cancellation of in-flight renders.
            future.cancel()
            raise RenderError(f"Render exceeded timeout of {self.timeout_ms} ms.") from exc
        except BrokenProcessPool as exc:
            self.restart(self.get())
            raise RenderError("Render worker pool restarted; retry shortly.") from exc

    def shutdown(self) -> None:
        with self._lock:
            executor = self._executor
            self._executor = None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)


def validate_request_body(body: bytes) -> Tuple[Optional[Dict[str, Any]], Optional[ValidationError]]:
    try:
        payload = json.loads(body.decode("utf-8"))
    except UnicodeDecodeError:
        return None, (400, error_body("Body must be UTF-8 encoded JSON."))
    except json.JSONDecodeError as exc:
        return None, (400, error_body(f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})"))

    if not isinstance(payload, dict):
        return None, (400, error_body("JSON root must be an object."))
    return payload, None


def service_status(settings: Settings) -> Dict[str, Any]:
    return {
        "status": "ok",
        "message": "Printing service is running",
        "renderer": settings.renderer,
        "pagePreset": settings.page_preset,
        "cloudPrinting": settings.print_api_key is not None,
        "endpoints": {
            "POST /api/printing": "Generate and optionally print invoice",
            "POST /api/invoice": "Generate invoice PDF",
            "GET /api/printing": "Service status check",
            "GET /api/printers": "List cloud printers",
        },
    }


class InvoiceHandler(BaseHTTPRequestHandler):
    server: "InvoiceHTTPServer"

    def _write_response(self, status: int, content_type: str, body: bytes) -> bool:
        try:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
            return True
        except Exception as exc:
            if is_client_disconnect(exc):
                return False
            raise

    def _send_json(self, status: int, payload: Dict[str, Any]) -> bool:
        body = json.dumps(payload).encode("utf-8")
        return self._write_response(status, "application/json", body)

    def _read_body(self) -> Optional[bytes]:
        header = self.headers.get("Content-Length")
        if header is None:
            self._send_json(411, error_body("Content-Length header is required."))
            return None

        try:
            content_length = int(header)
        except ValueError:
            self._send_json(400, error_body("Content-Length must be an integer."))
            return None

        if content_length <= 0:
            self._send_json(400, error_body("Request body cannot be empty."))
            return None

        max_bytes = self.server.settings.max_body_bytes
        if content_length > max_bytes:
            self._send_json(413, error_body(f"Body exceeds {max_bytes} bytes."))
            return None

        try:
            return self.rfile.read(content_length)
        except Exception as exc:
            if is_client_disconnect(exc):
                return None
            raise

    def _read_payload(self) -> Optional[Dict[str, Any]]:
        body = self._read_body()
        if body is None:
            return None
        payload, validation_error = validate_request_body(body)
        if validation_error is not None:
            status, error = validation_error
            self._send_json(status, error)
            return None
        return payload

    def _with_slot(self, action: Callable[[], None]) -> None:
        timeout_ms = self.server.settings.render_queue_timeout_ms
        if not self.server.inflight.acquire(timeout=timeout_ms / 1000.0):
            self._send_json(
                503,
                {
                    "success": False,
                    "error": "Render queue is full; retry shortly.",
                    "retry_after_ms": timeout_ms,
                },
            )
            return
        try:
            action()
        finally:
            self.server.inflight.release()

    def _handle_printing(self, payload: Dict[str, Any]) -> None:
        try:
            status, body = self.server.pipeline.handle(payload)
        except Exception as exc:
            logger.exception("Error in print-invoice")
            self._send_json(500, error_body(str(exc)))
            return
        self._send_json(status, body)

    def _handle_invoice(self, payload: Dict[str, Any]) -> None:
        try:
            pdf_bytes = self.server.pipeline.render_only(payload)
        except InputError as exc:
            self._send_json(exc.status, error_body(str(exc)))
            return
        except Exception as exc:
            logger.exception("Error rendering invoice")
            self._send_json(500, error_body(str(exc)))
            return
        self._write_response(200, "application/pdf", pdf_bytes)

    def _handle_printers(self) -> None:
        try:
            with self.server.cloud_factory(self.server.settings) as client:
                printers = client.list_printers()
        except (ConfigError, DispatchError) as exc:
            logger.error("Error fetching printers: %s", exc)
            self._send_json(500, error_body(str(exc)))
            return
        self._send_json(200, {"success": True, "printers": printers})

    def do_POST(self) -> None:
        routes = {
            "/api/printing": self._handle_printing,
            "/api/invoice": self._handle_invoice,
        }
        handler = routes.get(self.path)
        if handler is None:
            self._send_json(404, {"success": False, "error": "not_found"})
            return

        payload = self._read_payload()
        if payload is None:
            return
        self._with_slot(lambda: handler(payload))

    def do_GET(self) -> None:
        if self.path in ("/", "/health", "/healthz", "/ready"):
            self._send_json(200, {"status": "ok"})
        elif self.path == "/api/printing":
            self._send_json(200, service_status(self.server.settings))
        elif self.path == "/api/printers":
            self._handle_printers()
        else:
            self._send_json(404, {"success": False, "error": "not_found"})

    def handle_one_request(self) -> None:
        try:
            super().handle_one_request()
        except Exception as exc:
            if is_client_disconnect(exc):
                return
            raise

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class InvoiceHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(
        self,
        address: Tuple[str, int],
        settings: Settings,
        pipeline: PrintPipeline,
        cloud_factory: Callable[[Settings], CloudPrintClient] = CloudPrintClient.from_settings,
    ) -> None:
        self.settings = settings
        self.pipeline = pipeline
        self.cloud_factory = cloud_factory
        self.inflight = threading.BoundedSemaphore(settings.max_inflight_renders)
        self.request_queue_size = settings.listen_backlog
        super().__init__(address, InvoiceHandler)


def build_server(settings: Settings, renderer: Optional[Renderer] = None) -> Tuple[InvoiceHTTPServer, RenderPool]:
    renderer = renderer or build_renderer(settings)
    pool = RenderPool(renderer, settings.max_concurrent_renders, settings.render_timeout_ms)
    pipeline = PrintPipeline(settings, pool.render, PrintDispatcher(settings))
    server = InvoiceHTTPServer((settings.host, settings.port), settings, pipeline)
    return server, pool


def run(settings: Optional[Settings] = None) -> None:
    settings = settings or load_settings()
    setup_logging(settings.log_level)
    if settings.print_api_key is None:
        logger.warning("PRINTNODE_API_KEY is not set; cloud printing requests will fail")

    server, pool = build_server(settings)
    pool.get()
    logger.info(
        "Print server listening on http://%s:%d (%s renderer, %s preset)",
        settings.host,
        settings.port,
        settings.renderer,
        settings.page_preset,
    )
    try:
        server.serve_forever()
    finally:
        server.server_close()
        pool.shutdown()
