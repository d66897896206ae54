import http.client
import json
import threading
import unittest
from typing import Any, Dict, Optional, Tuple
from unittest.mock import Mock

from invoice_print.config import Settings
from invoice_print.models import PrintResult
from invoice_print.pipeline import PrintPipeline
from invoice_print.printing import PrintDispatcher
from invoice_print.server import InvoiceHTTPServer, service_status, validate_request_body

PDF_BYTES = b"%PDF-1.4 api"


class RequestBodyValidationTests(unittest.TestCase):
    def _json_bytes(self, payload: object) -> bytes:
        return json.dumps(payload).encode("utf-8")

    def test_accepts_valid_payload(self) -> None:
        payload, error = validate_request_body(self._json_bytes({"invoiceId": "1", "items": []}))

        self.assertIsNone(error)
        assert payload is not None
        self.assertIn("items", payload)

    def test_rejects_invalid_utf8(self) -> None:
        _, error = validate_request_body(b"\xff")

        assert error is not None
        self.assertEqual(error[0], 400)
        self.assertFalse(error[1]["success"])

    def test_rejects_invalid_json(self) -> None:
        _, error = validate_request_body(b'{"items":')

        assert error is not None
        self.assertEqual(error[0], 400)
        self.assertIn("Invalid JSON", error[1]["error"])

    def test_rejects_non_object_root(self) -> None:
        _, error = validate_request_body(self._json_bytes(["bad-root"]))

        assert error is not None
        self.assertEqual(error[0], 400)

    def test_status_lists_every_route(self) -> None:
        status = service_status(Settings(renderer="template"))

        self.assertEqual(status["status"], "ok")
        self.assertEqual(status["renderer"], "template")
        self.assertEqual(
            set(status["endpoints"]),
            {"POST /api/printing", "POST /api/invoice", "GET /api/printing", "GET /api/printers"},
        )


class ServerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = Settings(host="127.0.0.1", port=0, max_body_bytes=4096)
        self.dispatcher = Mock(spec=PrintDispatcher)
        self.dispatcher.dispatch.return_value = PrintResult(False, "Printer offline")
        self.cloud_client = Mock()
        self.cloud_client.__enter__ = Mock(return_value=self.cloud_client)
        self.cloud_client.__exit__ = Mock(return_value=None)
        self.cloud_client.list_printers.return_value = [{"id": 1, "name": "Front desk"}]
        pipeline = PrintPipeline(self.settings, Mock(return_value=PDF_BYTES), self.dispatcher)

        self.server = InvoiceHTTPServer(
            ("127.0.0.1", 0),
            self.settings,
            pipeline,
            cloud_factory=lambda settings: self.cloud_client,
        )
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()

    def tearDown(self) -> None:
        self.server.shutdown()
        self.server.server_close()
        self.thread.join(timeout=5)

    def request(
        self,
        method: str,
        path: str,
        body: Optional[Any] = None,
    ) -> Tuple[int, str, bytes]:
        conn = http.client.HTTPConnection("127.0.0.1", self.server.server_address[1], timeout=10)
        try:
            data = json.dumps(body).encode("utf-8") if body is not None else None
            headers: Dict[str, str] = {"Content-Type": "application/json"} if data else {}
            conn.request(method, path, body=data, headers=headers)
            response = conn.getresponse()
            return response.status, response.getheader("Content-Type", ""), response.read()
        finally:
            conn.close()

    def test_get_printing_reports_status(self) -> None:
        status, _, body = self.request("GET", "/api/printing")

        self.assertEqual(status, 200)
        self.assertEqual(json.loads(body)["status"], "ok")

    def test_post_printing_reports_nested_print_failure(self) -> None:
        status, _, body = self.request(
            "POST",
            "/api/printing",
            {
                "invoiceId": "INV-1",
                "customerName": "Ada",
                "items": [{"name": "Widget", "price": "$10.00", "quantity": "2"}],
                "printerId": "42",
            },
        )

        self.assertEqual(status, 200)
        payload = json.loads(body)
        self.assertTrue(payload["success"])
        self.assertEqual(payload["printResult"], {"success": False, "message": "Printer offline", "jobId": None})

    def test_post_printing_missing_items_is_400(self) -> None:
        status, _, body = self.request("POST", "/api/printing", {"invoiceId": "INV-1", "customerName": "Ada"})

        self.assertEqual(status, 400)
        self.assertFalse(json.loads(body)["success"])

    def test_post_invoice_returns_pdf(self) -> None:
        status, content_type, body = self.request(
            "POST",
            "/api/invoice",
            {"invoiceId": "INV-1", "customerName": "Ada", "items": []},
        )

        self.assertEqual(status, 200)
        self.assertEqual(content_type, "application/pdf")
        self.assertEqual(body, PDF_BYTES)

    def test_empty_body_is_400(self) -> None:
        status, _, body = self.request("POST", "/api/printing")

        self.assertEqual(status, 400)
        self.assertIn("empty", json.loads(body)["error"])

    def test_get_printers_lists_cloud_printers(self) -> None:
        status, _, body = self.request("GET", "/api/printers")

        self.assertEqual(status, 200)
        self.assertEqual(json.loads(body)["printers"], [{"id": 1, "name": "Front desk"}])

    def test_unknown_path_is_404(self) -> None:
        status, _, _ = self.request("GET", "/nope")

        self.assertEqual(status, 404)


class PrintersWithoutApiKeyTests(unittest.TestCase):
    def test_missing_api_key_is_500_envelope(self) -> None:
        settings = Settings(host="127.0.0.1", port=0, print_api_key=None)
        pipeline = PrintPipeline(settings, Mock(return_value=PDF_BYTES), Mock(spec=PrintDispatcher))
        server = InvoiceHTTPServer(("127.0.0.1", 0), settings, pipeline)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        try:
            conn = http.client.HTTPConnection("127.0.0.1", server.server_address[1], timeout=10)
            conn.request("GET", "/api/printers")
            response = conn.getresponse()
            body = json.loads(response.read())
            conn.close()
        finally:
            server.shutdown()
            server.server_close()
            thread.join(timeout=5)

        self.assertEqual(response.status, 500)
        self.assertFalse(body["success"])
        self.assertIn("PRINTNODE_API_KEY", body["error"])


if __name__ == "__main__":
    unittest.main()
