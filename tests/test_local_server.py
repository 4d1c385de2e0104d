import socket
import threading
import time
import unittest
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from sitecheck.checks.http_check import check_json_body, check_status
from sitecheck.models import CheckTarget

ROUTES = {
    "/": (200, "text/html", b"<html>ok</html>"),
    "/unavailable": (503, "text/plain", b"Service Unavailable"),
    "/posts": (200, "application/json", b'[{"id":1,"title":"Hello"}]'),
    "/wp-json/wp/v2/posts": (
        200,
        "application/json",
        b'[{"id":1,"title":{"rendered":"Hello"}},{"id":2,"title":{"rendered":"World"}}]',
    ),
    "/broken": (200, "application/json", b"[{not json"),
    "/maintenance": (503, "application/json", b"[{not json"),
}

# Body writers that never finish inside a short client timeout.
TRICKLE_INTERVAL_S = 0.5
STALL_S = 3.0


class Handler(BaseHTTPRequestHandler):
    def _slow_body(self, first: bytes, pieces: list[bytes], pause_s: float) -> None:
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(first) + sum(len(p) for p in pieces)))
        self.end_headers()
        try:
            self.wfile.write(first)
            self.wfile.flush()
            for piece in pieces:
                time.sleep(pause_s)
                self.wfile.write(piece)
                self.wfile.flush()
        except (BrokenPipeError, ConnectionResetError):
            pass

    def do_GET(self):
        if self.path == "/trickle":
            body = b'[{"id":1,"title":"Hello"}]'
            self._slow_body(body[:1], [bytes([b]) for b in body[1:]], TRICKLE_INTERVAL_S)
            return
        if self.path == "/stall":
            self._slow_body(b'[{"id":1,', [b'"title":"Hello"}]'], STALL_S)
            return
        status, ctype, body = ROUTES.get(self.path, (404, "text/plain", b"not found"))
        self.send_response(status)
        self.send_header("Content-Type", ctype)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


class LocalServerTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        cls.base = f"http://127.0.0.1:{cls.server.server_address[1]}"
        cls.thread = threading.Thread(target=cls.server.serve_forever, daemon=True)
        cls.thread.start()

    @classmethod
    def tearDownClass(cls) -> None:
        cls.server.shutdown()
        cls.server.server_close()

    def _target(self, path: str, **kwargs) -> CheckTarget:
        return CheckTarget(id=path.strip("/") or "homepage", url=f"{self.base}{path}", **kwargs)

    def test_homepage_passes(self) -> None:
        res = check_status(self._target("/"))

        self.assertTrue(res.passed)
        self.assertEqual(res.observed_status, 200)
        self.assertIsNone(res.error)

    def test_unavailable_fails_with_observed_status(self) -> None:
        res = check_status(self._target("/unavailable"))

        self.assertFalse(res.passed)
        self.assertEqual(res.observed_status, 503)
        self.assertEqual(res.error, "Expected status 200, got 503")

    def test_single_post_decodes(self) -> None:
        res = check_json_body(self._target("/posts"))

        self.assertTrue(res.passed)
        self.assertEqual(res.record_count, 1)
        self.assertEqual(res.decoded_body[0].id, 1)
        self.assertEqual(res.decoded_body[0].title, "Hello")

    def test_wordpress_posts_endpoint(self) -> None:
        res = check_json_body(self._target("/wp-json/wp/v2/posts", body="posts"))

        self.assertTrue(res.passed)
        self.assertEqual(res.record_count, 2)
        self.assertEqual([p.title for p in res.decoded_body], ["Hello", "World"])

    def test_malformed_json_fails(self) -> None:
        res = check_json_body(self._target("/broken"))

        self.assertFalse(res.passed)
        self.assertEqual(res.error_kind, "decode_error")

    def test_status_and_decode_failures_both_reported(self) -> None:
        res = check_json_body(self._target("/maintenance"))

        self.assertFalse(res.passed)
        self.assertEqual(res.observed_status, 503)
        self.assertEqual(res.error_kind, "decode_error")
        self.assertIn("Expected status 200, got 503", res.error)
        self.assertIn("Failed to parse JSON response", res.error)

    def test_trickling_body_hits_overall_deadline(self) -> None:
        # Each byte arrives well inside the socket timeout; the body as a whole does not.
        start = time.monotonic()
        res = check_json_body(self._target("/trickle", timeout_s=2))
        elapsed = time.monotonic() - start

        self.assertFalse(res.passed)
        self.assertEqual(res.error_kind, "timeout")
        self.assertTrue(res.error.startswith("timeout"))
        self.assertLess(elapsed, 4.0)

    def test_stalled_body_is_timeout(self) -> None:
        start = time.monotonic()
        res = check_json_body(self._target("/stall", timeout_s=1))
        elapsed = time.monotonic() - start

        self.assertFalse(res.passed)
        self.assertEqual(res.observed_status, 200)
        self.assertEqual(res.error_kind, "timeout")
        self.assertLess(elapsed, STALL_S)

    def test_repeated_checks_agree(self) -> None:
        target = self._target("/unavailable")
        first = check_status(target)
        second = check_status(target)

        self.assertEqual(first.passed, second.passed)
        self.assertEqual(first.observed_status, second.observed_status)
        self.assertIsNot(first, second)


class UnreachableTargetTests(unittest.TestCase):
    def test_silent_server_times_out(self) -> None:
        # Listening socket that never accepts: connect succeeds, no response ever arrives.
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.bind(("127.0.0.1", 0))
        sock.listen(1)
        port = sock.getsockname()[1]
        try:
            target = CheckTarget(id="silent", url=f"http://127.0.0.1:{port}/", timeout_s=2)
            start = time.monotonic()
            res = check_status(target)
            elapsed = time.monotonic() - start
        finally:
            sock.close()

        self.assertFalse(res.passed)
        self.assertEqual(res.error_kind, "timeout")
        self.assertTrue(res.error.startswith("timeout"))
        self.assertLess(elapsed, 4.0)

    def test_refused_connection(self) -> None:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
        sock.close()

        res = check_status(CheckTarget(id="closed", url=f"http://127.0.0.1:{port}/", timeout_s=2))

        self.assertFalse(res.passed)
        self.assertEqual(res.error_kind, "connection_error")
        self.assertTrue(res.error)


if __name__ == "__main__":
    unittest.main()
