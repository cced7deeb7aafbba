"""Minimal webhook HTTP server for GitHub events.

Serves a health check and the webhook path. When a webhook secret is
configured, deliveries must carry a valid X-Hub-Signature-256 header.
Accepted deliveries are acknowledged at once and handled in order by a
single background worker.
"""

import hashlib
import hmac
import json
import logging
import queue
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Tuple
from urllib.parse import parse_qs

from codeagent.config import AppConfig
from codeagent.webhook.handlers import handle_github_event

LOG = logging.getLogger("codeagent.webhook")

SIGNATURE_HEADER = "X-Hub-Signature-256"


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check a sha256=<hex> HMAC signature of body."""
    if not signature or not signature.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(f"sha256={expected}", signature)


class DeliveryWorker(threading.Thread):
    """Run accepted deliveries one at a time, off the request path."""

    def __init__(self, config: AppConfig, log: logging.Logger | None = None) -> None:
        super().__init__(name="codeagent-webhook-worker", daemon=True)
        self.config = config
        self.deliveries: "queue.Queue[Tuple[str, dict] | None]" = queue.Queue()
        self.log = log or LOG

    def submit(self, event: str, payload: dict) -> None:
        self.deliveries.put((event, payload))
        self.log.debug("Queued %s delivery (%s pending)", event, self.deliveries.qsize())

    def wait_idle(self) -> None:
        """Block until every submitted delivery has been handled."""
        self.deliveries.join()

    def stop(self, timeout: float | None = None) -> None:
        self.deliveries.put(None)
        self.join(timeout)

    def run(self) -> None:
        while True:
            item = self.deliveries.get()
            try:
                if item is None:
                    return
                event, payload = item
                try:
                    handle_github_event(self.config, event, payload)
                except Exception as e:
                    self.log.exception("Failed to handle %s event: %s", event, e)
            finally:
                self.deliveries.task_done()


class WebhookHandler(BaseHTTPRequestHandler):
    """Handle GET /health and POST {github.webhook_path}."""

    config: AppConfig
    worker: DeliveryWorker

    def _send_json(self, status: int, data: dict) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def do_GET(self) -> None:
        if self.path == "/health" or self.path == "/":
            self._send_json(200, {"status": "ok", "service": "codeagent"})
            return
        self.send_response(404)
        self.end_headers()

    def do_POST(self) -> None:
        if self.path == self.config.github.webhook_path:
            self._handle_github_webhook()
            return
        self.send_response(404)
        self.end_headers()

    def _parse_webhook_body(self, body: bytes) -> dict:
        """Parse webhook body as JSON.

        Supports raw JSON and application/x-www-form-urlencoded (payload=...).
        """
        if not body:
            return {}
        content_type = self.headers.get("Content-Type", "")
        if "application/x-www-form-urlencoded" in content_type:
            parsed = parse_qs(body.decode("utf-8", errors="replace"), keep_blank_values=True)
            raw = (parsed.get("payload") or [None])[0]
            if raw is None:
                return {}
            return json.loads(raw)
        return json.loads(body.decode())

    def _handle_github_webhook(self) -> None:
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length) if length else b""
        secret = self.config.webhook_secret_resolved
        if secret and not verify_signature(secret, body, self.headers.get(SIGNATURE_HEADER)):
            LOG.warning("Rejected webhook with missing or invalid signature")
            self._send_json(401, {"error": "invalid signature"})
            return
        try:
            payload = self._parse_webhook_body(body)
        except json.JSONDecodeError:
            LOG.warning("Invalid webhook JSON (%s bytes)", len(body))
            self._send_json(400, {"error": "invalid json"})
            return
        event = self.headers.get("X-GitHub-Event", "")
        LOG.info("Webhook event: %s (action: %s)", event, payload.get("action"))
        self.worker.submit(event, payload)
        self._send_json(200, {"received": True})

    def log_message(self, format: str, *args: Any) -> None:
        LOG.debug(format, *args)


def run_webhook_server(config: AppConfig) -> None:
    """Run HTTP server for webhooks and health check."""
    host = config.webhook.host
    port = config.webhook.port
    worker = DeliveryWorker(config)
    worker.start()
    WebhookHandler.config = config
    WebhookHandler.worker = worker
    server = HTTPServer((host, port), WebhookHandler)
    LOG.info("Webhook server listening on %s:%s", host, port)
    try:
        server.serve_forever()
    finally:
        server.server_close()
        worker.stop(timeout=5)
