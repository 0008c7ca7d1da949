"""Vercel Serverless Function for contract actions and cap reports."""

from http.server import BaseHTTPRequestHandler
from urllib.parse import parse_qs, urlparse
import json

from ffcm.handlers import handle_cap_report, handle_contract_action
from ffcm.repository import get_repository


class handler(BaseHTTPRequestHandler):
    def do_OPTIONS(self):
        """Handle CORS preflight."""
        self.send_response(200)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Content-Length", "0")
        self.end_headers()

    def do_GET(self):
        """Cap report: GET ?leagueId=...[&teamId=...&years=3]"""
        try:
            data = {k: v[0] for k, v in parse_qs(urlparse(self.path).query).items()}
            status, result = handle_cap_report(get_repository(), data)
            return self._send_json(status, result)
        except Exception as e:
            return self._send_json(500, {"error": str(e)})

    def do_POST(self):
        """Contract action: POST {"action": release|extend|tag|impact|tag_quote, ...}."""
        try:
            content_length = int(self.headers.get("Content-Length", 0))
            body = self.rfile.read(content_length)
            data = json.loads(body.decode()) if body else {}

            status, result = handle_contract_action(get_repository(), data)
            return self._send_json(status, result)

        except json.JSONDecodeError:
            return self._send_json(400, {"error": "Invalid JSON"})
        except Exception as e:
            return self._send_json(500, {"error": str(e)})

    def _send_json(self, status_code: int, data: dict):
        """Send JSON response with CORS headers."""
        self.send_response(status_code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def log_message(self, format, *args):
        """Suppress default logging."""
        pass
