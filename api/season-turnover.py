"""Vercel Serverless Function for season turnover preview and execution."""

from http.server import BaseHTTPRequestHandler
from urllib.parse import parse_qs, urlparse
import json

from ffcm.handlers import handle_turnover_execute, handle_turnover_preview
from ffcm.repository import get_repository


def query_params(path: str) -> dict:
    """Flatten a request path's query string into a dict."""
    return {k: v[0] for k, v in parse_qs(urlparse(path).query).items()}


class handler(BaseHTTPRequestHandler):
    def do_OPTIONS(self):
        """Handle CORS preflight."""
        self.send_response(200)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type, X-Commissioner-Password")
        self.send_header("Content-Length", "0")
        self.end_headers()

    def do_GET(self):
        """Preview the turnover: GET ?leagueId=... with X-Commissioner-Password."""
        try:
            data = query_params(self.path)
            data["password"] = self.headers.get("X-Commissioner-Password")
            status, result = handle_turnover_preview(get_repository(), data)
            return self._send_json(status, result)
        except Exception as e:
            return self._send_json(500, {"error": str(e)})

    def do_POST(self):
        """Execute the turnover: POST {"leagueId", "password", "executedBy"}."""
        try:
            content_length = int(self.headers.get("Content-Length", 0))
            body = self.rfile.read(content_length)
            data = json.loads(body.decode()) if body else {}

            status, result = handle_turnover_execute(get_repository(), data)
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
        self.send_header("Access-Control-Allow-Headers", "Content-Type, X-Commissioner-Password")
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def log_message(self, format, *args):
        """Suppress default logging."""
        pass
