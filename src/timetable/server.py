"""JSON HTTP front end for the timetable service.

Plain http.server handler; one thread per request. Admin routes require the
X-Admin-Password header. All responses carry permissive CORS headers so the
browser-side viewer and admin page can call from any origin.

Routes:
  GET    /                  health, today's rotation sheet, storage tier
  GET    /timetable         current snapshot (404 if none)
  POST   /timetable         manual pre-parsed upload            [admin]
  DELETE /timetable         drop the snapshot                    [admin]
  POST   /automate          extract from a raw grid              [admin]
  POST   /names             replace display names only           [admin]
  GET    /phrases?user=     base, overrides and merged phrases
  POST   /phrases/base      replace base phrases                 [admin]
  POST   /phrases/override  replace one user's overrides
  GET    /phrases/users     users with overrides                 [admin]
  POST   /log               record a phrase-use event
  GET    /stats             aggregate usage                      [admin]
  GET    /stats/me?user=    one user's usage
  POST   /heartbeat         client ping
  GET    /heartbeat         who is online                        [admin]
"""

import hmac
import json
from collections.abc import Callable
from datetime import date
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import parse_qs, urlsplit

from src.timetable.config import TimetableConfig
from src.timetable.cycle import sheet_name_for_date
from src.timetable.errors import (
    AuthenticationError,
    MalformedInputError,
    NoDataFoundError,
    PersistenceError,
)
from src.timetable.logging import get_logger, request_context
from src.timetable.phrases import PhraseCatalog
from src.timetable.presence import PresenceTracker
from src.timetable.service import TimetableService
from src.timetable.stats import EventLog
from src.timetable.store import KeyValueStore, create_store

log = get_logger(__name__)

ADMIN_HEADER = "X-Admin-Password"
MAX_BODY_BYTES = 5 * 1024 * 1024


class TimetableApp:
    """Request-independent collaborators shared by every handler thread."""

    def __init__(self, config: TimetableConfig, store: KeyValueStore) -> None:
        self.config = config
        self.store = store
        self.timetable = TimetableService(store, staleness=config.timetable_staleness)
        self.phrases = PhraseCatalog(store)
        self.stats = EventLog(store)
        self.presence = PresenceTracker(store)

    @classmethod
    def from_config(cls, config: TimetableConfig) -> "TimetableApp":
        return cls(config, create_store(config))

    def check_admin(self, supplied: str | None) -> None:
        if not hmac.compare_digest(
            (supplied or "").encode(), self.config.admin_password.encode()
        ):
            raise AuthenticationError("Unauthorized")

    # -- route handlers: Request -> (status, payload) --

    def health(self, request: "Request") -> tuple[int, Any]:
        return 200, {
            "status": "ok",
            "todaySheet": sheet_name_for_date(date.today(), self.config.cycle_start)
            or "weekend",
            "storage": self.store.backend,
        }

    def get_timetable(self, request: "Request") -> tuple[int, Any]:
        snapshot = self.timetable.current()
        if snapshot is None:
            return 404, {"error": "No timetable uploaded yet"}
        return 200, snapshot.model_dump(mode="json")

    def post_timetable(self, request: "Request") -> tuple[int, Any]:
        self.check_admin(request.admin_password)
        self.timetable.upload(request.json())
        return 200, {"ok": True}

    def delete_timetable(self, request: "Request") -> tuple[int, Any]:
        self.check_admin(request.admin_password)
        self.timetable.clear()
        return 200, {"ok": True}

    def automate(self, request: "Request") -> tuple[int, Any]:
        self.check_admin(request.admin_password)
        result = self.timetable.automate(request.json())
        return 200, {"ok": True, "groups": result.group_count}

    def post_names(self, request: "Request") -> tuple[int, Any]:
        self.check_admin(request.admin_password)
        self.timetable.update_names(request.json())
        return 200, {"ok": True}

    def get_phrases(self, request: "Request") -> tuple[int, Any]:
        return 200, self.phrases.get(request.query_param("user"))

    def post_phrases_base(self, request: "Request") -> tuple[int, Any]:
        self.check_admin(request.admin_password)
        count = self.phrases.set_base(request.json_object().get("base"))
        return 200, {"ok": True, "count": count}

    def post_phrases_override(self, request: "Request") -> tuple[int, Any]:
        body = request.json_object()
        self.phrases.set_overrides(body.get("user"), body.get("overrides"))
        return 200, {"ok": True}

    def get_phrase_users(self, request: "Request") -> tuple[int, Any]:
        self.check_admin(request.admin_password)
        return 200, {"users": self.phrases.users()}

    def post_log(self, request: "Request") -> tuple[int, Any]:
        body = request.json_object()
        self.stats.log_event(body.get("user"), body.get("key"), body.get("label"))
        return 200, {"ok": True}

    def get_stats(self, request: "Request") -> tuple[int, Any]:
        self.check_admin(request.admin_password)
        return 200, self.stats.summary()

    def get_my_stats(self, request: "Request") -> tuple[int, Any]:
        return 200, self.stats.user_summary(request.query_param("user"))

    def post_heartbeat(self, request: "Request") -> tuple[int, Any]:
        self.presence.beat(request.json_object().get("user"))
        return 200, {"ok": True}

    def get_heartbeat(self, request: "Request") -> tuple[int, Any]:
        self.check_admin(request.admin_password)
        return 200, self.presence.online_users()

    def routes(self) -> dict[tuple[str, str], Callable[["Request"], tuple[int, Any]]]:
        return {
            ("GET", "/"): self.health,
            ("GET", "/timetable"): self.get_timetable,
            ("POST", "/timetable"): self.post_timetable,
            ("DELETE", "/timetable"): self.delete_timetable,
            ("POST", "/automate"): self.automate,
            ("POST", "/names"): self.post_names,
            ("GET", "/phrases"): self.get_phrases,
            ("POST", "/phrases/base"): self.post_phrases_base,
            ("POST", "/phrases/override"): self.post_phrases_override,
            ("GET", "/phrases/users"): self.get_phrase_users,
            ("POST", "/log"): self.post_log,
            ("GET", "/stats"): self.get_stats,
            ("GET", "/stats/me"): self.get_my_stats,
            ("POST", "/heartbeat"): self.post_heartbeat,
            ("GET", "/heartbeat"): self.get_heartbeat,
        }


class Request:
    """Parsed view of one inbound request."""

    def __init__(self, query: str, body: bytes, admin_password: str | None) -> None:
        self.query = parse_qs(query)
        self.body = body
        self.admin_password = admin_password

    def query_param(self, name: str) -> str:
        values = self.query.get(name)
        return values[0].strip() if values else ""

    def json(self) -> Any:
        try:
            return json.loads(self.body or b"null")
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MalformedInputError(f"Invalid JSON body: {e}") from e

    def json_object(self) -> dict[str, Any]:
        payload = self.json()
        if not isinstance(payload, dict):
            raise MalformedInputError("Expected a JSON object")
        return payload


def make_handler(app: TimetableApp) -> type[BaseHTTPRequestHandler]:
    """Build a request handler class bound to one app instance."""
    routes = app.routes()

    class TimetableHandler(BaseHTTPRequestHandler):
        def _send_json(self, code: int, payload: Any) -> None:
            body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
            self.send_response(code)
            self._send_cors()
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def _send_cors(self) -> None:
            self.send_header("Access-Control-Allow-Origin", "*")
            self.send_header("Access-Control-Allow-Methods", "GET, POST, DELETE, OPTIONS")
            self.send_header(
                "Access-Control-Allow-Headers", f"Content-Type, {ADMIN_HEADER}"
            )

        def _read_body(self) -> bytes:
            try:
                length = int(self.headers.get("Content-Length") or 0)
            except ValueError:
                raise MalformedInputError("Invalid Content-Length") from None
            if length > MAX_BODY_BYTES:
                raise MalformedInputError("Request body too large")
            return self.rfile.read(length) if length > 0 else b""

        def _dispatch(self) -> None:
            parts = urlsplit(self.path)
            route = routes.get((self.command, parts.path))
            if route is None:
                self.send_response(404)
                self._send_cors()
                self.send_header("Content-Length", "0")
                self.end_headers()
                return

            with request_context(self.command, parts.path):
                try:
                    request = Request(
                        parts.query, self._read_body(), self.headers.get(ADMIN_HEADER)
                    )
                    code, payload = route(request)
                except AuthenticationError:
                    log.info("admin_rejected")
                    code, payload = 401, {"error": "Unauthorized"}
                except (MalformedInputError, NoDataFoundError) as e:
                    log.info("request_rejected", error=str(e))
                    code, payload = 400, {"error": str(e)}
                except PersistenceError as e:
                    log.error("request_failed", error=str(e))
                    code, payload = 500, {"error": str(e)}
                except Exception:
                    log.exception("request_crashed")
                    code, payload = 500, {"error": "Internal server error"}
                self._send_json(code, payload)

        def do_GET(self):
            self._dispatch()

        def do_POST(self):
            self._dispatch()

        def do_DELETE(self):
            self._dispatch()

        def do_OPTIONS(self):
            self.send_response(204)
            self._send_cors()
            self.end_headers()

        def log_message(self, format, *args):
            log.debug("http_request", client=self.client_address[0], line=format % args)

    return TimetableHandler


def create_server(app: TimetableApp, host: str, port: int) -> ThreadingHTTPServer:
    return ThreadingHTTPServer((host, port), make_handler(app))


def serve(config: TimetableConfig) -> None:
    """Select the store, bind the listener and serve until interrupted."""
    app = TimetableApp.from_config(config)
    server = create_server(app, config.host, config.port)
    log.info(
        "server_started",
        host=config.host,
        port=server.server_address[1],
        storage=app.store.backend,
        today_sheet=sheet_name_for_date(date.today(), config.cycle_start) or "weekend",
    )
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        log.info("server_stopping")
    finally:
        server.server_close()
