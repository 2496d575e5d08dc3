"""
Unit tests for the gateway's front-door pipeline (no sockets).
"""

import logging
from pathlib import Path

import pytest

from gamegate import Gateway
from gamegate.__main__ import build_config, build_parser, main
from gamegate.host import InMemoryHost
from gamegate.http import HTTPStatus, RequestParser, error_response
from gamegate.http.router import Route, RouteTable
from gamegate.middleware import Middleware
from gamegate.server import TOGGLE_USAGE

from conftest import INDEX_HTML, ROUTE_KEY, SITE_CSS, VALID_KEY, bearer


class TestRouting:

    def test_no_matching_route(self, config, host, make_request):
        gateway = Gateway(config, RouteTable([Route("/static", dir="public")]), set(), host)

        response = gateway.handle(make_request("/other"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.json == {"error": "Route not found"}

    def test_root_route_catches_everything_else(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/nothing/here.txt"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.json == {"error": "File not found: nothing/here.txt"}

    def test_method_not_allowed(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/api/players", method="DELETE"))

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "GET"
        assert response.json == {"error": "Method DELETE not allowed"}

    def test_method_checked_before_auth(self, gateway: Gateway, make_request):
        # No credential, wrong method: 405 wins over 401
        response = gateway.handle(make_request("/api/players", method="POST"))

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED

    def test_method_case_insensitive(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/static/css/site.css", method="get"))

        assert response.status == HTTPStatus.OK

    def test_console_accepts_post(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request(
            "/server/console/execute?command=list", method="POST", headers=bearer(),
        ))

        assert response.status == HTTPStatus.OK
        assert response.json["output"] == "There are 2 players online: Steve, Alex"


class TestAuth:

    def test_missing_credential(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/api/players"))

        assert response.status == HTTPStatus.UNAUTHORIZED
        assert response.json == {"error": "Unauthorized"}

    def test_bearer_header(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/api/players", headers=bearer()))

        assert response.status == HTTPStatus.OK
        assert response.json["players"] == ["Steve", "Alex"]

    def test_query_key(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request(f"/api/players?key={VALID_KEY}"))

        assert response.status == HTTPStatus.OK

    def test_wrong_key(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/api/players?key=guess"))

        assert response.status == HTTPStatus.UNAUTHORIZED

    def test_header_wins_over_query(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request(
            f"/api/players?key={VALID_KEY}", headers=bearer("wrong"),
        ))

        assert response.status == HTTPStatus.UNAUTHORIZED

    def test_basic_auth_falls_back_to_query(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request(
            f"/api/players?key={VALID_KEY}", headers={"Authorization": "Basic dXNlcjpwdw=="},
        ))

        assert response.status == HTTPStatus.OK

    def test_bearer_among_repeated_authorization_headers(self, gateway: Gateway):
        raw = (
            "GET /api/players HTTP/1.1\r\n"
            "Authorization: Basic dXNlcjpwdw==\r\n"
            f"Authorization: Bearer {VALID_KEY}\r\n"
            "\r\n"
        ).encode("utf-8")

        response = gateway.handle(RequestParser().parse(raw))

        assert response.status == HTTPStatus.OK

    def test_route_key_replaces_global_keys(self, gateway: Gateway, make_request):
        denied = gateway.handle(make_request("/admin/", headers=bearer(VALID_KEY)))
        admitted = gateway.handle(make_request("/admin/", headers=bearer(ROUTE_KEY)))

        assert denied.status == HTTPStatus.UNAUTHORIZED
        assert admitted.status == HTTPStatus.OK
        assert admitted.body == INDEX_HTML

    def test_empty_key_set_locks_routes(self, config, routes, host, make_request):
        gateway = Gateway(config, routes, set(), host)

        response = gateway.handle(make_request("/api/players", headers=bearer("")))

        assert response.status == HTTPStatus.UNAUTHORIZED

    def test_public_routes_need_no_credential(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/"))

        assert response.status == HTTPStatus.OK
        assert response.body == INDEX_HTML


class TestEndpoints:

    def test_inventory_unknown_player(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/api/player/inventory?name=Ghost", headers=bearer()))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.json == {"error": "Player not found"}

    def test_isadmin_unknown_player(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/api/player/isadmin?name=Ghost", headers=bearer()))

        assert response.status == HTTPStatus.OK
        assert response.json == {"success": True, "player": "Ghost", "isAdmin": False}

    def test_missing_command(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/server/console/execute", headers=bearer()))

        assert response.status == HTTPStatus.BAD_REQUEST
        assert response.json == {"error": "Missing parameter: command"}

    def test_key_param_not_part_of_command(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request(
            f"/server/console/execute?key={VALID_KEY}&command=kick+Alex"
        ))

        assert response.json["command"] == "kick Alex"

    def test_host_exception_is_500(self, gateway: Gateway, host: InMemoryHost, make_request, monkeypatch):
        def broken():
            raise RuntimeError("world not loaded")

        monkeypatch.setattr(host, "online_players", broken)

        response = gateway.handle(make_request("/api/players", headers=bearer()))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.json == {"error": "Internal Server Error"}


class TestStatic:

    def test_file(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/static/css/site.css"))

        assert response.status == HTTPStatus.OK
        assert response.body == SITE_CSS

    def test_encoded_name(self, gateway: Gateway, data_dir: Path, make_request):
        (data_dir / "public" / "my file.css").write_bytes(b"x{}")

        response = gateway.handle(make_request("/static/my%20file.css"))

        assert response.body == b"x{}"

    def test_overlong_file_name(self, gateway: Gateway, make_request):
        name = "a" * 300 + ".txt"

        response = gateway.handle(make_request(f"/static/{name}"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.json == {"error": f"File not found: /{name}"}

    def test_traversal(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/static/../../outside.txt"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.json == {"error": "Access denied"}

    def test_encoded_traversal(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/static/%2e%2e/%2e%2e/outside.txt"))

        assert response.json == {"error": "Access denied"}

    def test_index_not_defined(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/docs"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.json == {"error": "Index file not defined for /docs"}

    def test_file_too_large(self, config, routes, host, make_request):
        config.max_file_size = 2
        gateway = Gateway(config, routes, set(), host)

        response = gateway.handle(make_request("/static/css/site.css"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.json == {"error": "File too large"}


class TestMiddleware:

    def test_request_id_header(self, gateway: Gateway, make_request):
        response = gateway.process(make_request("/"))

        assert len(response.headers["X-Request-ID"]) == 8

    def test_handle_skips_middleware(self, gateway: Gateway, make_request):
        response = gateway.handle(make_request("/"))

        assert "X-Request-ID" not in response.headers

    def test_plain_function_middleware(self, gateway: Gateway, make_request):
        def stamp(request, next):
            response = next(request)
            response.set_header("X-Gateway", "gamegate")
            return response

        gateway.use(stamp)
        response = gateway.process(make_request("/api/players"))

        # Middleware also sees rejected requests
        assert response.status == HTTPStatus.UNAUTHORIZED
        assert response.headers["X-Gateway"] == "gamegate"

    def test_middleware_can_short_circuit(self, gateway: Gateway, make_request):
        class Maintenance(Middleware):
            def __call__(self, request, next):
                return error_response(HTTPStatus.SERVICE_UNAVAILABLE, "Maintenance")

        gateway.use(Maintenance())
        response = gateway.process(make_request("/"))

        assert response.status == HTTPStatus.SERVICE_UNAVAILABLE
        assert "X-Request-ID" in response.headers

    def test_access_log_redacts_key(self, gateway: Gateway, make_request, caplog):
        with caplog.at_level(logging.INFO, logger="gamegate.access"):
            gateway.process(make_request(f"/api/players?key={VALID_KEY}&x=1"))

        assert "/api/players?key=***&x=1" in caplog.text
        assert VALID_KEY not in caplog.text
        assert " 200 " in caplog.text

    def test_json_access_log(self, config, routes, host, make_request, caplog):
        config.log_format = "json"
        gateway = Gateway(config, routes, {VALID_KEY}, host)

        with caplog.at_level(logging.INFO, logger="gamegate.access"):
            gateway.process(make_request("/api/players", headers=bearer()))

        assert '"status_code": 200' in caplog.text
        assert '"path": "/api/players"' in caplog.text
        assert VALID_KEY not in caplog.text


class TestToggle:

    @pytest.mark.parametrize("args", ["", [], "restart", ["maybe", "on"]])
    def test_usage(self, gateway: Gateway, args):
        assert gateway.toggle(args) == TOGGLE_USAGE

    def test_off_when_stopped(self, gateway: Gateway):
        assert gateway.toggle("off") == "Gateway is not running"
        assert gateway.stop() is False

    def test_not_running_initially(self, gateway: Gateway):
        assert gateway.is_running is False
        assert gateway.port == 0


class TestCommandLine:

    def test_flags_override_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GAMEGATE_PORT", "9000")
        monkeypatch.setenv("GAMEGATE_WORKERS", "3")

        args = build_parser().parse_args(["--port", "9100", "-d", "/srv/gate"])
        config = build_config(args)

        assert config.port == 9100
        assert config.workers == 3
        assert config.data_dir == "/srv/gate"

    def test_invalid_settings_exit_code(self, tmp_path: Path, capsys):
        assert main(["--workers", "0", "--data-dir", str(tmp_path)]) == 2
        assert "workers must be >= 1" in capsys.readouterr().err

    def test_invalid_routes_exit_code(self, tmp_path: Path, monkeypatch, capsys):
        monkeypatch.delenv("GAMEGATE_PORT", raising=False)
        (tmp_path / "routes.yml").write_text("routes: [\n", encoding="utf-8")

        assert main(["--data-dir", str(tmp_path)]) == 2
        assert "Invalid YAML" in capsys.readouterr().err
