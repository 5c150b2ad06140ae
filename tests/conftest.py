# tests/conftest.py
import json
import os
from collections import defaultdict
from typing import Any

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Rate limiting and similar process switches read TESTING at request time.
os.environ["TESTING"] = "1"
os.environ.setdefault("LOG_FORMAT", "json")

from app.api.deps import get_backend_client  # noqa: E402
from app.clients.backend import BackendClient  # noqa: E402
from app.core.config import reset_settings_cache  # noqa: E402
from app.main import create_app  # noqa: E402

BACKEND_URL = "http://backend.test"
ANON_KEY = "anon-key"

WASTE_TYPES = {
    "Envases": 1,
    "Papel y Cartón": 2,
    "Vidrio": 3,
    "Orgánico": 4,
    "Pilas y Baterías": 5,
    "Aceite usado": 6,
    "Otros": 7,
    "Residuos voluminosos y/o Tecnológicos": 8,
}


def rpc_point(
    point_id: int,
    *,
    lat: Any = 40.4168,
    lng: Any = -3.7038,
    distance: float | None = 0.5,
    name: str = "Punto",
    **extra: Any,
) -> dict[str, Any]:
    row = {
        "punto_id": point_id,
        "nombre": f"{name} {point_id}",
        "direccion": f"Calle {point_id}",
        "latitud": lat,
        "longitud": lng,
        "distancia_km": distance,
    }
    row.update(extra)
    return row


def joined_point(
    point_id: int, *, lat: Any, lng: Any, status: str | None = "Operativo", **extra: Any
) -> dict[str, Any]:
    point = {
        "id_punto": point_id,
        "nombre": f"Punto {point_id}",
        "direccion": f"Calle {point_id}",
        "latitud": lat,
        "longitud": lng,
        "activa": True,
        "horario": None,
        "telefono": None,
    }
    point.update(extra)
    return {"id_punto": point_id, "estado_contenedor": status, "puntoreciclaje": point}


class FakeBackend:
    """In-memory stand-in for the REST/RPC/auth endpoints."""

    def __init__(self) -> None:
        self.waste_types: dict[str, int] = dict(WASTE_TYPES)
        self.users: dict[str, int] = {"user-uuid-1": 42}
        self.accounts: dict[str, str] = {"ana@example.com": "secret123"}
        self.tokens: dict[str, dict[str, str]] = {
            "token-ana": {"id": "user-uuid-1", "email": "ana@example.com"}
        }
        self.confirm_email = False
        self.rpc_payload: Any = []
        self.joined_points: list[dict[str, Any]] = []
        self.inserted: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.requests: list[httpx.Request] = []
        # key -> (status, body); keys are table names, "rpc", "ping" or auth paths
        self.failures: dict[str, tuple[int, Any]] = {}
        self._next_point_id = 1000
        self._next_query_id = 500

    # --- helpers ---

    def calls(self, key: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.rstrip("/").endswith(key)]

    def fail(self, key: str, status: int = 500, body: Any = None) -> None:
        self.failures[key] = (status, body if body is not None else {"message": "boom"})

    def _user_from(self, request: httpx.Request) -> dict[str, str] | None:
        header = request.headers.get("authorization", "")
        _, _, token = header.partition(" ")
        return self.tokens.get(token)

    def _session(self, email: str) -> dict[str, Any]:
        user_id = next(
            (u["id"] for u in self.tokens.values() if u["email"] == email),
            f"uuid-{email}",
        )
        token = f"token-{email.split('@')[0]}"
        self.tokens[token] = {"id": user_id, "email": email}
        return {
            "access_token": token,
            "refresh_token": f"refresh-{token}",
            "token_type": "bearer",
            "expires_in": 3600,
            "user": {"id": user_id, "email": email},
        }

    # --- transport ---

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        body = json.loads(request.content) if request.content else None

        if path.startswith("/rest/v1"):
            return self._rest(request, path[len("/rest/v1") :].strip("/"), body)
        if path.startswith("/auth/v1"):
            return self._auth(request, path[len("/auth/v1") :].strip("/"), body)
        return httpx.Response(404, json={"message": "not found"})

    def _failure(self, key: str) -> httpx.Response | None:
        if key in self.failures:
            status, body = self.failures[key]
            return httpx.Response(status, json=body)
        return None

    def _rest(self, request: httpx.Request, resource: str, body: Any) -> httpx.Response:
        if not resource:
            return self._failure("ping") or httpx.Response(200, json={})

        if resource.startswith("rpc/"):
            return self._failure("rpc") or httpx.Response(200, json=self.rpc_payload)

        failure = self._failure(resource)
        if failure is not None:
            return failure

        params = request.url.params
        single = request.headers.get("accept") == "application/vnd.pgrst.object+json"

        if request.method == "GET":
            if resource == "tiporesiduo":
                rows = [
                    {"id_residuo": wid, "nombre_residuo": name}
                    for name, wid in self.waste_types.items()
                ]
                wanted = params.get("nombre_residuo")
                if wanted:
                    rows = [r for r in rows if f"eq.{r['nombre_residuo']}" == wanted]
                return self._rows(rows, single)
            if resource == "usuario":
                wanted = params.get("auth_uuid", "")
                rows = [
                    {"id_usuario": uid}
                    for uuid, uid in self.users.items()
                    if f"eq.{uuid}" == wanted
                ]
                return self._rows(rows, single)
            if resource == "punto_residuo":
                offset = int(params.get("offset", 0))
                limit = params.get("limit")
                end = offset + int(limit) if limit is not None else None
                return httpx.Response(200, json=self.joined_points[offset:end])
            return httpx.Response(404, json={"message": f"unknown table {resource}"})

        if request.method == "POST":
            rows = body if isinstance(body, list) else [body]
            self.inserted[resource].extend(rows)
            wants_rows = "return=representation" in request.headers.get("prefer", "")
            if resource == "puntoreciclaje":
                out = []
                for _ in rows:
                    self._next_point_id += 1
                    out.append({"id_punto": self._next_point_id})
                return httpx.Response(201, json=out if wants_rows else None)
            if resource == "consulta":
                self._next_query_id += 1
                return httpx.Response(201, json=[{"id_consulta": self._next_query_id}])
            return httpx.Response(201)

        return httpx.Response(405, json={"message": "method not allowed"})

    @staticmethod
    def _rows(rows: list[dict[str, Any]], single: bool) -> httpx.Response:
        if not single:
            return httpx.Response(200, json=rows)
        if len(rows) != 1:
            return httpx.Response(
                406,
                json={
                    "code": "PGRST116",
                    "message": "JSON object requested, multiple (or no) rows returned",
                },
            )
        return httpx.Response(200, json=rows[0])

    def _auth(self, request: httpx.Request, endpoint: str, body: Any) -> httpx.Response:
        failure = self._failure(endpoint)
        if failure is not None:
            return failure

        if endpoint == "token":
            email = (body or {}).get("email")
            if self.accounts.get(email) != (body or {}).get("password"):
                return httpx.Response(
                    400,
                    json={
                        "error": "invalid_grant",
                        "error_description": "Invalid login credentials",
                    },
                )
            return httpx.Response(200, json=self._session(email))

        if endpoint == "signup":
            email = body["email"]
            if email in self.accounts:
                return httpx.Response(
                    422, json={"code": 422, "msg": "User already registered"}
                )
            self.accounts[email] = body["password"]
            if self.confirm_email:
                return httpx.Response(200, json={"id": f"uuid-{email}", "email": email})
            return httpx.Response(200, json=self._session(email))

        user = self._user_from(request)
        if user is None:
            return httpx.Response(401, json={"code": 401, "msg": "invalid JWT"})
        if endpoint == "logout":
            return httpx.Response(204)
        if endpoint == "user":
            return httpx.Response(200, json=user)
        return httpx.Response(404, json={"msg": "not found"})


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def backend_env(monkeypatch):
    monkeypatch.setenv("BACKEND_URL", BACKEND_URL)
    monkeypatch.setenv("BACKEND_ANON_KEY", ANON_KEY)
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest_asyncio.fixture
async def backend_client(fake_backend):
    client = BackendClient(
        BACKEND_URL, ANON_KEY, transport=httpx.MockTransport(fake_backend.handler)
    )
    async with client:
        yield client


@pytest_asyncio.fixture
async def app_client(backend_env, fake_backend, monkeypatch):
    monkeypatch.delenv("ALLOW_ORIGINS", raising=False)
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    monkeypatch.delenv("RATE_LIMIT_ENABLED", raising=False)

    async def _client_override():
        async with BackendClient(
            BACKEND_URL, ANON_KEY, transport=httpx.MockTransport(fake_backend.handler)
        ) as client:
            yield client

    app = create_app()
    app.dependency_overrides[get_backend_client] = _client_override
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
