"""Async client for the hosted backend (REST tables, RPC functions, auth).

The backend exposes a PostgREST-style ``/rest/v1`` API and a GoTrue-style
``/auth/v1`` API behind one base URL. Every call carries the anon key; calls
made on behalf of a signed-in user also carry that user's access token.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import httpx
import structlog

from app.core.config import Settings
from app.core.exceptions import InfrastructureError

logger = structlog.get_logger(__name__)

REST_PREFIX = "/rest/v1"
AUTH_PREFIX = "/auth/v1"

NO_ROWS_CODE = "PGRST116"
_SINGLE_OBJECT_ACCEPT = "application/vnd.pgrst.object+json"


class BackendError(Exception):
    """A failed backend call, with the status/code/message the backend sent."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details

    @property
    def is_no_rows(self) -> bool:
        return self.code == NO_ROWS_CODE

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"BackendError(status={self.status!r}, code={self.code!r}, message={self.message!r})"


def _format_filter_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _error_from_response(response: httpx.Response) -> BackendError:
    try:
        body = response.json()
    except ValueError:
        body = None

    message = response.reason_phrase or f"HTTP {response.status_code}"
    code: str | None = None
    details: Any = None
    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                message = value
                break
        raw_code = body.get("error_code") or body.get("code")
        code = str(raw_code) if raw_code is not None else None
        details = body.get("details") or body.get("hint")
    return BackendError(message, status=response.status_code, code=code, details=details)


class BackendClient:
    def __init__(
        self,
        base_url: str,
        anon_key: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url or not anon_key:
            raise InfrastructureError("backend is not configured")
        self._anon_key = anon_key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"apikey": anon_key},
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> BackendClient:
        return cls(
            settings.backend_url,
            settings.backend_anon_key,
            timeout=settings.backend_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # --- transport ---

    def _auth_header(self, access_token: str | None) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token or self._anon_key}"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        access_token: str | None = None,
    ) -> httpx.Response:
        merged = self._auth_header(access_token)
        if headers:
            merged.update(headers)
        try:
            response = await self._client.request(
                method, path, params=params, json=json, headers=merged
            )
        except httpx.HTTPError as exc:
            logger.warning("backend_request_failed", method=method, path=path, error=str(exc))
            raise BackendError(str(exc) or exc.__class__.__name__, code="network_error") from exc

        if not response.is_success:
            raise _error_from_response(response)
        return response

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError(
                "invalid JSON from backend", status=response.status_code, code="invalid_json"
            ) from exc

    # --- REST / RPC ---

    async def rpc(
        self,
        function: str,
        params: Mapping[str, Any],
        *,
        access_token: str | None = None,
    ) -> Any:
        response = await self._request(
            "POST",
            f"{REST_PREFIX}/rpc/{function}",
            json=dict(params),
            access_token=access_token,
        )
        return self._decode(response)

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Mapping[str, Any] | None = None,
        single: bool = False,
        maybe_single: bool = False,
        limit: int | None = None,
        offset: int | None = None,
        order: str | None = None,
        access_token: str | None = None,
    ) -> Any:
        """Read rows; ``filters`` are equality filters (``column=eq.value``)."""

        params: dict[str, Any] = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{_format_filter_value(value)}"
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = int(limit)
        if offset:
            params["offset"] = int(offset)

        headers = {"Accept": _SINGLE_OBJECT_ACCEPT} if (single or maybe_single) else None
        try:
            response = await self._request(
                "GET",
                f"{REST_PREFIX}/{table}",
                params=params,
                headers=headers,
                access_token=access_token,
            )
        except BackendError as exc:
            if maybe_single and exc.is_no_rows:
                return None
            raise
        return self._decode(response)

    async def insert(
        self,
        table: str,
        rows: Sequence[Mapping[str, Any]],
        *,
        returning: str | None = None,
        access_token: str | None = None,
    ) -> list[dict[str, Any]]:
        params = {"select": returning} if returning else None
        prefer = "return=representation" if returning else "return=minimal"
        response = await self._request(
            "POST",
            f"{REST_PREFIX}/{table}",
            params=params,
            json=[dict(row) for row in rows],
            headers={"Prefer": prefer},
            access_token=access_token,
        )
        data = self._decode(response)
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        return list(data)

    async def ping(self) -> None:
        await self._request("GET", f"{REST_PREFIX}/")

    # --- auth ---

    async def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        response = await self._request(
            "POST",
            f"{AUTH_PREFIX}/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return self._decode(response) or {}

    async def sign_up(self, email: str, password: str) -> dict[str, Any]:
        response = await self._request(
            "POST",
            f"{AUTH_PREFIX}/signup",
            json={"email": email, "password": password},
        )
        return self._decode(response) or {}

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", f"{AUTH_PREFIX}/logout", access_token=access_token)

    async def get_user(self, access_token: str) -> dict[str, Any]:
        response = await self._request("GET", f"{AUTH_PREFIX}/user", access_token=access_token)
        return self._decode(response) or {}


__all__ = ["AUTH_PREFIX", "NO_ROWS_CODE", "REST_PREFIX", "BackendClient", "BackendError"]
