from __future__ import annotations

from typing import Any

import structlog

from app.clients.backend import BackendClient, BackendError
from app.core.exceptions import AuthError, InfrastructureError
from app.schemas.auth import AuthUser, SessionResponse, SignUpResponse

logger = structlog.get_logger(__name__)


def _user_from_payload(payload: dict[str, Any] | None) -> AuthUser | None:
    if not payload or not payload.get("id"):
        return None
    return AuthUser(id=str(payload["id"]), email=payload.get("email"))


def _session_from_payload(payload: dict[str, Any] | None) -> SessionResponse | None:
    if not payload or not payload.get("access_token"):
        return None
    user = _user_from_payload(payload.get("user"))
    if user is None:
        return None
    return SessionResponse(
        access_token=str(payload["access_token"]),
        refresh_token=payload.get("refresh_token"),
        token_type=str(payload.get("token_type") or "bearer"),
        expires_in=payload.get("expires_in"),
        user=user,
    )


def _translate(exc: BackendError) -> Exception:
    # 4xx from the auth API means the request was understood and rejected.
    if exc.status is not None and 400 <= exc.status < 500:
        return AuthError(exc.message)
    return InfrastructureError("authentication service unavailable")


class AuthService:
    def __init__(self, client: BackendClient) -> None:
        self._client = client

    async def sign_in(self, email: str, password: str) -> SessionResponse:
        try:
            payload = await self._client.sign_in_with_password(email, password)
        except BackendError as exc:
            logger.warning("sign_in_failed", status=exc.status, code=exc.code)
            raise _translate(exc) from exc
        session = _session_from_payload(payload)
        if session is None:
            raise InfrastructureError("invalid session payload from auth service")
        logger.info("sign_in", user_id=session.user.id)
        return session

    async def sign_up(self, email: str, password: str) -> SignUpResponse:
        """Register an account.

        When the backend requires email confirmation it returns the user
        without a session; that is reported with ``confirmation_required``.
        """
        try:
            payload = await self._client.sign_up(email, password)
        except BackendError as exc:
            logger.warning("sign_up_failed", status=exc.status, code=exc.code)
            raise _translate(exc) from exc

        # Depending on settings the user sits at the top level or under "user".
        session = _session_from_payload(payload)
        user = session.user if session else _user_from_payload(payload.get("user") or payload)
        confirmation_required = user is not None and session is None
        logger.info(
            "sign_up",
            user_id=user.id if user else None,
            confirmation_required=confirmation_required,
        )
        return SignUpResponse(
            user=user, session=session, confirmation_required=confirmation_required
        )

    async def sign_out(self, access_token: str) -> None:
        try:
            await self._client.sign_out(access_token)
        except BackendError as exc:
            logger.warning("sign_out_failed", status=exc.status, code=exc.code)
            raise _translate(exc) from exc

    async def current_user(self, access_token: str) -> AuthUser:
        try:
            payload = await self._client.get_user(access_token)
        except BackendError as exc:
            raise _translate(exc) from exc
        user = _user_from_payload(payload)
        if user is None:
            raise AuthError("invalid session")
        return user
