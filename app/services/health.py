from __future__ import annotations

from app.clients.backend import BackendClient


class HealthService:
    def __init__(self, client: BackendClient):
        self._client = client

    async def ok(self) -> dict:
        await self._client.ping()
        return {"ok": True}
