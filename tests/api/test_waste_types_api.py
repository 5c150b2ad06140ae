import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import reset_settings_cache
from app.main import create_app


@pytest.mark.asyncio
async def test_list_waste_types(app_client):
    res = await app_client.get("/waste-types")

    assert res.status_code == 200
    names = [item["name"] for item in res.json()["items"]]
    assert names[:3] == ["Envases", "Vidrio", "Papel y Cartón"]


@pytest.mark.asyncio
async def test_get_waste_type_id(app_client):
    res = await app_client.get("/waste-types/Vidrio")

    assert res.status_code == 200
    assert res.json() == {"id": 3, "name": "Vidrio"}


@pytest.mark.asyncio
async def test_get_waste_type_id_not_found(app_client):
    res = await app_client.get("/waste-types/Ropa")

    assert res.status_code == 404
    assert res.json() == {"detail": "waste type 'Ropa' not found"}


@pytest.mark.asyncio
async def test_get_waste_type_backend_down(app_client, fake_backend):
    fake_backend.fail("tiporesiduo", 500)

    res = await app_client.get("/waste-types/Vidrio")

    assert res.status_code == 503
    assert res.json() == {"detail": "could not read waste types"}


@pytest.mark.asyncio
async def test_get_waste_type_id_with_slash_in_name(app_client):
    listed = await app_client.get("/waste-types")
    assert "Residuos voluminosos y/o Tecnológicos" in [i["name"] for i in listed.json()["items"]]

    res = await app_client.get("/waste-types/Residuos%20voluminosos%20y%2Fo%20Tecnol%C3%B3gicos")

    assert res.status_code == 200
    assert res.json() == {"id": 8, "name": "Residuos voluminosos y/o Tecnológicos"}


@pytest.mark.asyncio
async def test_list_waste_types_without_backend_configured(monkeypatch):
    monkeypatch.setenv("BACKEND_URL", "")
    monkeypatch.setenv("BACKEND_ANON_KEY", "")
    reset_settings_cache()
    try:
        app = create_app()
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            res = await ac.get("/waste-types")
    finally:
        reset_settings_cache()

    assert res.status_code == 200
    assert len(res.json()["items"]) == 7
