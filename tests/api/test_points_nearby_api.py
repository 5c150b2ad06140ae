import pytest

from conftest import joined_point, rpc_point


@pytest.mark.asyncio
async def test_nearby_points_remote(app_client, fake_backend):
    fake_backend.rpc_payload = [
        rpc_point(1, lat=40.4170, lng=-3.7040, distance=0.12),
        rpc_point(2, lat="4.0430", lng="-3.7010", distance=0.3),
        rpc_point(3, lat=None, lng=-3.7, distance=0.4),
    ]

    res = await app_client.get(
        "/points/nearby", params={"waste_type": "Envases", "lat": 40.4168, "lng": -3.7038}
    )

    assert res.status_code == 200
    body = res.json()
    assert body["waste_type"] == "Envases"
    assert body["mode"] == "remote"
    assert body["used_default_location"] is False
    assert body["total"] == 2
    assert [it["id"] for it in body["items"]] == [1, 2]
    assert body["items"][0]["distance_text"] == "0.1 km"
    assert body["items"][1]["latitude"] == pytest.approx(40.43)

    # The query and its ranked results were logged.
    assert len(fake_backend.inserted["consulta"]) == 1
    assert [r["orden_resultado"] for r in fake_backend.inserted["consulta_puntoreciclaje"]] == [
        1,
        2,
    ]


@pytest.mark.asyncio
async def test_nearby_points_local_mode(app_client, fake_backend):
    fake_backend.joined_points = [
        joined_point(8, lat=40.4300, lng=-3.7000),
        joined_point(9, lat=40.4170, lng=-3.7040, status="Lleno"),
    ]

    res = await app_client.get(
        "/points/nearby",
        params={"waste_type": "vidrio", "mode": "local", "log": "false"},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["mode"] == "local"
    assert body["waste_type"] == "Vidrio"
    assert body["used_default_location"] is True
    assert [it["id"] for it in body["items"]] == [9, 8]
    assert body["items"][0]["status_level"] == "full"
    assert fake_backend.inserted["consulta"] == []


@pytest.mark.asyncio
async def test_nearby_points_limit(app_client, fake_backend):
    fake_backend.rpc_payload = [rpc_point(i, distance=0.1 * i) for i in range(1, 6)]

    res = await app_client.get("/points/nearby", params={"waste_type": "Envases", "limit": 2})

    assert res.status_code == 200
    assert [it["id"] for it in res.json()["items"]] == [1, 2]


@pytest.mark.asyncio
async def test_nearby_points_ties_query_to_signed_in_user(app_client, fake_backend):
    fake_backend.rpc_payload = [rpc_point(1)]

    res = await app_client.get(
        "/points/nearby",
        params={"waste_type": "Envases"},
        headers={"Authorization": "Bearer token-ana"},
    )

    assert res.status_code == 200
    assert fake_backend.inserted["consulta"][0]["id_usuario"] == 42


@pytest.mark.asyncio
async def test_nearby_points_bad_token_stays_anonymous(app_client, fake_backend):
    fake_backend.rpc_payload = [rpc_point(1)]

    res = await app_client.get(
        "/points/nearby",
        params={"waste_type": "Envases"},
        headers={"Authorization": "Bearer expired"},
    )

    assert res.status_code == 200
    assert "id_usuario" not in fake_backend.inserted["consulta"][0]


@pytest.mark.asyncio
async def test_nearby_points_unknown_waste_type(app_client, fake_backend):
    res = await app_client.get("/points/nearby", params={"waste_type": "Ropa"})

    assert res.status_code == 404
    assert res.json() == {"detail": "waste type 'Ropa' not found"}
    assert fake_backend.calls("rpc/fn_obtener_puntos_cercanos") == []


@pytest.mark.asyncio
async def test_nearby_points_requires_both_coordinates(app_client):
    res = await app_client.get("/points/nearby", params={"waste_type": "Envases", "lat": 40.4})

    assert res.status_code == 400
    assert res.json() == {"detail": "lat and lng must be provided together"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        {},
        {"waste_type": "Envases", "lat": 91, "lng": 0},
        {"waste_type": "Envases", "mode": "nearest"},
        {"waste_type": "Envases", "limit": 0},
    ],
)
async def test_nearby_points_query_validation(app_client, params):
    res = await app_client.get("/points/nearby", params=params)

    assert res.status_code == 422
    assert res.json() == {"detail": "Unprocessable Entity"}


@pytest.mark.asyncio
async def test_nearby_points_backend_failure(app_client, fake_backend):
    fake_backend.fail("rpc", 500, {"message": "function failed"})

    res = await app_client.get("/points/nearby", params={"waste_type": "Envases"})

    assert res.status_code == 503
    assert res.json() == {"detail": "could not complete the point search"}


@pytest.mark.asyncio
async def test_nearby_points_invalid_payload(app_client, fake_backend):
    fake_backend.rpc_payload = "not rows"

    res = await app_client.get("/points/nearby", params={"waste_type": "Envases"})

    assert res.status_code == 503
    assert res.json() == {"detail": "invalid data format from server"}


@pytest.mark.asyncio
async def test_nearby_points_survives_query_log_failure(app_client, fake_backend):
    fake_backend.rpc_payload = [rpc_point(1)]
    fake_backend.fail("consulta", 500)

    res = await app_client.get("/points/nearby", params={"waste_type": "Envases"})

    assert res.status_code == 200
    assert res.json()["total"] == 1
