"""Integration tests for API endpoints."""

import pytest
from httpx import AsyncClient

from fuel_directory.config import settings
from fuel_directory.services.errors import QueryFailed
from fuel_directory.services.station_repository import SqlStationRepository


def _station(name, lat, lon, region="Riyadh"):
    return {"name": name, "region": region, "sub_region": "Center", "latitude": lat, "longitude": lon}


async def _create(client: AsyncClient, payload, **params):
    response = await client.post("/api/stations", json=payload, params=params)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_root_endpoint(client: AsyncClient):
    """Test the root endpoint."""
    response = await client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert "name" in data
    assert "version" in data
    assert data["status"] == "operational"


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test health check endpoint."""
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_create_and_fetch_station(client: AsyncClient):
    created = await _create(client, _station("Aldrees Olaya", 24.6950, 46.6850))

    response = await client.get(f"/api/stations/{created['id']}")

    assert response.status_code == 200
    assert response.json()["name"] == "Aldrees Olaya"


@pytest.mark.asyncio
async def test_create_duplicate_station_conflicts(client: AsyncClient):
    existing = await _create(client, _station("Sasco", 24.7740, 46.7380))

    response = await client.post("/api/stations", json=_station("Naft", 24.7740, 46.7381))

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["is_duplicate"] is True
    assert detail["duplicate_type"] == "location"
    assert detail["duplicate_station"]["id"] == existing["id"]


@pytest.mark.asyncio
async def test_create_station_skipping_duplicate_check(client: AsyncClient):
    await _create(client, _station("Sasco", 24.7740, 46.7380))

    await _create(client, _station("Sasco", 24.7740, 46.7380), skip_duplicate_check="true")

    response = await client.get("/api/stations")
    assert response.json()["count"] == 2


@pytest.mark.asyncio
async def test_create_station_validates_coordinates(client: AsyncClient):
    response = await client.post("/api/stations", json=_station("Nowhere", 91.0, 46.0))

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_stations_by_region(client: AsyncClient):
    await _create(client, _station("Riyadh One", 24.7, 46.7))
    await _create(client, _station("Jeddah One", 21.5, 39.2, region="Jeddah"))

    response = await client.get("/api/stations", params={"region": "Jeddah"})

    data = response.json()
    assert data["count"] == 1
    assert data["stations"][0]["name"] == "Jeddah One"


@pytest.mark.asyncio
async def test_delete_station(client: AsyncClient):
    created = await _create(client, _station("Temporary", 24.0, 46.0))

    response = await client.delete(f"/api/stations/{created['id']}")
    assert response.status_code == 204

    response = await client.delete(f"/api/stations/{created['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_get_missing_station(client: AsyncClient):
    response = await client.get("/api/stations/unknown")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_check_duplicate_by_name(client: AsyncClient):
    existing = await _create(client, _station("Test Station", 24.774265, 46.738586))

    response = await client.post(
        "/api/duplicates/check",
        json={"name": "Test Station", "latitude": 21.0, "longitude": 39.0},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["is_duplicate"] is True
    assert data["duplicate_type"] == "name"
    assert data["duplicate_station"]["id"] == existing["id"]


@pytest.mark.asyncio
async def test_check_no_duplicate(client: AsyncClient):
    await _create(client, _station("Test Station", 24.774265, 46.738586))

    response = await client.post(
        "/api/duplicates/check",
        json={"name": "Other Station", "latitude": 21.0, "longitude": 39.0},
    )

    assert response.json() == {
        "is_duplicate": False,
        "duplicate_station": None,
        "duplicate_type": None,
    }


@pytest.mark.asyncio
async def test_check_fails_closed(client: AsyncClient, monkeypatch):
    async def _fail(self, name):
        raise QueryFailed("store unreachable")

    monkeypatch.setattr(SqlStationRepository, "find_by_exact_name", _fail)

    response = await client.post(
        "/api/duplicates/check",
        json={"name": "Any", "latitude": 24.0, "longitude": 46.0},
    )

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_index_page(client: AsyncClient):
    page = {
        "stations": [
            {"id": "1", "name": "A", "latitude": 24.7740, "longitude": 46.7380},
            {"id": "2", "name": "A", "latitude": 24.7740, "longitude": 46.7381},
            {"id": "3", "name": "Noor Station", "latitude": 24.0, "longitude": 46.0},
            {"id": "4", "name": "noor station", "latitude": 21.0, "longitude": 39.0},
            {"id": "5", "name": "Lonely", "latitude": 26.0, "longitude": 50.0},
        ]
    }

    response = await client.post("/api/duplicates/index", json=page)

    assert response.status_code == 200
    data = response.json()
    assert data["flags"] == {"1": True, "2": True, "3": True, "4": True, "5": False}
    assert data["duplicate_count"] == 4


@pytest.mark.asyncio
async def test_index_rejects_missing_coordinates(client: AsyncClient):
    page = {"stations": [{"id": "1", "name": "A", "latitude": 24.0}]}

    response = await client.post("/api/duplicates/index", json=page)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_resolve_duplicates(client: AsyncClient):
    first = await _create(client, _station("A", 24.7740, 46.7380))
    await _create(client, _station("A", 24.7740, 46.7381), skip_duplicate_check="true")
    other = await _create(client, _station("B", 25.0, 47.0))

    response = await client.post("/api/duplicates/resolve")

    assert response.status_code == 200
    data = response.json()
    assert data["deleted_count"] == 1
    assert data["errors"] == []
    assert sorted(s["id"] for s in data["remaining"]) == sorted([first["id"], other["id"]])

    again = await client.post("/api/duplicates/resolve")
    assert again.json()["deleted_count"] == 0


@pytest.mark.asyncio
async def test_resolve_rejects_oversized_selection(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "duplicate_page_max_size", 1)
    await _create(client, _station("A", 24.7740, 46.7380))
    await _create(client, _station("A", 24.7740, 46.7381), skip_duplicate_check="true")
    await _create(client, _station("B", 21.5, 39.2, region="Jeddah"))

    response = await client.post("/api/duplicates/resolve")
    assert response.status_code == 413

    narrowed = await client.post("/api/duplicates/resolve", params={"region": "Jeddah"})
    assert narrowed.status_code == 200
    assert narrowed.json()["deleted_count"] == 0

    stations = await client.get("/api/stations")
    assert stations.json()["count"] == 3


@pytest.mark.asyncio
async def test_get_nearest_stations(client: AsyncClient):
    near = await _create(client, _station("Olaya", 24.6950, 46.6850))
    await _create(client, _station("Malaz", 24.6650, 46.7300))

    response = await client.get("/api/geo/nearest", params={"lat": 24.7, "lon": 46.68, "limit": 1})

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert data["strategy"] == "fast_path"
    assert data["results"][0]["station"]["id"] == near["id"]
    assert data["results"][0]["distance_label"].endswith("meters")


@pytest.mark.asyncio
async def test_get_nearest_stations_with_filters(client: AsyncClient):
    await _create(client, _station("Olaya", 24.6950, 46.6850))
    await _create(client, _station("Malaz", 24.6650, 46.7300))

    response = await client.get(
        "/api/geo/nearest",
        params={"lat": 24.7, "lon": 46.68, "limit": 5, "max_distance": 2000},
    )

    data = response.json()
    assert [r["station"]["name"] for r in data["results"]] == ["Olaya"]


@pytest.mark.asyncio
async def test_get_nearest_stations_falls_back(client: AsyncClient, monkeypatch):
    await _create(client, _station("Olaya", 24.6950, 46.6850))

    async def _fail(self, latitude, longitude, limit):
        raise QueryFailed("index unavailable")

    monkeypatch.setattr(SqlStationRepository, "find_ordered_by_distance", _fail)

    response = await client.get("/api/geo/nearest", params={"lat": 24.7, "lon": 46.68})

    data = response.json()
    assert data["strategy"] == "fallback"
    assert data["count"] == 1


@pytest.mark.asyncio
async def test_get_nearest_stations_invalid_params(client: AsyncClient):
    """Test geolocation endpoint with invalid parameters."""
    response = await client.get("/api/geo/nearest")
    assert response.status_code == 422

    response = await client.get("/api/geo/nearest", params={"lat": 24.7, "lon": 46.68, "limit": 0})
    assert response.status_code == 422
