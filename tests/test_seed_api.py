import pytest

from halls.routes.seed_api import SeedError, _coerce_seed


def test_coerce_seed_variants():
    assert _coerce_seed(42) == 42
    assert _coerce_seed("123") == 123
    assert _coerce_seed("-5") == -5
    assert _coerce_seed(2 ** 31) == -(2 ** 31)
    assert _coerce_seed("corridor") == _coerce_seed("  corridor ")
    assert -(2 ** 31) <= _coerce_seed("corridor") < 2 ** 31
    assert 1 <= _coerce_seed(None) <= 1_000_000
    assert 1 <= _coerce_seed("") <= 1_000_000
    assert _coerce_seed("--5") == _coerce_seed("  --5")
    assert -(2 ** 31) <= _coerce_seed("\u00b2") < 2 ** 31
    for bad in (True, 1.5, [1]):
        with pytest.raises(SeedError):
            _coerce_seed(bad)


def test_create_world_with_seed(client):
    resp = client.post("/api/world/seed", json={"seed": 42})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["seed"] == 42
    assert data["live"] == 2
    assert isinstance(data["world_id"], str)


def test_same_seed_same_home_grid(client):
    ids = [client.post("/api/world/seed", json={"seed": "hallway"}).get_json()["world_id"] for _ in range(2)]
    grids = [client.get(f"/api/world/{i}/regions/0").get_json()["grid"] for i in ids]
    assert grids[0] == grids[1]


def test_invalid_seed_rejected(client):
    resp = client.post("/api/world/seed", json={"seed": [1, 2]})
    assert resp.status_code == 400
    assert "error" in resp.get_json()
    resp = client.post("/api/world/seed", json=[1, 2])
    assert resp.status_code == 400


def test_seed_manifest_endpoint(client):
    world_id = client.post("/api/world/seed", json={"seed": 7}).get_json()["world_id"]
    resp = client.get(f"/api/world/{world_id}/seeds")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["seed"] == 7
    assert len(data["regions"]) == 2
    assert len(data["regions"]["0"]["seeds"]["north"]) == 20


def test_unknown_world_is_404(client):
    resp = client.get("/api/world/nope/seeds")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not found"


@pytest.mark.parametrize("seed", ["--5", "²", "-", "12-3"])
def test_malformed_numeric_strings_are_hashed(client, seed):
    resp = client.post("/api/world/seed", json={"seed": seed})
    assert resp.status_code == 200
    assert resp.get_json()["seed"] == _coerce_seed(seed)
