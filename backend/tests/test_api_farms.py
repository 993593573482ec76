# backend/tests/test_api_farms.py

from soiliq.core.auth import create_access_token


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_request_id_header(client):
    res = client.get("/health")
    assert res.headers.get("x-request-id")


def test_farms_require_auth(client):
    assert client.get("/farms/").status_code in (401, 403)
    res = client.get("/farms/", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


def test_token_without_subject_is_rejected(client):
    token = create_access_token({"role": "farmer"})
    res = client.get("/farms/", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_create_and_get_farm(client, auth_headers, farm, user_id):
    assert farm["name"] == "North Field"
    assert farm["owner_id"] == user_id
    assert farm["is_active"] is True
    assert farm["size_unit"] == "acres"

    res = client.get(f"/farms/{farm['id']}", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["id"] == farm["id"]


def test_farm_validation(client, auth_headers):
    res = client.post("/farms/", json={"name": "Bad", "soil_type": "lava"}, headers=auth_headers)
    assert res.status_code == 422
    res = client.post("/farms/", json={"name": "Bad", "latitude": 120}, headers=auth_headers)
    assert res.status_code == 422


def test_farms_are_scoped_to_owner(client, farm):
    other = {"Authorization": f"Bearer {create_access_token({'sub': 'someone-else'})}"}
    assert client.get(f"/farms/{farm['id']}", headers=other).status_code == 404
    assert farm["id"] not in [f["id"] for f in client.get("/farms/", headers=other).json()]


def test_update_farm(client, auth_headers, farm):
    res = client.patch(
        f"/farms/{farm['id']}",
        json={"crop_type": "maize", "irrigation": "drip"},
        headers=auth_headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["crop_type"] == "maize"
    assert body["irrigation"] == "drip"
    assert body["name"] == "North Field"


def test_delete_deactivates_farm(client, auth_headers, farm):
    res = client.delete(f"/farms/{farm['id']}", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["is_active"] is False

    listed = client.get("/farms/", headers=auth_headers).json()
    assert farm["id"] not in [f["id"] for f in listed]
    listed = client.get("/farms/", params={"include_inactive": True}, headers=auth_headers).json()
    assert farm["id"] in [f["id"] for f in listed]

    assert client.get(f"/farms/{farm['id']}", headers=auth_headers).json()["is_active"] is False


def test_missing_farm_is_404(client, auth_headers):
    assert client.get("/farms/does-not-exist", headers=auth_headers).status_code == 404
