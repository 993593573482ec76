# backend/tests/test_api_analytics.py

from datetime import datetime, timedelta

import pytest

from soiliq.main import app
from soiliq.services.demo_data_service import DemoReadingProvider
from soiliq.services.reading_provider import get_reading_provider


@pytest.fixture
def farm_with_readings(client, auth_headers, farm, healthy_reading):
    now = datetime.utcnow()
    for i, nitrogen in enumerate([70, 64, 58, 52, 47, 41, 36]):
        client.post(
            "/soil/readings",
            json={
                "farm_id": farm["id"], **healthy_reading, "nitrogen": nitrogen,
                "reading_date": (now - timedelta(days=7 - i)).isoformat(),
            },
            headers=auth_headers,
        )
    return farm


@pytest.fixture
def demo_provider():
    app.dependency_overrides[get_reading_provider] = lambda: DemoReadingProvider()
    yield
    app.dependency_overrides.pop(get_reading_provider, None)


def test_comprehensive_analysis(client, auth_headers, farm_with_readings):
    res = client.get(f"/analytics/comprehensive/{farm_with_readings['id']}", headers=auth_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "ok"
    assert body["summary"]["reading_count"] == 7
    assert body["trends"]["nitrogen"]["direction"] == "down"
    assert body["period"] == "30d"


def test_comprehensive_analysis_without_data_is_404(client, auth_headers, farm):
    res = client.get(f"/analytics/comprehensive/{farm['id']}", headers=auth_headers)
    assert res.status_code == 404


def test_unknown_period_is_rejected(client, auth_headers, farm):
    res = client.get(f"/analytics/comprehensive/{farm['id']}", params={"period": "5y"}, headers=auth_headers)
    assert res.status_code == 422


def test_historical_analysis(client, auth_headers, farm_with_readings):
    url = f"/analytics/historical/{farm_with_readings['id']}"
    res = client.get(url, params={"parameter": "nitrogen", "period": "30d"}, headers=auth_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["interval"] == "daily"
    assert list(body["parameter_trends"]) == ["nitrogen"]
    assert body["parameter_trends"]["nitrogen"]["trend"] == "decreasing"

    assert client.get(url, params={"parameter": "sodium"}, headers=auth_headers).status_code == 400


def test_export_csv_and_json(client, auth_headers, farm_with_readings):
    url = f"/analytics/export/{farm_with_readings['id']}"
    res = client.get(url, params={"format": "csv"}, headers=auth_headers)
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    assert "attachment" in res.headers["content-disposition"]
    assert res.text.splitlines()[0] == "section,parameter,metric,value"

    res = client.get(url, headers=auth_headers)
    assert res.json()["status"] == "ok"

    assert client.get(url, params={"format": "xml"}, headers=auth_headers).status_code == 422


def test_comparative_analysis(client, auth_headers, farm_with_readings):
    ids = f"{farm_with_readings['id']},unknown-farm"
    res = client.get("/analytics/comparative", params={"farm_ids": ids}, headers=auth_headers)
    assert res.status_code == 200
    body = res.json()
    assert list(body["farms"]) == [farm_with_readings["id"]]
    assert body["best_farm"] == farm_with_readings["id"]

    single = client.get(
        "/analytics/comparative", params={"farm_ids": farm_with_readings["id"]}, headers=auth_headers,
    )
    assert single.status_code == 200
    assert single.json()["compared_farms"] == 1

    res = client.get("/analytics/comparative", params={"farm_ids": " , "}, headers=auth_headers)
    assert res.status_code == 400


def test_demo_analysis_needs_no_auth(client):
    res = client.get("/analytics/demo-analysis")
    assert res.status_code == 200
    body = res.json()
    assert body["demo"] is True
    assert body["summary"]["reading_count"] == 30

    assert client.get("/analytics/demo-analysis", params={"scenario": "nope"}).status_code == 404


def test_demo_provider_serves_any_farm(client, auth_headers, demo_provider):
    res = client.get("/analytics/comprehensive/any-farm", params={"period": "7d"}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["summary"]["reading_count"] == 8
