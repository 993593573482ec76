# backend/tests/conftest.py

import os
import tempfile
import uuid

import pytest

# settings are read at import time: point them at a throwaway database first
_TMP_DIR = tempfile.mkdtemp(prefix="soiliq-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'soiliq-test.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DEMO_MODE"] = "false"

from fastapi.testclient import TestClient

from soiliq.core.auth import create_access_token
from soiliq.main import app


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def user_id():
    return f"user-{uuid.uuid4()}"


@pytest.fixture
def token(user_id):
    return create_access_token({"sub": user_id})


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def farm(client, auth_headers):
    res = client.post(
        "/farms/",
        json={"name": "North Field", "crop_type": "wheat", "soil_type": "loamy"},
        headers=auth_headers,
    )
    assert res.status_code == 201
    return res.json()


# field scenarios shared by unit and API tests
@pytest.fixture
def acidic_reading():
    return {
        "ph": 5.2, "nitrogen": 25, "phosphorus": 18, "potassium": 45,
        "moisture": 52, "organic_matter": 2.1,
    }


@pytest.fixture
def healthy_reading():
    return {
        "ph": 6.8, "nitrogen": 65, "phosphorus": 42, "potassium": 75,
        "moisture": 48, "organic_matter": 3.2,
    }
