"""
Service Portal - Test Configuration and Fixtures

Runs against an in-memory MongoDB (mongomock-motor) so no server is needed.
"""

import os
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

# Settings are read once, before the app is imported
os.environ.setdefault("MONGO_URL", "mongodb://localhost:27017")
os.environ.setdefault("DB_NAME", "service_portal_test")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-for-testing")
os.environ.setdefault("SEED_DEFAULT_PRINCIPALS", "true")

from server import app
from database.mongodb import get_database, ensure_indexes
from services.identity_store import IdentityStore


class SteppingClock:
    """Returns the given instants in order; stands in for utcnow()"""

    def __init__(self, *instants):
        self.instants = list(instants)

    def __call__(self):
        return self.instants.pop(0)


BASE_TIME = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


def simple_request_payload(**overrides) -> dict:
    payload = {
        "personal_info": {
            "full_name": "Jane Doe",
            "email": "jane@company.com",
            "phone": "555-0100",
            "address": "12 Lab Street",
        },
        "service_details": {
            "service_type": "calibration",
            "description": "Calibrate pressure gauge",
            "urgency": "high",
        },
    }
    payload.update(overrides)
    return payload


def service_request_payload(**overrides) -> dict:
    payload = {
        "organization_name": "Acme Instruments",
        "organization_address": "4 Industrial Estate",
        "contact_person": "R. Kumar",
        "phone_no": "555-0199",
        "email_id": "lab@acme.com",
        "calibration_service": "atSite",
        "calibration_request_date": "2025-03-10",
        "target_delivery_date": "2025-03-24",
        "instrument_condition": "ok",
        "calibration_method": "asPerScopeOfAccreditation",
        "parameter_under_nabl": True,
        "obs_reading": "10.02",
        "usl_value": "10.05",
        "lsl_value": "9.95",
        "witness_activity": ["Calibration", "Dispatch"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
async def db():
    """Fresh in-memory database per test"""
    client = AsyncMongoMockClient()
    database = client["service_portal_test"]
    await ensure_indexes(database)
    return database


@pytest.fixture
async def identity_store(db) -> IdentityStore:
    store = IdentityStore(db)
    await store.seed_defaults()
    return store


@pytest.fixture
async def client(db, identity_store):
    """HTTP client bound to the app with the in-memory database"""
    async def override_get_database():
        return db

    app.dependency_overrides[get_database] = override_get_database

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def login(client: AsyncClient, username: str, password: str, role: str) -> dict:
    response = await client.post(
        "/api/auth/login",
        json={"username": username, "password": password, "role": role},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def requester_headers(client) -> dict:
    return await login(client, "testuser", "test123", "requester")


@pytest.fixture
async def csc_headers(client) -> dict:
    return await login(client, "csc_admin", "admin123", "csc")


@pytest.fixture
async def technician_headers(client) -> dict:
    return await login(client, "tech_admin", "tech123", "technician")
