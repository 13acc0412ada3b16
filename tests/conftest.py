import asyncio

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from tracker.core.config import Settings
from tracker.core.security import create_access_token, hash_password
from tracker.db.mongo import ADMINS, USERS
from tracker.main import create_app

PASSWORD = "s3cret-pass"


def seed(db, collection, doc):
    doc["_id"] = asyncio.run(db[collection].insert_one(doc)).inserted_id
    return doc


@pytest.fixture
def settings():
    return Settings(
        jwt_secret="test-secret",
        mongo_db="tracker_test",
        log_level="WARNING",
        cors_origins=["http://testserver"],
    )


@pytest.fixture
def db():
    return AsyncMongoMockClient()["tracker_test"]


@pytest.fixture
def app(settings, db):
    return create_app(settings=settings, database=db)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="session")
def password_hash():
    return hash_password(PASSWORD)


# -------------------------
# Accounts
# -------------------------
@pytest.fixture
def user(db, password_hash):
    return seed(db, USERS, {
        "name": "Rahim Uddin",
        "email": "rahim@example.com",
        "phone": "01712345678",
        "passwordHash": password_hash,
        "isApproved": True,
    })


@pytest.fixture
def other_user(db, password_hash):
    return seed(db, USERS, {
        "name": "Karim Mia",
        "email": "karim@example.com",
        "phone": "01812345678",
        "passwordHash": password_hash,
        "isApproved": True,
    })


@pytest.fixture
def moderator(db, password_hash):
    return seed(db, ADMINS, {
        "email": "mod@example.com",
        "passwordHash": password_hash,
        "role": "moderator",
    })


def user_auth(user, settings):
    user_id = str(user["_id"])
    token = create_access_token({"userId": user_id}, settings)
    return {"Authorization": f"Bearer {token}", "X-User-ID": user_id}


def admin_auth(admin, settings):
    token = create_access_token(
        {"adminId": str(admin["_id"]), "role": admin["role"]}, settings
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(user, settings):
    return user_auth(user, settings)


@pytest.fixture
def other_user_headers(other_user, settings):
    return user_auth(other_user, settings)


@pytest.fixture
def moderator_headers(moderator, settings):
    return admin_auth(moderator, settings)


# -------------------------
# Submissions
# -------------------------
@pytest.fixture
def phone_payload():
    return {
        "sourceType": "phoneNumber",
        "phoneNumber": "01712345678",
        "dataNeeded": ["location", "nid"],
        "serviceTypes": ["numberToLocation", "numberToNID"],
        "serviceCharge": 1800,
        "paymentMethod": "Nagad",
        "trxId": "TRX12345678",
        "additionalNote": "urgent please",
    }


@pytest.fixture
def imei_payload():
    return {
        "sourceType": "imei",
        "imei": "123456789012345",
        "lastUsedPhoneNumber": "01912345678",
        "dataNeeded": ["number"],
        "serviceTypes": ["imeiToNumber"],
        "serviceCharge": 1500,
        "paymentMethod": "Crypto",
        "trxId": "0xabcdef1234",
    }


@pytest.fixture
def submit(client, user_headers):
    def _submit(payload, headers=None):
        r = client.post(
            "/api/location-tracker/submit-service",
            json=payload,
            headers=headers or user_headers,
        )
        assert r.status_code == 201, r.text
        return r.json()["request"]

    return _submit
