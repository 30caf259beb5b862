import itertools
import re
from datetime import timedelta

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from config import TestingConfig
from extensions import db, mail
from storage import MemStorage, utcnow

PASSWORD = "Recycle#2024"
# cheap hash so fixtures stay fast
FAST_HASH = generate_password_hash(PASSWORD, method="pbkdf2:sha256:1000")


def verify_email(client, email):
    """Walk ``email`` through the mailed-code check so it can register."""
    with mail.record_messages() as outbox:
        sent = client.post("/api/verify-email", json={"email": email})
    assert sent.status_code == 200, sent.get_json()
    code = re.search(r"\b(\d{6})\b", outbox[-1].body).group(1)
    checked = client.post("/api/verify-otp", json={"email": email, "otp": code})
    assert checked.status_code == 200, checked.get_json()


class SqlTestingConfig(TestingConfig):
    STORAGE_BACKEND = "sql"


@pytest.fixture
def storage():
    return MemStorage()


@pytest.fixture
def app(storage):
    return create_app(TestingConfig, storage=storage)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Either store implementation; the SQL one runs on in-memory SQLite."""
    if request.param == "memory":
        yield MemStorage()
        return

    app = create_app(SqlTestingConfig)
    with app.app_context():
        db.create_all()
        yield app.extensions["storage"]
        db.session.remove()
        db.drop_all()


def user_factory(target):
    counter = itertools.count(1)

    def make(role="customer", **fields):
        n = next(counter)
        data = {
            "username": f"{role}{n}",
            "email": f"{role}{n}@example.com",
            "password_hash": FAST_HASH,
            "full_name": f"{role.title()} {n}",
            "role": role,
        }
        data.update(fields)
        return target.create_user(data)

    return make


@pytest.fixture
def make_user(storage):
    return user_factory(storage)


@pytest.fixture
def make_store_user(store):
    return user_factory(store)


@pytest.fixture
def login(app):
    """Return a test client signed in as ``user``."""

    def _login(user):
        client = app.test_client()
        response = client.post(
            "/api/login", json={"username": user["username"], "password": PASSWORD}
        )
        assert response.status_code == 200, response.get_json()
        return client

    return _login


@pytest.fixture
def location():
    return {"address": "12 Green Lane", "city": "Pune", "pin_code": "411001"}


@pytest.fixture
def future_date():
    return (utcnow() + timedelta(days=7)).replace(microsecond=0)
