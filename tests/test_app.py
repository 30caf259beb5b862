from app import create_app
from config import TestingConfig
from conftest import SqlTestingConfig, verify_email
from extensions import db
from seed import STARTER_MEDIA, seed_defaults
from storage import MemStorage, StorageUnavailable


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_unknown_route_returns_json(client):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert "message" in response.get_json()


def test_dates_are_iso_formatted(login, make_user):
    user = make_user()

    body = login(user).get("/api/user").get_json()

    assert body["created_at"] == user["created_at"].isoformat()


def test_stats_are_public(client, make_user):
    make_user()
    make_user("dealer")

    assert client.get("/api/stats").get_json() == {
        "pickups_completed": 0,
        "items_donated": 0,
        "community_events": 0,
        "active_members": 2,
    }


def test_leaderboard_shows_public_profiles(client, make_user, storage):
    admin = make_user("admin")
    leader = make_user()
    storage.add_social_points(admin["id"], 100)
    storage.add_social_points(leader["id"], 20)

    board = client.get("/api/leaderboard").get_json()

    assert [row["id"] for row in board] == [leader["id"]]
    assert set(board[0]) == {"id", "username", "full_name", "role", "social_points"}


def test_environmental_impact_is_for_staff(client, login, make_user):
    assert client.get("/api/environmental-impact").status_code == 401

    denied = login(make_user()).get("/api/environmental-impact")
    assert denied.status_code == 403
    assert denied.get_json()["message"] == "Admin or Organization access required"

    impact = login(make_user("organization")).get("/api/environmental-impact")
    assert impact.status_code == 200
    assert len(impact.get_json()["waste_collection_trend"]) == 6


def test_storage_outage_is_503(app, client, storage, monkeypatch):
    def unavailable():
        raise StorageUnavailable("Database unavailable")

    monkeypatch.setattr(storage, "get_stats", unavailable)

    response = client.get("/api/stats")

    assert response.status_code == 503
    assert response.get_json() == {"message": "Service temporarily unavailable"}


def test_seed_is_idempotent():
    store = MemStorage()
    config = {
        "ADMIN_USERNAME": "admin",
        "ADMIN_EMAIL": "admin@greenpath.com",
        "ADMIN_PASSWORD": TestingConfig.ADMIN_PASSWORD,
    }

    seed_defaults(store, config)
    seed_defaults(store, config)

    admin = store.get_user_by_username("admin")
    assert admin["role"] == "admin"
    assert admin["password_hash"] != config["ADMIN_PASSWORD"]
    assert len(store.get_all_users()) == 1
    assert [m["title"] for m in store.get_all_media_content()] == [m["title"] for m in STARTER_MEDIA]


def test_sql_backend_end_to_end(location):
    app = create_app(SqlTestingConfig)
    with app.app_context():
        db.create_all()
    client = app.test_client()
    verify_email(client, "ravi@example.com")

    registered = client.post("/api/register", json={
        "username": "ravi",
        "password": "Green#2024",
        "full_name": "Ravi Kumar",
        "email": "ravi@example.com",
        "phone": "9876500000",
        "address": {"basic_address": "3 Lake View", "city": "Mysuru", "pin_code": "570001"},
    })
    assert registered.status_code == 201

    created = client.post("/api/waste-reports", json={
        "title": "Old newspapers",
        "description": "Two stacks",
        "location": location,
        "waste_category": "paper",
    })
    assert created.status_code == 201
    assert client.get("/api/user").get_json()["social_points"] == 2
    assert [r["id"] for r in client.get("/api/waste-reports").get_json()] == [created.get_json()["id"]]

    with app.app_context():
        db.drop_all()
