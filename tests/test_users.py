def test_admin_lists_users_without_hashes(login, make_user):
    admin = make_user("admin")
    make_user("dealer")

    response = login(admin).get("/api/users")

    assert response.status_code == 200
    users = response.get_json()
    assert len(users) == 2
    assert all("password_hash" not in u for u in users)


def test_admin_filters_by_role(login, make_user):
    admin = make_user("admin")
    dealer = make_user("dealer")
    client = login(admin)

    assert [u["id"] for u in client.get("/api/users?role=dealer").get_json()] == [dealer["id"]]
    assert client.get("/api/users?role=wizard").status_code == 400


def test_non_admin_cannot_manage_users(login, make_user):
    customer = make_user()
    client = login(customer)

    listing = client.get("/api/users")
    assert listing.status_code == 403
    assert listing.get_json()["message"] == "Admin access required"
    assert client.put(f"/api/users/{customer['id']}", json={"role": "admin"}).status_code == 403


def test_admin_changes_role(login, make_user, storage):
    admin = make_user("admin")
    customer = make_user()
    client = login(admin)

    response = client.put(f"/api/users/{customer['id']}", json={"role": "dealer"})

    assert response.status_code == 200
    assert response.get_json()["role"] == "dealer"
    assert storage.get_user(customer["id"])["role"] == "dealer"


def test_role_update_rejects_other_fields(login, make_user):
    admin = make_user("admin")
    customer = make_user()
    client = login(admin)

    response = client.put(
        f"/api/users/{customer['id']}", json={"role": "dealer", "social_points": 1000}
    )
    assert response.status_code == 400
    assert client.put("/api/users/999", json={"role": "dealer"}).status_code == 404
    assert client.put(f"/api/users/{customer['id']}", json={"role": "king"}).status_code == 400
