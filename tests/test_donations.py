import pytest


@pytest.fixture
def donation_body():
    return {
        "item_name": "Winter jackets",
        "description": "Five jackets, lightly used",
        "category": "clothing",
    }


@pytest.fixture
def donor(make_user):
    return make_user("customer")


@pytest.fixture
def org(make_user):
    return make_user("organization")


@pytest.fixture
def donation(login, donor, donation_body):
    response = login(donor).post("/api/donations", json=donation_body)
    assert response.status_code == 201
    return response.get_json()


def test_customer_donates_and_earns_points(donation, donor, storage):
    assert donation["status"] == "available"
    assert donation["requested_by_organization_id"] is None
    assert storage.get_user(donor["id"])["social_points"] == 5


def test_only_customers_donate(login, org, donation_body):
    assert login(org).post("/api/donations", json=donation_body).status_code == 403


def test_unknown_category_is_rejected(login, donor, donation_body):
    response = login(donor).post("/api/donations", json={**donation_body, "category": "toys"})
    assert response.status_code == 400


def test_dealers_have_no_donation_listing(login, make_user):
    assert login(make_user("dealer")).get("/api/donations").status_code == 403


def test_request_matching_scenario(login, org, donation, storage):
    client = login(org)
    assert [d["id"] for d in client.get("/api/donations").get_json()] == [donation["id"]]

    response = client.put(f"/api/donations/{donation['id']}", json={"status": "requested"})

    assert response.status_code == 200
    assert response.get_json()["status"] == "requested"
    assert response.get_json()["requested_by_organization_id"] == org["id"]
    assert storage.get_available_donations() == []
    assert client.get("/api/donations").get_json() == []
    assert [d["id"] for d in client.get("/api/donations/requested").get_json()] == [donation["id"]]


def test_full_lifecycle_awards_donor(login, org, donor, donation, storage):
    url = f"/api/donations/{donation['id']}"
    org_client = login(org)
    donor_client = login(donor)
    org_client.put(url, json={"status": "requested"})

    assert donor_client.put(url, json={"status": "matched"}).status_code == 200
    completed = org_client.put(url, json={"status": "completed"})

    assert completed.status_code == 200
    assert completed.get_json()["requested_by_organization_id"] == org["id"]
    assert storage.get_user(donor["id"])["social_points"] == 15


def test_request_can_be_withdrawn(login, org, donation):
    client = login(org)
    url = f"/api/donations/{donation['id']}"
    client.put(url, json={"status": "requested"})

    response = client.put(url, json={"status": "available"})

    assert response.status_code == 200
    assert response.get_json()["requested_by_organization_id"] is None


def test_other_organization_cannot_take_over(login, make_user, org, donation):
    url = f"/api/donations/{donation['id']}"
    login(org).put(url, json={"status": "requested"})

    rival = login(make_user("organization"))

    assert rival.put(url, json={"status": "available"}).status_code == 403


def test_donor_cannot_request_own_item(login, donor, donation):
    response = login(donor).put(f"/api/donations/{donation['id']}", json={"status": "requested"})
    assert response.status_code == 403


def test_customer_cannot_touch_others_donation(login, make_user, donation):
    stranger = login(make_user())
    url = f"/api/donations/{donation['id']}"

    assert stranger.get(url).status_code == 403
    assert stranger.put(url, json={"item_name": "Mine"}).status_code == 403


def test_admin_reads_but_cannot_update(login, make_user, donation):
    admin = login(make_user("admin"))
    url = f"/api/donations/{donation['id']}"

    assert admin.get(url).status_code == 200
    assert [d["id"] for d in admin.get("/api/donations").get_json()] == [donation["id"]]
    assert admin.put(url, json={"status": "requested"}).status_code == 403


def test_donor_edits_only_while_available(login, org, donor, donation):
    url = f"/api/donations/{donation['id']}"
    donor_client = login(donor)
    assert donor_client.put(url, json={"description": "Six jackets"}).status_code == 200

    login(org).put(url, json={"status": "requested"})

    assert donor_client.put(url, json={"description": "Seven"}).status_code == 409
    assert login(org).put(url, json={"item_name": "Ours"}).status_code == 403
