import pytest

from errors import Forbidden
from services.policy import (
    ADMIN,
    ALL_RECORDS,
    CUSTOMER,
    DEALER,
    ORGANIZATION,
    OWN_RECORDS,
    authorize,
    is_allowed,
    list_scope,
    with_status,
)


@pytest.mark.parametrize("role, expected", [
    (CUSTOMER, True),
    (DEALER, False),
    (ORGANIZATION, False),
    (ADMIN, False),
])
def test_only_customers_report_waste(role, expected):
    assert is_allowed(role, 7, "waste_report", "create", owner_id=7) is expected


def test_own_scope_needs_matching_owner():
    assert is_allowed(CUSTOMER, 7, "waste_report", "read", owner_id=7)
    assert not is_allowed(CUSTOMER, 7, "waste_report", "read", owner_id=8)
    assert not is_allowed(CUSTOMER, 7, "waste_report", "read")
    assert is_allowed(DEALER, 3, "waste_report", "read", owner_id=8)


def test_assigned_scope_needs_matching_assignee():
    assert is_allowed(DEALER, 3, "feedback", "update", assignee_id=3)
    assert not is_allowed(DEALER, 3, "feedback", "update", assignee_id=None)
    assert is_allowed(ADMIN, 1, "feedback", "update")


def test_admin_cannot_update_donations():
    assert is_allowed(ADMIN, 1, "donation", "read", owner_id=5)
    assert not is_allowed(ADMIN, 1, "donation", "update", owner_id=5)


def test_unknown_rule_denies():
    assert not is_allowed(ADMIN, 1, "spaceship", "launch")


def test_authorize_raises_forbidden_with_message():
    with pytest.raises(Forbidden) as excinfo:
        authorize({"id": 2, "role": CUSTOMER}, "user", "list", message="Admin access required")
    assert excinfo.value.message == "Admin access required"
    assert excinfo.value.status_code == 403

    authorize({"id": 1, "role": ADMIN}, "user", "list")


def test_list_scopes():
    assert list_scope(CUSTOMER, "waste_report") == OWN_RECORDS
    assert list_scope(DEALER, "waste_report") == with_status("pending")
    assert list_scope(ORGANIZATION, "waste_report").statuses == ("pending", "scheduled", "in_progress")
    assert list_scope(ADMIN, "donation") == ALL_RECORDS
    with pytest.raises(Forbidden):
        list_scope(DEALER, "donation")
