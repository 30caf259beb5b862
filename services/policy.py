"""Who may do what.

Every route asks this module instead of comparing roles inline. Rules are
keyed by ``(entity, action)`` and map a role to the scope it holds:

* ``ANY``      - every record of that entity
* ``OWN``      - records whose owner is the caller
* ``ASSIGNED`` - records assigned to the caller

A role missing from a rule has no access.
"""
from errors import Forbidden

CUSTOMER = "customer"
DEALER = "dealer"
ORGANIZATION = "organization"
ADMIN = "admin"

ROLES = (CUSTOMER, DEALER, ORGANIZATION, ADMIN)
SELF_SERVICE_ROLES = (CUSTOMER, DEALER, ORGANIZATION)

ANY = "any"
OWN = "own"
ASSIGNED = "assigned"


def _everyone(scope):
    return {role: scope for role in ROLES}


RULES = {
    ("waste_report", "create"): {CUSTOMER: OWN},
    ("waste_report", "read"): {CUSTOMER: OWN, DEALER: ANY, ORGANIZATION: ANY, ADMIN: ANY},
    ("waste_report", "update"): {CUSTOMER: OWN, DEALER: ANY, ORGANIZATION: ANY, ADMIN: ANY},
    ("waste_report", "list_assigned"): {DEALER: ANY},

    ("donation", "create"): {CUSTOMER: OWN},
    ("donation", "read"): {CUSTOMER: OWN, ORGANIZATION: ANY, ADMIN: ANY},
    ("donation", "update"): {CUSTOMER: OWN, ORGANIZATION: ANY},
    ("donation", "list_requested"): {ORGANIZATION: ANY},

    ("event", "create"): {ORGANIZATION: OWN},
    ("event", "update"): {ORGANIZATION: OWN},
    ("event", "list_own"): {ORGANIZATION: OWN},
    ("event", "join"): _everyone(OWN),

    ("user", "list"): {ADMIN: ANY},
    ("user", "read"): {ADMIN: ANY},
    ("user", "update"): {ADMIN: ANY},

    ("media", "create"): _everyone(OWN),
    ("media", "read_unpublished"): {CUSTOMER: OWN, DEALER: OWN, ORGANIZATION: OWN, ADMIN: ANY},

    ("impact", "read"): {ORGANIZATION: ANY, ADMIN: ANY},

    ("issue", "create"): _everyone(OWN),
    ("issue", "read"): {CUSTOMER: OWN, DEALER: OWN, ORGANIZATION: ANY, ADMIN: ANY},
    ("issue", "update"): {CUSTOMER: OWN, DEALER: OWN, ORGANIZATION: ANY, ADMIN: ANY},
    ("issue", "assign"): {ADMIN: ANY},

    ("feedback", "create"): _everyone(OWN),
    ("feedback", "update"): {
        CUSTOMER: ASSIGNED, DEALER: ASSIGNED, ORGANIZATION: ASSIGNED, ADMIN: ANY,
    },
    ("feedback", "assign"): {ADMIN: ANY},

    ("help_request", "create"): _everyone(OWN),
    ("help_request", "read"): {CUSTOMER: OWN, DEALER: OWN, ORGANIZATION: ANY, ADMIN: ANY},
    ("help_request", "update"): {CUSTOMER: OWN, DEALER: OWN, ORGANIZATION: ANY, ADMIN: ANY},
}


class ListScope:
    """Which records of an entity a role sees when listing."""

    def __init__(self, kind, statuses=()):
        self.kind = kind
        self.statuses = tuple(statuses)

    def __eq__(self, other):
        return (
            isinstance(other, ListScope)
            and (self.kind, self.statuses) == (other.kind, other.statuses)
        )

    def __repr__(self):
        return f"ListScope({self.kind!r}, {self.statuses!r})"


ALL_RECORDS = ListScope("all")
OWN_RECORDS = ListScope("own")
ASSIGNED_RECORDS = ListScope("assigned")


def with_status(*statuses):
    return ListScope("status", statuses)


LIST_SCOPES = {
    "waste_report": {
        CUSTOMER: OWN_RECORDS,
        DEALER: with_status("pending"),
        ORGANIZATION: with_status("pending", "scheduled", "in_progress"),
        ADMIN: ALL_RECORDS,
    },
    "donation": {
        CUSTOMER: OWN_RECORDS,
        ORGANIZATION: with_status("available"),
        ADMIN: ALL_RECORDS,
    },
    "issue": {
        CUSTOMER: OWN_RECORDS,
        DEALER: OWN_RECORDS,
        ORGANIZATION: ListScope("pending_or_assigned"),
        ADMIN: ALL_RECORDS,
    },
    "feedback": {
        CUSTOMER: OWN_RECORDS,
        DEALER: ASSIGNED_RECORDS,
        ORGANIZATION: OWN_RECORDS,
        ADMIN: ALL_RECORDS,
    },
    "help_request": {
        CUSTOMER: OWN_RECORDS,
        DEALER: OWN_RECORDS,
        ORGANIZATION: ALL_RECORDS,
        ADMIN: ALL_RECORDS,
    },
}


def is_allowed(role, actor_id, entity, action, owner_id=None, assignee_id=None):
    scope = RULES.get((entity, action), {}).get(role)
    if scope == ANY:
        return True
    if scope == OWN:
        return owner_id is not None and owner_id == actor_id
    if scope == ASSIGNED:
        return assignee_id is not None and assignee_id == actor_id
    return False


def authorize(actor, entity, action, owner_id=None, assignee_id=None, message=None):
    """Raise ``Forbidden`` unless ``actor`` may perform ``action`` on ``entity``."""
    if not is_allowed(actor["role"], actor["id"], entity, action, owner_id, assignee_id):
        raise Forbidden(message or "Not authorized to %s this %s" % (
            action.replace("_", " "), entity.replace("_", " ")))


def list_scope(role, entity):
    scope = LIST_SCOPES.get(entity, {}).get(role)
    if scope is None:
        raise Forbidden(f"Not authorized to list {entity.replace('_', ' ')}s")
    return scope
