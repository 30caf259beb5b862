"""Status state machines for every entity that carries a status field."""
from errors import Conflict, Forbidden
from services.policy import ADMIN, CUSTOMER, DEALER, ORGANIZATION, ROLES


class IllegalTransition(Conflict):
    pass


class StateMachine:
    def __init__(self, name, initial, edges):
        self.name = name
        self.initial = initial
        self.edges = {(src, dst): frozenset(roles) for (src, dst), roles in edges.items()}
        self.states = {initial} | {s for edge in self.edges for s in edge}

    def targets(self, current):
        return sorted(dst for src, dst in self.edges if src == current)

    def is_terminal(self, state):
        return not self.targets(state)

    def check(self, current, target, role):
        """Validate moving from ``current`` to ``target`` as ``role``.

        Returns False when nothing changes, True for a legal move. Unknown
        moves raise IllegalTransition, moves the role may not make raise
        Forbidden.
        """
        if target == current:
            return False
        if target not in self.states:
            raise IllegalTransition(f"Unknown {self.name} status '{target}'")
        roles = self.edges.get((current, target))
        if roles is None:
            raise IllegalTransition(
                f"Cannot move {self.name} from '{current}' to '{target}'",
                payload={"allowed": self.targets(current)},
            )
        if role not in roles:
            raise Forbidden(f"Role '{role}' cannot move {self.name} to '{target}'")
        return True


STAFF = (ORGANIZATION, ADMIN)

WASTE_REPORT = StateMachine("waste report", "pending", {
    ("pending", "scheduled"): (DEALER,) + STAFF,
    ("pending", "rejected"): (DEALER,) + STAFF,
    ("scheduled", "in_progress"): (DEALER,) + STAFF,
    ("in_progress", "completed"): (DEALER,) + STAFF,
})

DONATION = StateMachine("donation", "available", {
    ("available", "requested"): (ORGANIZATION,),
    ("requested", "available"): (CUSTOMER, ORGANIZATION),
    ("requested", "matched"): (CUSTOMER,),
    ("matched", "completed"): (CUSTOMER, ORGANIZATION),
})

EVENT = StateMachine("event", "upcoming", {
    ("upcoming", "ongoing"): (ORGANIZATION,),
    ("upcoming", "cancelled"): (ORGANIZATION,),
    ("ongoing", "completed"): (ORGANIZATION,),
    ("ongoing", "cancelled"): (ORGANIZATION,),
})

ISSUE = StateMachine("issue", "pending", {
    ("pending", "assigned"): (ADMIN,),
    ("pending", "rejected"): STAFF,
    ("assigned", "in_progress"): STAFF,
    ("assigned", "rejected"): (ADMIN,),
    ("in_progress", "resolved"): STAFF,
})

HELP_REQUEST = StateMachine("help request", "pending", {
    ("pending", "approved"): STAFF,
    ("pending", "rejected"): STAFF,
    ("approved", "in_progress"): STAFF,
    ("in_progress", "completed"): STAFF,
})

# Feedback is gated by assignment, not role
FEEDBACK = StateMachine("feedback", "unread", {
    ("unread", "read"): ROLES,
    ("unread", "resolved"): ROLES,
    ("read", "resolved"): ROLES,
})
