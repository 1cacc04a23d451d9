PENDING = "pending"
ASSIGNED = "assigned"
IN_PROGRESS = "in-progress"
COMPLETED = "completed"
CANCELLED = "cancelled"

PICKUP_STATES = [PENDING, ASSIGNED, IN_PROGRESS, COMPLETED, CANCELLED]

TRANSITIONS = {
    (PENDING,     ASSIGNED):    {"roles": ["agent"]},
    (ASSIGNED,    IN_PROGRESS): {"roles": ["agent"]},
    (IN_PROGRESS, COMPLETED):   {"roles": ["agent"]},
    # agents may skip in-progress entirely
    (ASSIGNED,    COMPLETED):   {"roles": ["agent"]},

    (PENDING,     CANCELLED):   {"roles": ["requester"]},
}


def can_transition(src: str, dst: str, role: str) -> bool:
    rule = TRANSITIONS.get((src, dst))
    if not rule:
        return False
    return role in rule["roles"]


def reachable_from(src: str) -> set[str]:
    """All states reachable from ``src`` along the transition graph."""
    seen: set[str] = set()
    frontier = [src]
    while frontier:
        cur = frontier.pop()
        for (a, b) in TRANSITIONS:
            if a == cur and b not in seen:
                seen.add(b)
                frontier.append(b)
    return seen
