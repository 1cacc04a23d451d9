ANY_ROLE: frozenset = frozenset()

# Role sets declared per operation; an empty set means authentication only.
OPERATION_ROLES = {
    "create_request":  frozenset({"requester"}),
    "list_mine":       ANY_ROLE,
    "get_request":     ANY_ROLE,
    "list_available":  frozenset({"agent"}),
    "list_assigned":   frozenset({"agent"}),
    "claim":           frozenset({"agent"}),
    "start":           frozenset({"agent"}),
    "complete":        frozenset({"agent"}),
    "cancel":          frozenset({"requester"}),
    "feedback":        frozenset({"requester"}),
    "list_by_status":  frozenset({"admin"}),
}


def roles_for(operation: str) -> frozenset:
    try:
        return OPERATION_ROLES[operation]
    except KeyError:
        raise KeyError(f"No role policy declared for operation {operation!r}")
