# backend/app/services/routing/lifecycle.py
from app.errors import InvalidStatusTransitionError

# planned → active → completed, planned → cancelled
TRANSITIONS: dict[str, frozenset[str]] = {
    "planned": frozenset({"active", "cancelled"}),
    "active": frozenset({"completed"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}


def advance_status(current: str, target: str) -> str:
    if target not in TRANSITIONS.get(current, frozenset()):
        raise InvalidStatusTransitionError(f"cannot move route from {current} to {target}")
    return target
