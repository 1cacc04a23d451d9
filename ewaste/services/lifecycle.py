"""Pickup request state machine.

The engine is pure and synchronous: it receives a snapshot of a request and
returns a new, fully computed request or raises. It never touches storage,
so a failed guard can never leave a partially updated request behind.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Union

from ewaste.core.errors import Forbidden, IllegalTransition
from ewaste.core.policy import roles_for
from ewaste.core.states import ASSIGNED, CANCELLED, COMPLETED, IN_PROGRESS, PENDING, can_transition
from ewaste.models.pickup import (
    CancelChange,
    ClaimChange,
    CompleteChange,
    Feedback,
    FeedbackChange,
    PickupChange,
    PickupCreate,
    PickupRequest,
    StartChange,
    StatusEvent,
    build_pickup,
)
from ewaste.models.schemas import Principal


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleEngine:
    def __init__(self, logger: Optional[logging.Logger] = None,
                 clock: Callable[[], datetime] = _utcnow):
        self.log = logger or logging.getLogger(__name__)
        self.clock = clock
        self._handlers: Dict[str, Callable[[Principal, PickupRequest, PickupChange], None]] = {
            "claim": self._claim,
            "start": self._start,
            "complete": self._complete,
            "cancel": self._cancel,
            "feedback": self._feedback,
        }

    # ---------- creation ----------
    def create(self, principal: Principal, payload: Union[PickupCreate, dict]) -> PickupRequest:
        if principal.role not in roles_for("create_request"):
            raise Forbidden()
        return build_pickup(principal.id, payload, now=self.clock())

    # ---------- transitions ----------
    def transition(self, principal: Principal, pickup: PickupRequest, change: PickupChange) -> PickupRequest:
        """Apply ``change`` on behalf of ``principal`` and return the updated copy.

        Raises ``Forbidden`` when the role may never perform the action, and
        ``IllegalTransition`` when the request's state or assignment rules
        it out. ``pickup`` itself is left untouched in every case.
        """
        if principal.role not in roles_for(change.action):
            raise Forbidden(f"Role {principal.role!r} may not {change.action} pickup requests")

        updated = pickup.model_copy(deep=True)
        self._handlers[change.action](principal, updated, change)

        now = self.clock()
        if updated.status != pickup.status:
            updated.history.append(StatusEvent(
                at=now, by_user=principal.id,
                from_status=pickup.status, to_status=updated.status,
                note=_note_for(change),
            ))
        updated.version = pickup.version + 1
        updated.updated_at = now
        self.log.debug("pickup %s: %s by %s (%s -> %s)", pickup.id, change.action,
                       principal.id, pickup.status, updated.status)
        return updated

    def _move(self, principal: Principal, pickup: PickupRequest, dst: str) -> None:
        if not can_transition(pickup.status, dst, principal.role):
            raise IllegalTransition(f"Cannot move pickup request from {pickup.status} to {dst}")
        pickup.status = dst

    def _require_assignee(self, principal: Principal, pickup: PickupRequest) -> None:
        if pickup.assigned_agent_id != principal.id:
            raise IllegalTransition("Pickup request is not assigned to you")

    def _claim(self, principal: Principal, pickup: PickupRequest, change: ClaimChange) -> None:
        if pickup.status != PENDING or pickup.assigned_agent_id is not None:
            raise IllegalTransition(f"Pickup request is already {pickup.status}")
        self._move(principal, pickup, ASSIGNED)
        pickup.assigned_agent_id = principal.id

    def _start(self, principal: Principal, pickup: PickupRequest, change: StartChange) -> None:
        self._require_assignee(principal, pickup)
        self._move(principal, pickup, IN_PROGRESS)

    def _complete(self, principal: Principal, pickup: PickupRequest, change: CompleteChange) -> None:
        self._require_assignee(principal, pickup)
        self._move(principal, pickup, COMPLETED)
        if change.closing_note is not None:
            pickup.closing_note = change.closing_note

    def _cancel(self, principal: Principal, pickup: PickupRequest, change: CancelChange) -> None:
        if pickup.owner_id != principal.id:
            raise Forbidden("Only the requester who filed this pickup may cancel it")
        self._move(principal, pickup, CANCELLED)

    def _feedback(self, principal: Principal, pickup: PickupRequest, change: FeedbackChange) -> None:
        if pickup.owner_id != principal.id:
            raise Forbidden("Only the requester who filed this pickup may rate it")
        if pickup.status != COMPLETED:
            raise IllegalTransition("Feedback can only be given once the pickup is completed")
        pickup.feedback = Feedback(rating=change.rating, comment=change.comment)


def _note_for(change: PickupChange) -> Optional[str]:
    if isinstance(change, CompleteChange):
        return change.closing_note
    if isinstance(change, CancelChange):
        return change.reason
    return None
