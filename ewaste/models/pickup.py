from datetime import date, datetime, timezone
from typing import Annotated, List, Literal, Optional, Union

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ewaste.core.errors import ValidationError
from ewaste.core.states import PENDING

Status = Literal["pending", "assigned", "in-progress", "completed", "cancelled"]
Category = Literal["computer", "mobile", "tv", "printer", "other"]

NonBlank = Annotated[str, Field(min_length=1)]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(ObjectId())


def first_error_message(exc: PydanticValidationError) -> str:
    """Render the first failing constraint as ``field.path: message``."""
    errors = exc.errors()
    if not errors:
        return "Invalid payload"
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    msg = err.get("msg", "Invalid value").removeprefix("Value error, ")
    return f"{loc}: {msg}" if loc else msg


# --------------------------
# Shared submodels
# --------------------------
class Item(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: Category
    quantity: int = Field(ge=1)
    description: Optional[str] = None


class Address(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    street: NonBlank
    city: NonBlank
    state: NonBlank
    zip_code: NonBlank
    country: NonBlank


class Feedback(BaseModel):
    model_config = ConfigDict(extra="forbid")

    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


class StatusEvent(BaseModel):
    at: datetime
    by_user: str
    from_status: Optional[Status] = None
    to_status: Status
    note: Optional[str] = None


def _require_items(items: List[Item]) -> List[Item]:
    if not items:
        raise ValueError("At least one item is required")
    return items


Items = Annotated[List[Item], AfterValidator(_require_items)]


# --------------------------
# Creation payload
# --------------------------
class PickupCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    items: Items
    scheduled_date: date
    scheduled_time: NonBlank
    address: Address
    notes: Optional[str] = None


# --------------------------
# Entity
# --------------------------
class PickupRequest(BaseModel):
    """A single pickup request as stored and returned to callers.

    Only the lifecycle engine produces modified copies; field level
    constraints are re-checked whenever an instance is built.
    """

    id: str = Field(default_factory=new_id)
    owner_id: NonBlank
    items: Items
    status: Status = PENDING
    assigned_agent_id: Optional[str] = None
    scheduled_date: date
    scheduled_time: NonBlank
    address: Address
    notes: Optional[str] = None
    closing_note: Optional[str] = None
    feedback: Optional[Feedback] = None
    history: List[StatusEvent] = Field(default_factory=list)
    version: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class RequesterContact(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None


class AgentPickupView(PickupRequest):
    """A pickup as listed to agents, with the requester's contact details."""

    requester: Optional[RequesterContact] = None


def build_pickup(owner_id: str, payload: Union[PickupCreate, dict], now: Optional[datetime] = None) -> PickupRequest:
    """Validate ``payload`` and build a fresh ``pending`` request for ``owner_id``.

    Raises ``ValidationError`` naming the first failing constraint.
    """
    now = now or _utcnow()
    try:
        data = payload if isinstance(payload, PickupCreate) else PickupCreate.model_validate(payload)
        return PickupRequest(
            owner_id=owner_id,
            items=data.items,
            scheduled_date=data.scheduled_date,
            scheduled_time=data.scheduled_time,
            address=data.address,
            notes=data.notes,
            history=[StatusEvent(at=now, by_user=owner_id, from_status=None,
                                 to_status=PENDING, note="created")],
            created_at=now,
            updated_at=now,
        )
    except PydanticValidationError as exc:
        raise ValidationError(first_error_message(exc)) from exc


# --------------------------
# Change payloads (tagged on "action")
# --------------------------
class _Change(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ClaimChange(_Change):
    action: Literal["claim"]


class StartChange(_Change):
    action: Literal["start"]


class CompleteChange(_Change):
    action: Literal["complete"]
    closing_note: Optional[str] = None


class CancelChange(_Change):
    action: Literal["cancel"]
    reason: Optional[str] = None


class FeedbackChange(_Change):
    action: Literal["feedback"]
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


PickupChange = Annotated[
    Union[ClaimChange, StartChange, CompleteChange, CancelChange, FeedbackChange],
    Field(discriminator="action"),
]

_change_adapter = TypeAdapter(PickupChange)


def parse_change(payload: dict) -> PickupChange:
    """Parse a raw change body, raising ``ValidationError`` on unknown or missing fields."""
    try:
        return _change_adapter.validate_python(payload)
    except PydanticValidationError as exc:
        raise ValidationError(first_error_message(exc)) from exc

