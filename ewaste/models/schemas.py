from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ewaste.models.pickup import Address

Role = Literal["requester", "agent", "admin"]
ROLES = ("requester", "agent", "admin")


class Principal(BaseModel):
    """The caller of one operation, as embedded in its credential."""
    model_config = ConfigDict(frozen=True)

    id: str
    role: Role


# --------------------------
# User & Auth Models
# --------------------------
class UserCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    # admins are seeded, never self-registered
    role: Literal["requester", "agent"] = "requester"
    phone: Optional[str] = None
    address: Optional[Address] = None


class UserUpdate(BaseModel):
    """Profile fields a user may change; omitted fields stay as they are."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    address: Optional[Address] = None


class UserRecord(BaseModel):
    id: str
    name: str
    email: EmailStr
    password_hash: str
    role: Role
    phone: Optional[str] = None
    address: Optional[Address] = None
    created_at: datetime


class UserOut(BaseModel):
    id: str
    name: str
    email: EmailStr
    role: Role
    phone: Optional[str] = None
    address: Optional[Address] = None

    @classmethod
    def from_record(cls, user: UserRecord) -> "UserOut":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role,
                   phone=user.phone, address=user.address)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
