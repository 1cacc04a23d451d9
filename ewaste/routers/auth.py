# ewaste/routers/auth.py
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Form

from ewaste.core.errors import InvalidCredential, NotFound, ValidationError
from ewaste.core.security import (
    Authenticator,
    get_authenticator,
    get_current_principal,
    hash_password,
    verify_password,
)
from ewaste.deps import get_user_repo
from ewaste.models.pickup import new_id
from ewaste.models.schemas import Principal, TokenOut, UserCreate, UserOut, UserRecord, UserUpdate
from ewaste.repos.base import UserRepository

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_for(user: UserRecord, authenticator: Authenticator) -> TokenOut:
    token = authenticator.issue(user.id, user.role)
    return TokenOut(access_token=token, user=UserOut.from_record(user))


@router.post("/register", response_model=TokenOut, status_code=201)
async def register(
    body: UserCreate,
    users: UserRepository = Depends(get_user_repo),
    authenticator: Authenticator = Depends(get_authenticator),
):
    user = UserRecord(
        id=new_id(),
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password),
        role=body.role,
        phone=body.phone,
        address=body.address,
        created_at=datetime.now(timezone.utc),
    )
    await users.create_user(user)
    log.info("registered %s user %s", user.role, user.id)
    return _token_for(user, authenticator)


@router.post("/login", response_model=TokenOut)
async def login(
    email: str = Form(...),
    password: str = Form(...),
    users: UserRepository = Depends(get_user_repo),
    authenticator: Authenticator = Depends(get_authenticator),
):
    if not email.strip() or not password:
        raise ValidationError("Email and password are required")
    user = await users.find_by_email(email.strip())
    if not user or not verify_password(password, user.password_hash):
        raise InvalidCredential("Invalid credentials")
    return _token_for(user, authenticator)


@router.get("/user", response_model=UserOut)
async def current_user(
    principal: Principal = Depends(get_current_principal),
    users: UserRepository = Depends(get_user_repo),
):
    user = await users.find_by_id(principal.id)
    if not user:
        raise NotFound("User not found")
    return UserOut.from_record(user)


@router.put("/user", response_model=UserOut)
async def update_current_user(
    body: UserUpdate,
    principal: Principal = Depends(get_current_principal),
    users: UserRepository = Depends(get_user_repo),
):
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    user = await users.update_user(principal.id, changes)
    if not user:
        raise NotFound("User not found")
    log.info("user %s updated %s", principal.id, ", ".join(sorted(changes)) or "nothing")
    return UserOut.from_record(user)
