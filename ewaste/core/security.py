import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from passlib.context import CryptContext

from ewaste.core.config import settings
from ewaste.core.errors import InvalidCredential, MissingCredential
from ewaste.models.schemas import ROLES, Principal

log = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password or "")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(password or "", hashed)
    except (ValueError, TypeError):
        # empty or unrecognised hash format
        return False


class Authenticator:
    """Signs and verifies bearer credentials carrying ``sub`` and ``role``."""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_minutes: int = 60):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = timedelta(minutes=ttl_minutes)

    def sign(self, claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        payload = dict(claims)
        now = datetime.now(timezone.utc)
        payload.setdefault("iat", now)
        payload["exp"] = now + (expires_delta if expires_delta is not None else self.ttl)
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def issue(self, user_id: str, role: str) -> str:
        return self.sign({"sub": user_id, "role": role})

    def verify(self, token: str) -> Dict[str, str]:
        try:
            data = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise InvalidCredential("Token expired")
        except jwt.InvalidTokenError:
            raise InvalidCredential()

        sub, role = data.get("sub"), data.get("role")
        if not sub or role not in ROLES:
            raise InvalidCredential("Invalid token format")
        return {"id": str(sub), "role": role}

    def resolve(self, credential: Optional[str]) -> Principal:
        """Turn a raw bearer credential into a ``Principal``.

        The role is the one embedded at issuance; it is not re-checked
        against stored users, so a role change only applies to new tokens.
        """
        if credential is None or not credential.strip():
            raise MissingCredential()
        claims = self.verify(credential.strip())
        return Principal(id=claims["id"], role=claims["role"])


def has_role(principal: Principal, allowed_roles: Iterable[str]) -> bool:
    return principal.role in set(allowed_roles)


_authenticator = Authenticator(settings.jwt_secret, settings.jwt_alg, settings.access_ttl_min)


def get_authenticator() -> Authenticator:
    return _authenticator


async def get_current_principal(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    authenticator: Authenticator = Depends(get_authenticator),
) -> Principal:
    try:
        principal = authenticator.resolve(token)
    except (MissingCredential, InvalidCredential) as exc:
        log.info("credential rejected: %s", exc.message)
        raise
    request.state.user_id = principal.id
    return principal
