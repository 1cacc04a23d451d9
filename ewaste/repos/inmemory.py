# ewaste/repos/inmemory.py
from typing import Any, Callable, Dict, List, Optional

from ewaste.core.errors import Conflict
from ewaste.models.pickup import PickupRequest
from ewaste.models.schemas import UserRecord
from ewaste.repos.base import PickupRepository, UserRepository


def _newest_first(items: List[PickupRequest]) -> List[PickupRequest]:
    return sorted(items, key=lambda p: p.created_at, reverse=True)


class InMemoryPickupRepo(PickupRepository):
    """Dict-backed repository; stores and hands out deep copies only.

    Compare and write in ``save`` run without an ``await`` in between, so a
    single event loop can never interleave two writers on one id.
    """

    def __init__(self):
        self.pickups: Dict[str, PickupRequest] = {}

    def _select(self, pred: Callable[[PickupRequest], bool]) -> List[PickupRequest]:
        return _newest_first([p.model_copy(deep=True) for p in self.pickups.values() if pred(p)])

    async def find_by_id(self, pickup_id: str) -> Optional[PickupRequest]:
        found = self.pickups.get(pickup_id)
        return found.model_copy(deep=True) if found else None

    async def find_by_owner(self, owner_id: str) -> List[PickupRequest]:
        return self._select(lambda p: p.owner_id == owner_id)

    async def find_by_status(self, status: str) -> List[PickupRequest]:
        return self._select(lambda p: p.status == status)

    async def find_by_assigned_agent(self, agent_id: str) -> List[PickupRequest]:
        return self._select(lambda p: p.assigned_agent_id == agent_id)

    async def insert(self, pickup: PickupRequest) -> PickupRequest:
        if pickup.id in self.pickups:
            raise Conflict(f"Pickup request {pickup.id} already exists")
        self.pickups[pickup.id] = pickup.model_copy(deep=True)
        return pickup

    async def save(self, pickup: PickupRequest, expected_version: int) -> PickupRequest:
        current = self.pickups.get(pickup.id)
        if current is None or current.version != expected_version:
            raise Conflict(f"Pickup request {pickup.id} was modified concurrently")
        self.pickups[pickup.id] = pickup.model_copy(deep=True)
        return pickup


class InMemoryUserRepo(UserRepository):
    def __init__(self):
        self.users: Dict[str, UserRecord] = {}
        self.users_by_email: Dict[str, str] = {}

    async def create_user(self, user: UserRecord) -> UserRecord:
        email = user.email.lower()
        if email in self.users_by_email:
            raise Conflict("User already exists")
        self.users[user.id] = user
        self.users_by_email[email] = user.id
        return user

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        uid = self.users_by_email.get(email.lower())
        return self.users.get(uid) if uid else None

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        return self.users.get(user_id)

    async def update_user(self, user_id: str, changes: Dict[str, Any]) -> Optional[UserRecord]:
        user = self.users.get(user_id)
        if user is None:
            return None
        updated = UserRecord.model_validate({**user.model_dump(), **changes})
        self.users[user_id] = updated
        return updated
