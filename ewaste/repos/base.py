from typing import Any, Dict, List, Optional

from ewaste.models.pickup import PickupRequest
from ewaste.models.schemas import UserRecord


class PickupRepository:
    """Persistence boundary for pickup requests.

    Listings are ordered newest first. ``save`` is a conditional write: it
    replaces the stored request only while its version still equals
    ``expected_version`` and raises ``Conflict`` otherwise. Driver failures
    surface as ``StorageUnavailable``.
    """

    async def find_by_id(self, pickup_id: str) -> Optional[PickupRequest]:
        raise NotImplementedError

    async def find_by_owner(self, owner_id: str) -> List[PickupRequest]:
        raise NotImplementedError

    async def find_by_status(self, status: str) -> List[PickupRequest]:
        raise NotImplementedError

    async def find_by_assigned_agent(self, agent_id: str) -> List[PickupRequest]:
        raise NotImplementedError

    async def insert(self, pickup: PickupRequest) -> PickupRequest:
        raise NotImplementedError

    async def save(self, pickup: PickupRequest, expected_version: int) -> PickupRequest:
        raise NotImplementedError

    async def ensure_indexes(self) -> None:
        return None


class UserRepository:
    async def create_user(self, user: UserRecord) -> UserRecord:
        raise NotImplementedError

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        raise NotImplementedError

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        raise NotImplementedError

    async def update_user(self, user_id: str, changes: Dict[str, Any]) -> Optional[UserRecord]:
        """Apply ``changes`` to the stored user; ``None`` when the id is unknown."""
        raise NotImplementedError

    async def ensure_indexes(self) -> None:
        return None
