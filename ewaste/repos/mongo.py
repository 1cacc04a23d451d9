# ewaste/repos/mongo.py
import logging
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from ewaste.core.errors import Conflict, StorageUnavailable
from ewaste.models.pickup import PickupRequest
from ewaste.models.schemas import UserRecord
from ewaste.repos.base import PickupRepository, UserRepository

log = logging.getLogger(__name__)


def _to_doc(pickup: PickupRequest) -> Dict[str, Any]:
    doc = pickup.model_dump()
    doc["_id"] = doc.pop("id")
    # BSON has no date type
    doc["scheduled_date"] = pickup.scheduled_date.isoformat()
    return doc


def _from_doc(doc: Dict[str, Any]) -> PickupRequest:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return PickupRequest.model_validate(doc)


class MongoPickupRepo(PickupRepository):
    def __init__(self, db):
        self.col = db.pickups

    async def _find_many(self, query: dict) -> List[PickupRequest]:
        try:
            cur = self.col.find(query).sort("created_at", DESCENDING)
            return [_from_doc(d) async for d in cur]
        except PyMongoError as exc:
            log.error("pickup query %s failed: %s", query, exc)
            raise StorageUnavailable() from exc

    async def find_by_id(self, pickup_id: str) -> Optional[PickupRequest]:
        try:
            doc = await self.col.find_one({"_id": pickup_id})
        except PyMongoError as exc:
            log.error("pickup lookup %s failed: %s", pickup_id, exc)
            raise StorageUnavailable() from exc
        return _from_doc(doc) if doc else None

    async def find_by_owner(self, owner_id: str) -> List[PickupRequest]:
        return await self._find_many({"owner_id": owner_id})

    async def find_by_status(self, status: str) -> List[PickupRequest]:
        return await self._find_many({"status": status})

    async def find_by_assigned_agent(self, agent_id: str) -> List[PickupRequest]:
        return await self._find_many({"assigned_agent_id": agent_id})

    async def insert(self, pickup: PickupRequest) -> PickupRequest:
        try:
            await self.col.insert_one(_to_doc(pickup))
        except DuplicateKeyError as exc:
            raise Conflict(f"Pickup request {pickup.id} already exists") from exc
        except PyMongoError as exc:
            log.error("pickup insert failed: %s", exc)
            raise StorageUnavailable() from exc
        return pickup

    async def save(self, pickup: PickupRequest, expected_version: int) -> PickupRequest:
        try:
            res = await self.col.replace_one(
                {"_id": pickup.id, "version": expected_version},
                _to_doc(pickup),
            )
        except PyMongoError as exc:
            log.error("pickup save %s failed: %s", pickup.id, exc)
            raise StorageUnavailable() from exc
        if res.matched_count == 0:
            raise Conflict(f"Pickup request {pickup.id} was modified concurrently")
        return pickup

    async def ensure_indexes(self) -> None:
        await self.col.create_index([("owner_id", ASCENDING), ("created_at", DESCENDING)], name="owner_created")
        await self.col.create_index([("status", ASCENDING), ("created_at", DESCENDING)], name="status_created")
        await self.col.create_index([("assigned_agent_id", ASCENDING)], name="assigned_agent_1", sparse=True)


class MongoUserRepo(UserRepository):
    def __init__(self, db):
        self.col = db.users

    @staticmethod
    def _from_doc(doc: Dict[str, Any]) -> UserRecord:
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return UserRecord.model_validate(doc)

    async def create_user(self, user: UserRecord) -> UserRecord:
        doc = user.model_dump()
        doc["_id"] = doc.pop("id")
        doc["email"] = doc["email"].lower()
        try:
            await self.col.insert_one(doc)
        except DuplicateKeyError as exc:
            raise Conflict("User already exists") from exc
        except PyMongoError as exc:
            log.error("user insert failed: %s", exc)
            raise StorageUnavailable() from exc
        return user

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        try:
            doc = await self.col.find_one({"email": email.lower()})
        except PyMongoError as exc:
            raise StorageUnavailable() from exc
        return self._from_doc(doc) if doc else None

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        try:
            doc = await self.col.find_one({"_id": user_id})
        except PyMongoError as exc:
            raise StorageUnavailable() from exc
        return self._from_doc(doc) if doc else None

    async def update_user(self, user_id: str, changes: Dict[str, Any]) -> Optional[UserRecord]:
        if not changes:
            return await self.find_by_id(user_id)
        try:
            doc = await self.col.find_one_and_update(
                {"_id": user_id}, {"$set": changes}, return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            log.error("user update %s failed: %s", user_id, exc)
            raise StorageUnavailable() from exc
        return self._from_doc(doc) if doc else None

    async def ensure_indexes(self) -> None:
        await self.col.create_index("email", unique=True)
