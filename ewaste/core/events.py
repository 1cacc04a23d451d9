import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

PICKUP_CREATED = "pickup.created"
PICKUP_STATUS_CHANGED = "pickup.status.changed"
PICKUP_FEEDBACK_SUBMITTED = "pickup.feedback.submitted"


class EventSink:
    """Receives every externally observable state change."""

    async def emit(self, type_: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError


class LoggingEventSink(EventSink):
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or logging.getLogger("ewaste.events")

    async def emit(self, type_: str, data: Dict[str, Any]) -> None:
        self.log.info("%s %s", type_, data)


class MemoryEventSink(EventSink):
    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    async def emit(self, type_: str, data: Dict[str, Any]) -> None:
        self.events.append({"type": type_, "data": dict(data),
                            "created_at": datetime.now(timezone.utc)})

    def types(self) -> List[str]:
        return [e["type"] for e in self.events]


class MongoEventSink(EventSink):
    """Appends events to the ``events`` collection and mirrors them to the log."""

    def __init__(self, db, logger: Optional[logging.Logger] = None):
        self.db = db
        self.log = logger or logging.getLogger("ewaste.events")

    async def emit(self, type_: str, data: Dict[str, Any]) -> None:
        evt = {
            "type": type_,
            "data": data,
            "created_at": datetime.now(timezone.utc),
        }
        self.log.info("%s %s", type_, data)
        try:
            await self.db.events.insert_one(evt)
        except PyMongoError:
            # state change is already committed at this point
            self.log.exception("failed to persist event %s", type_)
