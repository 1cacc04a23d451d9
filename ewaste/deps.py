from functools import lru_cache

from fastapi import Depends

from ewaste.core.config import settings
from ewaste.core.events import EventSink, LoggingEventSink
from ewaste.repos.base import PickupRepository, UserRepository
from ewaste.services.pickups import PickupService

if settings.use_mongo:
    from ewaste.core.db import get_db
    from ewaste.core.events import MongoEventSink
    from ewaste.repos.mongo import MongoPickupRepo, MongoUserRepo


@lru_cache(maxsize=1)
def get_pickup_repo() -> PickupRepository:
    if settings.use_mongo:
        return MongoPickupRepo(get_db())
    from ewaste.repos.inmemory import InMemoryPickupRepo
    return InMemoryPickupRepo()


@lru_cache(maxsize=1)
def get_user_repo() -> UserRepository:
    if settings.use_mongo:
        return MongoUserRepo(get_db())
    from ewaste.repos.inmemory import InMemoryUserRepo
    return InMemoryUserRepo()


@lru_cache(maxsize=1)
def get_event_sink() -> EventSink:
    if settings.use_mongo:
        return MongoEventSink(get_db())
    return LoggingEventSink()


def get_pickup_service(
    repo: PickupRepository = Depends(get_pickup_repo),
    sink: EventSink = Depends(get_event_sink),
    users: UserRepository = Depends(get_user_repo),
) -> PickupService:
    return PickupService(repo, sink, users=users)
