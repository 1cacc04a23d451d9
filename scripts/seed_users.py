import asyncio
from datetime import datetime, timezone

from ewaste.core.errors import Conflict
from ewaste.core.security import hash_password
from ewaste.deps import get_user_repo
from ewaste.models.pickup import new_id
from ewaste.models.schemas import UserRecord

DEMO_USERS = [
    ("Admin", "admin@ewaste.example.com", "admin123", "admin"),
    ("Green Recyclers", "agent@ewaste.example.com", "agent123", "agent"),
    ("Demo Requester", "requester@ewaste.example.com", "requester123", "requester"),
]


async def main():
    users = get_user_repo()
    await users.ensure_indexes()
    for name, email, password, role in DEMO_USERS:
        user = UserRecord(
            id=new_id(),
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            created_at=datetime.now(timezone.utc),
        )
        try:
            await users.create_user(user)
            print("User seeded:", email, f"({role})")
        except Conflict:
            print("User exists:", email)


if __name__ == "__main__":
    asyncio.run(main())
