from motor.motor_asyncio import AsyncIOMotorDatabase
from app.db.mongo import get_mongo_db


async def ensure_indexes(db: AsyncIOMotorDatabase | None = None) -> None:
    """Create required MongoDB indexes (idempotent)."""
    if db is None:
        db = get_mongo_db()

    clients = db["clients"]
    # Pickers list active clients by name
    await clients.create_index([("name", 1)], name="idx_client_name")
    await clients.create_index([("is_active", 1), ("name", 1)], name="idx_client_active_name")
    await clients.create_index([("created_at", -1)], name="idx_client_created")

    tasks = db["tasks"]
    # Report filters: per client and date window
    await tasks.create_index([("client_id", 1), ("task_date", 1)], name="idx_task_client_date")
    await tasks.create_index([("task_date", 1), ("created_at", 1)], name="idx_task_date_created")
