from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Sequence

from app.db.mongo import get_mongo_db, close_mongo_client
from app.db.mongo_indexes import ensure_indexes


async def _bump_counter(db, sequence: str, value: int) -> None:
    # Keep the id sequence ahead of the fixed seed ids
    await db["counters"].update_one({"_id": sequence}, {"$max": {"seq": value}}, upsert=True)


async def seed_clients(db) -> list[dict]:
    now = datetime.now()
    clients = [
        {
            "_id": 1,  # stable id for idempotence
            "name": "Tech Solutions Inc.",
            "hourly_rate": 75.00,
            "description": "Software development client",
            "email": "contact@techsolutions.com",
            "phone": None,
            "currency": "INR",
            "conversion_rate": 1.0,
            "is_active": True,
            "created_at": now,
        },
        {
            "_id": 2,
            "name": "Digital Marketing Pro",
            "hourly_rate": 50.00,
            "description": "Marketing automation project",
            "email": "info@digitalmarketingpro.com",
            "phone": None,
            "currency": "INR",
            "conversion_rate": 1.0,
            "is_active": True,
            "created_at": now,
        },
        {
            "_id": 3,
            "name": "StartUp Ventures",
            "hourly_rate": 100.00,
            "description": "MVP development",
            "email": "team@startupventures.io",
            "phone": None,
            "currency": "INR",
            "conversion_rate": 1.0,
            "is_active": True,
            "created_at": now,
        },
    ]
    for c in clients:
        await db["clients"].update_one({"_id": c["_id"]}, {"$setOnInsert": c}, upsert=True)
    await _bump_counter(db, "clients", len(clients))
    return clients


async def seed_tasks(db, clients: Sequence[dict]) -> None:
    now = datetime.now()
    today = datetime(now.year, now.month, now.day)
    items: Sequence[tuple[int, int, str, float, str | None]] = [
        (1, 1, "API integration for billing module", 4.0, None),
        (1, 3, "Code review and bug fixes", 2.5, None),
        (2, 2, "Campaign landing page setup", 3.0, "https://digitalmarketingpro.com/campaigns"),
        (2, 6, "Email automation workflow", 1.5, None),
        (3, 1, "MVP sprint planning", 2.0, None),
        (3, 4, "Authentication prototype", 6.0, "https://github.com/startupventures/mvp"),
    ]
    for seq, (client_idx, days_ago, description, hours, link) in enumerate(items, 1):
        task = {
            "_id": seq,
            "client_id": clients[client_idx - 1]["_id"],
            "task_date": today - timedelta(days=days_ago),
            "description": description,
            "task_link": link,
            "hours_worked": hours,
            "created_at": now,
        }
        await db["tasks"].update_one({"_id": task["_id"]}, {"$setOnInsert": task}, upsert=True)
    await _bump_counter(db, "tasks", len(items))


async def main():
    db = get_mongo_db()
    # Ensure indexes before inserting
    await ensure_indexes(db)

    clients = await seed_clients(db)
    await seed_tasks(db, clients)

    print("MongoDB seed completed.")
    close_mongo_client()


if __name__ == "__main__":
    asyncio.run(main())
