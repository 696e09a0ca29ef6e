from __future__ import annotations

import logging
from collections import Counter
from contextlib import contextmanager
from datetime import date, datetime
from typing import Optional

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from app.core.errors import ConcurrencyConflict, NotFound, StoreUnavailable, ValidationFailed
from app.db.mongo import get_mongo_db
from app.schemas.client_schema import ClientIn, ClientOut
from app.schemas.task_schema import TaskFilter, TaskIn, TaskOut


logger = logging.getLogger("uvicorn.error")

_TASK_SORT = [("task_date", 1), ("_id", 1)]


def _as_datetime(d: date) -> datetime:
    # Mongo has no date-only type; store midnight
    return datetime(d.year, d.month, d.day)


def _as_date(value) -> date:
    return value.date() if isinstance(value, datetime) else value


@contextmanager
def _store_errors():
    try:
        yield
    except PyMongoError as exc:
        logger.error("Mongo operation failed: %s", exc)
        raise StoreUnavailable(str(exc)) from exc


def _client_out(doc: dict) -> ClientOut:
    return ClientOut(
        id=int(doc["_id"]),
        name=doc.get("name", ""),
        hourly_rate=float(doc.get("hourly_rate", 0.0)),
        description=doc.get("description"),
        email=doc.get("email"),
        phone=doc.get("phone"),
        currency=doc.get("currency") or "INR",
        conversion_rate=float(doc.get("conversion_rate", 1.0)),
        is_active=bool(doc.get("is_active", True)),
        created_at=doc.get("created_at") or datetime.min,
    )


def _task_out(doc: dict, client: Optional[ClientOut]) -> TaskOut:
    return TaskOut(
        id=int(doc["_id"]),
        client_id=int(doc["client_id"]),
        task_date=_as_date(doc["task_date"]),
        description=doc.get("description", ""),
        task_link=doc.get("task_link"),
        hours_worked=float(doc.get("hours_worked", 0.0)),
        created_at=doc.get("created_at") or datetime.min,
        client=client,
    )


class BillingStore:
    """Clients and their work tasks in MongoDB.

    Ids are integers drawn from the `counters` collection so that `clientId=0`
    can keep meaning "all clients".
    """

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.db = db

    async def _next_id(self, sequence: str) -> int:
        doc = await self.db["counters"].find_one_and_update(
            {"_id": sequence},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["seq"])

    # ---------------------- Clients ----------------------

    async def list_clients(self, active_only: bool = False) -> list[ClientOut]:
        if active_only:
            q: dict = {"is_active": True}
            sort = [("name", 1), ("_id", 1)]
        else:
            q = {}
            sort = [("created_at", -1), ("_id", -1)]
        out: list[ClientOut] = []
        with _store_errors():
            async for doc in self.db["clients"].find(q, sort=sort):
                out.append(_client_out(doc))
        return out

    async def get_client(self, client_id: int) -> ClientOut:
        with _store_errors():
            doc = await self.db["clients"].find_one({"_id": client_id})
        if not doc:
            raise NotFound("Client", client_id)
        return _client_out(doc)

    async def create_client(self, payload: ClientIn, now: datetime) -> ClientOut:
        doc = payload.model_dump(mode="json")
        with _store_errors():
            doc["_id"] = await self._next_id("clients")
            doc["created_at"] = now
            await self.db["clients"].insert_one(doc)
        logger.info("Created client %s (%s)", doc["_id"], doc["name"])
        return _client_out(doc)

    async def update_client(self, client_id: int, payload: ClientIn) -> ClientOut:
        # Full replace of the editable fields; created_at is kept
        with _store_errors():
            res = await self.db["clients"].update_one({"_id": client_id}, {"$set": payload.model_dump(mode="json")})
        if res.matched_count == 0:
            raise ConcurrencyConflict("Client", client_id)
        return await self.get_client(client_id)

    async def delete_client(self, client_id: int) -> int:
        """Delete a client and cascade to its tasks; returns the number of tasks removed."""
        with _store_errors():
            res = await self.db["clients"].delete_one({"_id": client_id})
            if res.deleted_count == 0:
                raise ConcurrencyConflict("Client", client_id)
            cascade = await self.db["tasks"].delete_many({"client_id": client_id})
        logger.info("Deleted client %s and %s task(s)", client_id, cascade.deleted_count)
        return cascade.deleted_count

    async def count_tasks_by_client(self) -> dict[int, int]:
        counts: Counter[int] = Counter()
        with _store_errors():
            async for doc in self.db["tasks"].find({}, {"client_id": 1}):
                counts[int(doc["client_id"])] += 1
        return dict(counts)

    # ---------------------- Tasks ----------------------

    async def _clients_by_id(self, client_ids: set[int]) -> dict[int, ClientOut]:
        if not client_ids:
            return {}
        out: dict[int, ClientOut] = {}
        with _store_errors():
            async for doc in self.db["clients"].find({"_id": {"$in": sorted(client_ids)}}):
                out[int(doc["_id"])] = _client_out(doc)
        return out

    async def list_tasks(self, task_filter: Optional[TaskFilter] = None) -> list[TaskOut]:
        """Tasks joined with their client, oldest first."""
        task_filter = task_filter or TaskFilter()
        q: dict = {}
        client_id = task_filter.effective_client_id
        if client_id is not None:
            q["client_id"] = client_id
        start, end = task_filter.date_window()
        if start is not None:
            q["task_date"] = {"$gte": _as_datetime(start)}
        if end is not None:
            q.setdefault("task_date", {})["$lte"] = _as_datetime(end)

        with _store_errors():
            docs = [doc async for doc in self.db["tasks"].find(q, sort=_TASK_SORT)]
        clients = await self._clients_by_id({int(d["client_id"]) for d in docs})
        return [_task_out(d, clients.get(int(d["client_id"]))) for d in docs]

    async def get_task(self, task_id: int) -> TaskOut:
        with _store_errors():
            doc = await self.db["tasks"].find_one({"_id": task_id})
        if not doc:
            raise NotFound("Task", task_id)
        clients = await self._clients_by_id({int(doc["client_id"])})
        return _task_out(doc, clients.get(int(doc["client_id"])))

    async def _require_client(self, client_id: int) -> ClientOut:
        try:
            return await self.get_client(client_id)
        except NotFound as exc:
            raise ValidationFailed({"client_id": f"Client {client_id} does not exist"}) from exc

    async def create_task(self, payload: TaskIn, now: datetime) -> TaskOut:
        client = await self._require_client(payload.client_id)
        doc = {
            "client_id": payload.client_id,
            "task_date": _as_datetime(payload.task_date or now.date()),
            "description": payload.description,
            "task_link": payload.task_link,
            "hours_worked": float(payload.hours_worked),
            "created_at": now,
        }
        with _store_errors():
            doc["_id"] = await self._next_id("tasks")
            await self.db["tasks"].insert_one(doc)
        return _task_out(doc, client)

    async def update_task(self, task_id: int, payload: TaskIn) -> TaskOut:
        await self._require_client(payload.client_id)
        update = {
            "client_id": payload.client_id,
            "description": payload.description,
            "task_link": payload.task_link,
            "hours_worked": float(payload.hours_worked),
        }
        if payload.task_date is not None:
            update["task_date"] = _as_datetime(payload.task_date)
        with _store_errors():
            res = await self.db["tasks"].update_one({"_id": task_id}, {"$set": update})
        if res.matched_count == 0:
            raise ConcurrencyConflict("Task", task_id)
        return await self.get_task(task_id)

    async def delete_task(self, task_id: int) -> None:
        with _store_errors():
            res = await self.db["tasks"].delete_one({"_id": task_id})
        if res.deleted_count == 0:
            raise ConcurrencyConflict("Task", task_id)

    async def available_years(self) -> list[int]:
        years: set[int] = set()
        with _store_errors():
            async for doc in self.db["tasks"].find({}, {"task_date": 1}):
                years.add(_as_date(doc["task_date"]).year)
        return sorted(years, reverse=True)


def get_store(db: AsyncIOMotorDatabase = Depends(get_mongo_db)) -> BillingStore:
    return BillingStore(db)
