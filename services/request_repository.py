"""
Request repository

Keyed storage for the two request kinds. Each kind is its own collection
and its own repository instance; the operations are identical:
create, get_by_id, get_by_owner, get_all, update, delete.

The repository does not validate payloads; callers hand it data that
already passed the pydantic models.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from models.request_common import RequestStatus, RequestKind
from services.errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)

# Fields fixed at creation; an update never touches them
IMMUTABLE_FIELDS = frozenset({"_id", "id", "user_id", "submission_time"})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_record(doc: Dict[str, Any]) -> Dict[str, Any]:
    record = dict(doc)
    record["id"] = str(record.pop("_id"))
    return record


class RequestRepository:
    kind: RequestKind = RequestKind.SIMPLE
    collection_name: str = "simple_requests"
    label: str = "Request"

    def __init__(self, db: AsyncIOMotorDatabase, clock: Callable[[], datetime] = utcnow):
        self.collection = db[self.collection_name]
        self.clock = clock

    def _new_document(self, owner_id: str, payload: Dict[str, Any], now: datetime) -> Dict[str, Any]:
        doc = {"comments": ""}
        doc.update({k: v for k, v in payload.items() if k not in IMMUTABLE_FIELDS})
        doc.update({
            "_id": str(uuid.uuid4()),
            "user_id": owner_id,
            "submission_time": now,
            "status": RequestStatus.SUBMITTED.value,
        })
        return doc

    async def create(self, owner_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Store a new record in status 'submitted' and return it"""
        doc = self._new_document(owner_id, payload, self.clock())
        try:
            await self.collection.insert_one(doc)
        except PyMongoError as e:
            logger.error(f"Failed to create {self.kind.value} request for {owner_id}: {e}")
            raise StorageError("create", e)

        logger.info(f"{self.label} created: {doc['_id']} (owner {owner_id})")
        return _to_record(doc)

    async def get_by_id(self, record_id: str) -> Dict[str, Any]:
        try:
            doc = await self.collection.find_one({"_id": record_id})
        except PyMongoError as e:
            logger.error(f"Failed to read {self.kind.value} request {record_id}: {e}")
            raise StorageError("get_by_id", e)
        if doc is None:
            raise NotFoundError(self.label, record_id)
        return _to_record(doc)

    async def _find_sorted(self, query: Dict[str, Any], operation: str) -> List[Dict[str, Any]]:
        # Newest first; dashboards depend on this order
        records = []
        try:
            cursor = self.collection.find(query).sort("submission_time", -1)
            async for doc in cursor:
                records.append(_to_record(doc))
        except PyMongoError as e:
            logger.error(f"Failed to list {self.kind.value} requests: {e}")
            raise StorageError(operation, e)
        return records

    async def get_by_owner(self, owner_id: str) -> List[Dict[str, Any]]:
        return await self._find_sorted({"user_id": owner_id}, "get_by_owner")

    async def get_all(self) -> List[Dict[str, Any]]:
        return await self._find_sorted({}, "get_all")

    async def update(self, record_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Shallow merge: every top-level key given replaces the stored value
        (nested objects included, no deep merge); absent keys are kept.
        Last write wins.
        """
        changes = {k: v for k, v in fields.items() if k not in IMMUTABLE_FIELDS}
        if not changes:
            return await self.get_by_id(record_id)

        try:
            doc = await self.collection.find_one_and_update(
                {"_id": record_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(f"Failed to update {self.kind.value} request {record_id}: {e}")
            raise StorageError("update", e)

        if doc is None:
            raise NotFoundError(self.label, record_id)
        return _to_record(doc)

    async def delete(self, record_id: str) -> bool:
        """Remove a record; deleting a missing id is not an error"""
        try:
            result = await self.collection.delete_one({"_id": record_id})
        except PyMongoError as e:
            logger.error(f"Failed to delete {self.kind.value} request {record_id}: {e}")
            raise StorageError("delete", e)

        if result.deleted_count:
            logger.info(f"{self.label} deleted: {record_id}")
        return True


class SimpleRequestRepository(RequestRepository):
    kind = RequestKind.SIMPLE
    collection_name = "simple_requests"
    label = "Request"


class ServiceRequestRepository(RequestRepository):
    kind = RequestKind.SERVICE
    collection_name = "service_requests"
    label = "Service request"

    def _new_document(self, owner_id: str, payload: Dict[str, Any], now: datetime) -> Dict[str, Any]:
        doc = super()._new_document(owner_id, payload, now)
        if not doc.get("service_request_no"):
            doc["service_request_no"] = f"SR-{int(now.timestamp() * 1000)}"
        return doc
