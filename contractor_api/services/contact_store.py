"""
Two-tier storage for contact submissions.

The primary tier is the MongoDB ``contacts`` collection; the fallback tier is
an in-process list used whenever MongoDB is not connected or an operation
against it fails. Degradation never raises to the caller: it is reported as
the tier in the returned outcome and logged at warning level.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from bson import ObjectId
from pydantic import ValidationError
from pymongo import DESCENDING, ReturnDocument

from contractor_api.core.request_context import RequestContext, context_logger
from contractor_api.models.contact import ContactStatus, ContactSubmission, StoredContact


class StorageTier(str, Enum):
    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Stored:
    tier: StorageTier
    record: StoredContact


@dataclass(frozen=True)
class StoreFailure:
    reason: str


SaveOutcome = Union[Stored, StoreFailure]


@dataclass(frozen=True)
class ListOutcome:
    tier: StorageTier
    records: List[StoredContact]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _newest_first(records: List[StoredContact]) -> List[StoredContact]:
    return sorted(records, key=lambda record: record.submittedAt, reverse=True)


def document_to_contact(document: dict) -> StoredContact:
    data = {k: v for k, v in document.items() if k != "_id"}
    data["id"] = str(document["_id"])
    data["submittedAt"] = _as_utc(document["submittedAt"])
    return StoredContact(**data)


class FallbackContactList:
    """
    In-process, non-durable contact list.

    All reads and writes go through one lock. Ids are wall-clock milliseconds,
    bumped past the previous id when two writes land in the same millisecond,
    and ``submittedAt`` never goes backwards in insertion order.
    """

    def __init__(self, clock=time.time):
        self._clock = clock
        self._records: List[StoredContact] = []
        self._lock = asyncio.Lock()
        self._last_id = 0

    async def append(self, submission: ContactSubmission) -> StoredContact:
        async with self._lock:
            candidate = int(self._clock() * 1000)
            self._last_id = candidate if candidate > self._last_id else self._last_id + 1

            submitted_at = utcnow()
            if self._records and submitted_at < self._records[-1].submittedAt:
                submitted_at = self._records[-1].submittedAt

            record = StoredContact(
                id=str(self._last_id),
                submittedAt=submitted_at,
                status=ContactStatus.NEW,
                **submission.model_dump(),
            )
            self._records.append(record)
            return record

    async def newest_first(self) -> List[StoredContact]:
        async with self._lock:
            return _newest_first(list(self._records))

    async def update_status(self, contact_id: str, status: ContactStatus) -> Optional[StoredContact]:
        async with self._lock:
            for position, record in enumerate(self._records):
                if record.id == contact_id:
                    updated = record.model_copy(update={"status": status})
                    self._records[position] = updated
                    return updated
        return None

    def __len__(self):
        return len(self._records)


class ContactStore:
    """
    Persistence for contact submissions with transparent fallback.

    Args:
        connection: primary store handle exposing ``is_connected`` and
            ``get_collection()``
        fallback: in-process tier used whenever the primary is unusable
        operation_timeout: upper bound in seconds for each primary operation
    """

    def __init__(self, connection, fallback: Optional[FallbackContactList] = None, operation_timeout: float = 5.0):
        self.connection = connection
        self.fallback = fallback if fallback is not None else FallbackContactList()
        self.operation_timeout = operation_timeout

    @property
    def primary_available(self) -> bool:
        return self.connection is not None and self.connection.is_connected

    async def _bounded(self, operation):
        return await asyncio.wait_for(operation, timeout=self.operation_timeout)

    async def save(self, submission: ContactSubmission, context: Optional[RequestContext] = None) -> SaveOutcome:
        log = context_logger(context, __name__)

        if self.primary_available:
            try:
                record = await self._save_primary(submission)
                log.info(f"✅ Contact saved to MongoDB: {record.id}")
                return Stored(StorageTier.PRIMARY, record)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.warning(f"⚠️ MongoDB save failed, using fallback storage: {type(e).__name__}: {str(e)}")
        else:
            log.warning(f"⚠️ MongoDB not connected ({self._state_label()}), using fallback storage")

        try:
            record = await self.fallback.append(submission)
        except Exception as e:
            log.error(f"❌ Fallback storage failed: {str(e)}", exc_info=True)
            return StoreFailure(f"fallback append failed: {str(e)}")

        log.info(f"✅ Contact saved to fallback storage: {record.id}")
        return Stored(StorageTier.FALLBACK, record)

    async def _save_primary(self, submission: ContactSubmission) -> StoredContact:
        document = submission.model_dump()
        document["submittedAt"] = utcnow()
        document["status"] = ContactStatus.NEW.value

        collection = self.connection.get_collection()
        result = await self._bounded(collection.insert_one(document))
        document["_id"] = result.inserted_id
        return document_to_contact(document)

    async def list(self, context: Optional[RequestContext] = None) -> ListOutcome:
        log = context_logger(context, __name__)

        if self.primary_available:
            try:
                records = await self._list_primary(log)
                log.info(f"✅ Fetched {len(records)} contacts from MongoDB")
                return ListOutcome(StorageTier.PRIMARY, records)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.warning(f"⚠️ MongoDB fetch failed, using fallback storage: {type(e).__name__}: {str(e)}")
        else:
            log.warning(f"📝 MongoDB not connected ({self._state_label()}), using fallback storage for contacts")

        return ListOutcome(StorageTier.FALLBACK, await self.fallback.newest_first())

    async def _list_primary(self, log) -> List[StoredContact]:
        collection = self.connection.get_collection()
        cursor = collection.find().sort("submittedAt", DESCENDING)
        documents = await self._bounded(cursor.to_list(length=None))

        records = []
        for document in documents:
            try:
                records.append(document_to_contact(document))
            except (AttributeError, KeyError, TypeError, ValidationError) as e:
                log.warning(f"⚠️ Skipping malformed contact document {document.get('_id')}: {type(e).__name__}: {str(e)}")
        return records

    async def update_status(
        self,
        contact_id: str,
        status: ContactStatus,
        context: Optional[RequestContext] = None,
    ) -> Optional[StoredContact]:
        """
        Set the status of a stored contact in whichever tier holds it.

        Returns:
            StoredContact: the updated record, or None if no tier has it
        """
        log = context_logger(context, __name__)

        if self.primary_available and ObjectId.is_valid(contact_id):
            try:
                collection = self.connection.get_collection()
                document = await self._bounded(collection.find_one_and_update(
                    {"_id": ObjectId(contact_id)},
                    {"$set": {"status": status.value}},
                    return_document=ReturnDocument.AFTER,
                ))
                if document is not None:
                    log.info(f"✅ Contact {contact_id} status set to '{status.value}' in MongoDB")
                    return document_to_contact(document)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.warning(f"⚠️ MongoDB status update failed, checking fallback storage: {type(e).__name__}: {str(e)}")

        record = await self.fallback.update_status(contact_id, status)
        if record is not None:
            log.info(f"✅ Contact {contact_id} status set to '{status.value}' in fallback storage")
        return record

    def _state_label(self) -> str:
        if self.connection is None:
            return "no connection"
        return self.connection.state.value
