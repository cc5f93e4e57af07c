"""
Call Record Store.

Owns the current session's call records. ``add``, ``update``, ``delete``
and ``reset`` are the only ways records change; ``stats`` is always
recomputed from the list at read time.

Two backends share the same contract:

- ``InMemoryCallStore``: a plain list, newest first. The default.
- ``RedisCallStore``: one hash per record plus a sorted set that keeps
  insertion order, so the session survives a restart.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional

import redis.asyncio as aioredis
from pydantic import ValidationError
from redis.asyncio.client import Pipeline

from call_tracker.config import StoreBackend, get_settings
from call_tracker.logging_config import get_logger
from call_tracker.schemas.call import CallRecord, SessionStats
from call_tracker.schemas.outcome import CallOutcome, describe
from call_tracker.services.stats import compute_stats

logger = get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _stored_notes(notes: Optional[str]) -> Optional[str]:
    """Blank notes are omitted; anything else is kept exactly as given."""
    if notes is None or not notes.strip():
        return None
    return notes


class CallStore(ABC):
    """Contract shared by every session backend."""

    async def initialize(self) -> None:
        """Open any connections the backend needs."""

    async def close(self) -> None:
        """Release backend connections."""

    @abstractmethod
    async def add(self, outcome: CallOutcome, notes: Optional[str] = None) -> CallRecord:
        ...

    @abstractmethod
    async def update(
        self, call_id: str, outcome: CallOutcome, notes: Optional[str] = None
    ) -> CallRecord | None:
        ...

    @abstractmethod
    async def delete(self, call_id: str) -> bool:
        ...

    @abstractmethod
    async def reset(self) -> int:
        ...

    @abstractmethod
    async def list_calls(self) -> list[CallRecord]:
        ...

    @abstractmethod
    async def get(self, call_id: str) -> CallRecord | None:
        ...

    async def stats(self) -> SessionStats:
        """Snapshot of the session statistics for the current record list."""
        return compute_stats(await self.list_calls())


class InMemoryCallStore(CallStore):
    """
    Session kept in process memory.

    None of the methods await, so on a single event loop each operation
    runs to completion before the next one starts.
    """

    def __init__(self) -> None:
        self._calls: list[CallRecord] = []

    def _new_id(self) -> str:
        existing = {c.id for c in self._calls}
        call_id = str(uuid.uuid4())
        while call_id in existing:
            call_id = str(uuid.uuid4())
        return call_id

    def _index(self, call_id: str) -> int | None:
        for i, call in enumerate(self._calls):
            if call.id == call_id:
                return i
        return None

    async def add(self, outcome: CallOutcome, notes: Optional[str] = None) -> CallRecord:
        record = CallRecord(
            id=self._new_id(),
            outcome=outcome,
            notes=_stored_notes(notes),
            timestamp=_now(),
        )
        self._calls.insert(0, record)
        logger.info("call_logged", record_id=record.id, outcome=record.outcome.value)
        return record

    async def update(
        self, call_id: str, outcome: CallOutcome, notes: Optional[str] = None
    ) -> CallRecord | None:
        idx = self._index(call_id)
        if idx is None:
            logger.info("call_update_no_match", record_id=call_id)
            return None

        updated = self._calls[idx].model_copy(
            update={"outcome": CallOutcome(outcome), "notes": _stored_notes(notes)}
        )
        self._calls[idx] = updated
        logger.info("call_updated", record_id=call_id, outcome=updated.outcome.value)
        return updated

    async def delete(self, call_id: str) -> bool:
        idx = self._index(call_id)
        if idx is None:
            logger.info("call_delete_no_match", record_id=call_id)
            return False
        del self._calls[idx]
        logger.info("call_deleted", record_id=call_id)
        return True

    async def reset(self) -> int:
        cleared = len(self._calls)
        self._calls = []
        logger.info("session_reset", cleared=cleared)
        return cleared

    async def list_calls(self) -> list[CallRecord]:
        return list(self._calls)

    async def get(self, call_id: str) -> CallRecord | None:
        idx = self._index(call_id)
        return self._calls[idx] if idx is not None else None


# Redis key templates, formatted with (prefix, session)
CALL_KEY = "{}:{}:call:{}"      # Hash per record
ORDER_KEY = "{}:{}:calls"       # Sorted set of record ids, score = insertion sequence
SEQ_KEY = "{}:{}:seq"           # Insertion counter


class RedisCallStore(CallStore):
    """
    Session kept in Redis.

    Multi-key writes go through a MULTI/EXEC pipeline so a reset or a
    delete is never observed half-applied. ``update`` and ``reset`` read
    before they write, so they WATCH the keys they read and retry when a
    concurrent write lands in between.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        prefix: str | None = None,
        session: str | None = None,
        client: aioredis.Redis | None = None,
    ) -> None:
        settings = get_settings()
        self._redis_url = redis_url or settings.redis_url
        self._prefix = prefix or settings.redis_key_prefix
        self._session = session or settings.session_name
        self._redis: Optional[aioredis.Redis] = client

    async def initialize(self) -> None:
        """Connect to Redis."""
        if self._redis is None:
            self._redis = aioredis.from_url(self._redis_url, decode_responses=True)
        logger.info("redis_call_store_initialized", prefix=self._prefix, session=self._session)

    async def close(self) -> None:
        """Cleanup connections."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    @property
    def redis(self) -> aioredis.Redis:
        if not self._redis:
            raise RuntimeError("RedisCallStore not initialized. Call initialize() first.")
        return self._redis

    # -- Keys --

    def _call_key(self, call_id: str) -> str:
        return CALL_KEY.format(self._prefix, self._session, call_id)

    @property
    def _order_key(self) -> str:
        return ORDER_KEY.format(self._prefix, self._session)

    @property
    def _seq_key(self) -> str:
        return SEQ_KEY.format(self._prefix, self._session)

    # -- Operations --

    async def add(self, outcome: CallOutcome, notes: Optional[str] = None) -> CallRecord:
        call_id = str(uuid.uuid4())
        while await self.redis.exists(self._call_key(call_id)):
            call_id = str(uuid.uuid4())

        record = CallRecord(
            id=call_id,
            outcome=outcome,
            notes=_stored_notes(notes),
            timestamp=_now(),
        )
        seq = await self.redis.incr(self._seq_key)

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.hset(self._call_key(call_id), mapping=self._to_hash(record))
            pipe.zadd(self._order_key, {call_id: seq})
            await pipe.execute()

        logger.info("call_logged", record_id=call_id, outcome=record.outcome.value)
        return record

    async def update(
        self, call_id: str, outcome: CallOutcome, notes: Optional[str] = None
    ) -> CallRecord | None:
        key = self._call_key(call_id)

        async def _apply(pipe: Pipeline) -> CallRecord | None:
            current = self._from_hash(await pipe.hgetall(key))
            if current is None:
                return None
            updated = current.model_copy(
                update={"outcome": CallOutcome(outcome), "notes": _stored_notes(notes)}
            )
            pipe.multi()
            pipe.hset(key, mapping=self._to_hash(updated))
            if updated.notes is None:
                pipe.hdel(key, "notes")
            return updated

        # WATCH on the hash: a delete landing mid-update retries instead of
        # recreating a partial record
        updated = await self.redis.transaction(_apply, key, value_from_callable=True)
        if updated is None:
            logger.info("call_update_no_match", record_id=call_id)
            return None

        logger.info("call_updated", record_id=call_id, outcome=updated.outcome.value)
        return updated

    async def delete(self, call_id: str) -> bool:
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.zrem(self._order_key, call_id)
            pipe.delete(self._call_key(call_id))
            removed, _ = await pipe.execute()

        if not removed:
            logger.info("call_delete_no_match", record_id=call_id)
            return False
        logger.info("call_deleted", record_id=call_id)
        return True

    async def reset(self) -> int:
        async def _clear(pipe: Pipeline) -> int:
            call_ids = await pipe.zrange(self._order_key, 0, -1)
            keys = [self._call_key(cid) for cid in call_ids]
            pipe.multi()
            pipe.delete(*keys, self._order_key, self._seq_key)
            return len(call_ids)

        # An add between reading the ids and EXEC touches the sorted set and retries
        cleared = await self.redis.transaction(_clear, self._order_key, value_from_callable=True)
        logger.info("session_reset", cleared=cleared)
        return cleared

    async def list_calls(self) -> list[CallRecord]:
        call_ids = await self.redis.zrevrange(self._order_key, 0, -1)
        if not call_ids:
            return []

        async with self.redis.pipeline(transaction=False) as pipe:
            for cid in call_ids:
                pipe.hgetall(self._call_key(cid))
            rows = await pipe.execute()

        records = []
        for row in rows:
            record = self._from_hash(row)
            if record is not None:
                records.append(record)
        return records

    async def get(self, call_id: str) -> CallRecord | None:
        return self._from_hash(await self.redis.hgetall(self._call_key(call_id)))

    # -- Serialization --

    @staticmethod
    def _to_hash(record: CallRecord) -> dict[str, str]:
        data = {
            "id": record.id,
            "outcome": record.outcome.value,
            "timestamp": record.timestamp.isoformat(),
        }
        if record.notes is not None:
            data["notes"] = record.notes
        return data

    @staticmethod
    def _from_hash(row: dict[str, Any]) -> CallRecord | None:
        if not row:
            return None

        # Codes written by an older catalog read back as the default outcome
        outcome = describe(row.get("outcome", "")).code
        if outcome.value != row.get("outcome"):
            logger.warning("call_outcome_unknown", record_id=row.get("id"), outcome=row.get("outcome"))

        try:
            return CallRecord(
                id=row["id"],
                outcome=outcome,
                notes=row.get("notes") or None,
                timestamp=datetime.fromisoformat(row["timestamp"]),
            )
        except (KeyError, ValueError, ValidationError) as e:
            logger.warning("call_record_unreadable", record_id=row.get("id"), error=str(e))
            return None


# Process-wide store, created on first use
_store: CallStore | None = None


def create_store() -> CallStore:
    """Build the store selected by ``settings.store_backend``."""
    settings = get_settings()
    if settings.store_backend == StoreBackend.REDIS:
        return RedisCallStore()
    return InMemoryCallStore()


def get_store() -> CallStore:
    global _store
    if _store is None:
        _store = create_store()
    return _store
