import os

# Settings are cached on first import; keep the limiter out of the way of the suite
os.environ.setdefault("RATE_LIMIT_MAX", "100000")
os.environ.setdefault("STORE_BACKEND", "memory")

from typing import Any

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from redis.exceptions import WatchError

from call_tracker.api_server import app
from call_tracker.services.call_store import InMemoryCallStore, get_store


class FakePipeline:
    """
    Queues commands and replays them against FakeRedis on execute().

    After ``watch()`` commands run immediately until ``multi()``; execute()
    then raises WatchError if any watched key was written in the meantime.
    """

    def __init__(self, redis: "FakeRedis") -> None:
        self._redis = redis
        self._ops: list[tuple[str, tuple, dict]] = []
        self._immediate = False
        self._watched: dict[str, int] = {}

    async def watch(self, *keys: str) -> None:
        self._immediate = True
        self._watched = {k: self._redis.versions.get(k, 0) for k in keys}

    def multi(self) -> None:
        self._immediate = False

    def __getattr__(self, name: str):
        if self._immediate:
            return getattr(self._redis, name)

        def queue(*args: Any, **kwargs: Any) -> "FakePipeline":
            self._ops.append((name, args, kwargs))
            return self
        return queue

    async def execute(self) -> list[Any]:
        watched, self._watched = self._watched, {}
        self._immediate = False
        if any(self._redis.versions.get(k, 0) != v for k, v in watched.items()):
            self._ops = []
            raise WatchError("Watched variable changed.")

        results = []
        for name, args, kwargs in self._ops:
            results.append(await getattr(self._redis, name)(*args, **kwargs))
        self._ops = []
        return results

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._ops = []


class FakeRedis:
    """In-process stand-in for the redis.asyncio commands the call store uses."""

    def __init__(self) -> None:
        self.hashes: dict[str, dict[str, str]] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.counters: dict[str, int] = {}
        self.versions: dict[str, int] = {}
        self.closed = False

    def _touch(self, key: str) -> None:
        self.versions[key] = self.versions.get(key, 0) + 1

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    async def transaction(self, func, *watches: str, value_from_callable: bool = False) -> Any:
        while True:
            async with self.pipeline() as pipe:
                try:
                    await pipe.watch(*watches)
                    func_value = await func(pipe)
                    exec_value = await pipe.execute()
                    return func_value if value_from_callable else exec_value
                except WatchError:
                    continue

    async def exists(self, key: str) -> int:
        return int(key in self.hashes or key in self.zsets or key in self.counters)

    async def incr(self, key: str) -> int:
        self._touch(key)
        self.counters[key] = self.counters.get(key, 0) + 1
        return self.counters[key]

    async def hset(self, key: str, mapping: dict[str, str]) -> int:
        self._touch(key)
        h = self.hashes.setdefault(key, {})
        added = len(set(mapping) - set(h))
        h.update({k: str(v) for k, v in mapping.items()})
        return added

    async def hdel(self, key: str, *fields: str) -> int:
        self._touch(key)
        h = self.hashes.get(key, {})
        return sum(1 for f in fields if h.pop(f, None) is not None)

    async def hgetall(self, key: str) -> dict[str, str]:
        return dict(self.hashes.get(key, {}))

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            self._touch(key)
            for space in (self.hashes, self.zsets, self.counters):
                if space.pop(key, None) is not None:
                    removed += 1
        return removed

    async def zadd(self, key: str, mapping: dict[str, float]) -> int:
        self._touch(key)
        z = self.zsets.setdefault(key, {})
        added = len(set(mapping) - set(z))
        z.update(mapping)
        return added

    async def zrem(self, key: str, *members: str) -> int:
        self._touch(key)
        z = self.zsets.get(key, {})
        return sum(1 for m in members if z.pop(m, None) is not None)

    async def zrange(self, key: str, start: int, end: int) -> list[str]:
        members = sorted(self.zsets.get(key, {}).items(), key=lambda kv: kv[1])
        ordered = [m for m, _ in members]
        return ordered[start:] if end == -1 else ordered[start:end + 1]

    async def zrevrange(self, key: str, start: int, end: int) -> list[str]:
        members = sorted(self.zsets.get(key, {}).items(), key=lambda kv: kv[1], reverse=True)
        ordered = [m for m, _ in members]
        return ordered[start:] if end == -1 else ordered[start:end + 1]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def store() -> InMemoryCallStore:
    """Fresh in-memory session for each test."""
    return InMemoryCallStore()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest_asyncio.fixture
async def client(store: InMemoryCallStore):
    """Test client bound to the ``store`` fixture."""
    app.dependency_overrides[get_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
