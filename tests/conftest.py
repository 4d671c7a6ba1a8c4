"""
Shared fixtures for search-service tests.

No database, Redis or network is needed: collaborators are replaced with
AsyncMock objects, httpx.MockTransport or the small in-memory Redis below.
"""

import pytest


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.ops = []

    def set(self, key, value, ex=None):
        self.ops.append(("set", key, value))
        return self

    def delete(self, *keys):
        self.ops.append(("delete", keys))
        return self

    def expire(self, key, seconds):
        self.ops.append(("expire", key, seconds))
        return self

    async def execute(self):
        results = []
        for op in self.ops:
            if op[0] == "set":
                results.append(await self.redis.set(op[1], op[2]))
            elif op[0] == "delete":
                results.append(await self.redis.delete(*op[1]))
            else:
                results.append(await self.redis.expire(op[1], op[2]))
        self.ops = []
        return results


class FakeRedis:
    """In-memory stand-in for the few redis.asyncio calls the breaker makes."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = str(value)
        return True

    async def incr(self, key):
        value = int(self.data.get(key, 0)) + 1
        self.data[key] = str(value)
        return value

    async def expire(self, key, seconds):
        self.ttls[key] = seconds
        return key in self.data

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    def pipeline(self):
        return FakePipeline(self)


@pytest.fixture
def fake_redis():
    return FakeRedis()
