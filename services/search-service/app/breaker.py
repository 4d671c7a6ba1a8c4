import logging
import time

logger = logging.getLogger(__name__)

CLOSED = "CLOSED"
OPEN = "OPEN"
HALF_OPEN = "HALF_OPEN"

# failure counts older than this no longer count towards opening
FAILURE_WINDOW_SECONDS = 60
CLOSED_STATE_TTL_SECONDS = 3600


class CircuitBreakerOpen(Exception):
    pass


class CircuitBreaker:
    """
    Guards one upstream dependency (handyman-service, availability-service).

    State lives in Redis under cb:search:<name>:*, so every search-service
    replica sees the same breaker. After failure_threshold errors the breaker
    opens and calls fail fast with CircuitBreakerOpen. Once
    reset_timeout_seconds have passed a single trial call goes through:
    success closes the breaker, failure opens it again.
    """

    def __init__(
        self,
        redis_client,
        name: str,
        failure_threshold: int = 5,
        reset_timeout_seconds: int = 10,
    ):
        self.redis = redis_client
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout_seconds = reset_timeout_seconds

    def _key(self, field: str) -> str:
        return f"cb:search:{self.name}:{field}"

    async def state(self) -> str:
        return await self.redis.get(self._key("state")) or CLOSED

    async def _seconds_open(self) -> float | None:
        opened_at = await self.redis.get(self._key("opened_at"))
        if not opened_at:
            return None
        return time.time() - float(opened_at)

    async def allow_request(self) -> None:
        if await self.state() != OPEN:
            return

        elapsed = await self._seconds_open()
        if elapsed is None:
            await self.close()
        elif elapsed >= self.reset_timeout_seconds:
            await self.redis.set(self._key("state"), HALF_OPEN)
        else:
            raise CircuitBreakerOpen(f"Circuit breaker OPEN for {self.name}")

    async def record_success(self) -> None:
        await self.close()

    async def record_failure(self) -> None:
        if await self.state() == HALF_OPEN:
            await self.open()
            return

        failures = await self.redis.incr(self._key("failures"))
        if failures == 1:
            await self.redis.expire(self._key("failures"), FAILURE_WINDOW_SECONDS)
        if failures >= self.failure_threshold:
            await self.open()

    async def open(self) -> None:
        logger.warning("circuit breaker for %s opened", self.name)
        ttl = self.reset_timeout_seconds + 30
        pipe = self.redis.pipeline()
        pipe.set(self._key("state"), OPEN)
        pipe.set(self._key("opened_at"), str(time.time()))
        pipe.expire(self._key("state"), ttl)
        pipe.expire(self._key("opened_at"), ttl)
        await pipe.execute()

    async def close(self) -> None:
        pipe = self.redis.pipeline()
        pipe.set(self._key("state"), CLOSED)
        pipe.delete(self._key("failures"), self._key("opened_at"))
        pipe.expire(self._key("state"), CLOSED_STATE_TTL_SECONDS)
        await pipe.execute()

    async def status(self) -> dict:
        failures = await self.redis.get(self._key("failures"))
        return {
            "name": self.name,
            "state": await self.state(),
            "failures": int(failures or 0),
        }
