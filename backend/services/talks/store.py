import time

import redis

from shared.utils import config, get_logger

logger = get_logger("talk-key-store")


def cache_key(talk_id: int) -> str:
    """Freshness marker for a talk row; expires after the cache TTL."""
    return f"cache:{talk_id}"


def slug_key(slug: str) -> str:
    """Slug to talk id mapping; never expires."""
    return f"slug:{slug}"


class TalkKeyStore:
    """Redis-backed lookups that sit in front of the talks table."""

    def __init__(
        self,
        redis_url: str | None = None,
        ttl: int | None = None,
        retry_cooldown: float | None = None,
    ) -> None:
        self.redis_url = redis_url or config.get("redis_url")
        self.ttl = ttl or config.get("talk_cache_ttl", 3600 * 24)
        self.redis = redis.Redis.from_url(self.redis_url, decode_responses=True)  # type: ignore[misc]
        if retry_cooldown is None:
            retry_cooldown = config.get("redis_retry_cooldown", 30.0)
        self.retry_cooldown = retry_cooldown
        self._connection_checked = False
        self._unavailable_until = 0.0
        logger.info(f"TalkKeyStore initialized with Redis URL: {self.redis_url}")

    def _ensure_connection(self) -> None:
        """Lazy connection check with retry logic."""
        if self._connection_checked:
            return
        if time.monotonic() < self._unavailable_until:
            raise ConnectionError(f"Redis at {self.redis_url} is unavailable, not retrying yet")

        max_retries = 3
        retry_delay = 1.0

        for attempt in range(max_retries):
            try:
                self.redis.ping()
                self._connection_checked = True
                logger.info(f"Successfully connected to Redis at {self.redis_url}")
                return
            except redis.RedisError as e:
                if attempt == max_retries - 1:
                    logger.error(f"Failed to connect to Redis at {self.redis_url} after {max_retries} attempts: {e}")
                    self._mark_unavailable()
                    raise ConnectionError(f"Redis connection failed: {e}") from e
                else:
                    logger.warning(f"Redis connection attempt {attempt + 1} failed, retrying in {retry_delay}s: {e}")
                    time.sleep(retry_delay)
                    retry_delay *= 2

    def _mark_unavailable(self) -> None:
        """Skip connection attempts until the retry cool-down has passed."""
        self._connection_checked = False
        self._unavailable_until = time.monotonic() + self.retry_cooldown

    def is_fresh(self, talk_id: int) -> bool:
        """Whether the talk row was refreshed within the cache TTL."""
        try:
            self._ensure_connection()
            return self.redis.get(cache_key(talk_id)) is not None
        except ConnectionError as e:
            logger.warning(f"Freshness lookup for talk {talk_id} skipped, treating as stale: {e}")
            return False
        except redis.RedisError as e:
            logger.warning(f"Freshness lookup for talk {talk_id} failed, treating as stale: {e}")
            self._mark_unavailable()
            return False

    def talk_id_for_slug(self, slug: str) -> int | None:
        """Return the talk id remembered for ``slug``, if any."""
        try:
            self._ensure_connection()
            value = self.redis.get(slug_key(slug))
        except ConnectionError as e:
            logger.warning(f"Slug lookup for '{slug}' skipped: {e}")
            return None
        except redis.RedisError as e:
            logger.warning(f"Slug lookup for '{slug}' failed: {e}")
            self._mark_unavailable()
            return None
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return int(value)

    def remember(self, talk_id: int, slug: str) -> None:
        """Mark the talk fresh and map its slug, atomically."""
        try:
            self._ensure_connection()
            pipe = self.redis.pipeline(transaction=True)
            pipe.setex(cache_key(talk_id), self.ttl, "")
            pipe.set(slug_key(slug), str(talk_id))
            pipe.execute()
            logger.debug(f"Remembered talk {talk_id} as '{slug}'")
        except redis.RedisError as e:
            logger.error(f"Failed to store keys for talk {talk_id}: {e}")
            self._mark_unavailable()
            raise ConnectionError(f"Redis write failed: {e}") from e
