"""Per-sender rate limiting of inbound messages."""

import logging
import time
from typing import Optional

import redis.asyncio as redis

from backcountry_chat.config import (
    REDIS_URL,
    RATE_LIMIT_MESSAGES_PER_WINDOW,
    RATE_LIMIT_REDIS_KEY_PREFIX,
    RATE_LIMIT_WINDOW_SECONDS
)

logger = logging.getLogger(__name__)


class SenderRateLimiter:
    """Sliding-window limit on messages per sender, kept in a Redis sorted set.

    Every inbound message starts a model conversation, so a single number
    must not be able to run up provider costs. Messages are allowed when
    Redis is unavailable.
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        max_messages: int = RATE_LIMIT_MESSAGES_PER_WINDOW,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS
    ):
        """Initialize rate limiter.

        Args:
            redis_client: Optional Redis client. If None, creates new client.
            max_messages: Messages allowed per sender within the window
            window_seconds: Length of the sliding window
        """
        self.redis_client = redis_client or redis.from_url(REDIS_URL)
        self.max_messages = max_messages
        self.window_seconds = window_seconds
        self.key_prefix = RATE_LIMIT_REDIS_KEY_PREFIX

    def _key(self, sender: str) -> str:
        return f"{self.key_prefix}:{sender}"

    async def is_allowed(self, sender: str) -> tuple[bool, int]:
        """Record a message from sender and check it against the limit.

        Args:
            sender: Sender phone number

        Returns:
            Tuple of (is_allowed, retry_after_seconds)
        """
        key = self._key(sender)
        try:
            current_time = time.time()
            current_timestamp = int(current_time * 1000000)
            window_start = (current_time - self.window_seconds) * 1000000

            pipe = self.redis_client.pipeline()
            pipe.zadd(key, {str(current_timestamp): current_timestamp})
            pipe.zremrangebyscore(key, 0, window_start)
            pipe.zcard(key)
            pipe.expire(key, self.window_seconds)

            _, _, message_count, _ = await pipe.execute()

            if message_count > self.max_messages:
                logger.debug(f"Rate limited {sender}: count={message_count}, max={self.max_messages}")
                return False, self.window_seconds
            logger.debug(f"Not rate limited {sender}: count={message_count}, max={self.max_messages}")
            return True, 0

        except Exception as e:
            # Allow the message if Redis is down
            logger.error(f"Rate limiter error: {e}")
            return True, 0

    async def close(self):
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
