"""
Single-use enforcement for action tokens, backed by Redis.

Key pattern: "action_token:{sha256(token)}", stored with SET NX and a TTL equal
to the freshness window. Once the key expires the token is stale anyway.
"""
import hashlib

from redis.asyncio import Redis


class ActionTokenReplayGuard:
    """Remembers accepted action tokens for the length of their freshness window."""

    key_prefix = "action_token"

    def __init__(self, redis: Redis, ttl_seconds: int):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    def _key(self, token: str) -> str:
        digest = hashlib.sha256(token.encode("utf-8")).hexdigest()
        return f"{self.key_prefix}:{digest}"

    async def claim(self, token: str) -> bool:
        """
        Record a token as used.

        Returns:
            True the first time a token is seen, False on replay
        """
        created = await self.redis.set(self._key(token), "1", nx=True, ex=self.ttl_seconds)
        return bool(created)
