from dataclasses import dataclass
from typing import Optional

import redis.asyncio

MAX_PRESETS_PER_USER = 25  # Discord autocomplete limit
MAX_NAME_LENGTH = 32
MAX_OPTIONS_LENGTH = 1024


@dataclass(frozen=True)
class RenderPreset:
    user_id: int
    name: str
    options: str


class Presets:
    """Named render options saved per user, one redis hash per user."""

    def __init__(self, client: redis.asyncio.Redis):
        self._redis = client

    @staticmethod
    def key(user_id: int) -> str:
        return f"presets:{user_id}"

    @staticmethod
    def _decode(value) -> str:
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def find(self, user_id: int, name: str) -> Optional[RenderPreset]:
        options = await self._redis.hget(self.key(user_id), name)
        if options is None:
            return None
        return RenderPreset(user_id, name, self._decode(options))

    async def update(self, preset: RenderPreset) -> bool:
        """Create or replace a preset. Returns False if the user has too many presets."""
        key = self.key(preset.user_id)
        if not await self._redis.hexists(key, preset.name):
            if await self._redis.hlen(key) >= MAX_PRESETS_PER_USER:
                return False
        await self._redis.hset(key, preset.name, preset.options)
        return True

    async def delete(self, user_id: int, name: str) -> bool:
        return bool(await self._redis.hdel(self.key(user_id), name))

    async def list(self, user_id: int) -> list[RenderPreset]:
        items = await self._redis.hgetall(self.key(user_id))
        presets = [
            RenderPreset(user_id, self._decode(name), self._decode(options))
            for name, options in items.items()
        ]
        return sorted(presets, key=lambda preset: preset.name)
