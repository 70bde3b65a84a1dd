import datetime
import importlib
from typing import Optional

import discord
import redis.asyncio
from discord.ext import commands

from autorender.demo.models import DemoCodec
from autorender.services.presets import Presets
from autorender.services.queue import InteractionCache
from autorender.services.server import ServerConfig
from autorender.utils.http import close_http_session
from autorender.utils.logs import logger
from autorender.worker import ServerWorker

EXTENSIONS = (
    "autorender.extensions.core",
    "autorender.extensions.relay",
    "autorender.extensions.render",
    "autorender.extensions.preset",
    "autorender.extensions.fixup",
    "autorender.extensions.watch",
    "autorender.extensions.vid",
)


def load_codec(path: Optional[str]) -> Optional[DemoCodec]:
    """Instantiate a demo codec from a "module:attribute" path."""
    if not path:
        return None
    module_name, _, attribute = path.partition(":")
    codec = getattr(importlib.import_module(module_name), attribute or "codec")
    if isinstance(codec, type):
        codec = codec()
    if not isinstance(codec, DemoCodec):
        raise TypeError(f"{path} is not a demo codec")
    return codec


class Autorender(commands.Bot):
    def __init__(
        self,
        *,
        connect_uri: str,
        protocol: str,
        bot_token: str,
        base_api: str,
        public_uri: str,
        redis_url: str,
        retry_delay: float,
        demo_codec: Optional[DemoCodec] = None,
        **kwargs,
    ):
        intents = discord.Intents.default()
        intents.message_content = True  # owner text commands
        super().__init__(intents=intents, **kwargs)

        self.base_api = base_api.rstrip("/")
        self.public_uri = public_uri
        self.bot_token = bot_token

        self.cache = InteractionCache()
        self.server_config = ServerConfig()
        self.worker = ServerWorker(connect_uri, protocol, bot_token, retry_delay)
        self.redis: redis.asyncio.Redis = redis.asyncio.from_url(redis_url)
        self.presets = Presets(self.redis)
        self.demo_codec = demo_codec

        self.online_since: Optional[datetime.datetime] = None

    async def setup_hook(self) -> None:
        for extension in EXTENSIONS:
            await self.load_extension(extension)
        synced = await self.tree.sync()
        logger.info("Synced %d application commands", len(synced))

    async def on_ready(self):
        if self.online_since is None:
            self.online_since = datetime.datetime.now(datetime.timezone.utc)

    async def close(self) -> None:
        await self.worker.stop()
        await self.redis.aclose()
        await close_http_session()
        await super().close()
