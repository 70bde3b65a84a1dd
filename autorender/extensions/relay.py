import asyncio
from typing import Optional

from discord.ext import commands, tasks

from autorender.autorender import Autorender
from autorender.services.queue import SWEEP_INTERVAL
from autorender.services.relay import JobRelay
from autorender.utils.logs import logger
from autorender.worker import EventKind, WorkerEvent


class RelayCog(commands.Cog):
    """Connects to the server and forwards its messages to Discord."""

    def __init__(self, bot: Autorender):
        self.bot = bot
        self.relay = JobRelay(bot, bot.cache, bot.server_config, bot.public_uri)

        self._consumer: Optional[asyncio.Task] = None
        # Keep references so running deliveries are not garbage collected.
        self._deliveries: set[asyncio.Task] = set()

    async def cog_load(self) -> None:
        self.bot.worker.start()
        self._consumer = asyncio.create_task(self.consume(), name="autorender-relay")
        self.sweep.start()

    async def cog_unload(self) -> None:
        self.sweep.cancel()
        if self._consumer:
            self._consumer.cancel()
        await self.bot.worker.stop()

    async def consume(self) -> None:
        while True:
            event: WorkerEvent = await self.bot.worker.events.get()
            match event.kind:
                case EventKind.MESSAGE:
                    task = asyncio.create_task(self.relay.handle(event.data))
                    self._deliveries.add(task)
                    task.add_done_callback(self._on_delivery_done)
                case EventKind.CONNECTED:
                    logger.info("Connected to server")
                case EventKind.DISCONNECTED:
                    logger.warning("Disconnected from server")
                case EventKind.ERROR:
                    logger.error("Connection error", exc_info=event.error)

    def _on_delivery_done(self, task: asyncio.Task) -> None:
        self._deliveries.discard(task)
        if not task.cancelled() and task.exception():
            logger.error("Unhandled error while relaying frame", exc_info=task.exception())

    @tasks.loop(seconds=SWEEP_INTERVAL)
    async def sweep(self):
        logger.info("Deleting outdated interactions (%d)", len(self.bot.cache))
        self.bot.cache.sweep()
        logger.info("Deleted interactions (%d left)", len(self.bot.cache))


async def setup(bot: Autorender):
    await bot.add_cog(RelayCog(bot))
