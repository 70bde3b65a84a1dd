"""
Discord bot that sends demos to the autorender server via ``/render`` and
posts the video once the server reports it as uploaded.
"""

import asyncio

from autorender.autorender import Autorender, load_codec
from autorender.utils.logs import logger
from config import cfg


async def run() -> None:
    bot = Autorender(
        command_prefix=cfg.discord.default_prefix,
        owner_ids=cfg.discord.owner_ids or None,
        connect_uri=cfg.autorender.connect_uri,
        protocol=cfg.autorender.protocol,
        bot_token=cfg.autorender.bot_token,
        base_api=cfg.autorender.base_api,
        public_uri=cfg.autorender.public_uri,
        redis_url=f"redis://:{cfg.redis.password}@{cfg.redis.host}:{cfg.redis.port}/",
        retry_delay=cfg.autorender.retry_delay,
        demo_codec=load_codec(cfg.autorender.demo_codec),
    )

    logger.info("Starting bot")
    async with bot:
        await bot.start(cfg.discord.token)


def main() -> None:
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Bot received interrupt, shutting down...")


if __name__ == "__main__":
    main()
