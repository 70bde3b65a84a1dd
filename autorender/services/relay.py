import json
import logging
from typing import Optional, Union

import discord

from autorender import protocol
from autorender.protocol import ConfigFrame, ErrorFrame, TerminalFrame, UploadFrame
from autorender.services.queue import InteractionCache
from autorender.services.server import ServerConfig
from autorender.utils import functions
from autorender.utils.errors import ProtocolError

logger = logging.getLogger("autorender.relay")

ChannelType = Union[discord.abc.GuildChannel, discord.abc.PrivateChannel, discord.Thread]


def upload_content(frame: UploadFrame, public_uri: str) -> str:
    title = functions.escape_masked_link(frame.title) if frame.title else "untitled"
    link = functions.public_url(public_uri, f"/videos/{frame.share_id}")
    return f"📽️ Rendered video [{title}]({link})"


def error_content(frame: ErrorFrame) -> str:
    return f"❌️ {frame.message}"


class JobRelay:
    """
    Routes frames from the server to whoever requested the render.

    When the original interaction is still cached its response is edited,
    otherwise a new message is sent to the channel the render was requested
    in, or to the requester's DMs.
    """

    def __init__(
        self,
        bot: discord.Client,
        cache: InteractionCache,
        server_config: ServerConfig,
        public_uri: str,
    ):
        self.bot = bot
        self.cache = cache
        self.server_config = server_config
        self.public_uri = public_uri

    async def handle(self, raw: Union[str, bytes]) -> None:
        try:
            frame = protocol.parse(raw)
        except json.JSONDecodeError as e:
            logger.info("Server: %s", e.doc)
            return
        except ProtocolError as e:
            logger.warning("Dropping frame: %s (%s)", e, e.raw)
            return

        match frame:
            case ConfigFrame(max_demo_file_size=size):
                self.server_config.max_demo_file_size = size
                logger.info("Updated server config: maxDemoFileSize=%d", size)
            case UploadFrame():
                await self.deliver(frame, upload_content(frame, self.public_uri))
            case ErrorFrame():
                logger.info(
                    "Render %s failed with status %d: %s",
                    frame.share_id,
                    frame.status,
                    frame.message,
                )
                await self.deliver(frame, error_content(frame))

    async def deliver(self, frame: TerminalFrame, content: str) -> bool:
        """Send exactly one message for a finished render. Failures are logged, not retried."""
        entry = self.cache.take(frame.share_id)
        try:
            if entry:
                await entry.interaction.edit_original_response(content=content)
                return True

            channel = None
            if frame.requested_in_guild_id and frame.requested_in_channel_id:
                channel = await self._resolve_channel(frame.requested_in_channel_id)
                if not isinstance(channel, discord.abc.Messageable):
                    logger.warning(
                        "Channel %d cannot receive messages, sending result of %s as DM",
                        frame.requested_in_channel_id,
                        frame.share_id,
                    )
                    channel = None

            if channel is None:
                user = self.bot.get_user(frame.requested_by_id) or await self.bot.fetch_user(
                    frame.requested_by_id
                )
                channel = await user.create_dm()

            await channel.send(content)
            return True
        except discord.HTTPException as e:
            logger.error(
                "Failed to deliver result of %s to %d (cached: %s)",
                frame.share_id,
                frame.requested_by_id,
                entry is not None,
                exc_info=e,
            )
            return False

    async def _resolve_channel(self, channel_id: int) -> ChannelType:
        channel: Optional[ChannelType] = self.bot.get_channel(channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(channel_id)
        return channel
