import asyncio
from dataclasses import dataclass
from typing import Optional

import aiohttp
import discord
from discord import app_commands
from discord.ext import commands

from autorender.autorender import Autorender
from autorender.utils import functions
from autorender.utils.errors import ApiRequestError
from autorender.utils.http import get_http_session
from autorender.utils.logs import logger


@dataclass(frozen=True)
class VideoStatus:
    video_id: str
    title: str
    errored: bool = False
    rendering: bool = False
    rendered: bool = False

    @property
    def icon(self) -> str:
        if self.errored:
            return "❌️"
        if self.rendering:
            return "⌛️"
        if self.rendered:
            return "📺️"
        return ""


async def _get_json(url: str):
    session = await get_http_session()
    async with session.get(url) as response:
        if not response.ok:
            raise ApiRequestError(url, response.status)
        try:
            return await response.json(content_type=None)
        except ValueError as e:
            raise ApiRequestError(url, response.status) from e


async def fetch_latest_videos(base_api: str, user_id: int) -> list[VideoStatus]:
    """Videos requested by a user, newest first as returned by the API."""
    url = f"{base_api}/api/v1/videos/status/{user_id}"
    body = await _get_json(url)
    if not isinstance(body, list):
        raise ApiRequestError(url)

    return [
        VideoStatus(
            video_id=str(video["video_id"]),
            title=video.get("title") or "untitled",
            errored=bool(video.get("errored")),
            rendering=bool(video.get("rendering")),
            rendered=bool(video.get("rendered")),
        )
        for video in body
        if isinstance(video, dict) and video.get("video_id")
    ]


async def fetch_random_video(base_api: str) -> Optional[str]:
    url = f"{base_api}/api/v1/videos/random/1"
    body = await _get_json(url)
    if not isinstance(body, list):
        raise ApiRequestError(url)
    if not body or not isinstance(body[0], dict) or not body[0].get("video_id"):
        return None
    return str(body[0]["video_id"])


def format_latest(videos: list[VideoStatus], public_uri: str) -> str:
    if not videos:
        return "📺️ Nothing to watch."
    return "\n".join(
        f"{video.icon} {video.title}\n<{functions.public_url(public_uri, f'/videos/{video.video_id}')}>"
        for video in videos
    )


class WatchCog(commands.GroupCog, group_name="watch", group_description="Watch rendered videos!"):
    def __init__(self, bot: Autorender):
        self.bot: Autorender = bot
        super().__init__()

    @app_commands.command(name="latest", description="Watch your latest rendered videos!")
    async def latest(self, interaction: discord.Interaction):
        await interaction.response.send_message("⏳️ Loading videos...")

        try:
            videos = await fetch_latest_videos(self.bot.base_api, interaction.user.id)
        except (ApiRequestError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Failed to request latest videos", exc_info=e)
            await interaction.edit_original_response(content="❌️ Failed to request rendered videos.")
            return

        await interaction.edit_original_response(content=format_latest(videos, self.bot.public_uri))

    @app_commands.command(name="random", description="Watch a random rendered video!")
    async def random(self, interaction: discord.Interaction):
        await interaction.response.send_message("⏳️ Loading random video...")

        try:
            video_id = await fetch_random_video(self.bot.base_api)
        except (ApiRequestError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Failed to request random video", exc_info=e)
            video_id = None

        if video_id is None:
            await interaction.edit_original_response(content="❌️ Failed to request random video.")
            return

        await interaction.edit_original_response(
            content=functions.public_url(self.bot.public_uri, f"/videos/{video_id}")
        )


async def setup(bot: Autorender):
    await bot.add_cog(WatchCog(bot))
