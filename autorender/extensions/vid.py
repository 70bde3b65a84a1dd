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

BOARD_URI = "https://board.portal2.sr"


@dataclass(frozen=True)
class SearchResult:
    share_id: str
    map: str
    map_id: int
    time: int
    user: str
    user_id: str


async def search_video(base_api: str, query: str) -> Optional[SearchResult]:
    """Best match of a board search, or None when nothing was found."""
    url = f"{base_api}/api/v1/search"
    logger.info("[GET] %s?q=%s", url, query)

    session = await get_http_session()
    async with session.get(url, params={"q": query}) as response:
        if not response.ok:
            raise ApiRequestError(url, response.status)
        try:
            body = await response.json(content_type=None)
        except ValueError as e:
            raise ApiRequestError(url, response.status) from e

    results = body.get("results") if isinstance(body, dict) else None
    if not isinstance(results, list):
        raise ApiRequestError(url, response.status)
    if not results:
        return None

    video = results[0]
    try:
        return SearchResult(
            share_id=str(video["share_id"]),
            map=str(video["map"]),
            map_id=int(video["map_id"]),
            time=int(video["time"]),
            user=str(video["user"]),
            user_id=str(video["user_id"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ApiRequestError(url, response.status) from e


def format_result(result: SearchResult, public_uri: str) -> str:
    map_name = functions.escape_masked_link(result.map)
    map_link = f"{BOARD_URI}/chamber/{result.map_id}"
    time = functions.escape_masked_link(functions.format_cm_time(result.time))
    video_link = functions.public_url(public_uri, f"/videos/{result.share_id}")
    player = functions.escape_masked_link(result.user)
    profile_link = f"{BOARD_URI}/profile/{result.user_id}"
    return f"[{map_name}](<{map_link}>) in [{time}]({video_link}) by [{player}](<{profile_link}>)"


class VidCog(commands.Cog):
    def __init__(self, bot: Autorender):
        self.bot: Autorender = bot

    @app_commands.command(name="vid", description="Search for a video.")
    @app_commands.describe(search="Search query.")
    async def vid(self, interaction: discord.Interaction, search: app_commands.Range[str, 1, 100]):
        await interaction.response.send_message("🔍️ Searching video...")

        try:
            result = await search_video(self.bot.base_api, search.lower())
        except (ApiRequestError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Failed to search videos", exc_info=e)
            await interaction.edit_original_response(content="❌️ Failed to fetch videos.")
            return

        if result is None:
            await interaction.edit_original_response(content="❌️ Video not found.")
            return

        await interaction.edit_original_response(content=format_result(result, self.bot.public_uri))


async def setup(bot: Autorender):
    await bot.add_cog(VidCog(bot))
