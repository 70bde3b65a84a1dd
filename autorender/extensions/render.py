import asyncio
from typing import Optional

import aiohttp
import discord
from discord import app_commands
from discord.ext import commands

from autorender.autorender import Autorender
from autorender.utils import functions
from autorender.utils.errors import RenderRequestError
from autorender.utils.http import get_http_session
from autorender.utils.logs import logger


def build_render_form(
    interaction: discord.Interaction,
    filename: str,
    data: bytes,
    title: Optional[str],
    comment: Optional[str],
    render_options: Optional[str],
) -> aiohttp.FormData:
    form = aiohttp.FormData()
    for name, value in (
        ("title", title),
        ("comment", comment),
        ("render_options", render_options),
    ):
        if value:
            form.add_field(name, value)

    form.add_field("files", data, filename=filename, content_type="application/octet-stream")
    form.add_field("requested_by_name", functions.requested_by_name(interaction.user))
    form.add_field("requested_by_id", str(interaction.user.id))
    if interaction.guild_id and interaction.channel_id:
        form.add_field("requested_in_guild_id", str(interaction.guild_id))
        form.add_field("requested_in_channel_id", str(interaction.channel_id))
    return form


async def submit_render(base_api: str, bot_token: str, form: aiohttp.FormData) -> str:
    """Queue a render on the server and return its share id."""
    session = await get_http_session()
    async with session.put(
        f"{base_api}/api/v1/videos/render",
        data=form,
        headers={"Authorization": functions.bearer(bot_token)},
    ) as response:
        try:
            body = await response.json(content_type=None)
        except ValueError:
            body = None

        if not response.ok:
            message = body.get("message") if isinstance(body, dict) else None
            raise RenderRequestError(response.status, message or "Failed to render file")

        if not isinstance(body, dict) or not body.get("share_id"):
            raise RenderRequestError(response.status, "Server did not return a video")
        return str(body["share_id"])


class RenderCog(commands.Cog):
    def __init__(self, bot: Autorender):
        self.bot: Autorender = bot

    async def preset_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        presets = await self.bot.presets.list(interaction.user.id)
        return [
            app_commands.Choice(name=preset.name, value=preset.name)
            for preset in presets
            if current.lower() in preset.name.lower()
        ][:25]

    @app_commands.command(name="render", description="Render a demo file!")
    @app_commands.describe(
        file="Demo file.",
        title="Video title.",
        comment="Video comment.",
        render_options="Render options e.g. sar_ihud 1, mat_fullbright 1",
        preset="Use the render options of one of your presets.",
    )
    @app_commands.autocomplete(preset=preset_autocomplete)
    async def render(
        self,
        interaction: discord.Interaction,
        file: discord.Attachment,
        title: Optional[app_commands.Range[str, 1, 64]] = None,
        comment: Optional[app_commands.Range[str, 1, 512]] = None,
        render_options: Optional[app_commands.Range[str, 1, 1024]] = None,
        preset: Optional[str] = None,
    ):
        if not file.filename.lower().endswith(".dem"):
            await interaction.response.send_message(
                "❌️ Only .dem files can be rendered.", ephemeral=True
            )
            return

        max_size = self.bot.server_config.max_demo_file_size
        if not self.bot.server_config.accepts(file.size):
            await interaction.response.send_message(
                f"❌️ File is too big ({file.size / 1_000_000:.1f} MB). "
                f"Maximum allowed: {max_size / 1_000_000:.1f} MB.",
                ephemeral=True,
            )
            return

        if preset and not render_options:
            found = await self.bot.presets.find(interaction.user.id, preset)
            if not found:
                await interaction.response.send_message(
                    "❌️ Failed to find preset.", ephemeral=True
                )
                return
            render_options = found.options

        await interaction.response.defer()

        try:
            data = await file.read()
            form = build_render_form(interaction, file.filename, data, title, comment, render_options)
            share_id = await submit_render(self.bot.base_api, self.bot.bot_token, form)
        except RenderRequestError as e:
            logger.error("Render request by %d rejected: %s", interaction.user.id, e)
            await interaction.edit_original_response(content=f"❌️ {e.message}")
            return
        except (aiohttp.ClientError, discord.HTTPException, asyncio.TimeoutError) as e:
            logger.error("Failed to send render request", exc_info=e)
            await interaction.edit_original_response(content="❌️ Failed to render file")
            return

        await interaction.edit_original_response(
            content=f"📽️ Rendering {title or '*untitled*'} video..."
        )
        self.bot.cache.put(share_id, interaction, interaction.user.id)
        logger.info("Queued render %s for %d", share_id, interaction.user.id)


async def setup(bot: Autorender):
    await bot.add_cog(RenderCog(bot))
