import asyncio
import io

import discord
from discord import app_commands
from discord.ext import commands

from autorender.autorender import Autorender
from autorender.demo import fixup
from autorender.demo.models import DemoCodec
from autorender.utils.logs import logger

MAX_FIXUP_FILE_SIZE = 100 * 1024 * 1024


def fixed_filename(filename: str) -> str:
    if filename.lower().endswith(".dem"):
        return f"{filename[:-4]}_fixed.dem"
    return f"{filename}_fixed"


class FixupCog(commands.Cog):
    def __init__(self, bot: Autorender, codec: DemoCodec):
        self.bot: Autorender = bot
        self.codec = codec

    @app_commands.command(name="fixup", description="Fix old demo file!")
    @app_commands.describe(file="Demo file.")
    async def fixup(self, interaction: discord.Interaction, file: discord.Attachment):
        if file.size > MAX_FIXUP_FILE_SIZE:
            await interaction.response.send_message("❌️ File is too big.", ephemeral=True)
            return

        await interaction.response.send_message("⏳️ Fixing file...")

        try:
            data = await file.read()
        except discord.HTTPException as e:
            logger.error("Failed to download demo for fixup", exc_info=e)
            await interaction.edit_original_response(content="❌️ Unable to download attachment.")
            return

        # Parsing is CPU bound, keep it off the event loop.
        result = await asyncio.to_thread(fixup.repair_bytes, data, self.codec)
        logger.info(
            "Fixup of %s by %d: %s", file.filename, interaction.user.id, result.outcome.value
        )

        if not result.ok:
            await interaction.edit_original_response(content=f"❌️ {result.message}")
            return

        content = f"🔨️ {result.message}"
        if not self.bot.server_config.accepts(len(result.data)):
            content += "\n⚠️ Detected that the file is too big for a render."

        await interaction.edit_original_response(
            content=content,
            attachments=[discord.File(io.BytesIO(result.data), filename=fixed_filename(file.filename))],
        )


async def setup(bot: Autorender):
    if bot.demo_codec is None:
        logger.info("No demo codec configured, /fixup is disabled")
        return
    await bot.add_cog(FixupCog(bot, bot.demo_codec))
