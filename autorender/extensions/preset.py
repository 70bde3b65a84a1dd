import discord
from discord import app_commands
from discord.ext import commands

from autorender.autorender import Autorender
from autorender.services.presets import (
    MAX_NAME_LENGTH,
    MAX_OPTIONS_LENGTH,
    MAX_PRESETS_PER_USER,
    RenderPreset,
)
from autorender.utils.functions import escape_markdown
from autorender.utils.logs import logger


class PresetCog(commands.GroupCog, group_name="preset", group_description="Custom predefined render preset!"):
    def __init__(self, bot: Autorender):
        self.bot: Autorender = bot
        super().__init__()

    async def name_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        presets = await self.bot.presets.list(interaction.user.id)
        return [
            app_commands.Choice(name=preset.name, value=preset.name)
            for preset in presets
            if current.lower() in preset.name.lower()
        ][:25]

    @app_commands.command(name="create", description="Create or update a render preset!")
    @app_commands.describe(
        name="The name of the preset.",
        options="Render options e.g. sar_ihud 1, mat_fullbright 1",
    )
    async def create(
        self,
        interaction: discord.Interaction,
        name: app_commands.Range[str, 1, MAX_NAME_LENGTH],
        options: app_commands.Range[str, 1, MAX_OPTIONS_LENGTH],
    ):
        preset = RenderPreset(interaction.user.id, name, options)
        if not await self.bot.presets.update(preset):
            await interaction.response.send_message(
                f"❌️ You cannot have more than {MAX_PRESETS_PER_USER} presets.",
                ephemeral=True,
            )
            return

        logger.info("Saved preset %s of %d", name, interaction.user.id)
        await interaction.response.send_message(
            f"📃️ Saved preset **{escape_markdown(name)}**.", ephemeral=True
        )

    @app_commands.command(name="get", description="Get a render preset!")
    @app_commands.describe(name="The name of the preset.")
    @app_commands.autocomplete(name=name_autocomplete)
    async def get(self, interaction: discord.Interaction, name: str):
        preset = await self.bot.presets.find(interaction.user.id, name)
        if not preset:
            await interaction.response.send_message("❌️ Failed to find preset.", ephemeral=True)
            return

        await interaction.response.send_message(
            f"📃️ **{escape_markdown(preset.name)}**\n```\n{preset.options}\n```",
            ephemeral=True,
        )

    @app_commands.command(name="delete", description="Delete a render preset!")
    @app_commands.describe(name="The name of the preset to delete.")
    @app_commands.autocomplete(name=name_autocomplete)
    async def delete(self, interaction: discord.Interaction, name: str):
        if not await self.bot.presets.delete(interaction.user.id, name):
            await interaction.response.send_message("❌️ Failed to find preset.", ephemeral=True)
            return

        await interaction.response.send_message(
            f"🗑️ Deleted preset **{escape_markdown(name)}**.", ephemeral=True
        )

    @app_commands.command(name="list", description="List your render presets!")
    async def list_presets(self, interaction: discord.Interaction):
        presets = await self.bot.presets.list(interaction.user.id)
        if not presets:
            await interaction.response.send_message(
                "You do not have any presets yet.", ephemeral=True
            )
            return

        await interaction.response.send_message(
            "\n".join(f"- **{escape_markdown(p.name)}**: `{p.options}`" for p in presets),
            ephemeral=True,
        )


async def setup(bot: Autorender):
    await bot.add_cog(PresetCog(bot))
