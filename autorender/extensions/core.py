import datetime
import platform

import discord
from discord import app_commands
from discord.ext import commands

from autorender.autorender import Autorender
from autorender.utils import functions
from autorender.utils.logs import logger
from autorender.worker import Control


class Core(commands.Cog):
    def __init__(self, bot: Autorender):
        self.bot: Autorender = bot

    @commands.Cog.listener()
    async def on_ready(self):
        logger.info(f"Logged in as {self.bot.user}")

    @commands.Cog.listener()
    async def on_disconnect(self):
        logger.info("Disconnected from Discord")

    @commands.Cog.listener()
    async def on_resumed(self):
        logger.info("Reconnected to Discord")

    @commands.Cog.listener()
    async def on_command_error(self, ctx: commands.Context, error):
        if isinstance(error, commands.CommandNotFound):
            return
        if isinstance(error, commands.NotOwner):
            logger.warning("Ignored non-owner user")
            return
        logger.error(f"Ignoring exception in command {ctx.command}", exc_info=error)

    @app_commands.command(
        name="bot",
        description="Get info about the bot!",
    )
    async def info(self, interaction: discord.Interaction):
        online_since = self.bot.online_since or datetime.datetime.now(datetime.timezone.utc)
        uptime = functions.format_uptime(
            (datetime.datetime.now(datetime.timezone.utc) - online_since).total_seconds()
        )
        await interaction.response.send_message(
            "\n".join(
                [
                    f":robot: {self.bot.public_uri}",
                    f":small_red_triangle: {platform.system().lower()} {platform.machine()}",
                    f":up: {uptime}",
                    f":satellite: {self.bot.worker.state.value}",
                ]
            ),
            ephemeral=True,
        )

    @commands.command(name="reconnect", hidden=True)
    @commands.is_owner()
    async def reconnect(self, ctx: commands.Context):
        self.bot.worker.request(Control.RECONNECT)
        await ctx.send("Reconnecting to server...")

    @commands.command(name="probe", hidden=True)
    @commands.is_owner()
    async def probe(self, ctx: commands.Context):
        if not self.bot.worker.connected:
            await ctx.send(f"Not connected ({self.bot.worker.state.value}).")
            return
        self.bot.worker.request(Control.PING)
        await ctx.send("Sent ping to server.")


async def setup(bot: Autorender):
    await bot.add_cog(Core(bot))
