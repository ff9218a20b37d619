import asyncio
import logging
from typing import TYPE_CHECKING

from discord import Interaction, app_commands
from discord.ext import commands

from smartroutine.components.insights import insights_embed
from smartroutine.models.activity import Activity
from smartroutine.services.session import session_for

if TYPE_CHECKING:
    from smartroutine.bot import SmartRoutineBot

logger = logging.getLogger(__name__)


class InsightsCog(commands.Cog):
    def __init__(self, bot: 'SmartRoutineBot'):
        self.bot = bot

    @app_commands.command(
        name='insights', description='Get AI insights on your recent routine'
    )
    async def insights(self, interaction: Interaction):
        session = session_for(interaction.user.id)
        builder = self.bot.insights
        rows = Activity.recent_for_user(session.user_id, builder.history_limit)

        await interaction.response.defer(ephemeral=True, thinking=True)
        # The model call blocks for seconds; keep the gateway responsive
        result = await asyncio.to_thread(builder.build, session.user_id, rows)
        logger.info(f'/insights for {session.user_id}: {result.status}')
        await interaction.followup.send(embed=insights_embed(result), ephemeral=True)


async def setup(bot: commands.Bot):
    await bot.add_cog(InsightsCog(bot))  # type: ignore[arg-type]
