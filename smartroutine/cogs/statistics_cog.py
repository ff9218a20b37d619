from typing import TYPE_CHECKING

from discord import Interaction, app_commands
from discord.ext import commands

from smartroutine.components.statistics import stats_embed
from smartroutine.models.activity import Activity
from smartroutine.models.types import ActivityStatus
from smartroutine.services.session import session_for
from smartroutine.services.statistics import week_start, weekly_statistics

if TYPE_CHECKING:
    from smartroutine.bot import SmartRoutineBot


class StatisticsCog(commands.Cog):
    def __init__(self, bot: 'SmartRoutineBot'):
        self.bot = bot

    @app_commands.command(name='stats', description='Your validated minutes over the last 7 days')
    async def stats(self, interaction: Interaction):
        session = session_for(interaction.user.id)
        tz = self.bot.settings.local_timezone
        activities = Activity.for_user(
            session.user_id, status=ActivityStatus.VALIDATED, since=week_start(tz=tz)
        )
        stats = weekly_statistics(activities, tz=tz)
        await interaction.response.send_message(
            embed=stats_embed(session.username, stats), ephemeral=True
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(StatisticsCog(bot))  # type: ignore[arg-type]
