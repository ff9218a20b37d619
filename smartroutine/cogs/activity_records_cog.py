from typing import TYPE_CHECKING

from discord import Interaction, app_commands
from discord.ext import commands

from smartroutine.components.activities import recent_embed
from smartroutine.components.activity_records import RecentActivitiesView
from smartroutine.models.activity import Activity
from smartroutine.services.session import session_for

if TYPE_CHECKING:
    from smartroutine.bot import SmartRoutineBot


class ActivityRecordsCog(commands.Cog):
    def __init__(self, bot: 'SmartRoutineBot'):
        self.bot = bot

    @app_commands.command(
        name='recent', description='View (and delete) your recent activities'
    )
    @app_commands.describe(limit='How many activities to show (default 5, max 25)')
    async def recent(self, interaction: Interaction, limit: int = 5):
        session = session_for(interaction.user.id)
        lim = max(1, min(25, limit or 5))
        rows = Activity.recent_for_user(session.user_id, lim)

        if not rows:
            await interaction.response.send_message(
                'No activities yet. Use `/start` to track one.', ephemeral=True
            )
            return

        view = RecentActivitiesView(
            requestor_id=interaction.user.id, activities=rows, storage=self.bot.storage
        )
        await interaction.response.send_message(
            embed=recent_embed(rows), view=view, ephemeral=True
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(ActivityRecordsCog(bot))  # type: ignore[arg-type]
