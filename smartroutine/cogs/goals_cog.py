import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from discord import Interaction, app_commands
from discord.ext import commands

from smartroutine.components.goals import goals_embed
from smartroutine.models.activity import Activity
from smartroutine.models.goal import Goal
from smartroutine.models.types import ActivityStatus, ActivityType, GoalType
from smartroutine.services.progress import evaluate_all
from smartroutine.services.session import session_for
from smartroutine.utils.tracing import trace_span

if TYPE_CHECKING:
    from smartroutine.bot import SmartRoutineBot

logger = logging.getLogger(__name__)

# Widest goal window (a week) plus a day of timezone slack
PROGRESS_LOOKBACK = timedelta(days=8)


class GoalsCog(commands.Cog):
    def __init__(self, bot: 'SmartRoutineBot'):
        self.bot = bot

    async def goal_autocomplete(self, interaction: Interaction, current: str):
        '''Autocomplete the caller's own goals.'''
        goals = Goal.for_user(interaction.user.id)
        cur = (current or '').lower()
        return [
            app_commands.Choice(name=f'#{g["id"]} {g["title"]}'[:100], value=g['id'])
            for g in goals
            if cur in g['title'].lower()
        ][:25]

    @app_commands.command(name='goal_add', description='Set a new daily or weekly goal')
    @app_commands.describe(
        title='Name of the goal (e.g., Study every day)',
        goal_type='Daily minutes or sessions per week',
        category='Which activity type counts toward it',
        target='Minutes per day, or sessions per week',
    )
    @app_commands.choices(
        goal_type=[
            app_commands.Choice(name='Daily duration (minutes)', value=GoalType.DAILY_DURATION.value),
            app_commands.Choice(name='Weekly frequency (sessions)', value=GoalType.WEEKLY_FREQUENCY.value),
        ],
        category=[app_commands.Choice(name=t.value, value=t.value) for t in ActivityType],
    )
    async def goal_add(
        self,
        interaction: Interaction,
        title: str,
        goal_type: app_commands.Choice[str],
        category: app_commands.Choice[str],
        target: int,
    ):
        session = session_for(interaction.user.id)
        goal = Goal.create_goal(session, title, goal_type.value, category.value, target)
        logger.info(f'User {session.user_id} added goal {goal["id"]}')
        await interaction.response.send_message(
            f'🎯 Goal **{goal["title"]}** created. Check it with `/goals`.',
            ephemeral=True,
        )

    @app_commands.command(name='goals', description='Show your goals and progress')
    async def goals(self, interaction: Interaction):
        session = session_for(interaction.user.id)
        goals = Goal.for_user(session.user_id)
        activities = Activity.for_user(
            session.user_id,
            status=ActivityStatus.VALIDATED,
            since=datetime.now(timezone.utc) - PROGRESS_LOOKBACK,
        )
        with trace_span('goals.evaluate', {'user_id': session.user_id, 'goals': len(goals)}):
            progress = evaluate_all(
                goals, activities, tz=self.bot.settings.local_timezone
            )
        await interaction.response.send_message(
            embed=goals_embed(session.username, goals, progress), ephemeral=True
        )

    @app_commands.command(name='goal_complete', description='Mark one of your goals as completed')
    @app_commands.describe(goal='The goal to complete')
    @app_commands.autocomplete(goal=goal_autocomplete)
    async def goal_complete(self, interaction: Interaction, goal: int):
        session = session_for(interaction.user.id)
        row = Goal.mark_completed(goal, session)
        await interaction.response.send_message(
            f'🏁 Goal **{row["title"]}** completed. Nice work!', ephemeral=True
        )

    @app_commands.command(name='goal_delete', description='Delete one of your goals')
    @app_commands.describe(goal='The goal to delete')
    @app_commands.autocomplete(goal=goal_autocomplete)
    async def goal_delete(self, interaction: Interaction, goal: int):
        session = session_for(interaction.user.id)
        Goal.delete_for_owner(goal, session)
        await interaction.response.send_message('✅ Goal deleted.', ephemeral=True)


async def setup(bot: commands.Bot):
    await bot.add_cog(GoalsCog(bot))  # type: ignore[arg-type]
