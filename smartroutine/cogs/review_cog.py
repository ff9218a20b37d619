import logging
from typing import TYPE_CHECKING

from discord import Interaction, app_commands
from discord.ext import commands

from smartroutine.components.review import ReviewView
from smartroutine.models.activity import Activity
from smartroutine.services.session import session_for
from smartroutine.services.subscriptions import Subscription
from smartroutine.utils.constants import REVIEW_QUEUE_LIMIT

if TYPE_CHECKING:
    from smartroutine.bot import SmartRoutineBot

logger = logging.getLogger(__name__)


def pending_queue() -> list[dict]:
    return Activity.pending(REVIEW_QUEUE_LIMIT)


class ReviewCog(commands.Cog):
    '''Reviewer queue: validate or reject pending activities.'''

    def __init__(self, bot: 'SmartRoutineBot'):
        self.bot = bot
        # One live queue per reviewer
        self.subscriptions: dict[int, Subscription] = {}

    async def cog_unload(self):
        for sub in self.subscriptions.values():
            sub.cancel()
        self.subscriptions.clear()

    @app_commands.command(name='review', description='Reviewer-only: validate pending activities')
    async def review(self, interaction: Interaction):
        session = session_for(interaction.user.id)
        session.require_admin()

        view = ReviewView(reviewer_id=interaction.user.id)
        view.load(pending_queue())
        await interaction.response.send_message(
            embed=view.embed(), view=view, ephemeral=True
        )
        view.message = await interaction.original_response()

        previous = self.subscriptions.pop(interaction.user.id, None)
        if previous is not None:
            previous.cancel()
        sub = Subscription(
            pending_queue, view.refresh, self.bot.settings.review_refresh_seconds
        )
        sub.start()
        view.subscription = sub
        self.subscriptions[interaction.user.id] = sub
        logger.info(f'Reviewer {session.user_id} opened the queue')


async def setup(bot: commands.Bot):
    await bot.add_cog(ReviewCog(bot))  # type: ignore[arg-type]
