import logging
from typing import Any, Optional

import discord
from discord import Interaction

from smartroutine.components.activities import activity_line, activity_title
from smartroutine.errors import SmartRoutineError
from smartroutine.models.activity import Activity
from smartroutine.models.types import ActivityStatus
from smartroutine.models.user import User
from smartroutine.services.session import session_for
from smartroutine.services.subscriptions import Subscription
from smartroutine.utils.constants import REVIEW_QUEUE_LIMIT
from smartroutine.utils.embeds import notify_error

logger = logging.getLogger(__name__)


class ReviewView(discord.ui.View):
    '''Pending queue for one reviewer, oldest submission first.'''

    def __init__(self, reviewer_id: int):
        super().__init__(timeout=600)
        self.reviewer_id = reviewer_id
        self.pending: list[dict[str, Any]] = []
        self.usernames: dict[Any, str] = {}
        self.selected_id: Optional[int] = None
        self.message: Optional[discord.InteractionMessage] = None
        self.subscription: Optional[Subscription] = None
        # set while a redraw has not reached Discord yet
        self._stale = False

        self.select = _PendingSelect()
        self.add_item(self.select)
        self.add_item(_ReviewButton(ActivityStatus.VALIDATED))
        self.add_item(_ReviewButton(ActivityStatus.REJECTED))

    async def interaction_check(self, interaction: Interaction) -> bool:
        if interaction.user.id != self.reviewer_id:
            await interaction.response.send_message(
                'You cannot interact with this view.', ephemeral=True
            )
            return False
        return True

    def load(self, pending: list[dict[str, Any]]) -> None:
        self.pending = pending
        self.usernames = User.usernames({a['user_id'] for a in pending})
        if self.selected_id not in {a['id'] for a in pending}:
            self.selected_id = None
        self.select.set_activities(pending, self.selected_id)
        for item in self.children:
            if isinstance(item, _ReviewButton):
                item.disabled = self.selected_id is None

    def embed(self) -> discord.Embed:
        embed = discord.Embed(
            title=f'🔎 Review Queue ({len(self.pending)} pending)',
            color=discord.Color.blurple(),
        )
        if not self.pending:
            embed.description = 'Nothing to review. 🎉'
        for a in self.pending:
            who = self.usernames.get(a['user_id'], str(a['user_id']))
            marker = '👉 ' if a['id'] == self.selected_id else ''
            embed.add_field(
                name=f'{marker}#{a["id"]} {activity_title(a)}'[:256],
                value=f'👤 {who}\n{activity_line(a)}'[:1024],
                inline=False,
            )
        return embed

    async def refresh(self, pending: list[dict[str, Any]]) -> None:
        '''Subscription callback: redraw with the latest queue snapshot.'''
        if pending == self.pending and not self._stale:
            return
        self.load(pending)
        if self.message is not None:
            self._stale = True
            await self.message.edit(embed=self.embed(), view=self)
        self._stale = False

    async def on_timeout(self) -> None:
        if self.subscription is not None:
            self.subscription.cancel()


class _PendingSelect(discord.ui.Select):
    def __init__(self):
        super().__init__(
            placeholder='Select an activity to review…',
            min_values=1,
            max_values=1,
            options=[discord.SelectOption(label='Nothing to review', value='none')],
        )

    def set_activities(self, pending: list[dict[str, Any]], selected: Optional[int]):
        if not pending:
            self.options = [discord.SelectOption(label='Nothing to review', value='none')]
            self.disabled = True
            return
        self.disabled = False
        self.options = [
            discord.SelectOption(
                label=f'#{a["id"]} {a["name"]}'[:100],
                description=f'{a["activity_type"]} • {a["duration_minutes"]} min',
                value=str(a['id']),
                default=(a['id'] == selected),
            )
            for a in pending[:REVIEW_QUEUE_LIMIT]
        ]

    async def callback(self, interaction: Interaction):
        view = self.view
        if not isinstance(view, ReviewView) or self.values[0] == 'none':
            await interaction.response.defer()
            return
        view.selected_id = int(self.values[0])
        view.load(view.pending)
        await interaction.response.edit_message(embed=view.embed(), view=view)


class _ReviewButton(discord.ui.Button):
    def __init__(self, outcome: ActivityStatus):
        validated = outcome is ActivityStatus.VALIDATED
        super().__init__(
            label='Validate' if validated else 'Reject',
            style=discord.ButtonStyle.success if validated else discord.ButtonStyle.danger,
            disabled=True,
        )
        self.outcome = outcome

    async def callback(self, interaction: Interaction):
        view = self.view
        if not isinstance(view, ReviewView) or view.selected_id is None:
            await interaction.response.send_message(
                'Select an activity first.', ephemeral=True
            )
            return

        activity_id = view.selected_id
        try:
            session = session_for(interaction.user.id)
            Activity.set_status(activity_id, self.outcome, session)
            view.load(Activity.pending(REVIEW_QUEUE_LIMIT))
        except SmartRoutineError as e:
            await notify_error(interaction, e)
            return

        await interaction.response.edit_message(embed=view.embed(), view=view)
        await interaction.followup.send(
            f'Activity #{activity_id} {self.outcome.value}.', ephemeral=True
        )
