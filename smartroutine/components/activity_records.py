import logging

import discord
from discord import Interaction

from smartroutine.components.activities import activity_title
from smartroutine.errors import SmartRoutineError
from smartroutine.models.activity import Activity
from smartroutine.services.evidence_storage import EvidenceStorage
from smartroutine.services.session import session_for
from smartroutine.utils.embeds import notify_error

logger = logging.getLogger(__name__)


class RecentActivitiesView(discord.ui.View):
    def __init__(
        self,
        requestor_id: int,
        activities: list[dict],
        storage: EvidenceStorage | None = None,
    ):
        super().__init__(timeout=120)
        self.requestor_id = requestor_id
        self.activities = activities
        self.storage = storage

        options = []
        for idx, a in enumerate(activities, start=1):
            created = a.get('created_at')
            when = created.strftime('%Y-%m-%d %H:%M') if created else ''
            options.append(
                discord.SelectOption(
                    label=f'{idx}. {a["name"]}'[:100],
                    description=f'{a["activity_type"]} • {a["status"]} • {when}'[:100],
                    value=str(a['id']),
                )
            )
        self.add_item(_DeleteSelect(options))

    async def interaction_check(self, interaction: Interaction) -> bool:
        if interaction.user.id != self.requestor_id:
            await interaction.response.send_message(
                'You cannot interact with this view.', ephemeral=True
            )
            return False
        return True


class _DeleteSelect(discord.ui.Select):
    def __init__(self, options: list[discord.SelectOption]):
        super().__init__(
            placeholder='Select an activity to delete…',
            min_values=1,
            max_values=1,
            options=options,
        )

    async def callback(self, interaction: Interaction):
        view = self.view
        if not isinstance(view, RecentActivitiesView):
            await interaction.response.send_message(
                'Internal error: invalid view.', ephemeral=True
            )
            return

        activity_id = int(self.values[0])
        activity = next((a for a in view.activities if a['id'] == activity_id), None)
        if not activity:
            await interaction.response.send_message(
                'Activity not found.', ephemeral=True
            )
            return

        modal = DeleteConfirmModal(activity, storage=view.storage)
        await interaction.response.send_modal(modal)


class DeleteConfirmModal(discord.ui.Modal):
    def __init__(self, activity: dict, storage: EvidenceStorage | None = None):
        super().__init__(title='Confirm Delete')
        self.activity = activity
        self.storage = storage

        self.confirm_input = discord.ui.TextInput(
            label='Type DELETE to confirm',
            style=discord.TextStyle.short,
            required=True,
            max_length=6,
        )
        self.add_item(self.confirm_input)

    async def on_submit(self, interaction: Interaction):
        if self.confirm_input.value.strip().upper() != 'DELETE':
            await interaction.response.send_message(
                '❌ Confirmation failed. Activity not deleted.', ephemeral=True
            )
            return

        try:
            session = session_for(interaction.user.id)
            Activity.delete_for_owner(self.activity['id'], session, self.storage)
        except SmartRoutineError as e:
            await notify_error(interaction, e)
            return

        await interaction.response.send_message(
            f'✅ Deleted {activity_title(self.activity)}.', ephemeral=True
        )
