import asyncio
import itertools
import logging
from typing import TYPE_CHECKING, Optional

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from smartroutine.components.activities import recorded_message, tracking_text
from smartroutine.errors import ValidationError
from smartroutine.models.types import FOCUS_LEVELS, LEVELS, ActivityType
from smartroutine.services.recorder import ActivityRecorder, ElapsedTicker
from smartroutine.services.session import session_for
from smartroutine.utils.constants import TRACKING_EDIT_EVERY_TICKS

if TYPE_CHECKING:
    from smartroutine.bot import SmartRoutineBot

logger = logging.getLogger(__name__)


def _choices(values) -> list[app_commands.Choice[str]]:
    return [app_commands.Choice(name=v.capitalize(), value=v) for v in values]


class TrackingCog(commands.Cog):
    '''Live activity tracking: one recorder per member.'''

    def __init__(self, bot: 'SmartRoutineBot'):
        self.bot = bot
        self.recorders: dict[int, ActivityRecorder] = {}
        # Interaction whose response shows the running timer
        self.timer_messages: dict[int, Interaction] = {}

    async def cog_unload(self):
        for recorder in self.recorders.values():
            recorder.close()
        self.recorders.clear()
        self.timer_messages.clear()

    def _recorder(self, user_id: int) -> ActivityRecorder:
        recorder = self.recorders.get(user_id)
        if recorder is None:
            settings = self.bot.settings
            recorder = ActivityRecorder(
                user_id,
                self.bot.storage,
                duration_policy=settings.duration_policy,
                max_evidence_bytes=settings.evidence_max_bytes,
                ticker_factory=self._make_ticker,
            )
            self.recorders[user_id] = recorder
        return recorder

    def _make_ticker(self, recorder: ActivityRecorder) -> ElapsedTicker:
        ticks = itertools.count(1)

        async def on_tick(elapsed_ms: int):
            if next(ticks) % TRACKING_EDIT_EVERY_TICKS:
                return
            interaction = self.timer_messages.get(recorder.user_id)
            if interaction is None or not recorder.is_tracking:
                return
            try:
                await interaction.edit_original_response(
                    content=self._status_text(recorder, elapsed_ms)
                )
            except discord.HTTPException as e:
                # Interaction tokens expire; keep timing, stop editing
                logger.debug(f'Stopped timer edits for {recorder.user_id}: {e}')
                self.timer_messages.pop(recorder.user_id, None)

        return ElapsedTicker(
            recorder.elapsed_ms, on_tick, self.bot.settings.timer_tick_seconds
        )

    @staticmethod
    def _status_text(recorder: ActivityRecorder, elapsed_ms: int | None = None) -> str:
        atype = recorder.activity_type
        return tracking_text(
            recorder.name or '',
            atype.value if atype is not None else '',
            recorder.elapsed_ms() if elapsed_ms is None else elapsed_ms,
            recorder.evidence is not None,
        )

    @app_commands.command(name='start', description='Start tracking an activity')
    @app_commands.describe(
        name='What are you doing? (e.g., Linear algebra, Leg day)',
        activity_type='Study, Workout, or Break',
        focus_level='Study only: how focused you plan to be (default: full)',
        priority='Study only: how important this session is (default: high)',
        intensity='Workout only: effort level (default: medium)',
        quality='Break only: how restful, 1-5 (default: 3)',
        note='Study only: optional note',
    )
    @app_commands.choices(
        activity_type=[app_commands.Choice(name=t.value, value=t.value) for t in ActivityType],
        focus_level=_choices(FOCUS_LEVELS),
        priority=_choices(LEVELS),
        intensity=_choices(LEVELS),
    )
    async def start(
        self,
        interaction: Interaction,
        name: str,
        activity_type: app_commands.Choice[str],
        focus_level: app_commands.Choice[str] | None = None,
        priority: app_commands.Choice[str] | None = None,
        intensity: app_commands.Choice[str] | None = None,
        quality: Optional[app_commands.Range[int, 1, 5]] = None,
        note: str | None = None,
    ):
        session_for(interaction.user.id)
        details = {
            'focus_level': focus_level.value if focus_level else None,
            'priority': priority.value if priority else None,
            'intensity': intensity.value if intensity else None,
            'quality': quality,
            'note': note,
        }
        recorder = self._recorder(interaction.user.id)
        recorder.start(name, activity_type.value, details)

        await interaction.response.send_message(
            self._status_text(recorder), ephemeral=True
        )
        self.timer_messages[interaction.user.id] = interaction

    @app_commands.command(
        name='evidence', description='Attach a proof file to the activity you are tracking'
    )
    @app_commands.describe(file='Image, PDF, or text file')
    async def evidence(self, interaction: Interaction, file: discord.Attachment):
        recorder = self._recorder(interaction.user.id)
        if not recorder.is_tracking:
            raise ValidationError('Start an activity before attaching evidence.')
        if file.size > recorder.max_evidence_bytes:
            limit_mb = recorder.max_evidence_bytes / (1024 * 1024)
            raise ValidationError(f'Evidence file is larger than {limit_mb:.0f} MB.')

        content = await file.read()
        recorder.attach_evidence(file.filename, content, file.content_type or '')
        await interaction.response.send_message(
            f'📎 **{file.filename}** will be uploaded when you `/finish`.',
            ephemeral=True,
        )

    @app_commands.command(name='finish', description='Stop the timer and save the activity')
    async def finish(self, interaction: Interaction):
        recorder = self._recorder(interaction.user.id)
        if not recorder.is_tracking:
            raise ValidationError('No activity is being tracked.')

        await interaction.response.defer(ephemeral=True, thinking=True)
        # evidence upload and insert block; keep the gateway responsive
        activity = await asyncio.to_thread(recorder.finish)

        timer = self.timer_messages.pop(interaction.user.id, None)
        if timer is not None:
            try:
                await timer.edit_original_response(content='⏹️ Tracking stopped.')
            except discord.HTTPException:
                pass  # timer message already gone or token expired
        await interaction.followup.send(recorded_message(activity), ephemeral=True)

    @app_commands.command(name='cancel', description='Discard the activity you are tracking')
    async def cancel(self, interaction: Interaction):
        recorder = self._recorder(interaction.user.id)
        name = recorder.name
        recorder.cancel()
        self.timer_messages.pop(interaction.user.id, None)
        await interaction.response.send_message(
            f'🗑️ Discarded **{name}**. Nothing was saved.', ephemeral=True
        )

    @app_commands.command(name='status', description='Show the activity you are tracking')
    async def status(self, interaction: Interaction):
        recorder = self.recorders.get(interaction.user.id)
        if recorder is None or not recorder.is_tracking:
            await interaction.response.send_message(
                'You are not tracking anything. Use `/start` to begin.', ephemeral=True
            )
            return
        await interaction.response.send_message(
            self._status_text(recorder), ephemeral=True
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(TrackingCog(bot))  # type: ignore[arg-type]
