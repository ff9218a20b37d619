import logging

import discord
from discord import Interaction

from smartroutine.errors import SmartRoutineError

logger = logging.getLogger(__name__)


def error_text(exc: SmartRoutineError) -> str:
    return f'❌ **{exc.title}**: {exc}'


async def notify(interaction: Interaction, content: str, **kwargs) -> None:
    '''Ephemeral reply that works whether or not the interaction was answered.'''
    kwargs.setdefault('ephemeral', True)
    if interaction.response.is_done():
        await interaction.followup.send(content, **kwargs)
    else:
        await interaction.response.send_message(content, **kwargs)


async def notify_error(interaction: Interaction, exc: SmartRoutineError) -> None:
    try:
        await notify(interaction, error_text(exc))
    except discord.HTTPException:
        logger.warning(f'Could not deliver error notice: {exc}', exc_info=True)
