import random
from typing import Any

import discord

from smartroutine.models.types import enum_text
from smartroutine.services.progress import NO_PROGRESS, GoalProgress
from smartroutine.utils.constants import ROUTINE_TIPS, TYPE_EMOJI
from smartroutine.utils.helper import progress_bar

UNIT = {'daily_duration': 'min today', 'weekly_frequency': 'sessions this week'}


def goal_line(goal: dict[str, Any], progress: GoalProgress) -> str:
    unit = UNIT.get(enum_text(goal['goal_type']), '')
    line = (
        f'`{progress_bar(progress.progress)}` {progress.progress:.0f}%\n'
        f'{progress.raw_value} / {goal["target_value"]} {unit}'
    )
    if goal['status'] == 'completed':
        line = f'🏁 Completed\n{line}'
    return line


def goals_embed(
    username: str,
    goals: list[dict[str, Any]],
    progress: dict[Any, GoalProgress],
) -> discord.Embed:
    embed = discord.Embed(title=f'🎯 {username}\'s Goals', color=discord.Color.blurple())
    if not goals:
        embed.description = 'No goals yet. Use `/goal_add` to set one.'
    for g in goals:
        category = enum_text(g['activity_category'])
        embed.add_field(
            name=(
                f'#{g["id"]} {TYPE_EMOJI.get(category, "")} {g["title"]} '
                f'· {enum_text(g["goal_type"]).replace("_", " ").capitalize()}'
            ),
            value=goal_line(g, progress.get(g['id'], NO_PROGRESS)),
            inline=False,
        )
    embed.set_footer(text=random.choice(ROUTINE_TIPS))
    return embed
