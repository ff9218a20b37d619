from datetime import datetime
from typing import Any, Mapping

import discord

from smartroutine.models.types import enum_text
from smartroutine.utils.constants import STATUS_EMOJI, TYPE_EMOJI
from smartroutine.utils.helper import format_elapsed


def _when(value: Any) -> str:
    if isinstance(value, datetime):
        return discord.utils.format_dt(value, style='R')
    return str(value)


def describe_details(details: Mapping[str, Any] | None) -> str:
    if not details:
        return ''
    return ' · '.join(f'{k.replace("_", " ")}: {v}' for k, v in details.items())


def activity_line(activity: Mapping[str, Any]) -> str:
    status = enum_text(activity['status'])
    line = (
        f'{STATUS_EMOJI.get(status, "")} {activity["duration_minutes"]} min · '
        f'{status.capitalize()} · {_when(activity.get("created_at"))}'
    )
    details = describe_details(activity.get('details'))
    if details:
        line += f'\n{details}'
    if activity.get('evidence_url'):
        line += f'\n📎 [Evidence]({activity["evidence_url"]})'
    return line


def activity_title(activity: Mapping[str, Any]) -> str:
    atype = enum_text(activity['activity_type'])
    return f'{TYPE_EMOJI.get(atype, "")} {activity["name"]} · {atype}'


def recorded_message(activity: Mapping[str, Any]) -> str:
    message = (
        f'✅ Saved **{activity["name"]}** for {activity["duration_minutes"]} min. '
        'It is pending review.'
    )
    if activity.get('evidence_url'):
        message += '\n📎 Evidence attached.'
    return message


def tracking_text(name: str, activity_type: str, elapsed_ms: int, evidence: bool) -> str:
    text = (
        f'{TYPE_EMOJI.get(activity_type, "⏱️")} Tracking **{name}** ({activity_type})\n'
        f'⏱️ `{format_elapsed(elapsed_ms)}`'
    )
    if evidence:
        text += '\n📎 Evidence ready to upload'
    text += '\nUse `/evidence` to attach proof, `/finish` to save, or `/cancel`.'
    return text


def recent_embed(rows: list[dict[str, Any]]) -> discord.Embed:
    embed = discord.Embed(
        title=f'Recent Activities (showing {len(rows)})',
        color=discord.Color.blurple(),
    )
    for idx, r in enumerate(rows, start=1):
        embed.add_field(
            name=f'{idx}. {activity_title(r)}', value=activity_line(r), inline=False
        )
    return embed
