import discord

from smartroutine.services.statistics import WeeklyStatistics
from smartroutine.utils.constants import TYPE_EMOJI
from smartroutine.utils.helper import progress_bar


def stats_embed(username: str, stats: WeeklyStatistics) -> discord.Embed:
    embed = discord.Embed(
        title=f'📊 {username}\'s Week', color=discord.Color.blurple()
    )
    if stats.is_empty:
        embed.description = 'No validated activities in the last 7 days.'
        return embed

    peak = max(d.total for d in stats.daily) or 1
    lines = [
        f'`{d.name}` `{progress_bar(d.total / peak * 100)}` {d.total} min'
        for d in stats.daily
    ]
    embed.add_field(name='Daily minutes', value='\n'.join(lines), inline=False)
    embed.add_field(
        name='By type',
        value='\n'.join(
            f'{TYPE_EMOJI.get(t, "")} {t}: {m} min' for t, m in stats.by_type.items()
        ),
        inline=False,
    )
    embed.add_field(name='Total', value=f'{stats.total_minutes} min')
    embed.add_field(
        name='Best day', value=f'{stats.best_day.name} ({stats.best_day.total} min)'
    )
    embed.add_field(name='Most time on', value=stats.most_frequent_type)
    return embed
