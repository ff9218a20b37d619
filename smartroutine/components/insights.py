import discord

from smartroutine.services.insights import InsightResult


def insights_embed(result: InsightResult) -> discord.Embed:
    if not result.ok or result.insights is None:
        return discord.Embed(
            title='🤖 SmartRoutine AI',
            description=result.message,
            color=discord.Color.light_grey(),
        )

    embed = discord.Embed(title='🤖 SmartRoutine AI', color=discord.Color.blurple())
    for icon, item in (
        ('📅', result.insights.consistency),
        ('🎯', result.insights.focus),
        ('☕', result.insights.rest),
    ):
        embed.add_field(name=f'{icon} {item.title}', value=item.description[:1024], inline=False)
    embed.set_footer(text='Run /insights again to refresh.')
    return embed
