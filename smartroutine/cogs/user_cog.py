import logging

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from smartroutine.models.types import Role, enum_text
from smartroutine.models.user import User

logger = logging.getLogger(__name__)


class UserCog(commands.Cog):
    '''Cog for handling user registration and profile management.'''

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name='register', description='Create your SmartRoutine profile')
    @app_commands.describe(
        email='Email address for your profile',
        username='Optional: name to show (default: your display name)',
    )
    async def register(
        self, interaction: Interaction, email: str, username: str | None = None
    ):
        User.register(
            interaction.user.id, username or interaction.user.display_name, email
        )
        await interaction.response.send_message(
            f'🎉 {interaction.user.mention}, you’ve been registered successfully!',
            ephemeral=True,
        )

    @app_commands.command(
        name='profile', description="Show your profile or another member's profile"
    )
    @app_commands.describe(member='Optional: The member whose profile you want to view')
    async def profile(
        self, interaction: Interaction, member: discord.Member | None = None
    ):
        target = member or interaction.user
        user = User.get_profile(target.id)
        if not user:
            await interaction.response.send_message(
                f'⚠️ {target.mention} isn’t registered yet.', ephemeral=True
            )
            return

        embed = discord.Embed(
            title=f"{user['username']}'s Profile", color=discord.Color.blurple()
        )
        embed.add_field(name='Role', value=enum_text(user['role']).capitalize())
        if target.id == interaction.user.id:
            embed.add_field(name='Email', value=user['email'])
        embed.add_field(
            name='Member since',
            value=discord.utils.format_dt(user['created_at'], style='D'),
        )
        embed.set_thumbnail(url=target.display_avatar.url)
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(
        name='promote', description='Admin-only command to grant or revoke reviewer access.'
    )
    @app_commands.describe(member='Member to change', role='New role')
    @app_commands.choices(
        role=[
            app_commands.Choice(name='Reviewer (admin)', value=Role.ADMIN.value),
            app_commands.Choice(name='User', value=Role.USER.value),
        ]
    )
    @app_commands.checks.has_permissions(administrator=True)
    async def promote(
        self,
        interaction: Interaction,
        member: discord.Member,
        role: app_commands.Choice[str],
    ):
        User.set_role(member.id, role.value)
        logger.info(f'{interaction.user.id} set role of {member.id} to {role.value}')
        await interaction.response.send_message(
            f'✅ {member.mention} is now **{role.name}**.', ephemeral=True
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(UserCog(bot))
