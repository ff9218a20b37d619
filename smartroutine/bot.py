import logging
import pathlib

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from smartroutine.database.db_manager import DBManager
from smartroutine.errors import SmartRoutineError
from smartroutine.services.evidence_storage import EvidenceStorage
from smartroutine.services.insights import GeminiInsightGenerator, InsightRequestBuilder
from smartroutine.utils.embeds import notify, notify_error
from smartroutine.utils.env import load_env
from smartroutine.utils.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def get_intents() -> discord.Intents:
    intents = discord.Intents.default()
    intents.members = True
    return intents


class SmartRoutineTree(app_commands.CommandTree):
    '''Turns every command failure into an ephemeral notice.'''

    async def on_error(self, interaction: Interaction, error: app_commands.AppCommandError):
        original = getattr(error, 'original', error)
        if isinstance(original, SmartRoutineError):
            await notify_error(interaction, original)
            return
        if isinstance(error, app_commands.CheckFailure):
            await notify(interaction, '❌ You do not have permission to use this command.')
            return

        command = interaction.command.name if interaction.command else 'unknown'
        logger.error(f'Unhandled error in /{command}', exc_info=error)
        try:
            await notify(interaction, '❌ Something went wrong. Please try again.')
        except discord.HTTPException:
            logger.warning(f'Could not report failure of /{command}', exc_info=True)


class SmartRoutineBot(commands.Bot):
    def __init__(self, settings: Settings):
        super().__init__(
            command_prefix='/', intents=get_intents(), tree_cls=SmartRoutineTree
        )
        self.settings = settings
        self.storage: EvidenceStorage | None = None
        if settings.evidence_storage_url:
            self.storage = EvidenceStorage(
                settings.evidence_storage_url, settings.evidence_storage_token
            )
        else:
            logger.warning('EVIDENCE_STORAGE_URL not set; evidence uploads disabled')
        self.insights = InsightRequestBuilder(
            GeminiInsightGenerator(settings.gemini_api_key, settings.insights_model)
        )

    async def setup_hook(self):
        cogs_path = pathlib.Path(__file__).parent / 'cogs'
        for file in sorted(cogs_path.glob('*_cog.py')):
            module = f'smartroutine.cogs.{file.stem}'
            try:
                await self.load_extension(module)
                logger.info(f'Loaded {module}')
            except Exception:
                logger.error(f'Failed to load {module}', exc_info=True)

    async def on_ready(self):
        if self.settings.guild_id is None:
            raise RuntimeError('GUILD_ID not set in environment or .env')

        guild = discord.Object(id=self.settings.guild_id)
        self.tree.copy_global_to(guild=guild)
        await self.tree.sync(guild=guild)
        logger.info(f'Bot ready! Synced commands to guild {self.settings.guild_id}')


async def main():
    load_env()
    settings = get_settings()
    if not settings.discord_token:
        raise RuntimeError('DISCORD_TOKEN not set in environment or .env')

    # Initialize the Postgres connection pool once for the process
    DBManager.init_pool(settings.database_url)

    bot = SmartRoutineBot(settings)
    try:
        async with bot:
            await bot.start(settings.discord_token)
    except Exception:
        logger.error('Bot failed due to an exception', exc_info=True)
    finally:
        # Ensure DB connections are cleaned up on shutdown
        DBManager.close_pool()
