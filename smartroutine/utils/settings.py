'''Typed runtime settings read from the environment.

``load_env()`` fills the environment from the ``.env*`` file first; this module
only reads variables, case-insensitively by field name.
'''
from functools import lru_cache
from typing import Literal, Optional

import pendulum
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from smartroutine.utils.constants import (
    DEFAULT_EVIDENCE_MAX_BYTES,
    DEFAULT_INSIGHTS_MODEL,
    DEFAULT_REVIEW_REFRESH_SECONDS,
    DEFAULT_TIMER_TICK_SECONDS,
)

DurationPolicy = Literal['clamp', 'floor']


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
        env_ignore_empty=True,
        populate_by_name=True,
    )

    # Discord
    discord_token: Optional[str] = Field(default=None, repr=False)
    guild_id: Optional[int] = None

    # Storage
    database_url: Optional[str] = Field(default=None, repr=False)
    evidence_storage_url: Optional[str] = None
    evidence_storage_token: Optional[str] = Field(default=None, repr=False)
    evidence_max_bytes: int = Field(default=DEFAULT_EVIDENCE_MAX_BYTES, gt=0)

    # Insights
    gemini_api_key: Optional[str] = Field(
        default=None,
        repr=False,
        validation_alias=AliasChoices('GEMINI_API_KEY', 'GOOGLE_API_KEY'),
    )
    insights_model: str = DEFAULT_INSIGHTS_MODEL

    # Tracking and review
    local_timezone: str = 'UTC'
    duration_policy: DurationPolicy = 'clamp'
    timer_tick_seconds: float = Field(default=DEFAULT_TIMER_TICK_SECONDS, gt=0)
    review_refresh_seconds: float = Field(default=DEFAULT_REVIEW_REFRESH_SECONDS, gt=0)

    @field_validator('duration_policy', mode='before')
    @classmethod
    def _lower_policy(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator('local_timezone')
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError):
            raise ValueError(f'LOCAL_TIMEZONE {value!r} is not a known timezone') from None
        return value

    @classmethod
    def from_env(cls) -> 'Settings':
        return cls()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    '''Process-wide settings, read once after load_env().'''
    return Settings.from_env()
