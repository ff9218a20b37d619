from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Literal, Mapping, Optional, Protocol

import pydantic
from google import genai
from google.genai import types as genai_types
from pydantic import BaseModel, Field

from smartroutine.errors import GenerationError
from smartroutine.models.types import enum_text
from smartroutine.utils.constants import (
    DEFAULT_INSIGHTS_MODEL,
    INSIGHTS_HISTORY_LIMIT,
    INSIGHTS_MIN_ACTIVITIES,
)
from smartroutine.utils.tracing import trace_span

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA_MESSAGE = (
    'Log a few more activities to unlock your personal AI insights!'
)
UNAVAILABLE_MESSAGE = 'Could not fetch AI insights at this time.'

PROMPT_TEMPLATE = '''You are a productivity expert called "SmartRoutine AI". \
Analyse the activity history below and give a smart analysis split into three \
parts: consistency, study focus, and rest time.

Give a title and a description for each part. Keep the analysis short and \
clear, and give advice the user can act on.

User activity history:
{history}
'''


class InsightItem(BaseModel):
    title: str = Field(min_length=1, description='The title of the insight.')
    description: str = Field(
        min_length=1, description='The detailed description of the insight.'
    )


class ProductivityInsights(BaseModel):
    consistency: InsightItem = Field(
        description="Insight about the user's consistency in performing activities."
    )
    focus: InsightItem = Field(
        description="Insight about the user's study/work focus patterns."
    )
    rest: InsightItem = Field(
        description="Insight about the user's rest and break patterns."
    )


INSIGHT_KEYS = set(ProductivityInsights.model_fields)


@dataclass(frozen=True)
class InsightResult:
    status: Literal['ok', 'insufficient_data', 'unavailable']
    insights: Optional[ProductivityInsights] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == 'ok'


INSUFFICIENT_DATA = InsightResult('insufficient_data', message=INSUFFICIENT_DATA_MESSAGE)
UNAVAILABLE = InsightResult('unavailable', message=UNAVAILABLE_MESSAGE)


class InsightGenerator(Protocol):
    def generate(
        self, user_id: int | str, history: list[dict[str, Any]]
    ) -> ProductivityInsights: ...


def summarize_activity(activity: Mapping[str, Any]) -> dict[str, Any]:
    '''The subset of an activity the model gets to see.'''
    created = activity.get('created_at')
    return {
        'name': activity['name'],
        'type': enum_text(activity['activity_type']),
        'duration_minutes': int(activity['duration_minutes']),
        'details': dict(activity.get('details') or {}),
        'created_at': created.isoformat() if isinstance(created, datetime) else str(created),
    }


def render_prompt(history: list[dict[str, Any]]) -> str:
    lines = [
        f'- Activity: {h["name"]}, Type: {h["type"]}, '
        f'Duration: {h["duration_minutes"]} minutes, '
        f'Details: {json.dumps(h["details"], sort_keys=True)}, '
        f'Date: {h["created_at"]}'
        for h in history
    ]
    return PROMPT_TEMPLATE.format(history='\n'.join(lines))


def parse_insights(text: Optional[str]) -> ProductivityInsights:
    '''Validate model output. Accepts the bare object or {"insights": {...}}.'''
    if not text:
        raise GenerationError('The model returned an empty response.')
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise GenerationError('The model returned invalid JSON.') from e
    if isinstance(data, dict) and set(data) == {'insights'}:
        data = data['insights']
    if not isinstance(data, dict) or set(data) != INSIGHT_KEYS:
        raise GenerationError('The model output did not match the insight shape.')
    try:
        return ProductivityInsights.model_validate(data)
    except pydantic.ValidationError as e:
        raise GenerationError('The model output did not match the insight shape.') from e


class GeminiInsightGenerator:
    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_INSIGHTS_MODEL,
        temperature: float = 0.4,
        client: Optional[genai.Client] = None,
    ):
        self.model = model
        self.temperature = temperature
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise GenerationError('GEMINI_API_KEY (or GOOGLE_API_KEY) is not set.')
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    def generate(
        self, user_id: int | str, history: list[dict[str, Any]]
    ) -> ProductivityInsights:
        prompt = render_prompt(history)
        config = genai_types.GenerateContentConfig(
            response_mime_type='application/json',
            response_schema=ProductivityInsights,
            temperature=self.temperature,
        )
        try:
            response = self.client.models.generate_content(
                model=self.model, contents=prompt, config=config
            )
        except GenerationError:
            raise
        except Exception as e:
            logger.warning(f'Gemini call failed for user {user_id}: {type(e).__name__}: {e}')
            raise GenerationError('The insight model could not be reached.') from e

        feedback = getattr(response, 'prompt_feedback', None)
        if feedback is not None and getattr(feedback, 'block_reason', None):
            raise GenerationError(f'Prompt blocked by the model: {feedback.block_reason}')
        return parse_insights(response.text)


class InsightRequestBuilder:
    def __init__(
        self,
        generator: InsightGenerator,
        history_limit: int = INSIGHTS_HISTORY_LIMIT,
        min_activities: int = INSIGHTS_MIN_ACTIVITIES,
    ):
        self.generator = generator
        self.history_limit = history_limit
        self.min_activities = min_activities

    def build(
        self, user_id: int | str, recent_activities: Iterable[Mapping[str, Any]]
    ) -> InsightResult:
        history = [summarize_activity(a) for a in recent_activities][: self.history_limit]
        if len(history) < self.min_activities:
            return INSUFFICIENT_DATA

        with trace_span('insights.generate', {'user_id': user_id, 'rows': len(history)}):
            try:
                insights = self.generator.generate(user_id, history)
            except GenerationError as e:
                logger.warning(f'Insights unavailable for user {user_id}: {e}')
                return UNAVAILABLE
        return InsightResult('ok', insights=insights)
