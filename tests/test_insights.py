import json
from types import SimpleNamespace

import pytest

from conftest import make_activity
from smartroutine.errors import GenerationError
from smartroutine.services.insights import (
    INSUFFICIENT_DATA_MESSAGE,
    UNAVAILABLE_MESSAGE,
    GeminiInsightGenerator,
    InsightRequestBuilder,
    ProductivityInsights,
    parse_insights,
    render_prompt,
    summarize_activity,
)

VALID = {
    'consistency': {'title': 'Steady', 'description': 'You log something most days.'},
    'focus': {'title': 'Deep work', 'description': 'Mornings are your best study time.'},
    'rest': {'title': 'Breaks', 'description': 'Take a short break every hour.'},
}


class FakeGenerator:
    def __init__(self, result=None, error=None):
        self.calls: list[tuple] = []
        self.result = result or ProductivityInsights.model_validate(VALID)
        self.error = error

    def generate(self, user_id, history):
        self.calls.append((user_id, history))
        if self.error:
            raise self.error
        return self.result


def _history(n):
    return [make_activity(id=i, name=f'Session {i}') for i in range(n)]


def test_two_activities_is_insufficient_without_calling_model():
    gen = FakeGenerator()
    result = InsightRequestBuilder(gen).build(1001, _history(2))
    assert result.status == 'insufficient_data'
    assert result.message == INSUFFICIENT_DATA_MESSAGE
    assert len(gen.calls) == 0


def test_three_activities_returns_insights():
    gen = FakeGenerator()
    result = InsightRequestBuilder(gen).build(1001, _history(3))
    assert result.ok
    assert set(result.insights.model_dump()) == {'consistency', 'focus', 'rest'}
    assert len(gen.calls) == 1


def test_history_is_capped_at_fifty():
    gen = FakeGenerator()
    InsightRequestBuilder(gen).build(1001, _history(80))
    _, history = gen.calls[0]
    assert len(history) == 50
    assert history[0]['name'] == 'Session 0'


def test_generation_failure_is_unavailable():
    gen = FakeGenerator(error=GenerationError('quota'))
    result = InsightRequestBuilder(gen).build(1001, _history(5))
    assert result.status == 'unavailable'
    assert result.message == UNAVAILABLE_MESSAGE
    assert result.insights is None


def test_summarize_activity_keeps_model_facing_fields():
    summary = summarize_activity(make_activity(evidence_url='https://x/y.png'))
    assert summary == {
        'name': 'Read',
        'type': 'Study',
        'duration_minutes': 30,
        'details': {'focus_level': 'full', 'priority': 'high'},
        'created_at': '2026-10-14T15:00:00+00:00',
    }


def test_render_prompt_lists_each_activity():
    prompt = render_prompt([summarize_activity(a) for a in _history(3)])
    assert prompt.count('- Activity: Session') == 3
    assert 'consistency' in prompt


@pytest.mark.parametrize('payload', [VALID, {'insights': VALID}])
def test_parse_insights_accepts_bare_or_wrapped(payload):
    parsed = parse_insights(json.dumps(payload))
    assert parsed.focus.title == 'Deep work'


@pytest.mark.parametrize(
    'text',
    [
        None,
        '',
        'not json',
        json.dumps(['a']),
        json.dumps({k: v for k, v in VALID.items() if k != 'rest'}),
        json.dumps({**VALID, 'mood': {'title': 't', 'description': 'd'}}),
        json.dumps({**VALID, 'rest': {'title': 'Breaks', 'description': ''}}),
    ],
)
def test_parse_insights_rejects_nonconforming(text):
    with pytest.raises(GenerationError):
        parse_insights(text)


class _FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs = None

    def generate_content(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return self.response


def _client(models):
    return SimpleNamespace(models=models)


def test_gemini_generator_requests_json_schema():
    models = _FakeModels(SimpleNamespace(text=json.dumps(VALID), prompt_feedback=None))
    gen = GeminiInsightGenerator(api_key=None, model='m', client=_client(models))
    insights = gen.generate(1, [summarize_activity(make_activity())])

    assert insights.rest.title == 'Breaks'
    assert models.kwargs['model'] == 'm'
    config = models.kwargs['config']
    assert config.response_mime_type == 'application/json'
    assert config.response_schema is ProductivityInsights


def test_gemini_generator_wraps_client_errors():
    models = _FakeModels(error=RuntimeError('503'))
    gen = GeminiInsightGenerator(api_key=None, client=_client(models))
    with pytest.raises(GenerationError):
        gen.generate(1, [])


def test_gemini_generator_reports_blocked_prompt():
    feedback = SimpleNamespace(block_reason='SAFETY')
    models = _FakeModels(SimpleNamespace(text=None, prompt_feedback=feedback))
    gen = GeminiInsightGenerator(api_key=None, client=_client(models))
    with pytest.raises(GenerationError, match='SAFETY'):
        gen.generate(1, [])


def test_gemini_generator_needs_api_key():
    gen = GeminiInsightGenerator(api_key=None)
    with pytest.raises(GenerationError):
        gen.client
