import asyncio

import pytest

from conftest import make_activity
from smartroutine.cogs.tracking_cog import TrackingCog
from smartroutine.components.activities import (
    activity_line,
    activity_title,
    recent_embed,
    recorded_message,
    tracking_text,
)
from smartroutine.components.goals import goals_embed
from smartroutine.components.insights import insights_embed
from smartroutine.components.review import ReviewView
from smartroutine.components.statistics import stats_embed
from smartroutine.errors import ValidationError
from smartroutine.models.types import ActivityStatus, ActivityType
from smartroutine.models.user import User
from smartroutine.services.insights import INSUFFICIENT_DATA
from smartroutine.services.progress import GoalProgress
from smartroutine.services.recorder import ActivityRecorder
from smartroutine.services.statistics import weekly_statistics
from smartroutine.utils.embeds import error_text, notify


def test_tracking_text_shows_timer_and_evidence():
    text = tracking_text('Read', 'Study', 3_723_000, evidence=True)
    assert '`01:02:03`' in text
    assert 'Evidence ready' in text


def test_activity_line_includes_status_details_and_evidence():
    line = activity_line(
        make_activity(status='pending', evidence_url='https://files.test/a.png')
    )
    assert '⏳ 30 min · Pending' in line
    assert 'focus level: full' in line
    assert '(https://files.test/a.png)' in line


def test_recorded_message():
    assert 'pending review' in recorded_message(make_activity(name='Legs'))


def test_recent_embed_has_field_per_activity():
    embed = recent_embed([make_activity(id=1), make_activity(id=2, name='Run')])
    assert len(embed.fields) == 2
    assert embed.fields[1].name.startswith('2. ')


def test_goals_embed_renders_progress():
    goal = {
        'id': 7,
        'title': 'Study daily',
        'goal_type': 'daily_duration',
        'activity_category': 'Study',
        'target_value': 60,
        'status': 'active',
    }
    embed = goals_embed('ana', [goal], {7: GoalProgress(50.0, 30)})
    assert '50%' in embed.fields[0].value
    assert '30 / 60 min today' in embed.fields[0].value


def test_goals_embed_without_goals():
    assert '/goal_add' in goals_embed('ana', [], {}).description


def test_insights_embed_message_when_not_ok():
    assert insights_embed(INSUFFICIENT_DATA).description == INSUFFICIENT_DATA.message


def test_stats_embed_empty_week():
    embed = stats_embed('ana', weekly_statistics([]))
    assert 'No validated activities' in embed.description


def test_error_text_uses_title():
    assert error_text(ValidationError('Name missing')) == '❌ **Invalid input**: Name missing'


class _Response:
    def __init__(self, done):
        self._done = done
        self.sent = []

    def is_done(self):
        return self._done

    async def send_message(self, content, **kwargs):
        self.sent.append((content, kwargs))


class _Followup:
    def __init__(self):
        self.sent = []

    async def send(self, content, **kwargs):
        self.sent.append((content, kwargs))


class _Interaction:
    def __init__(self, done):
        self.response = _Response(done)
        self.followup = _Followup()


def test_notify_replies_ephemerally():
    interaction = _Interaction(done=False)
    asyncio.run(notify(interaction, 'hi'))
    assert interaction.response.sent == [('hi', {'ephemeral': True})]


def test_notify_uses_followup_after_defer():
    interaction = _Interaction(done=True)
    asyncio.run(notify(interaction, 'hi'))
    assert interaction.followup.sent == [('hi', {'ephemeral': True})]


def test_activity_text_from_enum_members():
    row = make_activity(activity_type=ActivityType.WORKOUT, status=ActivityStatus.PENDING)
    assert activity_title(row).endswith('Read · Workout')
    assert 'Pending' in activity_line(row)


class _FlakyMessage:
    def __init__(self):
        self.fail_next = True
        self.edits = 0

    async def edit(self, **kwargs):
        if self.fail_next:
            self.fail_next = False
            raise RuntimeError('edit rejected')
        self.edits += 1


def test_review_redraws_snapshot_after_failed_edit(monkeypatch):
    monkeypatch.setattr(User, 'usernames', lambda ids: {1001: 'ana'})
    queue = [make_activity(status='pending')]

    async def scenario():
        view = ReviewView(reviewer_id=9)
        view.message = _FlakyMessage()
        with pytest.raises(RuntimeError):
            await view.refresh(queue)
        await view.refresh(queue)
        await view.refresh(queue)
        return view.message.edits

    assert asyncio.run(scenario()) == 1


def test_status_text_for_idle_recorder():
    text = TrackingCog._status_text(ActivityRecorder(1001))
    assert '00:00:00' in text
