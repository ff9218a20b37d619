DEFAULT_INSIGHTS_MODEL = 'gemini-2.0-flash'
DEFAULT_TIMER_TICK_SECONDS = 1.0
DEFAULT_REVIEW_REFRESH_SECONDS = 15.0
DEFAULT_EVIDENCE_MAX_BYTES = 8 * 1024 * 1024

INSIGHTS_HISTORY_LIMIT = 50
INSIGHTS_MIN_ACTIVITIES = 3

# Discord caps selects and embeds at 25 entries
REVIEW_QUEUE_LIMIT = 25

# Ticks between edits of the tracking message (Discord rate-limits edits)
TRACKING_EDIT_EVERY_TICKS = 15

EVIDENCE_CONTENT_TYPES = (
    'image/png',
    'image/jpeg',
    'image/gif',
    'image/webp',
    'application/pdf',
    'text/plain',
)

STATUS_EMOJI = {
    'pending': '⏳',
    'validated': '✅',
    'rejected': '❌',
}

TYPE_EMOJI = {
    'Study': '📚',
    'Workout': '🏋️',
    'Break': '☕',
}

ROUTINE_TIPS = [
    'Small sessions logged every day beat one heroic session a week.',
    'A break is part of the routine, not a gap in it.',
    'Set goals you can hit this week, then raise them.',
    'Validated sessions are the ones that count toward your goals.',
    'Attach evidence to help reviewers validate your sessions faster.',
    'Consistency first, intensity second.',
    'Short, focused study blocks tend to outlast long unfocused ones.',
]
