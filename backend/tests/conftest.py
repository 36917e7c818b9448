"""
Shared fakes for the bridge tests.

Discord objects are stood in for by small classes exposing only what the bridge touches
(id, parent_id, name, send, history, author.bot); no gateway connection is made.
"""
import itertools
from types import SimpleNamespace

import pytest

from bridge.audit import AuditLog

FORUM_ID = 1100
OTHER_FORUM_ID = 2200

_message_ids = itertools.count(1)


class RecordingAudit(AuditLog):
    """AuditLog that keeps events in memory."""

    def __init__(self) -> None:
        super().__init__(None, name="bridge.audit.test")
        self.events: list[str] = []

    def event(self, message: str, *args: object) -> None:
        self.events.append(message % args if args else message)


class FakeThread:
    """
    Thread with an append-only message list.
    hide_bot_messages_for: number of history() passes during which bot messages are not yet visible.
    """

    def __init__(self, id=500, parent_id=FORUM_ID, name="Help: login broken", *, hide_bot_messages_for=0):
        self.id = id
        self.parent_id = parent_id
        self.name = name
        self.messages: list[SimpleNamespace] = []
        self.sent: list[str] = []
        self.history_calls = 0
        self.hide_bot_messages_for = hide_bot_messages_for

    def add(self, content: str, *, bot: bool = False) -> SimpleNamespace:
        message = SimpleNamespace(
            id=next(_message_ids),
            content=content,
            author=SimpleNamespace(bot=bot),
            channel=self,
        )
        self.messages.append(message)
        return message

    async def send(self, content: str) -> SimpleNamespace:
        self.sent.append(content)
        return self.add(content, bot=True)

    async def history(self, limit=100, oldest_first=False):
        self.history_calls += 1
        visible = self.history_calls > self.hide_bot_messages_for
        messages = self.messages if oldest_first else list(reversed(self.messages))
        for m in messages[:limit]:
            if m.author.bot and not visible:
                continue
            yield m


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def audit():
    return RecordingAudit()


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def thread():
    return FakeThread()
