import pytest

from bridge.services.correlation import (
    ConsistencyPolicy,
    CorrelationStore,
    format_marker,
    parse_marker,
)
from bridge.storage.db import close_db, get_session, init_db
from bridge.storage.repositories import link_get

from conftest import FakeThread


@pytest.fixture
async def database(tmp_path):
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'links.db'}")
    yield
    await close_db()


def test_marker_format_and_parse():
    assert format_marker("555") == "ZENDESK_TICKET_ID:555"
    assert parse_marker("ZENDESK_TICKET_ID:555") == "555"
    assert parse_marker("ZENDESK_TICKET_ID: 555 ") == "555"
    assert parse_marker("ZENDESK_TICKET_ID:") is None
    assert parse_marker("still broken") is None
    assert parse_marker(None) is None


def test_policy_rejects_zero_attempts():
    with pytest.raises(ValueError):
        ConsistencyPolicy(attempts=0)


async def test_record_posts_marker(thread):
    store = CorrelationStore()
    await store.record(thread, "555")
    assert thread.sent == ["ZENDESK_TICKET_ID:555"]


async def test_scan_ignores_markers_typed_by_humans(thread):
    thread.add("ZENDESK_TICKET_ID:999", bot=False)
    thread.add("ZENDESK_TICKET_ID:555", bot=True)
    store = CorrelationStore()
    assert await store.scan_marker(thread) == "555"


async def test_scan_takes_earliest_bot_marker(thread):
    thread.add("ZENDESK_TICKET_ID:555", bot=True)
    thread.add("hello", bot=False)
    thread.add("ZENDESK_TICKET_ID:777", bot=True)
    store = CorrelationStore()
    assert await store.scan_marker(thread) == "555"


async def test_resolve_first_attempt(thread, sleep):
    thread.add("ZENDESK_TICKET_ID:555", bot=True)
    store = CorrelationStore(ConsistencyPolicy(attempts=3, retry_delay=1.0), sleep=sleep)
    assert await store.resolve(thread) == "555"
    assert thread.history_calls == 1
    assert sleep.calls == []


async def test_resolve_waits_for_late_marker(sleep):
    thread = FakeThread(hide_bot_messages_for=2)
    thread.add("ZENDESK_TICKET_ID:555", bot=True)
    store = CorrelationStore(ConsistencyPolicy(attempts=3, retry_delay=1.0), sleep=sleep)

    assert await store.resolve(thread) == "555"
    assert thread.history_calls == 3
    assert sleep.calls == [1.0, 1.0]


async def test_resolve_gives_up_after_three_attempts(thread, sleep):
    thread.add("no marker here", bot=False)
    store = CorrelationStore(ConsistencyPolicy(attempts=3, retry_delay=1.0), sleep=sleep)

    assert await store.resolve(thread) is None
    assert thread.history_calls == 3
    # No wait after the last attempt
    assert sleep.calls == [1.0, 1.0]


async def test_resolve_respects_configured_attempts(thread, sleep):
    store = CorrelationStore(ConsistencyPolicy(attempts=5, retry_delay=0.25), sleep=sleep)
    assert await store.resolve(thread) is None
    assert thread.history_calls == 5
    assert sleep.calls == [0.25] * 4


async def test_record_saves_link_and_resolve_reads_it_without_scanning(database, thread, sleep):
    store = CorrelationStore(session_factory=get_session, sleep=sleep)
    await store.record(thread, "555")

    async with get_session() as session:
        link = await link_get(session, str(thread.id))
    assert link.ticket_id == "555"

    thread.history_calls = 0
    assert await store.resolve(thread) == "555"
    assert thread.history_calls == 0
    assert sleep.calls == []


async def test_marker_found_by_scan_is_backfilled(database, thread, sleep):
    thread.add("ZENDESK_TICKET_ID:42", bot=True)
    store = CorrelationStore(session_factory=get_session, sleep=sleep)

    assert await store.resolve(thread) == "42"
    async with get_session() as session:
        link = await link_get(session, str(thread.id))
    assert link is not None and link.ticket_id == "42"


async def test_failed_marker_leaves_no_link(database, thread):
    async def send(content):
        raise RuntimeError("Missing Permissions")

    thread.send = send
    store = CorrelationStore(session_factory=get_session)

    with pytest.raises(RuntimeError):
        await store.record(thread, "555")

    async with get_session() as session:
        assert await link_get(session, str(thread.id)) is None
