import unittest.mock
from datetime import datetime, timezone
from uuid import uuid4

import asyncpg
import pytest

from privacy_gate.domain.privacy.exceptions import GatewayError
from privacy_gate.domain.privacy.gateway import PostgresGateway
from privacy_gate.infra import postgres


@pytest.fixture
def mock_conn(monkeypatch):
    conn = unittest.mock.AsyncMock()
    pool = unittest.mock.MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn

    async def _mock_get_pool():
        return pool

    monkeypatch.setattr(postgres, "get_pool", _mock_get_pool)
    return conn


@pytest.mark.asyncio
async def test_get_user_maps_row(mock_conn):
    user_id = uuid4()
    mock_conn.fetchrow.return_value = {"id": user_id, "username": "alice", "role": "student", "interest": None}

    user = await PostgresGateway().get_user(str(user_id))

    assert user.id == str(user_id)
    assert user.username == "alice"
    assert user.interest is None
    args = mock_conn.fetchrow.call_args.args
    assert "FROM users" in args[0]
    assert args[1] == str(user_id)


@pytest.mark.asyncio
async def test_get_user_missing(mock_conn):
    mock_conn.fetchrow.return_value = None
    assert await PostgresGateway().get_user("nope") is None


@pytest.mark.asyncio
async def test_privacy_settings_default_visibility(mock_conn):
    mock_conn.fetchrow.return_value = {
        "user_id": "u1",
        "profile_visibility": None,
        "is_anon": True,
        "anon_username": "Ghost",
    }

    record = await PostgresGateway().get_privacy_settings("u1")

    assert record.profile_visibility == "public"
    assert record.is_anon is True
    assert record.display_anon_name == "Ghost"


@pytest.mark.asyncio
async def test_upsert_passes_visibility_through(mock_conn):
    mock_conn.fetchrow.return_value = {
        "user_id": "u1",
        "profile_visibility": "private",
        "is_anon": False,
        "anon_username": None,
    }

    record = await PostgresGateway().upsert_privacy_settings(
        "u1", is_anon=False, anon_username=None, profile_visibility="private"
    )

    assert record.profile_visibility == "private"
    query, *params = mock_conn.fetchrow.call_args.args
    assert "ON CONFLICT (user_id)" in query
    assert params == ["u1", "private", False, None]


@pytest.mark.asyncio
async def test_is_blocked_is_directional(mock_conn):
    mock_conn.fetchrow.return_value = {"?column?": 1}
    assert await PostgresGateway().is_blocked("a", "b") is True
    assert mock_conn.fetchrow.call_args.args[1:] == ("a", "b")

    mock_conn.fetchrow.return_value = None
    assert await PostgresGateway().is_blocked("b", "a") is False


@pytest.mark.asyncio
async def test_are_friends_uses_accepted_status(mock_conn):
    mock_conn.fetchrow.return_value = None
    assert await PostgresGateway().are_friends("a", "b") is False
    assert mock_conn.fetchrow.call_args.args[1:] == ("a", "b", "accepted")


@pytest.mark.asyncio
async def test_get_event_maps_row(mock_conn):
    mock_conn.fetchrow.return_value = {"id": 7, "creator_id": 3, "is_public": 0}

    event = await PostgresGateway().get_event("7")

    assert (event.id, event.creator_id, event.is_public) == ("7", "3", False)


@pytest.mark.asyncio
async def test_get_attendees_maps_rows(mock_conn):
    mock_conn.fetch.return_value = [
        {
            "id": 1,
            "event_id": 9,
            "user_id": 4,
            "is_anon": True,
            "anon_username": "Shadow",
            "username": "bob",
            "role": "student",
            "interest": "chess",
        }
    ]

    [attendee] = await PostgresGateway().get_attendees("9")

    assert attendee.id == "1"
    assert attendee.user.id == "4"
    assert attendee.user.username == "bob"
    assert attendee.is_anon is True
    assert attendee.anon_username == "Shadow"


@pytest.mark.asyncio
async def test_get_user_schedule_maps_rows(mock_conn):
    start = datetime(2030, 1, 1, 9, tzinfo=timezone.utc)
    mock_conn.fetch.return_value = [
        {
            "id": 1,
            "event_id": 2,
            "title": "Lecture",
            "description": None,
            "category": "class",
            "start_date": start,
            "end_date": None,
            "location": "Hall A",
            "is_public": True,
            "creator_id": None,
        }
    ]

    [entry] = await PostgresGateway().get_user_schedule("u1")

    assert entry.event_id == "2"
    assert entry.start_date == start
    assert entry.creator_id is None
    assert "ORDER BY e.start_date ASC" in mock_conn.fetch.call_args.args[0]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [asyncpg.PostgresError("boom"), asyncpg.InterfaceError("closed"), OSError("refused")],
)
async def test_storage_errors_become_gateway_errors(mock_conn, error):
    mock_conn.fetchrow.side_effect = error

    with pytest.raises(GatewayError) as exc_info:
        await PostgresGateway().is_attendee("u1", "e1")

    assert exc_info.value.operation == "is_attendee"
    assert str(exc_info.value) == "gateway_failure:is_attendee"
    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_pool_failure_becomes_gateway_error(monkeypatch):
    async def _no_pool():
        raise OSError("connection refused")

    monkeypatch.setattr(postgres, "get_pool", _no_pool)

    with pytest.raises(GatewayError):
        await PostgresGateway().get_attendees("e1")


@pytest.mark.asyncio
async def test_create_privacy_settings_inserts_without_overwriting(mock_conn):
    mock_conn.fetchrow.return_value = {
        "user_id": "u1",
        "profile_visibility": "public",
        "is_anon": False,
        "anon_username": None,
    }

    record = await PostgresGateway().create_privacy_settings("u1")

    assert record.is_anon is False
    query = mock_conn.fetchrow.call_args.args[0]
    assert "ON CONFLICT (user_id) DO NOTHING" in query
    assert "DO UPDATE" not in query


@pytest.mark.asyncio
async def test_create_privacy_settings_returns_existing_row(mock_conn):
    existing = {"user_id": "u1", "profile_visibility": "private", "is_anon": True, "anon_username": "Ghost"}
    mock_conn.fetchrow.side_effect = [None, existing]

    record = await PostgresGateway().create_privacy_settings("u1")

    assert record.is_anon is True
    assert record.anon_username == "Ghost"
    assert "FROM user_privacy_settings" in mock_conn.fetchrow.call_args.args[0]


@pytest.mark.asyncio
async def test_naive_schedule_timestamps_become_utc(mock_conn):
    mock_conn.fetch.return_value = [
        {
            "id": 1,
            "event_id": 2,
            "title": "Lecture",
            "start_date": datetime(2030, 1, 1, 9),
            "end_date": datetime(2030, 1, 1, 11),
            "is_public": True,
            "creator_id": 5,
        }
    ]

    [entry] = await PostgresGateway().get_user_schedule("u1")

    assert entry.start_date == datetime(2030, 1, 1, 9, tzinfo=timezone.utc)
    assert entry.end_date.tzinfo is timezone.utc
