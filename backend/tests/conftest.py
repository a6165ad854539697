import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-privacy-gate-suite")

from privacy_gate.domain.privacy.exceptions import GatewayError
from privacy_gate.domain.privacy.models import (
	AttendeeRecord,
	EventRecord,
	FriendshipStatus,
	PrivacySettingsRecord,
	ScheduleEntry,
	UserRecord,
)
from privacy_gate.infra import postgres
from privacy_gate.settings import settings


class InMemoryGateway:
	"""PersistenceGateway double backed by plain dicts.

	Operations named in ``failing`` raise GatewayError, and every call is
	appended to ``calls`` so tests can assert which lookups happened.
	"""

	def __init__(self) -> None:
		self.users: dict[str, UserRecord] = {}
		self.settings: dict[str, PrivacySettingsRecord] = {}
		self.blocks: set[tuple[str, str]] = set()
		self.friendships: dict[tuple[str, str], str] = {}
		self.events: dict[str, EventRecord] = {}
		self.attendance: list[AttendeeRecord] = []
		self.schedules: dict[str, list[ScheduleEntry]] = {}
		self.failing: set[str] = set()
		self.calls: list[str] = []

	def _enter(self, operation: str) -> None:
		self.calls.append(operation)
		if operation in self.failing:
			raise GatewayError(operation)

	# seeding helpers
	def add_user(
		self,
		user_id: str,
		username: Optional[str] = None,
		*,
		visibility: Optional[str] = "public",
		is_anon: bool = False,
		anon_username: Optional[str] = None,
		role: str = "student",
		interest: str = "hiking",
	) -> UserRecord:
		user = UserRecord(id=user_id, username=username or f"user-{user_id}", role=role, interest=interest)
		self.users[user_id] = user
		if visibility is not None:
			self.settings[user_id] = PrivacySettingsRecord(
				user_id=user_id,
				profile_visibility=visibility,
				is_anon=is_anon,
				anon_username=anon_username,
			)
		return user

	def block(self, blocker_id: str, blocked_id: str) -> None:
		self.blocks.add((blocker_id, blocked_id))

	def befriend(self, user_a: str, user_b: str, status: str = FriendshipStatus.ACCEPTED.value) -> None:
		self.friendships[(user_a, user_b)] = status

	def add_event(self, event_id: str, creator_id: str, *, is_public: bool = True) -> EventRecord:
		event = EventRecord(id=event_id, creator_id=creator_id, is_public=is_public)
		self.events[event_id] = event
		return event

	def attend(
		self,
		user_id: str,
		event_id: str,
		*,
		is_anon: bool = False,
		anon_username: Optional[str] = None,
	) -> AttendeeRecord:
		record = AttendeeRecord(
			id=f"att-{len(self.attendance) + 1}",
			event_id=event_id,
			user=self.users[user_id],
			is_anon=is_anon,
			anon_username=anon_username,
		)
		self.attendance.append(record)
		return record

	def add_schedule_entry(self, user_id: str, entry: ScheduleEntry) -> None:
		self.schedules.setdefault(user_id, []).append(entry)

	# PersistenceGateway
	async def get_user(self, user_id):
		self._enter("get_user")
		return self.users.get(user_id)

	async def get_privacy_settings(self, user_id):
		self._enter("get_privacy_settings")
		return self.settings.get(user_id)

	async def create_privacy_settings(self, user_id):
		self._enter("create_privacy_settings")
		return self.settings.setdefault(user_id, PrivacySettingsRecord(user_id=user_id))

	async def upsert_privacy_settings(self, user_id, *, is_anon, anon_username, profile_visibility=None):
		self._enter("upsert_privacy_settings")
		existing = self.settings.get(user_id)
		visibility = profile_visibility or (existing.profile_visibility if existing else "public")
		record = PrivacySettingsRecord(
			user_id=user_id,
			profile_visibility=visibility,
			is_anon=is_anon,
			anon_username=anon_username,
		)
		self.settings[user_id] = record
		return record

	async def is_blocked(self, blocker_id, blocked_id):
		self._enter("is_blocked")
		return (blocker_id, blocked_id) in self.blocks

	async def are_friends(self, user_a, user_b, status="accepted"):
		self._enter("are_friends")
		for pair in ((user_a, user_b), (user_b, user_a)):
			if self.friendships.get(pair) == status:
				return True
		return False

	async def get_event(self, event_id):
		self._enter("get_event")
		return self.events.get(event_id)

	async def get_attendees(self, event_id):
		self._enter("get_attendees")
		return [record for record in self.attendance if record.event_id == event_id]

	async def is_attendee(self, user_id, event_id):
		self._enter("is_attendee")
		return any(r.user.id == user_id and r.event_id == event_id for r in self.attendance)

	async def get_user_schedule(self, user_id):
		self._enter("get_user_schedule")
		return list(self.schedules.get(user_id, []))


def _make_entry(
	event_id: str,
	*,
	days: int,
	is_public: bool = True,
	creator_id: str = "creator",
	hours: int = 2,
) -> ScheduleEntry:
	start = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc) + timedelta(days=days)
	return ScheduleEntry(
		id=f"sched-{event_id}",
		event_id=event_id,
		title=f"Event {event_id}",
		start_date=start,
		end_date=start + timedelta(hours=hours),
		description="",
		category="social",
		location="Campus",
		is_public=is_public,
		creator_id=creator_id,
	)


@pytest.fixture
def gateway():
	return InMemoryGateway()


@pytest.fixture
def make_entry():
	return _make_entry


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""API tests authenticate via X-User-Id, which is only accepted in dev mode."""
	previous_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = previous_env


@pytest_asyncio.fixture
async def api_client(gateway):
	from privacy_gate.api import privacy as privacy_api
	from privacy_gate.domain.privacy import PrivacyAuthorizer
	from privacy_gate.main import app

	authorizer = PrivacyAuthorizer(gateway)
	app.dependency_overrides[privacy_api.get_authorizer] = lambda: authorizer
	transport = ASGITransport(app=app)
	try:
		async with AsyncClient(transport=transport, base_url="http://testserver") as client:
			yield client
	finally:
		app.dependency_overrides.pop(privacy_api.get_authorizer, None)
