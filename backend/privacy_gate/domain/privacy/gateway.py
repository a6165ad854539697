"""Persistence gateway consumed by the privacy handlers."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

import asyncpg

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

_STORAGE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class PersistenceGateway(Protocol):
	"""Read/write access to users, settings, relationships and events."""

	async def get_user(self, user_id: str) -> Optional[UserRecord]: ...

	async def get_privacy_settings(self, user_id: str) -> Optional[PrivacySettingsRecord]: ...

	async def create_privacy_settings(self, user_id: str) -> PrivacySettingsRecord: ...

	async def upsert_privacy_settings(
		self,
		user_id: str,
		*,
		is_anon: bool,
		anon_username: Optional[str],
		profile_visibility: Optional[str] = None,
	) -> PrivacySettingsRecord: ...

	async def is_blocked(self, blocker_id: str, blocked_id: str) -> bool: ...

	async def are_friends(
		self, user_a: str, user_b: str, status: str = FriendshipStatus.ACCEPTED.value
	) -> bool: ...

	async def get_event(self, event_id: str) -> Optional[EventRecord]: ...

	async def get_attendees(self, event_id: str) -> list[AttendeeRecord]: ...

	async def is_attendee(self, user_id: str, event_id: str) -> bool: ...

	async def get_user_schedule(self, user_id: str) -> list[ScheduleEntry]: ...


class PostgresGateway:
	"""PersistenceGateway backed by the shared asyncpg pool."""

	async def _fetchrow(self, operation: str, query: str, *args: Any) -> Optional[asyncpg.Record]:
		try:
			pool = await postgres.get_pool()
			async with pool.acquire() as conn:
				return await conn.fetchrow(query, *args)
		except _STORAGE_ERRORS as exc:
			raise GatewayError(operation) from exc

	async def _fetch(self, operation: str, query: str, *args: Any) -> Sequence[asyncpg.Record]:
		try:
			pool = await postgres.get_pool()
			async with pool.acquire() as conn:
				return await conn.fetch(query, *args)
		except _STORAGE_ERRORS as exc:
			raise GatewayError(operation) from exc

	async def get_user(self, user_id: str) -> Optional[UserRecord]:
		row = await self._fetchrow(
			"get_user",
			"SELECT id, username, role, interest FROM users WHERE id = $1",
			user_id,
		)
		return UserRecord.from_record(row) if row else None

	async def get_privacy_settings(self, user_id: str) -> Optional[PrivacySettingsRecord]:
		row = await self._fetchrow(
			"get_privacy_settings",
			"""
			SELECT user_id, profile_visibility, is_anon, anon_username
			FROM user_privacy_settings
			WHERE user_id = $1
			""",
			user_id,
		)
		return PrivacySettingsRecord.from_record(row) if row else None

	async def create_privacy_settings(self, user_id: str) -> PrivacySettingsRecord:
		"""Insert a default row unless one exists; an existing row is returned untouched."""
		row = await self._fetchrow(
			"create_privacy_settings",
			"""
			INSERT INTO user_privacy_settings (user_id, profile_visibility, is_anon, anon_username)
			VALUES ($1, 'public', FALSE, NULL)
			ON CONFLICT (user_id) DO NOTHING
			RETURNING user_id, profile_visibility, is_anon, anon_username
			""",
			user_id,
		)
		if row is not None:
			return PrivacySettingsRecord.from_record(row)
		existing = await self.get_privacy_settings(user_id)
		if existing is None:
			raise GatewayError("create_privacy_settings")
		return existing

	async def upsert_privacy_settings(
		self,
		user_id: str,
		*,
		is_anon: bool,
		anon_username: Optional[str],
		profile_visibility: Optional[str] = None,
	) -> PrivacySettingsRecord:
		row = await self._fetchrow(
			"upsert_privacy_settings",
			"""
			INSERT INTO user_privacy_settings (user_id, profile_visibility, is_anon, anon_username)
			VALUES ($1, COALESCE($2, 'public'), $3, $4)
			ON CONFLICT (user_id)
			DO UPDATE SET
				profile_visibility = COALESCE($2, user_privacy_settings.profile_visibility),
				is_anon = EXCLUDED.is_anon,
				anon_username = EXCLUDED.anon_username,
				updated_at = NOW()
			RETURNING user_id, profile_visibility, is_anon, anon_username
			""",
			user_id,
			profile_visibility,
			is_anon,
			anon_username,
		)
		if row is None:
			raise GatewayError("upsert_privacy_settings")
		return PrivacySettingsRecord.from_record(row)

	async def is_blocked(self, blocker_id: str, blocked_id: str) -> bool:
		row = await self._fetchrow(
			"is_blocked",
			"SELECT 1 FROM blocks WHERE user_id = $1 AND blocked_id = $2",
			blocker_id,
			blocked_id,
		)
		return row is not None

	async def are_friends(
		self, user_a: str, user_b: str, status: str = FriendshipStatus.ACCEPTED.value
	) -> bool:
		row = await self._fetchrow(
			"are_friends",
			"""
			SELECT 1 FROM friendships
			WHERE ((user_id = $1 AND friend_id = $2) OR (user_id = $2 AND friend_id = $1))
			  AND status = $3
			LIMIT 1
			""",
			user_a,
			user_b,
			status,
		)
		return row is not None

	async def get_event(self, event_id: str) -> Optional[EventRecord]:
		row = await self._fetchrow(
			"get_event",
			"SELECT id, creator_id, is_public FROM events WHERE id = $1",
			event_id,
		)
		return EventRecord.from_record(row) if row else None

	async def get_attendees(self, event_id: str) -> list[AttendeeRecord]:
		rows = await self._fetch(
			"get_attendees",
			"""
			SELECT a.id, a.event_id, a.user_id, a.is_anon, a.anon_username,
			       u.username, u.role, u.interest
			FROM event_attendance a
			JOIN users u ON u.id = a.user_id
			WHERE a.event_id = $1
			ORDER BY a.id ASC
			""",
			event_id,
		)
		return [AttendeeRecord.from_record(row) for row in rows]

	async def is_attendee(self, user_id: str, event_id: str) -> bool:
		row = await self._fetchrow(
			"is_attendee",
			"SELECT 1 FROM event_attendance WHERE user_id = $1 AND event_id = $2",
			user_id,
			event_id,
		)
		return row is not None

	async def get_user_schedule(self, user_id: str) -> list[ScheduleEntry]:
		rows = await self._fetch(
			"get_user_schedule",
			"""
			SELECT a.id, e.id AS event_id, e.title, e.description, e.category,
			       e.start_date, e.end_date, e.location, e.is_public, e.creator_id
			FROM event_attendance a
			JOIN events e ON e.id = a.event_id
			WHERE a.user_id = $1
			ORDER BY e.start_date ASC
			""",
			user_id,
		)
		return [ScheduleEntry.from_record(row) for row in rows]
