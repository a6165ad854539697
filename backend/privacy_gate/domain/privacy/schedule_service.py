"""Schedule visibility and event filtering."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from privacy_gate.domain.privacy.gateway import PersistenceGateway
from privacy_gate.domain.privacy.models import (
	UNKNOWN_USER_NAME,
	SchedulePrivacyStatus,
	ScheduleEntry,
	as_utc,
)
from privacy_gate.domain.privacy.service import PrivacyService, fail_closed


def _now() -> datetime:
	return datetime.now(timezone.utc)


def _start_key(entry: ScheduleEntry) -> datetime:
	return entry.start_date


class ScheduleService:
	def __init__(self, gateway: PersistenceGateway, privacy: Optional[PrivacyService] = None) -> None:
		self._gateway = gateway
		self._privacy = privacy or PrivacyService(gateway)

	async def can_view_schedule(self, viewer_id: str, target_user_id: str) -> bool:
		# Anonymity bars schedule access outright; visibility tiers do not apply here.
		return await self._privacy.can_view_profile(viewer_id, target_user_id)

	async def get_user_schedule(self, user_id: str) -> list[ScheduleEntry]:
		schedule = await fail_closed(
			self._gateway.get_user_schedule(user_id), [], "getting user schedule"
		)
		return sorted(schedule, key=_start_key)

	def filter_schedule(self, viewer_id: str, schedule: list[ScheduleEntry]) -> list[ScheduleEntry]:
		"""Drop private events the viewer did not create."""
		return [
			entry
			for entry in schedule
			if entry.is_public or (entry.creator_id is not None and entry.creator_id == str(viewer_id))
		]

	async def get_schedule_display_name(self, user_id: str) -> str:
		settings = await self._privacy.get_privacy_settings(user_id)
		if settings and settings.is_anon:
			return settings.display_anon_name
		user = await self._privacy.get_user(user_id)
		return user.username if user else UNKNOWN_USER_NAME

	async def get_schedule_privacy_status(self, user_id: str) -> SchedulePrivacyStatus:
		return SchedulePrivacyStatus(
			is_anonymous=await self._privacy.is_user_anonymous(user_id),
			display_name=await self.get_schedule_display_name(user_id),
		)

	async def get_upcoming_events(
		self, user_id: str, limit: int = 10, *, now: Optional[datetime] = None
	) -> list[ScheduleEntry]:
		cutoff = as_utc(now) or _now()
		upcoming = [entry for entry in await self.get_user_schedule(user_id) if entry.start_date >= cutoff]
		return upcoming[:limit]

	async def get_past_events(
		self, user_id: str, limit: int = 10, *, now: Optional[datetime] = None
	) -> list[ScheduleEntry]:
		cutoff = as_utc(now) or _now()
		past = [
			entry
			for entry in await self.get_user_schedule(user_id)
			if entry.end_date is not None and entry.end_date < cutoff
		]
		past.sort(key=_start_key, reverse=True)
		return past[:limit]
