"""Carpool eligibility and participant filtering."""

from __future__ import annotations

from typing import Optional

from privacy_gate.domain.privacy.gateway import PersistenceGateway
from privacy_gate.domain.privacy.models import UNKNOWN_USER_NAME, CarpoolParticipant, EventRecord
from privacy_gate.domain.privacy.service import PrivacyService


class CarpoolService:
	def __init__(self, gateway: PersistenceGateway, privacy: Optional[PrivacyService] = None) -> None:
		self._gateway = gateway
		self._privacy = privacy or PrivacyService(gateway)

	async def can_view_carpool_participants(
		self, viewer_id: str, event_id: str, event: Optional[EventRecord] = None
	) -> bool:
		if event is None:
			event = await self._privacy.get_event(event_id)
		if event is None:
			return False
		if str(viewer_id) == event.creator_id:
			return True
		if event.is_public:
			return True
		return await self._privacy.is_attendee(viewer_id, event_id)

	async def get_carpool_participants(self, event_id: str) -> list[CarpoolParticipant]:
		"""Attendees eligible for carpool matching; anonymous users never are."""
		participants: list[CarpoolParticipant] = []
		for attendance in await self._privacy.get_attendees(event_id):
			if await self._privacy.is_user_anonymous(attendance.user.id):
				continue
			participants.append(
				CarpoolParticipant(
					id=attendance.id,
					user_id=attendance.user.id,
					username=attendance.user.username,
					role=attendance.user.role,
				)
			)
		return participants

	async def filter_carpool_participants(
		self, viewer_id: str, participants: list[CarpoolParticipant]
	) -> list[CarpoolParticipant]:
		filtered: list[CarpoolParticipant] = []
		for participant in participants:
			if not await self.can_view_participant_profile(viewer_id, participant.user_id):
				continue
			if await self._privacy.is_user_anonymous(participant.user_id):
				continue
			filtered.append(participant)
		return filtered

	async def can_view_participant_profile(self, viewer_id: str, target_user_id: str) -> bool:
		return await self._privacy.can_view_profile(viewer_id, target_user_id)

	async def get_carpool_display_name(self, user_id: str) -> str:
		settings = await self._privacy.get_privacy_settings(user_id)
		if settings and settings.is_anon:
			return settings.display_anon_name
		user = await self._privacy.get_user(user_id)
		return user.username if user else UNKNOWN_USER_NAME
