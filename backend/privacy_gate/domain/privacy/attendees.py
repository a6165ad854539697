"""Event attendee list policy."""

from __future__ import annotations

from typing import Any, Optional

from privacy_gate.domain.privacy.decisions import HandlerResult, PrivacyRequest, PrivacyResponse
from privacy_gate.domain.privacy.gateway import PersistenceGateway
from privacy_gate.domain.privacy.handlers import ActionHandler
from privacy_gate.domain.privacy.models import EventRecord, HandlerTag, PrivacyAction
from privacy_gate.domain.privacy.service import PrivacyService

EVENT_ID_MISSING = "Event ID not provided"
EVENT_NOT_FOUND = "Event not found"


def event_id_from(request: PrivacyRequest) -> Optional[str]:
	event_id = request.get_context("eventId")
	if event_id is None:
		event_id = request.get_context("event_id")
	if event_id is None or str(event_id).strip() == "":
		return None
	return str(event_id)


class EventScopedHandler(ActionHandler):
	"""Shared event lookup for handlers keyed by an ``eventId`` context entry."""

	def __init__(self, gateway: PersistenceGateway, privacy: Optional[PrivacyService] = None) -> None:
		super().__init__(gateway)
		self._privacy = privacy or PrivacyService(gateway)

	async def _resolve_event(self, request: PrivacyRequest) -> tuple[Optional[EventRecord], Optional[HandlerResult]]:
		event_id = event_id_from(request)
		if event_id is None:
			return None, self._claim(PrivacyResponse.failure(EVENT_ID_MISSING), HandlerTag.NO_EVENT)
		event = await self._privacy.get_event(event_id)
		if event is None:
			return None, self._claim(PrivacyResponse.failure(EVENT_NOT_FOUND), HandlerTag.EVENT_NOT_FOUND)
		return event, None


class ViewAttendeesHandler(EventScopedHandler):
	action = PrivacyAction.VIEW_ATTENDEES

	async def process_user_levels(self, request: PrivacyRequest) -> HandlerResult:
		event, failed = await self._resolve_event(request)
		if failed is not None:
			return failed
		assert event is not None

		if str(request.requester_id) == event.creator_id:
			return self._claim(PrivacyResponse.success(await self._attendees(event)), HandlerTag.OWNER)

		if event.is_public:
			return self._claim(PrivacyResponse.success(await self._attendees(event)), HandlerTag.PUBLIC)

		if await self._privacy.is_attendee(request.requester_id, event.id):
			return self._claim(PrivacyResponse.success(await self._attendees(event)), HandlerTag.ATTENDEE)

		return self._claim(PrivacyResponse.failure(), HandlerTag.DEFAULT)

	async def _attendees(self, event: EventRecord) -> list[dict[str, Any]]:
		return self._privacy.anonymize_attendees(await self._privacy.get_attendees(event.id))
