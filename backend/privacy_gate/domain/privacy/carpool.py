"""Carpool roster policy."""

from __future__ import annotations

from typing import Optional

from privacy_gate.domain.privacy.attendees import EventScopedHandler
from privacy_gate.domain.privacy.carpool_service import CarpoolService
from privacy_gate.domain.privacy.decisions import HandlerResult, PrivacyRequest, PrivacyResponse
from privacy_gate.domain.privacy.gateway import PersistenceGateway
from privacy_gate.domain.privacy.models import EventRecord, HandlerTag, PrivacyAction
from privacy_gate.domain.privacy.service import PrivacyService


def access_tier(requester_id: str, event: EventRecord) -> HandlerTag:
	if str(requester_id) == event.creator_id:
		return HandlerTag.OWNER
	if event.is_public:
		return HandlerTag.PUBLIC
	return HandlerTag.ATTENDEE


class ViewCarpoolHandler(EventScopedHandler):
	action = PrivacyAction.VIEW_CARPOOL

	def __init__(
		self,
		gateway: PersistenceGateway,
		privacy: Optional[PrivacyService] = None,
		carpool: Optional[CarpoolService] = None,
	) -> None:
		super().__init__(gateway, privacy)
		self._carpool = carpool or CarpoolService(gateway, self._privacy)

	async def process_user_levels(self, request: PrivacyRequest) -> HandlerResult:
		event, failed = await self._resolve_event(request)
		if failed is not None:
			return failed
		assert event is not None

		if not await self._carpool.can_view_carpool_participants(request.requester_id, event.id, event):
			return self._claim(PrivacyResponse.failure(), HandlerTag.DEFAULT)

		participants = await self._carpool.get_carpool_participants(event.id)
		visible = await self._carpool.filter_carpool_participants(request.requester_id, participants)
		response = PrivacyResponse.success([participant.to_dict() for participant in visible])
		return self._claim(response, access_tier(request.requester_id, event))
