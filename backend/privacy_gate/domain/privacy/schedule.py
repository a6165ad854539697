"""Personal schedule policy."""

from __future__ import annotations

from typing import Optional

from privacy_gate.domain.privacy.decisions import HandlerResult, PrivacyRequest, PrivacyResponse
from privacy_gate.domain.privacy.gateway import PersistenceGateway
from privacy_gate.domain.privacy.handlers import ActionHandler
from privacy_gate.domain.privacy.models import HandlerTag, PrivacyAction
from privacy_gate.domain.privacy.schedule_service import ScheduleService
from privacy_gate.domain.privacy.service import PrivacyService

TARGET_MISSING = "Target user ID not provided"
SCHEDULE_PRIVATE = "Schedule is private"


class ViewScheduleHandler(ActionHandler):
	action = PrivacyAction.VIEW_SCHEDULE

	def __init__(
		self,
		gateway: PersistenceGateway,
		privacy: Optional[PrivacyService] = None,
		schedule: Optional[ScheduleService] = None,
	) -> None:
		super().__init__(gateway)
		self._schedule = schedule or ScheduleService(gateway, privacy)

	async def process_user_levels(self, request: PrivacyRequest) -> HandlerResult:
		target_id = request.target_id
		if target_id is None or str(target_id).strip() == "":
			return self._claim(PrivacyResponse.failure(TARGET_MISSING), HandlerTag.NO_TARGET)

		if not await self._schedule.can_view_schedule(request.requester_id, target_id):
			return self._claim(PrivacyResponse.failure(SCHEDULE_PRIVATE), HandlerTag.PRIVATE)

		schedule = await self._schedule.get_user_schedule(target_id)
		visible = self._schedule.filter_schedule(request.requester_id, schedule)
		tag = HandlerTag.SELF if request.is_self_request() else HandlerTag.OTHER
		return self._claim(PrivacyResponse.success([entry.to_dict() for entry in visible]), tag)
