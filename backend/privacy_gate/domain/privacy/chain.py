"""Handler chain assembly and the authorization entry points."""

from __future__ import annotations

import logging
from typing import Any, Optional

from privacy_gate.domain.privacy.attendees import ViewAttendeesHandler
from privacy_gate.domain.privacy.carpool import ViewCarpoolHandler
from privacy_gate.domain.privacy.decisions import PrivacyRequest, PrivacyResponse
from privacy_gate.domain.privacy.exceptions import UnknownActionError
from privacy_gate.domain.privacy.gateway import PersistenceGateway
from privacy_gate.domain.privacy.handlers import ActionHandler
from privacy_gate.domain.privacy.models import HandlerTag, PrivacyAction
from privacy_gate.domain.privacy.profile import ViewProfileHandler
from privacy_gate.domain.privacy.schedule import ViewScheduleHandler
from privacy_gate.domain.privacy.service import PrivacyService
from privacy_gate.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

# Priority order of the chain.
HANDLER_ORDER: tuple[type[ActionHandler], ...] = (
	ViewProfileHandler,
	ViewAttendeesHandler,
	ViewCarpoolHandler,
	ViewScheduleHandler,
)

_HANDLERS_BY_ACTION: dict[PrivacyAction, type[ActionHandler]] = {
	handler_cls.action: handler_cls for handler_cls in HANDLER_ORDER
}


def create_handler_chain(
	gateway: PersistenceGateway, privacy: Optional[PrivacyService] = None
) -> ActionHandler:
	"""Build a fresh chain and return its head."""
	privacy = privacy or PrivacyService(gateway)
	head, *rest = [handler_cls(gateway, privacy) for handler_cls in HANDLER_ORDER]
	node = head
	for handler in rest:
		node = node.set_next(handler)
	return head


def create_specific_handler(
	action: Any, gateway: PersistenceGateway, privacy: Optional[PrivacyService] = None
) -> ActionHandler:
	try:
		handler_cls = _HANDLERS_BY_ACTION[PrivacyAction(action)]
	except (ValueError, KeyError):
		raise UnknownActionError(action) from None
	return handler_cls(gateway, privacy)


class PrivacyAuthorizer:
	"""Entry point for callers that need a privacy decision.

	The chain is built once; handlers keep no per-request state so one instance
	serves concurrent requests.
	"""

	def __init__(self, gateway: PersistenceGateway) -> None:
		self._gateway = gateway
		self._privacy = PrivacyService(gateway)
		self._chain = create_handler_chain(gateway, self._privacy)

	@property
	def privacy(self) -> PrivacyService:
		return self._privacy

	async def authorize(self, request: PrivacyRequest) -> PrivacyResponse:
		response = await self._chain.handle(request)
		tag = response.tag.value if isinstance(response.tag, HandlerTag) else "Unclaimed"
		obs_metrics.inc_privacy_decision(request.action.value, tag, response.allowed)
		logger.debug(
			"privacy_decision",
			extra={
				"action": request.action.value,
				"handler": response.handler,
				"allowed": response.allowed,
			},
		)
		return response

	def handler_for(self, action: Any) -> ActionHandler:
		return create_specific_handler(action, self._gateway, self._privacy)
