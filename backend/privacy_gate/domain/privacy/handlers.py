"""Chain-of-responsibility links for privacy decisions.

A handler *claims* a request by returning ``HandlerResult.claim(...)`` from
:meth:`PolicyHandler.process`. The first claimant in chain order wins, whatever
its verdict; requests nobody claims fall through to a default deny.
"""

from __future__ import annotations

from typing import Optional

from privacy_gate.domain.privacy.decisions import HandlerResult, PrivacyRequest, PrivacyResponse
from privacy_gate.domain.privacy.gateway import PersistenceGateway
from privacy_gate.domain.privacy.models import HandlerTag, PrivacyAction


class PolicyHandler:
	def __init__(self) -> None:
		self.next_handler: Optional[PolicyHandler] = None

	def set_next(self, handler: "PolicyHandler") -> "PolicyHandler":
		self.next_handler = handler
		return handler

	async def handle(self, request: PrivacyRequest) -> PrivacyResponse:
		node: Optional[PolicyHandler] = self
		while node is not None:
			result = await node.process(request)
			if result.handled:
				assert result.response is not None
				return result.response
			node = node.next_handler
		return PrivacyResponse.default_deny()

	async def process(self, request: PrivacyRequest) -> HandlerResult:
		return HandlerResult.unhandled()


class ActionHandler(PolicyHandler):
	"""Handler owning exactly one :class:`PrivacyAction`."""

	action: PrivacyAction

	def __init__(self, gateway: PersistenceGateway, action: Optional[PrivacyAction] = None) -> None:
		super().__init__()
		if action is not None:
			self.action = action
		self._gateway = gateway

	@property
	def name(self) -> str:
		return type(self).__name__

	def can_handle(self, request: PrivacyRequest) -> bool:
		return request.action == self.action

	async def process(self, request: PrivacyRequest) -> HandlerResult:
		if not self.can_handle(request):
			return HandlerResult.unhandled()
		return await self.process_user_levels(request)

	async def process_user_levels(self, request: PrivacyRequest) -> HandlerResult:
		response = PrivacyResponse.failure(f"Action {self.action.value} is not implemented")
		return self._claim(response, HandlerTag.NOT_IMPLEMENTED)

	def _tagged(self, response: PrivacyResponse, tag: HandlerTag) -> PrivacyResponse:
		return response.set_handler(f"{self.name}-{tag.value}").set_tag(tag)

	def _claim(self, response: PrivacyResponse, tag: HandlerTag) -> HandlerResult:
		return HandlerResult.claim(self._tagged(response, tag))
