"""Request, response and handler-result value objects for privacy decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from privacy_gate.domain.privacy.exceptions import InvalidPrivacyRequest, UnknownActionError
from privacy_gate.domain.privacy.models import HandlerTag, PrivacyAction

ACCESS_GRANTED = "Access granted"
ACCESS_DENIED = "Access denied"


def coerce_action(action: Any) -> PrivacyAction:
	if isinstance(action, PrivacyAction):
		return action
	try:
		return PrivacyAction(action)
	except ValueError:
		raise UnknownActionError(action) from None


@dataclass(frozen=True, slots=True)
class PrivacyRequest:
	"""Inputs of one authorization decision.

	Only the context map may change after construction, and only before the
	request is dispatched.
	"""

	requester_id: str
	target_id: Optional[str]
	action: PrivacyAction
	functionality: str = ""
	context: dict[str, Any] = field(default_factory=dict)

	def __post_init__(self) -> None:
		if self.requester_id is None or str(self.requester_id).strip() == "":
			raise InvalidPrivacyRequest("requester_missing")
		object.__setattr__(self, "action", coerce_action(self.action))
		object.__setattr__(self, "context", dict(self.context))

	def set_context(self, key: str, value: Any) -> "PrivacyRequest":
		self.context[key] = value
		return self

	def get_context(self, key: str, default: Any = None) -> Any:
		return self.context.get(key, default)

	def is_self_request(self) -> bool:
		if self.target_id is None:
			return False
		return str(self.requester_id) == str(self.target_id)

	def __str__(self) -> str:
		return (
			f"PrivacyRequest[{self.action.value}] User {self.requester_id} "
			f"to {self.target_id} ({self.functionality})"
		)


@dataclass(slots=True)
class PrivacyResponse:
	"""Outcome of one authorization decision."""

	allowed: bool
	data: Any = None
	is_anon: bool = False
	anon_name: Optional[str] = None
	reason: Optional[str] = None
	handler: Optional[str] = None
	tag: Optional[HandlerTag] = None

	def __post_init__(self) -> None:
		if self.reason is None:
			self.reason = ACCESS_GRANTED if self.allowed else ACCESS_DENIED

	@classmethod
	def success(cls, data: Any, is_anon: bool = False, anon_name: Optional[str] = None) -> "PrivacyResponse":
		return cls(allowed=True, data=data, is_anon=is_anon, anon_name=anon_name)

	@classmethod
	def failure(cls, reason: str = ACCESS_DENIED, data: Any = None) -> "PrivacyResponse":
		return cls(allowed=False, data=data, reason=reason)

	@classmethod
	def anonymous(cls, data: Any, anon_name: str) -> "PrivacyResponse":
		return cls(allowed=True, data=data, is_anon=True, anon_name=anon_name)

	@classmethod
	def default_deny(cls) -> "PrivacyResponse":
		return cls(allowed=False)

	def set_reason(self, reason: str) -> "PrivacyResponse":
		self.reason = reason
		return self

	def set_handler(self, handler: str) -> "PrivacyResponse":
		self.handler = handler
		return self

	def set_tag(self, tag: HandlerTag) -> "PrivacyResponse":
		self.tag = tag
		return self

	def to_dict(self) -> dict[str, Any]:
		return {
			"allowed": self.allowed,
			"data": self.data,
			"reason": self.reason,
			"handler": self.handler,
			"is_anon": self.is_anon,
			"anon_name": self.anon_name,
		}

	def __str__(self) -> str:
		verdict = "allowed" if self.allowed else "denied"
		return f"PrivacyResponse[{verdict}] {self.reason} via {self.handler or 'chain'}"


@dataclass(frozen=True, slots=True)
class HandlerResult:
	"""Whether a handler claimed a request, and its verdict if it did."""

	handled: bool
	response: Optional[PrivacyResponse] = None

	@classmethod
	def unhandled(cls) -> "HandlerResult":
		return cls(handled=False, response=None)

	@classmethod
	def claim(cls, response: PrivacyResponse) -> "HandlerResult":
		return cls(handled=True, response=response)
