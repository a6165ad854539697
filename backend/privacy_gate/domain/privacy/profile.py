"""Profile visibility policy."""

from __future__ import annotations

from typing import Optional

from privacy_gate.domain.privacy.decisions import HandlerResult, PrivacyRequest, PrivacyResponse
from privacy_gate.domain.privacy.gateway import PersistenceGateway
from privacy_gate.domain.privacy.handlers import ActionHandler
from privacy_gate.domain.privacy.models import (
	FRIENDS_VISIBILITY,
	HandlerTag,
	PrivacyAction,
	ProfileVisibility,
)
from privacy_gate.domain.privacy.service import (
	PrivacyService,
	anonymized_profile,
	private_placeholder,
	public_profile,
)

ACCESS_BLOCKED = "Access blocked"
USER_NOT_FOUND = "User not found"
PROFILE_PRIVATE = "Profile is private"


def _visibility(value: str) -> Optional[ProfileVisibility]:
	try:
		return ProfileVisibility(value)
	except ValueError:
		return None


class ViewProfileHandler(ActionHandler):
	"""Rules are evaluated in order and the first match decides.

	1. self request: real data, no settings row needed
	2. blocked either way: denied
	3. no settings row: denied as not found
	4. anonymous target: alias substituted for the username
	5. public: real data
	6. friends only: real data for accepted friends, otherwise denied
	7. private or unrecognised visibility: denied

	Denials from 6 and 7 carry the private placeholder as ``data``.
	"""

	action = PrivacyAction.VIEW_PROFILE

	def __init__(self, gateway: PersistenceGateway, privacy: Optional[PrivacyService] = None) -> None:
		super().__init__(gateway)
		self._privacy = privacy or PrivacyService(gateway)

	async def process_user_levels(self, request: PrivacyRequest) -> HandlerResult:
		target_id = request.target_id
		if request.is_self_request():
			user = await self._privacy.get_user(target_id)
			data = user.to_dict() if user else None
			return self._claim(PrivacyResponse.success(data), HandlerTag.SELF)

		if target_id is None:
			return self._claim(PrivacyResponse.failure(USER_NOT_FOUND), HandlerTag.NOT_FOUND)

		if await self._privacy.is_blocked(request.requester_id, target_id):
			return self._claim(PrivacyResponse.failure(ACCESS_BLOCKED), HandlerTag.BLOCKED)

		settings = await self._privacy.get_privacy_settings(target_id)
		if settings is None:
			return self._claim(PrivacyResponse.failure(USER_NOT_FOUND), HandlerTag.NOT_FOUND)

		user = await self._privacy.get_user(target_id)
		if user is None:
			return self._claim(PrivacyResponse.failure(USER_NOT_FOUND), HandlerTag.NOT_FOUND)

		if settings.is_anon:
			anon_name = settings.display_anon_name
			response = PrivacyResponse.anonymous(anonymized_profile(user, anon_name), anon_name)
			return self._claim(response, HandlerTag.ANONYMOUS)

		visibility = _visibility(settings.profile_visibility)
		if visibility is ProfileVisibility.PUBLIC:
			return self._claim(PrivacyResponse.success(public_profile(user)), HandlerTag.PUBLIC)

		if visibility in FRIENDS_VISIBILITY:
			if await self._privacy.are_friends(request.requester_id, target_id):
				return self._claim(PrivacyResponse.success(public_profile(user)), HandlerTag.FRIENDS)
			return self._claim(
				PrivacyResponse.failure(data=private_placeholder(target_id)),
				HandlerTag.DEFAULT,
			)

		if visibility is ProfileVisibility.PRIVATE:
			return self._claim(
				PrivacyResponse.failure(PROFILE_PRIVATE, data=private_placeholder(target_id)),
				HandlerTag.PRIVATE,
			)

		return self._claim(
			PrivacyResponse.failure(data=private_placeholder(target_id)),
			HandlerTag.DEFAULT,
		)
