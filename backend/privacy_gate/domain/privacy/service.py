"""Privacy predicates and filtering routines shared by the policy handlers.

Every read goes through :func:`fail_closed`: a storage fault is logged and
answered with a default that never grants more access than a definite "no".
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Optional, TypeVar

from privacy_gate.domain.privacy.exceptions import GatewayError
from privacy_gate.domain.privacy.gateway import PersistenceGateway
from privacy_gate.domain.privacy.models import (
	DEFAULT_ANON_NAME,
	PRIVATE_USER_NAME,
	AttendeeRecord,
	EventRecord,
	PrivacySettingsRecord,
	UserRecord,
)
from privacy_gate.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _record_gateway_error(exc: GatewayError, description: str) -> None:
	logger.exception("Error %s", description, extra={"operation": exc.operation})
	obs_metrics.inc_privacy_gateway_error(exc.operation)


async def fail_closed(awaitable: Awaitable[T], default: T, description: str) -> T:
	try:
		return await awaitable
	except GatewayError as exc:
		_record_gateway_error(exc, description)
		return default


def private_placeholder(user_id: Optional[str]) -> dict[str, Any]:
	return {"id": user_id, "username": PRIVATE_USER_NAME, "is_private": True}


def anonymized_profile(user: UserRecord, anon_name: str) -> dict[str, Any]:
	return {
		"id": user.id,
		"username": anon_name,
		"role": user.role,
		"interest": user.interest,
		"is_anon": True,
	}


def public_profile(user: UserRecord) -> dict[str, Any]:
	return {**user.to_dict(), "is_anon": False}


class PrivacyService:
	def __init__(self, gateway: PersistenceGateway) -> None:
		self._gateway = gateway

	async def get_privacy_settings(self, user_id: str) -> Optional[PrivacySettingsRecord]:
		return await fail_closed(
			self._gateway.get_privacy_settings(user_id), None, "getting privacy settings"
		)

	async def create_privacy_settings(self, user_id: str) -> Optional[PrivacySettingsRecord]:
		return await fail_closed(
			self._gateway.create_privacy_settings(user_id), None, "creating privacy settings"
		)

	async def get_or_create_privacy_settings(self, user_id: str) -> Optional[PrivacySettingsRecord]:
		"""Return the stored row, creating defaults only when the read found none.

		A failed read returns ``None`` without writing anything.
		"""
		try:
			existing = await self._gateway.get_privacy_settings(user_id)
		except GatewayError as exc:
			_record_gateway_error(exc, "getting privacy settings")
			return None
		if existing is not None:
			return existing
		return await self.create_privacy_settings(user_id)

	async def update_privacy_settings(
		self,
		user_id: str,
		*,
		is_anon: bool,
		anon_username: Optional[str],
		profile_visibility: Optional[str] = None,
	) -> Optional[PrivacySettingsRecord]:
		updated = await fail_closed(
			self._gateway.upsert_privacy_settings(
				user_id,
				is_anon=is_anon,
				anon_username=anon_username,
				profile_visibility=profile_visibility,
			),
			None,
			"updating privacy settings",
		)
		obs_metrics.inc_privacy_settings_update("ok" if updated is not None else "error")
		return updated

	async def is_user_anonymous(self, user_id: str) -> bool:
		"""A failed lookup counts as anonymous."""
		try:
			settings = await self._gateway.get_privacy_settings(user_id)
		except GatewayError as exc:
			_record_gateway_error(exc, "checking anonymity")
			return True
		return settings.is_anon if settings else False

	async def get_anonymous_username(self, user_id: str) -> Optional[str]:
		settings = await self.get_privacy_settings(user_id)
		return settings.anon_username if settings else None

	async def is_blocked(self, user_a: str, user_b: str) -> bool:
		"""True when either user has blocked the other.

		A failed lookup counts as blocked.
		"""
		blocked_by_target = await fail_closed(
			self._gateway.is_blocked(user_b, user_a), True, "checking block status"
		)
		if blocked_by_target:
			return True
		return await fail_closed(
			self._gateway.is_blocked(user_a, user_b), True, "checking block status"
		)

	async def are_friends(self, user_a: str, user_b: str) -> bool:
		return await fail_closed(
			self._gateway.are_friends(user_a, user_b), False, "checking friendship"
		)

	async def get_user(self, user_id: str) -> Optional[UserRecord]:
		return await fail_closed(self._gateway.get_user(user_id), None, "getting user")

	async def get_event(self, event_id: str) -> Optional[EventRecord]:
		return await fail_closed(self._gateway.get_event(event_id), None, "getting event")

	async def is_attendee(self, user_id: str, event_id: str) -> bool:
		return await fail_closed(
			self._gateway.is_attendee(user_id, event_id), False, "checking attendance"
		)

	async def get_attendees(self, event_id: str) -> list[AttendeeRecord]:
		return await fail_closed(self._gateway.get_attendees(event_id), [], "getting attendees")

	async def can_view_profile(self, viewer_id: str, target_user_id: str) -> bool:
		if str(viewer_id) == str(target_user_id):
			return True
		settings = await self.get_privacy_settings(target_user_id)
		if settings is None:
			return False
		return not settings.is_anon

	async def filter_user_data(self, viewer_id: str, user: UserRecord) -> dict[str, Any]:
		if not await self.can_view_profile(viewer_id, user.id):
			return private_placeholder(user.id)
		settings = await self.get_privacy_settings(user.id)
		if settings and settings.is_anon:
			return anonymized_profile(user, settings.display_anon_name)
		return public_profile(user)

	def anonymize_attendees(self, attendees: list[AttendeeRecord]) -> list[dict[str, Any]]:
		"""Rewrite anonymous attendances so only the alias is exposed."""
		result: list[dict[str, Any]] = []
		for attendee in attendees:
			if attendee.is_anon:
				result.append(
					{
						"id": attendee.id,
						"event_id": attendee.event_id,
						"user": {
							"id": attendee.user.id,
							"username": attendee.anon_username or DEFAULT_ANON_NAME,
							"is_anon": True,
						},
						"is_anon": True,
					}
				)
			else:
				result.append(attendee.to_dict())
		return result

	async def filter_attendees_list(
		self, viewer_id: str, attendees: list[AttendeeRecord]
	) -> list[dict[str, Any]]:
		"""Keep attendees the viewer may see, with profile-level anonymity applied."""
		visible: list[dict[str, Any]] = []
		for attendee in attendees:
			if not await self.can_view_profile(viewer_id, attendee.user.id):
				continue
			settings = await self.get_privacy_settings(attendee.user.id)
			entry = self.anonymize_attendees([attendee])[0]
			if settings and settings.is_anon:
				entry["user"] = {
					"id": attendee.user.id,
					"username": settings.display_anon_name,
					"is_anon": True,
					"role": attendee.user.role,
				}
				entry["is_anon"] = True
			visible.append(entry)
		return visible
