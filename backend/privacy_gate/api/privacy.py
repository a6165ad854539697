"""Privacy decision and settings endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from privacy_gate.domain.privacy import (
	HandlerTag,
	PrivacyAction,
	PrivacyAuthorizer,
	PrivacyRequest,
	PrivacyResponse,
	PostgresGateway,
)
from privacy_gate.domain.privacy.schemas import DecisionOut, PrivacySettingsOut, PrivacySettingsUpdate
from privacy_gate.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/privacy")

_NOT_FOUND_TAGS = frozenset({HandlerTag.NOT_FOUND, HandlerTag.EVENT_NOT_FOUND})
_BAD_REQUEST_TAGS = frozenset({HandlerTag.NO_EVENT, HandlerTag.NO_TARGET})

_authorizer: Optional[PrivacyAuthorizer] = None


def get_authorizer() -> PrivacyAuthorizer:
	global _authorizer
	if _authorizer is None:
		_authorizer = PrivacyAuthorizer(PostgresGateway())
	return _authorizer


def _map_denial(response: PrivacyResponse) -> HTTPException:
	if response.tag in _NOT_FOUND_TAGS:
		return HTTPException(status.HTTP_404_NOT_FOUND, detail=response.reason)
	if response.tag in _BAD_REQUEST_TAGS:
		return HTTPException(status.HTTP_400_BAD_REQUEST, detail=response.reason)
	return HTTPException(status.HTTP_403_FORBIDDEN, detail=response.reason)


async def _decide(authorizer: PrivacyAuthorizer, request: PrivacyRequest) -> DecisionOut:
	response = await authorizer.authorize(request)
	if not response.allowed:
		raise _map_denial(response)
	return DecisionOut.from_response(response)


@router.get("/settings", response_model=PrivacySettingsOut)
async def get_settings(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	authorizer: PrivacyAuthorizer = Depends(get_authorizer),
) -> PrivacySettingsOut:
	record = await authorizer.privacy.get_or_create_privacy_settings(auth_user.id)
	if record is None:
		raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail="settings_unavailable")
	return PrivacySettingsOut.from_record(record)


@router.put("/settings", response_model=PrivacySettingsOut)
async def put_settings(
	payload: PrivacySettingsUpdate,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	authorizer: PrivacyAuthorizer = Depends(get_authorizer),
) -> PrivacySettingsOut:
	record = await authorizer.privacy.update_privacy_settings(
		auth_user.id,
		is_anon=payload.is_anon,
		anon_username=payload.anon_username,
		profile_visibility=payload.profile_visibility,
	)
	if record is None:
		raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail="settings_update_failed")
	return PrivacySettingsOut.from_record(record)


@router.get("/users/{user_id}/profile", response_model=DecisionOut)
async def view_profile(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	authorizer: PrivacyAuthorizer = Depends(get_authorizer),
) -> DecisionOut:
	request = PrivacyRequest(auth_user.id, user_id, PrivacyAction.VIEW_PROFILE, "profile_viewing")
	return await _decide(authorizer, request)


@router.get("/events/{event_id}/attendees", response_model=DecisionOut)
async def view_attendees(
	event_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	authorizer: PrivacyAuthorizer = Depends(get_authorizer),
) -> DecisionOut:
	request = PrivacyRequest(auth_user.id, None, PrivacyAction.VIEW_ATTENDEES, "event_attendees")
	request.set_context("eventId", event_id)
	return await _decide(authorizer, request)


@router.get("/events/{event_id}/carpool", response_model=DecisionOut)
async def view_carpool(
	event_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	authorizer: PrivacyAuthorizer = Depends(get_authorizer),
) -> DecisionOut:
	request = PrivacyRequest(auth_user.id, None, PrivacyAction.VIEW_CARPOOL, "carpool_matching")
	request.set_context("eventId", event_id)
	return await _decide(authorizer, request)


@router.get("/users/{user_id}/schedule", response_model=DecisionOut)
async def view_schedule(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	authorizer: PrivacyAuthorizer = Depends(get_authorizer),
) -> DecisionOut:
	request = PrivacyRequest(auth_user.id, user_id, PrivacyAction.VIEW_SCHEDULE, "schedule_viewing")
	return await _decide(authorizer, request)
