"""Pydantic schemas for the privacy API."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, StrictBool, model_validator

from privacy_gate.domain.privacy.decisions import PrivacyResponse
from privacy_gate.domain.privacy.models import PrivacySettingsRecord

VisibilityLiteral = Literal["public", "friend_only", "friends_only", "private"]


class PrivacySettingsOut(BaseModel):
	user_id: str
	profile_visibility: str = "public"
	is_anon: bool = False
	anon_username: Optional[str] = None

	@classmethod
	def from_record(cls, record: PrivacySettingsRecord) -> "PrivacySettingsOut":
		return cls(
			user_id=record.user_id,
			profile_visibility=record.profile_visibility,
			is_anon=record.is_anon,
			anon_username=record.anon_username,
		)


class PrivacySettingsUpdate(BaseModel):
	is_anon: StrictBool
	anon_username: Optional[str] = Field(default=None, max_length=64)
	profile_visibility: Optional[VisibilityLiteral] = None

	@model_validator(mode="after")
	def _require_alias_when_anonymous(self) -> "PrivacySettingsUpdate":
		alias = (self.anon_username or "").strip()
		if self.is_anon and not alias:
			raise ValueError("anon_username is required when is_anon is true")
		self.anon_username = alias or None
		return self


class DecisionOut(BaseModel):
	allowed: bool
	data: Any = None
	reason: Optional[str] = None
	handler: Optional[str] = None
	is_anon: bool = False
	anon_name: Optional[str] = None

	@classmethod
	def from_response(cls, response: PrivacyResponse) -> "DecisionOut":
		return cls(**response.to_dict())
