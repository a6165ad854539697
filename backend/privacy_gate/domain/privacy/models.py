"""Domain models for privacy decisions and the rows they are made from."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class PrivacyAction(str, Enum):
	"""Resource-access operations a privacy request can target."""

	VIEW_PROFILE = "view_profile"
	VIEW_ATTENDEES = "view_attendees"
	VIEW_CARPOOL = "view_carpool"
	VIEW_SCHEDULE = "view_schedule"


class ProfileVisibility(str, Enum):
	PUBLIC = "public"
	FRIEND_ONLY = "friend_only"
	FRIENDS_ONLY = "friends_only"
	PRIVATE = "private"


FRIENDS_VISIBILITY = frozenset({ProfileVisibility.FRIEND_ONLY, ProfileVisibility.FRIENDS_ONLY})


class FriendshipStatus(str, Enum):
	"""Friendship states tracked in the database."""

	PENDING = "pending"
	ACCEPTED = "accepted"
	BLOCKED = "blocked"


class HandlerTag(str, Enum):
	"""Which policy branch rendered a decision."""

	SELF = "Self"
	BLOCKED = "Blocked"
	NOT_FOUND = "NotFound"
	ANONYMOUS = "Anonymous"
	PUBLIC = "Public"
	FRIENDS = "Friends"
	PRIVATE = "Private"
	DEFAULT = "Default"
	OWNER = "Owner"
	ATTENDEE = "Attendee"
	NO_EVENT = "NoEvent"
	EVENT_NOT_FOUND = "EventNotFound"
	NO_TARGET = "NoTarget"
	OTHER = "Other"
	NOT_IMPLEMENTED = "NotImplemented"


DEFAULT_ANON_NAME = "Anonymous User"
PRIVATE_USER_NAME = "Private User"
UNKNOWN_USER_NAME = "Unknown User"
DEFAULT_PROFILE_VISIBILITY = ProfileVisibility.PUBLIC


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
	"""Read naive timestamps as UTC."""
	if value is None or value.tzinfo is not None:
		return value
	return value.replace(tzinfo=timezone.utc)


@dataclass(slots=True)
class UserRecord:
	id: str
	username: str
	role: Optional[str] = None
	interest: Optional[str] = None

	@classmethod
	def from_record(cls, record: dict) -> "UserRecord":
		return cls(
			id=str(record["id"]),
			username=record["username"],
			role=record.get("role"),
			interest=record.get("interest"),
		)

	def to_dict(self) -> dict[str, Any]:
		return {
			"id": self.id,
			"username": self.username,
			"role": self.role,
			"interest": self.interest,
		}


@dataclass(slots=True)
class PrivacySettingsRecord:
	"""A user's stored privacy preferences."""

	user_id: str
	profile_visibility: str = DEFAULT_PROFILE_VISIBILITY.value
	is_anon: bool = False
	anon_username: Optional[str] = None

	@classmethod
	def from_record(cls, record: dict) -> "PrivacySettingsRecord":
		return cls(
			user_id=str(record["user_id"]),
			profile_visibility=record.get("profile_visibility") or DEFAULT_PROFILE_VISIBILITY.value,
			is_anon=bool(record.get("is_anon")),
			anon_username=record.get("anon_username"),
		)

	@property
	def display_anon_name(self) -> str:
		return self.anon_username or DEFAULT_ANON_NAME


@dataclass(slots=True)
class EventRecord:
	id: str
	creator_id: str
	is_public: bool

	@classmethod
	def from_record(cls, record: dict) -> "EventRecord":
		return cls(
			id=str(record["id"]),
			creator_id=str(record["creator_id"]),
			is_public=bool(record["is_public"]),
		)


@dataclass(slots=True)
class AttendeeRecord:
	"""One attendance row; anonymity here is scoped to the event."""

	id: str
	event_id: str
	user: UserRecord
	is_anon: bool = False
	anon_username: Optional[str] = None

	@classmethod
	def from_record(cls, record: dict) -> "AttendeeRecord":
		return cls(
			id=str(record["id"]),
			event_id=str(record["event_id"]),
			user=UserRecord(
				id=str(record["user_id"]),
				username=record["username"],
				role=record.get("role"),
				interest=record.get("interest"),
			),
			is_anon=bool(record.get("is_anon")),
			anon_username=record.get("anon_username"),
		)

	def to_dict(self) -> dict[str, Any]:
		return {
			"id": self.id,
			"event_id": self.event_id,
			"user": {"id": self.user.id, "username": self.user.username, "role": self.user.role},
			"is_anon": self.is_anon,
		}


@dataclass(slots=True)
class ScheduleEntry:
	id: str
	event_id: str
	title: str
	start_date: datetime
	end_date: Optional[datetime] = None
	description: Optional[str] = None
	category: Optional[str] = None
	location: Optional[str] = None
	is_public: bool = True
	creator_id: Optional[str] = None

	def __post_init__(self) -> None:
		self.start_date = as_utc(self.start_date)
		self.end_date = as_utc(self.end_date)

	@classmethod
	def from_record(cls, record: dict) -> "ScheduleEntry":
		return cls(
			id=str(record["id"]),
			event_id=str(record["event_id"]),
			title=record["title"],
			start_date=record["start_date"],
			end_date=record.get("end_date"),
			description=record.get("description"),
			category=record.get("category"),
			location=record.get("location"),
			is_public=bool(record.get("is_public")),
			creator_id=str(record["creator_id"]) if record.get("creator_id") is not None else None,
		)

	def to_dict(self) -> dict[str, Any]:
		return {
			"id": self.id,
			"event_id": self.event_id,
			"title": self.title,
			"description": self.description,
			"category": self.category,
			"start_date": self.start_date.isoformat() if self.start_date else None,
			"end_date": self.end_date.isoformat() if self.end_date else None,
			"location": self.location,
			"is_public": self.is_public,
			"creator_id": self.creator_id,
		}


@dataclass(slots=True)
class CarpoolParticipant:
	id: str
	user_id: str
	username: str
	role: Optional[str] = None
	is_anon: bool = False

	def to_dict(self) -> dict[str, Any]:
		return {
			"id": self.id,
			"user_id": self.user_id,
			"username": self.username,
			"role": self.role,
			"is_anon": self.is_anon,
		}


@dataclass(slots=True)
class SchedulePrivacyStatus:
	is_anonymous: bool
	display_name: str
