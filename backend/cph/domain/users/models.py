"""User records as seen by the events and feed services."""

from __future__ import annotations

import re
from typing import Literal, Optional

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from cph.domain.common import CamelModel

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,30}$")
MIN_EXPERIENCE_CHARS = 10

_URL_ADAPTER = TypeAdapter(AnyHttpUrl)


class UserRecord(CamelModel):
	id: str
	email: str = ""
	username: str = ""
	name: str = ""
	bio: Optional[str] = None
	avatar_url: Optional[str] = None
	role: Literal["USER", "MODERATOR", "ADMIN"] = "USER"
	experience: Optional[str] = None
	linked_in_url: Optional[str] = None
	x_url: Optional[str] = None
	github_url: Optional[str] = None
	website_url: Optional[str] = None
	created_at: Optional[str] = None
	updated_at: Optional[str] = None

	def social_links(self) -> list[str]:
		links = (self.linked_in_url, self.x_url, self.github_url, self.website_url)
		return [link.strip() for link in links if link and link.strip()]

	def snapshot(self) -> "UserSnapshot":
		return UserSnapshot(
			user_name=self.name,
			user_username=self.username,
			user_avatar_url=self.avatar_url or None,
			user_bio=self.bio or None,
		)


def is_profile_complete(user: UserRecord) -> bool:
	"""Experience of at least ten characters plus one social link."""
	experience = (user.experience or "").strip()
	return len(experience) >= MIN_EXPERIENCE_CHARS and bool(user.social_links())


class UserSnapshot(BaseModel):
	"""Display fields denormalized onto event registrations."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	user_name: Optional[str] = None
	user_username: Optional[str] = None
	user_avatar_url: Optional[str] = None
	user_bio: Optional[str] = None


def _optional_url(value: Optional[str]) -> Optional[str]:
	if value is None:
		return None
	text = str(value).strip()
	if not text:
		return None
	try:
		_URL_ADAPTER.validate_python(text)
	except PydanticValidationError as exc:
		raise ValueError("Links must be valid http(s) URLs") from exc
	return text


class ProfileUpdate(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	name: str = Field(min_length=2)
	username: str
	bio: Optional[str] = Field(default=None, max_length=2000)
	avatar_url: Optional[str] = None
	experience: Optional[str] = Field(default=None, max_length=500)
	linked_in_url: Optional[str] = None
	x_url: Optional[str] = None
	github_url: Optional[str] = None
	website_url: Optional[str] = None

	@field_validator("username")
	@classmethod
	def _check_username(cls, value: str) -> str:
		if not USERNAME_RE.match(value):
			raise ValueError("Username must be 3-30 characters: letters, numbers or underscores")
		return value.lower()

	@field_validator("avatar_url", "linked_in_url", "x_url", "github_url", "website_url")
	@classmethod
	def _check_url(cls, value: Optional[str]) -> Optional[str]:
		return _optional_url(value)

	@field_validator("bio", "experience")
	@classmethod
	def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
		if value is None:
			return None
		return value.strip() or None


__all__ = [
	"MIN_EXPERIENCE_CHARS",
	"ProfileUpdate",
	"USERNAME_RE",
	"UserRecord",
	"UserSnapshot",
	"is_profile_complete",
]
