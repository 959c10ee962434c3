"""Event registration, application and teammate-board documents."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from cph.domain.common import CamelModel
from cph.domain.users.models import UserSnapshot

ParticipationType = Literal["TEAM", "INDIVIDUAL"]
TeammatePreference = Literal["solo", "looking", "team"]
TeamMemberStatus = Literal["invited", "profile_incomplete", "complete"]
ApplicationStatus = Literal["draft", "submitted"]
YesNo = Literal["yes", "no"]


class EventRegistration(CamelModel):
	id: str
	event_slug: str
	user_id: str
	participation_type: ParticipationType = "INDIVIDUAL"
	team_name: Optional[str] = None
	project_name: str = ""
	skills: list[str] = Field(default_factory=list)
	bio: str = ""
	teammate_preference: Optional[TeammatePreference] = None
	referral_source: Optional[str] = None
	eligibility_agreed: bool = False
	rules_agreed: bool = False
	created_at: Optional[str] = None
	updated_at: Optional[str] = None
	user_name: Optional[str] = None
	user_username: Optional[str] = None
	user_avatar_url: Optional[str] = None
	user_bio: Optional[str] = None

	def has_snapshot(self) -> bool:
		return bool(self.user_name or self.user_username)


class RegistrationUpdate(BaseModel):
	"""Partial registration write; unset fields keep their stored values."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	participation_type: Optional[ParticipationType] = None
	team_name: Optional[str] = None
	project_name: Optional[str] = None
	skills: Optional[list[str]] = None
	bio: Optional[str] = None
	teammate_preference: Optional[TeammatePreference] = None
	referral_source: Optional[str] = None
	eligibility_agreed: Optional[bool] = None
	rules_agreed: Optional[bool] = None
	user_snapshot: Optional[UserSnapshot] = None


class TeamMember(CamelModel):
	"""Invited teammate. ``status`` is recomputed from the directory on read."""

	email: str
	user_id: Optional[str] = None
	status: TeamMemberStatus = "invited"

	@field_validator("email")
	@classmethod
	def _normalize(cls, value: str) -> str:
		return value.strip().lower()


class ApplicationSections(CamelModel):
	# Founders
	founders_known_how_long: Optional[str] = None
	who_writes_code: Optional[str] = None
	looking_for_cofounder: Optional[str] = None
	founder_video_url: Optional[str] = None
	# Company
	company_name: Optional[str] = None
	tagline50: Optional[str] = Field(default=None, max_length=50)
	company_url: Optional[str] = None
	demo_video_url: Optional[str] = None
	demo_file_url: Optional[str] = None
	product_link: Optional[str] = None
	product_link_credentials: Optional[str] = None
	what_will_you_make: Optional[str] = None
	location: Optional[str] = None
	location_reason: Optional[str] = None
	# Progress
	how_far_along: Optional[str] = None
	how_long_working: Optional[str] = None
	tech_stack: Optional[str] = None
	coding_session_url: Optional[str] = None
	people_using_product: Optional[YesNo] = None
	have_revenue: Optional[YesNo] = None
	previous_batch_change: Optional[str] = None
	other_incubator: Optional[str] = None
	# Idea
	why_this_idea: Optional[str] = None
	competitors: Optional[str] = None
	how_make_money: Optional[str] = None
	category: Optional[str] = None
	other_ideas: Optional[str] = None
	# Equity
	legal_entity: Optional[YesNo] = None
	equity_breakdown: Optional[str] = None
	taken_investment: Optional[YesNo] = None
	currently_fundraising: Optional[YesNo] = None
	# Mission
	catholic_mission: Optional[str] = None
	church_problem: Optional[str] = None
	catholic_teaching_alignment: Optional[str] = None
	church_audience: Optional[str] = None
	faith_growth: Optional[str] = None
	# Curious
	why_apply: Optional[str] = None
	how_hear: Optional[str] = None
	# Track
	track_preference: Optional[str] = None

	def to_document(self) -> dict:
		return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class EventApplication(CamelModel):
	id: str
	event_slug: str
	user_id: str
	status: ApplicationStatus = "draft"
	submitted_at: Optional[str] = None
	team_members: list[TeamMember] = Field(default_factory=list)
	member_emails: list[str] = Field(default_factory=list)
	sections: ApplicationSections = Field(default_factory=ApplicationSections)
	created_at: Optional[str] = None
	updated_at: Optional[str] = None

	def to_document(self) -> dict:
		data = super().to_document()
		data["sections"] = self.sections.to_document()
		data["memberEmails"] = [member.email for member in self.team_members]
		return data

	def to_api(self) -> dict:
		data = self.to_document()
		data["id"] = self.id
		return data


class TeammatePost(CamelModel):
	id: str
	event_slug: str
	user_id: str
	participation_type: ParticipationType = "INDIVIDUAL"
	looking_for: list[str] = Field(default_factory=list)
	message: str = ""
	created_at: Optional[str] = None
	updated_at: Optional[str] = None


__all__ = [
	"ApplicationSections",
	"ApplicationStatus",
	"EventApplication",
	"EventRegistration",
	"ParticipationType",
	"RegistrationUpdate",
	"TeamMember",
	"TeamMemberStatus",
	"TeammatePost",
	"TeammatePreference",
]
