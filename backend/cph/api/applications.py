"""Event application endpoints: drafts, team invitations and submission."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from cph.api.deps import get_application_manager, get_registration_service
from cph.domain.events.applications import EventApplicationManager
from cph.domain.events.models import ApplicationSections, TeamMember, TeamMemberStatus
from cph.domain.events.registrations import RegistrationService
from cph.domain.exceptions import NotRegisteredError, ValidationError
from cph.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/events/{slug}/application", tags=["events:applications"])


class TeamMemberIn(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	email: EmailStr
	user_id: Optional[str] = None
	status: Optional[TeamMemberStatus] = None


class SaveDraftPayload(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	team_members: list[TeamMemberIn] = Field(default_factory=list)
	sections: ApplicationSections = Field(default_factory=ApplicationSections)


class AddMemberPayload(BaseModel):
	email: EmailStr


async def _require_registration(slug: str, user: AuthenticatedUser, registrations: RegistrationService) -> None:
	if await registrations.get_by_user(slug, user.id) is None:
		raise NotRegisteredError()


async def _owner_id(slug: str, user: AuthenticatedUser, manager: EventApplicationManager) -> str:
	application = await manager.get_for_user(slug, user.id, user.email)
	return application.user_id if application else user.id


@router.get("")
async def get_application(
	slug: str,
	user: AuthenticatedUser = Depends(get_current_user),
	manager: EventApplicationManager = Depends(get_application_manager),
	registrations: RegistrationService = Depends(get_registration_service),
) -> Optional[dict[str, Any]]:
	await _require_registration(slug, user, registrations)
	application = await manager.get_for_user(slug, user.id, user.email)
	if application is None:
		return None
	members = await manager.refresh_team_statuses(application.team_members)
	return application.model_copy(update={"team_members": members}).to_api()


@router.post("")
async def save_draft(
	slug: str,
	payload: SaveDraftPayload,
	user: AuthenticatedUser = Depends(get_current_user),
	manager: EventApplicationManager = Depends(get_application_manager),
	registrations: RegistrationService = Depends(get_registration_service),
) -> dict[str, Any]:
	await _require_registration(slug, user, registrations)
	members = [
		TeamMember(email=member.email, user_id=member.user_id, status=member.status or "invited")
		for member in payload.team_members
	]
	application = await manager.upsert_draft(slug, user.id, members, payload.sections)
	return application.to_api()


@router.post("/submit")
async def submit_application(
	slug: str,
	user: AuthenticatedUser = Depends(get_current_user),
	manager: EventApplicationManager = Depends(get_application_manager),
	registrations: RegistrationService = Depends(get_registration_service),
) -> dict[str, bool]:
	await _require_registration(slug, user, registrations)
	await manager.submit(slug, await _owner_id(slug, user, manager))
	return {"ok": True}


@router.post("/team")
async def add_team_member(
	slug: str,
	payload: AddMemberPayload,
	user: AuthenticatedUser = Depends(get_current_user),
	manager: EventApplicationManager = Depends(get_application_manager),
	registrations: RegistrationService = Depends(get_registration_service),
) -> dict[str, Any]:
	await _require_registration(slug, user, registrations)
	member = await manager.add_team_member(slug, await _owner_id(slug, user, manager), payload.email)
	return {"ok": True, "member": member.to_api()}


@router.delete("/team")
async def remove_team_member(
	slug: str,
	email: Optional[str] = Query(default=None),
	user: AuthenticatedUser = Depends(get_current_user),
	manager: EventApplicationManager = Depends(get_application_manager),
	registrations: RegistrationService = Depends(get_registration_service),
) -> dict[str, bool]:
	await _require_registration(slug, user, registrations)
	if not email or not email.strip():
		raise ValidationError("Missing email query parameter")
	await manager.remove_team_member(slug, await _owner_id(slug, user, manager), email)
	return {"ok": True}


__all__ = ["router"]
