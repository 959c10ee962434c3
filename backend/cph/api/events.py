"""Event catalog, registration, participants and teammate board endpoints."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from cph.api.backend_error import backend_error_message
from cph.api.deps import get_directory, get_registration_service, get_teammate_service
from cph.api.errors import error_response
from cph.domain.events import catalog
from cph.domain.events.models import ParticipationType, RegistrationUpdate, TeammatePreference
from cph.domain.events.registrations import DEFAULT_PAGE_SIZE, RegistrationService
from cph.domain.events.teammates import TeammatePostService
from cph.domain.exceptions import NotFoundError, ValidationError
from cph.domain.users.directory import UserDirectory
from cph.infra.auth import AuthenticatedUser, get_current_user
from cph.infra.docstore import DocumentStoreError

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


class RegisterPayload(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	event_slug: str = Field(min_length=2)
	teammate_preference: TeammatePreference
	referral_source: str
	eligibility_agreed: bool
	rules_agreed: bool

	@field_validator("referral_source")
	@classmethod
	def _referral_required(cls, value: str) -> str:
		if not value.strip():
			raise ValueError("Please select how you heard about us.")
		return value.strip()

	@field_validator("eligibility_agreed")
	@classmethod
	def _eligibility(cls, value: bool) -> bool:
		if value is not True:
			raise ValueError("You must agree to the eligibility requirements.")
		return value

	@field_validator("rules_agreed")
	@classmethod
	def _rules(cls, value: bool) -> bool:
		if value is not True:
			raise ValueError("You must agree to the Official Rules and Terms of Service.")
		return value


class TeammatePostPayload(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	event_slug: str = Field(min_length=2)
	participation_type: ParticipationType
	looking_for: list[str] = Field(min_length=1, max_length=10)
	message: str = Field(min_length=10, max_length=700)


class TeammatePostUpdatePayload(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	post_id: str = Field(min_length=1)
	participation_type: ParticipationType
	looking_for: list[str] = Field(min_length=1, max_length=10)
	message: str = Field(min_length=10, max_length=700)


@router.get("")
async def list_events() -> dict[str, Any]:
	return {"data": [event.to_api() for event in catalog.all_events()]}


@router.post("/register")
async def register_for_event(
	payload: RegisterPayload,
	user: AuthenticatedUser = Depends(get_current_user),
	registrations: RegistrationService = Depends(get_registration_service),
	directory: UserDirectory = Depends(get_directory),
) -> dict[str, bool]:
	if catalog.get_event(payload.event_slug) is None:
		raise NotFoundError("Event not found")
	record = await directory.get_user_by_id(user.id)
	await registrations.upsert_registration(
		payload.event_slug,
		user.id,
		RegistrationUpdate(
			teammate_preference=payload.teammate_preference,
			referral_source=payload.referral_source,
			eligibility_agreed=True,
			rules_agreed=True,
			user_snapshot=record.snapshot() if record else None,
		),
	)
	return {"ok": True}


@router.get("/teammates")
async def list_teammate_posts(
	request: Request,
	event_slug: Optional[str] = Query(default=None, alias="eventSlug"),
	teammates: TeammatePostService = Depends(get_teammate_service),
):
	slug = (event_slug or "").strip()
	if not slug:
		return error_response(request, status.HTTP_400_BAD_REQUEST, "eventSlug is required", data=[])
	try:
		data = await teammates.list_posts(slug)
	except DocumentStoreError as exc:
		LOGGER.warning("teammate_posts_unavailable", extra={"event_slug": slug, "error_type": type(exc).__name__})
		return error_response(request, status.HTTP_503_SERVICE_UNAVAILABLE, backend_error_message(exc), data=[])
	return {"data": data}


@router.post("/teammates", status_code=status.HTTP_201_CREATED)
async def create_teammate_post(
	payload: TeammatePostPayload,
	user: AuthenticatedUser = Depends(get_current_user),
	teammates: TeammatePostService = Depends(get_teammate_service),
) -> dict[str, Any]:
	post = await teammates.create_post(
		payload.event_slug,
		user.id,
		payload.participation_type,
		payload.looking_for,
		payload.message,
	)
	return {"data": post.to_api()}


@router.patch("/teammates")
async def update_teammate_post(
	payload: TeammatePostUpdatePayload,
	user: AuthenticatedUser = Depends(get_current_user),
	teammates: TeammatePostService = Depends(get_teammate_service),
) -> dict[str, Any]:
	post = await teammates.update_post(
		payload.post_id,
		user.id,
		payload.participation_type,
		payload.looking_for,
		payload.message,
	)
	return {"data": post.to_api()}


@router.get("/{slug}")
async def get_event(
	slug: str,
	registrations: RegistrationService = Depends(get_registration_service),
) -> dict[str, Any]:
	event = catalog.get_event(slug)
	if event is None:
		raise NotFoundError("Event not found")
	return {"data": event.to_api(), "stats": await registrations.get_event_stats(slug)}


@router.get("/{slug}/participants")
async def list_participants(
	slug: str,
	limit: int = Query(default=DEFAULT_PAGE_SIZE),
	cursor: Optional[str] = Query(default=None),
	registrations: RegistrationService = Depends(get_registration_service),
) -> dict[str, Any]:
	if not slug.strip():
		raise ValidationError("slug required")
	if limit <= 0:
		raise ValidationError("limit must be a positive number")
	return await registrations.list_participants(slug, limit=limit, cursor=cursor)


__all__ = ["router"]
