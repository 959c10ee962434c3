"""Event application manager: drafts, team invitations and guarded submission.

Lifecycle::

	(none) --upsert_draft / add_team_member--> draft
	draft  --upsert_draft--> draft
	draft  --submit (every resolved member complete)--> submitted
	submitted --submit--> submitted (no re-check, submittedAt unchanged)

Edits after submission are accepted and leave the status alone. Documents are
keyed ``{eventSlug}_{userId}`` and always written whole to the versioned
collection, so a record read from the legacy generation is copied forward in
full on its first write.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from cph.domain.common import now_iso
from cph.domain.events import team
from cph.domain.events.models import ApplicationSections, EventApplication, TeamMember
from cph.domain.exceptions import (
	ApplicationNotFoundError,
	DuplicateTeamMemberError,
	TeamIncompleteError,
	ValidationError,
)
from cph.domain.users.directory import UserDirectory
from cph.infra.docstore import DocumentStore, Query
from cph.infra.schema import CollectionKey
from cph.infra.versioned import VersionedCollection
from cph.obs import metrics as obs_metrics
from cph.settings import Settings

LOGGER = logging.getLogger(__name__)


def application_id(event_slug: str, user_id: str) -> str:
	return f"{event_slug}_{user_id}"


def _dedupe_members(members: Iterable[TeamMember]) -> list[TeamMember]:
	seen: set[str] = set()
	unique: list[TeamMember] = []
	for member in members:
		email = team.normalize_email(member.email)
		if not email or email in seen:
			continue
		seen.add(email)
		unique.append(member.model_copy(update={"email": email}))
	return unique


class EventApplicationManager:
	def __init__(self, store: DocumentStore, directory: UserDirectory, *, config: Optional[Settings] = None) -> None:
		self._applications = VersionedCollection.for_key(store, CollectionKey.EVENT_APPLICATIONS, config)
		self._directory = directory

	async def get_by_user(self, event_slug: str, user_id: str) -> Optional[EventApplication]:
		doc = await self._applications.get(application_id(event_slug, user_id))
		return EventApplication.from_document(doc) if doc else None

	async def get_for_user(
		self,
		event_slug: str,
		user_id: str,
		email: Optional[str] = None,
	) -> Optional[EventApplication]:
		"""The caller's own application, else one that lists the caller as a teammate."""
		own = await self.get_by_user(event_slug, user_id)
		if own is not None:
			return own
		normalized = team.normalize_email(email)
		if not normalized:
			user = await self._directory.get_user_by_id(user_id)
			normalized = team.normalize_email(user.email if user else None)
		if not normalized:
			return None
		query = (
			Query()
			.where("eventSlug", "==", event_slug)
			.where("memberEmails", "array_contains", normalized)
			.take(1)
		)
		docs = await self._applications.find(query)
		return EventApplication.from_document(docs[0]) if docs else None

	async def _save(self, application: EventApplication) -> EventApplication:
		await self._applications.set(application.id, application.to_document())
		return application

	def _new_draft(self, event_slug: str, user_id: str, now: str) -> EventApplication:
		return EventApplication(
			id=application_id(event_slug, user_id),
			event_slug=event_slug,
			user_id=user_id,
			status="draft",
			submitted_at=None,
			team_members=[],
			sections=ApplicationSections(),
			created_at=now,
			updated_at=now,
		)

	async def upsert_draft(
		self,
		event_slug: str,
		user_id: str,
		team_members: Iterable[TeamMember],
		sections: ApplicationSections,
	) -> EventApplication:
		"""Replace team and sections wholesale. Status and submittedAt survive."""
		now = now_iso()
		existing = await self.get_by_user(event_slug, user_id)
		base = existing or self._new_draft(event_slug, user_id, now)
		application = base.model_copy(
			update={
				"team_members": _dedupe_members(team_members),
				"sections": sections,
				"created_at": base.created_at or now,
				"updated_at": now,
			}
		)
		await self._save(application)
		obs_metrics.inc_application_draft()
		LOGGER.info(
			"application_draft_saved",
			extra={"event_slug": event_slug, "user_id": user_id, "members": len(application.team_members)},
		)
		return application

	async def refresh_team_statuses(self, team_members: Iterable[TeamMember]) -> list[TeamMember]:
		return await team.refresh_team_statuses(self._directory, team_members)

	async def add_team_member(self, event_slug: str, user_id: str, email: str) -> TeamMember:
		normalized = team.normalize_email(email)
		if not normalized:
			raise ValidationError("Email is required")
		now = now_iso()
		application = await self.get_by_user(event_slug, user_id) or self._new_draft(event_slug, user_id, now)
		if any(member.email == normalized for member in application.team_members):
			raise DuplicateTeamMemberError()

		member = await team.resolve_member(self._directory, normalized)
		await self._save(
			application.model_copy(
				update={"team_members": [*application.team_members, member], "updated_at": now}
			)
		)
		obs_metrics.inc_team_member_change("added")
		return member

	async def remove_team_member(self, event_slug: str, user_id: str, email: str) -> None:
		application = await self.get_by_user(event_slug, user_id)
		if application is None:
			return
		normalized = team.normalize_email(email)
		remaining = [member for member in application.team_members if member.email != normalized]
		if len(remaining) == len(application.team_members):
			return
		await self._save(application.model_copy(update={"team_members": remaining, "updated_at": now_iso()}))
		obs_metrics.inc_team_member_change("removed")

	async def submit(self, event_slug: str, user_id: str) -> EventApplication:
		application = await self.get_by_user(event_slug, user_id)
		if application is None:
			raise ApplicationNotFoundError()
		# Submission is sticky: the gate is only evaluated on the first submit
		if application.status == "submitted":
			return application

		members = await self.refresh_team_statuses(application.team_members)
		blockers = [member.email for member in members if member.user_id and member.status != "complete"]
		if blockers:
			obs_metrics.inc_application_submit_blocked()
			LOGGER.info(
				"application_submit_blocked",
				extra={"event_slug": event_slug, "user_id": user_id, "blocked": len(blockers)},
			)
			raise TeamIncompleteError(blockers)

		now = now_iso()
		submitted = application.model_copy(
			update={"status": "submitted", "submitted_at": now, "team_members": members, "updated_at": now}
		)
		await self._save(submitted)
		obs_metrics.inc_application_submitted()
		LOGGER.info("application_submitted", extra={"event_slug": event_slug, "user_id": user_id})
		return submitted


__all__ = ["EventApplicationManager", "application_id"]
