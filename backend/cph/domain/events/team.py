"""Team member status resolution against the user directory."""

from __future__ import annotations

import asyncio
from typing import Iterable

from cph.domain.events.models import TeamMember
from cph.domain.users.directory import UserDirectory
from cph.domain.users.models import is_profile_complete


def normalize_email(email: str | None) -> str:
	return (email or "").strip().lower()


async def resolve_member(directory: UserDirectory, email: str) -> TeamMember:
	"""No account means ``invited``; otherwise profile completeness decides."""
	normalized = normalize_email(email)
	user = await directory.get_user_by_email(normalized)
	if user is None:
		return TeamMember(email=normalized, user_id=None, status="invited")
	status = "complete" if is_profile_complete(user) else "profile_incomplete"
	return TeamMember(email=normalized, user_id=user.id, status=status)


async def refresh_team_statuses(directory: UserDirectory, members: Iterable[TeamMember]) -> list[TeamMember]:
	"""Point-in-time statuses, one concurrent lookup per member. Never writes."""
	return list(await asyncio.gather(*(resolve_member(directory, member.email) for member in members)))


__all__ = ["normalize_email", "refresh_team_statuses", "resolve_member"]
