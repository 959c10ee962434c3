"""Profile update endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from cph.api.deps import get_directory, get_registration_service
from cph.domain.events.registrations import RegistrationService
from cph.domain.users.directory import UserDirectory
from cph.domain.users.models import ProfileUpdate
from cph.infra.auth import AuthenticatedUser, get_current_user
from cph.infra.docstore import DocumentStoreError

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["profile"])


@router.patch("/profile")
async def update_profile(
	payload: ProfileUpdate,
	user: AuthenticatedUser = Depends(get_current_user),
	directory: UserDirectory = Depends(get_directory),
	registrations: RegistrationService = Depends(get_registration_service),
) -> dict[str, bool]:
	record = await directory.update_profile(user.id, payload)
	try:
		await registrations.update_registrations_user_snapshot(user.id, record.snapshot())
	except DocumentStoreError:
		# Registrations keep the previous snapshot; listings re-resolve from the directory
		LOGGER.warning("registration_snapshot_fanout_failed", extra={"user_id": user.id}, exc_info=True)
	return {"ok": True}


__all__ = ["router"]
