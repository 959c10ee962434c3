"""Domain exceptions carrying the HTTP status they map to."""

from __future__ import annotations

from typing import Iterable

from fastapi import status


class DomainError(Exception):
	"""Base class for domain errors surfaced to API callers."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "Invalid request"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class ValidationError(DomainError):
	"""Raised for validation errors not covered by request schema validation."""

	detail = "Invalid payload"


class StateGuardError(DomainError):
	"""Raised when an operation is not allowed in the current state."""

	detail = "Operation not allowed"


class ApplicationNotFoundError(StateGuardError):
	detail = "Application not found. Save a draft first."


class DuplicateTeamMemberError(StateGuardError):
	detail = "already added"


class TeamIncompleteError(StateGuardError):
	"""Raised when resolved team members still have incomplete profiles."""

	def __init__(self, emails: Iterable[str]) -> None:
		self.emails = tuple(emails)
		super().__init__(
			f"{', '.join(self.emails)} still need to complete their profiles "
			"(experience + at least one social link) before you can submit."
		)


class ForbiddenError(DomainError):
	status_code = status.HTTP_403_FORBIDDEN
	detail = "Forbidden"


class NotRegisteredError(ForbiddenError):
	detail = "Not registered for this event. Register first."


class NotFoundError(DomainError):
	status_code = status.HTTP_404_NOT_FOUND
	detail = "Not found"


class ConflictError(DomainError):
	status_code = status.HTTP_409_CONFLICT
	detail = "Conflict"


__all__ = [
	"ApplicationNotFoundError",
	"ConflictError",
	"DomainError",
	"DuplicateTeamMemberError",
	"ForbiddenError",
	"NotFoundError",
	"NotRegisteredError",
	"StateGuardError",
	"TeamIncompleteError",
	"ValidationError",
]
