"""Caller identification for FastAPI endpoints.

A bearer JWT (HS256, ``settings.secret_key``) is required outside development.
In development the ``X-User-Id`` header is accepted for local tooling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import InvalidTokenError

from cph.infra import jwt as jwt_helper
from cph.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	email: Optional[str] = None
	name: Optional[str] = None


_bearer_scheme = HTTPBearer(auto_error=False)


def verify_access_jwt(token: str) -> AuthenticatedUser:
	try:
		payload = jwt_helper.decode_access(token)
	except InvalidTokenError:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

	sub = str(payload.get("sub") or "").strip()
	if not sub:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
	email = payload.get("email")
	name = payload.get("name")
	return AuthenticatedUser(
		id=sub,
		email=str(email).strip().lower() if email else None,
		name=str(name) if name is not None else None,
	)


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_email: Optional[str] = Header(default=None, alias="X-User-Email"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)

	# Header identity is a local-development convenience only
	if settings.is_dev() and x_user_id:
		email = x_user_email.strip().lower() if x_user_email else None
		return AuthenticatedUser(id=x_user_id.strip(), email=email)

	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


__all__ = ["AuthenticatedUser", "get_current_user", "verify_access_jwt"]
