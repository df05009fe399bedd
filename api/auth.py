"""
Authorization check for the resource endpoints.

How accounts are authenticated is outside this service; routes only need to
know whether the caller is an authenticated user.  That question is answered
by an ``Authenticator`` stored on ``app.state.authenticator``.  The default
implementation accepts the bearer tokens listed in APP_API_TOKENS.

``require_user`` is attached at router level so it resolves before any other
dependency: an unauthenticated call never reaches the database.
"""

import hmac
import logging
from collections.abc import Iterable
from typing import Protocol

from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)


class Authenticator(Protocol):
    def is_authenticated(self, request: Request) -> bool:
        ...


class TokenAuthenticator:
    """Accept requests carrying one of a fixed set of tokens.

    The token may be sent as ``Authorization: Bearer <token>`` or as an
    ``X-API-Key`` header.  With no tokens configured every request is denied.
    """

    def __init__(self, tokens: Iterable[str]) -> None:
        self._tokens = [t for t in tokens if t]

    @staticmethod
    def _extract_token(request: Request) -> str | None:
        auth = request.headers.get("Authorization", "")
        scheme, _, credentials = auth.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
        api_key = request.headers.get("X-API-Key", "").strip()
        return api_key or None

    def is_authenticated(self, request: Request) -> bool:
        token = self._extract_token(request)
        if token is None:
            return False
        # compare against every token so timing does not reveal which one matched
        matched = False
        for candidate in self._tokens:
            if hmac.compare_digest(token.encode(), candidate.encode()):
                matched = True
        return matched


def require_user(request: Request) -> None:
    """FastAPI dependency: reject the request with 401 unless authenticated."""
    authenticator: Authenticator = request.app.state.authenticator
    if not authenticator.is_authenticated(request):
        logger.info("unauthorized method=%s path=%s", request.method, request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
