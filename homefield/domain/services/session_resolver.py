"""
Session Resolver
Recovers the authenticated identity (or none) from the request credential
"""
import base64
import binascii
import json
import logging
import re
from typing import Any, Mapping, Optional

import jwt

from homefield.domain.models.tenant import Identity

logger = logging.getLogger(__name__)

LEGACY_ACCESS_COOKIE = "sb-access-token"
AUTH_COOKIE_PATTERN = re.compile(r"^sb-[^.]+-auth-token(?:\.(\d+))?$")
BASE64_PREFIX = "base64-"


def _decode_cookie_session(raw: str) -> Optional[str]:
    """Pull access_token out of the @supabase/ssr session cookie value."""
    if raw.startswith(BASE64_PREFIX):
        encoded = raw[len(BASE64_PREFIX):]
        try:
            raw = base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4)).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None
    try:
        session = json.loads(raw)
    except ValueError:
        return None

    if isinstance(session, dict):
        return session.get("access_token")
    # Older helpers stored [access_token, refresh_token, ...]
    if isinstance(session, list) and session and isinstance(session[0], str):
        return session[0]
    return None


def extract_access_token(
    authorization: Optional[str],
    cookies: Mapping[str, str],
) -> Optional[str]:
    """
    Find the session credential carried by a request.

    The ``Authorization: Bearer`` header wins; otherwise the Supabase auth
    cookie is read, reassembling chunked cookies (``.0``, ``.1``, ...).
    """
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]

    if cookies.get(LEGACY_ACCESS_COOKIE):
        return cookies[LEGACY_ACCESS_COOKIE]

    chunks = []
    for name, value in cookies.items():
        match = AUTH_COOKIE_PATTERN.match(name)
        if match:
            index = int(match.group(1)) if match.group(1) is not None else 0
            chunks.append((index, value))

    if not chunks:
        return None

    chunks.sort(key=lambda chunk: chunk[0])
    return _decode_cookie_session("".join(value for _, value in chunks))


class SessionResolver:
    """
    Resolves an access token to an Identity.

    Verifies locally with the project JWT secret when one is configured,
    otherwise asks Supabase Auth. Never raises: any failure is ``None``.
    """

    JWT_AUDIENCE = "authenticated"

    def __init__(self, supabase: Optional[Any], jwt_secret: Optional[str] = None):
        self.supabase = supabase
        self.jwt_secret = jwt_secret

    def resolve(self, access_token: Optional[str]) -> Optional[Identity]:
        if not access_token:
            return None

        if self.jwt_secret:
            return self._verify_locally(access_token)
        return self._verify_remotely(access_token)

    def _verify_locally(self, access_token: str) -> Optional[Identity]:
        try:
            payload = jwt.decode(
                access_token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=self.JWT_AUDIENCE,
            )
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected session token: {e}")
            return None

        user_id = payload.get("sub")
        if not user_id:
            return None
        return Identity(id=str(user_id), email=payload.get("email"))

    def _verify_remotely(self, access_token: str) -> Optional[Identity]:
        if self.supabase is None:
            logger.warning("Session lookup skipped: Supabase is not configured")
            return None

        try:
            user_response = self.supabase.auth.get_user(access_token)
        except Exception as e:
            logger.info(f"Session token validation failed: {e}")
            return None

        if not user_response or not user_response.user:
            return None

        auth_user = user_response.user
        return Identity(id=str(auth_user.id), email=auth_user.email)
