"""
Session Middleware
Extracts the Supabase access token from the Authorization header or the
auth cookie and attaches it to request.state
"""
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from homefield.domain.services.session_resolver import extract_access_token


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Middleware to pull the session credential off the request.

    Usage:
    1. Add to main.py: app.add_middleware(SessionMiddleware)
    2. Access token via request.state.access_token (None when absent)

    No verification happens here; routes resolve the identity through
    the SessionResolver dependency.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.access_token = extract_access_token(
            request.headers.get("Authorization"),
            request.cookies,
        )
        return await call_next(request)


def get_access_token(request: Request) -> Optional[str]:
    """Dependency returning the token extracted by SessionMiddleware."""
    token = getattr(request.state, "access_token", None)
    if token is None:
        # Middleware not installed (e.g. a bare router in tests)
        token = extract_access_token(request.headers.get("Authorization"), request.cookies)
    return token
