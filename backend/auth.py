"""
API key auth middleware for the Sales Call Coach backend.
Every /v1/ request needs a Bearer token that the key store maps to a user id.
The user id is placed on request.state.user_id for the route handlers.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from models import ErrorResponse
from ports.key_store import KeyStorePort

logger = logging.getLogger(__name__)

# Paths that never require auth
OPEN_PATHS = {"/health", "/v1/providers"}

# Only these path prefixes require API key auth.
AUTH_PREFIXES = ("/v1/",)


def _unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(status_code=401, content=ErrorResponse(error=detail).model_dump())


class AuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, key_store: KeyStorePort):
        super().__init__(app)
        self._key_store = key_store

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in OPEN_PATHS or not any(path.startswith(p) for p in AUTH_PREFIXES):
            return await call_next(request)

        # Allow OPTIONS (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        auth = request.headers.get("authorization", "")
        if not auth.startswith("Bearer "):
            return _unauthorized("Unauthorized")

        token = auth[7:].strip()
        user_id = self._key_store.get_user_id(token)
        if not user_id:
            client_ip = request.client.host if request.client else ""
            logger.warning(f"Invalid API key from {client_ip}")
            return _unauthorized("Invalid API key")

        request.state.user_id = user_id
        return await call_next(request)
