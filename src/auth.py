import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

PUBLIC_PATHS = frozenset({"/health"})


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """Guards the streamable-HTTP transport with a static bearer token."""

    def __init__(self, app, token: str):
        super().__init__(app)
        self.expected = f"Bearer {token}"

    async def dispatch(self, request: Request, call_next):
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        auth = request.headers.get("authorization", "")
        if not secrets.compare_digest(auth.encode(), self.expected.encode()):
            return JSONResponse(
                {"error": "Unauthorized"},
                status_code=401,
                headers={"www-authenticate": "Bearer"},
            )
        return await call_next(request)
