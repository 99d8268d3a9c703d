"""
backend/app/middleware/cors.py

Purpose:
    CORS for the embedding site: every response carries the configured
    origin, and OPTIONS preflights are answered directly with 204. Also turns
    unhandled exceptions into a JSON 500 so those responses keep the CORS
    headers as well.

Dependencies:
    - starlette
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger("betlogic.cors")

PREFLIGHT_MAX_AGE = "86400"


class CorsHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, allow_origin: str = "*"):
        super().__init__(app)
        self.allow_origin = allow_origin or "*"

    def _apply(self, response: Response) -> Response:
        response.headers["Access-Control-Allow-Origin"] = self.allow_origin
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
        if self.allow_origin != "*":
            response.headers["Vary"] = "Origin"
        return response

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            response = Response(status_code=204)
            response.headers["Access-Control-Max-Age"] = PREFLIGHT_MAX_AGE
            return self._apply(response)

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
            response = JSONResponse(status_code=500, content={"error": "Server error"})
        return self._apply(response)
