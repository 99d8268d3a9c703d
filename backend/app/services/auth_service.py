import logging
import secrets

from fastapi import Request

from app.config import settings
from app.errors import Unauthorized

logger = logging.getLogger("betlogic.auth")


def bearer_token(request: Request) -> str:
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


async def require_internal_key(request: Request) -> None:
    """FastAPI dependency: static bearer check, disabled when no key is configured."""
    expected = settings.BETLOGIC_INTERNAL_KEY
    if not expected:
        return
    if not secrets.compare_digest(bearer_token(request).encode(), expected.encode()):
        logger.warning("Rejected request to %s: bad bearer token", request.url.path)
        raise Unauthorized("Unauthorized")
