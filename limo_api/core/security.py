import logging
import secrets
from typing import Optional

from fastapi import Header, HTTPException, Request, status

logger = logging.getLogger(__name__)


def api_key_matches(expected: Optional[str], provided: Optional[str]) -> bool:
    if not expected:
        return True
    if not provided:
        return False
    return secrets.compare_digest(provided.encode(), expected.encode())


async def require_api_key(request: Request, x_api_key: Optional[str] = Header(None)):
    expected = request.app.state.settings.LMS_API_KEY
    if not api_key_matches(expected, x_api_key):
        logger.warning(f"Rejected request to {request.url.path}: invalid API key")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
