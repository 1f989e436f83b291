
import logging
from typing import Optional
from fastapi import Header, HTTPException, Request
from catalog.core.settings import settings

logger = logging.getLogger(__name__)


async def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(default=None),
    x_admin_key: Optional[str] = Header(default=None),
) -> None:
    if settings.admin_api_key and x_admin_key == settings.admin_api_key:
        return

    if not settings.frontend_api_key:
        return

    if request.method == "GET" and x_api_key == settings.frontend_api_key:
        return

    logger.warning(
        f"API key check failed: method={request.method} path={request.url.path} "
        f"has_api_key={bool(x_api_key)} has_admin_key={bool(x_admin_key)}"
    )
    raise HTTPException(status_code=403, detail="Unauthorized access")
