
import httpx
from contextlib import asynccontextmanager
from typing import Optional
from aiolimiter import AsyncLimiter
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
from catalog.core.settings import settings

# Shared across loaders so several content types cannot flood the API
limiter = AsyncLimiter(settings.client_rate_limit, 1)

@asynccontextmanager
async def backoff_client(
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
):
    async with httpx.AsyncClient(
        base_url=base_url or settings.client_base_url,
        timeout=settings.client_timeout,
        transport=transport,
    ) as client:
        yield client

@retry(
    retry=retry_if_exception_type(httpx.TransportError),
    wait=wait_exponential(multiplier=0.5, min=1, max=8),
    stop=stop_after_attempt(4),
    reraise=True,
)
async def limited_get(client: httpx.AsyncClient, url: str, **kwargs) -> httpx.Response:
    async with limiter:
        resp = await client.get(url, **kwargs)
        resp.raise_for_status()
        return resp
