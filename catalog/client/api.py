
from typing import Dict, Optional
import httpx
from pydantic import ValidationError
from catalog.client.models import FilterState, SearchPage
from catalog.client.utils import backoff_client, limited_get
from catalog.core.settings import settings
from catalog.services.codec import PayloadDecodeError, decode_payload

SEARCH_PATH = "/universal-search/search"


class SearchAPIError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(self.message)


def build_search_params(content_type: str, filters: FilterState, page: int, limit: int) -> Dict[str, str]:
    params = {
        "page": str(page),
        "limit": str(limit),
        "sortBy": "postDate",
        "sortOrder": "DESC",
        "contentType": content_type,
    }
    if filters.search_name:
        params["search"] = filters.search_name
    if filters.selected_category:
        params["category"] = filters.selected_category
    if filters.selected_month:
        params["month"] = filters.selected_month
    if filters.date_filter and filters.date_filter != "all":
        params["dateFilter"] = filters.date_filter
    return params


class SearchAPIClient:
    """Client for the universal search endpoint.

    Decodes the obfuscated envelope and turns every failure mode (transport,
    HTTP status, undecodable body, error envelope) into ``SearchAPIError``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.client_base_url
        self.api_key = api_key if api_key is not None else settings.frontend_api_key
        self.token = token
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def search(self, content_type: str, filters: FilterState, page: int, limit: int) -> SearchPage:
        params = build_search_params(content_type, filters, page, limit)

        async with backoff_client(self.base_url, self.transport) as client:
            try:
                response = await limited_get(client, SEARCH_PATH, params=params, headers=self._headers())
            except httpx.HTTPStatusError as e:
                raise SearchAPIError(
                    f"HTTP {e.response.status_code} from search",
                    status_code=e.response.status_code,
                    code=_error_code(e.response),
                ) from e
            except httpx.HTTPError as e:
                raise SearchAPIError(f"Search request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise SearchAPIError(f"Invalid server response: {e}", status_code=response.status_code) from e

        encoded = body.get("data") if isinstance(body, dict) else None
        if not isinstance(encoded, str):
            raise SearchAPIError("Invalid server response", status_code=response.status_code)

        try:
            payload = decode_payload(encoded)
        except PayloadDecodeError as e:
            raise SearchAPIError(str(e), status_code=response.status_code) from e

        if not isinstance(payload, dict):
            raise SearchAPIError("Invalid search payload", status_code=response.status_code)

        if payload.get("error"):
            raise SearchAPIError(
                payload.get("message") or payload["error"],
                status_code=response.status_code,
                code=payload["error"],
            )

        try:
            return SearchPage.model_validate(payload)
        except ValidationError as e:
            raise SearchAPIError(f"Malformed search payload: {e}", status_code=response.status_code) from e


def _error_code(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
        if isinstance(body, dict) and isinstance(body.get("data"), str):
            body = decode_payload(body["data"])
        return body.get("error") if isinstance(body, dict) else None
    except (ValueError, PayloadDecodeError):
        return None
