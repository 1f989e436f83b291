
from datetime import datetime

import httpx
import pytest
from httpx import ASGITransport

from catalog.client.api import SearchAPIClient, SearchAPIError, build_search_params
from catalog.client.loader import ContentLoader, LoaderState
from catalog.client.models import FilterState
from catalog.client.store import ContentStore
from catalog.core.database import get_session_maker
from catalog.main import app
from catalog.services.codec import encode_payload


def _page_payload(**overrides):
    payload = {
        "page": 1, "perPage": 10, "total": 1, "totalPages": 1,
        "data": [{"id": 1, "name": "one", "category": "Teen", "contentType": "asian"}],
        "searchTime": 3, "sources": [{"source": "asian", "count": 1}],
    }
    payload.update(overrides)
    return payload


def _client(handler, **kwargs):
    return SearchAPIClient(base_url="http://test", transport=httpx.MockTransport(handler), **kwargs)


def test_build_search_params_omits_empty_filters():
    params = build_search_params("vip-asian", FilterState(), 2, 30)

    assert params == {
        "page": "2", "limit": "30", "sortBy": "postDate", "sortOrder": "DESC", "contentType": "vip-asian",
    }

    params = build_search_params(
        "asian",
        FilterState(search_name="x", selected_category="Teen", selected_month="2", date_filter="last7"),
        1, 10,
    )
    assert params["search"] == "x"
    assert params["category"] == "Teen"
    assert params["month"] == "2"
    assert params["dateFilter"] == "last7"


@pytest.mark.asyncio
async def test_search_decodes_payload_and_sends_headers():
    seen = {}

    def handler(request: httpx.Request):
        seen["headers"] = request.headers
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"data": encode_payload(_page_payload())})

    page = await _client(handler, api_key="front-key", token="tok").search("asian", FilterState(), 1, 10)

    assert page.total_pages == 1
    assert page.data[0]["name"] == "one"
    assert seen["headers"]["x-api-key"] == "front-key"
    assert seen["headers"]["authorization"] == "Bearer tok"
    assert seen["params"]["contentType"] == "asian"


@pytest.mark.asyncio
async def test_http_error_becomes_search_api_error():
    def handler(request):
        error = _page_payload(total=0, totalPages=0, data=[], error="DATABASE_UNAVAILABLE", message="down")
        return httpx.Response(503, json={"data": encode_payload(error)})

    with pytest.raises(SearchAPIError) as exc_info:
        await _client(handler).search("asian", FilterState(), 1, 10)

    assert exc_info.value.status_code == 503
    assert exc_info.value.code == "DATABASE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_undecodable_payload_becomes_search_api_error():
    def handler(request):
        return httpx.Response(200, json={"data": "!!not-base64!!"})

    with pytest.raises(SearchAPIError):
        await _client(handler).search("asian", FilterState(), 1, 10)


@pytest.mark.asyncio
async def test_missing_data_field_becomes_search_api_error():
    def handler(request):
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(SearchAPIError) as exc_info:
        await _client(handler).search("asian", FilterState(), 1, 10)

    assert "Invalid server response" in str(exc_info.value)


@pytest.mark.asyncio
async def test_loader_against_running_app(session_maker, add_content):
    for day in range(1, 16):
        await add_content("vip-western", f"item {day:02d}", datetime(2024, 1, day), category=f"cat{day % 3}")
    await add_content("asian", "other source", datetime(2024, 1, 20))

    app.dependency_overrides[get_session_maker] = lambda: session_maker
    try:
        api = SearchAPIClient(base_url="http://test", transport=ASGITransport(app=app))
        loader = ContentLoader("vip-western", api, ContentStore(), page_size=10, debounce_seconds=0)

        await loader.refresh()
        assert loader.state == LoaderState.READY
        assert [link["name"] for link in loader.links[:2]] == ["item 15", "item 14"]
        assert loader.total_pages == 2

        assert await loader.load_more() is True
        assert [link["name"] for link in loader.links] == [f"item {day:02d}" for day in range(15, 0, -1)]
        assert loader.has_more_content is False
        assert sorted(loader.categories) == ["cat0", "cat1", "cat2"]
    finally:
        app.dependency_overrides.clear()
