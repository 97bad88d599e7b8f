# tests/test_record_store.py — Hosted record store client wire format
import json

import httpx
import pytest

from config import StoreSettings
from errors import RecordStoreUnavailable
from filters import equals, order
from notifications import NotificationCenter, ToastLevel
from record_store import ApperRecordStore, PagingInfo, QueryParams
from services import ServiceRegistry

SETTINGS = StoreSettings(
    apper_project_id="proj-123",
    apper_public_key="pk-456",
    apper_base_url="https://records.example/v1",
    timeout_seconds=5,
)


class Recorder:
    """MockTransport handler that records requests and replays one reply"""

    def __init__(self, status_code=200, body=None, exc=None):
        self.status_code = status_code
        self.body = body if body is not None else {"success": True, "data": []}
        self.exc = exc
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self):
        return json.loads(self.requests[-1].content)


def make_store(handler) -> ApperRecordStore:
    return ApperRecordStore(SETTINGS, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_records_posts_query_shape():
    handler = Recorder(body={"success": True, "data": [{"Id": 1, "Name": "Acme"}]})
    store = make_store(handler)
    params = QueryParams.select(
        ["Name"],
        where=[equals("status_c", "Active")],
        order_by=[order("Name")],
        paging_info=PagingInfo(limit=10, offset=0),
    )

    response = await store.fetch_records("client_c", params)

    request = handler.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/tables/client_c/records/fetch"
    assert request.headers["X-Apper-Project-Id"] == "proj-123"
    assert request.headers["X-Apper-Public-Key"] == "pk-456"
    assert handler.last_json == {
        "fields": [{"field": {"Name": "Name"}}],
        "where": [{"FieldName": "status_c", "Operator": "EqualTo", "Values": ["Active"]}],
        "orderBy": [{"fieldName": "Name", "sorttype": "ASC"}],
        "pagingInfo": {"limit": 10, "offset": 0},
    }
    assert response.success is True
    assert response.data == [{"Id": 1, "Name": "Acme"}]
    await store.aclose()


@pytest.mark.asyncio
async def test_get_record_by_id_path():
    handler = Recorder(body={"success": True, "data": {"Id": 7}})
    store = make_store(handler)
    response = await store.get_record_by_id("task_c", 7, QueryParams.select(["Name"]))
    assert handler.requests[0].url.path == "/v1/tables/task_c/records/7/fetch"
    assert response.data == {"Id": 7}
    await store.aclose()


@pytest.mark.asyncio
async def test_create_update_delete_bodies():
    handler = Recorder(body={
        "success": True,
        "results": [{"success": False, "errors": [{"fieldLabel": "status_c", "message": "bad"}]}],
    })
    store = make_store(handler)

    created = await store.create_record("client_c", [{"Name": "Acme"}])
    assert handler.requests[-1].method == "POST"
    assert handler.last_json == {"records": [{"Name": "Acme"}]}
    assert created.results[0].errors[0].field_label == "status_c"

    await store.update_record("client_c", [{"Id": 1, "Name": "Acme Ltd"}])
    assert handler.requests[-1].method == "PUT"
    assert handler.last_json == {"records": [{"Id": 1, "Name": "Acme Ltd"}]}

    await store.delete_record("client_c", [1, 2])
    assert handler.requests[-1].method == "DELETE"
    assert handler.requests[-1].url.path == "/v1/tables/client_c/records"
    assert handler.last_json == {"RecordIds": [1, 2]}
    await store.aclose()


@pytest.mark.asyncio
async def test_http_error_becomes_failed_response():
    store = make_store(Recorder(status_code=401, body={"message": "Invalid public key"}))
    response = await store.fetch_records("client_c", QueryParams())
    assert response.success is False
    assert response.message == "Invalid public key"
    await store.aclose()


@pytest.mark.asyncio
async def test_http_error_without_message():
    store = make_store(Recorder(status_code=500, body={}))
    response = await store.fetch_records("client_c", QueryParams())
    assert response.message == "Record store returned HTTP 500"
    await store.aclose()


@pytest.mark.asyncio
async def test_connection_error_raises_unavailable():
    store = make_store(Recorder(exc=httpx.ConnectError("connection refused")))
    with pytest.raises(RecordStoreUnavailable):
        await store.fetch_records("client_c", QueryParams())
    await store.aclose()


@pytest.mark.asyncio
async def test_reply_without_success_flag_raises_unavailable():
    store = make_store(Recorder(body={"data": []}))
    with pytest.raises(RecordStoreUnavailable, match="invalid reply"):
        await store.fetch_records("task_c", QueryParams())

    notifier = NotificationCenter()
    assert await ServiceRegistry(store, notifier).tasks.get_all() == []
    assert len(notifier.pending(ToastLevel.ERROR)) == 1
    await store.aclose()


def test_missing_credentials_are_reported():
    warnings = StoreSettings(backend="apper").check()
    assert len(warnings) == 2
    assert StoreSettings(backend="sql", database_url="postgresql+asyncpg://x/y").check() == []
