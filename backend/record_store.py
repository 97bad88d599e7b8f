# record_store.py — Record store RPC contract and the hosted-store client
"""
Every entity service talks to a table-oriented record store through five
calls: fetchRecords, getRecordById, createRecord, updateRecord and
deleteRecord. The request and response shapes below serialise to the exact
JSON the hosted backend-as-a-service expects, so a substitute store
(see sql_record_store.py) can be dropped in without touching the services.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from config import StoreSettings
from errors import RecordStoreUnavailable

logger = logging.getLogger("business-manager.record_store")


# ============================================================
# WIRE SCHEMAS
# ============================================================

class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FieldRef(_Wire):
    name: str = Field(..., alias="Name")


class FieldSelection(_Wire):
    field: FieldRef

    @classmethod
    def of(cls, name: str) -> "FieldSelection":
        return cls(field=FieldRef(name=name))


class WhereCondition(_Wire):
    field_name: str = Field(..., alias="FieldName")
    operator: str = Field(..., alias="Operator")
    value_list: List[Any] = Field(default_factory=list, alias="Values")


class GroupCondition(_Wire):
    field_name: str = Field(..., alias="fieldName")
    operator: str
    value_list: List[Any] = Field(default_factory=list, alias="values")


class WhereSubGroup(_Wire):
    conditions: List[GroupCondition] = Field(default_factory=list)
    operator: str = "OR"


class WhereGroup(_Wire):
    operator: str = "OR"
    sub_groups: List[WhereSubGroup] = Field(default_factory=list, alias="subGroups")


class OrderBy(_Wire):
    field_name: str = Field(..., alias="fieldName")
    sort_type: str = Field(default="ASC", alias="sorttype", pattern=r"^(ASC|DESC)$")


class PagingInfo(_Wire):
    limit: int = Field(..., ge=1)
    offset: int = Field(default=0, ge=0)


class QueryParams(_Wire):
    field_list: List[FieldSelection] = Field(default_factory=list, alias="fields")
    where: Optional[List[WhereCondition]] = None
    where_groups: Optional[List[WhereGroup]] = Field(default=None, alias="whereGroups")
    order_by: Optional[List[OrderBy]] = Field(default=None, alias="orderBy")
    paging_info: Optional[PagingInfo] = Field(default=None, alias="pagingInfo")

    @classmethod
    def select(cls, names: Sequence[str], **kwargs) -> "QueryParams":
        return cls(field_list=[FieldSelection.of(n) for n in names], **kwargs)

    def field_names(self) -> List[str]:
        return [f.field.name for f in self.field_list]

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class FieldError(_Wire):
    field_label: Optional[str] = Field(default=None, alias="fieldLabel")
    message: str = ""


class RecordResult(_Wire):
    success: bool
    data: Optional[Dict[str, Any]] = None
    errors: List[FieldError] = Field(default_factory=list)
    message: Optional[str] = None


class RecordResponse(_Wire):
    success: bool
    data: Any = None
    results: Optional[List[RecordResult]] = None
    message: Optional[str] = None


# ============================================================
# STORE INTERFACE
# ============================================================

class RecordStore(ABC):
    """Table-oriented record store. All calls are awaited, none are retried."""

    backend_name = "abstract"

    @abstractmethod
    async def fetch_records(self, table: str, params: QueryParams) -> RecordResponse:
        ...

    @abstractmethod
    async def get_record_by_id(self, table: str, record_id: int, params: QueryParams) -> RecordResponse:
        ...

    @abstractmethod
    async def create_record(self, table: str, records: List[Dict[str, Any]]) -> RecordResponse:
        ...

    @abstractmethod
    async def update_record(self, table: str, records: List[Dict[str, Any]]) -> RecordResponse:
        ...

    @abstractmethod
    async def delete_record(self, table: str, record_ids: List[int]) -> RecordResponse:
        ...

    async def health(self) -> str:
        return "unknown"

    async def aclose(self) -> None:
        return None


# ============================================================
# HOSTED STORE CLIENT
# ============================================================

class ApperRecordStore(RecordStore):
    """Client for the hosted backend-as-a-service record API.

    Credentials come from the injected settings object; pass ``transport`` to
    route requests somewhere else (tests use ``httpx.MockTransport``).
    """

    backend_name = "apper"

    def __init__(self, settings: StoreSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        headers = {"Content-Type": "application/json"}
        if settings.apper_project_id:
            headers["X-Apper-Project-Id"] = settings.apper_project_id
        if settings.apper_public_key:
            headers["X-Apper-Public-Key"] = settings.apper_public_key
        self._client = httpx.AsyncClient(
            base_url=settings.apper_base_url.rstrip("/"),
            headers=headers,
            timeout=settings.timeout_seconds,
            transport=transport,
        )

    async def _call(self, method: str, path: str, payload: Dict[str, Any]) -> RecordResponse:
        try:
            resp = await self._client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise RecordStoreUnavailable(f"Record store unreachable: {str(e)[:200]}") from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            logger.warning(f"{method} {path} → {resp.status_code}: {message}")
            return RecordResponse(
                success=False,
                message=message or f"Record store returned HTTP {resp.status_code}",
            )
        if not isinstance(body, dict):
            raise RecordStoreUnavailable("Record store returned a non-JSON reply")
        try:
            return RecordResponse.model_validate(body)
        except ValidationError as e:
            logger.error(f"{method} {path} → unexpected reply: {e.error_count()} validation error(s)")
            raise RecordStoreUnavailable("Record store returned an invalid reply") from e

    async def fetch_records(self, table: str, params: QueryParams) -> RecordResponse:
        return await self._call("POST", f"/tables/{table}/records/fetch", params.to_payload())

    async def get_record_by_id(self, table: str, record_id: int, params: QueryParams) -> RecordResponse:
        return await self._call("POST", f"/tables/{table}/records/{record_id}/fetch", params.to_payload())

    async def create_record(self, table: str, records: List[Dict[str, Any]]) -> RecordResponse:
        return await self._call("POST", f"/tables/{table}/records", {"records": records})

    async def update_record(self, table: str, records: List[Dict[str, Any]]) -> RecordResponse:
        return await self._call("PUT", f"/tables/{table}/records", {"records": records})

    async def delete_record(self, table: str, record_ids: List[int]) -> RecordResponse:
        return await self._call("DELETE", f"/tables/{table}/records", {"RecordIds": record_ids})

    async def aclose(self) -> None:
        await self._client.aclose()
