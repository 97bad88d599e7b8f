# services/base.py — Generic record service shared by every entity
"""
One configurable service replaces the per-entity boilerplate: a subclass names
its EntitySchema and inherits list / get / create / update / delete plus the
failure policy.

Failure policy: every failure is logged and toasted. Reads then return a
neutral value ([] or None); mutations return None / False unless the service
sets ``raise_errors``, in which case RecordOperationError is raised after
reporting. Not-found has two spellings: ``get_by_id`` raises
RecordNotFoundError, ``try_get_by_id`` returns None.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from errors import RecordNotFoundError, RecordOperationError, RecordStoreError
from filters import equals
from notifications import Notifier
from record_store import OrderBy, PagingInfo, QueryParams, RecordResult, RecordStore, WhereCondition, WhereGroup
from schemas import EntitySchema, lookup_id, parse_int


@dataclass
class BatchResult:
    """Outcome of a batch create/update: successes are kept even when some fail"""
    succeeded: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[RecordResult] = field(default_factory=list)

    @property
    def first(self) -> Optional[Dict[str, Any]]:
        return self.succeeded[0] if self.succeeded else None

    @property
    def ok(self) -> bool:
        return not self.failed


class RecordService:
    schema: EntitySchema = None
    plural: str = "records"
    raise_errors: bool = False
    # Success toasts keyed by operation; formatted with ``count``
    success_messages: Dict[str, str] = {}

    def __init__(self, store: RecordStore, notifier: Notifier):
        self.store = store
        self.notifier = notifier
        self.logger = logging.getLogger(f"business-manager.services.{self.schema.table}")

    @property
    def table(self) -> str:
        return self.schema.table

    @property
    def label(self) -> str:
        return self.schema.label

    # ============================================================
    # REPORTING
    # ============================================================

    def _report(self, action: str, message: Optional[str]) -> None:
        message = message or f"Unexpected error while {action}"
        self.logger.error(f"Error {action}: {message}")
        self.notifier.error(message, source=self.table)

    def _report_failed(self, operation: str, failed: List[RecordResult]) -> None:
        details = json.dumps([r.model_dump(by_alias=True, exclude_none=True) for r in failed], default=str)
        self.logger.error(f"Failed to {operation} {len(failed)} {self.plural} records: {details}")
        for record in failed:
            for error in record.errors:
                self.notifier.error(f"{error.field_label}: {error.message}", source=self.table)
            if record.message:
                self.notifier.error(record.message, source=self.table)

    def _announce(self, operation: str, count: int) -> None:
        template = self.success_messages.get(operation)
        if template and count:
            self.notifier.success(template.format(count=count), source=self.table)

    def _record_id(self, record_id: Any) -> int:
        numeric_id = parse_int(record_id)
        if numeric_id is None or numeric_id <= 0:
            raise ValueError(f"Valid {self.label.lower()} ID is required")
        return numeric_id

    # ============================================================
    # READS
    # ============================================================

    def query(
        self,
        where: Optional[List[WhereCondition]] = None,
        where_groups: Optional[List[WhereGroup]] = None,
        order_by: Optional[Sequence[OrderBy]] = None,
        paging: Optional[PagingInfo] = None,
        fields: Optional[Sequence[str]] = None,
    ) -> QueryParams:
        ordering = list(order_by if order_by is not None else self.schema.default_order)
        return QueryParams.select(
            fields or self.schema.read_fields,
            where=where or None,
            where_groups=where_groups or None,
            order_by=ordering or None,
            paging_info=paging if paging is not None else self.schema.default_paging,
        )

    async def find(
        self,
        where: Optional[List[WhereCondition]] = None,
        where_groups: Optional[List[WhereGroup]] = None,
        order_by: Optional[Sequence[OrderBy]] = None,
        paging: Optional[PagingInfo] = None,
        fields: Optional[Sequence[str]] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch records matching the filters; [] on any failure"""
        params = self.query(where, where_groups, order_by, paging, fields)
        try:
            response = await self.store.fetch_records(self.table, params)
        except RecordStoreError as e:
            self._report(f"fetching {self.plural}", str(e))
            return []
        if not response.success:
            self._report(f"fetching {self.plural}", response.message)
            return []
        return list(response.data or [])

    async def get_all(self) -> List[Dict[str, Any]]:
        return await self.find()

    async def find_by_reference(self, field_name: str, value: Any, **kwargs) -> List[Dict[str, Any]]:
        """Records whose foreign key ``field_name`` points at ``value``"""
        reference = lookup_id(value)
        if reference is None:
            self.logger.warning(f"Ignoring lookup on {field_name} with invalid id {value!r}")
            return []
        return await self.find(where=[equals(field_name, reference)], **kwargs)

    async def try_get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        try:
            numeric_id = self._record_id(record_id)
        except ValueError as e:
            self.logger.warning(f"{e}: {record_id!r}")
            return None
        params = QueryParams.select(self.schema.read_fields)
        try:
            response = await self.store.get_record_by_id(self.table, numeric_id, params)
        except RecordStoreError as e:
            self._report(f"fetching {self.label.lower()} with ID {numeric_id}", str(e))
            return None
        if not response.success:
            self._report(f"fetching {self.label.lower()} with ID {numeric_id}", response.message)
            return None
        return response.data or None

    async def get_by_id(self, record_id: Any) -> Dict[str, Any]:
        self._record_id(record_id)
        record = await self.try_get_by_id(record_id)
        if record is None:
            raise RecordNotFoundError(self.label, record_id)
        return record

    # ============================================================
    # WRITES
    # ============================================================

    def prepare_create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        return self.schema.build_payload(data, for_create=True)

    def prepare_update(self, record_id: int, data: Mapping[str, Any]) -> Dict[str, Any]:
        payload = {"Id": record_id}
        payload.update(self.schema.build_payload(data))
        return payload

    def _fail_batch(self, operation: str, message: Optional[str], count: int) -> BatchResult:
        self._report(f"{operation.rstrip('e')}ing {self.plural}", message)
        if self.raise_errors:
            raise RecordOperationError(message or f"Failed to {operation} {self.plural}")
        return BatchResult(failed=[RecordResult(success=False, message=message) for _ in range(count)])

    async def _mutate(self, operation: str, payloads: List[Dict[str, Any]]) -> BatchResult:
        call = self.store.create_record if operation == "create" else self.store.update_record
        try:
            response = await call(self.table, payloads)
        except RecordStoreError as e:
            return self._fail_batch(operation, str(e), len(payloads))
        if not response.success:
            return self._fail_batch(operation, response.message, len(payloads))

        results = response.results or []
        batch = BatchResult(
            succeeded=[r.data for r in results if r.success and r.data is not None],
            failed=[r for r in results if not r.success],
        )
        if batch.failed:
            self._report_failed(operation, batch.failed)
            if self.raise_errors:
                first = batch.failed[0]
                errors = [e.model_dump(by_alias=True) for e in first.errors]
                message = first.message or "; ".join(f"{e['fieldLabel']}: {e['message']}" for e in errors)
                raise RecordOperationError(message or f"Failed to {operation} {self.plural}", errors)
        self._announce(operation, len(batch.succeeded))
        return batch

    async def create_many(self, items: Iterable[Mapping[str, Any]]) -> BatchResult:
        payloads = [self.prepare_create(item) for item in items]
        if not payloads:
            return BatchResult()
        return await self._mutate("create", payloads)

    async def create(self, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        batch = await self.create_many([data])
        return batch.first

    async def update_many(self, items: Iterable[Mapping[str, Any]]) -> BatchResult:
        payloads = [self.prepare_update(self._record_id(item.get("Id")), item) for item in items]
        if not payloads:
            return BatchResult()
        return await self._mutate("update", payloads)

    async def update(self, record_id: Any, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        payload = self.prepare_update(self._record_id(record_id), data)
        batch = await self._mutate("update", [payload])
        return batch.first

    async def delete_many(self, record_ids: Iterable[Any]) -> bool:
        """Delete by id; True only when every id was deleted"""
        numeric_ids = [self._record_id(i) for i in record_ids]
        if not numeric_ids:
            return False
        try:
            response = await self.store.delete_record(self.table, numeric_ids)
        except RecordStoreError as e:
            self._fail_batch("delete", str(e), len(numeric_ids))
            return False
        if not response.success:
            self._fail_batch("delete", response.message, len(numeric_ids))
            return False

        results = response.results or []
        succeeded = [r for r in results if r.success]
        failed = [r for r in results if not r.success]
        if failed:
            self._report_failed("delete", failed)
            if self.raise_errors:
                raise RecordOperationError(failed[0].message or f"Failed to delete {self.plural}")
        self._announce("delete", len(succeeded))
        return bool(results) and not failed and len(succeeded) == len(numeric_ids)

    async def delete(self, record_id: Any) -> bool:
        return await self.delete_many([record_id])
