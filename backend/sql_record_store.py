# sql_record_store.py — Record store backed by SQLAlchemy
"""
A drop-in substitute for the hosted record store. Every remote table maps to
rows of the single ``records`` table; filters, ordering and paging are
evaluated with the same semantics the hosted service documents. When a table
schema is registered, submitted records are validated field by field and a
bad record fails on its own without aborting the rest of the batch.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from database import session_scope
from errors import RecordStoreUnavailable
from filters import UnsupportedOperator, matches, page, sort_records
from models import StoredRecord, utcnow
from record_store import FieldError, QueryParams, RecordResponse, RecordResult, RecordStore
from schemas import (
    BOOLEAN, DATE, DATETIME, INTEGER, LOOKUP, NUMBER, TEXT,
    EntitySchema, FieldSpec, parse_int,
)

logger = logging.getLogger("business-manager.record_store.sql")

RECORD_MISSING = "Record does not exist"


def _type_ok(spec: FieldSpec, value: Any) -> bool:
    if value is None:
        return spec.kind not in (BOOLEAN,)
    if spec.kind == TEXT:
        return isinstance(value, str)
    if spec.kind == INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)
    if spec.kind == NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if spec.kind == BOOLEAN:
        return isinstance(value, bool)
    if spec.kind == LOOKUP:
        return isinstance(value, int) and not isinstance(value, bool) and value > 0
    if spec.kind in (DATE, DATETIME):
        return isinstance(value, str)
    return True


class SqlRecordStore(RecordStore):
    backend_name = "sql"

    def __init__(self, session_maker: async_sessionmaker, schemas: Optional[Mapping[str, EntitySchema]] = None):
        self._session_maker = session_maker
        self._schemas = dict(schemas or {})

    # --- helpers ---

    @staticmethod
    def _document(row: StoredRecord) -> Dict[str, Any]:
        doc = {"Id": row.id}
        doc.update(row.data or {})
        doc["CreatedOn"] = row.created_on.isoformat() if row.created_on else None
        doc["ModifiedOn"] = row.modified_on.isoformat() if row.modified_on else None
        doc.setdefault("Owner", None)
        doc.setdefault("CreatedBy", None)
        doc.setdefault("ModifiedBy", None)
        return doc

    @staticmethod
    def _project(doc: Dict[str, Any], params: QueryParams) -> Dict[str, Any]:
        names = params.field_names()
        if not names:
            return doc
        projected = {"Id": doc["Id"]}
        for name in names:
            projected[name] = doc.get(name)
        return projected

    def _validate(self, table: str, payload: Dict[str, Any]) -> List[FieldError]:
        schema = self._schemas.get(table)
        if schema is None:
            return []
        errors = []
        for key, value in payload.items():
            if key == "Id":
                continue
            spec = schema.get(key)
            if spec is None or not spec.writable:
                errors.append(FieldError(field_label=key, message="Field is not updateable"))
                continue
            if not _type_ok(spec, value):
                errors.append(FieldError(
                    field_label=key,
                    message=f"Invalid value for {spec.kind} field: {value!r}",
                ))
                continue
            if spec.choices and value not in ("", None) and value not in spec.choices:
                errors.append(FieldError(
                    field_label=key,
                    message=f"'{value}' is not one of: {', '.join(spec.choices)}",
                ))
        return errors

    async def _load(self, session, table: str, record_id: Any) -> Optional[StoredRecord]:
        numeric_id = parse_int(record_id)
        if not numeric_id:
            return None
        result = await session.execute(
            select(StoredRecord).where(
                StoredRecord.id == numeric_id,
                StoredRecord.table_name == table,
            )
        )
        return result.scalar_one_or_none()

    # --- reads ---

    async def fetch_records(self, table: str, params: QueryParams) -> RecordResponse:
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(StoredRecord)
                    .where(StoredRecord.table_name == table)
                    .order_by(StoredRecord.id)
                )
                docs = [self._document(r) for r in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"fetch {table} failed: {e}")
            raise RecordStoreUnavailable(f"Database error: {str(e)[:200]}") from e

        try:
            docs = [d for d in docs if matches(d, params.where, params.where_groups)]
        except UnsupportedOperator as e:
            return RecordResponse(success=False, message=str(e))

        docs = page(sort_records(docs, params.order_by), params.paging_info)
        return RecordResponse(success=True, data=[self._project(d, params) for d in docs])

    async def get_record_by_id(self, table: str, record_id: int, params: QueryParams) -> RecordResponse:
        try:
            async with self._session_maker() as session:
                row = await self._load(session, table, record_id)
        except SQLAlchemyError as e:
            logger.error(f"get {table}#{record_id} failed: {e}")
            raise RecordStoreUnavailable(f"Database error: {str(e)[:200]}") from e
        if row is None:
            return RecordResponse(success=True, data=None)
        return RecordResponse(success=True, data=self._project(self._document(row), params))

    # --- writes ---

    async def create_record(self, table: str, records: List[Dict[str, Any]]) -> RecordResponse:
        results: List[RecordResult] = []
        created = []
        try:
            async with session_scope(self._session_maker) as session:
                for payload in records:
                    errors = self._validate(table, payload)
                    if errors:
                        results.append(RecordResult(
                            success=False, errors=errors,
                            message=f"Unable to create record: {len(errors)} invalid field(s)",
                        ))
                        continue
                    row = StoredRecord(
                        table_name=table,
                        data={k: v for k, v in payload.items() if k != "Id"},
                    )
                    session.add(row)
                    await session.flush()
                    created.append((len(results), row))
                    results.append(RecordResult(success=True))
        except SQLAlchemyError as e:
            logger.error(f"create {table} failed: {e}")
            raise RecordStoreUnavailable(f"Database error: {str(e)[:200]}") from e

        for index, row in created:
            results[index].data = self._document(row)
        return RecordResponse(success=True, results=results)

    async def update_record(self, table: str, records: List[Dict[str, Any]]) -> RecordResponse:
        results: List[RecordResult] = []
        updated = []
        try:
            async with session_scope(self._session_maker) as session:
                for payload in records:
                    row = await self._load(session, table, payload.get("Id"))
                    if row is None:
                        results.append(RecordResult(success=False, message=RECORD_MISSING))
                        continue
                    errors = self._validate(table, payload)
                    if errors:
                        results.append(RecordResult(
                            success=False, errors=errors,
                            message=f"Unable to update record {row.id}: {len(errors)} invalid field(s)",
                        ))
                        continue
                    merged = dict(row.data or {})
                    merged.update({k: v for k, v in payload.items() if k != "Id"})
                    row.data = merged
                    row.modified_on = utcnow()
                    await session.flush()
                    updated.append((len(results), row))
                    results.append(RecordResult(success=True))
        except SQLAlchemyError as e:
            logger.error(f"update {table} failed: {e}")
            raise RecordStoreUnavailable(f"Database error: {str(e)[:200]}") from e

        for index, row in updated:
            results[index].data = self._document(row)
        return RecordResponse(success=True, results=results)

    async def delete_record(self, table: str, record_ids: List[int]) -> RecordResponse:
        results: List[RecordResult] = []
        try:
            async with session_scope(self._session_maker) as session:
                for record_id in record_ids:
                    row = await self._load(session, table, record_id)
                    if row is None:
                        results.append(RecordResult(success=False, message=RECORD_MISSING))
                        continue
                    await session.delete(row)
                    results.append(RecordResult(success=True, data={"Id": row.id}))
        except SQLAlchemyError as e:
            logger.error(f"delete {table} failed: {e}")
            raise RecordStoreUnavailable(f"Database error: {str(e)[:200]}") from e
        return RecordResponse(success=True, results=results)

    async def health(self) -> str:
        try:
            async with self._session_maker() as session:
                await session.execute(text("SELECT 1"))
            return "connected"
        except SQLAlchemyError as e:
            return f"error: {str(e)[:100]}"
