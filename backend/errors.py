# errors.py — Exception taxonomy for the record service layer
from typing import Any, Dict, List, Optional


class RecordStoreError(Exception):
    """Base class for record store failures"""


class RecordStoreUnavailable(RecordStoreError):
    """The store could not be reached (connection refused, timeout, bad reply)"""


class RecordNotFoundError(RecordStoreError, LookupError):
    """A single-record fetch found nothing"""

    def __init__(self, label: str, record_id: Any = None):
        super().__init__(f"{label} not found")
        self.label = label
        self.record_id = record_id


class RecordOperationError(RecordStoreError):
    """A create, update or delete was rejected by the store"""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []
