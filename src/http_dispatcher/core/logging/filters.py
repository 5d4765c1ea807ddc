"""
Log filters adding batch context to records.
"""

import logging
import threading
from typing import Dict, Any, Optional


# Thread-local storage for the id of the batch being dispatched
_batch_id_storage = threading.local()


def set_batch_id(batch_id: str) -> None:
    """Set batch id for current thread."""
    _batch_id_storage.value = batch_id


def get_batch_id() -> Optional[str]:
    """
    Get batch id for current thread.

    Example:
        >>> set_batch_id("batch-1")
        >>> get_batch_id()
        'batch-1'
    """
    return getattr(_batch_id_storage, 'value', None)


def clear_batch_id() -> None:
    if hasattr(_batch_id_storage, 'value'):
        delattr(_batch_id_storage, 'value')


class BatchIdFilter(logging.Filter):
    """Adds `batch_id` to every record emitted while a batch is in flight."""

    def filter(self, record: logging.LogRecord) -> bool:
        batch_id = get_batch_id()
        if batch_id:
            record.batch_id = batch_id
        return True


class ExtraFieldsFilter(logging.Filter):
    """
    Adds static fields (service, environment, ...) to all records.

    Example:
        >>> handler.addFilter(ExtraFieldsFilter({"service": "crawler"}))
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = extra_fields

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
