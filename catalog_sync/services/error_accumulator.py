"""
Import Error Accumulator

Collects per-item failures during an import run so that one bad product or
file never aborts the batch.
"""

import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import CatalogImportError, AssetImportError, DriveApiError, StorageError


class ErrorStage(Enum):
    """Pipeline stage an item failed in."""
    MAPPING = "mapping"
    DATABASE = "database"
    DOWNLOAD = "download"
    STORAGE = "storage"
    UNKNOWN = "unknown"


@dataclass
class ItemError:
    """One failed item."""
    item_id: str
    message: str
    stage: ErrorStage = ErrorStage.UNKNOWN
    sku_label: Optional[str] = None
    exception_type: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.item_id,
            'message': self.message,
            'stage': self.stage.value,
        }
        if self.sku_label is not None:
            data['sku'] = self.sku_label
        if self.exception_type:
            data['exceptionType'] = self.exception_type
        return data


def classify_stage(error: Exception) -> ErrorStage:
    """Best-effort stage classification from the exception type."""
    if isinstance(error, SQLAlchemyError):
        return ErrorStage.DATABASE
    if isinstance(error, StorageError):
        return ErrorStage.STORAGE
    if isinstance(error, DriveApiError):
        return ErrorStage.DOWNLOAD
    if isinstance(error, (CatalogImportError, AssetImportError, ValueError, KeyError, TypeError)):
        return ErrorStage.MAPPING
    return ErrorStage.UNKNOWN


class ErrorAccumulator:
    """Per-run collection of item failures."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._errors: List[ItemError] = []

    def record(self, item_id: str, error: Exception, sku_label: Optional[str] = None) -> ItemError:
        """Record a failed item and return the stored entry."""
        entry = ItemError(
            item_id=str(item_id),
            message=str(error) or error.__class__.__name__,
            stage=classify_stage(error),
            sku_label=sku_label,
            exception_type=error.__class__.__name__
        )
        self._errors.append(entry)
        self.logger.debug(f"Recorded {entry.stage.value} failure for {entry.item_id}: {entry.message}")
        return entry

    @property
    def count(self) -> int:
        return len(self._errors)

    @property
    def last(self) -> Optional[ItemError]:
        return self._errors[-1] if self._errors else None

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __iter__(self):
        return iter(self._errors)

    def to_list(self) -> List[Dict[str, Any]]:
        return [error.to_dict() for error in self._errors]

    def sample(self, limit: int) -> List[Dict[str, Any]]:
        """First `limit` errors, for embedding in the run record."""
        return [error.to_dict() for error in self._errors[:max(limit, 0)]]

    def by_stage(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for error in self._errors:
            counts[error.stage.value] = counts.get(error.stage.value, 0) + 1
        return counts
