"""
Exception hierarchy for the sync pipelines.

Lower-level clients and pipelines raise these with a message that names the
offending external key; the orchestrator decides whether a failure is fatal
for the run or only for the current item.
"""

from typing import Optional


class SyncError(Exception):
    """Base class for all sync errors."""


class ConfigurationError(SyncError):
    """Required configuration (credentials, ids, bucket) is missing or invalid."""


class ShopifyApiError(SyncError):
    """The Shopify Admin API returned an error or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, details=None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class DriveApiError(SyncError):
    """The Google Drive API returned an error or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StorageError(SyncError):
    """An object storage operation failed."""


class CatalogImportError(SyncError):
    """A single catalog product could not be imported."""


class AssetImportError(SyncError):
    """A single folder-tree file could not be imported."""


class ImportAbortedError(SyncError):
    """A run was aborted before or during pagination; the run is marked failed."""

    def __init__(self, message: str, run_id: Optional[int] = None):
        super().__init__(message)
        self.run_id = run_id
