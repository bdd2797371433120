"""
Services package for the catalog and media sync.

This package contains the import pipelines:
- Shopify catalog pagination and product upsert
- Google Drive folder walking and asset upload to Storj
- Progress tracking and per-item error collection
"""

from .asset_import_service import AssetImportService
from .catalog_import_service import CatalogImportService
from .catalog_pager import CatalogCursor, CatalogPage, CatalogPager
from .drive_client import GoogleDriveClient
from .error_accumulator import ErrorAccumulator
from .folder_walker import DriveLeaf, FolderWalker
from .import_orchestrator import FolderImportSummary, ImportOrchestrator, ImportSummary
from .object_storage import ObjectStorage
from .progress_tracker import ProgressCounters, SyncProgressTracker
from .shopify_client import ShopifyGraphQLClient
from .sku_label import derive_sku_label

__all__ = [
    'AssetImportService',
    'CatalogCursor',
    'CatalogImportService',
    'CatalogPage',
    'CatalogPager',
    'DriveLeaf',
    'ErrorAccumulator',
    'FolderImportSummary',
    'FolderWalker',
    'GoogleDriveClient',
    'ImportOrchestrator',
    'ImportSummary',
    'ObjectStorage',
    'ProgressCounters',
    'ShopifyGraphQLClient',
    'SyncProgressTracker',
    'derive_sku_label'
]
