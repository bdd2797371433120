"""
Import Orchestrator

Drives the catalog and folder imports: walks the remote source, runs the
per-item import inside a savepoint, feeds the progress tracker and the error
accumulator, and persists the terminal run status.

A failure before or during enumeration aborts the run (status failed,
ImportAbortedError). A failure on a single item is recorded and the run
continues; such runs end as partial.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, Any, List, Optional

from sqlalchemy.orm import Session

from ..config import Config
from ..exceptions import ImportAbortedError, ConfigurationError
from ..models import SyncRun, SyncType
from .asset_import_service import AssetImportService, IMPORTED, clean_prefix
from .catalog_import_service import CatalogImportService
from .catalog_pager import CatalogPager
from .drive_client import GoogleDriveClient
from .error_accumulator import ErrorAccumulator
from .folder_walker import FolderWalker, DriveLeaf
from .object_storage import ObjectStorage
from .progress_tracker import ProgressCounters, SyncProgressTracker
from .shopify_client import ShopifyGraphQLClient

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    """Result of an import run."""
    total: int = 0
    imported: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    run_id: Optional[int] = None
    status: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'runId': self.run_id,
            'status': self.status,
            'total': self.total,
            'imported': self.imported,
            'skipped': self.skipped,
            'failed': self.failed,
            'errors': self.errors,
        }


@dataclass
class FolderImportSummary(ImportSummary):
    folder_id: Optional[str] = None
    bucket: Optional[str] = None
    base_path: str = ''
    uploaded: int = 0
    buckets_created: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            'folderId': self.folder_id,
            'bucket': self.bucket,
            'basePath': self.base_path,
            'uploaded': self.uploaded,
            'bucketsCreated': self.buckets_created,
        })
        return data


class ImportOrchestrator:
    """
    Runs catalog and folder imports against one database session.

    Remote clients may be passed in; any that are missing are built from
    configuration when a run starts, so a configuration problem fails that run.
    """

    def __init__(self, session: Session, config=Config,
                 shopify_client: Optional[ShopifyGraphQLClient] = None,
                 drive_client: Optional[GoogleDriveClient] = None,
                 storage: Optional[ObjectStorage] = None):
        self.session = session
        self.config = config
        self.shopify_client = shopify_client
        self.drive_client = drive_client
        self.storage = storage
        self.tracker = SyncProgressTracker(session)

        self.progress_every = max(int(config.SYNC_PROGRESS_EVERY), 1)
        self.error_sample_size = int(config.SYNC_ERROR_SAMPLE_SIZE)

    def _reap_stale(self, sync_type: str):
        minutes = int(self.config.SYNC_STALE_AFTER_MINUTES)
        if minutes > 0:
            self.tracker.reap_stale(sync_type, timedelta(minutes=minutes))

    def _abort(self, run: SyncRun, message: str, counters: ProgressCounters):
        self.tracker.fail(run, message, counters)
        raise ImportAbortedError(message, run_id=run.id)

    def _maybe_tick(self, run: SyncRun, counters: ProgressCounters, errors: ErrorAccumulator):
        if counters.processed % self.progress_every == 0:
            last = errors.last
            self.tracker.tick(run, counters, last_error=last.message if last else None)

    def run_catalog_import(self) -> ImportSummary:
        """
        Import every product in the Shopify catalog.

        Raises:
            ImportAbortedError: configuration, count or pagination failure
        """
        sync_type = SyncType.SHOPIFY_IMPORT.value
        self._reap_stale(sync_type)

        run = self.tracker.start(sync_type, entity_type='product')
        counters = ProgressCounters()
        errors = ErrorAccumulator(logger)

        try:
            client = self.shopify_client or ShopifyGraphQLClient.from_config(self.config)
            pager = CatalogPager(client, page_size=self.config.SHOPIFY_PAGE_SIZE)
            counters.total = pager.total_count()
            logger.info(f"Store has {counters.total} products total")
            self.tracker.tick(run, counters)
        except Exception as e:
            self._abort(run, f"Catalog import aborted: {e}", counters)

        service = CatalogImportService(self.session)
        products = pager.iter_products()

        while True:
            try:
                node = next(products)
            except StopIteration:
                break
            except Exception as e:
                self._abort(run, f"Catalog pagination failed: {e}", counters)

            try:
                with self.session.begin_nested():
                    service.import_product(node)
                self.session.commit()
                counters.imported += 1
            except Exception as e:
                self.session.rollback()
                counters.failed += 1
                errors.record(node.get('id'), e)
                logger.error(f"Error importing {node.get('title')}: {e}")

            self._maybe_tick(run, counters, errors)

        summary = ImportSummary(
            total=counters.total,
            imported=counters.imported,
            skipped=counters.skipped,
            failed=counters.failed,
            errors=errors.to_list(),
        )
        self._complete(run, summary, counters, errors)
        logger.info(f"Imported {summary.imported} of {summary.total} products")
        return summary

    def run_folder_import(self, folder_id: str, bucket: str, base_path: Optional[str] = None) -> FolderImportSummary:
        """
        Copy every file below a Drive folder into object storage and the media library.

        The first folder of each file's path is its SKU label.

        Raises:
            ImportAbortedError: missing folder or bucket, configuration or listing failure
        """
        sync_type = SyncType.DRIVE_IMPORT.value
        self._reap_stale(sync_type)

        base_path = clean_prefix(base_path) if base_path else clean_prefix(self.config.STORJ_BASE_PATH)
        run = self.tracker.start(sync_type, entity_type='media_asset')
        counters = ProgressCounters()
        errors = ErrorAccumulator(logger)

        try:
            if not folder_id:
                raise ConfigurationError("folderId is required (or set GOOGLE_DRIVE_SKU_FOLDER_ID)")
            if not bucket:
                raise ConfigurationError("bucket is required (set STORJ_S3_BUCKET or STORJ_BUCKET)")

            drive = self.drive_client or GoogleDriveClient.from_config(self.config)
            storage = self.storage or ObjectStorage.from_config(self.config)

            leaves: List[DriveLeaf] = list(FolderWalker(drive).walk(folder_id))
            counters.total = len(leaves)
            logger.info(f"Found {counters.total} files in Google Drive folder {folder_id}")
            self.tracker.tick(run, counters)
        except Exception as e:
            self._abort(run, f"Folder import aborted: {e}", counters)

        service = AssetImportService(self.session, drive, storage, bucket, base_path)
        bucket_cache: Dict[str, int] = {}

        for leaf in leaves:
            try:
                with self.session.begin_nested():
                    outcome = service.import_leaf(leaf, bucket_cache)
                self.session.commit()
                if outcome == IMPORTED:
                    counters.imported += 1
                else:
                    counters.skipped += 1
            except Exception as e:
                self.session.rollback()
                # Bucket rows written in a rolled back savepoint are gone
                bucket_cache.pop(leaf.sku_label, None)
                counters.failed += 1
                sku_label = leaf.sku_label or 'unknown'
                errors.record(leaf.path, e, sku_label=sku_label)
                logger.error(f"IMPORT ERROR sku={sku_label} path={leaf.path}: {e}")

            self._maybe_tick(run, counters, errors)

        summary = FolderImportSummary(
            total=counters.total,
            imported=counters.imported,
            skipped=counters.skipped,
            failed=counters.failed,
            errors=errors.to_list(),
            folder_id=folder_id,
            bucket=bucket,
            base_path=base_path,
            uploaded=service.uploaded,
            buckets_created=service.buckets_created,
        )
        self._complete(run, summary, counters, errors, extra={
            'uploaded': service.uploaded,
            'bucketsCreated': service.buckets_created,
            'folderId': folder_id,
            'bucket': bucket,
        })
        return summary

    def _complete(self, run: SyncRun, summary: ImportSummary, counters: ProgressCounters,
                  errors: ErrorAccumulator, extra: Optional[Dict[str, Any]] = None):
        self.tracker.finish(
            run, counters, errors.sample(self.error_sample_size),
            extra=extra, last_error=errors.last.message if errors else None
        )
        summary.run_id = run.id
        summary.status = run.status
