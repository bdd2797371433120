"""
Asset Import Service

Copies one Drive file into object storage and records it as a media asset in
the bucket for its SKU label (the first folder of its path).
"""

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from ..exceptions import AssetImportError
from ..models import MediaBucket, MediaType, WorkflowCategory, BucketStatus, utcnow
from ..repositories import MediaAssetRepository, MediaBucketRepository, ProductRepository
from .drive_client import GoogleDriveClient
from .folder_walker import DriveLeaf
from .object_storage import ObjectStorage

logger = logging.getLogger(__name__)

IMPORTED = 'imported'
SKIPPED = 'skipped'


def clean_prefix(prefix: Optional[str]) -> str:
    """Strip leading and trailing slashes from a storage prefix."""
    if not prefix:
        return ''
    return prefix.strip('/')


def determine_workflow_category(file_path: str) -> str:
    """Map a Drive path onto a workflow category by its folder names."""
    lower_path = '/' + file_path.lower()

    if '/raw captures/' in lower_path or '/raw_captures/' in lower_path:
        return WorkflowCategory.RAW_CAPTURE.value

    if '/final ecom' in lower_path or '/final_ecom' in lower_path:
        return WorkflowCategory.FINAL_ECOM.value

    if '/psd' in lower_path and '/cutouts' in lower_path:
        return WorkflowCategory.PSD_CUTOUT.value

    if '/psd' in lower_path or '/project' in lower_path:
        return WorkflowCategory.PROJECT_FILE.value

    # Everything else (Photos/ and unknown folders) is treated as a raw capture
    return WorkflowCategory.RAW_CAPTURE.value


def infer_media_type(mime_type: Optional[str]) -> str:
    mime_type = mime_type or ''
    if mime_type.startswith('image/'):
        return MediaType.IMAGE.value
    if mime_type.startswith('video/'):
        return MediaType.VIDEO.value
    return MediaType.FILE.value


class AssetImportService:
    """Imports Drive leaves into object storage and the media library."""

    def __init__(self, session: Session, drive: GoogleDriveClient, storage: ObjectStorage,
                 bucket: str, base_path: str = ''):
        self.session = session
        self.drive = drive
        self.storage = storage
        self.bucket = bucket
        self.base_path = clean_prefix(base_path)

        self.products = ProductRepository(session)
        self.buckets = MediaBucketRepository(session)
        self.assets = MediaAssetRepository(session)

        self.buckets_created = 0
        self.uploaded = 0

    def object_key(self, leaf: DriveLeaf) -> str:
        return '/'.join(part for part in (self.base_path, leaf.path) if part)

    def bucket_path(self, sku_label: str) -> str:
        return '/'.join(part for part in (self.base_path, f"products/{sku_label}/") if part)

    def resolve_bucket(self, leaf: DriveLeaf, bucket_cache: Dict[str, int]) -> int:
        """
        Return the MediaBucket id for the leaf's SKU label, upserting it on first use.

        The cache maps SKU label to bucket id and belongs to the calling run.
        """
        sku_label = leaf.sku_label
        bucket_id = bucket_cache.get(sku_label)
        if bucket_id is not None:
            return bucket_id

        # A bucket can exist before its product has been imported
        product = self.products.get_by_sku_label(sku_label)
        existing = self.buckets.get_by_sku_label(sku_label)

        values = {
            'storj_path': self.bucket_path(sku_label),
            'bucket_status': BucketStatus.ACTIVE.value,
            'google_drive_folder_path': leaf.folder_path,
            'last_upload_at': utcnow(),
        }
        if product is not None and (existing is None or existing.product_id is None):
            owner = self.buckets.get_by_product(product.id)
            if owner is None or owner.sku_label == sku_label:
                values['product_id'] = product.id

        bucket, created = self.buckets.upsert_by_sku_label(sku_label, values)
        if created:
            self.buckets_created += 1
            logger.info(f"Created media bucket for SKU {sku_label} (id={bucket.id})")

        bucket_cache[sku_label] = bucket.id
        return bucket.id

    def import_leaf(self, leaf: DriveLeaf, bucket_cache: Dict[str, int]) -> str:
        """
        Import one Drive file.

        Returns:
            'imported' when a media asset row was created, 'skipped' when the key was already recorded

        Raises:
            AssetImportError: the path has no SKU label
            DriveApiError, StorageError, SQLAlchemyError: download, upload or insert failed
        """
        sku_label = leaf.sku_label
        if not sku_label:
            raise AssetImportError("Missing SKU label in path")

        if sku_label not in bucket_cache:
            logger.info(f"IMPORTING SKU folder {sku_label}")

        bucket_id = self.resolve_bucket(leaf, bucket_cache)

        key = self.object_key(leaf)
        content = self.drive.download(leaf.id)
        self.storage.put_object(self.bucket, key, content, leaf.mime_type)
        self.uploaded += 1
        logger.info(f"STORED to STORJ with path {key}")

        if self.assets.get_by_file_key(key) is not None:
            logger.info(f"Skipping duplicate file: {leaf.name} (already exists)")
            self._touch_bucket(bucket_id)
            return SKIPPED

        self.assets.create(
            media_bucket_id=bucket_id,
            media_type=infer_media_type(leaf.mime_type),
            workflow_state='raw',
            workflow_category=determine_workflow_category(leaf.path),
            file_url=f"storj://{self.bucket}/{key}",
            file_key=key,
            file_size=len(content),
            file_mime_type=leaf.mime_type,
            original_filename=leaf.name,
            source_folder_path=leaf.path,
            google_drive_file_id=leaf.id,
            google_drive_folder_path=leaf.folder_path,
            import_source='google_drive',
        )
        self._touch_bucket(bucket_id)
        return IMPORTED

    def _touch_bucket(self, bucket_id: int):
        bucket = self.session.get(MediaBucket, bucket_id)
        if bucket is not None:
            self.buckets.update(bucket, last_upload_at=utcnow())
