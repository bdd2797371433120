"""
Media Repositories for staged catalog images, media buckets and media assets.
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import func, or_

from ..models import StagedMedia, MediaBucket, MediaAsset
from .base import BaseRepository

logger = logging.getLogger(__name__)


class StagedMediaRepository(BaseRepository):
    """Repository for StagedMedia (unassociated catalog images)."""

    def __init__(self, session: Session):
        super().__init__(StagedMedia, session)

    def upsert_from_shopify(self, shopify_media_id: str, data: Dict[str, Any]) -> Tuple[StagedMedia, bool]:
        """Insert or update staged media keyed by its Shopify media ID."""
        return self.upsert({'shopify_media_id': shopify_media_id}, data)

    def last_updated_at(self) -> Optional[datetime]:
        """Most recent update timestamp across all staged media."""
        return self.session.query(func.max(StagedMedia.updated_at)).scalar()


class MediaBucketRepository(BaseRepository):
    """Repository for MediaBucket model operations."""

    def __init__(self, session: Session):
        super().__init__(MediaBucket, session)

    def get_by_sku_label(self, sku_label: str) -> Optional[MediaBucket]:
        return self.get_by(sku_label=sku_label)

    def get_by_product(self, product_id: int) -> Optional[MediaBucket]:
        return self.get_by(product_id=product_id)

    def upsert_by_sku_label(self, sku_label: str, data: Dict[str, Any]) -> Tuple[MediaBucket, bool]:
        """Insert or update the bucket for a SKU label (folder import path)."""
        return self.upsert({'sku_label': sku_label}, data)

    def create_for_product_if_missing(self, product_id: int, sku_label: str,
                                      data: Dict[str, Any]) -> Tuple[MediaBucket, bool]:
        """
        Create the bucket for a product unless one already exists (catalog path).

        An existing bucket for the same product or the same SKU label counts as
        success and is returned unchanged, except that a bucket created by a
        folder import before its product existed gets linked to the product.

        Returns:
            (bucket, created) tuple
        """
        existing = self.session.query(MediaBucket).filter(
            or_(MediaBucket.product_id == product_id, MediaBucket.sku_label == sku_label)
        ).first()

        if existing:
            if existing.product_id is None and not self.exists(product_id=product_id):
                self.update(existing, product_id=product_id)
            return existing, False

        return self.create(product_id=product_id, sku_label=sku_label, **data), True


class MediaAssetRepository(BaseRepository):
    """Repository for MediaAsset model operations."""

    def __init__(self, session: Session):
        super().__init__(MediaAsset, session)

    def get_by_file_key(self, file_key: str) -> Optional[MediaAsset]:
        return self.get_by(file_key=file_key)

    def count_for_bucket(self, bucket_id: int) -> int:
        return self.count({'media_bucket_id': bucket_id})
