"""
Database Models for the Catalog and Media Sync

This module contains SQLAlchemy models for the catalog mirror (products,
variants, staged media), the media library (buckets, assets) and the sync
run log.
"""

from sqlalchemy import Column, Integer, BigInteger, String, Text, DateTime, ForeignKey, Float, JSON, Index
from sqlalchemy.orm import declarative_base, relationship, validates
from datetime import datetime, timezone
import enum

Base = declarative_base()


def utcnow():
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Enums for type safety
class SyncStatus(enum.Enum):
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"

    @classmethod
    def terminal(cls):
        return [cls.SUCCESS.value, cls.PARTIAL.value, cls.FAILED.value]


class SyncType(enum.Enum):
    SHOPIFY_IMPORT = "import_from_shopify"
    DRIVE_IMPORT = "import_from_google_drive"


class ProductStatus(enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class BucketStatus(enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class MediaType(enum.Enum):
    IMAGE = "image"
    VIDEO = "video"
    FILE = "file"


class WorkflowCategory(enum.Enum):
    RAW_CAPTURE = "raw_capture"
    FINAL_ECOM = "final_ecom"
    PSD_CUTOUT = "psd_cutout"
    PROJECT_FILE = "project_file"


class CatalogProduct(Base):
    """Local mirror of a Shopify product, keyed by the Shopify product id."""
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)

    # Shopify identity
    shopify_product_id = Column(BigInteger, unique=True, nullable=False, index=True)
    handle = Column(String(255), unique=True, nullable=False)

    # Basic product information
    title = Column(String(500), nullable=False)
    description = Column(Text)
    description_html = Column(Text)
    sku_label = Column(String(255), index=True)
    vendor = Column(String(255))
    product_type = Column(String(255))
    tags = Column(JSON)

    # Status
    status = Column(String(20), default=ProductStatus.ACTIVE.value, nullable=False)
    shopify_status = Column(String(20))
    shopify_published_at = Column(DateTime)

    # Metafields flattened to namespace.key
    meta_data = Column('metadata', JSON)

    # Audit fields
    last_synced_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    variants = relationship("ProductVariant", back_populates="product", cascade="all, delete-orphan")
    staged_media = relationship("StagedMedia", back_populates="product")
    media_bucket = relationship("MediaBucket", back_populates="product", uselist=False)

    @validates('title')
    def validate_title(self, key, title):
        if not title or len(title.strip()) == 0:
            raise ValueError("Product title cannot be empty")
        return title

    def __repr__(self):
        return f"<CatalogProduct(id={self.id}, shopify_product_id={self.shopify_product_id}, handle='{self.handle}')>"


class ProductVariant(Base):
    """A product variant, keyed by the Shopify variant id."""
    __tablename__ = 'product_variants'

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True)
    shopify_variant_id = Column(BigInteger, unique=True, nullable=False, index=True)

    sku = Column(String(255), index=True)
    title = Column(String(500))

    # Pricing
    price = Column(Float)
    compare_at_price = Column(Float)

    # Shipping
    weight = Column(Float)
    weight_unit = Column(String(10))

    inventory_quantity = Column(Integer)
    position = Column(Integer)

    # Selected option values in Shopify order
    option1 = Column(String(255))
    option2 = Column(String(255))
    option3 = Column(String(255))

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    product = relationship("CatalogProduct", back_populates="variants")

    @validates('price')
    def validate_price(self, key, price):
        if price is not None and price < 0:
            raise ValueError("Price cannot be negative")
        return price

    def __repr__(self):
        return f"<ProductVariant(id={self.id}, shopify_variant_id={self.shopify_variant_id}, sku='{self.sku}')>"


class StagedMedia(Base):
    """Catalog image metadata not yet linked into the media library."""
    __tablename__ = 'product_images_unassociated'

    id = Column(Integer, primary_key=True)
    shopify_media_id = Column(String(255), unique=True, nullable=False, index=True)
    shopify_product_id = Column(BigInteger, index=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='SET NULL'), index=True)

    source_url = Column(String(2000), nullable=False)
    filename = Column(String(500))
    alt_text = Column(Text)
    mime_type = Column(String(100))
    byte_size = Column(Integer)
    width = Column(Integer)
    height = Column(Integer)
    position = Column(Integer)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    product = relationship("CatalogProduct", back_populates="staged_media")

    def __repr__(self):
        return f"<StagedMedia(id={self.id}, shopify_media_id='{self.shopify_media_id}')>"


class MediaBucket(Base):
    """One bucket per SKU label; groups media assets under a storage prefix."""
    __tablename__ = 'media_buckets'

    id = Column(Integer, primary_key=True)
    sku_label = Column(String(255), unique=True, nullable=False, index=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='SET NULL'), unique=True, index=True)

    storj_path = Column(String(1000), nullable=False)
    bucket_status = Column(String(20), default=BucketStatus.ACTIVE.value, nullable=False)
    google_drive_folder_path = Column(String(2000))
    last_upload_at = Column(DateTime)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    product = relationship("CatalogProduct", back_populates="media_bucket")
    assets = relationship("MediaAsset", back_populates="bucket")

    @validates('sku_label')
    def validate_sku_label(self, key, sku_label):
        if not sku_label or len(sku_label.strip()) == 0:
            raise ValueError("SKU label cannot be empty")
        return sku_label

    def __repr__(self):
        return f"<MediaBucket(id={self.id}, sku_label='{self.sku_label}')>"


class MediaAsset(Base):
    """A file stored in object storage, deduplicated by its object key."""
    __tablename__ = 'media_assets'

    id = Column(Integer, primary_key=True)
    media_bucket_id = Column(Integer, ForeignKey('media_buckets.id', ondelete='CASCADE'), nullable=False, index=True)

    media_type = Column(String(20), nullable=False)
    workflow_state = Column(String(30), default='raw', nullable=False)
    workflow_category = Column(String(30), nullable=False)

    # Object storage location
    file_url = Column(String(2000), nullable=False)
    file_key = Column(String(1000), unique=True, nullable=False, index=True)
    file_size = Column(BigInteger)
    file_mime_type = Column(String(255))
    original_filename = Column(String(500))

    # Source
    source_folder_path = Column(String(2000))
    google_drive_file_id = Column(String(255), index=True)
    google_drive_folder_path = Column(String(2000))
    import_source = Column(String(50))

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    bucket = relationship("MediaBucket", back_populates="assets")

    __table_args__ = (
        Index('idx_media_asset_bucket_category', 'media_bucket_id', 'workflow_category'),
    )

    def __repr__(self):
        return f"<MediaAsset(id={self.id}, file_key='{self.file_key}')>"


class SyncRun(Base):
    """Sync run log: one row per import run, polled for live progress."""
    __tablename__ = 'sync_logs'

    id = Column(Integer, primary_key=True)

    sync_type = Column(String(50), nullable=False)
    entity_type = Column(String(50))
    status = Column(String(20), default=SyncStatus.IN_PROGRESS.value, nullable=False)

    # Counters
    total = Column(Integer)
    imported = Column(Integer, default=0, nullable=False)
    skipped = Column(Integer, default=0, nullable=False)
    failed = Column(Integer, default=0, nullable=False)

    last_error = Column(Text)
    details = Column(JSON)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    completed_at = Column(DateTime)

    __table_args__ = (
        Index('idx_sync_logs_type_status', 'sync_type', 'status'),
        Index('idx_sync_logs_created', 'created_at'),
    )

    def __repr__(self):
        return f"<SyncRun(id={self.id}, type='{self.sync_type}', status='{self.status}')>"
