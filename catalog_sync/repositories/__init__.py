"""
Repository modules for database operations
"""

from .base import BaseRepository
from .media_repository import MediaAssetRepository, MediaBucketRepository, StagedMediaRepository
from .product_repository import ProductRepository, VariantRepository
from .sync_run_repository import SyncRunRepository

__all__ = [
    'BaseRepository',
    'MediaAssetRepository',
    'MediaBucketRepository',
    'ProductRepository',
    'StagedMediaRepository',
    'SyncRunRepository',
    'VariantRepository'
]
