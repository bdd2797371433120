"""
Product Repository for the local catalog mirror (products and variants).
"""

import logging
from typing import Optional, Dict, Any, Tuple
from sqlalchemy.orm import Session

from ..models import CatalogProduct, ProductVariant
from .base import BaseRepository

logger = logging.getLogger(__name__)


class ProductRepository(BaseRepository):
    """Repository for CatalogProduct model operations."""

    def __init__(self, session: Session):
        super().__init__(CatalogProduct, session)

    def get_by_shopify_id(self, shopify_product_id: int) -> Optional[CatalogProduct]:
        """Get product by Shopify product ID."""
        return self.get_by(shopify_product_id=shopify_product_id)

    def get_by_sku_label(self, sku_label: str) -> Optional[CatalogProduct]:
        """Get the first product carrying a SKU label."""
        return self.session.query(CatalogProduct)\
            .filter(CatalogProduct.sku_label == sku_label)\
            .order_by(CatalogProduct.id)\
            .first()

    def upsert_from_shopify(self, shopify_product_id: int, data: Dict[str, Any]) -> Tuple[CatalogProduct, bool]:
        """Insert or update a product keyed by its Shopify product ID."""
        return self.upsert({'shopify_product_id': shopify_product_id}, data)


class VariantRepository(BaseRepository):
    """Repository for ProductVariant model operations."""

    def __init__(self, session: Session):
        super().__init__(ProductVariant, session)

    def get_by_shopify_id(self, shopify_variant_id: int) -> Optional[ProductVariant]:
        """Get variant by Shopify variant ID."""
        return self.get_by(shopify_variant_id=shopify_variant_id)

    def upsert_from_shopify(self, shopify_variant_id: int, data: Dict[str, Any]) -> Tuple[ProductVariant, bool]:
        """Insert or update a variant keyed by its Shopify variant ID."""
        return self.upsert({'shopify_variant_id': shopify_variant_id}, data)
