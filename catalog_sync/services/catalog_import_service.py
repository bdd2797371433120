"""
Catalog Import Service

Maps one Shopify product node onto the local catalog tables: the product, its
variants, its staged (unassociated) images and, when the product has a SKU
label, its media bucket. Every write is keyed by a Shopify identifier so
importing the same node twice leaves a single set of rows.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from urllib.parse import urlparse

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import CatalogImportError
from ..models import CatalogProduct, ProductStatus, BucketStatus, utcnow
from ..repositories import (
    MediaBucketRepository, ProductRepository, StagedMediaRepository, VariantRepository
)
from .shopify_queries import extract_shopify_id, convert_weight_unit
from .sku_label import derive_sku_label

logger = logging.getLogger(__name__)

_HTML_TAG = re.compile(r'<[^>]*>')

MIME_BY_EXTENSION = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.webp': 'image/webp',
    '.gif': 'image/gif',
    '.avif': 'image/avif',
}


def strip_html(html: Optional[str]) -> Optional[str]:
    if not html:
        return None
    return _HTML_TAG.sub('', html) or None


def convert_metafields(metafields: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Flatten Shopify metafield edges into a `namespace.key` -> value dict.

    Values that are valid JSON are stored parsed, anything else as the raw string.
    """
    metadata: Dict[str, Any] = {}

    for edge in (metafields or {}).get('edges', []):
        node = edge.get('node') or {}
        key = f"{node.get('namespace')}.{node.get('key')}"
        value = node.get('value')
        try:
            metadata[key] = json.loads(value)
        except (TypeError, ValueError):
            metadata[key] = value

    return metadata


def extract_filename(url: str) -> str:
    """Last path segment of a URL, or the URL itself when the path is empty."""
    try:
        path = urlparse(url).path
    except ValueError:
        path = url
    last = path.rstrip('/').split('/')[-1] if path else ''
    return last or url


def guess_mime(filename: str) -> Optional[str]:
    lower = filename.lower()
    for extension, mime in MIME_BY_EXTENSION.items():
        if lower.endswith(extension):
            return mime
    return None


def parse_shopify_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse a Shopify ISO-8601 timestamp into naive UTC."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _to_float(value) -> Optional[float]:
    if value is None or value == '':
        return None
    return float(value)


def _edges(connection: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [edge.get('node') or {} for edge in (connection or {}).get('edges', [])]


class CatalogImportService:
    """Idempotent import of Shopify product nodes into the local catalog."""

    def __init__(self, session: Session):
        self.session = session
        self.products = ProductRepository(session)
        self.variants = VariantRepository(session)
        self.staged_media = StagedMediaRepository(session)
        self.buckets = MediaBucketRepository(session)

    def import_product(self, node: Dict[str, Any]) -> CatalogProduct:
        """
        Import one product node.

        Args:
            node: Product node as returned by the GetProducts query

        Returns:
            The upserted CatalogProduct

        Raises:
            CatalogImportError: the product id is not a valid Shopify GID
            SQLAlchemyError: the product or one of its images could not be written
        """
        gid = node.get('id')
        try:
            shopify_product_id = extract_shopify_id(gid)
        except ValueError:
            raise CatalogImportError(f"Invalid Shopify product GID: {gid}")

        variant_nodes = _edges(node.get('variants'))
        sku_label = derive_sku_label([variant.get('sku') for variant in variant_nodes])

        product, created = self.products.upsert_from_shopify(shopify_product_id, {
            'title': node.get('title'),
            'description': strip_html(node.get('descriptionHtml')),
            'description_html': node.get('descriptionHtml') or None,
            'handle': node.get('handle'),
            'sku_label': sku_label,
            'vendor': node.get('vendor') or None,
            'product_type': node.get('productType') or None,
            'tags': node.get('tags') or [],
            'status': ProductStatus.ACTIVE.value,
            'shopify_status': node.get('status'),
            'shopify_published_at': parse_shopify_datetime(node.get('publishedAt')),
            'meta_data': convert_metafields(node.get('metafields')),
            'last_synced_at': utcnow(),
        })
        logger.debug(f"{'Created' if created else 'Updated'} product {shopify_product_id} ({product.handle})")

        self._upsert_staged_media(node, product, shopify_product_id)

        for variant in variant_nodes:
            self._upsert_variant(variant, product)

        if sku_label:
            self._ensure_bucket(product, sku_label)

        return product

    def _upsert_staged_media(self, node: Dict[str, Any], product: CatalogProduct, shopify_product_id: int):
        for position, media in enumerate(_edges(node.get('media')), start=1):
            image = media.get('image') or {}
            url = image.get('url')
            if not url:
                continue

            filename = extract_filename(url)
            self.staged_media.upsert_from_shopify(media['id'], {
                'shopify_product_id': shopify_product_id,
                'product_id': product.id,
                'source_url': url,
                'filename': filename,
                'alt_text': media.get('alt'),
                'mime_type': guess_mime(filename),
                'byte_size': None,
                'width': image.get('width'),
                'height': image.get('height'),
                'position': position,
                'updated_at': utcnow(),
            })

    def _upsert_variant(self, variant: Dict[str, Any], product: CatalogProduct):
        """Upsert one variant inside a savepoint; a failure is logged and skipped."""
        try:
            shopify_variant_id = extract_shopify_id(variant.get('id'))
        except ValueError:
            logger.error(f"Failed to upsert variant {variant.get('id')}: invalid Shopify GID")
            return

        weight = ((variant.get('inventoryItem') or {}).get('measurement') or {}).get('weight') or {}
        options = [opt.get('value') or None for opt in (variant.get('selectedOptions') or [])]

        def option(index):
            return options[index] if index < len(options) else None

        try:
            with self.session.begin_nested():
                self.variants.upsert_from_shopify(shopify_variant_id, {
                    'product_id': product.id,
                    'sku': variant.get('sku') or None,
                    'title': variant.get('title'),
                    'price': _to_float(variant.get('price')),
                    'compare_at_price': _to_float(variant.get('compareAtPrice')),
                    'weight': weight.get('value'),
                    'weight_unit': convert_weight_unit(weight['unit']) if weight.get('unit') else None,
                    'inventory_quantity': variant.get('inventoryQuantity'),
                    'position': variant.get('position'),
                    'option1': option(0),
                    'option2': option(1),
                    'option3': option(2),
                })
        except (SQLAlchemyError, ValueError, TypeError) as e:
            logger.error(f"Failed to upsert variant {shopify_variant_id}: {e}")

    def _ensure_bucket(self, product: CatalogProduct, sku_label: str):
        """Create the product's media bucket unless one exists; duplicates are success."""
        try:
            with self.session.begin_nested():
                bucket, created = self.buckets.create_for_product_if_missing(product.id, sku_label, {
                    'storj_path': f"products/{sku_label}/",
                    'bucket_status': BucketStatus.ACTIVE.value,
                })
            if created:
                logger.info(f"Created media bucket {bucket.storj_path} for product {product.shopify_product_id}")
        except SQLAlchemyError as e:
            if 'unique' in str(e).lower() or 'duplicate' in str(e).lower():
                return
            logger.error(f"Failed to create media bucket for {sku_label}: {e}")
