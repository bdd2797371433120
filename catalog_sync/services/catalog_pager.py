"""
Cursor pagination over the Shopify products connection.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .shopify_client import ShopifyGraphQLClient
from .shopify_queries import GET_PRODUCTS, GET_PRODUCTS_COUNT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogCursor:
    """Position in the products connection."""
    cursor: Optional[str] = None
    has_more: bool = True

    @classmethod
    def start(cls) -> 'CatalogCursor':
        return cls(cursor=None, has_more=True)


@dataclass
class CatalogPage:
    """One fetched page and the cursor for the next step."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    cursor: CatalogCursor = field(default_factory=CatalogCursor)


class CatalogPager:
    """Walks the catalog page by page; transport errors propagate to the caller."""

    def __init__(self, client: ShopifyGraphQLClient, page_size: int = 50):
        self.client = client
        self.page_size = page_size

    def fetch_page(self, cursor: CatalogCursor) -> CatalogPage:
        """Fetch the page after `cursor` and return it with the next cursor."""
        variables = {'first': self.page_size, 'after': cursor.cursor}
        data = self.client.query(GET_PRODUCTS, variables)

        products = data.get('products') or {}
        items = [edge['node'] for edge in products.get('edges', []) if edge.get('node')]
        page_info = products.get('pageInfo') or {}
        has_more = bool(page_info.get('hasNextPage'))
        end_cursor = page_info.get('endCursor')

        # A page claiming more results without a cursor would loop forever
        if has_more and not end_cursor:
            logger.warning("Shopify reported hasNextPage without an endCursor; stopping pagination")
            has_more = False

        return CatalogPage(items=items, cursor=CatalogCursor(cursor=end_cursor, has_more=has_more))

    def iter_products(self) -> Iterator[Dict[str, Any]]:
        """Lazily yield product nodes across all pages."""
        cursor = CatalogCursor.start()
        page_number = 0

        while cursor.has_more:
            page = self.fetch_page(cursor)
            page_number += 1
            logger.debug(f"Fetched catalog page {page_number} with {len(page.items)} products")

            for item in page.items:
                yield item

            cursor = page.cursor

    def total_count(self) -> int:
        """Total number of products in the catalog, for progress display."""
        data = self.client.query(GET_PRODUCTS_COUNT)
        return int((data.get('productsCount') or {}).get('count') or 0)
