"""
Shopify GraphQL Queries for Product Import
"""

import re

# Fragment for product fields we need
PRODUCT_FRAGMENT = """
fragment ProductFields on Product {
    id
    title
    handle
    descriptionHtml
    vendor
    productType
    tags
    status
    publishedAt
    createdAt
    updatedAt
    metafields(first: 20) {
        edges {
            node {
                namespace
                key
                value
                type
            }
        }
    }
    variants(first: 100) {
        edges {
            node {
                id
                title
                sku
                price
                compareAtPrice
                inventoryQuantity
                position
                selectedOptions {
                    name
                    value
                }
                inventoryItem {
                    measurement {
                        weight {
                            value
                            unit
                        }
                    }
                }
            }
        }
    }
    media(first: 50) {
        edges {
            node {
                ... on MediaImage {
                    id
                    alt
                    image {
                        url
                        width
                        height
                    }
                }
            }
        }
    }
}
"""

# Query to fetch products with pagination
GET_PRODUCTS = PRODUCT_FRAGMENT + """
query GetProducts($first: Int!, $after: String) {
    products(first: $first, after: $after) {
        edges {
            node {
                ...ProductFields
            }
        }
        pageInfo {
            hasNextPage
            endCursor
        }
    }
}
"""

# Query to fetch products count
GET_PRODUCTS_COUNT = """
query GetProductsCount {
    productsCount {
        count
    }
}
"""

_GID_PATTERN = re.compile(r'/(\d+)$')

WEIGHT_UNITS = {
    'KILOGRAMS': 'kg',
    'GRAMS': 'g',
    'POUNDS': 'lb',
    'OUNCES': 'oz',
}


def extract_shopify_id(gid: str) -> int:
    """gid://shopify/Product/123456789 -> 123456789"""
    match = _GID_PATTERN.search(gid or '')
    if not match:
        raise ValueError(f"Invalid Shopify GID: {gid}")
    return int(match.group(1))


def convert_weight_unit(unit: str) -> str:
    """Map a Shopify WeightUnit to its short form; unknown units become lb."""
    return WEIGHT_UNITS.get(unit, 'lb')
