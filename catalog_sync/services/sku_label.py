"""
SKU label derivation.

A SKU label is the product-family code shared by all variants of a product,
e.g. RSV-V-PRODUCT-S / RSV-V-PRODUCT-M / RSV-V-PRODUCT-L -> RSV-V-PRODUCT.
It names the media bucket that holds the product's photos.
"""

import re
from typing import Iterable, Optional

# Trailing size/color/number token separated by '-' or '_'
SIZE_SUFFIX_PATTERN = re.compile(r'[-_](XXS|XS|S|M|L|XL|XXL|XXXL|2XL|3XL|ONE|OS|\d+)$', re.IGNORECASE)


def strip_size_suffix(sku: str) -> str:
    """Remove one trailing size/numeric token from a SKU."""
    return SIZE_SUFFIX_PATTERN.sub('', sku)


def derive_sku_label(skus: Iterable[Optional[str]]) -> Optional[str]:
    """
    Derive the canonical SKU label from a product's variant SKUs.

    Args:
        skus: Variant SKUs in Shopify order; None and empty values are ignored

    Returns:
        The SKU label, or None when no variant carries a SKU
    """
    present = [sku for sku in skus if sku]

    if not present:
        return None

    if len(present) == 1:
        return present[0]

    bases = [strip_size_suffix(sku) for sku in present]
    if bases[0] and all(base == bases[0] for base in bases):
        return bases[0]

    # No common base: fall back to the first SKU
    return bases[0] or present[0]
