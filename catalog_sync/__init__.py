"""
Catalog and media sync.

Imports the Shopify product catalog and Google Drive SKU photo folders into a
local relational store, copying media bytes into Storj object storage.
"""

__version__ = "0.1.0"
