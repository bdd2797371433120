"""Pytest configuration and fixtures for the test suite."""
import pytest

from catalog_sync.config import TestingConfig
from catalog_sync.database import DatabaseManager
from catalog_sync.exceptions import DriveApiError, ShopifyApiError, StorageError
from catalog_sync.services.drive_client import FOLDER_MIME_TYPE


class SyncTestConfig(TestingConfig):
    """Testing configuration with remote settings filled in."""
    SHOPIFY_SHOP_URL = "test-store.myshopify.com"
    SHOPIFY_ACCESS_TOKEN = "shpat_test"
    SHOPIFY_PAGE_SIZE = 2
    GOOGLE_DRIVE_SKU_FOLDER_ID = "root-folder"
    STORJ_S3_BUCKET = "media"
    STORJ_BASE_PATH = ""
    SYNC_PROGRESS_EVERY = 1
    SYNC_ERROR_SAMPLE_SIZE = 50
    SYNC_STALE_AFTER_MINUTES = 0


def make_product_node(number, skus=None, title=None, media=None, metafields=None,
                      weight_unit='POUNDS', status='ACTIVE'):
    """Build a Shopify product node as returned by the GetProducts query."""
    skus = skus if skus is not None else [f"SKU-{number}"]
    variants = []
    for position, sku in enumerate(skus, start=1):
        variants.append({'node': {
            'id': f"gid://shopify/ProductVariant/{number * 100 + position}",
            'title': f"Variant {position}",
            'sku': sku,
            'price': '19.99',
            'compareAtPrice': None,
            'inventoryQuantity': 5,
            'position': position,
            'selectedOptions': [{'name': 'Size', 'value': f"S{position}"}],
            'inventoryItem': {'measurement': {'weight': {'value': 1.5, 'unit': weight_unit}}},
        }})

    return {
        'id': f"gid://shopify/Product/{number}",
        'title': title if title is not None else f"Product {number}",
        'handle': f"product-{number}",
        'descriptionHtml': f"<p>Product <b>{number}</b></p>",
        'vendor': 'Acme',
        'productType': 'Widget',
        'tags': ['new'],
        'status': status,
        'publishedAt': '2024-05-01T12:00:00Z',
        'metafields': {'edges': [{'node': node} for node in (metafields or [])]},
        'variants': {'edges': variants},
        'media': {'edges': [{'node': node} for node in (media or [])]},
    }


class FakeShopifyClient:
    """Serves product nodes page by page the way the products connection does."""

    def __init__(self, products, page_size=2, fail_on_page=None, count=None, fail_with=None):
        self.products = list(products)
        self.page_size = page_size
        self.fail_on_page = fail_on_page
        self.fail_with = fail_with
        self.count = len(self.products) if count is None else count
        self.calls = []

    def query(self, query, variables=None):
        self.calls.append(variables)
        if 'productsCount' in query:
            return {'productsCount': {'count': self.count}}

        variables = variables or {}
        start = int(variables.get('after') or 0)
        page_number = start // self.page_size + 1
        if self.fail_on_page is not None and page_number == self.fail_on_page:
            raise self.fail_with or ShopifyApiError("GraphQL errors: [{'message': 'Internal error'}]", status_code=500)

        first = variables.get('first', self.page_size)
        chunk = self.products[start:start + first]
        end = start + len(chunk)
        return {'products': {
            'edges': [{'node': node} for node in chunk],
            'pageInfo': {'hasNextPage': end < len(self.products), 'endCursor': str(end)},
        }}


class FakeDriveClient:
    """In-memory folder tree: folder id -> list of child resources."""

    def __init__(self, tree, contents=None, failing_downloads=()):
        self.tree = tree
        self.contents = contents or {}
        self.failing_downloads = set(failing_downloads)
        self.downloads = []

    def list_children(self, folder_id):
        if folder_id not in self.tree:
            raise DriveApiError(f"Google Drive API error 404: folder {folder_id} not found", status_code=404)
        return list(self.tree[folder_id])

    def download(self, file_id):
        self.downloads.append(file_id)
        if file_id in self.failing_downloads:
            raise DriveApiError(f"Google Drive API error 500: download of {file_id} failed", status_code=500)
        return self.contents.get(file_id, b'bytes-' + file_id.encode())


class FakeObjectStorage:
    """Records uploaded objects by bucket and key."""

    def __init__(self, failing_keys=()):
        self.objects = {}
        self.failing_keys = set(failing_keys)

    def put_object(self, bucket, key, body, content_type=None):
        if key in self.failing_keys:
            raise StorageError(f"Upload failed for s3://{bucket}/{key}: AccessDenied")
        self.objects[(bucket, key)] = {'body': body, 'content_type': content_type}

    def list_prefix(self, bucket, prefix='', continuation_token=None):
        keys = sorted(key for (name, key) in self.objects if name == bucket and key.startswith(prefix))
        return {
            'objects': [{'key': key, 'size': len(self.objects[(bucket, key)]['body']), 'lastModified': None}
                        for key in keys],
            'commonPrefixes': [],
            'isTruncated': False,
            'nextContinuationToken': None,
        }


def folder(folder_id, name):
    return {'id': folder_id, 'name': name, 'mimeType': FOLDER_MIME_TYPE}


def drive_file(file_id, name, mime_type='image/jpeg', size=10):
    return {'id': file_id, 'name': name, 'mimeType': mime_type, 'size': str(size),
            'modifiedTime': '2024-05-01T12:00:00.000Z'}


@pytest.fixture
def sync_config():
    return SyncTestConfig


@pytest.fixture
def database():
    """In-memory SQLite database with all tables created."""
    manager = DatabaseManager('sqlite:///:memory:')
    manager.initialize(create_tables=True)
    try:
        yield manager
    finally:
        manager.close()


@pytest.fixture
def db_session(database):
    """Create a database session for a test."""
    session = database.get_session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sku_tree():
    """Two SKU folders with nested workflow folders."""
    tree = {
        'root-folder': [folder('f-abc', 'ABC123'), folder('f-xyz', 'XYZ-9')],
        'f-abc': [folder('f-abc-photos', 'Photos'), drive_file('file-1', 'front.jpg')],
        'f-abc-photos': [folder('f-abc-raw', 'Raw Captures'), folder('f-abc-final', 'Final Ecom')],
        'f-abc-raw': [drive_file('file-2', 'IMG_0001.CR2', mime_type='image/x-canon-cr2')],
        'f-abc-final': [drive_file('file-3', 'hero.png', mime_type='image/png')],
        'f-xyz': [drive_file('file-4', 'clip.mp4', mime_type='video/mp4')],
    }
    return tree
