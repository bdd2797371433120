"""Tests for the sync API blueprint."""
import pytest
from unittest.mock import patch

from catalog_sync.database import close_database
from catalog_sync.exceptions import ConfigurationError
from catalog_sync.import_api import create_app
from catalog_sync.services.drive_client import GoogleDriveClient
from catalog_sync.services.object_storage import ObjectStorage
from catalog_sync.services.shopify_client import ShopifyGraphQLClient
from conftest import FakeDriveClient, FakeObjectStorage, FakeShopifyClient, make_product_node


@pytest.fixture
def app(sync_config):
    app = create_app('testing')
    app.config['SYNC_CONFIG'] = sync_config
    yield app
    close_database()


@pytest.fixture
def client(app):
    return app.test_client()


class TestShopifyImport:
    """Test the catalog import trigger and status endpoints."""

    def test_run_import(self, client):
        fake = FakeShopifyClient([make_product_node(n) for n in range(1, 4)])
        with patch.object(ShopifyGraphQLClient, 'from_config', return_value=fake):
            response = client.post('/api/sync/shopify/import')

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert (data['total'], data['imported'], data['failed']) == (3, 3, 0)
        assert data['status'] == 'success'

    def test_status_after_import(self, client):
        fake = FakeShopifyClient([make_product_node(n) for n in range(1, 4)])
        with patch.object(ShopifyGraphQLClient, 'from_config', return_value=fake):
            client.post('/api/sync/shopify/import')

        response = client.get('/api/sync/shopify/import')

        assert response.status_code == 200
        status = response.get_json()
        assert status['running'] is None
        assert status['lastCompleted']['status'] == 'success'
        assert status['lastCompleted']['imported'] == 3
        assert status['productCount'] == 3
        assert status['recentErrorsMeta']['total'] == 0

    def test_status_page_params(self, client):
        response = client.get('/api/sync/shopify/import?errorsPage=3&errorsPageSize=500')

        meta = response.get_json()['recentErrorsMeta']
        assert (meta['page'], meta['pageSize']) == (3, 50)

    def test_aborted_import_returns_500(self, client):
        with patch.object(ShopifyGraphQLClient, 'from_config',
                          side_effect=ConfigurationError("Shopify credentials not configured")):
            response = client.post('/api/sync/shopify/import')

        assert response.status_code == 500
        data = response.get_json()
        assert data['error'] == 'Import failed'
        assert "Shopify credentials not configured" in data['message']

        status = client.get('/api/sync/shopify/import').get_json()
        assert status['lastCompleted']['status'] == 'failed'
        assert status['recentErrors'][0]['status'] == 'failed'


class TestDriveImport:
    """Test the folder import trigger."""

    def test_run_import(self, client, sku_tree):
        with patch.object(GoogleDriveClient, 'from_config', return_value=FakeDriveClient(sku_tree)), \
                patch.object(ObjectStorage, 'from_config', return_value=FakeObjectStorage()):
            response = client.post('/api/sync/gdrive/import', json={'basePath': '/archive/'})

        assert response.status_code == 200
        data = response.get_json()
        assert data['folderId'] == 'root-folder'
        assert data['bucket'] == 'media'
        assert data['basePath'] == 'archive'
        assert (data['total'], data['uploaded'], data['imported'], data['failed']) == (4, 4, 4, 0)
        assert data['bucketsCreated'] == 2

    def test_missing_folder_id(self, app, client, sync_config):
        class NoFolder(sync_config):
            GOOGLE_DRIVE_SKU_FOLDER_ID = None

        app.config['SYNC_CONFIG'] = NoFolder
        response = client.post('/api/sync/gdrive/import', json={})

        assert response.status_code == 400
        assert 'folderId is required' in response.get_json()['error']

    def test_missing_bucket(self, app, client, sync_config):
        class NoBucket(sync_config):
            STORJ_S3_BUCKET = None

        app.config['SYNC_CONFIG'] = NoBucket
        response = client.post('/api/sync/gdrive/import', json={'folderId': 'abc'})

        assert response.status_code == 400
        assert 'bucket is required' in response.get_json()['error']

    def test_listing_failure_returns_500(self, client):
        with patch.object(GoogleDriveClient, 'from_config', return_value=FakeDriveClient({})), \
                patch.object(ObjectStorage, 'from_config', return_value=FakeObjectStorage()):
            response = client.post('/api/sync/gdrive/import', json={'folderId': 'missing'})

        assert response.status_code == 500
        assert response.get_json()['error'] == 'Import failed'


class TestBrowse:
    """Test the Drive and Storj listing endpoints."""

    def test_gdrive_list(self, client, sku_tree):
        with patch.object(GoogleDriveClient, 'from_config', return_value=FakeDriveClient(sku_tree)):
            response = client.get('/api/sync/gdrive/list?folderId=f-abc')

        assert response.status_code == 200
        assert [f['name'] for f in response.get_json()['files']] == ['Photos', 'front.jpg']

    def test_gdrive_list_not_configured(self, client):
        with patch.object(GoogleDriveClient, 'from_config',
                          side_effect=ConfigurationError("Missing GOOGLE_DRIVE_SERVICE_ACCOUNT_KEY")):
            response = client.get('/api/sync/gdrive/list')

        assert response.status_code == 503

    def test_storj_list(self, client):
        storage = FakeObjectStorage()
        storage.put_object('media', 'products/ABC123/front.jpg', b'1234')
        with patch.object(ObjectStorage, 'from_config', return_value=storage):
            response = client.get('/api/sync/storj/list?prefix=products/')

        assert response.status_code == 200
        data = response.get_json()
        assert data['bucket'] == 'media'
        assert data['objects'] == [{'key': 'products/ABC123/front.jpg', 'size': 4, 'lastModified': None}]
        assert data['isTruncated'] is False
