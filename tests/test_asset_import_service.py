"""Tests for the asset import service."""
import pytest

from catalog_sync.exceptions import AssetImportError, StorageError
from catalog_sync.models import CatalogProduct, MediaAsset, MediaBucket
from catalog_sync.services.asset_import_service import (
    AssetImportService, clean_prefix, determine_workflow_category, infer_media_type
)
from catalog_sync.services.folder_walker import DriveLeaf
from conftest import FakeDriveClient, FakeObjectStorage


def _leaf(path, file_id='file-1', mime_type='image/jpeg'):
    return DriveLeaf(id=file_id, name=path.split('/')[-1], path=path, mime_type=mime_type, size=10)


@pytest.fixture
def drive():
    return FakeDriveClient({}, contents={'file-1': b'0123456789'})


@pytest.fixture
def storage():
    return FakeObjectStorage()


class TestWorkflowCategory:
    """Test path keyword classification."""

    @pytest.mark.parametrize("path,expected", [
        ("ABC/Raw Captures/img.jpg", "raw_capture"),
        ("ABC/photos/raw_captures/img.jpg", "raw_capture"),
        ("ABC/Photos/Final Ecom/img.jpg", "final_ecom"),
        ("ABC/final_ecom_v2/img.jpg", "final_ecom"),
        ("ABC/PSD/Cutouts/img.psd", "psd_cutout"),
        ("ABC/PSD/layers.psd", "project_file"),
        ("ABC/Project Files/scene.blend", "project_file"),
        ("ABC/Photos/Misc/img.jpg", "raw_capture"),
        ("ABC/img.jpg", "raw_capture"),
    ])
    def test_categories(self, path, expected):
        assert determine_workflow_category(path) == expected

    def test_top_level_folder_matches(self):
        """Test a keyword folder at the root of the path is recognized."""
        assert determine_workflow_category("Final Ecom/img.jpg") == "final_ecom"
        assert determine_workflow_category("PSD/img.psd") == "project_file"


class TestHelpers:

    @pytest.mark.parametrize("mime_type,expected", [
        ("image/jpeg", "image"),
        ("video/mp4", "video"),
        ("application/pdf", "file"),
        (None, "file"),
    ])
    def test_infer_media_type(self, mime_type, expected):
        assert infer_media_type(mime_type) == expected

    def test_clean_prefix(self):
        assert clean_prefix("/media/archive/") == "media/archive"
        assert clean_prefix(None) == ""


class TestImportLeaf:
    """Test importing one Drive file."""

    def test_imports_new_file(self, db_session, drive, storage):
        service = AssetImportService(db_session, drive, storage, bucket='media')
        cache = {}

        outcome = service.import_leaf(_leaf("ABC123/Photos/Final Ecom/hero.jpg"), cache)
        db_session.commit()

        assert outcome == 'imported'
        assert storage.objects[('media', "ABC123/Photos/Final Ecom/hero.jpg")] == {
            'body': b'0123456789', 'content_type': 'image/jpeg'
        }

        asset = db_session.query(MediaAsset).one()
        assert asset.file_url == "storj://media/ABC123/Photos/Final Ecom/hero.jpg"
        assert asset.file_size == 10
        assert asset.media_type == "image"
        assert asset.workflow_state == "raw"
        assert asset.workflow_category == "final_ecom"
        assert asset.original_filename == "hero.jpg"
        assert asset.google_drive_file_id == "file-1"
        assert asset.google_drive_folder_path == "ABC123/Photos/Final Ecom"
        assert asset.import_source == "google_drive"

        bucket = db_session.query(MediaBucket).one()
        assert bucket.sku_label == "ABC123"
        assert bucket.storj_path == "products/ABC123/"
        assert bucket.last_upload_at is not None
        assert cache == {"ABC123": bucket.id}
        assert service.buckets_created == 1
        assert service.uploaded == 1

    def test_base_path_prefixes_keys(self, db_session, drive, storage):
        service = AssetImportService(db_session, drive, storage, bucket='media', base_path='/archive/')

        service.import_leaf(_leaf("ABC123/front.jpg"), {})

        assert ('media', "archive/ABC123/front.jpg") in storage.objects
        assert db_session.query(MediaBucket).one().storj_path == "archive/products/ABC123/"

    def test_same_leaf_twice_is_skipped(self, db_session, drive, storage):
        """Test a file whose key is already recorded is counted as skipped."""
        service = AssetImportService(db_session, drive, storage, bucket='media')
        leaf = _leaf("ABC123/front.jpg")

        assert service.import_leaf(leaf, {}) == 'imported'
        db_session.commit()
        assert service.import_leaf(leaf, {}) == 'skipped'
        db_session.commit()

        assert db_session.query(MediaAsset).count() == 1
        assert db_session.query(MediaBucket).count() == 1
        assert service.buckets_created == 1

    def test_missing_sku_label(self, db_session, drive, storage):
        service = AssetImportService(db_session, drive, storage, bucket='media')

        with pytest.raises(AssetImportError, match="Missing SKU label in path"):
            service.import_leaf(_leaf("/orphan.jpg"), {})

        assert storage.objects == {}

    def test_bucket_links_existing_product(self, db_session, drive, storage):
        product = CatalogProduct(shopify_product_id=1, handle="abc", title="ABC", sku_label="ABC123")
        db_session.add(product)
        db_session.commit()

        AssetImportService(db_session, drive, storage, bucket='media').import_leaf(_leaf("ABC123/front.jpg"), {})

        assert db_session.query(MediaBucket).one().product_id == product.id

    def test_cache_skips_bucket_lookup(self, db_session, drive, storage):
        service = AssetImportService(db_session, drive, storage, bucket='media')
        cache = {}
        service.import_leaf(_leaf("ABC123/a.jpg", file_id='file-1'), cache)
        service.import_leaf(_leaf("ABC123/b.jpg", file_id='file-2'), cache)

        assert db_session.query(MediaBucket).count() == 1
        assert {asset.media_bucket_id for asset in db_session.query(MediaAsset)} == {cache["ABC123"]}

    def test_upload_failure_propagates(self, db_session, drive):
        storage = FakeObjectStorage(failing_keys={"ABC123/front.jpg"})
        service = AssetImportService(db_session, drive, storage, bucket='media')

        with pytest.raises(StorageError):
            service.import_leaf(_leaf("ABC123/front.jpg"), {})

        assert db_session.query(MediaAsset).count() == 0
