"""Tests for the S3-compatible object storage client."""
import pytest
from datetime import datetime, timezone
from unittest.mock import Mock, patch

from botocore.exceptions import ClientError

from catalog_sync.exceptions import ConfigurationError, StorageError
from catalog_sync.services.object_storage import ObjectStorage


@pytest.fixture
def s3():
    return Mock()


class TestObjectStorage:

    def test_put_object(self, s3):
        ObjectStorage(s3).put_object('media', 'ABC/front.jpg', b'data', 'image/jpeg')

        s3.put_object.assert_called_once_with(
            Bucket='media', Key='ABC/front.jpg', Body=b'data', ContentType='image/jpeg'
        )

    def test_put_object_error(self, s3):
        s3.put_object.side_effect = ClientError({'Error': {'Code': 'AccessDenied', 'Message': 'denied'}}, 'PutObject')

        with pytest.raises(StorageError, match="s3://media/ABC/front.jpg"):
            ObjectStorage(s3).put_object('media', 'ABC/front.jpg', b'data')

    def test_list_prefix(self, s3):
        modified = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        s3.list_objects_v2.return_value = {
            'Contents': [{'Key': 'products/a.jpg', 'Size': 12, 'LastModified': modified}],
            'CommonPrefixes': [{'Prefix': 'products/ABC123/'}],
            'IsTruncated': True,
            'NextContinuationToken': 'next-token',
        }

        listing = ObjectStorage(s3).list_prefix('media', 'products/', continuation_token='tok')

        s3.list_objects_v2.assert_called_once_with(
            Bucket='media', Prefix='products/', MaxKeys=200, Delimiter='/', ContinuationToken='tok'
        )
        assert listing == {
            'objects': [{'key': 'products/a.jpg', 'size': 12, 'lastModified': modified.isoformat()}],
            'commonPrefixes': ['products/ABC123/'],
            'isTruncated': True,
            'nextContinuationToken': 'next-token',
        }

    def test_list_empty(self, s3):
        s3.list_objects_v2.return_value = {'IsTruncated': False}

        listing = ObjectStorage(s3).list_prefix('media')

        assert listing['objects'] == []
        assert listing['commonPrefixes'] == []
        assert listing['nextContinuationToken'] is None


class TestFromConfig:

    def test_missing_settings(self, sync_config):
        class NoStorj(sync_config):
            STORJ_S3_ENDPOINT = None

        with pytest.raises(ConfigurationError, match="STORJ_S3_ENDPOINT"):
            ObjectStorage.from_config(NoStorj)

    @patch('catalog_sync.services.object_storage.boto3.client')
    def test_builds_path_style_client(self, mock_client, sync_config):
        class WithStorj(sync_config):
            STORJ_S3_ENDPOINT = 'https://gateway.storjshare.io'
            STORJ_S3_ACCESS_KEY_ID = 'key'
            STORJ_S3_SECRET_ACCESS_KEY = 'secret'

        ObjectStorage.from_config(WithStorj)

        args, kwargs = mock_client.call_args
        assert args == ('s3',)
        assert kwargs['endpoint_url'] == 'https://gateway.storjshare.io'
        assert kwargs['region_name'] == WithStorj.STORJ_S3_REGION
        assert kwargs['config'].s3 == {'addressing_style': 'path'}
