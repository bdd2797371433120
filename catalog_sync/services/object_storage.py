"""
S3-compatible object storage (Storj gateway) client.
"""

import logging
from typing import Dict, Any, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..config import Config
from ..exceptions import ConfigurationError, StorageError

logger = logging.getLogger(__name__)

LIST_MAX_KEYS = 200


class ObjectStorage:
    """Put and list objects through a boto3 S3 client."""

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_config(cls, config=Config) -> 'ObjectStorage':
        if not (config.STORJ_S3_ENDPOINT and config.STORJ_S3_ACCESS_KEY_ID and config.STORJ_S3_SECRET_ACCESS_KEY):
            raise ConfigurationError(
                "Missing Storj S3 settings. Set STORJ_S3_ENDPOINT/STORJ_S3_ACCESS_KEY_ID/STORJ_S3_SECRET_ACCESS_KEY "
                "(or STORJ_ENDPOINT/STORJ_ACCESS_KEY_ID/STORJ_SECRET_ACCESS_KEY)."
            )

        client = boto3.client(
            's3',
            endpoint_url=config.STORJ_S3_ENDPOINT,
            aws_access_key_id=config.STORJ_S3_ACCESS_KEY_ID,
            aws_secret_access_key=config.STORJ_S3_SECRET_ACCESS_KEY,
            region_name=config.STORJ_S3_REGION,
            config=BotoConfig(
                s3={'addressing_style': 'path'},
                connect_timeout=config.HTTP_TIMEOUT,
                read_timeout=config.HTTP_TIMEOUT,
            ),
        )
        return cls(client)

    def put_object(self, bucket: str, key: str, body: bytes, content_type: Optional[str] = None):
        """Upload bytes under `key`, overwriting any existing object."""
        params = {'Bucket': bucket, 'Key': key, 'Body': body}
        if content_type:
            params['ContentType'] = content_type

        try:
            self.client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Upload failed for s3://{bucket}/{key}: {e}")

    def list_prefix(self, bucket: str, prefix: str = '', continuation_token: Optional[str] = None) -> Dict[str, Any]:
        """
        List one page of objects and sub-prefixes under a prefix.

        Returns:
            {objects: [{key, size, lastModified}], commonPrefixes, isTruncated, nextContinuationToken}
        """
        params = {'Bucket': bucket, 'Prefix': prefix, 'MaxKeys': LIST_MAX_KEYS, 'Delimiter': '/'}
        if continuation_token:
            params['ContinuationToken'] = continuation_token

        try:
            response = self.client.list_objects_v2(**params)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"List failed for s3://{bucket}/{prefix}: {e}")

        objects = []
        for item in response.get('Contents', []):
            last_modified = item.get('LastModified')
            objects.append({
                'key': item.get('Key', ''),
                'size': item.get('Size'),
                'lastModified': last_modified.isoformat() if last_modified else None,
            })

        return {
            'objects': objects,
            'commonPrefixes': [cp.get('Prefix', '') for cp in response.get('CommonPrefixes', [])],
            'isTruncated': bool(response.get('IsTruncated')),
            'nextContinuationToken': response.get('NextContinuationToken'),
        }
