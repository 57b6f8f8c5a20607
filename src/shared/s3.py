"""S3-backed key-value store."""

import os
import boto3
from typing import Any, Optional
from botocore.exceptions import ClientError
import logging

from .exceptions import StorageError
from .storage import APP_ID, KeyValueStore, dumps, loads

logger = logging.getLogger(__name__)


class S3Store(KeyValueStore):
    """Key-value store keeping one JSON object per key in an S3 bucket."""

    def __init__(self, bucket_name: str, prefix: str = '', app_id: str = APP_ID, client: Any = None):
        """
        Initialize S3 store.

        Args:
            bucket_name: Name of the S3 bucket
            prefix: Optional key prefix inside the bucket
            app_id: Application namespace for keys
            client: Optional preconfigured boto3 S3 client
        """
        super().__init__(app_id)
        self.bucket_name = bucket_name
        self.prefix = prefix.strip('/')

        if client is not None:
            self.s3 = client
            return

        # Support for LocalStack
        endpoint_url = os.environ.get('LOCALSTACK_ENDPOINT')
        if endpoint_url and os.environ.get('USE_LOCALSTACK', 'false').lower() == 'true':
            self.s3 = boto3.client('s3', endpoint_url=endpoint_url)
        else:
            self.s3 = boto3.client('s3')

    def object_key(self, key: str) -> str:
        """S3 object key for a store key."""
        name = f"{self.namespaced(key)}.json"
        return f"{self.prefix}/{name}" if self.prefix else name

    def load(self, key: str) -> Optional[Any]:
        """
        Download and decode the document stored under key.

        Returns:
            Decoded value, or None if the object does not exist

        Raises:
            StorageError: If the download fails
        """
        object_key = self.object_key(key)
        try:
            response = self.s3.get_object(Bucket=self.bucket_name, Key=object_key)
            payload = response['Body'].read().decode('utf-8')
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in ('NoSuchKey', '404'):
                return None
            logger.error(f"Error downloading s3://{self.bucket_name}/{object_key}: {e}")
            raise StorageError(f"Failed to load {key}: {str(e)}")

        return loads(payload, key)

    def save(self, key: str, value: Any) -> None:
        """
        Encode value as JSON and upload it under key.

        Raises:
            StorageError: If the upload fails
        """
        object_key = self.object_key(key)
        body = dumps(value).encode('utf-8')
        try:
            self.s3.put_object(
                Bucket=self.bucket_name,
                Key=object_key,
                Body=body,
                ContentType='application/json',
                ServerSideEncryption='AES256'
            )
            logger.info(f"Saved {key} to s3://{self.bucket_name}/{object_key}")
        except ClientError as e:
            logger.error(f"Error uploading s3://{self.bucket_name}/{object_key}: {e}")
            raise StorageError(f"Failed to save {key}: {str(e)}")

    def remove(self, key: str) -> None:
        """
        Delete the object stored under key.

        Raises:
            StorageError: If the deletion fails
        """
        object_key = self.object_key(key)
        try:
            self.s3.delete_object(Bucket=self.bucket_name, Key=object_key)
            logger.info(f"Deleted s3://{self.bucket_name}/{object_key}")
        except ClientError as e:
            logger.error(f"Error deleting s3://{self.bucket_name}/{object_key}: {e}")
            raise StorageError(f"Failed to remove {key}: {str(e)}")
