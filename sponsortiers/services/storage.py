"""Publishing generated files to R2 object storage"""
import logging
import mimetypes
import os
from typing import Iterable, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sponsortiers.config import R2Settings

logger = logging.getLogger(__name__)

class StorageService:
    """Uploads generated files to an S3-compatible bucket"""

    def __init__(self, r2: R2Settings, s3_client=None):
        self.bucket = r2.bucket
        self.s3_client = s3_client or boto3.client(
            's3',
            endpoint_url=r2.endpoint_url,
            aws_access_key_id=r2.access_key_id,
            aws_secret_access_key=r2.secret_access_key,
            region_name='auto'
        )

    def upload_file(self, path: str, key: Optional[str] = None) -> bool:
        """
        Upload one file, keyed by its file name unless a key is given.

        Returns:
            bool: False if the local file does not exist

        Raises:
            ClientError, BotoCoreError: If the upload fails
        """
        if not os.path.isfile(path):
            logger.warning(f"Warning: {path} does not exist.")
            return False

        key = key or os.path.basename(path)
        content_type = mimetypes.guess_type(path)[0] or 'application/octet-stream'
        try:
            with open(path, 'rb') as f:
                self.s3_client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=f,
                    ContentType=content_type
                )
            logger.info(f"Successfully uploaded {path} to r2://{self.bucket}/{key}")
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error uploading {path}: {e}")
            raise

    def upload_files(self, paths: Iterable[str]) -> List[str]:
        """Upload every existing file, returning the keys that were written"""
        uploaded = []
        for path in paths:
            if self.upload_file(path):
                uploaded.append(os.path.basename(path))
        return uploaded
