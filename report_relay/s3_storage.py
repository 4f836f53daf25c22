"""S3-compatible object storage, used to mirror report images."""
from datetime import datetime
from typing import List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from report_relay.logging_conf import logger
from report_relay.storage import Storage


class S3Storage(Storage):
    """Storage backed by an S3 bucket, with every key below `prefix`.

    Works with AWS S3 and S3-compatible services such as MinIO.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        endpoint_url: Optional[str] = None,
        region: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.prefix = prefix.strip("/")

        if client is None:
            client_kwargs = {
                "service_name": "s3",
                "config": Config(signature_version="s3v4"),
            }
            if region:
                client_kwargs["region_name"] = region
            if endpoint_url:
                client_kwargs["endpoint_url"] = endpoint_url
            if access_key and secret_key:
                client_kwargs["aws_access_key_id"] = access_key
                client_kwargs["aws_secret_access_key"] = secret_key
            client = boto3.client(**client_kwargs)
        self.client = client

    def _key(self, key: str) -> str:
        key = key.lstrip("/")
        return f"{self.prefix}/{key}" if self.prefix else key

    def list_by_prefix(self, prefix: str) -> List[str]:
        paginator = self.client.get_paginator("list_objects_v2")
        strip = len(self.prefix) + 1 if self.prefix else 0
        keys = []
        for page in paginator.paginate(Bucket=self.bucket, Prefix=self._key(prefix)):
            keys.extend(obj["Key"][strip:] for obj in page.get("Contents", []))
        keys.sort()
        return keys

    def read(self, key: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self._key(key))
        except ClientError as e:
            if e.response["Error"]["Code"] == "NoSuchKey":
                raise FileNotFoundError(f"File not found: {key}") from e
            raise
        return response["Body"].read()

    def write(self, key: str, data: bytes) -> None:
        self.client.put_object(Bucket=self.bucket, Key=self._key(key), Body=data)
        logger.info(f'Saved "{key}" to S3 bucket {self.bucket}')

    def move(self, key: str, target: Storage, target_key: Optional[str] = None) -> None:
        target.write(target_key or key, self.read(key))
        self.delete(key)

    def delete(self, key: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=self._key(key))

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=self._key(key))
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchKey"):
                return False
            raise

    def modified_at(self, key: str) -> datetime:
        response = self.client.head_object(Bucket=self.bucket, Key=self._key(key))
        return response["LastModified"]
