"""
S3-compatible object storage client.

Stores slip images, signatures, logos and general uploads. Works with AWS S3,
MinIO and R2 through a configurable endpoint.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import BusinessRuleError, UpstreamError
from utils.timezone import timestamp_ms

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(.+);base64,(.+)$", re.DOTALL)


@dataclass
class DecodedImage:
    """Binary content decoded from a data URL."""
    content_type: str
    data: bytes

    @property
    def extension(self) -> str:
        return image_extension(self.content_type)


def image_extension(content_type: str) -> str:
    """png for PNG content, jpg for everything else."""
    return "png" if "png" in content_type else "jpg"


def decode_data_url(data_url: str, max_bytes: int | None = None) -> DecodedImage:
    """
    Decode 'data:<type>;base64,<payload>'.

    Raises:
        BusinessRuleError: Not a base64 data URL, not an image type, bad base64,
            or too large
    """
    match = DATA_URL_PATTERN.match(data_url.strip())
    if not match:
        raise BusinessRuleError("Invalid image format")

    content_type = match.group(1)
    if not content_type.startswith("image/"):
        raise BusinessRuleError("Only image files are allowed")

    try:
        data = base64.b64decode(match.group(2), validate=False)
    except (binascii.Error, ValueError):
        raise BusinessRuleError("Invalid image format")

    if max_bytes is not None and len(data) > max_bytes:
        raise BusinessRuleError(f"Image too large. Maximum size: {max_bytes // (1024 * 1024)}MB")

    return DecodedImage(content_type=content_type, data=data)


# Storage key layout

def slip_key(invoice_id, ext: str) -> str:
    return f"slips/{invoice_id}/{timestamp_ms()}.{ext}"


def signature_key(contract_id, role: str) -> str:
    return f"contracts/{contract_id}/{role}-signature-{timestamp_ms()}.png"


def logo_key(project_id, ext: str) -> str:
    return f"logo/{project_id}/{timestamp_ms()}.{ext}"


def upload_key(user_id, ext: str) -> str:
    return f"uploads/{user_id}/{timestamp_ms()}.{ext}"


class StorageClient:
    """
    Thin wrapper around a boto3 S3 client.

    Usage:
        storage = StorageClient(endpoint_url, access_key, secret_key, bucket)
        storage.put(key, data, "image/png")
        url = storage.presigned_url(key)
    """

    def __init__(
        self,
        endpoint_url: str | None,
        access_key: str,
        secret_key: str,
        bucket: str,
        region: str = "auto",
        client=None,
    ):
        """
        Args:
            endpoint_url: S3-compatible endpoint, None for AWS
            access_key: Access key id
            secret_key: Secret access key
            bucket: Bucket holding every object
            region: Region name ("auto" for R2)
            client: Pre-built boto3 client (tests)

        Raises:
            ValueError: If bucket is empty
        """
        if not bucket:
            raise ValueError("bucket is required")

        self.bucket = bucket
        self._client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url or None,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=Config(signature_version="s3v4"),
        )

    def put(self, key: str, data: bytes, content_type: str) -> str:
        """
        Upload bytes under key.

        Returns:
            The key

        Raises:
            UpstreamError: Storage rejected the upload
        """
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload {key}: {e}")
            raise UpstreamError("Failed to upload file to storage", status_code=502)
        return key

    def presigned_url(self, key: str, expires_in: int = 3600) -> str:
        """Time-limited GET URL for a stored object."""
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to presign {key}: {e}")
            raise UpstreamError("Failed to generate download URL", status_code=502)

    def delete(self, key: str) -> None:
        """
        Raises:
            UpstreamError: Storage rejected the delete
        """
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete {key}: {e}")
            raise UpstreamError("Failed to delete file from storage", status_code=502)
