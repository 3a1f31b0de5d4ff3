"""
S3 object storage for member photos and announcement images
"""
import base64
import binascii
import time
import boto3
from botocore.exceptions import ClientError, BotoCoreError
from typing import Optional
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)


class StorageUploadError(Exception):
    """Raised when an object could not be stored"""


class S3Service:
    """Service for managing file uploads to S3"""

    def __init__(self):
        """Initialize S3 client"""
        credentials = {}
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            credentials = {
                "aws_access_key_id": settings.AWS_ACCESS_KEY_ID,
                "aws_secret_access_key": settings.AWS_SECRET_ACCESS_KEY,
            }
        self.s3_client = boto3.client("s3", region_name=settings.AWS_REGION, **credentials)
        self.bucket_name = settings.S3_BUCKET_MEMBER_PHOTOS

    @staticmethod
    def generate_file_name(prefix: str, owner_id, extension: str = "jpg") -> str:
        """``{prefix}-{owner_id}-{epoch_ms}.{extension}``"""
        return f"{prefix}-{owner_id}-{int(time.time() * 1000)}.{extension}"

    def public_url(self, s3_key: str, bucket_name: Optional[str] = None) -> str:
        target_bucket = bucket_name or self.bucket_name
        return f"https://{target_bucket}.s3.{settings.AWS_REGION}.amazonaws.com/{s3_key}"

    def upload_bytes(
        self,
        data: bytes,
        s3_key: str,
        content_type: Optional[str] = None,
        bucket_name: Optional[str] = None,
    ) -> str:
        """
        Upload a binary payload to S3

        Args:
            data: Object bytes
            s3_key: S3 object key (path in bucket)
            content_type: MIME type of the object
            bucket_name: Optional bucket name (uses default if not provided)

        Returns:
            Public URL of the uploaded object

        Raises:
            StorageUploadError: If upload fails
        """
        if len(data) > settings.MAX_PHOTO_SIZE:
            raise StorageUploadError("File is too large")

        target_bucket = bucket_name or self.bucket_name
        extra_args = {}
        if content_type:
            extra_args["ContentType"] = content_type

        try:
            self.s3_client.put_object(Bucket=target_bucket, Key=s3_key, Body=data, **extra_args)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload object to S3: {e}")
            raise StorageUploadError(f"S3 upload failed: {str(e)}")

        url = self.public_url(s3_key, target_bucket)
        logger.info(f"Successfully uploaded object to S3: {url}")
        return url

    def upload_base64_image(
        self,
        payload: str,
        prefix: str,
        owner_id,
        bucket_name: Optional[str] = None,
    ) -> str:
        """Decode a base64 JPEG from the photo picker and upload it"""
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise StorageUploadError("Photo payload is not valid base64")

        s3_key = self.generate_file_name(prefix, owner_id)
        return self.upload_bytes(data, s3_key, content_type="image/jpeg", bucket_name=bucket_name)


# Create singleton instance
s3_service = S3Service()


def get_s3_service() -> S3Service:
    """Get S3 service instance"""
    return s3_service
