"""
S3 client for media object storage.
"""
import boto3
from botocore.exceptions import ClientError, BotoCoreError
from typing import Optional

from core.logger import logger


class S3Client:
    """S3 client for storing and retrieving media objects in a single bucket."""

    def __init__(
        self,
        bucket_name: str,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        region_name: str = "us-east-1",
        endpoint_url: Optional[str] = None,  # For S3-compatible services (MinIO, etc.)
        auto_create_bucket: bool = True,
        presigned_expires: int = 3600
    ):
        """
        Initialize S3 client.

        Args:
            bucket_name: Bucket holding all media objects
            aws_access_key_id: AWS access key (or from env)
            aws_secret_access_key: AWS secret key (or from env)
            region_name: AWS region
            endpoint_url: Custom endpoint URL (for MinIO, etc.)
            auto_create_bucket: Create the bucket if it doesn't exist
            presigned_expires: Lifetime of generated download URLs, in seconds
        """
        self.bucket_name = bucket_name
        self.region_name = region_name
        self.auto_create_bucket = auto_create_bucket
        self.presigned_expires = presigned_expires

        client_kwargs = {
            "region_name": region_name
        }
        if aws_access_key_id:
            client_kwargs["aws_access_key_id"] = aws_access_key_id
        if aws_secret_access_key:
            client_kwargs["aws_secret_access_key"] = aws_secret_access_key
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url

        self.s3_client = boto3.client("s3", **client_kwargs)
        self._ensure_bucket_exists()
        logger.info(f"S3 client initialized (bucket: {bucket_name})")

    def _ensure_bucket_exists(self):
        """Ensure bucket exists, create if it doesn't."""
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            logger.debug(f"Bucket {self.bucket_name} exists")
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            if error_code not in ("404", "NoSuchBucket") or not self.auto_create_bucket:
                logger.error(f"Error checking bucket {self.bucket_name}: {e}")
                raise
            if self.region_name == "us-east-1":
                self.s3_client.create_bucket(Bucket=self.bucket_name)
            else:
                self.s3_client.create_bucket(
                    Bucket=self.bucket_name,
                    CreateBucketConfiguration={"LocationConstraint": self.region_name}
                )
            logger.info(f"Created bucket: {self.bucket_name}")

    def upload_bytes(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        """
        Upload raw bytes under ``key``.

        Returns:
            The object key
        """
        extra = {}
        if content_type:
            extra["ContentType"] = content_type
        try:
            self.s3_client.put_object(Bucket=self.bucket_name, Key=key, Body=data, **extra)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload object to S3: {e}")
            raise
        logger.info(f"Uploaded object to S3: s3://{self.bucket_name}/{key}")
        return key

    def delete_file(self, key: str) -> bool:
        """
        Delete an object from S3.

        Returns:
            True if successful
        """
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete object from S3: {e}")
            raise
        logger.info(f"Deleted object from S3: {self.bucket_name}/{key}")
        return True

    def file_exists(self, key: str) -> bool:
        """Check if an object exists in S3."""
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "404":
                return False
            raise

    def get_url(self, key: str) -> Optional[str]:
        """Presigned HTTPS URL for an object, or None if one cannot be generated."""
        if not key:
            return None
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=self.presigned_expires
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Failed to generate presigned URL for {key}: {e}")
            return None

    def health_check(self) -> dict:
        """Bucket reachability for /health."""
        self.s3_client.head_bucket(Bucket=self.bucket_name)
        return {"status": "ok", "backend": "s3", "bucket": self.bucket_name}
