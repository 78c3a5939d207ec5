import boto3
from botocore.exceptions import ClientError
from app.config import settings
import logging

logger = logging.getLogger(__name__)


class S3Storage:
    """Evidence blobs in the configured S3 bucket."""

    def __init__(self):
        if not settings.s3_configured:
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name

    def upload_file(self, file_content: bytes, key: str, content_type: str) -> str:
        """Upload file to S3 and return the object key"""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type
            )
            return key
        except ClientError as e:
            logger.error(f"Failed to upload evidence to S3: {str(e)}")
            raise

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com/{key}"

    def delete_file(self, key: str) -> bool:
        """Delete file from S3"""
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            logger.error(f"Failed to delete evidence from S3: {str(e)}")
            return False
