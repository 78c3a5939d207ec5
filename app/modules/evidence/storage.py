"""
Evidence blob storage.

S3 is used when AWS credentials and a bucket are configured; otherwise blobs
go to the Supabase Storage bucket named by `settings.evidence_bucket`. Both
backends expose upload_file / public_url / delete_file.
"""

from supabase import Client
from app.config import settings
from app.modules.evidence.s3_storage import S3Storage
import logging

logger = logging.getLogger(__name__)


class SupabaseStorage:
    def __init__(self, supabase: Client, bucket: str = None):
        self.supabase = supabase
        self.bucket = bucket or settings.evidence_bucket

    def upload_file(self, file_content: bytes, key: str, content_type: str) -> str:
        """Upload file to the bucket and return the object path"""
        try:
            self.supabase.storage.from_(self.bucket).upload(
                key,
                file_content,
                {"content-type": content_type, "cache-control": "3600", "upsert": "false"}
            )
            return key
        except Exception as e:
            logger.error(f"Failed to upload evidence to bucket {self.bucket}: {e}")
            raise

    def public_url(self, key: str) -> str:
        return self.supabase.storage.from_(self.bucket).get_public_url(key)

    def delete_file(self, key: str) -> bool:
        try:
            self.supabase.storage.from_(self.bucket).remove([key])
            return True
        except Exception as e:
            logger.error(f"Failed to delete evidence from bucket {self.bucket}: {e}")
            return False


def get_evidence_storage(supabase: Client):
    if settings.s3_configured:
        return S3Storage()
    return SupabaseStorage(supabase)
