from voicenote.util.errors import StorageIOError
from voicenote.util.logger import get_logger
from voicenote.config import S3_ACCESS_KEY, S3_BUCKET_NAME, S3_REGION, S3_SECRET_KEY
import boto3
from botocore.config import Config


logger = get_logger(__name__)


def create_s3_client():
    """
    Build a boto3 S3 client from the configured credentials.
    """

    if not all([S3_REGION, S3_ACCESS_KEY, S3_SECRET_KEY, S3_BUCKET_NAME]):
        raise StorageIOError(
            "S3 settings (S3_REGION, S3_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, S3_BUCKET_NAME) are not configured."
        )

    try:
        return boto3.client(
            "s3",
            region_name=S3_REGION,
            aws_access_key_id=S3_ACCESS_KEY,
            aws_secret_access_key=S3_SECRET_KEY,
            config=Config(signature_version="s3v4"),
        )
    except Exception as e:
        logger.error(f"Failed to create S3 client: {e}")
        raise StorageIOError("Could not connect to audio storage.")
