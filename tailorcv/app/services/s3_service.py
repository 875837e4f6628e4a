"""
Blob storage for uploaded CVs and resume photos.
Stores files in S3 under {s3_key_prefix}/{user_id}/{filename}; falls back to the local
upload dir when AWS is not configured. Callers only deal in "store bytes, get URL" and
"delete by URL".
"""
from dataclasses import dataclass
from pathlib import Path

import boto3
from botocore.exceptions import ClientError

from tailorcv.app.core.config import settings
from tailorcv.app.core.logging_config import get_logger

logger = get_logger("services.s3")


@dataclass
class UploadedDocument:
    """An uploaded file already read into memory."""
    content: bytes
    filename: str
    mime_type: str

    @property
    def extension(self) -> str:
        return Path(self.filename or "").suffix.lower()


def _s3_configured() -> bool:
    return bool(settings.aws_access_key_id and settings.aws_secret_access_key)


def _get_s3_client():
    """Get configured S3 client."""
    if not _s3_configured():
        raise ValueError("AWS credentials not configured (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY)")
    return boto3.client(
        "s3",
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.aws_region,
    )


def _local_base() -> Path:
    base = Path(settings.upload_dir)
    if not base.is_absolute():
        base = Path.cwd() / base
    return base


def upload_file_to_s3(
    file_buffer: bytes,
    file_name: str,
    user_id: str,
    mime_type: str = "application/octet-stream",
) -> dict:
    """
    Upload file to S3 under {s3_key_prefix}/{user_id}/{file_name}.

    Returns:
        dict with key, url
    """
    key = f"{settings.s3_key_prefix}/{user_id}/{file_name}"

    logger.info(
        "S3 upload started bucket=%s region=%s key=%s size_bytes=%d",
        settings.aws_bucket_name,
        settings.aws_region,
        key,
        len(file_buffer),
    )

    try:
        s3 = _get_s3_client()
        s3.put_object(
            Bucket=settings.aws_bucket_name,
            Key=key,
            Body=file_buffer,
            ContentType=mime_type,
        )
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        msg = e.response.get("Error", {}).get("Message", str(e))
        logger.error(
            "S3 upload failed bucket=%s key=%s error_code=%s error_message=%s",
            settings.aws_bucket_name,
            key,
            code,
            msg,
        )
        raise RuntimeError(f"S3 upload failed - {code}: {msg}") from e

    url = f"https://{settings.aws_bucket_name}.s3.{settings.aws_region}.amazonaws.com/{key}"
    logger.info("S3 upload success bucket=%s key=%s", settings.aws_bucket_name, key)
    return {"key": key, "url": url}


def delete_file_from_s3(key: str) -> bool:
    """Delete object from S3 by key. Returns True on success, False on error."""
    if not _s3_configured():
        return False
    try:
        s3 = _get_s3_client()
        s3.delete_object(Bucket=settings.aws_bucket_name, Key=key)
        logger.info("S3 delete success bucket=%s key=%s", settings.aws_bucket_name, key)
        return True
    except ClientError as e:
        logger.warning("S3 delete failed key=%s error=%s", key, e)
        return False


def parse_s3_key_from_url(url: str | None) -> str | None:
    """Extract S3 object key from an S3 URL. Returns None if not one of our bucket URLs."""
    if not url or not url.startswith("http"):
        return None
    # https://bucket.s3.region.amazonaws.com/resume-files/<user>/file.pdf
    parts = url.replace("https://", "").replace("http://", "").split("/", 1)
    if len(parts) != 2:
        return None
    host, path = parts
    path = path.split("?", 1)[0]
    if settings.aws_bucket_name in host and path.startswith(f"{settings.s3_key_prefix}/"):
        return path
    return None


def store_file(content: bytes, file_name: str, user_id: str, mime_type: str) -> str:
    """Store bytes and return the public URL (S3 when configured, else local upload dir)."""
    if _s3_configured():
        return upload_file_to_s3(content, file_name, user_id, mime_type)["url"]

    target_dir = _local_base() / user_id
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / file_name).write_bytes(content)
    logger.info("Stored file locally user_id=%s file_name=%s size_bytes=%d", user_id, file_name, len(content))
    return f"/{settings.upload_dir}/{user_id}/{file_name}"


def delete_file(url: str | None) -> bool:
    """
    Delete a stored file by URL. A URL that points at nothing (already deleted,
    foreign host) counts as deleted. Returns False only when a delete was attempted and failed.
    """
    if not url:
        return True
    key = parse_s3_key_from_url(url)
    if key:
        return delete_file_from_s3(key)

    prefix = f"/{settings.upload_dir}/"
    if not url.startswith(prefix):
        return True
    relative = url[len(prefix):].split("?", 1)[0]
    base = _local_base().resolve()
    path = (base / relative).resolve()
    if base not in path.parents:
        logger.warning("Refusing to delete file outside upload dir url=%s", url)
        return False
    try:
        path.unlink(missing_ok=True)
        logger.info("Deleted local file path=%s", path)
        return True
    except OSError as e:
        logger.warning("Failed to delete local file path=%s error=%s", path, e)
        return False
