import logging
from io import BytesIO

from minio import Minio
from minio.deleteobjects import DeleteObject
from minio.error import S3Error

from core.config import settings
from core.id_generator import random_suffix
from utils.image_tools import inspect_image_bytes

logger = logging.getLogger(__name__)

# ==== MinIO client setup ====
_endpoint = settings.AWS_S3_ENDPOINT_URL.replace("https://", "").replace("http://", "")
_s3 = Minio(
    _endpoint,
    access_key=settings.AWS_ACCESS_KEY_ID,
    secret_key=settings.AWS_SECRET_ACCESS_KEY,
    region=settings.AWS_S3_REGION,
    secure=settings.AWS_S3_SECURE,
)


def public_url(s3_key: str) -> str:
    return f"{settings.s3_base_url}/{s3_key}"


def upload_profile_photo(file_like, owner_id: str) -> str:
    """
    Validates a profile photo and stores it under the owner's prefix.
    Returns the public URL.
    Raises ValueError if the file is too large or not a JPG/PNG/GIF.
    Raises Exception if the object store fails.
    """
    data = file_like.read()
    if len(data) > settings.MAX_PHOTO_BYTES:
        raise ValueError("Profile photo must be less than 5MB")

    ext, content_type = inspect_image_bytes(data)
    s3_key = f"{owner_id}/{owner_id}-{random_suffix(11)}.{ext}"

    try:
        _s3.put_object(
            settings.AWS_S3_BUCKET_NAME,
            s3_key,
            BytesIO(data),
            length=len(data),
            content_type=content_type,
        )
    except S3Error as e:
        raise Exception(f"Failed to upload to S3: {e}")

    return public_url(s3_key)


def delete_owner_objects(owner_id: str) -> int:
    """
    Removes every object under "<owner_id>/". Returns how many were removed.
    """
    try:
        objects = _s3.list_objects(
            settings.AWS_S3_BUCKET_NAME,
            prefix=f"{owner_id}/",
            recursive=True,
        )
        to_delete = [DeleteObject(obj.object_name) for obj in objects]
        if not to_delete:
            return 0
        errors = list(_s3.remove_objects(settings.AWS_S3_BUCKET_NAME, to_delete))
    except S3Error as e:
        raise Exception(f"Failed to delete from S3: {e}")

    for err in errors:
        logger.error("Could not delete %s: %s", err.name, err.message)
    return len(to_delete) - len(errors)
