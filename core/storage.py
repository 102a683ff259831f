"""
Object storage helpers for direct-to-S3 uploads.

Clients request a pre-signed PUT URL, upload the file themselves, and then
store the returned public ``fileUrl`` on the listing or profile.
"""

import logging
import time

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.utils.crypto import get_random_string

from .validators import sanitize_file_name

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the object store cannot issue an upload URL."""


def s3_client():
    return boto3.client('s3', region_name=settings.AWS_REGION)


def build_object_key(folder, user_id, file_name, subfolder=None):
    """
    Build the object key for an upload.

    Format: {folder}/{user_id}[/{subfolder}]/{ms-timestamp}-{random}-{name}
    """
    timestamp = int(time.time() * 1000)
    token = get_random_string(8, allowed_chars='abcdefghijklmnopqrstuvwxyz0123456789')
    parts = [folder, str(user_id)]
    if subfolder:
        parts.append(subfolder)
    parts.append(f'{timestamp}-{token}-{sanitize_file_name(file_name)}')
    return '/'.join(parts)


def public_file_url(key):
    return f'https://{settings.AWS_S3_BUCKET}.s3.{settings.AWS_REGION}.amazonaws.com/{key}'


def presign_put(key, content_type, expires=None):
    """
    Return a pre-signed PUT URL for ``key``.

    Raises:
        StorageError: If the URL could not be generated
    """
    expires = expires or settings.UPLOAD_URL_EXPIRES
    try:
        return s3_client().generate_presigned_url(
            'put_object',
            Params={
                'Bucket': settings.AWS_S3_BUCKET,
                'Key': key,
                'ContentType': content_type,
            },
            ExpiresIn=expires,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"Failed to presign upload. Key: {key}, Error: {str(e)}")
        raise StorageError('Failed to generate upload URL') from e
