"""
Photo and video uploads attached to modules and assignments

Files are saved through the default storage as
uploads/{field}-{epoch ms}-{random}{ext}; the returned metadata is kept on
the owning row.
"""
import logging
import os
import secrets
import time

from django.core.files.storage import default_storage
from rest_framework.exceptions import ValidationError

logger = logging.getLogger(__name__)

UPLOAD_DIR = 'uploads'

# field -> (MIME prefix, max files, rejection message)
MEDIA_FIELDS = {
    'photos': ('image/', 10, 'Only image files are allowed for photos'),
    'videos': ('video/', 5, 'Only video files are allowed for videos'),
}


def validate_uploads(files, max_size):
    """Reject the whole request before anything is written."""
    for field in files.keys():
        if field not in MEDIA_FIELDS:
            raise ValidationError({field: 'Unexpected field'})

    for field, (prefix, max_count, message) in MEDIA_FIELDS.items():
        uploads = files.getlist(field)
        if len(uploads) > max_count:
            raise ValidationError({field: 'Too many files uploaded.'})
        for upload in uploads:
            if not (upload.content_type or '').startswith(prefix):
                raise ValidationError({field: message})
            if upload.size > max_size:
                raise ValidationError({field: f'File too large. Maximum size is {max_size // (1024 * 1024)}MB.'})


def save_upload(field, upload):
    ext = os.path.splitext(upload.name)[1].lower()
    unique_filename = f'{field}-{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{ext}'
    saved_path = default_storage.save(f'{UPLOAD_DIR}/{unique_filename}', upload)

    logger.info(f'Stored {field} upload {upload.name} as {saved_path} ({upload.size} bytes)')
    return {
        'filename': os.path.basename(saved_path),
        'originalName': upload.name,
        'path': saved_path,
        'url': default_storage.url(saved_path),
        'mimetype': upload.content_type,
        'size': upload.size,
    }


def store_uploaded_media(files, max_size):
    """
    Validate and save request.FILES.

    Returns:
        dict: ``{'photos': [...], 'videos': [...]}`` metadata lists; empty when
        the request carried no files.
    """
    if not files:
        return {}
    validate_uploads(files, max_size)
    return {
        field: [save_upload(field, upload) for upload in files.getlist(field)]
        for field in MEDIA_FIELDS
    }
