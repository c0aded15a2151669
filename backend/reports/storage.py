"""
Photo storage collaborator.

Decodes ``data:image/...;base64,`` URIs and hands the bytes to Django's
configured default storage.  The reports service only ever records the
returned references.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
import uuid

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

from core.domain.exceptions import DomainError

from .models import ReportPhoto

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"^data:image/(jpeg|png|webp);base64,(.+)$", re.DOTALL)

_EXTENSIONS = {"jpeg": "jpg", "png": "png", "webp": "webp"}


def decode_data_uri(data_uri: str) -> tuple[bytes, str]:
    """
    Split a photo data URI into its raw bytes and file extension.

    Raises:
        DomainError: If the URI is not a base64 JPEG/PNG/WebP image.
    """
    match = DATA_URI_PATTERN.match(data_uri or "")
    if match is None:
        raise DomainError("Each photo must be a base64 data URI of a JPEG, PNG or WebP image")
    image_type, payload = match.groups()
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise DomainError("Photo data is not valid base64")
    return content, _EXTENSIONS[image_type]


class PhotoStorage:
    """Stateless wrapper around ``default_storage`` for report photos."""

    @staticmethod
    def upload_photo(content: bytes, extension: str) -> str:
        """Persist ``content`` and return its storage reference."""
        name = f"{settings.REPORTS_PHOTO_DIR}/{uuid.uuid4().hex}.{extension}"
        reference = default_storage.save(name, ContentFile(content))
        logger.debug("Stored photo %s (%d bytes)", reference, len(content))
        return reference

    @staticmethod
    def delete_photos(report_id: int) -> int:
        """Remove every stored photo of a report and its reference rows."""
        photos = list(ReportPhoto.objects.filter(report_id=report_id))
        for photo in photos:
            default_storage.delete(photo.reference)
        ReportPhoto.objects.filter(report_id=report_id).delete()
        return len(photos)
