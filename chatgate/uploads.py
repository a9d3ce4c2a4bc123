# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Image upload passthrough: returns the uploaded image as a base64 data URL.
"""

from __future__ import annotations

import base64
import os
import re

from fastapi import UploadFile

from chatgate.core.exceptions import UploadError
from chatgate.models import UploadResponse

ALLOWED_IMAGE_TYPES = re.compile(r"jpeg|jpg|png|gif|webp")


def is_allowed_image(filename: str, content_type: str) -> bool:
    """Both the file extension and the MIME type must name an image type."""
    extension = os.path.splitext(filename)[1].lower()
    return bool(ALLOWED_IMAGE_TYPES.search(extension)) and bool(
        ALLOWED_IMAGE_TYPES.search(content_type.lower())
    )


async def encode_upload(upload: UploadFile | None, max_upload_mb: int) -> UploadResponse:
    if upload is None or not upload.filename:
        raise UploadError("No image file provided")

    content_type = upload.content_type or ""
    if not is_allowed_image(upload.filename, content_type):
        raise UploadError("Only image files are allowed")

    limit = max_upload_mb * 1024 * 1024
    # One byte past the limit is enough to detect an oversized file.
    data = await upload.read(limit + 1)
    if len(data) > limit:
        raise UploadError(f"File size too large. Maximum is {max_upload_mb}MB", status_code=413)

    encoded = base64.b64encode(data).decode("ascii")
    return UploadResponse(
        image_url=f"data:{content_type};base64,{encoded}",
        file_name=upload.filename,
        size=len(data),
        mime_type=content_type,
    )
