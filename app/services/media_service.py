"""
Local media storage for quiz thumbnails, question images and fun fact images
"""
import logging
import os
import uuid

import aiofiles
from fastapi import UploadFile

from app.config import settings
from app.exceptions import InvalidStateError

logger = logging.getLogger(__name__)


class MediaService:
    """Writes uploaded images under UPLOAD_DIR and returns their public URL"""

    def _validate_extension(self, filename: str) -> str:
        extension = os.path.splitext(filename or "")[1].lower().lstrip(".")
        if extension not in settings.ALLOWED_IMAGE_TYPES:
            raise InvalidStateError(
                f"Only {', '.join(settings.ALLOWED_IMAGE_TYPES)} files are allowed"
            )
        return extension

    async def save_image(self, file: UploadFile, folder: str) -> str:
        """
        Store an uploaded image

        Args:
            file: Uploaded file
            folder: Sub-directory, e.g. "quizzes" or "questions"

        Returns:
            Public URL of the stored file
        """
        extension = self._validate_extension(file.filename)

        content = await file.read()
        max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        if len(content) > max_bytes:
            raise InvalidStateError(f"File exceeds {settings.MAX_UPLOAD_SIZE_MB} MB")
        if not content:
            raise InvalidStateError("Uploaded file is empty")

        directory = os.path.join(settings.UPLOAD_DIR, folder)
        os.makedirs(directory, exist_ok=True)

        filename = f"{uuid.uuid4().hex}.{extension}"
        path = os.path.join(directory, filename)

        async with aiofiles.open(path, "wb") as f:
            await f.write(content)

        logger.info(f"Stored upload {file.filename} as {path} ({len(content)} bytes)")
        return f"{settings.MEDIA_BASE_URL.rstrip('/')}/{folder}/{filename}"


# Global instance
media_service = MediaService()
