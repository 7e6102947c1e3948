# userhub/app/services/staging.py
"""
Writes multipart file parts to the local staging directory.

Staged files are consumed (and deleted) by the upload orchestrator. Routes
also discard them in a `finally`, so a request that fails before the upload
step does not leave files behind.
"""
import logging
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
from fastapi import UploadFile

from userhub.app.core.config import Settings
from userhub.app.core.exceptions import InvalidInput
from userhub.app.services.uploads import discard_local_file

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class StagingArea:

    def __init__(self, settings: Settings):
        self.temp_dir = Path(settings.UPLOAD_TEMP_DIR)
        self.max_size_mb = settings.MAX_UPLOAD_SIZE_MB
        self.max_size_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        self.allowed_extensions = settings.allowed_image_extensions

    async def stage(self, upload_file: Optional[UploadFile]) -> Optional[Path]:
        """
        Save an uploaded file part to disk and return its path.

        Returns None when no file was sent for the field.

        Raises:
            InvalidInput: unsupported extension or file over the size limit
        """
        if upload_file is None or not upload_file.filename:
            return None

        file_ext = Path(upload_file.filename).suffix.lower()
        if self.allowed_extensions and file_ext not in self.allowed_extensions:
            raise InvalidInput(
                f"File type '{file_ext or 'unknown'}' is not allowed",
                details={"allowed": self.allowed_extensions},
            )

        self.temp_dir.mkdir(parents=True, exist_ok=True)
        staged_path = self.temp_dir / f"{uuid.uuid4().hex}{file_ext}"

        total_size = 0
        try:
            async with aiofiles.open(staged_path, "wb") as f:
                while True:
                    chunk = await upload_file.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    total_size += len(chunk)
                    if total_size > self.max_size_bytes:
                        raise InvalidInput(
                            f"File too large. Maximum size: {self.max_size_mb}MB"
                        )
                    await f.write(chunk)
        except BaseException:
            discard_local_file(staged_path)
            raise

        logger.debug("Staged %s as %s (%d bytes)", upload_file.filename, staged_path, total_size)
        return staged_path

    def discard(self, *paths: Optional[Path]) -> None:
        for path in paths:
            discard_local_file(path)
