# userhub/app/services/uploads.py
"""
Moves staged files to the media host and undoes uploads on failure.

Contract:
- upload() always removes the local file, whether the transfer worked or not.
- remove() never raises. It runs as compensation for an operation that has
  already failed, and its own failure must not replace that error.
"""
import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from userhub.app.core.exceptions import MediaHostError, UploadFailed
from userhub.app.services.media import MediaHostClient, RemoteAsset

logger = logging.getLogger(__name__)

NOT_FOUND_RESULT = "not found"


class UploadOrchestrator:

    def __init__(self, media_host: MediaHostClient):
        self.media_host = media_host

    async def upload(self, local_path: Optional[Union[str, Path]]) -> RemoteAsset:
        """
        Transfer a staged file to the media host.

        Raises:
            UploadFailed: empty path, unreadable file, or host failure. The
                host's raw error is logged, not returned to the caller.
        """
        if not local_path:
            raise UploadFailed("No file to upload")

        path = Path(local_path)
        try:
            return await self.media_host.upload(path)
        except MediaHostError as e:
            logger.error("Upload of %s failed: %s", path.name, e)
            raise UploadFailed("Failed to upload file to media host") from e
        finally:
            discard_local_file(path)

    async def remove(self, public_id: Optional[str]) -> None:
        """Best-effort delete of a remote asset. Deleting a missing asset is fine."""
        if not public_id:
            return
        try:
            result = await self.media_host.destroy(public_id)
        except MediaHostError as e:
            logger.warning(
                "Could not delete remote asset %s",
                public_id,
                extra={
                    "event": "media_rollback_failed",
                    "public_id": public_id,
                    "error": str(e),
                },
            )
            return

        if result == NOT_FOUND_RESULT:
            logger.info("Remote asset %s was already gone", public_id)
        else:
            logger.info("Deleted remote asset %s", public_id)

    async def remove_all(self, assets: Iterable[Optional[RemoteAsset]]) -> None:
        """Compensation: delete every asset uploaded by a failed operation."""
        for asset in assets:
            if asset is not None:
                await self.remove(asset.public_id)


def discard_local_file(path: Optional[Union[str, Path]]) -> None:
    """Delete a local file if it exists; errors are logged, not raised."""
    if not path:
        return
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not delete staged file %s: %s", path, e)
