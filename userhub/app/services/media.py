# userhub/app/services/media.py
"""
Client for the media host (Cloudinary upload API).

Only the two calls the account backend needs are implemented:
- upload:  POST {base}/v1_1/{cloud}/auto/upload
- destroy: POST {base}/v1_1/{cloud}/image/destroy

Requests are signed: SHA-1 over the sorted `key=value&...` string of the
signed parameters followed by the API secret.
"""
import hashlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import aiofiles
import httpx

from userhub.app.core.config import Settings
from userhub.app.core.exceptions import MediaHostError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteAsset:
    url: str
    public_id: str
    resource_type: str = "image"


def sign_params(params: Dict[str, str], api_secret: str) -> str:
    to_sign = "&".join(
        f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, "")
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class MediaHostClient:
    """Async HTTP client for the media host."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cloud_name = settings.CLOUDINARY_CLOUD_NAME
        self.api_key = settings.CLOUDINARY_API_KEY
        self.api_secret = settings.CLOUDINARY_API_SECRET
        self.folder = settings.MEDIA_UPLOAD_FOLDER
        self.client = httpx.AsyncClient(
            base_url=settings.MEDIA_HOST_URL.rstrip("/"),
            timeout=settings.MEDIA_HOST_TIMEOUT,
            transport=transport,
        )

    def _signed(self, params: Dict[str, str]) -> Dict[str, str]:
        params = {key: value for key, value in params.items() if value}
        params["timestamp"] = str(int(time.time()))
        params["signature"] = sign_params(params, self.api_secret)
        params["api_key"] = self.api_key
        return params

    async def _post(self, path: str, data: Dict[str, str], files=None) -> dict:
        url = f"/v1_1/{self.cloud_name}/{path}"
        try:
            response = await self.client.post(url, data=data, files=files)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise MediaHostError(f"Timeout calling media host {url}") from e
        except httpx.HTTPStatusError as e:
            raise MediaHostError(
                f"Media host returned {e.response.status_code} for {url}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise MediaHostError(f"Media host request to {url} failed: {e}") from e

    async def upload(self, local_path: Path) -> RemoteAsset:
        """
        Upload a local file and return where it ended up.

        Raises:
            MediaHostError: the file could not be read, the request failed,
                or the response did not describe an uploaded asset
        """
        path = Path(local_path)
        try:
            async with aiofiles.open(path, "rb") as f:
                content = await f.read()
        except OSError as e:
            raise MediaHostError(f"Cannot read {path}: {e}") from e

        payload = await self._post(
            "auto/upload",
            data=self._signed({"folder": self.folder}),
            files={"file": (path.name, content)},
        )
        url = payload.get("secure_url") or payload.get("url")
        public_id = payload.get("public_id")
        if not url or not public_id:
            raise MediaHostError("Media host response is missing url or public_id")

        logger.info("Uploaded %s to media host as %s", path.name, public_id)
        return RemoteAsset(
            url=url,
            public_id=public_id,
            resource_type=payload.get("resource_type", "image"),
        )

    async def destroy(self, public_id: str, resource_type: str = "image") -> str:
        """Delete an asset; returns the host's result ("ok" or "not found")."""
        payload = await self._post(
            f"{resource_type}/destroy",
            data=self._signed({"public_id": public_id}),
        )
        return payload.get("result", "")

    async def aclose(self) -> None:
        await self.client.aclose()
