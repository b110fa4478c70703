# src/common/storage/storage_service.py
"""Object storage for uploaded medical reports, backed by the Cloudinary REST API."""

import hashlib
import time
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urlencode

import httpx

from src.common.config import settings
from src.common.exceptions import UpstreamError
from src.common.utils.logger import get_logger

logger = get_logger(__name__)

CLOUDINARY_API_URL = "https://api.cloudinary.com/v1_1"

# PDFs and images are both delivered as Cloudinary "image" resources
REPORT_RESOURCE_TYPE = "image"


@dataclass
class StoredFile:
    public_id: str
    secure_url: str
    format: str
    bytes: int


def sign_params(params: Dict[str, object], api_secret: str) -> str:
    """Cloudinary request signature: SHA-1 over the sorted, non-empty params plus the secret."""
    to_sign = "&".join(
        f"{key}={','.join(map(str, value)) if isinstance(value, (list, tuple)) else value}"
        for key, value in sorted(params.items())
        if value not in (None, "", [])
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class StorageService:
    """Upload, sign and delete files in a Cloudinary account."""

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.cloud_name = cloud_name if cloud_name is not None else settings.CLOUDINARY_CLOUD_NAME
        self.api_key = api_key if api_key is not None else settings.CLOUDINARY_API_KEY
        self.api_secret = api_secret if api_secret is not None else settings.CLOUDINARY_API_SECRET
        self.client = client or httpx.AsyncClient(
            timeout=timeout or settings.STORAGE_TIMEOUT_SECONDS
        )

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    async def close(self) -> None:
        await self.client.aclose()

    def _signed(self, params: Dict[str, object]) -> Dict[str, object]:
        params = {**params, "timestamp": int(time.time())}
        signature = sign_params(params, self.api_secret)
        return {**params, "api_key": self.api_key, "signature": signature}

    def _url(self, resource_type: str, action: str) -> str:
        return f"{CLOUDINARY_API_URL}/{self.cloud_name}/{resource_type}/{action}"

    async def upload(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        folder: str,
        public_id: str,
        tags: Optional[List[str]] = None,
    ) -> StoredFile:
        """Upload a file and return where it was stored."""
        if not self.configured:
            raise UpstreamError("Cloudinary credentials are not configured")

        form = self._signed({
            "folder": folder,
            "public_id": public_id,
            "tags": ",".join(tags or []),
        })
        try:
            response = await self.client.post(
                self._url("auto", "upload"),
                data={key: str(value) for key, value in form.items() if value not in (None, "")},
                files={"file": (filename, data, content_type)},
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise UpstreamError("Storage upload timed out") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"Storage upload failed: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Storage upload error: {e}") from e

        result = response.json()
        return StoredFile(
            public_id=result["public_id"],
            secure_url=result["secure_url"],
            format=result.get("format") or "unknown",
            bytes=int(result.get("bytes") or len(data)),
        )

    def signed_download_url(
        self,
        public_id: str,
        file_format: Optional[str] = None,
        expires_in: int = 3600,
        resource_type: str = REPORT_RESOURCE_TYPE,
    ) -> str:
        """Build a private download URL that stops working after ``expires_in`` seconds."""
        if not self.configured:
            raise UpstreamError("Cloudinary credentials are not configured")

        params = self._signed({
            "public_id": public_id,
            "format": file_format,
            "expires_at": int(time.time()) + expires_in,
        })
        query = urlencode({key: value for key, value in params.items() if value not in (None, "")})
        return f"{self._url(resource_type, 'download')}?{query}"

    async def delete(self, public_id: str, resource_type: str = REPORT_RESOURCE_TYPE) -> bool:
        """Delete a stored file. Returns False (and logs) when the provider refuses."""
        if not self.configured:
            return False
        try:
            response = await self.client.post(
                self._url(resource_type, "destroy"),
                data={key: str(value) for key, value in self._signed({"public_id": public_id}).items()},
            )
            response.raise_for_status()
        except httpx.HTTPError:
            logger.exception("storage_delete_failed", public_id=public_id)
            return False
        return response.json().get("result") == "ok"
