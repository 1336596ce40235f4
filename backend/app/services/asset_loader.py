"""
Asset Loader - fetches image assets and QR codes for document rendering

Images referenced by relative path are resolved against ASSET_BASE_URL
(falling back to PUBLIC_BASE_URL). Optional assets never fail a render:
``load`` returns empty bytes and the renderer skips the image.
"""

from typing import Optional
from urllib.parse import urlencode

import httpx

from app.core.config import Settings
from app.core.logging_config import logger


class AssetLoader:
    """Outbound HTTP for document assets, one client per process"""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.base_url = (settings.ASSET_BASE_URL or settings.PUBLIC_BASE_URL).rstrip("/")
        self.client = client or httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            follow_redirects=True,
        )

    def resolve(self, path: str) -> str:
        """Turn a configured asset path into an absolute URL"""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def fetch(self, url: str) -> bytes:
        """Fetch bytes, raising httpx errors to the caller"""
        response = await self.client.get(self.resolve(url))
        response.raise_for_status()
        return response.content

    async def load(self, path: str) -> bytes:
        """Fetch an optional asset; empty bytes on any failure"""
        if not path:
            return b""
        try:
            return await self.fetch(path)
        except httpx.HTTPError as e:
            logger.warning(f"Could not load asset {path}: {e}")
            return b""

    def qr_url(self, data: str) -> str:
        size = self.settings.QR_SIZE_PX
        return f"{self.settings.QR_API_URL}?{urlencode({'size': f'{size}x{size}', 'data': data})}"

    async def fetch_qr(self, data: str) -> bytes:
        """QR code PNG for ``data``; empty bytes when the QR service fails"""
        try:
            return await self.fetch(self.qr_url(data))
        except httpx.HTTPError as e:
            logger.warning(f"QR code generation failed: {e}")
            return b""

    async def close(self) -> None:
        await self.client.aclose()
