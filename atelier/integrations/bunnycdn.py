# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""BunnyCDN storage uploader.

Files are stored with a PUT to the storage zone and served from the pull
zone. Each upload gets a unique name so repeated uploads of the same asset
never overwrite each other.

Usage:
    uploader = BunnyCDNUploader.from_settings(settings)
    uploaded = await uploader.upload(png_bytes, "hero.png", "Hero background")
    print(uploaded.public_url)
"""

import logging
import secrets
import time
from pathlib import PurePosixPath
from typing import Optional

import httpx

from atelier.config.settings import Settings
from atelier.core.errors import ConfigurationError, ToolExecutionError
from atelier.tools.collaborators import UploadedFile

logger = logging.getLogger(__name__)

HTTP_TIMEOUT = 30.0


def unique_file_name(file_name: str) -> str:
    """``hero.png`` -> ``hero_<millis>_<random>.png``."""
    path = PurePosixPath(file_name)
    extension = path.suffix.lstrip(".").lower() or "png"
    stem = path.stem if path.suffix else file_name
    return f"{stem}_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}.{extension}"


class BunnyCDNUploader:
    """CDNUploader backed by a BunnyCDN storage zone."""

    def __init__(
        self,
        storage_zone: str,
        api_key: str,
        pull_zone_hostname: str,
        storage_hostname: str = "storage.bunnycdn.com",
        folder: str = "agent_generated",
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize uploader.

        Args:
            storage_zone: Storage zone name
            api_key: Storage zone access key
            pull_zone_hostname: Hostname serving public files
            storage_hostname: Storage API hostname (region specific)
            folder: Folder prefix for uploaded files ("" for the zone root)
            client: Pre-built HTTP client (tests)
        """
        self.storage_zone = storage_zone
        self.api_key = api_key
        self.pull_zone_hostname = pull_zone_hostname
        self.storage_hostname = storage_hostname
        self.folder = folder.strip("/")
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "BunnyCDNUploader":
        if not settings.bunnycdn_configured:
            raise ConfigurationError(
                "BunnyCDN is not configured",
                config_key="bunnycdn_storage_zone",
            )
        return cls(
            storage_zone=settings.bunnycdn_storage_zone,
            api_key=settings.get_api_key("bunnycdn"),
            pull_zone_hostname=settings.bunnycdn_pull_zone_hostname,
            storage_hostname=settings.bunnycdn_storage_hostname,
            folder=settings.bunnycdn_folder,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=HTTP_TIMEOUT)
        return self._client

    def _storage_url(self, path: str) -> str:
        return f"https://{self.storage_hostname}/{self.storage_zone}/{path}"

    async def upload(self, data: bytes, file_name: str, description: str = "") -> UploadedFile:
        """Store a file and return its public URL.

        Raises:
            ToolExecutionError: If the storage API rejects the upload
        """
        name = unique_file_name(file_name)
        path = f"{self.folder}/{name}" if self.folder else name

        logger.info("Uploading %d bytes to BunnyCDN as %s", len(data), path)
        response = await self.client.put(
            self._storage_url(path),
            content=data,
            headers={"AccessKey": self.api_key, "Content-Type": "application/octet-stream"},
        )
        if not response.is_success:
            raise ToolExecutionError(
                f"BunnyCDN upload failed: {response.status_code} {response.text}",
                tool_name="upload_image_to_cdn",
            )

        public_url = f"https://{self.pull_zone_hostname}/{path}"
        logger.debug("Uploaded %s (%s)", public_url, description)
        return UploadedFile(public_url=public_url, file_id=path)

    async def delete(self, file_id: str) -> None:
        """Delete a stored file. Missing files are not an error."""
        response = await self.client.delete(
            self._storage_url(file_id),
            headers={"AccessKey": self.api_key},
        )
        if not response.is_success and response.status_code != 404:
            raise ToolExecutionError(
                f"BunnyCDN delete failed: {response.status_code} {response.text}",
                tool_name="upload_image_to_cdn",
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
