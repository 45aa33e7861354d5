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

"""Image generation and editing with the OpenAI Images API."""

import base64
import logging
import re
from typing import Any, Optional

from openai import AsyncOpenAI

from atelier.core.errors import ToolExecutionError
from atelier.tools.collaborators import GeneratedImage

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:image/[a-zA-Z]*;base64,")


class OpenAIImageGenerator:
    """ImageGenerator backed by ``gpt-image-1``."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-image-1",
        quality: str = "high",
        timeout: int = 120,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.quality = quality
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout)

    @staticmethod
    def _first_image(response: Any) -> GeneratedImage:
        data = getattr(response, "data", None) or []
        if not data or not data[0].b64_json:
            raise ToolExecutionError("No image data received from OpenAI")
        return GeneratedImage(base64=data[0].b64_json, format="png")

    async def generate(self, prompt: str, size: str, background: str) -> GeneratedImage:
        logger.info("Generating image (%s, %s background)", size, background)
        response = await self.client.images.generate(
            model=self.model,
            prompt=prompt,
            size=size,
            background=background,
            quality=self.quality,
            n=1,
        )
        return self._first_image(response)

    async def edit(self, image_base64: str, prompt: str, size: str, background: str) -> GeneratedImage:
        """Edit an existing image. ``image_base64`` may carry a data-URI prefix."""
        image_bytes = base64.b64decode(_DATA_URI.sub("", image_base64))
        logger.info("Editing image (%d bytes, %s)", len(image_bytes), size)
        response = await self.client.images.edit(
            model=self.model,
            image=("image.png", image_bytes, "image/png"),
            prompt=prompt,
            size=size,
            background=background,
            quality=self.quality,
            n=1,
        )
        return self._first_image(response)

    async def close(self) -> None:
        await self.client.close()
