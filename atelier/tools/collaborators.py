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

"""Protocols for external collaborators invoked by tool handlers.

Collaborators do the actual artifact work (generate code, images, plans,
screenshots, critiques, CDN uploads). Tool handlers await them and turn
their outputs into project mutations. Any collaborator may be absent; the
affected tools then report a soft failure naming the missing collaborator.

Usage:
    collaborators = Collaborators(image_generator=OpenAIImageGenerator(api_key))

    # Mock in tests
    collaborators = Collaborators(image_generator=AsyncMock(spec=ImageGenerator))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from atelier.project.schema import ComponentSchema, Project, ProjectPlan


@dataclass
class GeneratedComponent:
    name: str
    code: str
    description: Optional[str] = None
    method: str = "llm"


@dataclass
class GeneratedImage:
    base64: str
    format: str = "png"


@dataclass
class UploadedFile:
    public_url: str
    file_id: str


@dataclass
class CapturedScreenshot:
    url: Optional[str] = None
    analysis: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ReflectionOutcome:
    score: float
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    alignment: str = ""


# =============================================================================
# Collaborator Protocols
# =============================================================================


@runtime_checkable
class ComponentGenerator(Protocol):
    """Generates and edits component source code."""

    async def generate(
        self,
        name: str,
        description: str,
        project: Project,
        image_url: Optional[str] = None,
    ) -> GeneratedComponent: ...

    async def edit(
        self, component: ComponentSchema, instructions: str, project: Project
    ) -> GeneratedComponent: ...


@runtime_checkable
class ImageGenerator(Protocol):
    """Generates and edits raster images."""

    async def generate(self, prompt: str, size: str, background: str) -> GeneratedImage: ...

    async def edit(
        self, image_base64: str, prompt: str, size: str, background: str
    ) -> GeneratedImage: ...


@runtime_checkable
class CDNUploader(Protocol):
    """Stores binary files and returns their public URL."""

    async def upload(
        self, data: bytes, file_name: str, description: str = ""
    ) -> UploadedFile: ...


@runtime_checkable
class ScreenshotCapturer(Protocol):
    """Renders a component in a preview surface and captures it."""

    async def capture(self, component: ComponentSchema, project: Project) -> CapturedScreenshot: ...


@runtime_checkable
class Reflector(Protocol):
    """Critiques an artifact in the context of the project and the user's request."""

    async def reflect(
        self,
        artifact_type: str,
        artifact: Any,
        project: Project,
        request: str,
        focus: Optional[str] = None,
    ) -> ReflectionOutcome: ...


@runtime_checkable
class PlanGenerator(Protocol):
    """Produces a phased project plan from a goal."""

    async def generate(self, goal: str, project: Project, title: Optional[str] = None) -> ProjectPlan: ...


@dataclass
class Collaborators:
    """Optional collaborator capabilities injected into the executor."""

    component_generator: Optional[ComponentGenerator] = None
    image_generator: Optional[ImageGenerator] = None
    cdn_uploader: Optional[CDNUploader] = None
    screenshot_capturer: Optional[ScreenshotCapturer] = None
    reflector: Optional[Reflector] = None
    plan_generator: Optional[PlanGenerator] = None
