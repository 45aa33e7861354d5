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

"""Tests for the external integrations."""

import base64
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest

from atelier.config.settings import Settings
from atelier.core.errors import ConfigurationError, ToolExecutionError
from atelier.integrations.bunnycdn import BunnyCDNUploader, unique_file_name
from atelier.integrations.factory import build_collaborators
from atelier.integrations.llm_generation import (
    LLMComponentGenerator,
    LLMPlanGenerator,
    extract_code,
    plan_from_json,
)
from atelier.integrations.openai_images import OpenAIImageGenerator
from atelier.integrations.reflection import HeuristicReflector
from atelier.project.schema import ComponentSchema, ImageAsset

from tests.factories import PNG_BASE64, sample_plan


def chat_client(content):
    create = AsyncMock(
        return_value=SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    )
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)), close=AsyncMock())


# =============================================================================
# BunnyCDN
# =============================================================================


class TestBunnyCDNUploader:
    """Tests for BunnyCDNUploader."""

    def test_unique_file_name(self):
        """Names keep their stem and extension and gain a unique suffix."""
        first = unique_file_name("hero.PNG")
        second = unique_file_name("hero.PNG")

        assert first.startswith("hero_") and first.endswith(".png")
        assert first != second
        assert unique_file_name("banner").endswith(".png")

    @pytest.mark.asyncio
    async def test_upload(self):
        """Uploads PUT to the storage zone and return the pull-zone URL."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json={"HttpCode": 201})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        uploader = BunnyCDNUploader("zone", "secret", "cdn.example.com", client=client)

        uploaded = await uploader.upload(b"png-bytes", "hero.png", "Hero image")

        request = seen[0]
        assert request.method == "PUT"
        assert request.headers["AccessKey"] == "secret"
        assert request.url.host == "storage.bunnycdn.com"
        assert request.url.path == f"/zone/{uploaded.file_id}"
        assert request.content == b"png-bytes"
        assert uploaded.file_id.startswith("agent_generated/hero_")
        assert uploaded.public_url == f"https://cdn.example.com/{uploaded.file_id}"
        await uploader.close()

    @pytest.mark.asyncio
    async def test_upload_rejected(self):
        """A non-success status raises ToolExecutionError."""
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(401, text="Unauthorized")))
        uploader = BunnyCDNUploader("zone", "bad", "cdn.example.com", folder="", client=client)

        with pytest.raises(ToolExecutionError, match="BunnyCDN upload failed: 401 Unauthorized"):
            await uploader.upload(b"x", "a.png")

    @pytest.mark.asyncio
    async def test_delete_missing_is_ok(self):
        """Deleting a missing file is not an error."""
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(404)))
        uploader = BunnyCDNUploader("zone", "secret", "cdn.example.com", client=client)

        await uploader.delete("agent_generated/gone.png")

    def test_from_settings_requires_configuration(self):
        """Incomplete settings are a configuration error."""
        with pytest.raises(ConfigurationError):
            BunnyCDNUploader.from_settings(Settings(bunnycdn_storage_zone="zone"))

    def test_from_settings(self):
        """Configured settings produce an uploader."""
        settings = Settings(
            bunnycdn_storage_zone="zone",
            bunnycdn_api_key="secret",
            bunnycdn_pull_zone_hostname="cdn.example.com",
            bunnycdn_folder="/assets/",
        )

        uploader = BunnyCDNUploader.from_settings(settings)

        assert uploader.api_key == "secret"
        assert uploader.folder == "assets"


# =============================================================================
# LLM generation
# =============================================================================


class TestExtractCode:
    """Tests for extract_code."""

    def test_last_fenced_block(self):
        text = "Here you go:\n```tsx\nconst A = 1\n```\nand the final:\n```tsx\nexport const B = 2\n```"

        assert extract_code(text) == "export const B = 2"

    def test_leading_prose_is_dropped(self):
        text = "Sure! This card is responsive.\nimport React from 'react'\nexport default function Card() {}"

        assert extract_code(text) == "import React from 'react'\nexport default function Card() {}"

    def test_thinking_is_removed(self):
        text = "<Thinking>plan the layout</Thinking>\nexport const C = () => null"

        assert extract_code(text) == "export const C = () => null"


class TestPlanFromJson:
    """Tests for plan_from_json."""

    def test_normalizes_tasks(self):
        """Invalid enums fall back to defaults and camelCase keys are read."""
        plan = plan_from_json(
            {
                "title": "Shop",
                "targetUsers": ["buyers"],
                "phases": [
                    {
                        "tasks": [
                            {"title": "Cart", "type": "wizardry", "priority": "urgent", "estimatedHours": 5},
                            "not a task",
                        ]
                    }
                ],
            },
            project_id="proj-1",
            generated_by="gpt-4o",
        )

        task = plan.phases[0].tasks[0]
        assert plan.project_id == "proj-1"
        assert plan.generated_by == "gpt-4o"
        assert plan.target_users == ["buyers"]
        assert plan.phases[0].name == "Phase 1"
        assert plan.phases[0].order == 1
        assert len(plan.phases[0].tasks) == 1
        assert (task.type, task.priority, task.estimated_hours) == ("feature", "medium", 5)

    def test_empty_object(self):
        """An empty object still yields a titled plan."""
        plan = plan_from_json({}, project_id="p", generated_by="m")

        assert plan.title == "Project Plan"
        assert plan.phases == []


class TestLLMGenerators:
    """Tests for the chat-model generators."""

    @pytest.mark.asyncio
    async def test_component_generation(self, project):
        client = chat_client("```tsx\nexport const Hero = () => <img alt='sky' />\n```")
        generator = LLMComponentGenerator(client=client)

        generated = await generator.generate("Hero", "A hero section", project, image_url="https://cdn/sky.png")

        assert generated.code == "export const Hero = () => <img alt='sky' />"
        assert generated.method == "llm"
        prompt = client.chat.completions.create.await_args.kwargs["messages"][1]["content"]
        assert "https://cdn/sky.png" in prompt

    @pytest.mark.asyncio
    async def test_component_generation_empty(self, project):
        generator = LLMComponentGenerator(client=chat_client(""))

        with pytest.raises(ToolExecutionError, match="returned no code"):
            await generator.generate("Hero", "A hero section", project)

    @pytest.mark.asyncio
    async def test_component_edit_keeps_name(self, project):
        generator = LLMComponentGenerator(client=chat_client("export const Card = () => null"))
        component = ComponentSchema(name="Card", description="Card", generated_code="old")

        generated = await generator.edit(component, "simplify", project)

        assert generated.name == "Card"
        assert generated.code == "export const Card = () => null"

    @pytest.mark.asyncio
    async def test_plan_generation(self, project):
        client = chat_client(json.dumps({"title": "Ignored", "phases": [{"name": "One", "tasks": []}]}))
        generator = LLMPlanGenerator(client=client)

        plan = await generator.generate("A blog", project, title="Blog Plan")

        assert plan.title == "Blog Plan"
        assert plan.project_id == project.id
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["not json", "[1, 2]"])
    async def test_plan_generation_bad_output(self, project, content):
        generator = LLMPlanGenerator(client=chat_client(content))

        with pytest.raises(ToolExecutionError):
            await generator.generate("A blog", project)


class TestOpenAIImageGenerator:
    """Tests for OpenAIImageGenerator."""

    @pytest.mark.asyncio
    async def test_generate(self):
        images = SimpleNamespace(generate=AsyncMock(return_value=SimpleNamespace(data=[SimpleNamespace(b64_json="abc")])))
        generator = OpenAIImageGenerator(client=SimpleNamespace(images=images))

        image = await generator.generate("a fox", "1024x1024", "transparent")

        assert image.base64 == "abc"
        kwargs = images.generate.await_args.kwargs
        assert kwargs["model"] == "gpt-image-1"
        assert kwargs["quality"] == "high"

    @pytest.mark.asyncio
    async def test_edit_strips_data_uri(self):
        images = SimpleNamespace(edit=AsyncMock(return_value=SimpleNamespace(data=[SimpleNamespace(b64_json="new")])))
        generator = OpenAIImageGenerator(client=SimpleNamespace(images=images))

        await generator.edit(f"data:image/png;base64,{PNG_BASE64}", "add a hat", "auto", "opaque")

        name, data, mime = images.edit.await_args.kwargs["image"]
        assert data == base64.b64decode(PNG_BASE64)
        assert mime == "image/png"

    @pytest.mark.asyncio
    async def test_missing_image_data(self):
        images = SimpleNamespace(generate=AsyncMock(return_value=SimpleNamespace(data=[])))
        generator = OpenAIImageGenerator(client=SimpleNamespace(images=images))

        with pytest.raises(ToolExecutionError, match="No image data received from OpenAI"):
            await generator.generate("a fox", "auto", "auto")


# =============================================================================
# Reflection
# =============================================================================


class TestHeuristicReflector:
    """Tests for HeuristicReflector scoring."""

    @pytest.mark.asyncio
    async def test_strong_component(self, project):
        component = ComponentSchema(
            name="PricingCard",
            description="A pricing card with three tiers",
            generated_code="<div className='p-4' aria-label='pricing'></div>",
        )

        outcome = await HeuristicReflector().reflect("component", component, project, "create a pricing card")

        assert outcome.score == 9.5
        assert outcome.alignment.startswith("Matches the request well (100%")
        assert outcome.improvements == []

    @pytest.mark.asyncio
    async def test_unrelated_image(self, project):
        asset = ImageAsset(name="Sunset", prompt="sunset")

        outcome = await HeuristicReflector().reflect("image", asset, project, "ocean waves")

        assert outcome.score == 4.0
        assert "Use a more descriptive prompt" in outcome.improvements
        assert "Align the artifact more closely with the original request" in outcome.improvements

    @pytest.mark.asyncio
    async def test_plan_with_focus(self, project):
        reflector = HeuristicReflector()

        covered = await reflector.reflect("plan", sample_plan(), project, "ship the landing page", focus="accessibility")
        missed = await reflector.reflect("plan", sample_plan(), project, "ship the landing page", focus="performance")

        assert covered.score == 9.0
        assert not any(i.startswith("Address the requested focus") for i in covered.improvements)
        assert "Address the requested focus: performance" in missed.improvements


# =============================================================================
# Wiring
# =============================================================================


class TestBuildCollaborators:
    """Tests for build_collaborators."""

    def test_without_credentials(self):
        """Only the heuristic reflector is available without credentials."""
        collaborators = build_collaborators(Settings())

        assert isinstance(collaborators.reflector, HeuristicReflector)
        assert collaborators.image_generator is None
        assert collaborators.component_generator is None
        assert collaborators.cdn_uploader is None

    def test_with_credentials(self):
        """Credentials enable the matching integrations."""
        collaborators = build_collaborators(
            Settings(
                openai_api_key="sk-test",
                bunnycdn_storage_zone="zone",
                bunnycdn_api_key="secret",
                bunnycdn_pull_zone_hostname="cdn.example.com",
            )
        )

        assert isinstance(collaborators.image_generator, OpenAIImageGenerator)
        assert isinstance(collaborators.component_generator, LLMComponentGenerator)
        assert isinstance(collaborators.plan_generator, LLMPlanGenerator)
        assert isinstance(collaborators.cdn_uploader, BunnyCDNUploader)
        assert collaborators.screenshot_capturer is None
