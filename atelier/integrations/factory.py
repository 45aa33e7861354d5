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

"""Collaborator wiring from settings.

Each integration is enabled only when its credentials resolve; the rest
stay None so the matching tools report a soft failure.
"""

import logging
from typing import Optional

from atelier.config.settings import Settings, load_settings
from atelier.integrations.bunnycdn import BunnyCDNUploader
from atelier.integrations.llm_generation import LLMComponentGenerator, LLMPlanGenerator
from atelier.integrations.openai_images import OpenAIImageGenerator
from atelier.integrations.reflection import HeuristicReflector
from atelier.tools.collaborators import Collaborators

logger = logging.getLogger(__name__)


def build_collaborators(settings: Optional[Settings] = None) -> Collaborators:
    """Create the collaborators available for the configured credentials."""
    settings = settings or load_settings()
    collaborators = Collaborators(reflector=HeuristicReflector())

    openai_key = settings.get_api_key("openai")
    if openai_key:
        collaborators.image_generator = OpenAIImageGenerator(
            api_key=openai_key,
            model=settings.image_model,
            timeout=settings.request_timeout,
        )
        collaborators.component_generator = LLMComponentGenerator(
            api_key=openai_key,
            model=settings.generation_model,
            timeout=settings.request_timeout,
        )
        collaborators.plan_generator = LLMPlanGenerator(
            api_key=openai_key,
            model=settings.generation_model,
            timeout=settings.request_timeout,
        )
    else:
        logger.debug("OpenAI key missing: image, component and plan generation disabled")

    if settings.bunnycdn_configured:
        collaborators.cdn_uploader = BunnyCDNUploader.from_settings(settings)
    else:
        logger.debug("BunnyCDN not configured: CDN uploads disabled")

    return collaborators
