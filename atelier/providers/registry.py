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

"""Provider construction from settings.

A provider is built only when its credential resolves. A missing credential
removes that provider alone from the result; it is logged at debug level
and never raised.
"""

import dataclasses
import logging
from typing import Callable, Dict, Optional

from atelier.config.settings import Settings
from atelier.providers.anthropic_provider import (
    CLAUDE_OPUS_INFO,
    CLAUDE_SONNET_INFO,
    AnthropicProvider,
)
from atelier.providers.base import BaseProvider, ProviderInfo
from atelier.providers.openai_provider import OPENAI_INFO, OpenAIProvider
from atelier.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

# Registration order is the order reported by get_available_providers()
PROVIDER_INFOS: Dict[str, ProviderInfo] = {
    OPENAI_INFO.id: OPENAI_INFO,
    CLAUDE_SONNET_INFO.id: CLAUDE_SONNET_INFO,
    CLAUDE_OPUS_INFO.id: CLAUDE_OPUS_INFO,
}

DEFAULT_PREFERENCE = ("claude-sonnet-4", "claude-opus-4", "openai")


def _model_for(provider_id: str, settings: Settings) -> str:
    return {
        "openai": settings.openai_model,
        "claude-sonnet-4": settings.claude_sonnet_model,
        "claude-opus-4": settings.claude_opus_model,
    }[provider_id]


def _factory(provider_id: str) -> Callable[..., BaseProvider]:
    return OpenAIProvider if provider_id == "openai" else AnthropicProvider


def create_provider(
    provider_id: str,
    settings: Settings,
    registry: Optional[ToolRegistry] = None,
) -> Optional[BaseProvider]:
    """Build one provider, or None if it is unknown or has no credential."""
    info = PROVIDER_INFOS.get(provider_id)
    if info is None:
        logger.debug("Unknown provider id: %s", provider_id)
        return None

    api_key = settings.get_api_key(provider_id)
    if not api_key:
        logger.debug("Provider %s unavailable: no API key configured", provider_id)
        return None

    info = dataclasses.replace(info, model=_model_for(provider_id, settings))
    return _factory(provider_id)(
        api_key=api_key,
        info=info,
        registry=registry,
        timeout=settings.request_timeout,
        max_retries=settings.provider_max_retries,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )


def create_providers(
    settings: Settings,
    registry: Optional[ToolRegistry] = None,
) -> Dict[str, BaseProvider]:
    """Build every provider whose credential is available."""
    providers: Dict[str, BaseProvider] = {}
    for provider_id in PROVIDER_INFOS:
        try:
            provider = create_provider(provider_id, settings, registry=registry)
        except Exception as e:
            # A broken SDK install or bad client option disables only this provider
            logger.warning("Provider %s could not be initialized: %s", provider_id, e)
            continue
        if provider is not None:
            providers[provider_id] = provider
    logger.info("Available providers: %s", ", ".join(providers) or "none")
    return providers
