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

"""Configuration management for Atelier."""

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from atelier.config.api_keys import APIKeyManager, credential_for

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("ATELIER_SKIP_ENV_FILE") else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    # Provider selection
    default_provider: str = "claude-sonnet-4"

    # Orchestration limits
    action_budget: int = Field(7, ge=0, description="Tool executions allowed per request")
    max_continuations: int = Field(10, ge=0, description="Hard cap on chained continuations")

    # Generation parameters
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(4096, gt=0)
    request_timeout: int = Field(120, gt=0)
    provider_max_retries: int = Field(2, ge=0)

    # API Keys
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    api_keys_file: Optional[str] = None

    # Models
    openai_model: str = "gpt-4o"
    claude_sonnet_model: str = "claude-sonnet-4-20250514"
    claude_opus_model: str = "claude-opus-4-20250514"
    image_model: str = "gpt-image-1"
    generation_model: str = "gpt-4o"

    # BunnyCDN storage
    bunnycdn_storage_zone: Optional[str] = None
    bunnycdn_api_key: Optional[str] = None
    bunnycdn_pull_zone_hostname: Optional[str] = None
    bunnycdn_storage_hostname: str = "storage.bunnycdn.com"
    bunnycdn_folder: str = "agent_generated"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    def get_api_key(self, provider: str) -> Optional[str]:
        """Resolve the API key for a provider id.

        Explicit settings fields win, then the environment, then the keys
        file. Returns None when the provider has no credential configured.
        """
        credential = credential_for(provider)
        explicit = getattr(self, f"{credential}_api_key", None)
        if explicit:
            return explicit

        keys_file = Path(self.api_keys_file).expanduser() if self.api_keys_file else None
        return APIKeyManager(keys_file=keys_file).get_key(credential)

    @property
    def bunnycdn_configured(self) -> bool:
        """Whether every BunnyCDN field needed for uploads is set."""
        return bool(
            self.bunnycdn_storage_zone
            and self.get_api_key("bunnycdn")
            and self.bunnycdn_pull_zone_hostname
        )


_settings: Optional[Settings] = None


def load_settings() -> Settings:
    """Load application settings.

    Returns:
        Settings instance (cached for the process)
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached settings instance."""
    global _settings
    _settings = None
