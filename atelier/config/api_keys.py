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

"""API key resolution for Atelier.

Keys are looked up per provider so that one provider's credential never
affects another's availability:
- Environment variables take precedence (for automation/CI)
- ~/.atelier/api_keys.yaml is the fallback (outside any code repository)
- A missing key is reported as None, never as an exception

Keys are never logged.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# Default location for API keys file
DEFAULT_KEYS_FILE = Path.home() / ".atelier" / "api_keys.yaml"

# Credential name to environment variable mapping. Both Claude adapters share
# the "anthropic" credential.
PROVIDER_ENV_VARS: Dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "bunnycdn": "BUNNYCDN_API_KEY",
}

# Provider id to credential name
PROVIDER_CREDENTIALS: Dict[str, str] = {
    "openai": "openai",
    "claude-sonnet-4": "anthropic",
    "claude-opus-4": "anthropic",
}


def credential_for(provider: str) -> str:
    """Map a provider id to the credential name it consumes."""
    provider = provider.lower()
    return PROVIDER_CREDENTIALS.get(provider, provider)


class APIKeyManager:
    """Resolves API keys for individual providers.

    Usage:
        manager = APIKeyManager()
        key = manager.get_key("claude-sonnet-4")  # resolves the anthropic key
    """

    def __init__(self, keys_file: Optional[Path] = None):
        """Initialize API key manager.

        Args:
            keys_file: Path to API keys file (default: ~/.atelier/api_keys.yaml)
        """
        self.keys_file = keys_file or DEFAULT_KEYS_FILE
        self._file_cache: Optional[Dict[str, str]] = None

    def get_key(self, provider: str) -> Optional[str]:
        """Get API key for a specific provider.

        Resolution order:
        1. Environment variable
        2. Keys file
        3. None

        Args:
            provider: Provider id or credential name

        Returns:
            API key string or None if not configured
        """
        credential = credential_for(provider)

        env_var = PROVIDER_ENV_VARS.get(credential)
        if env_var:
            env_key = os.environ.get(env_var)
            if env_key:
                logger.debug(f"Loaded {credential} key from environment")
                return env_key

        file_key = self._load_keys_file().get(credential)
        if file_key:
            logger.debug(f"Loaded {credential} key from {self.keys_file}")
            return str(file_key)

        logger.debug(f"No API key configured for {credential}")
        return None

    def _load_keys_file(self) -> Dict[str, str]:
        """Load the keys file once; unreadable files count as empty."""
        if self._file_cache is not None:
            return self._file_cache

        self._file_cache = {}
        if not self.keys_file.exists():
            return self._file_cache

        try:
            with open(self.keys_file, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load API keys from {self.keys_file}: {e}")
            return self._file_cache

        # Keys are stored under 'api_keys' section, flat mappings also accepted
        api_keys = data.get("api_keys", data) if isinstance(data, dict) else {}
        if isinstance(api_keys, dict):
            self._file_cache = {str(k).lower(): v for k, v in api_keys.items() if v}
        return self._file_cache

    def set_key(self, provider: str, key: str) -> None:
        """Save an API key to the keys file with owner-only permissions."""
        credential = credential_for(provider)
        data: Dict[str, Dict[str, str]] = {"api_keys": dict(self._load_keys_file())}
        data["api_keys"][credential] = key

        self.keys_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.keys_file, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False)
        os.chmod(self.keys_file, 0o600)

        self._file_cache = data["api_keys"]
        logger.info(f"Saved {credential} API key to {self.keys_file}")


_manager: Optional[APIKeyManager] = None


def get_api_key(provider: str) -> Optional[str]:
    """Convenience wrapper around a shared APIKeyManager."""
    global _manager
    if _manager is None:
        _manager = APIKeyManager()
    return _manager.get_key(provider)


def reset_api_key_manager() -> None:
    """Drop the shared manager so the next lookup re-reads the keys file."""
    global _manager
    _manager = None
