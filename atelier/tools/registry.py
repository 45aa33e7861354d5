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

"""Read-only tool registry.

The registry is the single source of truth both providers and the executor
consult. It is validated and frozen at construction:
- Duplicate tool names are rejected
- Every continuation rule must point at a registered tool
- Lookups return the identical definition object on every call
"""

import logging
import threading
from typing import Dict, Iterable, Iterator, List, Optional

from atelier.core.errors import ConfigurationError
from atelier.tools.base import ToolDefinition

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Immutable name -> ToolDefinition lookup.

    Example:
        registry = ToolRegistry([definition_a, definition_b])
        registry.get("definition_a")  # same object every call
    """

    def __init__(self, definitions: Iterable[ToolDefinition]):
        items: Dict[str, ToolDefinition] = {}
        for definition in definitions:
            if definition.name in items:
                raise ConfigurationError(
                    f"Duplicate tool definition: {definition.name}",
                    config_key=definition.name,
                )
            items[definition.name] = definition

        for definition in items.values():
            rule = definition.continuation
            if rule is not None and rule.next_tool not in items:
                raise ConfigurationError(
                    f"Tool '{definition.name}' continues to unknown tool '{rule.next_tool}'",
                    config_key=definition.name,
                )

        self._items = items
        logger.debug("Tool registry initialized with %d tools", len(items))

    def get(self, name: str) -> Optional[ToolDefinition]:
        """Get a definition by name, or None if not registered."""
        return self._items.get(name)

    def list_tools(self) -> List[ToolDefinition]:
        """All definitions in registration order."""
        return list(self._items.values())

    def names(self) -> List[str]:
        return list(self._items)

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)


_default_registry: Optional[ToolRegistry] = None
_lock = threading.Lock()


def default_registry() -> ToolRegistry:
    """Get the process-wide registry of built-in tools (created once)."""
    global _default_registry
    if _default_registry is None:
        with _lock:
            if _default_registry is None:
                from atelier.tools.catalog import BUILTIN_DEFINITIONS

                _default_registry = ToolRegistry(BUILTIN_DEFINITIONS)
    return _default_registry
