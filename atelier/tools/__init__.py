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

"""Tool registry, executor and built-in tools."""

from atelier.tools.base import (
    BuiltinTool,
    ContinuationCondition,
    ContinuationRule,
    ToolCallRecord,
    ToolDefinition,
    ToolResult,
)
from atelier.tools.collaborators import Collaborators
from atelier.tools.registry import ToolRegistry, default_registry
from atelier.tools.ui_actions import UIActions

__all__ = [
    "BuiltinTool",
    "Collaborators",
    "ContinuationCondition",
    "ContinuationRule",
    "ToolCallRecord",
    "ToolDefinition",
    "ToolRegistry",
    "ToolResult",
    "UIActions",
    "default_registry",
]
