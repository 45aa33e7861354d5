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

"""Conversation value types exchanged between caller, orchestrator and providers.

All types are frozen: a Turn is immutable once dispatched, and a
ChatResponse is never modified after creation. Continuations derive new
values with :func:`dataclasses.replace`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from atelier.project.schema import Project
from atelier.tools.base import ToolCallRecord


class FailureKind(str, Enum):
    """Why a ChatResponse failed, so callers can offer the right remedy."""

    PROVIDER_UNAVAILABLE = "provider_unavailable"
    PROVIDER_ERROR = "provider_error"
    TOOL_CONTRACT_VIOLATION = "tool_contract_violation"
    BUDGET_EXHAUSTED = "budget_exhausted"


@dataclass(frozen=True)
class TurnContext:
    """Continuation metadata attached to a synthesized turn."""

    workflow_continuation: bool = False
    force_tool: Optional[str] = None
    continuation_args: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class HistoryEntry:
    """One prior message in the conversation."""

    role: str
    content: str
    tool_calls: Tuple[ToolCallRecord, ...] = ()
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @classmethod
    def user(cls, content: str) -> "HistoryEntry":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls: Tuple[ToolCallRecord, ...] = ()) -> "HistoryEntry":
        return cls(role="assistant", content=content, tool_calls=tuple(tool_calls))


@dataclass(frozen=True)
class Turn:
    """One logical exchange submitted to a provider."""

    message: str
    project: Project
    history: Tuple[HistoryEntry, ...] = ()
    provider: Optional[str] = None
    context: Optional[TurnContext] = None

    @property
    def is_continuation(self) -> bool:
        return bool(self.context and self.context.workflow_continuation)


@dataclass(frozen=True)
class ChatResponse:
    """Result of one chat call, merged across any continuation steps."""

    message: str
    provider: str
    tool_calls: Tuple[ToolCallRecord, ...] = ()
    success: bool = True
    error: Optional[str] = None
    failure: Optional[FailureKind] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "provider": self.provider,
            "tool_calls": [tc.to_dict() for tc in self.tool_calls],
            "success": self.success,
            "error": self.error,
            "failure": self.failure.value if self.failure else None,
        }
