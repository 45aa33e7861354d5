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

"""Base provider interface for language-model backends.

``BaseProvider.chat`` is a template method shared by every adapter:

1. Build native messages from the turn's history plus its message
2. Send them with the registry's tools translated by ``_convert_tools``,
   forcing ``force_tool`` for workflow continuations
3. Execute every requested tool through the executor, in order
4. If any tool ran, make exactly one follow-up request with the tool
   results so the model can answer in natural language

Adapters implement only the backend-specific hooks. Nothing raises past
``chat``: backend failures become a failed ChatResponse.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from atelier.agent.debug_logger import TRACE
from atelier.agent.messages import ChatResponse, FailureKind, HistoryEntry, Turn
from atelier.core.errors import ToolNotFoundError, classify_provider_exception, get_error_handler
from atelier.providers.prompts import build_system_prompt
from atelier.tools.base import ToolCallRecord, ToolDefinition
from atelier.tools.registry import ToolRegistry, default_registry

if TYPE_CHECKING:
    from atelier.tools.executor import ToolExecutor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderInfo:
    """Descriptive metadata for one provider."""

    id: str
    display_name: str
    description: str
    model: str
    capabilities: Tuple[str, ...] = ()


@dataclass
class ParsedToolCall:
    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ParsedResponse:
    """Backend-neutral view of one model response."""

    text: str
    tool_calls: List[ParsedToolCall] = field(default_factory=list)
    raw: Any = None


def render_history_content(entry: HistoryEntry) -> str:
    """Flatten a history entry to text, summarizing any tool calls it carried."""
    if not entry.tool_calls:
        return entry.content
    summaries = ", ".join(
        f"{tc.function} ({'success' if tc.result.success else 'failed'}: {tc.result.summary})"
        for tc in entry.tool_calls
    )
    return f"{entry.content}\n\n[Tools used: {summaries}]".strip()


class BaseProvider(ABC):
    """Abstract base class for provider adapters."""

    def __init__(
        self,
        info: ProviderInfo,
        registry: Optional[ToolRegistry] = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ):
        """Initialize provider.

        Args:
            info: Provider metadata (id, model, capabilities)
            registry: Tool registry to advertise (default: built-in catalog)
            temperature: Sampling temperature
            max_tokens: Maximum tokens per response
        """
        self.info = info
        self.registry = registry or default_registry()
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def id(self) -> str:
        return self.info.id

    @property
    def model(self) -> str:
        return self.info.model

    # -------------------------------------------------------------------------
    # Backend hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    def _convert_tools(self, tools: List[ToolDefinition]) -> List[Dict[str, Any]]:
        """Translate tool definitions into the backend's native schema."""
        ...

    @abstractmethod
    def _tool_choice(self, mode: str, tool_name: Optional[str] = None) -> Any:
        """Native tool_choice for ``auto``, ``none`` or ``forced`` (with tool_name)."""
        ...

    @abstractmethod
    def _build_messages(self, turn: Turn) -> List[Dict[str, Any]]:
        """Native message list from history plus the turn's message."""
        ...

    @abstractmethod
    async def _send(
        self,
        system: str,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
        tool_choice: Any,
    ) -> Any:
        """Issue one request to the backend and return its raw response."""
        ...

    @abstractmethod
    def _parse_response(self, raw: Any) -> ParsedResponse:
        ...

    @abstractmethod
    def _append_tool_round(
        self,
        messages: List[Dict[str, Any]],
        parsed: ParsedResponse,
        records: List[ToolCallRecord],
    ) -> List[Dict[str, Any]]:
        """Messages for the follow-up: the assistant's tool requests plus their results."""
        ...

    async def close(self) -> None:
        """Release backend resources. Default: nothing to release."""

    # -------------------------------------------------------------------------
    # Template method
    # -------------------------------------------------------------------------

    async def chat(self, turn: Turn, executor: "ToolExecutor") -> ChatResponse:
        """Run one turn: request, execute tools, synthesize.

        Args:
            turn: Turn to send
            executor: Executor for requested tools

        Returns:
            ChatResponse (never raises)
        """
        records: List[ToolCallRecord] = []
        try:
            tool_defs = self.registry.list_tools()
            system = build_system_prompt(
                executor.project,
                tool_defs,
                budget_remaining=executor.remaining,
                assistant_name=self.info.display_name,
            )
            messages = self._build_messages(turn)
            tools = self._convert_tools(tool_defs)

            forced: Optional[str] = None
            tool_choice = self._tool_choice("auto")
            if turn.is_continuation and turn.context.force_tool in self.registry:
                forced = turn.context.force_tool
                tool_choice = self._tool_choice("forced", forced)
                logger.info("[%s] Forcing continuation tool %s", self.id, forced)

            logger.debug("[%s] Sending %d messages (%d chars system)", self.id, len(messages), len(system))
            parsed = self._parse_response(await self._send(system, messages, tools, tool_choice))
            logger.log(TRACE, "[%s] Response text: %r", self.id, parsed.text)

            for call in parsed.tool_calls:
                args = dict(call.arguments)
                if forced is not None and call.name == forced:
                    args.update(turn.context.continuation_args)
                result = await executor.execute(call.name, args)
                records.append(ToolCallRecord(id=call.id, function=call.name, args=args, result=result))

            message = parsed.text
            if records:
                follow_up = self._append_tool_round(messages, parsed, records)
                final = self._parse_response(
                    await self._send(system, follow_up, tools, self._tool_choice("none"))
                )
                message = final.text or message

            return ChatResponse(message=message, provider=self.id, tool_calls=tuple(records))

        except ToolNotFoundError as e:
            get_error_handler().handle(e, context={"provider": self.id}, log_level=logging.ERROR)
            return ChatResponse(
                message=f"I encountered an error: {e.message}",
                provider=self.id,
                tool_calls=tuple(records),
                success=False,
                error=e.message,
                failure=FailureKind.TOOL_CONTRACT_VIOLATION,
            )
        except Exception as e:
            error = classify_provider_exception(e, provider=self.id, model=self.model)
            get_error_handler().handle(error, context={"provider": self.id})
            detail = str(e) or type(e).__name__
            return ChatResponse(
                message=f"I encountered an error: {detail}",
                provider=self.id,
                tool_calls=tuple(records),
                success=False,
                error=detail,
                failure=FailureKind.PROVIDER_ERROR,
            )
