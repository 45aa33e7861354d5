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

"""Anthropic Messages API provider implementation.

Serves both Claude adapters (``claude-sonnet-4`` and ``claude-opus-4``);
they differ only in ProviderInfo.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from anthropic import AsyncAnthropic

from atelier.agent.messages import Turn
from atelier.providers.base import (
    BaseProvider,
    ParsedResponse,
    ParsedToolCall,
    ProviderInfo,
    render_history_content,
)
from atelier.tools.base import ToolCallRecord, ToolDefinition
from atelier.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

_CLAUDE_CAPABILITIES = (
    "Advanced reasoning",
    "Complex tool orchestration",
    "Code generation",
    "UI/UX expertise",
    "Multi-step planning",
)

CLAUDE_SONNET_INFO = ProviderInfo(
    id="claude-sonnet-4",
    display_name="Claude Sonnet 4",
    description="Claude Sonnet 4 with state-of-the-art reasoning and tool use",
    model="claude-sonnet-4-20250514",
    capabilities=_CLAUDE_CAPABILITIES,
)

CLAUDE_OPUS_INFO = ProviderInfo(
    id="claude-opus-4",
    display_name="Claude Opus 4",
    description="Most capable Claude model for complex multi-step tasks",
    model="claude-opus-4-20250514",
    capabilities=_CLAUDE_CAPABILITIES,
)


class AnthropicProvider(BaseProvider):
    """Provider for Anthropic Claude models."""

    def __init__(
        self,
        api_key: str,
        info: ProviderInfo = CLAUDE_SONNET_INFO,
        registry: Optional[ToolRegistry] = None,
        timeout: int = 120,
        max_retries: int = 2,
        client: Optional[AsyncAnthropic] = None,
        **kwargs: Any,
    ):
        super().__init__(info, registry=registry, **kwargs)
        self.client = client or AsyncAnthropic(
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
        )

    def _convert_tools(self, tools: List[ToolDefinition]) -> List[Dict[str, Any]]:
        """Convert tool definitions to Anthropic ``input_schema`` format."""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.json_schema(),
            }
            for tool in tools
        ]

    def _tool_choice(self, mode: str, tool_name: Optional[str] = None) -> Any:
        if mode == "forced":
            return {"type": "tool", "name": tool_name}
        return {"type": mode}

    def _build_messages(self, turn: Turn) -> List[Dict[str, Any]]:
        """Build alternating user/assistant messages.

        The Messages API rejects consecutive same-role messages and empty
        content, so adjacent entries with the same role are merged.
        """
        messages: List[Dict[str, Any]] = []
        entries = [
            ("assistant" if entry.role == "assistant" else "user", render_history_content(entry))
            for entry in turn.history
        ]
        entries.append(("user", turn.message))

        for role, content in entries:
            if not content:
                continue
            if messages and messages[-1]["role"] == role:
                messages[-1]["content"] = f"{messages[-1]['content']}\n\n{content}"
            else:
                messages.append({"role": role, "content": content})

        # Conversation must open with a user message
        if messages and messages[0]["role"] == "assistant":
            messages.insert(0, {"role": "user", "content": "(conversation resumed)"})
        return messages

    async def _send(
        self,
        system: str,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
        tool_choice: Any,
    ) -> Any:
        return await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system,
            messages=messages,
            tools=tools,
            tool_choice=tool_choice,
            temperature=self.temperature,
        )

    def _parse_response(self, raw: Any) -> ParsedResponse:
        """Split content blocks into text and tool_use calls."""
        text_parts: List[str] = []
        tool_calls: List[ParsedToolCall] = []
        for block in raw.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                arguments = block.input if isinstance(block.input, dict) else {}
                tool_calls.append(ParsedToolCall(id=block.id, name=block.name, arguments=dict(arguments)))
        return ParsedResponse(text="".join(text_parts), tool_calls=tool_calls, raw=raw)

    def _append_tool_round(
        self,
        messages: List[Dict[str, Any]],
        parsed: ParsedResponse,
        records: List[ToolCallRecord],
    ) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = []
        if parsed.text:
            content.append({"type": "text", "text": parsed.text})
        content.extend(
            {"type": "tool_use", "id": record.id, "name": record.function, "input": record.args}
            for record in records
        )
        results = [
            {
                "type": "tool_result",
                "tool_use_id": record.id,
                "content": json.dumps(record.result.to_dict(), default=str),
                "is_error": not record.result.success,
            }
            for record in records
        ]
        return [
            *messages,
            {"role": "assistant", "content": content},
            {"role": "user", "content": results},
        ]

    async def close(self) -> None:
        await self.client.close()
