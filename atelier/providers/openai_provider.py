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

"""OpenAI Chat Completions provider implementation."""

import json
import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

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

OPENAI_INFO = ProviderInfo(
    id="openai",
    display_name="GPT-4o",
    description="OpenAI GPT-4o with function calling and tool use",
    model="gpt-4o",
    capabilities=(
        "Code generation",
        "Function calling",
        "Image generation",
        "General reasoning",
        "Tool integration",
    ),
)


class OpenAIProvider(BaseProvider):
    """Provider for OpenAI GPT models."""

    def __init__(
        self,
        api_key: str,
        info: ProviderInfo = OPENAI_INFO,
        registry: Optional[ToolRegistry] = None,
        base_url: Optional[str] = None,
        timeout: int = 120,
        max_retries: int = 2,
        client: Optional[AsyncOpenAI] = None,
        **kwargs: Any,
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            info: Provider metadata (model name included)
            registry: Tool registry to advertise
            base_url: Optional base URL for API
            timeout: Request timeout in seconds
            max_retries: SDK-level retry attempts
            client: Pre-built client (tests)
            **kwargs: temperature / max_tokens
        """
        super().__init__(info, registry=registry, **kwargs)
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

    def _convert_tools(self, tools: List[ToolDefinition]) -> List[Dict[str, Any]]:
        """Convert tool definitions to OpenAI function format."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.json_schema(),
                },
            }
            for tool in tools
        ]

    def _tool_choice(self, mode: str, tool_name: Optional[str] = None) -> Any:
        if mode == "forced":
            return {"type": "function", "function": {"name": tool_name}}
        return mode

    def _build_messages(self, turn: Turn) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = [
            {
                "role": "assistant" if entry.role == "assistant" else "user",
                "content": render_history_content(entry),
            }
            for entry in turn.history
            if entry.content or entry.tool_calls
        ]
        messages.append({"role": "user", "content": turn.message})
        return messages

    async def _send(
        self,
        system: str,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
        tool_choice: Any,
    ) -> Any:
        return await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "system", "content": system}, *messages],
            tools=tools,
            tool_choice=tool_choice,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    def _parse_response(self, raw: Any) -> ParsedResponse:
        """Parse a ChatCompletion into text and tool calls."""
        message = raw.choices[0].message
        tool_calls = []
        for tc in message.tool_calls or []:
            try:
                arguments = json.loads(tc.function.arguments or "{}")
            except json.JSONDecodeError:
                logger.warning("Malformed arguments for %s: %r", tc.function.name, tc.function.arguments)
                arguments = {}
            if not isinstance(arguments, dict):
                arguments = {}
            tool_calls.append(ParsedToolCall(id=tc.id, name=tc.function.name, arguments=arguments))
        return ParsedResponse(text=message.content or "", tool_calls=tool_calls, raw=raw)

    def _append_tool_round(
        self,
        messages: List[Dict[str, Any]],
        parsed: ParsedResponse,
        records: List[ToolCallRecord],
    ) -> List[Dict[str, Any]]:
        assistant = {
            "role": "assistant",
            "content": parsed.text or None,
            "tool_calls": [
                {
                    "id": record.id,
                    "type": "function",
                    "function": {"name": record.function, "arguments": json.dumps(record.args)},
                }
                for record in records
            ],
        }
        results = [
            {
                "role": "tool",
                "tool_call_id": record.id,
                "content": json.dumps(record.result.to_dict(), default=str),
            }
            for record in records
        ]
        return [*messages, assistant, *results]

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.close()
