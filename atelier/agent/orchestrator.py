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

"""Agent orchestrator - the facade callers use to talk to the building agent.

Responsibilities:
- Provider selection (turn override or current default)
- Action budget accounting across a whole request
- Automatic workflow continuation driven by registry rules
- Merging every continuation step into one ChatResponse

A request is processed as an explicit loop:

    dispatch -> budget check -> provider.chat -> consume budget
             -> continuation decision -> (loop with forced tool | stop)

Usage:
    orchestrator = AgentOrchestrator.from_settings()
    response = await orchestrator.chat(
        Turn(message="Create a hero banner", project=project),
        update_project=store.update,
    )
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from atelier.agent.budget import DEFAULT_ACTION_BUDGET, ActionBudget, BudgetStatus
from atelier.agent.continuation import ContinuationStrategy
from atelier.agent.messages import ChatResponse, FailureKind, HistoryEntry, Turn, TurnContext
from atelier.config.settings import Settings, load_settings
from atelier.core.errors import ProviderNotFoundError, get_error_handler
from atelier.project.schema import Project, ProjectUpdater
from atelier.providers.base import BaseProvider, ProviderInfo
from atelier.providers.registry import DEFAULT_PREFERENCE, create_providers
from atelier.tools.base import ToolCallRecord
from atelier.tools.collaborators import Collaborators
from atelier.tools.executor import ToolExecutor, ToolHandler
from atelier.tools.registry import ToolRegistry, default_registry
from atelier.tools.ui_actions import UIActions

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONTINUATIONS = 10


@dataclass
class AgentLoopOptions:
    """Options for run_agent_loop.

    Attributes:
        max_iterations: Maximum chat calls in the loop
        auto_switch_provider: Move to the next preferred provider after a failure
        preferred_providers: Provider ids in switching order
    """

    max_iterations: int = 5
    auto_switch_provider: bool = False
    preferred_providers: Tuple[str, ...] = DEFAULT_PREFERENCE


@dataclass
class AgentLoopResult:
    responses: List[ChatResponse] = field(default_factory=list)
    final_response: Optional[ChatResponse] = None
    iterations_used: int = 0


class AgentOrchestrator:
    """Coordinates providers, tool execution, continuation and the action budget.

    One instance serves one conversation. The action budget is shared by
    every continuation of a request and persists across requests until
    ``reset_action_budget()`` is called.
    """

    def __init__(
        self,
        providers: Mapping[str, BaseProvider],
        registry: Optional[ToolRegistry] = None,
        action_budget: int = DEFAULT_ACTION_BUDGET,
        max_continuations: int = DEFAULT_MAX_CONTINUATIONS,
        default_provider: str = "claude-sonnet-4",
        collaborators: Optional[Collaborators] = None,
        handlers: Optional[Mapping[str, ToolHandler]] = None,
        continuation: Optional[ContinuationStrategy] = None,
    ):
        """Initialize orchestrator.

        Args:
            providers: Available providers keyed by id
            registry: Tool registry (default: built-in catalog)
            action_budget: Maximum tool executions before the caller must reset
            max_continuations: Administrative cap on continuation steps per request
            default_provider: Preferred default; falls back to the first available
            collaborators: Artifact collaborators passed to the executor
            handlers: Tool handler table (default: built-in handlers)
            continuation: Continuation strategy (default: registry rules)
        """
        self.providers: Dict[str, BaseProvider] = dict(providers)
        self.registry = registry or default_registry()
        self.budget = ActionBudget(limit=action_budget)
        self.max_continuations = max_continuations
        self.collaborators = collaborators or Collaborators()
        self.handlers = handlers
        self.continuation = continuation or ContinuationStrategy(self.registry)

        if default_provider in self.providers:
            self._current_provider: Optional[str] = default_provider
        else:
            self._current_provider = next(iter(self.providers), None)

        logger.info(
            "Orchestrator initialized: providers=%s, default=%s, budget=%d",
            ", ".join(self.providers) or "none",
            self._current_provider,
            action_budget,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        collaborators: Optional[Collaborators] = None,
        registry: Optional[ToolRegistry] = None,
    ) -> "AgentOrchestrator":
        """Build an orchestrator with every provider whose credential resolves."""
        settings = settings or load_settings()
        registry = registry or default_registry()
        return cls(
            providers=create_providers(settings, registry=registry),
            registry=registry,
            action_budget=settings.action_budget,
            max_continuations=settings.max_continuations,
            default_provider=settings.default_provider,
            collaborators=collaborators,
        )

    # =========================================================================
    # Provider selection
    # =========================================================================

    def get_available_providers(self) -> List[ProviderInfo]:
        return [provider.info for provider in self.providers.values()]

    def get_current_provider(self) -> Optional[str]:
        return self._current_provider

    def set_current_provider(self, provider_id: str) -> bool:
        """Switch the default provider.

        Returns:
            False (and no change) if the provider is not available
        """
        if provider_id not in self.providers:
            logger.warning("Cannot switch to unavailable provider: %s", provider_id)
            return False
        self._current_provider = provider_id
        logger.info("Current provider set to %s", provider_id)
        return True

    def get_provider_info(self, provider_id: str) -> Optional[ProviderInfo]:
        provider = self.providers.get(provider_id)
        return provider.info if provider else None

    def is_any_provider_available(self) -> bool:
        return bool(self.providers)

    async def close(self) -> None:
        """Release provider and collaborator clients."""
        for provider in self.providers.values():
            await provider.close()
        for collaborator in vars(self.collaborators).values():
            close = getattr(collaborator, "close", None)
            if close is not None:
                await close()

    # =========================================================================
    # Action budget
    # =========================================================================

    def get_action_budget(self) -> BudgetStatus:
        return self.budget.get_status()

    def set_action_budget(self, limit: int) -> None:
        self.budget.set_limit(limit)
        logger.info("Action budget limit set to %d", limit)

    def reset_action_budget(self) -> None:
        self.budget.reset()
        logger.info("Action budget reset")

    # =========================================================================
    # Chat
    # =========================================================================

    async def chat(
        self,
        turn: Turn,
        update_project: ProjectUpdater,
        ui_actions: Optional[UIActions] = None,
    ) -> ChatResponse:
        """Process one user request, following continuations until done.

        Args:
            turn: The user's turn
            update_project: Caller's project mutation capability
            ui_actions: Optional UI hooks

        Returns:
            One ChatResponse merging every step (never raises)
        """
        provider_id = turn.provider or self._current_provider or ""
        provider = self.providers.get(provider_id)
        if provider is None:
            get_error_handler().handle(
                ProviderNotFoundError(provider_id, available_providers=list(self.providers)),
                log_level=logging.WARNING,
            )
            return ChatResponse(
                message=f'Agent provider "{provider_id}" is not available. Please check your API keys.',
                provider=provider_id,
                success=False,
                error=f"Provider {provider_id} not available",
                failure=FailureKind.PROVIDER_UNAVAILABLE,
            )

        executor = ToolExecutor(
            turn.project,
            update_project,
            ui_actions=ui_actions,
            collaborators=self.collaborators,
            registry=self.registry,
            handlers=self.handlers,
            allowance=self.budget.remaining,
        )
        executor.begin_request(turn.message)

        messages: List[str] = []
        records: List[ToolCallRecord] = []
        success = True
        error: Optional[str] = None
        failure: Optional[FailureKind] = None
        chain_counts: Dict[str, int] = {}
        continuations = 0
        current = turn

        try:
            while True:
                if self.budget.is_exhausted():
                    logger.info("Stopping request: %s", self.budget.exhausted_message())
                    messages.append(self.budget.exhausted_message())
                    success = False
                    error = error or "Action budget exhausted"
                    failure = failure or FailureKind.BUDGET_EXHAUSTED
                    break

                logger.info(
                    "[%s] chat step %d%s",
                    provider.id,
                    continuations + 1,
                    f" (forcing {current.context.force_tool})" if current.is_continuation else "",
                )
                executed_before = executor.executed_count
                response = await provider.chat(current, executor)
                self.budget.consume(executor.executed_count - executed_before)

                if response.message:
                    messages.append(response.message)
                records.extend(response.tool_calls)
                if not response.success:
                    success = False
                    error = error or response.error
                    failure = failure or response.failure
                    break

                decision = self.continuation.decide(
                    response.tool_calls,
                    turn.message,
                    chain_counts,
                    executor.project,
                )
                if decision is None:
                    break

                if continuations >= self.max_continuations:
                    logger.warning("Stopping request: %d continuations reached", self.max_continuations)
                    break

                chain_counts[decision.triggered_by] = chain_counts.get(decision.triggered_by, 0) + 1
                continuations += 1
                current = Turn(
                    message=f"Continue the workflow: call {decision.next_tool}",
                    project=executor.project,
                    history=(
                        *current.history,
                        HistoryEntry.user(current.message),
                        HistoryEntry.assistant(response.message, response.tool_calls),
                    ),
                    provider=provider.id,
                    context=TurnContext(
                        workflow_continuation=True,
                        force_tool=decision.next_tool,
                        continuation_args=dict(decision.args),
                    ),
                )

        except Exception as e:
            info = get_error_handler().handle(e, context={"provider": provider.id, "stage": "orchestrator"})
            detail = str(e) or type(e).__name__
            messages.append(f"I encountered an error: {detail}")
            success = False
            error = error or detail
            failure = failure or FailureKind.PROVIDER_ERROR
            logger.debug("Orchestrator failure correlation id: %s", info.correlation_id)

        status = self.budget.get_status()
        logger.info(
            "Request complete: %d tool call(s), %d continuation(s), budget %d/%d",
            len(records),
            continuations,
            status.used,
            status.total,
        )
        return ChatResponse(
            message="\n\n".join(messages),
            provider=provider.id,
            tool_calls=tuple(records),
            success=success,
            error=error,
            failure=failure,
        )

    # =========================================================================
    # Agent loop
    # =========================================================================

    def _next_provider(self, current: str, preferred: Sequence[str]) -> Optional[str]:
        for provider_id in preferred:
            if provider_id != current and provider_id in self.providers:
                return provider_id
        return None

    async def run_agent_loop(
        self,
        turn: Turn,
        update_project: ProjectUpdater,
        options: Optional[AgentLoopOptions] = None,
        ui_actions: Optional[UIActions] = None,
    ) -> AgentLoopResult:
        """Call chat repeatedly until the agent stops requesting tools.

        Budget and continuation handling stay inside ``chat``; the loop only
        decides which provider is called next.

        Args:
            turn: Initial turn
            update_project: Caller's project mutation capability
            options: Loop options
            ui_actions: Optional UI hooks

        Returns:
            AgentLoopResult with every response in order
        """
        options = options or AgentLoopOptions()
        result = AgentLoopResult()
        current = turn
        provider_id = turn.provider or self._current_provider or ""
        latest = [turn.project]

        def track(updater: Callable[[Project], Project]) -> None:
            updated = updater(latest[0])
            update_project(updater)
            latest[0] = updated

        while result.iterations_used < options.max_iterations:
            previous = result.responses[-1] if result.responses else None
            if options.auto_switch_provider and previous is not None and not previous.success:
                next_id = self._next_provider(provider_id, options.preferred_providers)
                if next_id:
                    logger.info("Switching provider %s -> %s after failure", provider_id, next_id)
                    provider_id = next_id

            response = await self.chat(
                dataclasses.replace(current, provider=provider_id, project=latest[0]),
                track,
                ui_actions=ui_actions,
            )
            result.responses.append(response)

            if response.success and not response.tool_calls:
                break
            if response.failure == FailureKind.BUDGET_EXHAUSTED:
                # The budget belongs to the orchestrator, not to a provider.
                logger.info("Stopping agent loop: action budget exhausted")
                break
            result.iterations_used += 1

            if not response.tool_calls:
                # Nothing ran: resend the same turn.
                continue

            executed = ", ".join(
                f"{tc.function}: {'success' if tc.result.success else 'failed'}" for tc in response.tool_calls
            )
            current = Turn(
                message=f"Continue with the task. Tools executed: {executed}",
                project=latest[0],
                history=(
                    *current.history,
                    HistoryEntry.user(current.message),
                    HistoryEntry.assistant(response.message, response.tool_calls),
                ),
                provider=provider_id,
            )

        result.final_response = (
            result.responses[-1]
            if result.responses
            else ChatResponse(
                message="No response generated",
                provider=provider_id,
                success=False,
                error="No response generated",
            )
        )
        return result
