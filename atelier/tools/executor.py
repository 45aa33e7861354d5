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

"""Tool execution against the caller-owned project document.

The executor is created per top-level request and shared by every
continuation step of that request. It:
- Resolves the tool definition and handler (unknown names raise)
- Refuses executions past its allowance (the remaining action budget)
- Validates arguments against the tool's JSON schema
- Converts handler exceptions into failed ToolResults
- Applies every project mutation through the caller's updater and keeps a
  working snapshot so later tools in the chain see earlier changes
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from atelier.agent.debug_logger import TRACE, format_args
from atelier.core.errors import ToolError, ToolNotFoundError, ToolValidationError, get_error_handler
from atelier.project.schema import Project, ProjectUpdater
from atelier.tools.base import ToolResult, validate_arguments
from atelier.tools.collaborators import Collaborators
from atelier.tools.registry import ToolRegistry, default_registry
from atelier.tools.ui_actions import UIActions

logger = logging.getLogger(__name__)

ToolHandler = Callable[["ToolExecutor", Dict[str, Any]], Awaitable[ToolResult]]

BUDGET_EXHAUSTED_ERROR = "Action budget exhausted"


class ValidationMode(Enum):
    """Mode for pre-execution argument validation.

    Modes:
        STRICT: Validation errors block execution and return failure
        LENIENT: Validation errors are logged as warnings but execution proceeds
        OFF: No pre-execution validation (relies on the handler's own checks)
    """

    STRICT = "strict"
    LENIENT = "lenient"
    OFF = "off"


def _label(tool_name: str) -> str:
    return tool_name.replace("_", " ")


class ToolExecutor:
    """Executes registered tools for one logical user request.

    Example:
        executor = ToolExecutor(project, update_project, ui_actions=actions)
        executor.begin_request("Create a hero banner")
        result = await executor.execute("generate_component", {...})
    """

    def __init__(
        self,
        project: Project,
        update_project: ProjectUpdater,
        ui_actions: Optional[UIActions] = None,
        collaborators: Optional[Collaborators] = None,
        registry: Optional[ToolRegistry] = None,
        handlers: Optional[Mapping[str, ToolHandler]] = None,
        allowance: Optional[int] = None,
        validation_mode: ValidationMode = ValidationMode.STRICT,
    ):
        """Initialize tool executor.

        Args:
            project: Project snapshot at the start of the request
            update_project: Caller's mutation capability
            ui_actions: Optional UI hooks
            collaborators: Optional artifact collaborators
            registry: Tool registry (default: built-in catalog)
            handlers: Handler table keyed by tool name (default: built-ins)
            allowance: Max executions permitted for this request (None = unlimited)
            validation_mode: How strictly to enforce argument schemas
        """
        if handlers is None:
            from atelier.tools.builtin import BUILTIN_HANDLERS

            handlers = BUILTIN_HANDLERS

        self.registry = registry or default_registry()
        self.handlers = dict(handlers)
        self.ui_actions = ui_actions
        self.collaborators = collaborators or Collaborators()
        self.allowance = allowance
        self.validation_mode = validation_mode
        self._project = project
        self._update_project = update_project
        self.original_message = ""
        self.executed_count = 0

    @property
    def project(self) -> Project:
        """Working snapshot: the turn's project with this request's updates applied."""
        return self._project

    def begin_request(self, message: str) -> None:
        """Reset per-request state. Called once per top-level chat call."""
        self.original_message = message.lower()
        self.executed_count = 0

    def apply(self, updater: Callable[[Project], Project]) -> Project:
        """Apply an updater locally and forward it to the caller.

        The working snapshot only advances once the caller has accepted the
        update, so a rejected update leaves both sides unchanged.
        """
        updated = updater(self._project)
        self._update_project(updater)
        self._project = updated
        return updated

    @property
    def remaining(self) -> Optional[int]:
        if self.allowance is None:
            return None
        return max(self.allowance - self.executed_count, 0)

    async def execute(self, name: str, args: Optional[Dict[str, Any]] = None) -> ToolResult:
        """Execute one tool.

        Args:
            name: Registered tool name
            args: Tool arguments

        Returns:
            ToolResult (failures are returned, never raised)

        Raises:
            ToolNotFoundError: If the name has no definition or handler
        """
        args = dict(args or {})
        definition = self.registry.get(name)
        handler = self.handlers.get(name)
        if definition is None or handler is None:
            logger.error("Tool '%s' requested but not registered", name)
            raise ToolNotFoundError(name)

        if self.allowance is not None and self.executed_count >= self.allowance:
            logger.info("Skipping %s: action budget exhausted", name)
            return ToolResult.fail(
                BUDGET_EXHAUSTED_ERROR,
                summary=f"Skipped {_label(name)}: the action budget for this request is used up",
            )

        self.executed_count += 1

        if self.validation_mode != ValidationMode.OFF:
            validation = validate_arguments(definition, args)
            if not validation.valid:
                error_summary = "; ".join(validation.errors[:3])
                if len(validation.errors) > 3:
                    error_summary += f" (+{len(validation.errors) - 3} more)"
                if self.validation_mode == ValidationMode.STRICT:
                    error = ToolValidationError(
                        f"Invalid arguments: {error_summary}",
                        tool_name=name,
                        invalid_args=validation.errors,
                    )
                    get_error_handler().handle(error, log_level=logging.WARNING)
                    return ToolResult.fail(
                        error.message,
                        summary=f"Failed to {_label(name)}: invalid arguments",
                    )
                logger.warning("Validation issues for '%s' (proceeding anyway): %s", name, error_summary)

        logger.info("Executing %s(%s)", name, format_args(args))
        logger.log(TRACE, "Full arguments for %s: %r", name, args)
        start_time = time.time()
        try:
            result = await handler(self, args)
        except ToolError as e:
            logger.warning("Tool %s failed: %s", name, e.message)
            result = ToolResult.fail(e.message, summary=f"Failed to {_label(name)}: {e.message}")
        except Exception as e:
            get_error_handler().handle(e, context={"tool_name": name}, log_level=logging.WARNING)
            result = ToolResult(
                success=False,
                summary=f"Failed to {_label(name)}: {e}",
                error=str(e) or type(e).__name__,
            )

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            "%s %s (%.0fms): %s",
            "OK" if result.success else "FAILED",
            name,
            elapsed_ms,
            result.summary,
        )
        return result
