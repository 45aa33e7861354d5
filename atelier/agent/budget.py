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

"""Action budget for autonomous tool chains.

One ActionBudget belongs to one orchestrator instance. It counts tool
executions across every continuation of a request and persists across
requests until the caller resets it.

Usage:
    budget = ActionBudget(limit=7)

    if budget.is_exhausted():
        # Stop before calling the provider
        ...

    budget.consume(executed_count)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_ACTION_BUDGET = 7


@dataclass(frozen=True)
class BudgetStatus:
    """Snapshot of the action budget.

    Attributes:
        total: Configured limit
        used: Tool executions counted so far
        remaining: Executions still permitted (never negative)
    """

    total: int
    used: int
    remaining: int

    @property
    def is_exhausted(self) -> bool:
        return self.remaining <= 0


@dataclass
class ActionBudget:
    """Counter of tool executions against a limit.

    Attributes:
        limit: Maximum executions before the budget is exhausted
        used: Executions counted so far
        on_exhausted: Optional callback fired once when the limit is reached
    """

    limit: int = DEFAULT_ACTION_BUDGET
    used: int = 0
    on_exhausted: Optional[Callable[[BudgetStatus], None]] = None

    def __post_init__(self) -> None:
        if self.limit < 0:
            raise ValueError("Action budget limit must be >= 0")

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)

    def get_status(self) -> BudgetStatus:
        return BudgetStatus(total=self.limit, used=self.used, remaining=self.remaining)

    def is_exhausted(self) -> bool:
        return self.used >= self.limit

    def consume(self, amount: int = 1) -> bool:
        """Count executions.

        Args:
            amount: Number of executions performed

        Returns:
            True if budget was available before consuming
        """
        was_available = self.used < self.limit
        self.used += amount

        if was_available and self.is_exhausted():
            logger.info("Action budget exhausted: %d/%d", self.used, self.limit)
            if self.on_exhausted:
                self.on_exhausted(self.get_status())

        return was_available

    def set_limit(self, limit: int) -> None:
        """Change the limit without resetting usage."""
        if limit < 0:
            raise ValueError("Action budget limit must be >= 0")
        self.limit = limit

    def reset(self) -> None:
        self.used = 0

    def exhausted_message(self) -> str:
        return (
            f"Action budget exhausted ({self.used}/{self.limit} tool calls used). "
            "Increase or reset the action budget to continue."
        )
