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

"""Optional UI action hooks.

Hooks are fire-and-forget notifications to the presentation layer. A hook
may be a plain function or a coroutine function; coroutines are scheduled
on the running loop and never awaited, so a slow UI cannot stall a turn.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Set

logger = logging.getLogger(__name__)


@dataclass
class UIActions:
    """Injected UI capabilities. Every field is optional."""

    switch_tab: Optional[Callable[[str], Any]] = None
    show_component_code: Optional[Callable[[str], Any]] = None
    focus_preview_component: Optional[Callable[[str], Any]] = None
    scene_created: Optional[Callable[[str, str], Any]] = None
    component_added_to_scene: Optional[Callable[..., Any]] = None


class HookUnavailable(Exception):
    """The requested hook is not provided by the caller."""


class HookFailed(Exception):
    """The hook raised synchronously."""


# Scheduled hook tasks, held until they finish so they are not collected early.
_pending_hooks: Set["asyncio.Future[Any]"] = set()


def _hook_done(task: "asyncio.Future[Any]") -> None:
    _pending_hooks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        name = task.get_name() if isinstance(task, asyncio.Task) else "hook"
        logger.warning("UI hook %s failed: %s", name, exc)


def fire(actions: Optional[UIActions], hook_name: str, *args: Any, **kwargs: Any) -> None:
    """Invoke a hook without waiting on it.

    Raises:
        HookUnavailable: If ``actions`` is None or the hook is not set
        HookFailed: If the hook raised when called
    """
    hook = getattr(actions, hook_name, None) if actions is not None else None
    if hook is None:
        raise HookUnavailable(hook_name)

    try:
        outcome = hook(*args, **kwargs)
    except Exception as e:
        logger.warning("UI hook %s raised: %s", hook_name, e)
        raise HookFailed(str(e)) from e

    if inspect.isawaitable(outcome):
        task = asyncio.ensure_future(outcome)
        if isinstance(task, asyncio.Task):
            task.set_name(hook_name)
        _pending_hooks.add(task)
        task.add_done_callback(_hook_done)
