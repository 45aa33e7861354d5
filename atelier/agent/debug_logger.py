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

"""Logging setup and one-line event formatting for Atelier.

Logging Levels (Atelier convention):
- TRACE (5): Full tool arguments and raw provider payload sizes
- DEBUG (10): Argument previews, credential lookups, prompt sizes
- INFO (20): Provider dispatch, tool execution, continuation decisions
- WARNING (30): Soft failures (missing hooks or collaborators)
- ERROR (40): Provider failures and contract violations
"""

import logging
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

# Custom TRACE level for very verbose logging (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

logger = logging.getLogger(__name__)

# Third-party loggers to silence
NOISY_LOGGERS = [
    "httpcore",
    "httpx",
    "openai",
    "anthropic",
    "asyncio",
]

_HANDLER_MARKER = "_atelier_handler"


def resolve_level(log_level: str) -> int:
    """Translate a level name (including TRACE) into a numeric level."""
    level_upper = log_level.upper()
    if level_upper == "TRACE":
        return TRACE
    return getattr(logging, level_upper, logging.INFO)


def configure_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    console: Optional[Console] = None,
) -> None:
    """Install Atelier's console and file handlers.

    Safe to call more than once; handlers installed by an earlier call are
    replaced rather than duplicated.

    Args:
        log_level: Level for atelier loggers (TRACE, DEBUG, INFO, ...)
        log_file: Optional path for a plain-text log file
        console: Rich console for the console handler (stderr by default)
    """
    level = resolve_level(log_level)
    root = logging.getLogger("atelier")

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    setattr(console_handler, _HANDLER_MARKER, True)
    root.addHandler(console_handler)

    effective_level = level
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        file_handler.setLevel(min(level, logging.INFO))
        setattr(file_handler, _HANDLER_MARKER, True)
        root.addHandler(file_handler)
        # Let the file handler see INFO even when the console is quieter
        effective_level = min(level, logging.INFO)

    root.setLevel(effective_level)
    root.propagate = False

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def truncate(text: str, max_len: int = 80) -> str:
    """Collapse newlines and truncate with an ellipsis."""
    text = text.replace("\n", " ").strip()
    if len(text) <= max_len:
        return text
    return f"{text[:max_len]}..."


def format_args(args: Dict[str, Any], max_items: int = 3) -> str:
    """Compact ``k=v`` preview of tool arguments."""
    args_str = ", ".join(
        f"{k}={truncate(str(v), 30)}" for k, v in list(args.items())[:max_items]
    )
    if len(args) > max_items:
        args_str += f", +{len(args) - max_items} more"
    return args_str
