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

"""Centralized error handling for Atelier.

This module provides:
- Exception types for provider, tool and configuration failures
- Classification of raw SDK/transport exceptions into provider errors
- ErrorHandler, which logs a failure once with a correlation id

Only the orchestration core raises these. Everything below the orchestrator
absorbs them into structured results, so callers of ``AgentOrchestrator.chat``
never see them directly.
"""

from __future__ import annotations

import logging
import traceback
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


def _new_correlation_id() -> str:
    return uuid.uuid4().hex[:8]


# =============================================================================
# Error Categories
# =============================================================================


class ErrorCategory(Enum):
    """Where a failure came from; drives the recovery hint and log prefix."""

    PROVIDER_CONNECTION = "provider_connection"
    PROVIDER_AUTH = "provider_auth"
    PROVIDER_RATE_LIMIT = "provider_rate_limit"
    PROVIDER_INVALID_RESPONSE = "provider_invalid_response"
    PROVIDER_UNAVAILABLE = "provider_unavailable"

    TOOL_NOT_FOUND = "tool_not_found"
    TOOL_EXECUTION = "tool_execution"
    TOOL_VALIDATION = "tool_validation"

    CONFIG_INVALID = "config_invalid"
    CONFIG_MISSING = "config_missing"

    NETWORK_ERROR = "network_error"
    VALIDATION_ERROR = "validation_error"
    UNKNOWN = "unknown"


# =============================================================================
# Exception Types
# =============================================================================


class AtelierError(Exception):
    """Base exception for all Atelier errors.

    Args:
        message: Human-readable description, also the ``str()`` of the error
        category: ErrorCategory used when the error is logged
        details: Structured context (tool name, provider, config key, ...)
        recovery_hint: What the user can do about it, if anything
        correlation_id: Id shared by every log line about this failure
        cause: Underlying exception, when this one wraps another
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        details: Optional[Dict[str, Any]] = None,
        recovery_hint: Optional[str] = None,
        correlation_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.details = details or {}
        self.recovery_hint = recovery_hint
        self.correlation_id = correlation_id or _new_correlation_id()
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class ProviderError(AtelierError):
    """Errors related to language-model providers."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("category", ErrorCategory.NETWORK_ERROR)
        super().__init__(message, **kwargs)
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.details["provider"] = provider
        self.details["model"] = model
        if status_code is not None:
            self.details["status_code"] = status_code


class ProviderConnectionError(ProviderError):
    """Provider connection failures."""

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs: Any):
        super().__init__(
            message,
            provider=provider,
            category=ErrorCategory.PROVIDER_CONNECTION,
            recovery_hint="Check network connection and provider status.",
            **kwargs,
        )


class ProviderAuthError(ProviderError):
    """Provider authentication failures."""

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs: Any):
        super().__init__(
            message,
            provider=provider,
            category=ErrorCategory.PROVIDER_AUTH,
            recovery_hint="Check your API key. Ensure it is set in the environment or api_keys.yaml.",
            **kwargs,
        )


class ProviderRateLimitError(ProviderError):
    """Provider rate limit exceeded."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        retry_after: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(
            message,
            provider=provider,
            category=ErrorCategory.PROVIDER_RATE_LIMIT,
            recovery_hint=(
                f"Wait {retry_after} seconds before retrying."
                if retry_after
                else "Wait and retry later, or switch to a different provider."
            ),
            **kwargs,
        )
        self.retry_after = retry_after
        self.details["retry_after"] = retry_after


class ProviderTimeoutError(ProviderError):
    """Provider request timeout."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ):
        super().__init__(
            message,
            provider=provider,
            category=ErrorCategory.PROVIDER_CONNECTION,
            recovery_hint=(
                f"Request timed out after {timeout} seconds. Try increasing request_timeout."
                if timeout
                else "Request timed out. Check provider status and network connection."
            ),
            **kwargs,
        )
        self.timeout = timeout
        self.details["timeout"] = timeout


class ProviderNotFoundError(ProviderError):
    """Provider not registered or not available."""

    def __init__(
        self,
        provider: str,
        available_providers: Optional[List[str]] = None,
        **kwargs: Any,
    ):
        message = f"Provider not available: {provider}"
        if available_providers:
            message += f". Available: {', '.join(available_providers)}"
        super().__init__(
            message,
            provider=provider,
            category=ErrorCategory.PROVIDER_UNAVAILABLE,
            recovery_hint="Check provider name spelling and that its API key is configured.",
            **kwargs,
        )
        self.available_providers = available_providers or []
        self.details["available_providers"] = self.available_providers


class ProviderInvalidResponseError(ProviderError):
    """Provider returned an invalid or unexpected response."""

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs: Any):
        super().__init__(
            message,
            provider=provider,
            category=ErrorCategory.PROVIDER_INVALID_RESPONSE,
            recovery_hint="The provider returned an unexpected response. Try again or use a different provider.",
            **kwargs,
        )


class ToolError(AtelierError):
    """Errors related to tool execution."""

    def __init__(
        self,
        message: str,
        tool_name: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.tool_name = tool_name
        self.details["tool_name"] = tool_name


class ToolNotFoundError(ToolError):
    """Tool requested by a provider is not registered.

    This is a contract violation between an adapter and the registry, so it
    fails the whole turn instead of becoming a per-tool soft failure.
    """

    def __init__(self, tool_name: str, **kwargs: Any):
        super().__init__(
            f"Unknown tool: {tool_name}",
            tool_name=tool_name,
            category=ErrorCategory.TOOL_NOT_FOUND,
            recovery_hint="The provider requested a tool that is not in the registry.",
            **kwargs,
        )


class ToolExecutionError(ToolError):
    """Tool execution failures raised by tool implementations."""

    def __init__(
        self,
        message: str,
        tool_name: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(
            message,
            tool_name=tool_name,
            category=ErrorCategory.TOOL_EXECUTION,
            **kwargs,
        )


class ToolValidationError(ToolError):
    """Tool argument validation failures."""

    def __init__(
        self,
        message: str,
        tool_name: Optional[str] = None,
        invalid_args: Optional[List[str]] = None,
        **kwargs: Any,
    ):
        super().__init__(
            message,
            tool_name=tool_name,
            category=ErrorCategory.TOOL_VALIDATION,
            recovery_hint="Check the required arguments for this tool.",
            **kwargs,
        )
        self.invalid_args = invalid_args or []
        self.details["invalid_args"] = self.invalid_args


class ConfigurationError(AtelierError):
    """Configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(
            message,
            category=ErrorCategory.CONFIG_INVALID,
            **kwargs,
        )
        self.config_key = config_key
        self.details["config_key"] = config_key


# =============================================================================
# Provider exception classification
# =============================================================================


def classify_provider_exception(
    error: BaseException,
    provider: Optional[str] = None,
    model: Optional[str] = None,
) -> ProviderError:
    """Convert a raw SDK or transport exception into a ProviderError.

    Works on the exception's class name and ``status_code`` attribute so it
    covers both the OpenAI and Anthropic SDKs without importing either.

    Args:
        error: Exception raised while talking to a backend
        provider: Provider id for error details
        model: Model name for error details

    Returns:
        The matching ProviderError subclass (never raises)
    """
    if isinstance(error, ProviderError):
        return error

    error_msg = str(error) or type(error).__name__
    type_name = type(error).__name__.lower()
    status_code = getattr(error, "status_code", None)
    lowered = error_msg.lower()

    if "timeout" in type_name or isinstance(error, TimeoutError):
        return ProviderTimeoutError(
            f"Request timed out: {error_msg}", provider=provider, model=model, cause=error
        )
    if status_code in (401, 403) or "authentication" in type_name or "api_key" in lowered:
        return ProviderAuthError(
            f"Authentication failed: {error_msg}",
            provider=provider,
            model=model,
            status_code=status_code,
            cause=error,
        )
    if status_code == 429 or "ratelimit" in type_name or "rate_limit" in lowered:
        return ProviderRateLimitError(
            f"Rate limit exceeded: {error_msg}",
            provider=provider,
            model=model,
            status_code=status_code,
            cause=error,
        )
    if "connection" in type_name or isinstance(error, ConnectionError):
        return ProviderConnectionError(
            f"Connection failed: {error_msg}", provider=provider, model=model, cause=error
        )
    if isinstance(error, (KeyError, IndexError, AttributeError, ValueError)):
        return ProviderInvalidResponseError(
            f"Malformed response: {error_msg}", provider=provider, model=model, cause=error
        )
    return ProviderError(
        error_msg, provider=provider, model=model, status_code=status_code, cause=error
    )



# =============================================================================
# Error Handler
# =============================================================================


@dataclass(frozen=True)
class ErrorInfo:
    """What ErrorHandler logged about one failure."""

    message: str
    category: ErrorCategory
    correlation_id: str
    details: Dict[str, Any] = field(default_factory=dict)
    recovery_hint: Optional[str] = None
    exception_type: str = ""


# Categories for exceptions that are not AtelierErrors, checked in order.
_BUILTIN_CATEGORIES: Tuple[Tuple[Tuple[type, ...], ErrorCategory, Optional[str]], ...] = (
    ((ConnectionError, TimeoutError), ErrorCategory.NETWORK_ERROR, "Check network connection."),
    ((ValueError, TypeError), ErrorCategory.VALIDATION_ERROR, "Check input values and types."),
    ((KeyError,), ErrorCategory.CONFIG_MISSING, "Check that required configuration is set."),
)


class ErrorHandler:
    """Logs failures as one summary line each, tagged with a correlation id.

    AtelierErrors keep their own category, hint and correlation id. Any other
    exception is categorized by its builtin type. Tracebacks go to DEBUG.

    Usage:
        try:
            await provider.chat(turn, executor)
        except Exception as e:
            info = get_error_handler().handle(e, context={"provider": "openai"})
    """

    def __init__(self, logger_name: str = "atelier", include_traceback: bool = True):
        self.logger = logging.getLogger(logger_name)
        self.include_traceback = include_traceback

    def handle(
        self,
        exception: BaseException,
        context: Optional[Dict[str, Any]] = None,
        log_level: int = logging.ERROR,
    ) -> ErrorInfo:
        """Log an exception and describe it.

        Args:
            exception: The failure to report
            context: Extra details merged over the error's own details
            log_level: Level of the summary line

        Returns:
            ErrorInfo for the logged failure
        """
        info = self._describe(exception, context)

        line = f"[{info.correlation_id}] {info.category.value}: {info.message}"
        if info.details:
            line += f" | details: {info.details}"
        if info.recovery_hint:
            line += f" | hint: {info.recovery_hint}"
        self.logger.log(log_level, line)

        if self.include_traceback and exception.__traceback__ is not None:
            formatted = "".join(
                traceback.format_exception(type(exception), exception, exception.__traceback__)
            )
            self.logger.debug("[%s] Traceback:\n%s", info.correlation_id, formatted)
        return info

    @staticmethod
    def _describe(exception: BaseException, context: Optional[Dict[str, Any]]) -> ErrorInfo:
        if isinstance(exception, AtelierError):
            return ErrorInfo(
                message=exception.message,
                category=exception.category,
                correlation_id=exception.correlation_id,
                details={**exception.details, **(context or {})},
                recovery_hint=exception.recovery_hint,
                exception_type=type(exception).__name__,
            )

        category, hint = ErrorCategory.UNKNOWN, None
        for types, builtin_category, builtin_hint in _BUILTIN_CATEGORIES:
            if isinstance(exception, types):
                category, hint = builtin_category, builtin_hint
                break
        return ErrorInfo(
            message=str(exception) or type(exception).__name__,
            category=category,
            correlation_id=_new_correlation_id(),
            details=dict(context or {}),
            recovery_hint=hint,
            exception_type=type(exception).__name__,
        )


_global_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get the process-wide error handler."""
    global _global_handler
    if _global_handler is None:
        _global_handler = ErrorHandler()
    return _global_handler


__all__ = [
    "AtelierError",
    "ConfigurationError",
    "ErrorCategory",
    "ErrorHandler",
    "ErrorInfo",
    "ProviderAuthError",
    "ProviderConnectionError",
    "ProviderError",
    "ProviderInvalidResponseError",
    "ProviderNotFoundError",
    "ProviderRateLimitError",
    "ProviderTimeoutError",
    "ToolError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "ToolValidationError",
    "classify_provider_exception",
    "get_error_handler",
]
