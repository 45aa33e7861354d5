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

"""Tests for the error taxonomy and ErrorHandler."""

import logging

import pytest

from atelier.core.errors import (
    AtelierError,
    ConfigurationError,
    ErrorCategory,
    ErrorHandler,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderError,
    ProviderInvalidResponseError,
    ProviderNotFoundError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    ToolNotFoundError,
    ToolValidationError,
    classify_provider_exception,
)


class FakeAPIStatusError(Exception):
    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class APITimeoutError(Exception):
    pass


class APIConnectionError(Exception):
    pass


class TestAtelierError:
    """Tests for the base exception."""

    def test_defaults_and_correlation_id(self):
        cause = RuntimeError("raw")
        error = AtelierError("boom", category=ErrorCategory.NETWORK_ERROR, recovery_hint="retry", cause=cause)

        assert error.category == ErrorCategory.NETWORK_ERROR
        assert error.recovery_hint == "retry"
        assert error.cause is cause
        assert len(error.correlation_id) == 8
        assert AtelierError("other").correlation_id != error.correlation_id

    def test_str_is_message(self):
        assert str(ConfigurationError("bad value", config_key="x")) == "bad value"

    def test_tool_not_found_message(self):
        error = ToolNotFoundError("make_coffee")
        assert error.message == "Unknown tool: make_coffee"
        assert error.category == ErrorCategory.TOOL_NOT_FOUND
        assert error.details["tool_name"] == "make_coffee"

    def test_provider_not_found_lists_available(self):
        error = ProviderNotFoundError("x", available_providers=["openai"])
        assert "Available: openai" in error.message
        assert error.category == ErrorCategory.PROVIDER_UNAVAILABLE

    def test_validation_error_keeps_invalid_args(self):
        error = ToolValidationError("bad", tool_name="t", invalid_args=["name"])
        assert error.invalid_args == ["name"]


class TestClassifyProviderException:
    """Tests for classify_provider_exception."""

    @pytest.mark.parametrize(
        "error, expected",
        [
            (FakeAPIStatusError("invalid key", 401), ProviderAuthError),
            (FakeAPIStatusError("slow down", 429), ProviderRateLimitError),
            (APITimeoutError("took too long"), ProviderTimeoutError),
            (APIConnectionError("refused"), ProviderConnectionError),
            (KeyError("choices"), ProviderInvalidResponseError),
            (RuntimeError("something else"), ProviderError),
        ],
    )
    def test_classification(self, error, expected):
        classified = classify_provider_exception(error, provider="openai", model="gpt-4o")
        assert type(classified) is expected
        assert classified.provider == "openai"

    def test_provider_errors_pass_through(self):
        original = ProviderAuthError("nope", provider="openai")
        assert classify_provider_exception(original) is original

    def test_cause_is_preserved(self):
        raw = RuntimeError("raw")
        assert classify_provider_exception(raw).cause is raw


class TestErrorHandler:
    """Tests for ErrorHandler."""

    def test_handle_atelier_error(self, caplog):
        handler = ErrorHandler(logger_name="atelier.test")
        error = ProviderAuthError("bad key", provider="openai")

        with caplog.at_level(logging.ERROR, logger="atelier.test"):
            info = handler.handle(error, context={"stage": "chat"})

        assert info.category == ErrorCategory.PROVIDER_AUTH
        assert info.correlation_id == error.correlation_id
        assert info.details["stage"] == "chat"
        assert info.details["provider"] == "openai"
        assert error.correlation_id in caplog.text

    def test_handle_plain_exception_is_categorized(self):
        handler = ErrorHandler()
        info = handler.handle(ValueError("bad input"))

        assert info.category == ErrorCategory.VALIDATION_ERROR
        assert info.exception_type == "ValueError"
        assert info.recovery_hint

    def test_unrecognized_exception_is_unknown(self):
        info = ErrorHandler().handle(RuntimeError(""))

        assert info.category == ErrorCategory.UNKNOWN
        assert info.message == "RuntimeError"
        assert info.recovery_hint is None

    def test_log_level_and_hint_in_summary_line(self, caplog):
        handler = ErrorHandler(logger_name="atelier.test")

        with caplog.at_level(logging.WARNING, logger="atelier.test"):
            handler.handle(ProviderRateLimitError("limited", retry_after=30), log_level=logging.WARNING)

        record = next(r for r in caplog.records if r.name == "atelier.test")
        assert record.levelno == logging.WARNING
        assert "provider_rate_limit: limited" in record.getMessage()
        assert "hint: Wait 30 seconds" in record.getMessage()

    def test_traceback_logged_at_debug(self, caplog):
        handler = ErrorHandler(logger_name="atelier.test")
        try:
            raise KeyError("api_key")
        except KeyError as e:
            with caplog.at_level(logging.DEBUG, logger="atelier.test"):
                info = handler.handle(e)

        debug_lines = [r.getMessage() for r in caplog.records if r.levelno == logging.DEBUG]
        assert any(line.startswith(f"[{info.correlation_id}] Traceback:") for line in debug_lines)
