"""Tests for the error taxonomy and error handling helpers."""

import logging

import pytest

from cypher_builder.core import (
    ApplicationError,
    ConnectionClosedError,
    ConnectionErrorDetails,
    ErrorCode,
    ErrorLevel,
    QueryBuildError,
    QueryErrorDetails,
)
from cypher_builder.core.decorators import with_error_handling
from cypher_builder.core.error_context import ErrorContext, ErrorContextManager


class TestErrorTypes:
    def test_query_build_error_defaults(self) -> None:
        error = QueryBuildError("bad clause")
        assert str(error) == "bad clause"
        assert error.code == ErrorCode.QUERY_BUILD
        assert error.level == ErrorLevel.ERROR
        assert isinstance(error.details, QueryErrorDetails)

    def test_connection_closed_error(self) -> None:
        error = ConnectionClosedError("closed", ConnectionErrorDetails(source="c", operation="run", url="bolt://x"))
        assert error.code == ErrorCode.CONNECTION_CLOSED
        assert error.details.url == "bolt://x"
        assert isinstance(error, ApplicationError)

    def test_dict_details_are_converted(self) -> None:
        error = ApplicationError("oops", ErrorCode.UNKNOWN, details={"source": "tests", "operation": "check"})
        assert error.details.source == "tests"
        assert error.details.operation == "check"

    def test_missing_details(self) -> None:
        assert ApplicationError("oops", ErrorCode.UNKNOWN).details.source == "unknown"

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            (ErrorLevel.DEBUG, logging.DEBUG),
            (ErrorLevel.WARNING, logging.WARNING),
            (ErrorLevel.CRITICAL, logging.CRITICAL),
        ],
    )
    def test_error_level_mapping(self, level: ErrorLevel, expected: int) -> None:
        assert level.to_logging_level() == expected


class TestErrorContext:
    def test_application_error_details_are_prefixed(self) -> None:
        error = QueryBuildError(
            "bad",
            QueryErrorDetails(source="clauses", operation="build", clause="WHERE", argument="conditions"),
        )

        data = ErrorContext(error, trace_id="trace-1", query="q").to_dict()

        assert data["error_type"] == "QueryBuildError"
        assert data["error_code"] == "2001"
        assert data["trace_id"] == "trace-1"
        assert data["details.clause"] == "WHERE"
        assert data["details.argument"] == "conditions"
        assert data["context.query"] == "q"

    def test_plain_exceptions(self) -> None:
        data = ErrorContext(ValueError("nope")).to_dict()
        assert data["error_message"] == "nope"
        assert "error_code" not in data

    def test_manager_does_not_swallow(self) -> None:
        error = ValueError("nope")
        with pytest.raises(ValueError), ErrorContextManager(error) as ctx:
            assert ctx.error is error
            raise error


class TestWithErrorHandling:
    def test_sync_error_is_reraised_unchanged(self) -> None:
        error = KeyError("missing")

        @with_error_handling()
        def fail() -> None:
            raise error

        with pytest.raises(KeyError) as exc_info:
            fail()
        assert exc_info.value is error

    async def test_async_error_is_reraised_unchanged(self) -> None:
        error = QueryBuildError("bad")

        @with_error_handling(error_level=ErrorLevel.WARNING)
        async def fail() -> None:
            raise error

        with pytest.raises(QueryBuildError) as exc_info:
            await fail()
        assert exc_info.value is error

    async def test_results_pass_through(self) -> None:
        @with_error_handling()
        async def answer(value: int) -> int:
            return value * 2

        assert await answer(21) == 42
        assert answer.__name__ == "answer"

    def test_reraise_false_returns_none(self) -> None:
        @with_error_handling(reraise=False)
        def fail() -> int:
            raise RuntimeError("boom")

        assert fail() is None
