"""Specific error types for cypher_builder."""

from .base import (
    ApplicationError,
    ConnectionErrorDetails,
    ErrorCode,
    ErrorLevel,
    QueryErrorDetails,
)


class QueryBuildError(ApplicationError):
    """A statement is malformed and cannot be compiled or executed."""

    def __init__(
        self,
        message: str,
        details: QueryErrorDetails | None = None,
        code: ErrorCode = ErrorCode.QUERY_BUILD,
    ):
        super().__init__(
            message=message,
            code=code,
            level=ErrorLevel.ERROR,
            details=details or QueryErrorDetails(source="query_builder", operation="build"),
        )


class ConnectionClosedError(ApplicationError):
    """An operation needed an open connection but it has been closed."""

    def __init__(self, message: str, details: ConnectionErrorDetails | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.CONNECTION_CLOSED,
            level=ErrorLevel.ERROR,
            details=details or ConnectionErrorDetails(source="connection", operation="run"),
        )
