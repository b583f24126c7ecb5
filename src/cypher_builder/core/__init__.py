from .base import (
    ApplicationError,
    ConnectionErrorDetails,
    ErrorCode,
    ErrorDetails,
    ErrorLevel,
    QueryErrorDetails,
)
from .errors import ConnectionClosedError, QueryBuildError
