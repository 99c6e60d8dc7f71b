"""
Error classification for DeepSource API calls.

Turns transport, HTTP and GraphQL failures into a ``ClassifiedError`` with
a stable message and category, and decides when an upstream failure
really means "nothing there" and should become an empty result.

Classification keys off message substrings such as ``"NoneType"`` and
``"not found"``. The upstream API exposes no structured error codes for
these conditions, so the substring policy is kept as-is.
"""

from typing import Any, Iterable, List, Optional, Tuple, TypeVar

import httpx
from loguru import logger

from .constants import SENTINELS
from .exceptions import ClassifiedError, ErrorCategory


R = TypeVar("R")

# Checked in order; first match wins
_CATEGORY_PATTERNS: Tuple[Tuple[ErrorCategory, Tuple[str, ...]], ...] = (
    (ErrorCategory.AUTH, (
        "authentication", "unauthorized", "access denied", "not authorized",
        "forbidden", "token", "api key",
    )),
    (ErrorCategory.RATE_LIMIT, ("rate limit", "too many requests", "throttled")),
    (ErrorCategory.NETWORK, ("network", "connection", "econnreset", "econnrefused")),
    (ErrorCategory.TIMEOUT, ("timeout", "timed out", "etimedout")),
    (ErrorCategory.SCHEMA, (
        "cannot query field", "unknown argument", "unknown type", "field not defined",
    )),
    (ErrorCategory.NOT_FOUND, ("not found", "nonetype", "does not exist")),
    (ErrorCategory.SERVER, ("server error", "internal error", "500")),
)


def is_error_with_message(error: Any) -> bool:
    """Check that ``error`` is an exception carrying a string message."""
    return isinstance(error, BaseException) and isinstance(get_error_message(error), str)


def get_error_message(error: Any) -> str:
    """Best-effort message for any raised value."""
    if isinstance(error, ClassifiedError):
        return error.message
    if isinstance(error, BaseException):
        return str(error)
    return ""


def categorize_message(message: str, default: ErrorCategory = ErrorCategory.UNKNOWN) -> ErrorCategory:
    """Assign a category from known message patterns."""
    lowered = message.lower()
    for category, patterns in _CATEGORY_PATTERNS:
        if any(pattern in lowered for pattern in patterns):
            return category
    return default


def graphql_error_messages(errors: Any) -> List[str]:
    """
    Extract ``message`` from each GraphQL error entry.

    Entries without a string message contribute an empty string so the
    positions of the remaining messages are kept.
    """
    if not isinstance(errors, list):
        return []
    return [
        entry["message"] if isinstance(entry, dict) and isinstance(entry.get("message"), str) else ""
        for entry in errors
    ]


def _response_graphql_errors(response: Optional[httpx.Response]) -> Optional[List[str]]:
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict) or not isinstance(body.get("errors"), list):
        return None
    return graphql_error_messages(body["errors"])


def _error_texts(error: Any) -> Iterable[str]:
    yield get_error_message(error)
    if isinstance(error, httpx.HTTPStatusError):
        yield from _response_graphql_errors(error.response) or []


def is_none_type_error(error: Any) -> bool:
    """Upstream null-dereference, e.g. ``'NoneType' object has no attribute 'get'``."""
    return any(SENTINELS.NONE_TYPE in text for text in _error_texts(error))


def is_not_found_error(error: Any) -> bool:
    return any(SENTINELS.NOT_FOUND in text.lower() for text in _error_texts(error))


def _classify_status(error: httpx.HTTPStatusError) -> ClassifiedError:
    status = error.response.status_code
    metadata = {"status": status}

    if status == 401:
        return ClassifiedError(
            "Authentication error: Invalid or expired API key",
            ErrorCategory.AUTH, error, metadata,
        )
    if status == 429:
        return ClassifiedError(
            "Rate limit exceeded: Too many requests to DeepSource API",
            ErrorCategory.RATE_LIMIT, error, metadata,
        )
    if status >= 500:
        return ClassifiedError(
            f"Server error ({status}): DeepSource API server error",
            ErrorCategory.SERVER, error, metadata,
        )
    if status == 404:
        return ClassifiedError(
            "Not found (404): The requested resource was not found",
            ErrorCategory.NOT_FOUND, error, metadata,
        )
    if 400 <= status < 500:
        reason = error.response.reason_phrase or "Bad request"
        return ClassifiedError(
            f"Client error ({status}): {reason}",
            ErrorCategory.CLIENT, error, metadata,
        )
    return ClassifiedError(
        f"DeepSource API error: {get_error_message(error)}",
        categorize_message(get_error_message(error)), error, metadata,
    )


def classify_error(error: Any) -> ClassifiedError:
    """
    Normalize any raised value into a ClassifiedError.

    Order:
        1. Already classified errors pass through.
        2. HTTP errors carrying a GraphQL ``errors`` payload.
        3. Connection and timeout failures.
        4. HTTP status codes (401, 429, 5xx, 404, other 4xx).
        5. Any other exception.
        6. Non-exception values.
    """
    if isinstance(error, ClassifiedError):
        return error

    if isinstance(error, httpx.HTTPStatusError):
        messages = _response_graphql_errors(error.response)
        if messages is not None:
            joined = ", ".join(messages)
            return ClassifiedError(
                f"GraphQL Error: {joined}",
                categorize_message(joined, default=ErrorCategory.GRAPHQL),
                error,
                {"status": error.response.status_code},
            )
        return _classify_status(error)

    if isinstance(error, httpx.TimeoutException):
        return ClassifiedError(
            "Timeout error: DeepSource API request timed out",
            ErrorCategory.TIMEOUT, error,
        )

    if isinstance(error, (httpx.ConnectError, httpx.NetworkError, ConnectionError)):
        return ClassifiedError(
            "Connection error: Unable to connect to DeepSource API",
            ErrorCategory.NETWORK, error,
        )

    if isinstance(error, TimeoutError):
        return ClassifiedError(
            "Timeout error: DeepSource API request timed out",
            ErrorCategory.TIMEOUT, error,
        )

    if isinstance(error, BaseException):
        message = get_error_message(error)
        return ClassifiedError(
            f"DeepSource API error: {message}",
            categorize_message(message),
            error,
        )

    return ClassifiedError(
        "Unknown error occurred while communicating with DeepSource API",
        ErrorCategory.UNKNOWN,
        error,
    )


def recover_or_raise(
    error: BaseException,
    empty: R,
    operation: str,
    tolerate_not_found: bool = False,
) -> R:
    """
    Return ``empty`` for upstream "absent object" failures, else raise.

    ``NoneType`` failures always map to ``empty``. ``not found`` failures do
    so only when ``tolerate_not_found`` is set, which lookup-by-identifier
    operations use.

    Raises:
        ClassifiedError: For every other failure
    """
    if is_none_type_error(error):
        logger.info(f"{operation}: upstream returned no object, treating as empty")
        return empty
    if tolerate_not_found and is_not_found_error(error):
        logger.info(f"{operation}: resource not found, returning empty result")
        return empty
    classified = classify_error(error)
    if classified is error:
        raise classified
    raise classified from error
