from .response import (
    APIError,
    ErrorPayload,
    Meta,
    StandardResponse,
    make_error_response,
    make_success_response,
)

__all__ = [
    "APIError",
    "Meta",
    "ErrorPayload",
    "StandardResponse",
    "make_success_response",
    "make_error_response",
]
