"""
Core Package - Evaluation Console
eval_console/core/__init__.py

Core infrastructure: auth context, exceptions, logging setup.
"""

from eval_console.core.auth import AuthContext
from eval_console.core.exceptions import (
    AdminApiException,
    ApiConnectionException,
    ApiRequestException,
    ApiResponseException,
    AuthenticationRequiredException,
    InvalidTransitionException,
)

__all__ = [
    # Auth
    "AuthContext",
    # Exceptions
    "AdminApiException",
    "ApiConnectionException",
    "ApiRequestException",
    "ApiResponseException",
    "AuthenticationRequiredException",
    "InvalidTransitionException",
]
