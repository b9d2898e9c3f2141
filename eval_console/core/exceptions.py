"""
Custom Exceptions - Evaluation Console
eval_console/core/exceptions.py

Exception classes for admin API calls and navigation misuse.
"""

from typing import Optional


class AdminApiException(Exception):
    """Base exception for admin API operations."""

    pass


class ApiRequestException(AdminApiException):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail or f"HTTP {status_code}"
        super().__init__(self.detail)


class ApiConnectionException(AdminApiException):
    """The API could not be reached (DNS, refused connection, timeout)."""

    def __init__(self, message: str = "Admin API unreachable"):
        self.message = message
        super().__init__(message)


class ApiResponseException(AdminApiException):
    """The API answered 2xx but the body did not match the expected shape."""

    def __init__(self, message: str = "Unexpected response from admin API"):
        self.message = message
        super().__init__(message)


class AuthenticationRequiredException(AdminApiException):
    """No admin token is available for an authenticated call."""

    def __init__(self, message: str = "Admin authentication required"):
        self.message = message
        super().__init__(message)


class InvalidTransitionException(Exception):
    """A navigation action was requested from a level that does not allow it."""

    def __init__(self, level: str, action: str):
        self.level = level
        self.action = action
        super().__init__(f"Cannot {action} from navigation level '{level}'")
