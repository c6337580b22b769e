"""
Custom exceptions for telephony API integration
"""

from call_intelligence.exceptions import CallIntelligenceError


class TelephonyAPIError(CallIntelligenceError):
    """
    Base exception for telephony API errors
    """
    def __init__(self, message: str, status_code: int = None, response_data: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class AuthenticationError(TelephonyAPIError):
    """
    Raised when credentials are missing or rejected
    """
    pass


class RateLimitError(TelephonyAPIError):
    """
    Raised when API rate limit is exceeded
    """
    def __init__(self, message: str, retry_after: float = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class CallNotFoundError(TelephonyAPIError):
    """
    Raised when a call cannot be found
    """
    pass
