"""
Telephony integration package
"""

from .models import TelephonyCall, CallSource
from .aircall_client import AircallClient
from .exceptions import (
    TelephonyAPIError,
    AuthenticationError,
    RateLimitError,
    CallNotFoundError
)

__all__ = [
    'TelephonyCall',
    'CallSource',
    'AircallClient',
    'TelephonyAPIError',
    'AuthenticationError',
    'RateLimitError',
    'CallNotFoundError'
]
