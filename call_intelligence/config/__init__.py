"""
Configuration package
"""

from .settings import Settings, get_settings
from .llm_config import LLMConfig

__all__ = [
    'Settings',
    'get_settings',
    'LLMConfig'
]
