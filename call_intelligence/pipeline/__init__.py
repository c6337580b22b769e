"""
Pipeline orchestration package
"""

from .analysis_service import CallAnalysisService, AnalysisOutcome
from .digest_service import DigestService, DigestOutcome

__all__ = [
    'CallAnalysisService',
    'AnalysisOutcome',
    'DigestService',
    'DigestOutcome'
]
