"""
Call insights package: per-call analysis, team digests and their caches
"""

from .models import CallAnalysis, TeamDigest
from .call_analyzer import CallAnalyzer
from .digest_aggregator import DigestAggregator
from .cache import AnalysisCache, DigestCache
from .llm_client import TextGenerator, OpenAITextGenerator

__all__ = [
    'CallAnalysis',
    'TeamDigest',
    'CallAnalyzer',
    'DigestAggregator',
    'AnalysisCache',
    'DigestCache',
    'TextGenerator',
    'OpenAITextGenerator'
]
