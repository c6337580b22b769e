"""
Transcript search package
"""

from .transcript_store import (
    TranscriptStore,
    StoredTranscript,
    TranscriptSearchResult,
    SearchOptions,
    StoreOutcome,
    count_words
)

__all__ = [
    'TranscriptStore',
    'StoredTranscript',
    'TranscriptSearchResult',
    'SearchOptions',
    'StoreOutcome',
    'count_words'
]
