"""
Cache discipline for transcripts, call analyses and team digests
Key shapes and time-to-live policy shared across the pipeline
"""

import logging
from typing import Optional

from pydantic import ValidationError

from call_intelligence.exceptions import KeyValueStoreError
from call_intelligence.insights.models import CallAnalysis, TeamDigest
from call_intelligence.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

DAY = 60 * 60 * 24

TRANSCRIPT_TTL = 90 * DAY
ANALYSIS_TTL = 7 * DAY
DIGEST_TTL = 2 * 60 * 60

TRANSCRIPT_INDEX = 'transcript_index'


def transcript_key(call_id: int) -> str:
    return f"transcript:{call_id}"


def analysis_key(call_id: int) -> str:
    return f"call_analysis:{call_id}"


def digest_key(date: str, period: str) -> str:
    """Digest key for a calendar date (YYYY-MM-DD) and period name"""
    return f"daily_digest:{date}:{period}"


class AnalysisCache:
    """
    Per-call analysis cache

    Reads and writes are best-effort: a store outage degrades to a cache miss
    on read and a logged warning on write, never an error for the caller.
    """

    def __init__(self, store: Optional[KeyValueStore], ttl_seconds: int = ANALYSIS_TTL):
        self.store = store
        self.ttl_seconds = ttl_seconds

    def get(self, call_id: int) -> Optional[CallAnalysis]:
        if self.store is None:
            return None

        try:
            cached = self.store.get(analysis_key(call_id))
        except KeyValueStoreError as e:
            logger.warning(f"Analysis cache read failed for call {call_id}, proceeding without cache: {e}")
            return None

        if cached is None:
            return None

        try:
            return CallAnalysis.model_validate(cached)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cached analysis for call {call_id}: {e}")
            return None

    def put(self, analysis: CallAnalysis) -> bool:
        if self.store is None:
            return False

        try:
            self.store.set(analysis_key(analysis.call_id), analysis.model_dump(), self.ttl_seconds)
            return True
        except KeyValueStoreError as e:
            logger.warning(f"Analysis cache write failed for call {analysis.call_id}: {e}")
            return False


class DigestCache:
    """Digest cache keyed by (calendar date, period)"""

    def __init__(self, store: Optional[KeyValueStore], ttl_seconds: int = DIGEST_TTL):
        self.store = store
        self.ttl_seconds = ttl_seconds

    def get(self, date: str, period: str) -> Optional[TeamDigest]:
        if self.store is None:
            return None

        try:
            cached = self.store.get(digest_key(date, period))
        except KeyValueStoreError as e:
            logger.warning(f"Digest cache read failed for {date}/{period}: {e}")
            return None

        if cached is None:
            return None

        try:
            return TeamDigest.model_validate(cached)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cached digest {date}/{period}: {e}")
            return None

    def put(self, date: str, period: str, digest: TeamDigest) -> bool:
        if self.store is None:
            return False

        try:
            self.store.set(digest_key(date, period), digest.model_dump(), self.ttl_seconds)
            return True
        except KeyValueStoreError as e:
            logger.warning(f"Digest cache write failed for {date}/{period}: {e}")
            return False
