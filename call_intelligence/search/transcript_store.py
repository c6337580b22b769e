"""
Transcript Store
Persistence, chronological indexing and keyword search for call transcripts
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional, Callable

from call_intelligence.exceptions import KeyValueStoreError
from call_intelligence.insights.cache import TRANSCRIPT_INDEX, TRANSCRIPT_TTL, transcript_key
from call_intelligence.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 50
DEFAULT_RECENT_LIMIT = 20
SEARCH_BATCH_SIZE = 20
SEARCH_SCAN_LIMIT = 500
EXCERPT_CONTEXT = 80
ELLIPSIS = '...'


def count_words(text: str) -> int:
    """Number of whitespace-delimited tokens longer than one character"""
    return len([token for token in text.split() if len(token) > 1])


def _date_to_epoch(value: str) -> int:
    """ISO date or datetime string to unix seconds; naive values are UTC"""
    parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


@dataclass
class StoredTranscript:
    """Transcript record, one per call"""
    call_id: int
    agent_name: str
    contact_name: str
    duration: int
    direction: str
    started_at: int
    transcript: str
    word_count: int
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoredTranscript":
        return cls(
            call_id=int(data['call_id']),
            agent_name=data['agent_name'],
            contact_name=data['contact_name'],
            duration=int(data['duration']),
            direction=data['direction'],
            started_at=int(data['started_at']),
            transcript=data['transcript'],
            word_count=int(data['word_count']),
            created_at=data['created_at']
        )

    def summary(self) -> Dict[str, Any]:
        """Record without the transcript body, for listings"""
        data = self.to_dict()
        del data['transcript']
        return data


@dataclass
class TranscriptSearchResult:
    """Search hit with an excerpt around the first match"""
    call_id: int
    agent_name: str
    contact_name: str
    duration: int
    direction: str
    started_at: int
    excerpt: str
    match_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SearchOptions:
    """Optional search filters; dates are ISO strings and to_date is inclusive"""
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    agent_name: Optional[str] = None
    direction: Optional[str] = None
    limit: int = DEFAULT_SEARCH_LIMIT


@dataclass
class StoreOutcome:
    """Result of a best-effort store: degraded when persistence was skipped"""
    call_id: int
    stored: bool
    word_count: int = 0
    reason: Optional[str] = None
    index_updated: bool = field(default=False)

    @property
    def degraded(self) -> bool:
        return not (self.stored and self.index_updated)


class TranscriptStore:
    """
    Durable, searchable storage of call transcripts

    Keyword search is a scan-and-filter over the chronological index rather
    than an inverted index, bounded to SEARCH_SCAN_LIMIT ids when no date
    range is given.
    """

    def __init__(
        self,
        kv_store: Optional[KeyValueStore],
        ttl_seconds: int = TRANSCRIPT_TTL,
        batch_size: int = SEARCH_BATCH_SIZE,
        scan_limit: int = SEARCH_SCAN_LIMIT,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize transcript store

        Args:
            kv_store: Key-value store, or None when persistence is unavailable
            ttl_seconds: Retention window for transcript records
            batch_size: Number of candidate records fetched concurrently during search
            scan_limit: Maximum candidate ids scanned by an undated search
            clock: Returns the current UTC datetime
        """
        self.kv = kv_store
        self.ttl_seconds = ttl_seconds
        self.batch_size = batch_size
        self.scan_limit = scan_limit
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def store(
        self,
        call_id: int,
        metadata: Dict[str, Any],
        transcript_text: str
    ) -> StoreOutcome:
        """
        Store a transcript and add it to the chronological index

        Never raises for persistence or metadata problems: the returned outcome is
        degraded instead, so call handling is never blocked.

        Args:
            call_id: Telephony call id
            metadata: agent_name, contact_name, duration, direction, started_at
            transcript_text: Full transcript body

        Returns:
            StoreOutcome
        """
        word_count = count_words(transcript_text)

        if self.kv is None:
            logger.warning(f"Key-value store not available, skipping transcript storage for call {call_id}")
            return StoreOutcome(call_id=call_id, stored=False, word_count=word_count,
                                reason='store_unavailable')

        try:
            record = StoredTranscript(
                call_id=call_id,
                agent_name=metadata.get('agent_name') or 'Agent',
                contact_name=metadata.get('contact_name') or 'Contact',
                duration=int(metadata.get('duration') or 0),
                direction=metadata.get('direction') or 'inbound',
                started_at=int(metadata['started_at']),
                transcript=transcript_text,
                word_count=word_count,
                created_at=self.clock().isoformat()
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Invalid metadata for call {call_id}, skipping transcript storage: {e}")
            return StoreOutcome(call_id=call_id, stored=False, word_count=word_count,
                                reason='invalid_metadata')

        try:
            self.kv.set(transcript_key(call_id), record.to_dict(), self.ttl_seconds)
        except KeyValueStoreError as e:
            logger.error(f"Failed to store transcript for call {call_id}: {e}")
            return StoreOutcome(call_id=call_id, stored=False, word_count=word_count,
                                reason='write_failed')

        try:
            self.kv.zadd(TRANSCRIPT_INDEX, str(call_id), record.started_at)
        except KeyValueStoreError as e:
            # Record is persisted but unsearchable until stored again
            logger.error(f"Failed to index transcript for call {call_id}: {e}")
            return StoreOutcome(call_id=call_id, stored=True, word_count=word_count,
                                reason='index_failed')

        logger.info(f"Stored transcript for call {call_id} ({word_count} words)")
        return StoreOutcome(call_id=call_id, stored=True, word_count=word_count, index_updated=True)

    def fetch_by_id(self, call_id: int) -> Optional[StoredTranscript]:
        """Get a single transcript by call id, None when absent or unreadable"""
        if self.kv is None:
            return None

        try:
            data = self.kv.get(transcript_key(call_id))
        except KeyValueStoreError as e:
            logger.warning(f"Failed to fetch transcript {call_id}: {e}")
            return None

        if data is None:
            return None

        try:
            return StoredTranscript.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed transcript record {call_id}: {e}")
            return None

    def count(self) -> int:
        """Total number of indexed transcripts"""
        if self.kv is None:
            return 0

        try:
            return self.kv.zcard(TRANSCRIPT_INDEX)
        except KeyValueStoreError as e:
            logger.warning(f"Failed to count transcripts: {e}")
            return 0

    def _candidate_ids(self, options: SearchOptions) -> List[str]:
        if options.from_date or options.to_date:
            min_score = _date_to_epoch(options.from_date) if options.from_date else 0
            if options.to_date:
                # Ceiling of the whole end day
                max_score = _date_to_epoch(options.to_date) + 86400
            else:
                max_score = int(self.clock().timestamp())

            call_ids = self.kv.zrange_by_score(TRANSCRIPT_INDEX, min_score, max_score)
            call_ids.reverse()
            return call_ids

        return self.kv.zrevrange(TRANSCRIPT_INDEX, 0, self.scan_limit - 1)

    def _fetch_batch(self, executor: ThreadPoolExecutor, call_ids: List[str]) -> List[Optional[StoredTranscript]]:
        return list(executor.map(lambda call_id: self.fetch_by_id(int(call_id)), call_ids))

    def search(self, keyword: str, options: Optional[SearchOptions] = None) -> List[TranscriptSearchResult]:
        """
        Search transcripts by keyword

        Candidates are scanned most recent first in batches, and the hits are
        ranked by match count (most mentions first). Unreadable candidates are
        skipped.

        Args:
            keyword: Case-insensitive search term
            options: Date range, agent/direction filters and result limit

        Returns:
            List of search results, possibly empty
        """
        if self.kv is None:
            return []

        options = options or SearchOptions()
        limit = options.limit or DEFAULT_SEARCH_LIMIT
        keyword_lower = keyword.lower()

        try:
            call_ids = self._candidate_ids(options)
        except KeyValueStoreError as e:
            logger.error(f"Transcript search failed to read index: {e}")
            return []

        if not call_ids:
            return []

        results: List[TranscriptSearchResult] = []

        with ThreadPoolExecutor(max_workers=self.batch_size) as executor:
            for start in range(0, len(call_ids), self.batch_size):
                if len(results) >= limit:
                    break

                batch = call_ids[start:start + self.batch_size]
                for record in self._fetch_batch(executor, batch):
                    if record is None:
                        continue

                    if options.agent_name and record.agent_name != options.agent_name:
                        continue
                    if options.direction and record.direction != options.direction:
                        continue

                    result = self._match(record, keyword, keyword_lower)
                    if result is None:
                        continue

                    results.append(result)
                    if len(results) >= limit:
                        break

        results.sort(key=lambda r: r.match_count, reverse=True)
        return results

    def _match(self, record: StoredTranscript, keyword: str,
               keyword_lower: str) -> Optional[TranscriptSearchResult]:
        text = record.transcript
        text_lower = text.lower()

        first_match = text_lower.find(keyword_lower)
        if first_match == -1:
            return None

        match_count = 0
        position = 0
        while position < len(text_lower):
            found = text_lower.find(keyword_lower, position)
            if found == -1:
                break
            match_count += 1
            position = found + 1

        excerpt_start = max(0, first_match - EXCERPT_CONTEXT)
        excerpt_end = min(len(text), first_match + len(keyword) + EXCERPT_CONTEXT)
        excerpt = text[excerpt_start:excerpt_end]
        if excerpt_start > 0:
            excerpt = ELLIPSIS + excerpt
        if excerpt_end < len(text):
            excerpt = excerpt + ELLIPSIS

        return TranscriptSearchResult(
            call_id=record.call_id,
            agent_name=record.agent_name,
            contact_name=record.contact_name,
            duration=record.duration,
            direction=record.direction,
            started_at=record.started_at,
            excerpt=excerpt,
            match_count=match_count
        )

    def recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> List[StoredTranscript]:
        """
        Most recent transcripts, newest first, without text filtering

        Args:
            limit: Maximum number of records

        Returns:
            List of stored transcripts
        """
        if self.kv is None or limit <= 0:
            return []

        try:
            call_ids = self.kv.zrevrange(TRANSCRIPT_INDEX, 0, limit - 1)
        except KeyValueStoreError as e:
            logger.warning(f"Failed to list recent transcripts: {e}")
            return []

        if not call_ids:
            return []

        with ThreadPoolExecutor(max_workers=min(self.batch_size, len(call_ids))) as executor:
            records = self._fetch_batch(executor, call_ids)

        return [record for record in records if record is not None]
