"""
Digest service
Selects the meaningful calls of a period, analyses each independently and
aggregates the successful analyses into a cached team digest
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Callable, Tuple

from call_intelligence.insights.cache import DigestCache
from call_intelligence.insights.digest_aggregator import DigestAggregator
from call_intelligence.insights.models import CallAnalysis, TeamDigest
from call_intelligence.periods import local_now, period_label, validate_period
from call_intelligence.pipeline.analysis_service import CallAnalysisService
from call_intelligence.telephony.models import CallSource, TelephonyCall

logger = logging.getLogger(__name__)

NO_MEANINGFUL_CALLS_SUMMARY = "No meaningful calls (answered, {minutes}+ minutes) recorded in this period yet."
NOTHING_ANALYSED_SUMMARY = (
    "Calls were found but none could be analysed. Transcripts or recordings may not be "
    "available yet; try again shortly."
)


@dataclass
class DigestOutcome:
    digest: TeamDigest
    cached: bool
    selected: int = 0
    analysed: int = 0

    @property
    def skipped(self) -> int:
        return self.selected - self.analysed


class DigestService:
    """
    Team digest orchestration

    Each selected call goes selected -> attempted -> analysed or skipped; only
    analysed calls reach the aggregator, and a skipped call never fails the
    digest.
    """

    def __init__(
        self,
        call_source: CallSource,
        analysis_service: CallAnalysisService,
        aggregator: DigestAggregator,
        cache: DigestCache,
        max_calls: int = 20,
        min_duration: int = 120,
        max_workers: int = 4,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize digest service

        Args:
            call_source: Telephony collaborator
            analysis_service: Cache-or-compute analysis for one call
            aggregator: Digest aggregator
            cache: Digest cache keyed by (date, period)
            max_calls: Most recent meaningful calls analysed per digest
            min_duration: Minimum duration (seconds) of a meaningful call
            max_workers: Concurrent analysis attempts
            clock: Returns the current timezone-aware datetime; its calendar date keys
                the digest cache and its midnight starts the period window
        """
        self.call_source = call_source
        self.analysis_service = analysis_service
        self.aggregator = aggregator
        self.cache = cache
        self.max_calls = max_calls
        self.min_duration = min_duration
        self.max_workers = max_workers
        self.clock = clock or local_now

        logger.info(f"DigestService initialized with {max_workers} workers, {max_calls} calls per digest")

    def is_meaningful(self, call: TelephonyCall) -> bool:
        return call.duration >= self.min_duration and call.is_answered

    def select_calls(self, calls: List[TelephonyCall]) -> List[TelephonyCall]:
        """Meaningful calls, capped to the most recent max_calls"""
        meaningful = [call for call in calls if self.is_meaningful(call)]
        meaningful.sort(key=lambda call: call.started_at, reverse=True)
        return meaningful[:self.max_calls]

    def _attempt(self, call: TelephonyCall) -> CallAnalysis:
        outcome = self.analysis_service.analyse_telephony_call(call, min_duration=self.min_duration)
        return outcome.analysis

    def analyse_calls(self, calls: List[TelephonyCall]) -> List[Tuple[TelephonyCall, CallAnalysis]]:
        """
        Analyse calls concurrently; failures are logged and excluded

        Args:
            calls: Selected calls

        Returns:
            (call, analysis) pairs for the calls that were analysed, in input order
        """
        if not calls:
            return []

        analysed = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [(call, executor.submit(self._attempt, call)) for call in calls]

            for call, future in futures:
                try:
                    analysed.append((call, future.result()))
                except Exception as e:
                    logger.warning(f"Failed to analyse call {call.id}, skipping: {e}")

        logger.info(f"Analysed {len(analysed)} of {len(calls)} selected calls")
        return analysed

    @staticmethod
    def rep_names(analysed: List[Tuple[TelephonyCall, CallAnalysis]]) -> List[str]:
        """Distinct attributed reps of the analysed calls, in first-seen order"""
        names = []
        for call, _ in analysed:
            name = call.agent_name
            if name and name != 'Unknown' and name not in names:
                names.append(name)
        return names

    def get_digest(self, period: str = 'today', force_refresh: bool = False) -> DigestOutcome:
        """
        Get the team digest for a period

        Args:
            period: 'today', 'week' or 'month'
            force_refresh: Regenerate even when a cached digest exists

        Returns:
            DigestOutcome

        Raises:
            TextGenerationError, AnalysisParseError: Digest generation failed
        """
        validate_period(period)
        label = period_label(period)
        now = self.clock()
        today = now.date().isoformat()

        if not force_refresh:
            cached = self.cache.get(today, period)
            if cached is not None:
                return DigestOutcome(digest=cached, cached=True)

        calls = self.call_source.list_calls_for_period(period, now)
        selected = self.select_calls(calls)

        if not selected:
            summary = NO_MEANINGFUL_CALLS_SUMMARY.format(minutes=self.min_duration // 60)
            return DigestOutcome(digest=TeamDigest.empty(label, summary), cached=False)

        analysed = self.analyse_calls(selected)

        if not analysed:
            return DigestOutcome(
                digest=TeamDigest.empty(label, NOTHING_ANALYSED_SUMMARY),
                cached=False,
                selected=len(selected)
            )

        digest = self.aggregator.generate(
            [analysis for _, analysis in analysed],
            self.rep_names(analysed),
            label
        )
        self.cache.put(today, period, digest)

        return DigestOutcome(digest=digest, cached=False, selected=len(selected), analysed=len(analysed))
