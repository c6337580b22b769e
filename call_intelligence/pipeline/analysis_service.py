"""
Call analysis service
Cache-or-compute orchestration for a single call, with the preconditions
that keep short or empty calls away from the analyzer
"""

import logging
from dataclasses import dataclass
from typing import Optional

from call_intelligence.exceptions import AnalysisPreconditionError, TranscriptUnavailableError
from call_intelligence.insights.cache import AnalysisCache
from call_intelligence.insights.call_analyzer import CallAnalyzer
from call_intelligence.insights.models import CallAnalysis
from call_intelligence.search.transcript_store import TranscriptStore
from call_intelligence.telephony.models import CallSource, TelephonyCall

logger = logging.getLogger(__name__)


@dataclass
class AnalysisOutcome:
    analysis: CallAnalysis
    cached: bool


class CallAnalysisService:
    """
    Produces one analysis per call, reusing the cached analysis when present
    """

    def __init__(
        self,
        analyzer: CallAnalyzer,
        cache: AnalysisCache,
        call_source: Optional[CallSource] = None,
        transcript_store: Optional[TranscriptStore] = None,
        min_transcript_chars: int = 50,
        min_duration: int = 120
    ):
        """
        Initialize analysis service

        Args:
            analyzer: Call analyzer
            cache: Per-call analysis cache
            call_source: Telephony collaborator, required for analyse_call by id
            transcript_store: When set, fetched transcripts are also indexed for search
            min_transcript_chars: Shorter transcripts are rejected
            min_duration: Shorter calls (seconds) are rejected
        """
        self.analyzer = analyzer
        self.cache = cache
        self.call_source = call_source
        self.transcript_store = transcript_store
        self.min_transcript_chars = min_transcript_chars
        self.min_duration = min_duration

    def check_duration(self, call_id: int, duration: int, min_duration: Optional[int] = None):
        threshold = self.min_duration if min_duration is None else min_duration
        if duration < threshold:
            raise AnalysisPreconditionError(
                f"Call too short for meaningful analysis ({duration}s < {threshold}s)",
                call_id=call_id
            )

    def check_transcript(self, call_id: int, transcript: str):
        if len(transcript.strip()) < self.min_transcript_chars:
            raise AnalysisPreconditionError(
                "Transcript too short for meaningful analysis",
                call_id=call_id
            )

    def analyse_transcript(
        self,
        call_id: int,
        transcript: str,
        agent_name: str,
        contact_name: str,
        duration: int,
        direction: str,
        force_refresh: bool = False
    ) -> AnalysisOutcome:
        """
        Analyse a transcript the caller already holds

        Raises:
            AnalysisPreconditionError: Call or transcript too short
            TextGenerationError, AnalysisParseError: Analysis failed
        """
        if not force_refresh:
            cached = self.cache.get(call_id)
            if cached is not None:
                return AnalysisOutcome(analysis=cached, cached=True)

        self.check_duration(call_id, duration)
        self.check_transcript(call_id, transcript)

        return self._compute(call_id, transcript, agent_name, contact_name, duration, direction)

    def analyse_telephony_call(
        self,
        call: TelephonyCall,
        force_refresh: bool = False,
        min_duration: Optional[int] = None
    ) -> AnalysisOutcome:
        """
        Analyse a call reported by the telephony provider

        Args:
            call: Telephony call
            force_refresh: Skip the cache read
            min_duration: Overrides the service's duration threshold

        Returns:
            AnalysisOutcome

        Raises:
            AnalysisPreconditionError: Call or transcript too short
            TranscriptUnavailableError: No transcript could be obtained
            TextGenerationError, AnalysisParseError: Analysis failed
        """
        if not force_refresh:
            cached = self.cache.get(call.id)
            if cached is not None:
                return AnalysisOutcome(analysis=cached, cached=True)

        self.check_duration(call.id, call.duration, min_duration)

        if self.call_source is None:
            raise TranscriptUnavailableError("No call source configured", call_id=call.id)

        transcript = self.call_source.get_transcript(call)
        if not transcript:
            raise TranscriptUnavailableError(
                f"No transcript available for call {call.id}. The recording may have expired or the call was not recorded.",
                call_id=call.id
            )

        if self.transcript_store is not None:
            self.transcript_store.store(call.id, call.metadata(), transcript)

        self.check_transcript(call.id, transcript)

        logger.info(f"Analysing call {call.id} ({call.duration}s) - {call.agent_display_name} / {call.contact_display_name}")
        return self._compute(
            call.id,
            transcript,
            call.agent_display_name,
            call.contact_display_name,
            call.duration,
            call.direction
        )

    def analyse_call(self, call_id: int, force_refresh: bool = False) -> AnalysisOutcome:
        """
        Analyse a call by id, checking the cache before contacting the telephony provider

        Raises:
            CallNotFoundError: Unknown call id
            plus everything analyse_telephony_call raises
        """
        if not force_refresh:
            cached = self.cache.get(call_id)
            if cached is not None:
                return AnalysisOutcome(analysis=cached, cached=True)

        if self.call_source is None:
            raise TranscriptUnavailableError("No call source configured", call_id=call_id)

        call = self.call_source.get_call(call_id)
        return self.analyse_telephony_call(call, force_refresh=True)

    def _compute(
        self,
        call_id: int,
        transcript: str,
        agent_name: str,
        contact_name: str,
        duration: int,
        direction: str
    ) -> AnalysisOutcome:
        analysis = self.analyzer.analyse(
            call_id=call_id,
            transcript=transcript,
            agent_name=agent_name,
            contact_name=contact_name,
            duration=duration,
            direction=direction
        )
        self.cache.put(analysis)
        return AnalysisOutcome(analysis=analysis, cached=False)
