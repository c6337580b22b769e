"""
Builds pipeline components from Settings
"""

import logging
from typing import Optional

from call_intelligence.config.llm_config import LLMConfig
from call_intelligence.config.settings import Settings
from call_intelligence.exceptions import TextGenerationError
from call_intelligence.insights.cache import AnalysisCache, DigestCache
from call_intelligence.insights.call_analyzer import CallAnalyzer
from call_intelligence.insights.digest_aggregator import DigestAggregator
from call_intelligence.insights.llm_client import OpenAITextGenerator
from call_intelligence.pipeline.analysis_service import CallAnalysisService
from call_intelligence.pipeline.digest_service import DigestService
from call_intelligence.search.transcript_store import TranscriptStore
from call_intelligence.storage.kv_store import KeyValueStore, RedisKeyValueStore
from call_intelligence.telephony.aircall_client import AircallClient
from call_intelligence.transcription.recording_transcriber import RecordingTranscriber

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings, verbose: bool = False):
    """Stream logging plus an optional log file"""
    handlers = [logging.StreamHandler()]
    if settings.log_file_path:
        handlers.append(logging.FileHandler(settings.log_file_path))

    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def create_kv_store(settings: Settings) -> Optional[KeyValueStore]:
    if not settings.redis_url:
        logger.warning("REDIS_URL not set, running without persistence")
        return None
    return RedisKeyValueStore.from_url(settings.redis_url, timeout=settings.redis_timeout)


def create_transcript_store(settings: Settings, kv_store: Optional[KeyValueStore]) -> TranscriptStore:
    return TranscriptStore(
        kv_store,
        batch_size=settings.search_batch_size,
        scan_limit=settings.search_scan_limit
    )


def create_call_source(settings: Settings) -> Optional[AircallClient]:
    if not settings.aircall_configured:
        logger.warning("Aircall credentials not set, call analysis by id and digests are disabled")
        return None

    transcriber = None
    if settings.openai_api_key:
        transcriber = RecordingTranscriber(
            api_key=settings.openai_api_key,
            model=settings.whisper_model,
            language=settings.transcription_language
        )

    return AircallClient(
        api_id=settings.aircall_api_id,
        api_token=settings.aircall_api_token,
        base_url=settings.aircall_base_url,
        timeout=settings.aircall_timeout,
        transcriber=transcriber
    )


def create_analysis_service(
    settings: Settings,
    kv_store: Optional[KeyValueStore],
    transcript_store: Optional[TranscriptStore] = None,
    call_source: Optional[AircallClient] = None
) -> CallAnalysisService:
    api_key = settings.openrouter_api_key if settings.llm_provider == 'openrouter' else settings.openai_api_key
    if not api_key:
        raise TextGenerationError(f"No API key configured for LLM provider {settings.llm_provider}")

    generator = OpenAITextGenerator(
        llm_config=LLMConfig(settings.llm_provider),
        api_key=api_key,
        timeout=settings.llm_timeout_seconds
    )

    return CallAnalysisService(
        analyzer=CallAnalyzer(generator),
        cache=AnalysisCache(kv_store),
        call_source=call_source,
        transcript_store=transcript_store,
        min_transcript_chars=settings.min_transcript_chars,
        min_duration=settings.min_analysis_duration
    )


def create_digest_service(
    settings: Settings,
    kv_store: Optional[KeyValueStore],
    analysis_service: CallAnalysisService
) -> Optional[DigestService]:
    if analysis_service.call_source is None:
        return None

    return DigestService(
        call_source=analysis_service.call_source,
        analysis_service=analysis_service,
        aggregator=DigestAggregator(analysis_service.analyzer.generator),
        cache=DigestCache(kv_store),
        max_calls=settings.digest_max_calls,
        min_duration=settings.digest_min_duration,
        max_workers=settings.analysis_workers
    )
