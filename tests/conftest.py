"""
Shared fixtures: in-memory persistence, fake clocks and canned text generation
"""

import pytest

from call_intelligence.insights.cache import AnalysisCache, DigestCache
from call_intelligence.insights.call_analyzer import CallAnalyzer
from call_intelligence.insights.digest_aggregator import DigestAggregator
from call_intelligence.pipeline.analysis_service import CallAnalysisService
from call_intelligence.search.transcript_store import TranscriptStore
from call_intelligence.storage.kv_store import InMemoryKeyValueStore

from fakes import NOW, FakeClock, FakeTextGenerator


@pytest.fixture
def clock():
    return FakeClock(NOW.timestamp())


@pytest.fixture
def kv_store(clock):
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def transcript_store(kv_store):
    return TranscriptStore(kv_store, batch_size=5, clock=lambda: NOW)


@pytest.fixture
def generator():
    return FakeTextGenerator()


@pytest.fixture
def analysis_cache(kv_store):
    return AnalysisCache(kv_store)


@pytest.fixture
def digest_cache(kv_store):
    return DigestCache(kv_store)


@pytest.fixture
def analysis_service(generator, analysis_cache):
    return CallAnalysisService(analyzer=CallAnalyzer(generator), cache=analysis_cache)


@pytest.fixture
def aggregator(generator):
    return DigestAggregator(generator)
