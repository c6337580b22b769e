"""
Tests for the operator CLI
"""

import json

import pytest
from click.testing import CliRunner

from call_intelligence.cli import pipeline_cli
from call_intelligence.exceptions import TextGenerationError
from call_intelligence.insights.call_analyzer import CallAnalyzer
from call_intelligence.pipeline.analysis_service import CallAnalysisService
from call_intelligence.pipeline.digest_service import DigestService

from fakes import NOW, FakeCallSource, make_call


@pytest.fixture
def runner(monkeypatch, transcript_store):
    transcript_store.store(21, {
        'agent_name': 'Sam Hunt', 'contact_name': 'Alex Reid', 'duration': 300,
        'direction': 'outbound', 'started_at': 1760000000
    }, 'Asked about Six Nations hospitality at Twickenham')
    monkeypatch.setattr(pipeline_cli, '_transcript_store', lambda: transcript_store)
    return CliRunner()


def test_search(runner):
    result = runner.invoke(pipeline_cli.cli, ['search', 'six nations'])

    assert result.exit_code == 0
    assert "1 result(s) for 'six nations' (1 transcripts stored)" in result.output
    assert 'Call 21 | Sam Hunt / Alex Reid | 1 match(es)' in result.output


def test_search_bad_date(runner):
    result = runner.invoke(pipeline_cli.cli, ['search', 'six', '--from-date', 'soon'])

    assert result.exit_code != 0


def test_show(runner):
    result = runner.invoke(pipeline_cli.cli, ['show', '21'])

    assert result.exit_code == 0
    assert json.loads(result.output)['transcript'].startswith('Asked about')


def test_show_missing(runner):
    result = runner.invoke(pipeline_cli.cli, ['show', '99'])

    assert result.exit_code == 1
    assert 'Transcript 99 not found' in result.output


def test_recent(runner):
    result = runner.invoke(pipeline_cli.cli, ['recent', '-n', '5'])

    assert result.exit_code == 0
    assert [record['call_id'] for record in json.loads(result.output)] == [21]


@pytest.fixture
def pipeline(monkeypatch, kv_store, generator, analysis_cache, aggregator, digest_cache):
    call_source = FakeCallSource([make_call(1), make_call(2), make_call(3, duration=40)])
    service = CallAnalysisService(analyzer=CallAnalyzer(generator), cache=analysis_cache, call_source=call_source)
    digest_service = DigestService(
        call_source=call_source,
        analysis_service=service,
        aggregator=aggregator,
        cache=digest_cache,
        clock=lambda: NOW
    )

    monkeypatch.setattr(pipeline_cli, '_analysis_service', lambda: (kv_store, service))
    monkeypatch.setattr(pipeline_cli.factory, 'create_digest_service', lambda *args: digest_service)
    return CliRunner()


def test_analyse(pipeline, generator):
    first = pipeline.invoke(pipeline_cli.cli, ['analyse', '1'])
    second = pipeline.invoke(pipeline_cli.cli, ['analyse', '1'])
    refreshed = pipeline.invoke(pipeline_cli.cli, ['analyse', '1', '--force-refresh'])

    assert first.exit_code == 0
    assert 'Call 1 (fresh)' in first.output
    assert '"sentiment_score": 78' in first.output
    assert 'Call 1 (cached)' in second.output
    assert 'Call 1 (fresh)' in refreshed.output
    assert generator.count('call_analysis') == 2


def test_analyse_short_call_fails(pipeline, generator):
    result = pipeline.invoke(pipeline_cli.cli, ['analyse', '3'])

    assert result.exit_code == 1
    assert 'Error analysing call 3' in result.output
    assert generator.calls == []


def test_scheduled_digest_with_force_refresh(pipeline, generator):
    first = pipeline.invoke(pipeline_cli.cli, ['digest', '--period', 'today'])
    cached = pipeline.invoke(pipeline_cli.cli, ['digest', '--period', 'today'])
    refreshed = pipeline.invoke(pipeline_cli.cli, ['digest', '--period', 'today', '--force-refresh'])

    assert first.exit_code == 0
    assert 'Today digest: 2 call(s) analysed' in first.output
    assert '(cached)' in cached.output
    assert refreshed.exit_code == 0
    assert '(cached)' not in refreshed.output
    assert generator.count('team_digest') == 2


def test_digest_generation_failure(pipeline, generator):
    generator.responses['team_digest'] = TextGenerationError('timed out')

    result = pipeline.invoke(pipeline_cli.cli, ['digest', '-p', 'week'])

    assert result.exit_code == 1
    assert 'Error generating digest' in result.output


def test_digest_without_telephony(monkeypatch, kv_store, analysis_service):
    monkeypatch.setattr(pipeline_cli, '_analysis_service', lambda: (kv_store, analysis_service))
    monkeypatch.setattr(pipeline_cli.factory, 'create_digest_service', lambda *args: None)

    result = CliRunner().invoke(pipeline_cli.cli, ['digest'])

    assert result.exit_code == 1
    assert 'Telephony provider not configured' in result.output
