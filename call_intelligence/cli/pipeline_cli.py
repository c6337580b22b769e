#!/usr/bin/env python3
"""
Call Intelligence CLI
Operator commands and the entry point for scheduled digest runs (cron)
"""

import json

import click

from call_intelligence import factory
from call_intelligence.config.settings import get_settings
from call_intelligence.exceptions import CallIntelligenceError
from call_intelligence.periods import PERIOD_LABELS
from call_intelligence.search.transcript_store import SearchOptions


def _echo_json(data):
    click.echo(json.dumps(data, indent=2, default=str))


def _transcript_store():
    settings = get_settings()
    return factory.create_transcript_store(settings, factory.create_kv_store(settings))


def _analysis_service():
    settings = get_settings()
    kv_store = factory.create_kv_store(settings)
    return kv_store, factory.create_analysis_service(
        settings,
        kv_store,
        transcript_store=factory.create_transcript_store(settings, kv_store),
        call_source=factory.create_call_source(settings)
    )


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def cli(verbose):
    """Call Intelligence Pipeline CLI"""
    factory.configure_logging(get_settings(), verbose=verbose)


@cli.command()
@click.argument('keyword')
@click.option('--from-date', help='Start date (YYYY-MM-DD)')
@click.option('--to-date', help='End date (YYYY-MM-DD), inclusive')
@click.option('--agent', help='Exact agent name')
@click.option('--direction', type=click.Choice(['inbound', 'outbound']))
@click.option('--limit', '-n', default=50, help='Maximum results')
def search(keyword, from_date, to_date, agent, direction, limit):
    """Search stored transcripts by keyword"""
    store = _transcript_store()
    try:
        results = store.search(keyword.strip(), SearchOptions(
            from_date=from_date,
            to_date=to_date,
            agent_name=agent,
            direction=direction,
            limit=limit
        ))
    except ValueError as e:
        raise click.BadParameter(f"Invalid date: {e}")

    click.echo(f"{len(results)} result(s) for '{keyword}' ({store.count()} transcripts stored)")
    for result in results:
        click.echo("-" * 40)
        click.echo(f"Call {result.call_id} | {result.agent_name} / {result.contact_name} | {result.match_count} match(es)")
        click.echo(result.excerpt)


@cli.command()
@click.option('--limit', '-n', default=20, help='Number of transcripts')
def recent(limit):
    """List the most recent transcripts"""
    store = _transcript_store()
    _echo_json([record.summary() for record in store.recent(limit)])


@cli.command()
@click.argument('call_id', type=int)
def show(call_id):
    """Print one stored transcript"""
    transcript = _transcript_store().fetch_by_id(call_id)
    if transcript is None:
        raise click.ClickException(f"Transcript {call_id} not found")
    _echo_json(transcript.to_dict())


@cli.command()
@click.argument('call_id', type=int)
@click.option('--force-refresh', is_flag=True, help='Ignore the cached analysis')
def analyse(call_id, force_refresh):
    """Analyse one call"""
    try:
        _, service = _analysis_service()
        outcome = service.analyse_call(call_id, force_refresh=force_refresh)
    except CallIntelligenceError as e:
        raise click.ClickException(f"Error analysing call {call_id}: {e}")

    click.echo(f"Call {call_id} ({'cached' if outcome.cached else 'fresh'})")
    _echo_json(outcome.analysis.model_dump())


@cli.command()
@click.option('--period', '-p', type=click.Choice(list(PERIOD_LABELS)), default='today')
@click.option('--force-refresh', is_flag=True, help='Regenerate even when a cached digest exists')
def digest(period, force_refresh):
    """Generate (or fetch the cached) team digest for a period"""
    try:
        kv_store, analysis_service = _analysis_service()
        service = factory.create_digest_service(get_settings(), kv_store, analysis_service)
        if service is None:
            raise click.ClickException("Telephony provider not configured")
        outcome = service.get_digest(period, force_refresh=force_refresh)
    except CallIntelligenceError as e:
        raise click.ClickException(f"Error generating digest: {e}")

    click.echo(
        f"{outcome.digest.period} digest: {outcome.digest.total_calls_analysed} call(s) analysed"
        f"{' (cached)' if outcome.cached else ''}"
    )
    _echo_json(outcome.digest.model_dump())


if __name__ == '__main__':
    cli()
