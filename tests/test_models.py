"""
Tests for the analysis and digest record models
"""

import pytest
from pydantic import ValidationError

from call_intelligence.insights.models import CallAnalysis, TeamDigest

from fakes import analysis_payload


def test_call_analysis_keeps_list_order():
    analysis = CallAnalysis.model_validate(dict(
        analysis_payload(key_topics=['Wimbledon', 'Ascot', 'Cheltenham']),
        call_id=1
    ))

    assert analysis.key_topics == ['Wimbledon', 'Ascot', 'Cheltenham']
    assert analysis.talk_to_listen_ratio.agent_pct == 55
    assert analysis.opportunity_signals[0].estimated_value == '£20,000'


def test_call_analysis_list_fields_default_empty():
    payload = {
        'call_id': 1,
        'summary': 'Quick check-in',
        'sentiment': 'neutral',
        'sentiment_score': 50,
        'talk_to_listen_ratio': {'agent_pct': 50, 'contact_pct': 50}
    }

    analysis = CallAnalysis.model_validate(payload)

    assert analysis.objections == []
    assert analysis.action_items == []
    assert analysis.coaching_notes is None
    assert analysis.analysed_at


@pytest.mark.parametrize('overrides', [
    {'sentiment_score': 101},
    {'sentiment_score': -1},
    {'sentiment': 'ecstatic'},
    {'action_items': [{'description': 'Call back', 'assignee': 'Sam', 'priority': 'urgent'}]},
    {'opportunity_signals': [{'type': 'maybe', 'description': 'unclear'}]},
])
def test_call_analysis_rejects_out_of_range_values(overrides):
    with pytest.raises(ValidationError):
        CallAnalysis.model_validate(dict(analysis_payload(**overrides), call_id=1))


def test_call_analysis_requires_summary():
    payload = analysis_payload()
    del payload['summary']

    with pytest.raises(ValidationError):
        CallAnalysis.model_validate(dict(payload, call_id=1))


def test_empty_team_digest():
    digest = TeamDigest.empty('This Week', 'Nothing yet')

    assert digest.period == 'This Week'
    assert digest.total_calls_analysed == 0
    assert digest.team_summary == 'Nothing yet'
    assert digest.top_objections == []
    assert digest.key_deals == []


@pytest.mark.parametrize('amount, expected', [
    (20000, '20000'),
    (1250.5, '1250.5'),
    ('£20,000', '£20,000'),
    (None, None),
])
def test_estimated_value_accepts_numbers(amount, expected):
    signals = [{'type': 'upsell', 'description': 'Second table', 'estimated_value': amount}]

    analysis = CallAnalysis.model_validate(dict(analysis_payload(opportunity_signals=signals), call_id=1))

    assert analysis.opportunity_signals[0].estimated_value == expected
