"""
Digest Aggregator
Synthesises one team digest from a batch of per-call analyses
"""

import logging
from datetime import datetime, timezone
from typing import List

from pydantic import ValidationError

from call_intelligence.exceptions import AnalysisParseError
from call_intelligence.insights.call_analyzer import DEFAULT_COMPANY_CONTEXT
from call_intelligence.insights.llm_client import TextGenerator, parse_json_payload
from call_intelligence.insights.models import CallAnalysis, TeamDigest

logger = logging.getLogger(__name__)

NO_CALLS_SUMMARY = "No analysed calls are available for this period yet, so there is nothing to aggregate."
CALL_SEPARATOR = "\n\n---\n\n"

DIGEST_SCHEMA = """{
  "team_summary": "3-4 sentence executive summary of the period: tone, volume, key outcomes, overall sentiment",
  "top_objections": [
    { "objection": "the objection pattern", "frequency": 3, "suggested_response": "how reps should handle it" }
  ],
  "winning_pitches": [
    { "description": "pitch or approach that worked", "rep": "who did it", "context": "brief context" }
  ],
  "event_demand": [
    { "event": "event name", "mentions": 5, "sentiment": "note on demand sentiment" }
  ],
  "competitor_intelligence": [
    { "competitor": "name", "mentions": 2, "context": "what was said about them" }
  ],
  "follow_up_gaps": [
    { "rep": "name", "description": "follow-up that is missing or at risk" }
  ],
  "coaching_highlights": [
    { "rep": "name", "type": "strength|improvement", "description": "coaching observation" }
  ],
  "key_deals": [
    { "contact": "client name", "rep": "rep name", "status": "where the deal stands", "next_steps": "what needs to happen" }
  ]
}"""


def _joined(values: List[str], separator: str = ', ') -> str:
    return separator.join(values) if values else 'None'


def summarise_analysis(analysis: CallAnalysis, position: int) -> str:
    """Compact one-paragraph rendering of a call analysis for the digest prompt"""
    action_items = [f"{item.description} ({item.assignee})" for item in analysis.action_items]
    signals = [f"{signal.type}: {signal.description}" for signal in analysis.opportunity_signals]

    return (
        f"Call {position} (ID: {analysis.call_id}):\n"
        f"Summary: {analysis.summary}\n"
        f"Sentiment: {analysis.sentiment} ({analysis.sentiment_score}/100)\n"
        f"Topics: {_joined(analysis.key_topics)}\n"
        f"Objections: {_joined(analysis.objections, '; ')}\n"
        f"Events: {_joined(analysis.events_mentioned)}\n"
        f"Competitors: {_joined(analysis.competitor_mentions)}\n"
        f"Action Items: {_joined(action_items, '; ')}\n"
        f"Opportunity: {_joined(signals, '; ')}"
    )


class DigestAggregator:
    """
    Aggregates call analyses for a period into a TeamDigest

    An empty batch never reaches the text-generation service.
    """

    TASK = 'team_digest'

    def __init__(self, generator: TextGenerator, company_context: str = DEFAULT_COMPANY_CONTEXT):
        self.generator = generator
        self.company_context = company_context

    def build_prompt(self, analyses: List[CallAnalysis], rep_names: List[str], period_label: str) -> str:
        summaries = [summarise_analysis(analysis, i + 1) for i, analysis in enumerate(analyses)]

        return f"""You are the sales intelligence engine for {self.company_context}
You are generating the {period_label} team digest.

Team members: {_joined(rep_names)}

Here are the analysed calls from this period ({len(analyses)} calls total):

{CALL_SEPARATOR.join(summaries)}

Generate a team intelligence digest as JSON:
{DIGEST_SCHEMA}

Guidelines:
- Find patterns across calls; do not re-list individual calls
- Every insight should tell the team what to do about it
- Be specific with numbers, names and events
- If there are not enough calls to identify patterns, say so honestly
- Return ONLY valid JSON"""

    def generate(self, analyses: List[CallAnalysis], rep_names: List[str], period_label: str) -> TeamDigest:
        """
        Generate the team digest for a period

        Args:
            analyses: Successfully analysed calls for the period
            rep_names: Reps attributed to those calls
            period_label: Human-readable period, e.g. 'Today'

        Returns:
            TeamDigest

        Raises:
            TextGenerationError: If the service call fails
            AnalysisParseError: If the response does not match the digest schema
        """
        if not analyses:
            logger.info(f"No analyses for {period_label}, returning empty digest")
            return TeamDigest.empty(period_label, NO_CALLS_SUMMARY)

        prompt = self.build_prompt(analyses, rep_names, period_label)
        response_text = self.generator.generate(prompt, self.TASK)

        payload = parse_json_payload(response_text)
        payload.update({
            'period': period_label,
            'generated_at': datetime.now(timezone.utc).isoformat(),
            'total_calls_analysed': len(analyses)
        })

        try:
            digest = TeamDigest.model_validate(payload)
        except ValidationError as e:
            raise AnalysisParseError(
                f"{period_label} digest does not match schema: {e}",
                raw_response=response_text
            ) from e

        logger.info(f"Generated {period_label} digest from {len(analyses)} calls")
        return digest
