"""
Call Analyzer
Turns one call transcript into one structured CallAnalysis record
"""

import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from call_intelligence.exceptions import AnalysisParseError
from call_intelligence.insights.llm_client import TextGenerator, parse_json_payload
from call_intelligence.insights.models import CallAnalysis

logger = logging.getLogger(__name__)

DEFAULT_COMPANY_CONTEXT = (
    "a luxury hospitality company selling premium event packages for high-end sporting "
    "events such as Grand Prix, The Open, Wimbledon and Six Nations. Clients are typically "
    "corporate executives and high-net-worth individuals."
)

ANALYSIS_SCHEMA = """{
  "summary": "2-3 sentence summary of the call: what was discussed, the outcome, what happens next",
  "sentiment": "positive" | "neutral" | "negative" | "mixed",
  "sentiment_score": 0-100 (100 = very positive),
  "key_topics": ["most relevant topic first"],
  "objections": ["pricing objections, timing concerns, competitor comparisons or hesitations"],
  "action_items": [
    { "description": "what needs to be done", "assignee": "who should do it", "priority": "high|medium|low" }
  ],
  "opportunity_signals": [
    { "type": "new_deal|upsell|follow_up|at_risk|closed_lost", "description": "the opportunity", "estimated_value": "optional estimate" }
  ],
  "competitor_mentions": ["competitors or alternative providers mentioned"],
  "events_mentioned": ["specific events discussed"],
  "talk_to_listen_ratio": { "agent_pct": 60, "contact_pct": 40 },
  "coaching_notes": "brief coaching observation for the rep, or null",
  "draft_follow_up": "short professional follow-up email the rep could send, or null"
}"""


class CallAnalyzer:
    """
    Produces a structured analysis for a single call

    The analyzer never caches. Callers check AnalysisCache before calling
    analyse() and write the result back, so force-refresh flows can skip
    the cache deliberately.
    """

    TASK = 'call_analysis'

    def __init__(self, generator: TextGenerator, company_context: str = DEFAULT_COMPANY_CONTEXT):
        self.generator = generator
        self.company_context = company_context

    def build_prompt(
        self,
        transcript: str,
        agent_name: str,
        contact_name: str,
        duration: int,
        direction: str
    ) -> str:
        minutes, seconds = divmod(int(duration), 60)

        return f"""You are an expert sales intelligence analyst for {self.company_context}

Analyse this {direction} sales call between {agent_name} (sales rep) and {contact_name} (prospect/client). Duration: {minutes}m {seconds}s.

TRANSCRIPT:
{transcript}

Return a JSON object with this exact structure:
{ANALYSIS_SCHEMA}

Important:
- Be specific: reference actual names, events and amounts mentioned in the call
- Capture every objection even if it was handled well
- Order list fields by relevance, most relevant first
- Return ONLY valid JSON, no markdown or explanation"""

    def analyse(
        self,
        call_id: int,
        transcript: str,
        agent_name: str,
        contact_name: str,
        duration: int,
        direction: str
    ) -> CallAnalysis:
        """
        Analyse one call transcript

        Args:
            call_id: Telephony call id
            transcript: Full transcript text
            agent_name: Sales rep name
            contact_name: Prospect/client name
            duration: Call duration in seconds
            direction: 'inbound' or 'outbound'

        Returns:
            CallAnalysis

        Raises:
            TextGenerationError: If the service call fails
            AnalysisParseError: If the response does not match the analysis schema
        """
        prompt = self.build_prompt(transcript, agent_name, contact_name, duration, direction)
        response_text = self.generator.generate(prompt, self.TASK)

        payload = parse_json_payload(response_text)
        payload['call_id'] = call_id
        payload['analysed_at'] = datetime.now(timezone.utc).isoformat()

        try:
            analysis = CallAnalysis.model_validate(payload)
        except ValidationError as e:
            raise AnalysisParseError(
                f"Analysis for call {call_id} does not match schema: {e}",
                raw_response=response_text
            ) from e

        logger.info(f"Analysis complete for call {call_id} ({analysis.sentiment}, {analysis.sentiment_score}/100)")
        return analysis
