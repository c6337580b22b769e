"""
Test doubles for the external collaborators of the pipeline
"""

import json
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from call_intelligence.exceptions import KeyValueStoreError, TextGenerationError
from call_intelligence.insights.llm_client import TextGenerator
from call_intelligence.storage.kv_store import InMemoryKeyValueStore
from call_intelligence.telephony.exceptions import CallNotFoundError
from call_intelligence.telephony.models import CallSource, TelephonyCall


NOW = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)


class FakeClock:
    """Controllable unix-seconds clock"""

    def __init__(self, now: float = 1_760_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def analysis_payload(**overrides) -> Dict:
    payload = {
        "summary": "Prospect asked about Grand Prix hospitality and pricing.",
        "sentiment": "positive",
        "sentiment_score": 78,
        "key_topics": ["Grand Prix", "pricing"],
        "objections": ["Price higher than last year"],
        "action_items": [
            {"description": "Send brochure", "assignee": "Sam", "priority": "high"}
        ],
        "opportunity_signals": [
            {"type": "new_deal", "description": "Table for 10", "estimated_value": "£20,000"}
        ],
        "competitor_mentions": ["Rival Events"],
        "events_mentioned": ["Monaco Grand Prix 2027"],
        "talk_to_listen_ratio": {"agent_pct": 55, "contact_pct": 45},
        "coaching_notes": "Good discovery questions.",
        "draft_follow_up": None
    }
    payload.update(overrides)
    return payload


def digest_payload(**overrides) -> Dict:
    payload = {
        "team_summary": "Strong demand for motorsport packages.",
        "top_objections": [
            {"objection": "Price", "frequency": 2, "suggested_response": "Lead with inclusions"}
        ],
        "winning_pitches": [],
        "event_demand": [{"event": "Grand Prix", "mentions": 2, "sentiment": "high"}],
        "competitor_intelligence": [],
        "follow_up_gaps": [],
        "coaching_highlights": [
            {"rep": "Sam", "type": "strength", "description": "Clear next steps"}
        ],
        "key_deals": []
    }
    payload.update(overrides)
    return payload


class FakeTextGenerator(TextGenerator):
    """
    Returns canned responses per task and records every prompt

    A response may be a dict (serialised to JSON), a string (returned as-is)
    or an exception instance (raised).
    """

    def __init__(self, responses: Optional[Dict[str, object]] = None):
        self.responses = responses or {
            'call_analysis': analysis_payload(),
            'team_digest': digest_payload()
        }
        self.calls: List[Dict[str, str]] = []
        self._lock = threading.Lock()

    def generate(self, prompt: str, task: str) -> str:
        with self._lock:
            self.calls.append({'task': task, 'prompt': prompt})

        response = self.responses[task]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response

    def count(self, task: str) -> int:
        return len([call for call in self.calls if call['task'] == task])


class FailingKeyValueStore(InMemoryKeyValueStore):
    """In-memory store whose reads or writes can be made to fail"""

    def __init__(self, fail_get_keys=(), fail_set=False, fail_zadd=False, **kwargs):
        super().__init__(**kwargs)
        self.fail_get_keys = set(fail_get_keys)
        self.fail_set = fail_set
        self.fail_zadd = fail_zadd

    def get(self, key):
        if key in self.fail_get_keys:
            raise KeyValueStoreError(f"GET {key} failed")
        return super().get(key)

    def set(self, key, value, ttl_seconds=None):
        if self.fail_set:
            raise KeyValueStoreError(f"SET {key} failed")
        super().set(key, value, ttl_seconds)

    def zadd(self, index, member, score):
        if self.fail_zadd:
            raise KeyValueStoreError(f"ZADD {index} failed")
        super().zadd(index, member, score)


def make_call(call_id: int, **overrides) -> TelephonyCall:
    fields = {
        'id': call_id,
        'direction': 'outbound',
        'status': 'answered',
        'started_at': 1_760_000_000 + call_id,
        'duration': 300,
        'answered_at': 1_760_000_005 + call_id,
        'agent_name': f"Rep {call_id}",
        'contact_name': f"Client {call_id}"
    }
    fields.update(overrides)
    return TelephonyCall(**fields)


TRANSCRIPT_TEXT = (
    "[0:00] Rep: Thanks for taking the call. [0:05] Client: We are looking at the Grand Prix "
    "package for ten guests but the price is higher than we expected this year."
)


class FakeCallSource(CallSource):
    """Telephony collaborator backed by in-memory calls and transcripts"""

    def __init__(self, calls: List[TelephonyCall], transcripts: Optional[Dict[int, str]] = None):
        self.calls = {call.id: call for call in calls}
        self.transcripts = transcripts if transcripts is not None else {
            call.id: TRANSCRIPT_TEXT for call in calls
        }
        self.failing_ids = set()
        self.transcript_requests: List[int] = []
        self.period_requests: List[tuple] = []
        self.listing_error: Optional[Exception] = None
        self._lock = threading.Lock()

    def get_call(self, call_id: int) -> TelephonyCall:
        if call_id not in self.calls:
            raise CallNotFoundError(f"Resource not found: /calls/{call_id}", status_code=404)
        return self.calls[call_id]

    def list_calls_for_period(self, period: str, now: Optional[datetime] = None) -> List[TelephonyCall]:
        self.period_requests.append((period, now))
        if self.listing_error is not None:
            raise self.listing_error
        return sorted(self.calls.values(), key=lambda call: call.started_at, reverse=True)

    def get_transcript(self, call: TelephonyCall) -> Optional[str]:
        with self._lock:
            self.transcript_requests.append(call.id)
        if call.id in self.failing_ids:
            raise TextGenerationError(f"transcription failed for {call.id}")
        return self.transcripts.get(call.id)
