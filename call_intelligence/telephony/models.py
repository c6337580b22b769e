"""
Telephony call records and the call source contract
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Optional


@dataclass
class TelephonyCall:
    """A call as reported by the telephony provider"""
    id: int
    direction: str
    status: str
    started_at: int
    duration: int
    answered_at: Optional[int] = None
    ended_at: Optional[int] = None
    recording: Optional[str] = None
    agent_name: Optional[str] = None
    contact_name: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    @property
    def is_answered(self) -> bool:
        return self.status == 'answered' or self.answered_at is not None

    @property
    def agent_display_name(self) -> str:
        return self.agent_name or 'Agent'

    @property
    def contact_display_name(self) -> str:
        return self.contact_name or 'Contact'

    def metadata(self) -> Dict[str, Any]:
        """Metadata in the shape TranscriptStore.store expects"""
        return {
            'agent_name': self.agent_display_name,
            'contact_name': self.contact_display_name,
            'duration': self.duration,
            'direction': self.direction,
            'started_at': self.started_at
        }

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "TelephonyCall":
        """Build from an Aircall call payload"""
        user = data.get('user') or {}
        contact = data.get('contact') or {}
        contact_name = ' '.join(
            part for part in (contact.get('first_name'), contact.get('last_name')) if part
        )

        return cls(
            id=int(data['id']),
            direction=data.get('direction', 'inbound'),
            status=data.get('status', 'done'),
            started_at=int(data.get('started_at') or 0),
            duration=int(data.get('duration') or 0),
            answered_at=data.get('answered_at'),
            ended_at=data.get('ended_at'),
            recording=data.get('recording'),
            agent_name=user.get('name') or None,
            contact_name=contact_name or None,
            tags=[tag.get('name') for tag in data.get('tags') or [] if tag.get('name')]
        )


class CallSource:
    """Contract for the telephony collaborator"""

    def get_call(self, call_id: int) -> TelephonyCall:
        """Raises CallNotFoundError for unknown ids"""
        raise NotImplementedError

    def list_calls_for_period(self, period: str, now: Optional[datetime] = None) -> List[TelephonyCall]:
        """Calls in the window of period ending at now, most recent first"""
        raise NotImplementedError

    def get_transcript(self, call: TelephonyCall) -> Optional[str]:
        """Full transcript text for a completed call, None when unavailable"""
        raise NotImplementedError
