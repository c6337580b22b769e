"""
Call Insights Models
Structured records produced by call analysis and team digest generation
"""

from datetime import datetime, timezone
from typing import List, Optional, Literal

from pydantic import BaseModel, Field, field_validator


Sentiment = Literal['positive', 'neutral', 'negative', 'mixed']
Priority = Literal['high', 'medium', 'low']
OpportunityType = Literal['new_deal', 'upsell', 'follow_up', 'at_risk', 'closed_lost']


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ActionItem(BaseModel):
    description: str
    assignee: str
    priority: Priority


class OpportunitySignal(BaseModel):
    type: OpportunityType
    description: str
    estimated_value: Optional[str] = None

    @field_validator('estimated_value', mode='before')
    @classmethod
    def stringify_amount(cls, value):
        # Numeric amounts are kept as text
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class TalkToListenRatio(BaseModel):
    """Share of talk time; expected to sum to roughly 100 but not enforced"""
    agent_pct: float
    contact_pct: float


class CallAnalysis(BaseModel):
    """
    Structured analysis of a single call

    List fields keep the order produced by the analysis step, which is
    relevance order rather than alphabetical.
    """
    call_id: int
    summary: str
    sentiment: Sentiment
    sentiment_score: int = Field(ge=0, le=100)
    key_topics: List[str] = Field(default_factory=list)
    objections: List[str] = Field(default_factory=list)
    action_items: List[ActionItem] = Field(default_factory=list)
    opportunity_signals: List[OpportunitySignal] = Field(default_factory=list)
    competitor_mentions: List[str] = Field(default_factory=list)
    events_mentioned: List[str] = Field(default_factory=list)
    talk_to_listen_ratio: TalkToListenRatio
    coaching_notes: Optional[str] = None
    draft_follow_up: Optional[str] = None
    analysed_at: str = Field(default_factory=utc_now_iso)


class ObjectionPattern(BaseModel):
    objection: str
    frequency: int
    suggested_response: str


class WinningPitch(BaseModel):
    description: str
    rep: str
    context: str


class EventDemand(BaseModel):
    event: str
    mentions: int
    sentiment: str


class CompetitorIntel(BaseModel):
    competitor: str
    mentions: int
    context: str


class FollowUpGap(BaseModel):
    rep: str
    description: str


class CoachingHighlight(BaseModel):
    rep: str
    type: Literal['strength', 'improvement']
    description: str


class KeyDeal(BaseModel):
    contact: str
    rep: str
    status: str
    next_steps: str


class TeamDigest(BaseModel):
    """Team-wide report aggregated from many call analyses for one period"""
    period: str
    generated_at: str = Field(default_factory=utc_now_iso)
    total_calls_analysed: int = Field(ge=0)
    team_summary: str
    top_objections: List[ObjectionPattern] = Field(default_factory=list)
    winning_pitches: List[WinningPitch] = Field(default_factory=list)
    event_demand: List[EventDemand] = Field(default_factory=list)
    competitor_intelligence: List[CompetitorIntel] = Field(default_factory=list)
    follow_up_gaps: List[FollowUpGap] = Field(default_factory=list)
    coaching_highlights: List[CoachingHighlight] = Field(default_factory=list)
    key_deals: List[KeyDeal] = Field(default_factory=list)

    @classmethod
    def empty(cls, period: str, team_summary: str) -> "TeamDigest":
        """Digest for a period with nothing to aggregate"""
        return cls(period=period, total_calls_analysed=0, team_summary=team_summary)
