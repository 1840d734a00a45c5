# analyst/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional, List

from analyst.models import ParsedQuery, Subquery

class TimelineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    article_id: int
    title: str
    source: str
    published_at: str
    sentiment: float
    stance: Literal["pro_russia", "neutral", "anti_russia"]
    relevance_score: int = Field(ge=1, le=5)
    why_included: str
    confidence: float
    evidence: List[str] = Field(default_factory=list)

class TimeWindowOut(BaseModel):
    start: Optional[str] = None
    end: Optional[str] = None
    preset: Literal["24h", "7d", "30d", "custom", "all"]

class ParsedQueryOut(BaseModel):
    raw: str
    normalized: str
    terms: List[str]
    intent: Literal["monitor", "investigate", "compare", "entity_focus", "unknown"]
    scope: Literal["country", "narrative", "entity"]
    entities: List[str]
    time: TimeWindowOut
    countries: List[str]
    narrative_id: Optional[int] = None

    @classmethod
    def from_parsed(cls, parsed: ParsedQuery) -> "ParsedQueryOut":
        return cls(
            raw=parsed.raw,
            normalized=parsed.normalized,
            terms=list(parsed.terms),
            intent=parsed.intent.value,
            scope=parsed.scope.value,
            entities=list(parsed.entities),
            time=TimeWindowOut(start=parsed.time.start, end=parsed.time.end, preset=parsed.time.preset.value),
            countries=list(parsed.countries),
            narrative_id=parsed.narrative_id,
        )

class SubqueryOut(BaseModel):
    id: str
    label: str
    start: Optional[str] = None
    end: Optional[str] = None
    boosted_terms: List[str]
    weight: float

    @classmethod
    def from_subquery(cls, subquery: Subquery) -> "SubqueryOut":
        return cls(
            id=subquery.id,
            label=subquery.label,
            start=subquery.start,
            end=subquery.end,
            boosted_terms=list(subquery.boosted_terms),
            weight=subquery.weight,
        )

class TimelineResponse(BaseModel):
    scope: str
    as_of: str
    parsed: ParsedQueryOut
    subqueries: List[SubqueryOut]
    n_items: int
    timeline: List[TimelineItem]
