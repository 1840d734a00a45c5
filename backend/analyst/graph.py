"""
Knowledge-graph snapshot and the provider the retrieval engine reads from.

The engine only needs entity aliases/labels and per-entity degree; the
snapshot also answers neighbor lookups for callers composing case views.
"""
from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from functools import cached_property, lru_cache
from typing import Dict, List, Optional, Protocol, Tuple

from analyst.sources.catalog import ARTICLES, COUNTRIES, EVENTS, NARRATIVES


@dataclass(frozen=True)
class GraphEntity:
    id: str
    kind: str  # "person" | "org" | "place" | "event"
    label: str
    aliases: Tuple[str, ...] = ()
    country_codes: Tuple[str, ...] = ()
    metadata: Dict[str, object] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class GraphEdge:
    id: str
    source: str
    target: str
    relation: str
    confidence: float
    evidence: Tuple[str, ...] = ()
    valid_from: Optional[str] = None
    valid_to: Optional[str] = None


@dataclass(frozen=True)
class Neighbor:
    relation: str
    node: GraphEntity
    confidence: float
    evidence: Tuple[str, ...]


@dataclass(frozen=True)
class GraphSnapshot:
    """Read-only view of entities and edges; safe to share between calls."""

    entities: Tuple[GraphEntity, ...] = ()
    edges: Tuple[GraphEdge, ...] = ()

    @cached_property
    def degrees(self) -> Dict[str, int]:
        counts: Counter = Counter()
        for edge in self.edges:
            counts[edge.source] += 1
            counts[edge.target] += 1
        return dict(counts)

    @cached_property
    def node_map(self) -> Dict[str, GraphEntity]:
        return {entity.id: entity for entity in self.entities}

    def degree(self, entity_id: str) -> int:
        return self.degrees.get(entity_id, 0)

    def neighbors(self, node_id: str) -> List[Neighbor]:
        out: List[Neighbor] = []
        for edge in self.edges:
            if edge.source != node_id and edge.target != node_id:
                continue
            other = edge.target if edge.source == node_id else edge.source
            node = self.node_map.get(other)
            if node is None:
                continue
            out.append(Neighbor(edge.relation, node, edge.confidence, edge.evidence))
        return out


class GraphProvider(Protocol):
    def get_snapshot(self) -> GraphSnapshot:
        ...


@dataclass(frozen=True)
class StaticGraphProvider:
    """Serves a fixed snapshot. Mostly used to inject graphs in tests."""

    snapshot: GraphSnapshot

    def get_snapshot(self) -> GraphSnapshot:
        return self.snapshot


# Known persons/orgs/places: (kind, canonical id, aliases)
ENTITY_DICTIONARY: List[Tuple[str, str, Tuple[str, ...]]] = [
    ("person", "person:vance", ("вэнс", "вэнса", "венс", "vance", "jd vance")),
    ("person", "person:aliyev", ("алиев", "алиев-пашинян", "aliyev")),
    ("person", "person:pashinyan", ("пашинян", "aliyev-pashinyan", "pashinyan")),
    ("org", "org:nato", ("нато", "nato")),
    ("org", "org:eu", ("ес", "евросоюз", "european union", "eu")),
    ("org", "org:csto", ("одкб", "csto")),
    ("org", "org:gazprom", ("газпром", "gazprom")),
    ("org", "org:cnpc", ("cnpc",)),
    ("place", "place:russia", ("россия", "рф", "russia")),
    ("place", "place:ukraine", ("украина", "ukraine")),
    ("place", "place:karabakh", ("карабах", "karabakh")),
]

_PUNCT_RE = re.compile(r"[.,!?\"'()]")


def _catalog_normalize(text: str) -> str:
    # Lighter than analyst.utils.normalize_text: keeps hyphens so that
    # compound aliases ("алиев-пашинян") match as written.
    return " ".join(_PUNCT_RE.sub(" ", text.lower()).split())


def label_from_canonical(canonical: str) -> str:
    raw = canonical.split(":", 1)[1] if ":" in canonical else canonical
    return raw.replace("_", " ").title()


def confidence_by_alias(alias: str) -> float:
    if len(alias) >= 8:
        return 0.9
    if len(alias) >= 5:
        return 0.82
    return 0.75


def detect_entity_refs(text: str) -> List[Tuple[str, str, str]]:
    """Dictionary entities mentioned in text as (id, alias, kind), one per entity."""
    hay = _catalog_normalize(text)
    refs: List[Tuple[str, str, str]] = []
    for kind, canonical, aliases in ENTITY_DICTIONARY:
        for alias in aliases:
            needle = _catalog_normalize(alias)
            if needle and needle in hay:
                refs.append((canonical, alias, kind))
                break
    return refs


def _merge_entity(base: Optional[GraphEntity], nxt: GraphEntity) -> GraphEntity:
    if base is None:
        return nxt
    return GraphEntity(
        id=base.id,
        kind=base.kind,
        label=base.label,
        aliases=tuple(dict.fromkeys(base.aliases + nxt.aliases)),
        country_codes=tuple(dict.fromkeys(base.country_codes + nxt.country_codes)),
        metadata={**base.metadata, **nxt.metadata},
    )


def _unique_edges(edges: List[GraphEdge]) -> List[GraphEdge]:
    seen = set()
    out: List[GraphEdge] = []
    for edge in edges:
        key = (edge.source, edge.target, edge.relation)
        if key in seen:
            continue
        seen.add(key)
        out.append(edge)
    return out


def build_catalog_snapshot() -> GraphSnapshot:
    """Build the graph from the static catalog plus the entity dictionary."""
    entities: Dict[str, GraphEntity] = {}
    edges: List[GraphEdge] = []

    for country in COUNTRIES:
        node_id = f"country:{country.id}"
        entities[node_id] = GraphEntity(
            id=node_id,
            kind="place",
            label=country.name_ru,
            aliases=(country.name, country.name_ru, country.id),
            country_codes=(country.id,),
            metadata={"source": "country", "tier": country.tier, "region": country.region},
        )

    for narrative in NARRATIVES:
        node_id = f"narrative:{narrative.id}"
        entities[node_id] = GraphEntity(
            id=node_id,
            kind="event",
            label=narrative.title_ru,
            aliases=(narrative.title, narrative.title_ru, *narrative.keywords),
            country_codes=narrative.countries,
            metadata={"source": "narrative", "status": narrative.status},
        )
        for country_id in narrative.countries:
            edges.append(GraphEdge(
                id=f"edge:{narrative.id}:country:{country_id}",
                source=node_id,
                target=f"country:{country_id}",
                relation="spans_country",
                confidence=1.0,
                evidence=(f"narrative:{narrative.id}",),
                valid_from=narrative.first_seen,
                valid_to=narrative.last_seen,
            ))

    for article in ARTICLES:
        node_id = f"article:{article.id}"
        entities[node_id] = GraphEntity(
            id=node_id,
            kind="event",
            label=article.title,
            aliases=(article.title, article.source),
            country_codes=(article.country_id,),
            metadata={"source": "article", "sentiment": article.sentiment},
        )
        edges.append(GraphEdge(
            id=f"edge:article:{article.id}:country:{article.country_id}",
            source=node_id,
            target=f"country:{article.country_id}",
            relation="about_country",
            confidence=0.95,
            evidence=(f"article:{article.id}",),
            valid_from=article.published_at,
        ))
        if article.narrative_id is not None:
            edges.append(GraphEdge(
                id=f"edge:article:{article.id}:narrative:{article.narrative_id}",
                source=node_id,
                target=f"narrative:{article.narrative_id}",
                relation="belongs_to_narrative",
                confidence=0.9,
                evidence=(f"article:{article.id}",),
                valid_from=article.published_at,
            ))

        for ref_id, alias, kind in detect_entity_refs(article.title):
            entities[ref_id] = _merge_entity(entities.get(ref_id), GraphEntity(
                id=ref_id,
                kind=kind,
                label=label_from_canonical(ref_id),
                aliases=(alias,),
                country_codes=(article.country_id,),
                metadata={"source": "dictionary"},
            ))
            edges.append(GraphEdge(
                id=f"edge:article:{article.id}:{ref_id}",
                source=node_id,
                target=ref_id,
                relation="mentions",
                confidence=confidence_by_alias(alias),
                evidence=(f"article:{article.id}", f"alias:{alias}"),
                valid_from=article.published_at,
            ))

    for event in EVENTS:
        node_id = f"event:{event.id}"
        entities[node_id] = GraphEntity(
            id=node_id,
            kind="event",
            label=event.title,
            aliases=(event.title,),
            country_codes=(event.country_id,),
            metadata={"source": "event", "impact": event.impact},
        )
        edges.append(GraphEdge(
            id=f"edge:event:{event.id}:country:{event.country_id}",
            source=node_id,
            target=f"country:{event.country_id}",
            relation="happened_in",
            confidence=1.0,
            evidence=(f"event:{event.id}",),
            valid_from=event.date,
        ))
        for narrative_id in event.related_narrative_ids:
            edges.append(GraphEdge(
                id=f"edge:event:{event.id}:narrative:{narrative_id}",
                source=node_id,
                target=f"narrative:{narrative_id}",
                relation="related_to_narrative",
                confidence=0.92,
                evidence=(f"event:{event.id}",),
                valid_from=event.date,
            ))

    return GraphSnapshot(entities=tuple(entities.values()), edges=tuple(_unique_edges(edges)))


@lru_cache(maxsize=1)
def _catalog_snapshot() -> GraphSnapshot:
    return build_catalog_snapshot()


class CatalogGraphProvider:
    """Graph built once from the static catalog and reused for every call."""

    def get_snapshot(self) -> GraphSnapshot:
        return _catalog_snapshot()


default_graph_provider: GraphProvider = CatalogGraphProvider()
