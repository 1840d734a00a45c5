"""
Document collection coordinator: static catalog plus live country events.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from config import settings
from analyst.models import Scope, TemporalDocument
from analyst.sources.catalog import COUNTRIES, catalog_documents, get_narrative
from analyst.sources.geopulse import LiveCountryEventsRetriever, LiveEventsQuery, events_to_documents

logger = logging.getLogger(__name__)


def resolve_country_codes(
    scope: Scope | str,
    countries: Optional[Iterable[str]] = None,
    narrative_id: Optional[int] = None,
) -> List[str]:
    """
    Country codes a request covers.

    Explicit codes win; a narrative scope falls back to the narrative's
    countries; otherwise every catalog country.
    """
    codes = [c.strip().upper() for c in (countries or []) if c and c.strip()]
    if codes:
        return list(dict.fromkeys(codes))

    if Scope(scope) == Scope.NARRATIVE and narrative_id is not None:
        narrative = get_narrative(narrative_id)
        if narrative is not None:
            return list(narrative.countries)

    return [c.id for c in COUNTRIES]


async def collect_documents(
    scope: Scope | str,
    countries: Optional[Iterable[str]] = None,
    narrative_id: Optional[int] = None,
    retriever: Optional[LiveCountryEventsRetriever] = None,
    include_live: Optional[bool] = None,
) -> List[TemporalDocument]:
    """
    Gather the documents a retrieval call will score.

    Args:
        scope: Request scope
        countries: Explicit country filter
        narrative_id: Narrative id for narrative scope
        retriever: Live events retriever; a default GeoPulse one when omitted
        include_live: Fetch live events; ``settings.LIVE_EVENTS_ENABLED`` when omitted

    Returns:
        Catalog documents followed by live event documents
    """
    codes = resolve_country_codes(scope, countries, narrative_id)
    documents = catalog_documents(codes)

    if include_live is None:
        include_live = settings.LIVE_EVENTS_ENABLED
    if not include_live or not codes:
        return documents

    retriever = retriever or LiveCountryEventsRetriever()
    query = LiveEventsQuery(
        country_codes=codes,
        limit=settings.LIVE_EVENTS_LIMIT,
        sort=settings.LIVE_EVENTS_SORT,
    )
    try:
        events = await retriever.retrieve(query)
    except Exception as e:
        logger.warning("Live events unavailable for %s: %s", ",".join(codes), e)
        events = []

    logger.info("Collected %d catalog and %d live documents for %s", len(documents), len(events), ",".join(codes))
    return [*documents, *events_to_documents(events)]
