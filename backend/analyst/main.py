"""
Main FastAPI application and routing layer.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from analyst.config import DEFAULT_TIMELINE_LIMIT, LOG_FORMAT, LOG_LEVEL
from analyst.metrics import MetricsMiddleware, monitoring_snapshot
from analyst.models import Scope
from analyst.schemas import TimelineResponse
from analyst.services.timeline import get_temporal_timeline
from analyst.utils import now_utc

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger("uvicorn")


def parse_countries(raw: Optional[str]) -> List[str]:
    """
    Split a comma-separated country list.

    Args:
        raw: e.g. "kz, uz" (can be None)

    Returns:
        Uppercased codes, empty entries dropped
    """
    if not raw:
        return []
    return [part.strip().upper() for part in raw.split(",") if part.strip()]


# Initialize FastAPI app
app = FastAPI(
    title="Analyst Temporal Retrieval API",
    version="0.1.0",
    description="Ranked, explainable news timelines by country, narrative or entity",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "as_of": now_utc().isoformat(),
        "service": "analyst-temporal-retrieval",
    }


@app.get("/timeline", response_model=TimelineResponse)
async def get_timeline(
    scope: Scope = Query(..., description="country | narrative | entity"),
    query: str = Query("", max_length=500, description="Free-text analyst query"),
    countries: Optional[str] = Query(None, description="Comma-separated country codes (e.g., KZ,UZ)"),
    narrative_id: Optional[int] = Query(None, ge=1, description="Narrative id for narrative scope"),
    time_from: Optional[str] = Query(None, description="ISO-8601 lower bound"),
    time_to: Optional[str] = Query(None, description="ISO-8601 upper bound"),
    limit: int = Query(DEFAULT_TIMELINE_LIMIT, ge=1, le=500, description="Maximum number of timeline items"),
):
    """
    Ranked timeline for a scoped query.

    Returns:
        TimelineResponse with parsed query, subqueries and timeline items
    """
    country_codes = parse_countries(countries)

    try:
        logger.info(f"Timeline request scope={scope.value} countries={country_codes} narrative={narrative_id}")
        return await get_temporal_timeline(
            scope,
            query=query,
            countries=country_codes,
            narrative_id=narrative_id,
            time_from=time_from,
            time_to=time_to,
            limit=limit,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error building timeline for scope={scope.value}: {e}")
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@app.get("/monitoring")
async def get_monitoring():
    """Retrieval metrics snapshot."""
    return monitoring_snapshot()


if __name__ == "__main__":
    # For development
    import uvicorn
    uvicorn.run("analyst.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
