"""
FastAPI application exposing the lineup feature bundle.

Endpoints:
- POST /api/lineup-lab/feature-bundle: compute a bundle for a roster
- GET  /api/lineup-lab/roster: team roster with suggested available players
- GET  /health: liveness probe

Errors are returned as JSON ``{"error": ..., "message": ...}``:
invalid input is 400, an unreachable history store 503, a timeout 504.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from lineuplab.db.session import get_db
from lineuplab.errors import BundleTimeoutError, DataSourceError, ValidationError
from lineuplab.features.history import SqlMatchHistoryStore
from lineuplab.features.service import compute_feature_bundle_async, resolve_reference_instant
from lineuplab.players.roster import fetch_team_roster, suggest_available_players

logger = logging.getLogger(__name__)

app = FastAPI(title="Lineup Lab")


class FeatureBundleRequest(BaseModel):
    """Request body for a feature bundle. One of reference_instant/match_id is required."""

    base_roster: list[str] = Field(default_factory=list)
    available_player_ids: Optional[list[str]] = None
    reference_instant: Optional[datetime] = None
    match_id: Optional[str] = None


# =============================================================================
# Error handlers
# =============================================================================

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning("Invalid lineup lab request on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_request", "message": str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.warning("Malformed lineup lab request on %s: %s", request.url.path, message)
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_request", "message": message},
    )


@app.exception_handler(DataSourceError)
async def data_source_error_handler(request: Request, exc: DataSourceError):
    logger.error("History store unavailable on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={
            "error": "data_source_unavailable",
            "message": "Match history is temporarily unavailable. Please retry.",
        },
    )


@app.exception_handler(BundleTimeoutError)
async def timeout_error_handler(request: Request, exc: BundleTimeoutError):
    logger.error("Lineup lab request timed out on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=504,
        content={"error": "timeout", "message": str(exc)},
    )


# =============================================================================
# Routes
# =============================================================================

@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/lineup-lab/feature-bundle")
async def api_feature_bundle(
    payload: FeatureBundleRequest,
    db: Session = Depends(get_db),
):
    """
    Compute the catalog and candidate pairs for a lineup recommendation.

    When match_id is given instead of reference_instant, the scheduled time
    of that match is the reference.
    """
    store = SqlMatchHistoryStore(db)

    reference = payload.reference_instant
    if reference is None:
        if not payload.match_id:
            raise ValidationError("reference_instant or match_id is required.")
        reference = resolve_reference_instant(store, payload.match_id)

    bundle = await compute_feature_bundle_async(
        store,
        payload.base_roster,
        payload.available_player_ids,
        reference,
    )
    return JSONResponse(bundle.to_dict())


@app.get("/api/lineup-lab/roster")
async def api_roster(
    db: Session = Depends(get_db),
    team_id: str = Query(..., description="Team UUID"),
    division_id: str = Query(..., description="Division UUID"),
    season_year: int = Query(..., description="Season year, e.g. 2026"),
    season_number: int = Query(..., description="Season number within the year"),
):
    """Roster for a team's season with the default available-player selection."""
    roster = fetch_team_roster(
        db,
        team_id=team_id,
        division_id=division_id,
        season_year=season_year,
        season_number=season_number,
    )
    suggested = suggest_available_players(roster)
    suggested_set = set(suggested)

    return JSONResponse({
        "roster_players": [
            player.to_dict(suggested=player.player_id in suggested_set)
            for player in roster
        ],
        "suggested_available_player_ids": suggested,
    })


if __name__ == "__main__":
    import uvicorn

    from lineuplab.config import settings

    logging.basicConfig(level=settings.log_level)
    uvicorn.run(
        "lineuplab.web.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
