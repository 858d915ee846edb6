"""Sync API routes.

Provides endpoints for:
- Sync status and cancellation
- Manual sync triggers (players, weekly stats, date range, full season)
- Manual player linking
- Sync report history
"""
import logging
from datetime import date
from typing import Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from roster_sync.models.options import SyncOptions
from roster_sync.models.sync import SyncType
from roster_sync.services.sync.exceptions import MatchingAmbiguityError
from roster_sync.services.sync.factory import get_coordinator
from roster_sync.services.sync.orchestrator import ALREADY_RUNNING_ERROR, SyncCoordinator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


class ManualLinkRequest(BaseModel):
    candidate_id: int = Field(..., gt=0)
    external_id: str = Field(..., min_length=1)


def _ensure_idle(coordinator: SyncCoordinator):
    if coordinator.is_sync_running():
        raise HTTPException(status_code=409, detail=ALREADY_RUNNING_ERROR)


def _started(sync_type: SyncType, **details) -> Dict:
    return {'status': 'started', 'sync_type': sync_type.value, **details}


@router.get("/status")
async def get_sync_status(
    coordinator: SyncCoordinator = Depends(get_coordinator)
) -> Dict:
    """Current coordinator state (idle or running with progress)."""
    return coordinator.get_sync_status()


@router.post("/players", status_code=202)
async def trigger_player_sync(
    background_tasks: BackgroundTasks,
    options: Optional[SyncOptions] = None,
    coordinator: SyncCoordinator = Depends(get_coordinator)
) -> Dict:
    """
    Start a roster sync in the background.

    Returns 409 if a sync is already running.
    """
    _ensure_idle(coordinator)
    background_tasks.add_task(coordinator.sync_players, options)
    logger.info("Player sync triggered via API")
    return _started(SyncType.PLAYERS)


@router.post("/stats", status_code=202)
async def trigger_stats_sync(
    background_tasks: BackgroundTasks,
    season: int = Query(..., ge=1920, description="Season year"),
    week: int = Query(..., ge=1, le=22, description="Week number"),
    options: Optional[SyncOptions] = None,
    coordinator: SyncCoordinator = Depends(get_coordinator)
) -> Dict:
    """Start a stats sync for one week in the background."""
    _ensure_idle(coordinator)
    background_tasks.add_task(coordinator.sync_player_stats, season, week, options)
    logger.info(f"Stats sync triggered via API for {season} week {week}")
    return _started(SyncType.PLAYER_STATS, season=season, week=week)


@router.post("/stats/range", status_code=202)
async def trigger_stats_range_sync(
    background_tasks: BackgroundTasks,
    start_date: date = Query(..., description="First day (inclusive)"),
    end_date: date = Query(..., description="Last day (inclusive)"),
    options: Optional[SyncOptions] = None,
    coordinator: SyncCoordinator = Depends(get_coordinator)
) -> Dict:
    """Start a stats sync for every day in a date range."""
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")

    _ensure_idle(coordinator)
    background_tasks.add_task(
        coordinator.sync_player_stats_for_date_range, start_date, end_date, options
    )
    return _started(
        SyncType.PLAYER_STATS,
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
    )


@router.post("/full", status_code=202)
async def trigger_full_sync(
    background_tasks: BackgroundTasks,
    season: int = Query(..., ge=1920, description="Season year"),
    options: Optional[SyncOptions] = None,
    coordinator: SyncCoordinator = Depends(get_coordinator)
) -> Dict:
    """Start a full season sync (roster, then every week)."""
    _ensure_idle(coordinator)
    background_tasks.add_task(coordinator.full_sync, season, options)
    logger.info(f"Full sync triggered via API for season {season}")
    return _started(SyncType.FULL, season=season)


@router.post("/cancel")
async def cancel_sync(
    coordinator: SyncCoordinator = Depends(get_coordinator)
) -> Dict:
    """Request cancellation of the running sync."""
    return {'cancelled': coordinator.cancel_running_sync()}


@router.post("/players/link")
async def link_player(
    request: ManualLinkRequest,
    coordinator: SyncCoordinator = Depends(get_coordinator)
) -> Dict:
    """
    Manually link a roster player to an ESPN player id.

    Returns 409 if the link is refused (e.g. the id is linked elsewhere).
    """
    try:
        result = await coordinator.matcher.link_manually(request.candidate_id, request.external_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MatchingAmbiguityError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {
        'external_id': result.external_id,
        'candidate_id': result.matched_candidate_id,
        'method': result.method.value,
        'confidence_score': result.confidence_score,
        'matched_at': result.matched_at.isoformat(),
    }


@router.get("/reports/last")
async def get_last_report(
    sync_type: Optional[SyncType] = Query(None, description="Filter by sync type"),
    coordinator: SyncCoordinator = Depends(get_coordinator)
) -> Dict:
    """Most recent sync report."""
    report = await coordinator.get_last_sync_report(sync_type)
    if report is None:
        raise HTTPException(status_code=404, detail="No sync reports found")
    return report.to_dict()


@router.get("/reports")
async def get_report_history(
    limit: int = Query(50, ge=1, le=500),
    sync_type: Optional[SyncType] = Query(None, description="Filter by sync type"),
    coordinator: SyncCoordinator = Depends(get_coordinator)
) -> Dict:
    """Sync reports, newest first."""
    reports = await coordinator.get_sync_history(limit=limit, sync_type=sync_type)
    return {
        'count': len(reports),
        'reports': [r.to_dict() for r in reports],
    }
