"""Statistics routes: live aggregate, popular items, CSV export and reset."""

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import Response

from festbar.core.pin_gate import require_admin_pin, require_pin
from festbar.db.session import DbSession
from festbar.schemas.statistics import PopularItem, StatisticsSnapshot
from festbar.services.live_updates import publish
from festbar.services.statistics_service import StatisticsService
from festbar.services.websocket_service import Channel

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=StatisticsSnapshot, dependencies=[Depends(require_pin("statistics"))])
def get_statistics(db: DbSession):
    """Global and per-table revenue of completed orders."""
    return StatisticsService(db).snapshot()


@router.get("/popular", response_model=List[PopularItem])
def get_popular_items(db: DbSession, limit: int = Query(5, ge=1, le=20)):
    """Best sellers, shown as a badge on the table page."""
    return StatisticsService(db).popular_items(limit=limit)


@router.get("/export", dependencies=[Depends(require_pin("statistics"))])
def export_statistics(db: DbSession):
    """Download the aggregate as a semicolon-separated CSV file."""
    content = StatisticsService(db).export_csv()
    filename = f"statistik-{datetime.now(timezone.utc):%Y-%m-%d}.csv"
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/reset", response_model=StatisticsSnapshot, dependencies=[Depends(require_admin_pin)])
def reset_statistics(background_tasks: BackgroundTasks, db: DbSession):
    """Zero the whole aggregate. Always asks for the admin PIN."""
    snapshot = StatisticsService(db).reset()
    publish(background_tasks, db, (Channel.STATISTICS,))
    return snapshot
