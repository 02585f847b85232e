"""Technician metrics endpoint"""

from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .service import MetricsService

router = APIRouter(prefix="/metrics", tags=["Metrics"])


def get_metrics_service(db: Session = Depends(get_db)) -> MetricsService:
    return MetricsService(db)


@router.get("/technicians")
async def get_technician_metrics(
    startDate: Optional[datetime] = Query(None),
    endDate: Optional[datetime] = Query(None),
    current_user: User = Depends(get_current_user),
    service: MetricsService = Depends(get_metrics_service),
):
    """Per-technician appointment and service figures; defaults to the last 30 days"""
    start, end = _period(startDate, endDate)
    return service.technician_metrics(current_user, start, end)


def _period(startDate: Optional[datetime], endDate: Optional[datetime]) -> tuple[datetime, datetime]:
    end = endDate or datetime.utcnow()
    return startDate or end - timedelta(days=30), end


@router.get("/technicians/ranking")
async def get_technician_ranking(
    sortBy: str = Query("revenue"),
    startDate: Optional[datetime] = Query(None),
    endDate: Optional[datetime] = Query(None),
    current_user: User = Depends(get_current_user),
    service: MetricsService = Depends(get_metrics_service),
):
    start, end = _period(startDate, endDate)
    return service.ranking(current_user, start, end, sortBy)


@router.get("/technicians/comparison")
async def compare_technicians(
    technicianIds: list[int] = Query(...),
    startDate: Optional[datetime] = Query(None),
    endDate: Optional[datetime] = Query(None),
    current_user: User = Depends(get_current_user),
    service: MetricsService = Depends(get_metrics_service),
):
    """Figures for the given technicians, in the order they were asked for"""
    start, end = _period(startDate, endDate)
    return service.comparison(current_user, technicianIds, start, end)
