# =========================================================
# ANALYTICS ROUTER
#
# Dashboard counters and period reports computed from the sale ledger.
# Each period is compared against the calendar period before it.
# =========================================================

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from salesdesk.database import get_db
from salesdesk.core.auth import get_current_user
from salesdesk.schemas.report import AnalyticsReportResponse, DashboardSummaryResponse
from salesdesk.services import reporting

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("", response_model=DashboardSummaryResponse)
def dashboard(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.dashboard_summary(db, datetime.now(timezone.utc))


@router.get("/report", response_model=AnalyticsReportResponse)
def analytics_report(
    period: str = Query("month", pattern="^(day|week|month|quarter|year)$"),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return reporting.build_report(db, period, datetime.now(timezone.utc))
