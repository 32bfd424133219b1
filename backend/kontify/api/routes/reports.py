from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from kontify.core.database import get_db
from kontify.core.deps import get_current_advisor, require_roles
from kontify.models.advisor import Advisor, AdvisorRole
from kontify.models.lead import LeadSource, LeadStatus
from kontify.schemas.analytics import DashboardStats
from kontify.services.analytics import get_dashboard_stats
from kontify.services.reports import LeadFilters, export_filename, leads_csv

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/dashboard", response_model=DashboardStats)
def dashboard_stats(db: Session = Depends(get_db), current: Advisor = Depends(get_current_advisor)):
    return get_dashboard_stats(db, current)


@router.get("/leads.csv")
def export_leads_csv(
    status: LeadStatus | None = Query(default=None),
    source: LeadSource | None = Query(default=None),
    asesor_id: int | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: Session = Depends(get_db),
    _: Advisor = Depends(require_roles(AdvisorRole.admin)),
):
    filters = LeadFilters(status=status, source=source, asesor_id=asesor_id, start_date=start_date, end_date=end_date)
    return Response(
        content=leads_csv(db, filters),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={export_filename()}"},
    )
