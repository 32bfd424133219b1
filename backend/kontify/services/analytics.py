from sqlalchemy import func
from sqlalchemy.orm import Session

from kontify.models.advisor import Advisor, AdvisorRole, AdvisorStatus
from kontify.models.lead import Lead, LeadStatus
from kontify.schemas.analytics import DashboardStats


def get_dashboard_stats(db: Session, viewer: Advisor) -> DashboardStats:
    scope = db.query(Lead.status, Lead.source, func.count(Lead.id))
    if viewer.role != AdvisorRole.admin:
        scope = scope.filter(Lead.asesor_id == viewer.id)
    rows = scope.group_by(Lead.status, Lead.source).all()

    by_status = {s: 0 for s in LeadStatus}
    by_source: dict[str, int] = {}
    for status, source, count in rows:
        by_status[status] += count
        by_source[source.value] = by_source.get(source.value, 0) + count

    active_experts = 0
    if viewer.role == AdvisorRole.admin:
        active_experts = (
            db.query(func.count(Advisor.id))
            .filter(Advisor.role == AdvisorRole.asesor, Advisor.status == AdvisorStatus.active)
            .scalar()
            or 0
        )

    return DashboardStats(
        total_leads=sum(by_status.values()),
        pending_leads=by_status[LeadStatus.pending],
        assigned_leads=by_status[LeadStatus.assigned],
        completed_leads=by_status[LeadStatus.completed],
        rejected_leads=by_status[LeadStatus.rejected],
        active_experts=int(active_experts),
        by_source=by_source,
    )
