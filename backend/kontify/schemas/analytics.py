from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_leads: int
    pending_leads: int
    assigned_leads: int
    completed_leads: int
    rejected_leads: int
    # Advisors never see colleague counts; zero for them.
    active_experts: int = 0
    by_source: dict[str, int] = {}
