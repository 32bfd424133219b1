from kontify.models.advisor import Advisor, AdvisorRole, AdvisorStatus, BillingStatus, FiscalSpecialization
from kontify.models.lead import AssignmentHistory, Lead, LeadSource, LeadStatus
from kontify.models.audit import AuditLog

__all__ = [
    "Advisor",
    "AdvisorRole",
    "AdvisorStatus",
    "BillingStatus",
    "FiscalSpecialization",
    "Lead",
    "LeadSource",
    "LeadStatus",
    "AssignmentHistory",
    "AuditLog",
]
