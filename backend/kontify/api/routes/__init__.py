from kontify.api.routes import advisors, analysis, audit, auth, chat, leads, reports

__all__ = [
    "auth",
    "leads",
    "advisors",
    "reports",
    "audit",
    "chat",
    "analysis",
]
