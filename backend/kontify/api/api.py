from fastapi import APIRouter

from kontify.api.routes import advisors, analysis, audit, auth, chat, leads, reports

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(leads.router)
api_router.include_router(advisors.router)
api_router.include_router(reports.router)
api_router.include_router(audit.router)
api_router.include_router(chat.router)
api_router.include_router(analysis.router)
