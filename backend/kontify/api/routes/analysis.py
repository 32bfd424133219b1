import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from kontify.core.database import get_db
from kontify.core.deps import require_roles
from kontify.errors import ProviderFailure
from kontify.models.advisor import Advisor, AdvisorRole
from kontify.schemas.analysis import AnalysisRequest, AnalysisResponse
from kontify.services.audit import audit_event
from kontify.services.providers import OpenAIProvider, get_ai_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.post("", response_model=AnalysisResponse)
def analyze_query(
    payload: AnalysisRequest,
    db: Session = Depends(get_db),
    current: Advisor = Depends(require_roles(AdvisorRole.admin)),
    provider: OpenAIProvider = Depends(get_ai_provider),
):
    try:
        analysis = provider.analyze_query(payload.query)
    except ProviderFailure as exc:
        logger.warning("analysis provider unavailable: %s", exc)
        raise HTTPException(status_code=503, detail="Analysis provider unavailable")

    audit_event(
        db,
        "lead_analysis",
        actor=current,
        details=f"priority={analysis.priority.value} suggested={analysis.suggested_specialization}",
    )
    return AnalysisResponse(analysis=analysis)
