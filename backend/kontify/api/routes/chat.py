import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from kontify.core.config import get_settings
from kontify.core.rate_limit import limiter
from kontify.errors import ProviderFailure
from kontify.schemas.chat import ChatCompletionRequest, ChatCompletionResponse
from kontify.services.providers import OpenAIProvider, get_ai_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/complete", response_model=ChatCompletionResponse)
@limiter.limit("30/minute")
def chat_complete(
    request: Request,
    payload: ChatCompletionRequest,
    provider: OpenAIProvider = Depends(get_ai_provider),
):
    settings = get_settings()
    if payload.history[-1].role != "user":
        raise HTTPException(status_code=422, detail="The last message must come from the visitor")

    # The intake conversation closes on the last visitor turn without asking the model.
    visitor_turns = sum(1 for m in payload.history if m.role == "user")
    if visitor_turns >= settings.CHAT_MAX_VISITOR_MESSAGES:
        raise HTTPException(status_code=422, detail="Conversation limit reached")

    try:
        reply = provider.complete_chat(payload.history)
    except ProviderFailure as exc:
        logger.warning("chat provider unavailable: %s", exc)
        raise HTTPException(status_code=503, detail="Chat assistant unavailable")
    return ChatCompletionResponse(reply=reply)
