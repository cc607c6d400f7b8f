"""API routes for the advisor chat."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.services.advisor import AdvisorService, UpstreamError, ValidationError, get_advisor_service

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class ChatRequest(BaseModel):
    message: Optional[str] = None
    conversationId: Optional[str] = None


class ChatResponse(BaseModel):
    message: str
    conversationId: str


class ResetRequest(BaseModel):
    conversationId: Optional[str] = None


class ResetResponse(BaseModel):
    success: bool = True


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: Optional[ChatRequest] = Body(default=None),
    service: AdvisorService = Depends(get_advisor_service),
):
    payload = payload or ChatRequest()
    try:
        result = await service.handle_chat(payload.conversationId, payload.message)
    except ValidationError as exc:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})
    except UpstreamError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "An error occurred processing your request",
                "details": exc.message,
            },
        )
    return ChatResponse(message=result.reply, conversationId=result.session_token)


@router.post("/reset", response_model=ResetResponse)
async def reset(
    payload: Optional[ResetRequest] = Body(default=None),
    service: AdvisorService = Depends(get_advisor_service),
):
    await service.handle_reset(payload.conversationId if payload else None)
    return ResetResponse()
