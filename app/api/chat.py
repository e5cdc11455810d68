# Conversational assistant

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sse_starlette.sse import EventSourceResponse
from typing import List, Literal

from app.assistant.chat import ChatOrchestrator
from app.core.database import get_session_factory
from app.core.security import get_current_user
from app.models.user import User

router = APIRouter()

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1)

class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)

@router.post("/")
def chat(
    payload: ChatRequest,
    current_user: User = Depends(get_current_user),
    session_factory = Depends(get_session_factory)
):
    """
    Stream one assistant turn as server-sent events.
    Tool calls run with the caller's identity against the same services as the REST API.
    """
    orchestrator = ChatOrchestrator(user_id=current_user.id, session_factory=session_factory)
    messages = [message.model_dump() for message in payload.messages]
    return EventSourceResponse(orchestrator.sse_events(messages), ping=15)
