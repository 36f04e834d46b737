from typing import Annotated, Any
from datetime import datetime
from pydantic import BaseModel, StringConstraints

from liftlog.models import MessageRole

MessageStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=2000)]


class ChatRequest(BaseModel):
    message: MessageStr


class ChatResponse(BaseModel):
    reply: str
    tool_calls: list[str] = []
    logged: dict[str, Any] | None = None


class ChatMessageRead(BaseModel):
    id: int
    role: MessageRole
    content: str
    timestamp: datetime
    session_id: int | None = None
    logged_payload: dict[str, Any] | None = None

    model_config = {"from_attributes": True}
