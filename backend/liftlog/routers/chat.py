import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from liftlog.db import get_db
from liftlog.llm.errors import ModelError, ServiceUnavailableError
from liftlog.llm.orchestrator import ConversationOrchestrator
from liftlog.models import MessageRole
from liftlog.repositories.chat_repo import ChatMessageRepository
from liftlog.repositories.session_repo import WorkoutSessionRepository
from liftlog.schemas.chat import ChatMessageRead, ChatRequest, ChatResponse

log = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def get_orchestrator(request: Request) -> ConversationOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Assistant is not configured")
    return orchestrator


@router.post("", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    db: Session = Depends(get_db),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    messages = ChatMessageRepository(db)
    sessions = WorkoutSessionRepository(db)

    active = sessions.get_active()
    messages.append(MessageRole.user, payload.message, session_id=active.id if active else None)

    try:
        reply = await orchestrator.send(payload.message)
    except ServiceUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except ModelError as e:
        log.error("chat turn failed: %s", e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Something went wrong. Please try again.")

    # Tools run on their own sessions; look again so a just-started session is attached
    db.expire_all()
    active = sessions.get_active()
    messages.append(
        MessageRole.assistant,
        reply.text,
        session_id=active.id if active else None,
        logged_payload=reply.logged,
    )
    return ChatResponse(reply=reply.text, tool_calls=reply.tool_calls, logged=reply.logged)


@router.post("/reset", status_code=status.HTTP_204_NO_CONTENT)
def reset(orchestrator: ConversationOrchestrator = Depends(get_orchestrator)):
    orchestrator.reset_session()


@router.get("/messages", response_model=list[ChatMessageRead])
def list_messages(db: Session = Depends(get_db), limit: int = Query(50, ge=1, le=500)):
    return ChatMessageRepository(db).list_recent(limit=limit)
