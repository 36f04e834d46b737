from __future__ import annotations
from sqlalchemy import select

from liftlog.models import ChatMessage, MessageRole
from liftlog.repositories.base import BaseRepository

class ChatMessageRepository(BaseRepository[ChatMessage]):
    model = ChatMessage

    def append(
        self,
        role: MessageRole,
        content: str,
        *,
        session_id: int | None = None,
        logged_payload: dict | None = None,
    ) -> ChatMessage:
        msg = ChatMessage(role=role, content=content, session_id=session_id, logged_payload=logged_payload)
        self.db.add(msg)
        self.db.commit()
        self.db.refresh(msg)
        return msg

    def list_recent(self, *, limit: int = 50) -> list[ChatMessage]:
        """Latest `limit` messages, returned oldest first for display."""
        stmt = select(ChatMessage).order_by(ChatMessage.timestamp.desc(), ChatMessage.id.desc()).limit(limit)
        return list(reversed(self.db.execute(stmt).scalars().all()))
