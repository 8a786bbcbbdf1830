from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.integrations.pushy import PushyClient
from app.services.chats import ChatService
from app.core.security import get_current_user


def get_push_client(request: Request) -> Optional[PushyClient]:
    """Push client created at startup; None when the app runs without one."""
    return getattr(request.app.state, "push_client", None)


def get_chat_service(db: AsyncSession = Depends(get_db)) -> ChatService:
    return ChatService(db)


async def get_current_member_id(current_user: dict = Depends(get_current_user)) -> int:
    return current_user["member_id"]
