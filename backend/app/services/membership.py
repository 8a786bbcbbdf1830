"""
Membership checks shared by the chat endpoints.

Every check is a plain read; driver failures come back as StoreError.
"""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.db import crud
from app.db.crud import store_errors
from app.db.models import Chat, Member


class MembershipValidator:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_chat(self, chat_id: int, lock: bool = False) -> Optional[Chat]:
        """Fetch the chat row; ``lock`` holds it for the rest of the transaction."""
        with store_errors():
            return await crud.get_chat(self.db, chat_id, lock=lock)

    async def chat_exists(self, chat_id: int) -> bool:
        return await self.get_chat(chat_id) is not None

    async def member_exists_by_id(self, member_id: int) -> bool:
        with store_errors():
            return await crud.get_member(self.db, member_id) is not None

    async def member_by_email(self, email: str) -> Optional[Member]:
        with store_errors():
            return await crud.get_member_by_email(self.db, email)

    async def is_member(self, chat_id: int, member_id: int) -> bool:
        with store_errors():
            return await crud.get_chat_member(self.db, chat_id, member_id) is not None
