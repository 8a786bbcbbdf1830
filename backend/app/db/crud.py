from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DuplicateMembership, StoreError
from app.core.logging import db_logger
from app.db.models import Chat, ChatMember, Member, PushToken


@contextmanager
def store_errors(message: Optional[str] = None):
    """Re-raise driver failures as StoreError.

    A uniqueness violation on chatmembers means a concurrent join won the
    race, so it surfaces as DuplicateMembership instead.
    """
    try:
        yield
    except IntegrityError as e:
        text = str(e.orig).lower()
        if "chatmembers" in text and ("unique" in text or "duplicate" in text):
            raise DuplicateMembership() from e
        db_logger.error("Integrity error", error=e)
        raise StoreError(e, message) from e
    except SQLAlchemyError as e:
        db_logger.error("Store error", error=e)
        raise StoreError(e, message) from e


async def get_chat(db: AsyncSession, chat_id: int, lock: bool = False) -> Optional[Chat]:
    query = select(Chat).where(Chat.chatid == chat_id)
    if lock:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_member(db: AsyncSession, member_id: int) -> Optional[Member]:
    result = await db.execute(select(Member).where(Member.memberid == member_id))
    return result.scalar_one_or_none()


async def get_member_by_email(db: AsyncSession, email: str) -> Optional[Member]:
    result = await db.execute(select(Member).where(Member.email == email))
    return result.scalar_one_or_none()


async def get_chat_member(db: AsyncSession, chat_id: int, member_id: int) -> Optional[ChatMember]:
    query = select(ChatMember).where(ChatMember.chatid == chat_id, ChatMember.memberid == member_id)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def insert_chat(db: AsyncSession, name: str) -> Chat:
    chat = Chat(name=name)
    db.add(chat)
    await db.flush()
    return chat


async def insert_chat_member(db: AsyncSession, chat_id: int, member_id: int) -> None:
    db.add(ChatMember(chatid=chat_id, memberid=member_id))
    await db.flush()


async def delete_chat_member(db: AsyncSession, chat_id: int, member_id: int) -> int:
    result = await db.execute(
        delete(ChatMember).where(ChatMember.chatid == chat_id, ChatMember.memberid == member_id)
    )
    return result.rowcount


async def count_chat_members(db: AsyncSession, chat_id: int) -> int:
    result = await db.execute(select(func.count()).select_from(ChatMember).where(ChatMember.chatid == chat_id))
    return int(result.scalar_one() or 0)


async def delete_chat(db: AsyncSession, chat_id: int) -> int:
    result = await db.execute(delete(Chat).where(Chat.chatid == chat_id))
    return result.rowcount


async def list_chats_for_member(db: AsyncSession, member_id: int) -> List[Chat]:
    query = (
        select(Chat)
        .join(ChatMember, ChatMember.chatid == Chat.chatid)
        .where(ChatMember.memberid == member_id)
        .order_by(Chat.chatid)
    )
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_chat_members(db: AsyncSession, chat_id: int) -> List[Member]:
    query = (
        select(Member)
        .join(ChatMember, ChatMember.memberid == Member.memberid)
        .where(ChatMember.chatid == chat_id)
        .order_by(Member.memberid)
    )
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_push_tokens(db: AsyncSession, member_id: int) -> List[str]:
    result = await db.execute(select(PushToken.token).where(PushToken.memberid == member_id))
    return list(result.scalars().all())
