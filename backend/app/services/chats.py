"""
Chat lifecycle: creating chats, joining, adding and removing members, and
leaving (the last member out deletes the chat).

Each operation runs its checks top to bottom and raises the first failure;
nothing is written until every check has passed.
"""
import re
from dataclasses import dataclass
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    ChatNotFound,
    DuplicateMembership,
    EmailNotFound,
    MalformedParameter,
    MemberNotFound,
    MissingParameter,
    NotInChat,
    ValidationError,
)
from app.core.logging import chats_logger, log_operation
from app.db import crud
from app.db.crud import store_errors
from app.services.membership import MembershipValidator

NEW_ROOM_ACTION = "newRoom"

_CHAT_ID_RE = re.compile(r"[0-9]+")
_MAX_CHAT_ID = 2**31 - 1


def parse_chat_id(raw: Optional[str]) -> int:
    """Return ``raw`` as a positive int chat id, or raise before any store access."""
    if raw is None or not str(raw).strip():
        raise MissingParameter()
    raw = str(raw).strip()
    if not _CHAT_ID_RE.fullmatch(raw):
        raise MalformedParameter()
    chat_id = int(raw)
    if chat_id < 1 or chat_id > _MAX_CHAT_ID:
        raise MalformedParameter()
    return chat_id


def _require(*values: Optional[str]) -> None:
    for value in values:
        if value is None or not str(value).strip():
            raise MissingParameter()


@dataclass
class ChatSummary:
    id: int
    name: str


@dataclass
class MemberSummary:
    email: str
    username: str


@dataclass
class ChatActionNotice:
    """Push owed to a member's devices once the membership change is committed."""
    action: str
    chat_id: int
    chat_name: str
    tokens: List[str]


@dataclass
class LeaveResult:
    chat_id: int
    chat_deleted: bool


class ChatService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.validator = MembershipValidator(db)

    @log_operation("create_chat", chats_logger)
    async def create_chat(self, name: Any) -> int:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError()
        with store_errors():
            chat = await crud.insert_chat(self.db, name)
            chat_id = chat.chatid
            await self.db.commit()
        chats_logger.info("Chat created", chat_id=chat_id)
        return chat_id

    async def list_chats_for_member(self, member_id: int) -> List[ChatSummary]:
        with store_errors():
            chats = await crud.list_chats_for_member(self.db, member_id)
        return [ChatSummary(id=c.chatid, name=c.name) for c in chats]

    async def list_members(self, raw_chat_id: Optional[str]) -> List[MemberSummary]:
        chat_id = parse_chat_id(raw_chat_id)
        if not await self.validator.chat_exists(chat_id):
            raise ChatNotFound()
        with store_errors():
            members = await crud.list_chat_members(self.db, chat_id)
        return [MemberSummary(email=m.email, username=m.username) for m in members]

    @log_operation("add_self", chats_logger)
    async def add_self(self, raw_chat_id: Optional[str], member_id: int) -> None:
        chat_id = parse_chat_id(raw_chat_id)
        if await self.validator.get_chat(chat_id, lock=True) is None:
            raise ChatNotFound()
        # The caller is authenticated, but the member row may have been removed since.
        if not await self.validator.member_exists_by_id(member_id):
            raise MemberNotFound()
        if await self.validator.is_member(chat_id, member_id):
            raise DuplicateMembership()
        with store_errors():
            await crud.insert_chat_member(self.db, chat_id, member_id)
            await self.db.commit()
        chats_logger.info("Member joined chat", chat_id=chat_id, member_id=member_id)

    @log_operation("add_member_by_email", chats_logger)
    async def add_member_by_email(
        self,
        raw_chat_id: Optional[str],
        email: Optional[str],
        caller_id: int,
    ) -> ChatActionNotice:
        """Add the member owning ``email``.

        Returns the newRoom push owed to their devices; sending it is left to
        the caller. The membership is committed before the token lookup, so a
        failing lookup never undoes it.
        """
        _require(raw_chat_id, email)
        chat_id = parse_chat_id(raw_chat_id)
        chat = await self.validator.get_chat(chat_id, lock=True)
        if chat is None:
            raise ChatNotFound()
        chat_name = chat.name
        member = await self.validator.member_by_email(email)
        if member is None:
            raise EmailNotFound()
        member_id = member.memberid
        if await self.validator.is_member(chat_id, member_id):
            raise DuplicateMembership()
        with store_errors():
            await crud.insert_chat_member(self.db, chat_id, member_id)
            await self.db.commit()
        chats_logger.info("Member added to chat", chat_id=chat_id, member_id=member_id, added_by=caller_id)

        with store_errors("SQL Error on select from push token"):
            tokens = await crud.list_push_tokens(self.db, member_id)
        return ChatActionNotice(action=NEW_ROOM_ACTION, chat_id=chat_id, chat_name=chat_name, tokens=tokens)

    @log_operation("remove_member_by_email", chats_logger)
    async def remove_member_by_email(self, raw_chat_id: Optional[str], email: Optional[str]) -> None:
        _require(raw_chat_id, email)
        chat_id = parse_chat_id(raw_chat_id)
        if await self.validator.get_chat(chat_id, lock=True) is None:
            raise ChatNotFound()
        member = await self.validator.member_by_email(email)
        if member is None:
            raise EmailNotFound("email not found")
        member_id = member.memberid
        if not await self.validator.is_member(chat_id, member_id):
            raise NotInChat()
        with store_errors():
            await crud.delete_chat_member(self.db, chat_id, member_id)
            await self.db.commit()
        chats_logger.info("Member removed from chat", chat_id=chat_id, member_id=member_id)

    @log_operation("leave_chat", chats_logger)
    async def leave_chat(self, raw_chat_id: Optional[str], member_id: int) -> LeaveResult:
        """Remove the caller from the chat; delete the chat if nobody is left.

        Leaving a chat you are not in is a no-op that still reports success.
        The membership delete, the count and the chat delete commit together.
        """
        chat_id = parse_chat_id(raw_chat_id)
        if await self.validator.get_chat(chat_id, lock=True) is None:
            raise ChatNotFound()
        with store_errors():
            await crud.delete_chat_member(self.db, chat_id, member_id)
            remaining = await crud.count_chat_members(self.db, chat_id)
            if remaining > 0:
                await self.db.commit()
                chats_logger.info("Member left chat", chat_id=chat_id, member_id=member_id, remaining=remaining)
                return LeaveResult(chat_id=chat_id, chat_deleted=False)
            await crud.delete_chat(self.db, chat_id)
            await self.db.commit()
        chats_logger.info("Last member left, chat deleted", chat_id=chat_id, member_id=member_id)
        return LeaveResult(chat_id=chat_id, chat_deleted=True)
