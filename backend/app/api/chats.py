from typing import Any, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status
from pydantic import BaseModel, ConfigDict, Field

from app.api.deps import get_chat_service, get_current_member_id, get_push_client
from app.core.errors import MissingParameter
from app.integrations.pushy import PushyClient
from app.services.chats import ChatService

router = APIRouter()


class ChatCreateRequest(BaseModel):
    # Untyped so a missing or non-string name is answered with 400, not a 422 schema error.
    name: Any = None


class ChatCreateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    chat_id: int = Field(alias="chatID")


class ChatRoom(BaseModel):
    id: int
    name: str


class ChatListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    row_count: int = Field(alias="rowCount")
    chat_rooms: List[ChatRoom] = Field(alias="chatRooms")


class ChatMemberInfo(BaseModel):
    email: str
    username: str


class ChatMembersResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    row_count: int = Field(alias="rowCount")
    rows: List[ChatMemberInfo]


class SuccessResponse(BaseModel):
    success: bool = True


class LeaveChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    chat_deleted: bool = Field(alias="chatDeleted")


@router.post("", response_model=ChatCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_chat(
    request: Optional[ChatCreateRequest] = None,
    member_id: int = Depends(get_current_member_id),
    service: ChatService = Depends(get_chat_service),
):
    """Create a chat room. The creator is not joined automatically."""
    chat_id = await service.create_chat(request.name if request else None)
    return ChatCreateResponse(chat_id=chat_id)


@router.get("", response_model=ChatListResponse)
async def list_chats(
    member_id: int = Depends(get_current_member_id),
    service: ChatService = Depends(get_chat_service),
):
    """Chat rooms the caller belongs to."""
    chats = await service.list_chats_for_member(member_id)
    return ChatListResponse(
        row_count=len(chats),
        chat_rooms=[ChatRoom(id=c.id, name=c.name) for c in chats],
    )


@router.get("/{chat_id}", response_model=ChatMembersResponse)
async def list_chat_members(
    chat_id: str,
    member_id: int = Depends(get_current_member_id),
    service: ChatService = Depends(get_chat_service),
):
    members = await service.list_members(chat_id)
    return ChatMembersResponse(
        row_count=len(members),
        rows=[ChatMemberInfo(email=m.email, username=m.username) for m in members],
    )


@router.put("/{chat_id}", response_model=SuccessResponse)
async def join_chat(
    chat_id: str,
    member_id: int = Depends(get_current_member_id),
    service: ChatService = Depends(get_chat_service),
):
    """Add the caller to a chat."""
    await service.add_self(chat_id, member_id)
    return SuccessResponse()


@router.put("/{chat_id}/{email}", response_model=SuccessResponse)
async def add_chat_member(
    chat_id: str,
    email: str,
    background_tasks: BackgroundTasks,
    member_id: int = Depends(get_current_member_id),
    service: ChatService = Depends(get_chat_service),
    push: Optional[PushyClient] = Depends(get_push_client),
):
    """Add the member with this email and notify their devices.

    Pushes go out after the response is sent.
    """
    notice = await service.add_member_by_email(chat_id, email, member_id)
    if push is not None and notice.tokens:
        background_tasks.add_task(
            push.notify_chat_action,
            notice.tokens,
            notice.action,
            notice.chat_id,
            notice.chat_name,
        )
    return SuccessResponse()


@router.delete("/{chat_id}/{email}", response_model=SuccessResponse)
async def remove_chat_member(
    chat_id: str,
    email: str,
    member_id: int = Depends(get_current_member_id),
    service: ChatService = Depends(get_chat_service),
):
    """Remove the member with this email (not necessarily the caller)."""
    await service.remove_member_by_email(chat_id, email)
    return SuccessResponse()


@router.delete("", response_model=LeaveChatResponse)
async def leave_chat_without_id(member_id: int = Depends(get_current_member_id)):
    raise MissingParameter()


@router.delete("/{chat_id}", response_model=LeaveChatResponse)
async def leave_chat(
    chat_id: str,
    member_id: int = Depends(get_current_member_id),
    service: ChatService = Depends(get_chat_service),
):
    """Leave a chat. The chat itself is deleted once its last member leaves."""
    result = await service.leave_chat(chat_id, member_id)
    return LeaveChatResponse(chat_deleted=result.chat_deleted)
