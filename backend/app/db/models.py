from sqlalchemy import Column, Integer, String, ForeignKey, PrimaryKeyConstraint, Index
from sqlalchemy.orm import relationship
from app.db.database import Base


class Member(Base):
    # Owned by the identity service; read-only here.
    __tablename__ = "members"

    memberid = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(255), nullable=False)

    chat_memberships = relationship("ChatMember", back_populates="member", passive_deletes=True)
    push_tokens = relationship("PushToken", back_populates="member", passive_deletes=True)


class Chat(Base):
    __tablename__ = "chats"

    chatid = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)

    members = relationship("ChatMember", back_populates="chat", passive_deletes=True)


class ChatMember(Base):
    __tablename__ = "chatmembers"
    __table_args__ = (
        # One membership per (chat, member); concurrent duplicate joins trip this.
        PrimaryKeyConstraint("chatid", "memberid", name="chatmembers_pkey"),
        Index("ix_chatmembers_memberid", "memberid"),
    )

    chatid = Column(Integer, ForeignKey("chats.chatid", ondelete="CASCADE"), nullable=False)
    memberid = Column(Integer, ForeignKey("members.memberid", ondelete="CASCADE"), nullable=False)

    chat = relationship("Chat", back_populates="members")
    member = relationship("Member", back_populates="chat_memberships")


class PushToken(Base):
    __tablename__ = "push_token"

    id = Column(Integer, primary_key=True, autoincrement=True)
    memberid = Column(Integer, ForeignKey("members.memberid", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(255), unique=True, nullable=False)

    member = relationship("Member", back_populates="push_tokens")
