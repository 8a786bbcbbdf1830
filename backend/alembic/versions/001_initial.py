"""Initial chat membership schema (idempotent)

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    tables = sa.inspect(conn).get_table_names()

    # Members are written by the identity service; only created here for fresh databases
    if 'members' not in tables:
        op.create_table(
            'members',
            sa.Column('memberid', sa.Integer(), primary_key=True),
            sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
            sa.Column('username', sa.String(255), nullable=False),
        )

    if 'chats' not in tables:
        op.create_table(
            'chats',
            sa.Column('chatid', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('name', sa.String(255), nullable=False),
        )

    if 'chatmembers' not in tables:
        op.create_table(
            'chatmembers',
            sa.Column('chatid', sa.Integer(), sa.ForeignKey('chats.chatid', ondelete='CASCADE'), nullable=False),
            sa.Column('memberid', sa.Integer(), sa.ForeignKey('members.memberid', ondelete='CASCADE'), nullable=False),
            sa.PrimaryKeyConstraint('chatid', 'memberid', name='chatmembers_pkey'),
        )
        op.create_index('ix_chatmembers_memberid', 'chatmembers', ['memberid'])

    if 'push_token' not in tables:
        op.create_table(
            'push_token',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('memberid', sa.Integer(), sa.ForeignKey('members.memberid', ondelete='CASCADE'), nullable=False, index=True),
            sa.Column('token', sa.String(255), unique=True, nullable=False),
        )


def downgrade() -> None:
    op.drop_table('push_token')
    op.drop_index('ix_chatmembers_memberid', table_name='chatmembers')
    op.drop_table('chatmembers')
    op.drop_table('chats')
    # members belongs to the identity service and is left in place
