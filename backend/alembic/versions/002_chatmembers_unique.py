"""Enforce one chatmembers row per (chatid, memberid)

Revision ID: 002_chatmembers_unique
Revises: 001_initial
Create Date: 2026-10-17

Databases created before 001_initial may hold a chatmembers table without a
key. Collapse duplicate pairs, then add the composite primary key.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '002_chatmembers_unique'
down_revision: Union[str, None] = '001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    pk = sa.inspect(conn).get_pk_constraint('chatmembers')
    if pk and pk.get('constrained_columns'):
        return

    op.execute("""
        CREATE TEMPORARY TABLE chatmembers_dedup AS
        SELECT DISTINCT chatid, memberid FROM chatmembers
    """)
    op.execute("DELETE FROM chatmembers")
    op.execute("INSERT INTO chatmembers (chatid, memberid) SELECT chatid, memberid FROM chatmembers_dedup")
    op.execute("DROP TABLE chatmembers_dedup")

    with op.batch_alter_table('chatmembers') as batch_op:
        batch_op.create_primary_key('chatmembers_pkey', ['chatid', 'memberid'])


def downgrade() -> None:
    with op.batch_alter_table('chatmembers') as batch_op:
        batch_op.drop_constraint('chatmembers_pkey', type_='primary')
