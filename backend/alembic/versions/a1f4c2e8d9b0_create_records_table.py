"""Create records table for the SQL record store

Revision ID: a1f4c2e8d9b0
Revises:
Create Date: 2026-10-17T09:12:44.517203
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = 'a1f4c2e8d9b0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- records: one row per record of any remote table ---
    op.create_table(
        'records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('table_name', sa.String(length=100), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('created_on', sa.DateTime(timezone=True), nullable=True),
        sa.Column('modified_on', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_records_table_name', 'records', ['table_name'])
    op.create_index('idx_records_table_id', 'records', ['table_name', 'id'])


def downgrade() -> None:
    op.drop_index('idx_records_table_id', table_name='records')
    op.drop_index('ix_records_table_name', table_name='records')
    op.drop_table('records')
