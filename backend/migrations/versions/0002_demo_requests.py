"""Demo requests from the marketing site

Revision ID: 0002_demo_requests
Revises: 0001_initial
Create Date: 2026-10-19 15:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_demo_requests'
down_revision: Union[str, Sequence[str], None] = '0001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'demo_requests',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('practice_name', sa.String(255), nullable=True),
        sa.Column('practice_size', sa.String(64), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('status', sa.String(32), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status in ('pending','contacted','demo_scheduled','converted','declined')",
            name='ck_demo_request_status',
        ),
    )
    op.create_index('idx_demo_email', 'demo_requests', ['email'])


def downgrade() -> None:
    op.drop_index('idx_demo_email', table_name='demo_requests')
    op.drop_table('demo_requests')
