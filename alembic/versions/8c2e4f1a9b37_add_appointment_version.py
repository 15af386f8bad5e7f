"""Add version counter to appointments

Revision ID: 8c2e4f1a9b37
Revises: 3b1f9c2d7a41
Create Date: 2026-10-18 16:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '8c2e4f1a9b37'
down_revision: Union[str, None] = '3b1f9c2d7a41'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column('appointments', sa.Column('version', sa.Integer(), server_default='1', nullable=False))


def downgrade() -> None:
    op.drop_column('appointments', 'version')
