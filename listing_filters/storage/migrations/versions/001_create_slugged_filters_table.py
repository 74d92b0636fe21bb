"""Create slugged_filters table

Revision ID: 001
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create slugged_filters table with its scope indexes."""
    op.create_table(
        'slugged_filters',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('plugin', sa.String(length=255), nullable=True),
        sa.Column('controller', sa.String(length=255), nullable=False),
        sa.Column('action', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.CHAR(length=14), nullable=False),
        sa.Column('filter_data', sa.Text(), nullable=False),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'plugin', 'controller', 'action', 'slug',
            name='uq_slugged_filter_slug',
        ),
    )
    op.create_index(
        'idx_slugged_filter_data',
        'slugged_filters',
        ['plugin', 'controller', 'action', 'filter_data'],
    )


def downgrade() -> None:
    """Drop slugged_filters table."""
    op.drop_index('idx_slugged_filter_data', table_name='slugged_filters')
    op.drop_table('slugged_filters')
