"""Create redirections table

Revision ID: 001_redirections
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_redirections'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the redirections table, keyed by slug, with the click counter
    and its listing indexes.
    """
    bind = op.get_bind()
    if 'redirections' in inspect(bind).get_table_names():
        return

    op.create_table(
        'redirections',
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('title', sa.String(length=160), nullable=False, server_default=''),
        sa.Column('description', sa.String(length=300), nullable=False, server_default=''),
        sa.Column('image_url', sa.Text(), nullable=False, server_default=''),
        sa.Column('keywords', sa.Text(), nullable=False, server_default=''),
        sa.Column('site_name', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('content_type', sa.String(length=20), nullable=False, server_default='website'),
        sa.Column('canonical_url', sa.Text(), nullable=False, server_default=''),
        sa.Column('author', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('published_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('modified_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('clicks', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('slug')
    )

    op.create_index('ix_redirections_created_at', 'redirections', ['created_at'])
    op.create_index('ix_redirections_clicks', 'redirections', ['clicks'])


def downgrade() -> None:
    op.drop_index('ix_redirections_clicks', table_name='redirections')
    op.drop_index('ix_redirections_created_at', table_name='redirections')
    op.drop_table('redirections')
