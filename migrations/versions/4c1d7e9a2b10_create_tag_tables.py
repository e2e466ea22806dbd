"""create_tag_tables

Revision ID: 4c1d7e9a2b10
Revises:
Create Date: 2026-10-18 09:12:05.114327

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4c1d7e9a2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create posts, tags and the post_tags association table."""
    op.create_table('posts',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("status IN ('draft', 'published')", name='ck_posts_status'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('tags',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('color', sa.String(length=7), nullable=True),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('usage_count >= 0', name='ck_tags_usage_count_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_tags_name'),
        sa.UniqueConstraint('slug', name='uq_tags_slug'),
    )
    op.create_index('ix_tags_usage_count', 'tags', ['usage_count'], unique=False)
    # Case-insensitive name lookups (find-or-create, search)
    op.create_index('ix_tags_name_lower', 'tags', [sa.text('lower(name)')], unique=False)

    op.create_table('post_tags',
        sa.Column('post_id', sa.UUID(), nullable=False),
        sa.Column('tag_id', sa.UUID(), nullable=False),
        sa.Column('attached_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['post_id'], ['posts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('post_id', 'tag_id'),
    )
    op.create_index('ix_post_tags_tag_id', 'post_tags', ['tag_id'], unique=False)


def downgrade() -> None:
    """Drop the tag tables."""
    op.drop_index('ix_post_tags_tag_id', table_name='post_tags')
    op.drop_table('post_tags')
    op.drop_index('ix_tags_name_lower', table_name='tags')
    op.drop_index('ix_tags_usage_count', table_name='tags')
    op.drop_table('tags')
    op.drop_table('posts')
