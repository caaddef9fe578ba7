"""Create animes and anime_episodes tables

Revision ID: 0001
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the anime cache and its episode table."""
    op.create_table(
        'animes',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('title_romaji', sa.String(length=255), nullable=True),
        sa.Column('title_english', sa.String(length=255), nullable=True),
        sa.Column('title_native', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('genres', sa.String(length=512), nullable=True),
        sa.Column('cover_image', sa.String(length=512), nullable=True),
        sa.Column('banner_image', sa.String(length=512), nullable=True),
        sa.Column('episodes', sa.Integer(), server_default='0', nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_animes_title_romaji'), 'animes', ['title_romaji'], unique=False)
    op.create_index(op.f('ix_animes_title_english'), 'animes', ['title_english'], unique=False)
    op.create_index(op.f('ix_animes_title_native'), 'animes', ['title_native'], unique=False)

    op.create_table(
        'anime_episodes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('anime_id', sa.Integer(), nullable=False),
        sa.Column('episode_number', sa.Integer(), nullable=False),
        sa.Column('title_romaji', sa.String(length=512), nullable=True),
        sa.Column('title_translated', sa.String(length=512), nullable=True),
        sa.Column('thumbnail_image', sa.String(length=512), nullable=True),
        sa.ForeignKeyConstraint(['anime_id'], ['animes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('anime_id', 'episode_number', name='uix_anime_episode')
    )
    op.create_index(op.f('ix_anime_episodes_anime_id'), 'anime_episodes', ['anime_id'], unique=False)


def downgrade() -> None:
    """Drop the episode table, then the anime cache."""
    op.drop_index(op.f('ix_anime_episodes_anime_id'), table_name='anime_episodes')
    op.drop_table('anime_episodes')
    op.drop_index(op.f('ix_animes_title_native'), table_name='animes')
    op.drop_index(op.f('ix_animes_title_english'), table_name='animes')
    op.drop_index(op.f('ix_animes_title_romaji'), table_name='animes')
    op.drop_table('animes')
