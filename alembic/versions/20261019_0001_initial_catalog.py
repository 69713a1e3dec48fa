"""users, books and reading_progress tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = '20261019_0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('avatar', sa.Text, nullable=True),
        sa.Column('oauth_provider', sa.String(50), nullable=True),
        sa.Column('oauth_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('oauth_provider', 'oauth_id', name='uq_users_oauth_identity'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'books',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('author', sa.String(255), nullable=False),
        sa.Column('genre', sa.String(100), nullable=True),
        sa.Column('summary_short', sa.Text, nullable=True),
        sa.Column('summary_long', sa.Text, nullable=True),
        sa.Column('cover_image_url', sa.Text, nullable=True),
        sa.Column('file_url', sa.Text, nullable=False),
        sa.Column('file_format', sa.String(100), nullable=False),
        sa.Column(
            'uploader_id', sa.Uuid(as_uuid=True),
            sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('metadata', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_books_title', 'books', ['title'])
    op.create_index('ix_books_author', 'books', ['author'])
    op.create_index('ix_books_genre', 'books', ['genre'])
    op.create_index('ix_books_uploader_id', 'books', ['uploader_id'])
    op.create_index('ix_books_created_at', 'books', ['created_at'])

    op.create_table(
        'reading_progress',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            'user_id', sa.Uuid(as_uuid=True),
            sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'book_id', sa.Uuid(as_uuid=True),
            sa.ForeignKey('books.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('current_page', sa.Integer, nullable=False, server_default='0'),
        sa.Column('total_pages', sa.Integer, nullable=False, server_default='100'),
        sa.Column('percentage_complete', sa.Float, nullable=False, server_default='0'),
        sa.Column('last_read_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'book_id', name='uq_reading_progress_user_book'),
    )
    op.create_index('ix_reading_progress_user_id', 'reading_progress', ['user_id'])
    op.create_index('ix_reading_progress_book_id', 'reading_progress', ['book_id'])


def downgrade() -> None:
    op.drop_index('ix_reading_progress_book_id', 'reading_progress')
    op.drop_index('ix_reading_progress_user_id', 'reading_progress')
    op.drop_table('reading_progress')
    op.drop_index('ix_books_created_at', 'books')
    op.drop_index('ix_books_uploader_id', 'books')
    op.drop_index('ix_books_genre', 'books')
    op.drop_index('ix_books_author', 'books')
    op.drop_index('ix_books_title', 'books')
    op.drop_table('books')
    op.drop_index('ix_users_email', 'users')
    op.drop_table('users')
