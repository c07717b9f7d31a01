"""Initial schema: documents and page_content

Revision ID: 5b1c2e7d9a40
Revises: 
Create Date: 2026-10-19 10:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b1c2e7d9a40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # One row per ingested file
    op.create_table('documents',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('file_name', sa.Text(), nullable=False),
        sa.Column('total_pages', sa.Integer(), nullable=False),
        sa.Column('processed_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # One row per annotated page; list columns hold JSON text
    op.create_table('page_content',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('document_id', sa.Integer(), nullable=False),
        sa.Column('page_number', sa.Integer(), nullable=False),
        sa.Column('raw_text', sa.Text(), nullable=False),
        sa.Column('section_headings', sa.Text(), nullable=True),
        sa.Column('section_number', sa.Text(), nullable=True),
        sa.Column('content_type', sa.Text(), server_default=sa.text("'[\"normal\"]'"), nullable=False),
        sa.Column('keyword_count', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('keywords', sa.Text(), nullable=True),
        sa.Column('has_figure', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('mandatory_language_count', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('exception_language_count', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('document_id', 'page_number', name='uq_page_content_document_page')
    )

    # Create indexes
    op.create_index('idx_page_content_page_number', 'page_content', ['page_number'])
    op.create_index('idx_page_content_keyword_count', 'page_content', ['keyword_count'])
    op.create_index('idx_page_content_document_id', 'page_content', ['document_id'])


def downgrade() -> None:
    """Downgrade schema."""
    # Drop indexes
    op.drop_index('idx_page_content_document_id', table_name='page_content')
    op.drop_index('idx_page_content_keyword_count', table_name='page_content')
    op.drop_index('idx_page_content_page_number', table_name='page_content')

    # Drop tables
    op.drop_table('page_content')
    op.drop_table('documents')
