"""create document_templates

Revision ID: 3f1c9a2b7d40
Revises:
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3f1c9a2b7d40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'document_templates',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('template', sa.JSON(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_document_templates_id', 'document_templates', ['id'])
    op.create_index('ix_document_templates_name', 'document_templates', ['name'], unique=True)
    op.create_index('ix_document_templates_category', 'document_templates', ['category'])


def downgrade() -> None:
    op.drop_index('ix_document_templates_category', table_name='document_templates')
    op.drop_index('ix_document_templates_name', table_name='document_templates')
    op.drop_index('ix_document_templates_id', table_name='document_templates')
    op.drop_table('document_templates')
