"""add document_number to deals and share fields to generated_documents

Revision ID: 5e2d71c4a9b3
Revises: 
Create Date: 2026-10-19 10:12:44.301772

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5e2d71c4a9b3'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.add_column("deals", sa.Column("document_number", sa.String(100), nullable=True))
    op.add_column(
        "generated_documents",
        sa.Column("external_document_id", sa.String(255), nullable=True),
    )
    op.add_column("generated_documents", sa.Column("view_link", sa.String(2000), nullable=True))


def downgrade() -> None:
    op.drop_column("generated_documents", "view_link")
    op.drop_column("generated_documents", "external_document_id")
    op.drop_column("deals", "document_number")
