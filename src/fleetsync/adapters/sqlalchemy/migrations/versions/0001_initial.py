"""Initial schema: catalog, coordination and content tables.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from alembic import op

from fleetsync.adapters.sqlalchemy.mappings import mapper_registry

if TYPE_CHECKING:
    from collections.abc import Sequence

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    mapper_registry.metadata.create_all(op.get_bind(), checkfirst=True)


def downgrade() -> None:
    mapper_registry.metadata.drop_all(op.get_bind(), checkfirst=True)
