"""Create objects table

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00.000000

Single document table backing every collection the role engine reads
(_Role, UBRoleDefinition, UBUserRoleDefinition, UBClassRoomUser and the
post-like records chased for space pointers). The GIN index serves the
JSONB containment predicates used for pointer and array matching.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str | None = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Apply schema changes."""
    op.create_table(
        "objects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("class_name", sa.String(length=100), nullable=False),
        sa.Column("object_id", sa.String(length=64), nullable=False),
        sa.Column(
            "data",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("class_name", "object_id", name="uq_objects_class_name_object_id"),
    )
    op.create_index("ix_objects_class_name", "objects", ["class_name"])
    op.create_index("ix_objects_data", "objects", ["data"], postgresql_using="gin")


def downgrade() -> None:
    """Revert schema changes."""
    op.drop_index("ix_objects_data", table_name="objects")
    op.drop_index("ix_objects_class_name", table_name="objects")
    op.drop_table("objects")
