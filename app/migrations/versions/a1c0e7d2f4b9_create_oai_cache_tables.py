"""Create OAI-PMH record cache, token store and content entity tables

Revision ID: a1c0e7d2f4b9
Revises:

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON

# revision identifiers, used by Alembic.
revision = "a1c0e7d2f4b9"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "oai_record",
        Column("entity_type", String(64), primary_key=True),
        Column("entity_id", String(128), primary_key=True),
        Column("created", DateTime, nullable=False, index=True),
        Column("changed", DateTime, nullable=False, index=True),
    )

    op.create_table(
        "oai_set",
        Column("set_id", String(255), primary_key=True),
        Column("entity_type", String(64)),
        Column("label", String(255), nullable=False),
        Column("pager_limit", Integer, nullable=False, server_default="0"),
        Column("view_display", String(255), index=True),
    )

    op.create_table(
        "oai_member",
        Column("entity_type", String(64), primary_key=True),
        Column("entity_id", String(128), primary_key=True),
        Column("set_id", String(255), sa.ForeignKey("oai_set.set_id", ondelete="CASCADE"), primary_key=True),
        sa.ForeignKeyConstraint(
            ["entity_type", "entity_id"],
            ["oai_record.entity_type", "oai_record.entity_id"],
            ondelete="CASCADE",
        ),
    )
    op.create_index("idx_member_set", "oai_member", ["set_id"])

    op.create_table(
        "oai_resumption_token",
        Column("token_id", Integer, primary_key=True, autoincrement=False),
        Column("verb", String(32), nullable=False),
        Column("metadata_prefix", String(64), nullable=False),
        Column("set_id", String(255)),
        Column("cursor", Integer, nullable=False, server_default="0"),
        Column("from_date", DateTime),
        Column("until_date", DateTime),
        Column("complete_list_size", Integer, nullable=False),
        Column("expires", DateTime, nullable=False, index=True),
    )

    op.create_table(
        "oai_token_sequence",
        Column("name", String(50), primary_key=True),
        Column("next_id", Integer, nullable=False, server_default="1"),
    )
    op.bulk_insert(
        sa.table("oai_token_sequence", sa.column("name", String), sa.column("next_id", Integer)),
        [{"name": "resumption_token", "next_id": 1}],
    )

    op.create_table(
        "content_entity",
        Column("entity_type", String(64), primary_key=True),
        Column("entity_id", String(128), primary_key=True),
        Column("label", String(255)),
        Column("fields", JSON, nullable=False),
        Column("published", Boolean, nullable=False, server_default=sa.true()),
        Column("created", DateTime, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        Column("changed", DateTime, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )


def downgrade():
    # Drop tables in reverse order
    op.drop_table("content_entity")
    op.drop_table("oai_token_sequence")
    op.drop_table("oai_resumption_token")
    op.drop_index("idx_member_set", table_name="oai_member")
    op.drop_table("oai_member")
    op.drop_table("oai_set")
    op.drop_table("oai_record")
