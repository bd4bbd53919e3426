"""Initial schema — users, the four stage tables, product batches.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-19
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa

# Enum columns store member names (SQLAlchemy's default for Python enums)
user_role = sa.Enum(
    "COLLECTOR", "TRANSPORTER", "PROCESSING_PLANT", "LAB_TESTING", "CONSUMER", "MANUFACTURER",
    name="userrole",
)
farming_type = sa.Enum("ORGANIC", "CONVENTIONAL", "WILD", name="farmingtype")
plant_part = sa.Enum(
    "LEAF", "ROOT", "STEM", "FLOWER", "SEED", "RHIZOME", "TUBERS",
    "WHOLE_PLANT", "BARK", "HEARTWOOD", "STIGMA", "MYCELIUM",
    name="plantpart",
)
processing_type = sa.Enum("SORTING", "GRADING", "DRYING", "PACKING", "OTHER", name="processingtype")
test_type = sa.Enum("MOISTURE", "CONTAMINATION", "PH", "CHEMICAL", "OTHER", name="testtype")
veda_used = sa.Enum("RIG", "SAMA", "YAJUR", "ATHARVA", name="vedaused")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(150), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    # ── Stage records ────────────────────────────────────────

    op.create_table(
        "collectors",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("species", sa.String(200), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("farming_type", farming_type, nullable=False),
        sa.Column("plant_part", plant_part, nullable=False),
        sa.Column("lat", sa.Float()),
        sa.Column("lng", sa.Float()),
        sa.Column("sensors", sa.JSON()),
        sa.Column("timestamp", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_collectors_user_id", "collectors", ["user_id"])
    op.create_index("ix_collectors_timestamp", "collectors", ["timestamp"])
    op.create_index("ix_collectors_species_timestamp", "collectors", ["species", "timestamp"])

    op.create_table(
        "transports",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("collector_id", sa.String(36), sa.ForeignKey("collectors.id"), nullable=False),
        sa.Column("transporter_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("quantity_kg", sa.Float(), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("destination", sa.String(255), nullable=False),
        sa.Column("timestamp", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_transports_collector_id", "transports", ["collector_id"])
    op.create_index("ix_transports_timestamp", "transports", ["timestamp"])

    op.create_table(
        "processings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("collector_id", sa.String(36), sa.ForeignKey("collectors.id"), nullable=False),
        sa.Column("processor_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("received_quantity_kg", sa.Float(), nullable=False),
        sa.Column("processed_quantity_kg", sa.Float(), nullable=False),
        sa.Column("processing_type", processing_type, nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("timestamp", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_processings_collector_id", "processings", ["collector_id"])
    op.create_index("ix_processings_timestamp", "processings", ["timestamp"])

    op.create_table(
        "lab_tests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("collector_id", sa.String(36), sa.ForeignKey("collectors.id"), nullable=False),
        sa.Column("lab_technician_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("tested_quantity_kg", sa.Float(), nullable=False),
        sa.Column("test_type", test_type, nullable=False),
        sa.Column("result", sa.Text(), nullable=False),
        sa.Column("certificate_links", sa.JSON()),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("timestamp", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_lab_tests_collector_id", "lab_tests", ["collector_id"])
    op.create_index("ix_lab_tests_timestamp", "lab_tests", ["timestamp"])

    # ── Product batches ──────────────────────────────────────

    op.create_table(
        "product_batches",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("manufacturer_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("weight_per_product", sa.Float(), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("veda_used", veda_used, nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_product_batches_manufacturer_id", "product_batches", ["manufacturer_id"])

    op.create_table(
        "product_batch_lab_tests",
        sa.Column(
            "product_batch_id", sa.String(36),
            sa.ForeignKey("product_batches.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("lab_test_id", sa.String(36), sa.ForeignKey("lab_tests.id"), primary_key=True),
    )
    op.create_index(
        "ix_product_batch_lab_tests_lab_test_id", "product_batch_lab_tests", ["lab_test_id"]
    )


def downgrade() -> None:
    op.drop_table("product_batch_lab_tests")
    op.drop_table("product_batches")
    op.drop_table("lab_tests")
    op.drop_table("processings")
    op.drop_table("transports")
    op.drop_table("collectors")
    op.drop_table("users")
    for enum_type in (veda_used, test_type, processing_type, plant_part, farming_type, user_role):
        enum_type.drop(op.get_bind(), checkfirst=True)
