"""Initial schema - wire material inspection records

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Wire materials ───────────────────────────────────────────────
    op.create_table(
        "wire_materials",
        sa.Column("batch_number", sa.String(64), primary_key=True),
        sa.Column("device_id", sa.String(64), nullable=False),
        sa.Column("diameter", sa.Numeric(10, 2), nullable=True),
        sa.Column("resistance", sa.Numeric(10, 2), nullable=True),
        sa.Column("extensibility", sa.Numeric(10, 2), nullable=True),
        sa.Column("weight", sa.Numeric(10, 2), nullable=True),
        sa.Column("source_origin_raw", sa.Text, nullable=True,
                  comment="Raw production info as received from the device (hex, GBK)"),
        sa.Column("manufacturer", sa.String(100), nullable=True),
        sa.Column("responsible_person", sa.String(50), nullable=True),
        sa.Column("process_type", sa.String(50), nullable=True),
        sa.Column("production_machine", sa.String(100), nullable=True),
        sa.Column("contact_email", sa.String(100), nullable=True),
        sa.Column("scenario_code", sa.String(2), nullable=True),
        sa.Column("device_code", sa.String(2), nullable=True),
        sa.Column("event_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("evaluation_result", sa.String(10), nullable=False,
                  server_default="UNKNOWN"),
        sa.Column("evaluation_message", sa.Text, nullable=True),
        sa.Column("model_evaluation_result", sa.String(10), nullable=False,
                  server_default="UNKNOWN"),
        sa.Column("model_confidence", sa.Numeric(5, 4), nullable=True),
        sa.Column("final_evaluation_result", sa.String(15), nullable=False,
                  server_default="UNKNOWN"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
    )
    op.create_index("ix_wire_materials_event_time", "wire_materials", ["event_time"])
    op.create_index(
        "ix_wire_materials_final_result", "wire_materials", ["final_evaluation_result"]
    )
    op.create_index("ix_wire_materials_scenario_code", "wire_materials", ["scenario_code"])


def downgrade() -> None:
    op.drop_index("ix_wire_materials_scenario_code", table_name="wire_materials")
    op.drop_index("ix_wire_materials_final_result", table_name="wire_materials")
    op.drop_index("ix_wire_materials_event_time", table_name="wire_materials")
    op.drop_table("wire_materials")
