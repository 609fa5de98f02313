"""Application scenarios - names and wire types of scenario codes

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "application_scenarios",
        sa.Column("scenario_code", sa.String(2), primary_key=True),
        sa.Column("scenario_name", sa.String(100), nullable=False),
        sa.Column("wire_type", sa.String(2), nullable=False,
                  comment="Cu, Al, Ni, Ti or Zn"),
    )


def downgrade() -> None:
    op.drop_table("application_scenarios")
