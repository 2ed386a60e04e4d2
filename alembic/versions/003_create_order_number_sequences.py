"""003: create order_number_sequences table

Revision ID: 003
Revises: 002
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE order_number_sequences (
            day         DATE        PRIMARY KEY,
            last_value  INT         NOT NULL DEFAULT 0,
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_order_number_sequences_last_value CHECK (last_value >= 0)
        );
    """)
    op.execute(
        "COMMENT ON TABLE order_number_sequences IS "
        "'Per-day counter behind PREFIX+YYMMDD+NNNN order numbers';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS order_number_sequences;")
