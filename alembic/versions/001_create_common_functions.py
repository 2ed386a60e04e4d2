"""001: create common trigger functions

Revision ID: 001
Revises:
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    # Order numbers are assigned once and never change.
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_forbid_order_number_change()
        RETURNS TRIGGER AS $$
        BEGIN
            IF NEW.order_number IS DISTINCT FROM OLD.order_number THEN
                RAISE EXCEPTION 'order_number is immutable (order %)', OLD.id;
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS fn_forbid_order_number_change();")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
