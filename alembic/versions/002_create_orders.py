"""002: create orders table

Revision ID: 002
Revises: 001
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  VARCHAR(32)     PRIMARY KEY,
            order_number        VARCHAR(32)     NOT NULL,
            customer_id         VARCHAR(64)     NOT NULL,
            seller_ids          VARCHAR(64)[]   NOT NULL,
            status              VARCHAR(20)     NOT NULL,
            payment_status      VARCHAR(20)     NOT NULL,
            total               BIGINT          NOT NULL,
            currency            CHAR(3)         NOT NULL,
            created_on          DATE            NOT NULL,
            order_date          TIMESTAMPTZ     NOT NULL,
            document            JSONB           NOT NULL,
            version             BIGINT          NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_orders_order_number   UNIQUE (order_number),
            CONSTRAINT ck_orders_total_gte_0    CHECK (total >= 0),
            CONSTRAINT ck_orders_version_gte_0  CHECK (version >= 0),
            CONSTRAINT ck_orders_status         CHECK (
                status IN ('pending', 'confirmed', 'processing', 'shipped',
                           'delivered', 'cancelled', 'returned')
            ),
            CONSTRAINT ck_orders_payment_status CHECK (
                payment_status IN ('pending', 'authorized', 'completed', 'failed',
                                   'partially_refunded', 'refunded')
            )
        );
    """)
    op.execute("CREATE INDEX idx_orders_customer ON orders (customer_id, id DESC);")
    op.execute("CREATE INDEX idx_orders_created_on ON orders (created_on);")
    op.execute("CREATE INDEX idx_orders_seller_ids ON orders USING GIN (seller_ids);")
    op.execute("CREATE INDEX idx_orders_order_date ON orders (order_date);")
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TRIGGER trg_orders_order_number_immutable
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_forbid_order_number_change();
    """)
    op.execute(
        "COMMENT ON TABLE orders IS "
        "'Marketplace orders: full aggregate in document, lookup columns projected from it';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
