"""004: create products read model

Revision ID: 004
Revises: 003
Create Date: 2026-10-06
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE products (
            id                  VARCHAR(64)     PRIMARY KEY,
            name                VARCHAR(300)    NOT NULL,
            seller_id           VARCHAR(64)     NOT NULL,
            price               BIGINT          NOT NULL,
            commission_percent  NUMERIC(5, 2),
            status              VARCHAR(20)     NOT NULL DEFAULT 'draft',
            currency            CHAR(3)         NOT NULL DEFAULT 'USD',
            variant_prices      JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_products_price_gte_0 CHECK (price >= 0),
            CONSTRAINT ck_products_commission  CHECK (
                commission_percent IS NULL OR commission_percent BETWEEN 0 AND 100
            ),
            CONSTRAINT ck_products_status      CHECK (
                status IN ('draft', 'active', 'inactive', 'out_of_stock')
            )
        );
    """)
    op.execute("CREATE INDEX idx_products_seller ON products (seller_id);")
    op.execute("""
        CREATE TRIGGER trg_products_updated_at
            BEFORE UPDATE ON products
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE products IS "
        "'Catalog read model: checkout snapshots price, seller and commission from here';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS products CASCADE;")
