"""The ORM models mirror the migrations; raw SQL must only touch real columns."""

from src.mp_order.infrastructure import persistence
from src.mp_order.infrastructure.db_models import OrderNumberSequenceORM, OrderORM


def _bind_names(clause) -> set[str]:
    return set(clause.compile().params)


def test_insert_binds_are_order_columns() -> None:
    columns = set(OrderORM.__table__.columns.keys())
    assert _bind_names(persistence._INSERT_ORDER_SQL) <= columns
    assert {"created_at", "updated_at"} == columns - _bind_names(persistence._INSERT_ORDER_SQL)


def test_update_touches_mutable_columns_only() -> None:
    binds = _bind_names(persistence._UPDATE_ORDER_SQL)
    assert binds == {"id", "version", "status", "payment_status", "total", "document"}
    assert binds <= set(OrderORM.__table__.columns.keys())


def test_order_number_is_unique() -> None:
    names = {c.name for c in OrderORM.__table__.constraints}
    assert "uq_orders_order_number" in names


def test_sequence_table_shape() -> None:
    assert set(OrderNumberSequenceORM.__table__.columns.keys()) == {"day", "last_value", "updated_at"}
    assert [c.name for c in OrderNumberSequenceORM.__table__.primary_key] == ["day"]
