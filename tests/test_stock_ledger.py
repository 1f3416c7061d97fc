from decimal import Decimal

import pytest

from models import db
from models.store import Store
from models.stock_batch import StockBatch, BATCH_EXPIRED, BATCH_DEPLETED
from services.errors import NotFoundError
from services.stock_ledger import (
    current_stock, stock_value, lowest_active_price, active_batches_fefo_order, stock_snapshot
)


def test_product_without_batches_is_empty(make_product):
    product = make_product('EMPTY1')

    assert current_stock(product) == 0
    assert stock_value(product) == Decimal('0')
    assert lowest_active_price(product) is None
    assert list(active_batches_fefo_order(product, 5)) == []


def test_amoxicillin_scenario(make_product, make_batch):
    product = make_product('AMOX500', 'Amoxicillin 500mg')
    batch1 = make_batch(product, 20, expires_in=10, unit_cost='700', selling_price='1000')
    batch2 = make_batch(product, 30, expires_in=40, unit_cost='750', selling_price='1100')

    assert current_stock(product) == 50
    assert lowest_active_price(product) == Decimal('1000')
    assert [b.id for b in active_batches_fefo_order(product, limit=5)] == [batch1.id, batch2.id]


def test_only_active_batches_are_counted(make_product, make_batch):
    product = make_product('PARA500')
    make_batch(product, 12, unit_cost='2.50', selling_price='5.00')
    make_batch(product, 100, status=BATCH_EXPIRED, selling_price='0.50')
    make_batch(product, 0, status=BATCH_DEPLETED)

    assert current_stock(product) == 12
    assert stock_value(product) == Decimal('30.00')
    assert lowest_active_price(product) == Decimal('5.00')


def test_stock_value_independent_of_insertion_order(make_product, make_batch):
    first = make_product('ORD1')
    second = make_product('ORD2')
    batches = [(7, '0.10'), (3, '1.15'), (11, '2.35')]
    for qty, cost in batches:
        make_batch(first, qty, unit_cost=cost)
    for qty, cost in reversed(batches):
        make_batch(second, qty, unit_cost=cost)

    expected = sum(Decimal(qty) * Decimal(cost) for qty, cost in batches)
    assert stock_value(first) == expected
    assert stock_value(second) == expected


def test_lowest_price_ignores_empty_batches(make_product, make_batch):
    product = make_product('IBU200')
    make_batch(product, 0, selling_price='1.00')
    make_batch(product, 4, selling_price='3.00')

    assert lowest_active_price(product) == Decimal('3.00')


def test_fefo_order_and_limit(make_product, make_batch):
    product = make_product('CIPRO')
    late = make_batch(product, 5, expires_in=200)
    soon = make_batch(product, 5, expires_in=5)
    middle = make_batch(product, 5, expires_in=60)
    make_batch(product, 0, expires_in=1)
    make_batch(product, 9, expires_in=2, status=BATCH_EXPIRED)

    assert [b.id for b in active_batches_fefo_order(product)] == [soon.id, middle.id, late.id]
    assert [b.id for b in active_batches_fefo_order(product, limit=2)] == [soon.id, middle.id]


def test_fefo_sequence_is_restartable(make_product, make_batch):
    product = make_product('METRO')
    make_batch(product, 5, expires_in=30)
    sequence = active_batches_fefo_order(product, limit=5)

    assert len(list(sequence)) == 1
    make_batch(product, 5, expires_in=10)
    assert len(list(sequence)) == 2


def test_accepts_product_id(make_product, make_batch):
    product = make_product('ZINC')
    make_batch(product, 8, unit_cost='1.50')

    assert current_stock(product.id) == 8
    assert stock_snapshot(product.id) == {'current_quantity': 8, 'value': Decimal('12.00')}


def test_unknown_product_raises_not_found(app):
    with pytest.raises(NotFoundError):
        current_stock(9999)
    with pytest.raises(NotFoundError):
        active_batches_fefo_order(9999, 5)


def test_stock_figures_degrade_without_batch_table(make_product, make_batch):
    product = make_product('GONE')
    make_batch(product, 8)
    StockBatch.__table__.drop(db.engine)

    assert current_stock(product) == 0
    assert stock_value(product) == Decimal('0')
    assert lowest_active_price(product) is None
    assert stock_snapshot(product.id) == {'current_quantity': 0, 'value': Decimal('0')}
    with pytest.raises(NotFoundError):
        current_stock(999)


def test_current_stock_per_store(app, store, make_product, make_batch):
    other = Store(name='Second Pharmacy')
    db.session.add(other)
    db.session.commit()
    product = make_product('SPLIT')
    make_batch(product, 6)
    make_batch(product, 4, batch_store=other)

    assert current_stock(product) == 10
    assert current_stock(product, store_id=store.id) == 6
    assert current_stock(product, store_id=other.id) == 4
