"""Stock aggregation over persisted batches.

All functions here are reads. A product with no batches is not an error,
it just yields zero/empty results; only an unknown product id raises
``NotFoundError``. When the batch table cannot be read the stock figures
degrade to zero (or no price) and a warning is logged.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, inspect
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.product import Product
from models.stock_batch import StockBatch, BATCH_ACTIVE
from services.errors import NotFoundError, PersistenceUnavailable

logger = logging.getLogger(__name__)

def business_date():
    """Today's date on the same clock sale timestamps are written with (UTC)."""
    return datetime.utcnow().date()

@contextmanager
def persistence_guard():
    """Translate database failures into PersistenceUnavailable."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceUnavailable(str(exc)) from exc

def table_exists(table_name):
    try:
        return inspect(db.engine).has_table(table_name)
    except SQLAlchemyError as exc:
        logger.warning('Could not inspect table %s: %s', table_name, exc)
        return False

def resolve_product(product):
    if isinstance(product, Product):
        return product
    with persistence_guard():
        found = db.session.get(Product, product)
    if found is None:
        raise NotFoundError(f'Product {product} not found')
    return found

def _active_batches(product_id):
    return StockBatch.query.filter(
        StockBatch.product_id == product_id,
        StockBatch.status == BATCH_ACTIVE
    )

def current_stock(product, store_id=None):
    product = resolve_product(product)
    query = db.session.query(func.sum(StockBatch.current_quantity)).filter(
        StockBatch.product_id == product.id,
        StockBatch.status == BATCH_ACTIVE
    )
    if store_id is not None:
        query = query.filter(StockBatch.store_id == store_id)
    try:
        with persistence_guard():
            total = query.scalar()
    except PersistenceUnavailable as exc:
        logger.warning('Stock of product %s unavailable: %s', product.id, exc)
        return 0
    return int(total or 0)

def stock_value(product):
    """Sum of quantity x unit cost over the product's active batches."""
    product = resolve_product(product)
    try:
        with persistence_guard():
            rows = _active_batches(product.id).with_entities(
                StockBatch.current_quantity, StockBatch.unit_cost
            ).all()
    except PersistenceUnavailable as exc:
        logger.warning('Stock value of product %s unavailable: %s', product.id, exc)
        return Decimal('0')
    return sum((Decimal(qty) * Decimal(cost) for qty, cost in rows), Decimal('0'))

def lowest_active_price(product, store_id=None):
    """Cheapest selling price among sellable batches, or None."""
    product = resolve_product(product)
    query = db.session.query(func.min(StockBatch.selling_price)).filter(
        StockBatch.product_id == product.id,
        StockBatch.status == BATCH_ACTIVE,
        StockBatch.current_quantity > 0
    )
    if store_id is not None:
        query = query.filter(StockBatch.store_id == store_id)
    try:
        with persistence_guard():
            price = query.scalar()
    except PersistenceUnavailable as exc:
        logger.warning('Price of product %s unavailable: %s', product.id, exc)
        return None
    return Decimal(price) if price is not None else None

def active_batches_fefo_order(product, limit=None, store_id=None):
    """Sellable batches, soonest-expiring first.

    Returns an unexecuted query: iterating it runs the read, and iterating
    again re-reads current state. Stock deductions must consume from the
    head of this sequence.
    """
    product = resolve_product(product)
    query = _active_batches(product.id).filter(StockBatch.current_quantity > 0)
    if store_id is not None:
        query = query.filter(StockBatch.store_id == store_id)
    query = query.order_by(StockBatch.expiry_date.asc(), StockBatch.id.asc())
    if limit is not None:
        query = query.limit(limit)
    return query

def stock_snapshot(product):
    product = resolve_product(product)
    return {
        'current_quantity': current_stock(product),
        'value': stock_value(product)
    }
