"""Low-stock and near-expiry alerting.

Both evaluators recompute from current persisted state on every call and
degrade to empty results when the database cannot be read.
"""
import logging
from datetime import timedelta

from sqlalchemy import and_, func

from models import db
from models.product import Product
from models.stock_batch import StockBatch, BATCH_ACTIVE
from models.category import Unit
from services.errors import PersistenceUnavailable
from services.stock_ledger import business_date, persistence_guard

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD_DAYS = 30
DEFAULT_MAX_RESULTS = 10

def _low_stock_query():
    stock = func.coalesce(func.sum(StockBatch.current_quantity), 0)
    query = db.session.query(
        Product.id,
        Product.name,
        Product.min_stock,
        Unit.name.label('unit_name'),
        stock.label('current_quantity')
    ).outerjoin(
        StockBatch,
        and_(StockBatch.product_id == Product.id, StockBatch.status == BATCH_ACTIVE)
    ).outerjoin(
        Unit, Unit.id == Product.unit_id
    ).filter(
        Product.min_stock > 0
    ).group_by(
        Product.id, Product.name, Product.min_stock, Unit.name
    ).having(
        stock <= Product.min_stock
    )
    return query, stock

def _expiry_window(today, lookahead_days):
    today = today or business_date()
    return today, today + timedelta(days=lookahead_days)

def _expiring_query(today, horizon):
    return StockBatch.query.filter(
        StockBatch.status == BATCH_ACTIVE,
        StockBatch.expiry_date > today,
        StockBatch.expiry_date <= horizon
    )

def low_stock_alerts(max_results=DEFAULT_MAX_RESULTS):
    """Products at or below their configured minimum, largest deficit first.

    A product with min_stock == 0 is not monitored and never qualifies.
    Products without active batches count as holding zero stock.
    """
    query, stock = _low_stock_query()
    query = query.order_by(
        (Product.min_stock - stock).desc(), Product.name.asc(), Product.id.asc()
    ).limit(max_results)
    try:
        with persistence_guard():
            rows = query.all()
    except PersistenceUnavailable as exc:
        logger.warning('Low stock alerts unavailable: %s', exc)
        return []
    return [{
        'product_id': row.id,
        'product_name': row.name,
        'current_quantity': int(row.current_quantity),
        'min_stock': row.min_stock,
        'unit': row.unit_name or ''
    } for row in rows]

def expiry_alerts(lookahead_days=DEFAULT_LOOKAHEAD_DAYS, max_results=DEFAULT_MAX_RESULTS, today=None):
    """Active batches expiring after today and within the lookahead window."""
    today, horizon = _expiry_window(today, lookahead_days)
    query = _expiring_query(today, horizon).order_by(
        StockBatch.expiry_date.asc(), StockBatch.id.asc()
    ).limit(max_results)
    try:
        with persistence_guard():
            batches = query.all()
            return [{
                'batch_id': batch.id,
                'product_name': batch.product.name,
                'batch_number': batch.batch_number,
                'expiry_date': batch.expiry_date.isoformat(),
                'days_left': batch.days_to_expiry(today),
                'quantity': batch.current_quantity,
                'store_name': batch.store.name
            } for batch in batches]
    except PersistenceUnavailable as exc:
        logger.warning('Expiry alerts unavailable: %s', exc)
        return []

def low_stock_count():
    query, _ = _low_stock_query()
    try:
        with persistence_guard():
            return query.count()
    except PersistenceUnavailable as exc:
        logger.warning('Low stock count unavailable: %s', exc)
        return 0

def expiring_count(lookahead_days=DEFAULT_LOOKAHEAD_DAYS, today=None):
    today, horizon = _expiry_window(today, lookahead_days)
    try:
        with persistence_guard():
            return _expiring_query(today, horizon).count()
    except PersistenceUnavailable as exc:
        logger.warning('Expiring count unavailable: %s', exc)
        return 0
