"""Sale recording with FEFO stock consumption, and sales summaries."""
import logging
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation

from sqlalchemy import func

from models import db
from models.store import Store
from models.customer import Customer
from models.sale import SaleTransaction, SaleItem, TRANSACTION_SALE
from models.product import Product
from services.errors import NotFoundError, ValidationError
from services.stock_ledger import active_batches_fefo_order, business_date, resolve_product

logger = logging.getLogger(__name__)

def _to_decimal(value, field):
    try:
        amount = Decimal(str(value if value not in (None, '') else 0))
    except InvalidOperation:
        raise ValidationError(f'{field} must be a number')
    if amount < 0:
        raise ValidationError(f'{field} cannot be negative')
    return amount

def _parse_items(items):
    if not isinstance(items, list):
        raise ValidationError('items must be a list')
    if not items:
        raise ValidationError('Cart is empty')
    wanted = {}
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError('Each item must be an object with product_id and quantity')
        try:
            product_id = int(item.get('product_id'))
            quantity = int(item.get('quantity', 0))
        except (TypeError, ValueError):
            raise ValidationError('Each item needs a numeric product_id and quantity')
        if quantity < 1:
            raise ValidationError(f'Invalid quantity for product {product_id}')
        wanted[product_id] = wanted.get(product_id, 0) + quantity
    return wanted

def record_sale(store_id, items, user_id, customer_id=None, discount=0, paid_amount=0, note=None):
    """Record a sale, consuming soonest-expiring stock first.

    ``items`` is a list of ``{'product_id': ..., 'quantity': ...}``. One
    SaleItem is written per batch consumed, so a line that spans two
    batches is priced at each batch's own selling price.
    """
    wanted = _parse_items(items)
    discount = _to_decimal(discount, 'discount')
    paid_amount = _to_decimal(paid_amount, 'paid')

    store = db.session.get(Store, store_id) if store_id else None
    if store is None:
        raise NotFoundError(f'Store {store_id} not found')
    if customer_id and db.session.get(Customer, customer_id) is None:
        raise NotFoundError(f'Customer {customer_id} not found')

    sale = SaleTransaction(
        store_id=store.id,
        user_id=user_id,
        customer_id=customer_id or None,
        transaction_type=TRANSACTION_SALE,
        discount=discount,
        paid_amount=paid_amount,
        note=note
    )
    total = Decimal('0')
    try:
        for product_id, quantity in wanted.items():
            product = resolve_product(product_id)
            remaining = quantity
            for batch in active_batches_fefo_order(product, store_id=store.id):
                if remaining == 0:
                    break
                take = min(remaining, batch.current_quantity)
                batch.subtract_quantity(take)
                line_total = batch.selling_price * take
                sale.items.append(SaleItem(
                    product_id=product.id,
                    batch_id=batch.id,
                    quantity=take,
                    unit_price=batch.selling_price,
                    unit_cost=batch.unit_cost,
                    total_price=line_total
                ))
                total += line_total
                remaining -= take
            if remaining > 0:
                raise ValidationError(
                    f'Insufficient stock for {product.name}: requested {quantity}, '
                    f'available {quantity - remaining}'
                )
        if discount > total:
            raise ValidationError('Discount exceeds sale total')
        sale.total_amount = total
        db.session.add(sale)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info('Recorded sale %s at store %s: %s items, total %s',
                sale.id, store.id, len(sale.items), total)
    return sale

def _sales_between(start, end):
    return SaleTransaction.query.filter(
        SaleTransaction.transaction_type == TRANSACTION_SALE,
        SaleTransaction.transaction_date >= start,
        SaleTransaction.transaction_date < end
    )

def daily_summary(day=None, store_id=None):
    day = day or business_date()
    start = datetime.combine(day, datetime.min.time())
    query = _sales_between(start, start + timedelta(days=1))
    if store_id:
        query = query.filter(SaleTransaction.store_id == store_id)
    sales = query.all()
    total_sales = sum((s.total_amount for s in sales), Decimal('0'))
    total_discount = sum((s.discount for s in sales), Decimal('0'))
    return {
        'date': day.isoformat(),
        'transactions': len(sales),
        'total_sales': total_sales,
        'total_discount': total_discount,
        'net_sales': total_sales - total_discount
    }

def top_products(days=30, limit=10):
    since = datetime.utcnow() - timedelta(days=days)
    rows = db.session.query(
        Product.id,
        Product.name,
        func.sum(SaleItem.quantity).label('quantity'),
        func.sum(SaleItem.total_price).label('revenue')
    ).join(SaleItem, SaleItem.product_id == Product.id).join(
        SaleTransaction, SaleTransaction.id == SaleItem.sale_id
    ).filter(
        SaleTransaction.transaction_type == TRANSACTION_SALE,
        SaleTransaction.transaction_date >= since
    ).group_by(Product.id, Product.name).order_by(
        func.sum(SaleItem.quantity).desc(), Product.name
    ).limit(limit).all()
    return [{
        'product_id': row.id,
        'product_name': row.name,
        'quantity': int(row.quantity or 0),
        'revenue': row.revenue or Decimal('0')
    } for row in rows]
