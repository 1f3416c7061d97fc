"""JSON API used by the barcode scanner, POS screen and dashboard widgets."""
from datetime import datetime
from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from sqlalchemy import or_
from models.product import Product
from services import alerts, sales
from services.errors import NotFoundError, ValidationError, PersistenceUnavailable
from services.stock_ledger import (
    active_batches_fefo_order, current_stock, lowest_active_price, persistence_guard, resolve_product, stock_snapshot
)

api_bp = Blueprint('api', __name__, url_prefix='/api')

def _number(value):
    return float(value) if value is not None else None

@api_bp.errorhandler(NotFoundError)
def handle_not_found(exc):
    return jsonify({'success': False, 'message': str(exc)}), 404

@api_bp.errorhandler(ValidationError)
def handle_validation(exc):
    return jsonify({'success': False, 'message': str(exc)}), 400

@api_bp.errorhandler(PersistenceUnavailable)
def handle_unavailable(exc):
    current_app.logger.warning('API read failed: %s', exc)
    return jsonify({'success': False, 'message': 'Data store unavailable'}), 503

@api_bp.route('/products/search')
@login_required
def search_products():
    search = request.args.get('search', '').strip()
    barcode = request.args.get('barcode', '').strip()
    store_id = request.args.get('store_id', type=int)

    query = Product.query
    if barcode:
        query = query.filter(Product.barcode == barcode)
    elif search:
        like = f'%{search}%'
        query = query.filter(or_(
            Product.code.ilike(like),
            Product.name.ilike(like),
            Product.generic_name.ilike(like),
            Product.barcode.ilike(like)
        ))
    else:
        raise ValidationError('No search criteria provided')

    with persistence_guard():
        product = query.order_by(Product.name).first()
    if product is None:
        raise NotFoundError('Product not found')

    with persistence_guard():
        batches = list(active_batches_fefo_order(product, limit=5, store_id=store_id))
    price = lowest_active_price(product, store_id=store_id)
    return jsonify({
        'success': True,
        'data': {
            'product_id': product.id,
            'product_code': product.code,
            'product_name': product.name,
            'generic_name': product.generic_name,
            'current_stock': current_stock(product, store_id=store_id),
            'selling_price': _number(price),
            'unit_symbol': product.unit.symbol if product.unit and product.unit.symbol else '',
            'batches': [{
                'batch_id': batch.id,
                'batch_number': batch.batch_number,
                'expiry_date': batch.expiry_date.isoformat(),
                'current_quantity': batch.current_quantity,
                'selling_price': _number(batch.selling_price),
                'store_id': batch.store_id,
            } for batch in batches]
        }
    })

@api_bp.route('/products/<int:product_id>/stock')
@login_required
def product_stock(product_id):
    snapshot = stock_snapshot(product_id)
    return jsonify({
        'success': True,
        'data': {
            'quantity': snapshot['current_quantity'],
            'value': float(snapshot['value'])
        }
    })

@api_bp.route('/products/<int:product_id>/quick-data')
@login_required
def product_quick_data(product_id):
    product = resolve_product(product_id)
    snapshot = stock_snapshot(product)
    return jsonify({
        'success': True,
        'data': {
            'product_id': product.id,
            'product_code': product.code,
            'product_name': product.name,
            'status': product.status,
            'min_stock': product.min_stock,
            'current_stock': snapshot['current_quantity'],
            'stock_value': float(snapshot['value']),
            'selling_price': _number(lowest_active_price(product))
        }
    })

@api_bp.route('/products/low-stock-alerts')
@login_required
def low_stock_alerts():
    limit = request.args.get('limit', current_app.config['ALERT_LIMIT'], type=int)
    if limit < 1:
        raise ValidationError('limit must be positive')
    return jsonify({'success': True, 'data': alerts.low_stock_alerts(limit)})

@api_bp.route('/products/expiry-alerts')
@login_required
def expiry_alerts():
    days = request.args.get('days', current_app.config['EXPIRY_LOOKAHEAD_DAYS'], type=int)
    limit = request.args.get('limit', current_app.config['ALERT_LIMIT'], type=int)
    if days < 1 or limit < 1:
        raise ValidationError('days and limit must be positive')
    return jsonify({'success': True, 'data': alerts.expiry_alerts(days, limit)})

@api_bp.route('/sales/process', methods=['POST'])
@login_required
def process_sale():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Expected a JSON body')
    store_id = data.get('store_id') or current_user.store_id
    sale = sales.record_sale(
        store_id=store_id,
        items=data.get('items', []),
        user_id=current_user.id,
        customer_id=data.get('customer_id'),
        discount=data.get('discount', 0),
        paid_amount=data.get('paid', 0),
        note=data.get('note')
    )
    return jsonify({
        'success': True,
        'message': 'Sale recorded',
        'data': {
            'sale_id': sale.id,
            'total_amount': float(sale.total_amount),
            'net_amount': float(sale.net_amount),
            'change_due': float(sale.change_due),
            'items': [{
                'product_id': item.product_id,
                'batch_id': item.batch_id,
                'quantity': item.quantity,
                'unit_price': float(item.unit_price),
                'total_price': float(item.total_price)
            } for item in sale.items]
        }
    }), 201

@api_bp.route('/sales/daily-summary')
@login_required
def daily_summary():
    day = request.args.get('date')
    if day:
        try:
            day = datetime.strptime(day, '%Y-%m-%d').date()
        except ValueError:
            raise ValidationError('date must be YYYY-MM-DD')
    summary = sales.daily_summary(day, request.args.get('store_id', type=int))
    for key in ('total_sales', 'total_discount', 'net_sales'):
        summary[key] = float(summary[key])
    return jsonify({'success': True, 'data': summary})

@api_bp.route('/sales/top-products')
@login_required
def top_products():
    days = request.args.get('days', 30, type=int)
    limit = request.args.get('limit', 10, type=int)
    rows = sales.top_products(days, limit)
    for row in rows:
        row['revenue'] = float(row['revenue'])
    return jsonify({'success': True, 'data': rows})
