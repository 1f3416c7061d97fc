import logging
from datetime import timedelta
from flask import Blueprint, render_template, redirect, url_for, current_app
from flask_login import login_required
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from models import db
from models.product import Product
from models.stock_batch import StockBatch
from models.sale import SaleTransaction, TRANSACTION_SALE
from models.customer import Customer
from services.alerts import low_stock_alerts, expiry_alerts, low_stock_count, expiring_count
from services.stock_ledger import business_date, table_exists

dashboard_bp = Blueprint('dashboard', __name__)

logger = logging.getLogger(__name__)

def get_dashboard_stats():
    """Headline numbers; any table not provisioned yet reports zero."""
    today = business_date()
    tomorrow = today + timedelta(days=1)
    lookahead = current_app.config['EXPIRY_LOOKAHEAD_DAYS']
    stats = {
        'total_products': 0,
        'low_stock': 0,
        'expiring_soon': 0,
        'today_sales': 0,
        'today_transactions': 0,
        'total_customers': 0,
    }
    try:
        if table_exists(Product.__tablename__):
            stats['total_products'] = Product.query.count()
            if table_exists(StockBatch.__tablename__):
                stats['low_stock'] = low_stock_count()
        if table_exists(StockBatch.__tablename__):
            stats['expiring_soon'] = expiring_count(lookahead, today=today)
        if table_exists(SaleTransaction.__tablename__):
            net_sales, transactions = db.session.query(
                func.sum(SaleTransaction.total_amount - SaleTransaction.discount),
                func.count(SaleTransaction.id)
            ).filter(
                SaleTransaction.transaction_type == TRANSACTION_SALE,
                SaleTransaction.transaction_date >= today,
                SaleTransaction.transaction_date < tomorrow
            ).one()
            stats['today_sales'] = net_sales or 0
            stats['today_transactions'] = transactions
        if table_exists(Customer.__tablename__):
            stats['total_customers'] = Customer.query.filter_by(status='ACTIVE').count()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.warning('Dashboard stats degraded: %s', exc)
    return stats

def get_recent_sales(limit=10):
    if not table_exists(SaleTransaction.__tablename__):
        return []
    try:
        return SaleTransaction.query.filter_by(transaction_type=TRANSACTION_SALE).order_by(
            SaleTransaction.transaction_date.desc()
        ).limit(limit).all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.warning('Recent sales unavailable: %s', exc)
        return []

@dashboard_bp.route('/')
def home():
    return redirect(url_for('dashboard.index'))

@dashboard_bp.route('/dashboard')
@login_required
def index():
    stats = get_dashboard_stats()
    recent_sales = get_recent_sales()
    low_stock_items = low_stock_alerts(5)
    expiring_soon = expiry_alerts(current_app.config['EXPIRY_LOOKAHEAD_DAYS'], 5, today=business_date())
    return render_template('dashboard.html',
                           title='Dashboard',
                           stats=stats,
                           recent_sales=recent_sales,
                           low_stock_items=low_stock_items,
                           expiring_soon=expiring_soon)
