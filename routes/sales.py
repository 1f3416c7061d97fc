from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_babel import gettext as _
from flask_login import login_required, current_user
from models.sale import SaleTransaction
from models.store import Store
from models.customer import Customer
from services.sales import daily_summary

sales_bp = Blueprint('sales', __name__, url_prefix='/sales')

@sales_bp.route('/')
@login_required
def list_sales():
    store_id = request.args.get('store_id', type=int)
    page = request.args.get('page', 1, type=int)
    query = SaleTransaction.query
    if store_id:
        query = query.filter_by(store_id=store_id)
    pagination = query.order_by(SaleTransaction.transaction_date.desc()).paginate(
        page=page, per_page=25, error_out=False
    )
    stores = Store.query.order_by(Store.name).all()
    return render_template('sales/list.html', title=_('Sales'), pagination=pagination,
                           sales=pagination.items, stores=stores, store_id=store_id)

@sales_bp.route('/create')
@login_required
def create_sale():
    """Point-of-sale screen; checkout posts to the sales JSON API."""
    stores = Store.query.filter_by(is_active=True).order_by(Store.name).all()
    if not stores:
        flash(_('Add a store before recording sales'), 'warning')
        return redirect(url_for('stores.list_stores'))
    customers = Customer.query.filter_by(status='ACTIVE').order_by(Customer.name).all()
    summary = daily_summary(store_id=current_user.store_id)
    return render_template('sales/pos.html', title=_('Point of sale'), stores=stores,
                           customers=customers, summary=summary,
                           default_store_id=current_user.store_id or stores[0].id)

@sales_bp.route('/<int:sale_id>')
@login_required
def show_sale(sale_id):
    sale = SaleTransaction.query.get_or_404(sale_id)
    return render_template('sales/show.html', title=_('Sale #%(id)s', id=sale.id), sale=sale)

@sales_bp.route('/<int:sale_id>/receipt')
@login_required
def receipt(sale_id):
    sale = SaleTransaction.query.get_or_404(sale_id)
    return render_template('sales/receipt.html', sale=sale)
