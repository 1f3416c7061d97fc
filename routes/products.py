import io
import logging
from flask import Blueprint, render_template, redirect, url_for, flash, request, current_app, send_file
from flask_babel import gettext as _
from flask_login import login_required, current_user
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
import barcode
from barcode.writer import SVGWriter
from models import db
from models.product import Product, PRODUCT_STATUSES
from models.category import Category, Unit
from models.store import Store
from models.stock_batch import StockBatch, BATCH_ACTIVE
from forms.product_forms import ProductForm, ReceiveStockForm
from routes.auth import stock_manager_required
from services.alerts import low_stock_alerts, expiry_alerts
from services.errors import PersistenceUnavailable
from services.stock_ledger import current_stock, stock_value, lowest_active_price, persistence_guard

products_bp = Blueprint('products', __name__, url_prefix='/products')

logger = logging.getLogger(__name__)

def _fill_choices(form):
    form.category.choices = [(0, '-')] + [(c.id, c.name) for c in Category.query.order_by(Category.name).all()]
    form.unit.choices = [(0, '-')] + [(u.id, u.name) for u in Unit.query.order_by(Unit.name).all()]

def _apply_form(product, form):
    product.code = form.code.data.strip()
    product.name = form.name.data.strip()
    product.generic_name = form.generic_name.data or None
    product.barcode = form.barcode.data.strip() if form.barcode.data else None
    product.category_id = form.category.data or None
    product.unit_id = form.unit.data or None
    product.strength = form.strength.data or None
    product.dosage_form = form.dosage_form.data or None
    product.min_stock = form.min_stock.data
    product.max_stock = form.max_stock.data
    product.reorder_level = form.reorder_level.data
    product.status = form.status.data

@products_bp.route('/')
@login_required
def list_products():
    search = request.args.get('search', '').strip()
    status = request.args.get('status', '')
    category_id = request.args.get('category_id', type=int)
    page = request.args.get('page', 1, type=int)

    query = Product.query
    if search:
        like = f'%{search}%'
        query = query.filter(or_(
            Product.code.ilike(like),
            Product.name.ilike(like),
            Product.generic_name.ilike(like),
            Product.barcode.ilike(like)
        ))
    if status in PRODUCT_STATUSES:
        query = query.filter(Product.status == status)
    if category_id:
        query = query.filter(Product.category_id == category_id)

    pagination = query.order_by(Product.name).paginate(
        page=page, per_page=current_app.config['PRODUCTS_PER_PAGE'], error_out=False
    )
    stock = {p.id: current_stock(p) for p in pagination.items}
    categories = Category.query.order_by(Category.name).all()
    return render_template('products/list.html', title=_('Products'),
                           pagination=pagination, products=pagination.items, stock=stock,
                           categories=categories, search=search, status=status,
                           category_id=category_id, statuses=PRODUCT_STATUSES)

@products_bp.route('/add', methods=['GET', 'POST'])
@login_required
@stock_manager_required
def add_product():
    form = ProductForm()
    _fill_choices(form)
    if form.validate_on_submit():
        product = Product()
        _apply_form(product, form)
        db.session.add(product)
        try:
            db.session.flush()
            if not product.barcode:
                product.barcode = product.generate_barcode()
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            logger.warning('Could not create product %s: %s', form.code.data, exc)
            flash(_('Failed to create product, code or barcode already in use'), 'danger')
            return render_template('products/form.html', title=_('Add product'), form=form)
        flash(_('Product created successfully'), 'success')
        return redirect(url_for('products.list_products'))
    return render_template('products/form.html', title=_('Add product'), form=form)

@products_bp.route('/<int:product_id>')
@login_required
def show_product(product_id):
    product = Product.query.get_or_404(product_id)
    try:
        with persistence_guard():
            batches = product.batches.order_by(StockBatch.expiry_date.asc(), StockBatch.id.asc()).all()
    except PersistenceUnavailable as exc:
        logger.warning('Batches of product %s unavailable: %s', product_id, exc)
        batches = []
    return render_template('products/show.html', title=product.name, product=product,
                           batches=batches,
                           total_stock=current_stock(product),
                           total_value=stock_value(product),
                           selling_price=lowest_active_price(product))

@products_bp.route('/<int:product_id>/edit', methods=['GET', 'POST'])
@login_required
@stock_manager_required
def edit_product(product_id):
    product = Product.query.get_or_404(product_id)
    form = ProductForm(obj=product, product_id=product.id)
    _fill_choices(form)
    if request.method == 'GET':
        form.category.data = product.category_id or 0
        form.unit.data = product.unit_id or 0
    if form.validate_on_submit():
        _apply_form(product, form)
        if not product.barcode:
            product.barcode = product.generate_barcode()
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            logger.warning('Could not update product %s: %s', product_id, exc)
            flash(_('Failed to update product'), 'danger')
            return render_template('products/form.html', title=_('Edit product'), form=form, product=product)
        flash(_('Product updated successfully'), 'success')
        return redirect(url_for('products.list_products'))
    return render_template('products/form.html', title=_('Edit product'), form=form, product=product)

@products_bp.route('/<int:product_id>/delete', methods=['POST'])
@login_required
@stock_manager_required
def delete_product(product_id):
    product = Product.query.get_or_404(product_id)

    has_stock = product.batches.filter(StockBatch.current_quantity > 0).count() > 0
    from models.sale import SaleItem
    has_sales = SaleItem.query.filter_by(product_id=product_id).count() > 0

    if has_stock:
        flash(_('Cannot delete a product with existing stock, adjust stock first'), 'danger')
    elif has_sales:
        flash(_('Cannot delete a product that appears on sales'), 'danger')
    else:
        product.batches.delete(synchronize_session=False)
        db.session.delete(product)
        db.session.commit()
        flash(_('Product deleted successfully'), 'success')

    return redirect(url_for('products.list_products'))

@products_bp.route('/<int:product_id>/receive', methods=['GET', 'POST'])
@login_required
@stock_manager_required
def receive_stock(product_id):
    product = Product.query.get_or_404(product_id)
    form = ReceiveStockForm()
    form.store.choices = [(s.id, s.name) for s in Store.query.filter_by(is_active=True).order_by(Store.name).all()]
    if not form.store.choices:
        flash(_('Add a store before receiving stock'), 'warning')
        return redirect(url_for('stores.list_stores'))
    if form.validate_on_submit():
        batch = StockBatch(
            product_id=product.id,
            store_id=form.store.data,
            batch_number=form.batch_number.data.strip(),
            expiry_date=form.expiry_date.data,
            initial_quantity=form.quantity.data,
            current_quantity=form.quantity.data,
            unit_cost=form.unit_cost.data,
            selling_price=form.selling_price.data,
            status=BATCH_ACTIVE,
            received_by=current_user.id
        )
        db.session.add(batch)
        db.session.commit()
        logger.info('Received %s x %s (batch %s) at store %s',
                    batch.current_quantity, product.code, batch.batch_number, batch.store_id)
        flash(_('Stock received successfully'), 'success')
        return redirect(url_for('products.show_product', product_id=product.id))
    return render_template('products/receive.html', title=_('Receive stock'), form=form, product=product)

def _page_limit(default=100):
    limit = request.args.get('limit', default, type=int)
    return limit if limit and limit > 0 else default

@products_bp.route('/low-stock')
@login_required
def low_stock():
    items = low_stock_alerts(_page_limit())
    return render_template('products/low_stock.html', title=_('Low stock'), items=items)

@products_bp.route('/expiring')
@login_required
def expiring():
    days = request.args.get('days', type=int)
    if not days or days < 1:
        days = current_app.config['EXPIRY_LOOKAHEAD_DAYS']
    items = expiry_alerts(days, _page_limit())
    return render_template('products/expiring.html', title=_('Expiring soon'), items=items, days=days)

@products_bp.route('/<int:product_id>/barcode.svg')
@login_required
def barcode_image(product_id):
    product = Product.query.get_or_404(product_id)
    value = product.barcode or product.generate_barcode()
    output = io.BytesIO()
    code = barcode.get('code128', value, writer=SVGWriter())
    code.write(output, options={'module_height': 15.0, 'font_size': 10, 'quiet_zone': 2})
    output.seek(0)
    return send_file(output, mimetype='image/svg+xml', download_name=f'{value}.svg')

@products_bp.route('/<int:product_id>/print_barcode')
@login_required
def print_barcode(product_id):
    product = Product.query.get_or_404(product_id)
    return render_template('products/print_barcode.html', product=product)
