import logging
from flask import Blueprint, render_template, redirect, url_for, flash
from flask_babel import gettext as _
from flask_login import login_required
from sqlalchemy import func
from models import db
from models.store import Store
from models.stock_batch import StockBatch, BATCH_ACTIVE
from forms.category_forms import StoreForm
from routes.auth import admin_required
from services.errors import PersistenceUnavailable
from services.stock_ledger import persistence_guard

stores_bp = Blueprint('stores', __name__)

logger = logging.getLogger(__name__)

@stores_bp.route('/stores')
@login_required
def list_stores():
    stores = Store.query.order_by(Store.name).all()
    # Active units held per store
    try:
        with persistence_guard():
            totals = dict(db.session.query(
                StockBatch.store_id, func.sum(StockBatch.current_quantity)
            ).filter(StockBatch.status == BATCH_ACTIVE).group_by(StockBatch.store_id).all())
    except PersistenceUnavailable as exc:
        logger.warning('Store stock totals unavailable: %s', exc)
        totals = {}
    return render_template('stores/list.html', title=_('Stores'), stores=stores, totals=totals)

@stores_bp.route('/stores/add', methods=['GET', 'POST'])
@login_required
@admin_required
def add_store():
    form = StoreForm()
    if form.validate_on_submit():
        if Store.query.filter_by(name=form.name.data).first():
            flash(_('Store name already in use'), 'danger')
        else:
            store = Store(name=form.name.data, address=form.address.data or None, phone=form.phone.data or None)
            db.session.add(store)
            db.session.commit()
            flash(_('Store added'), 'success')
            return redirect(url_for('stores.list_stores'))
    return render_template('stores/add.html', title=_('Add store'), form=form)

@stores_bp.route('/stores/<int:store_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_store(store_id):
    store = Store.query.get_or_404(store_id)

    has_batches = StockBatch.query.filter_by(store_id=store.id).count() > 0

    if has_batches:
        flash(_('Cannot delete a store that holds stock batches'), 'danger')
    else:
        db.session.delete(store)
        db.session.commit()
        flash(_('Store deleted'), 'success')

    return redirect(url_for('stores.list_stores'))
