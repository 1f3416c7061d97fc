"""Reference data: therapeutic categories and dispensing units."""
from flask import Blueprint, render_template, redirect, url_for, flash, jsonify
from flask_babel import gettext as _
from flask_login import login_required
from sqlalchemy import func
from models import db
from models.category import Category, Unit
from models.product import Product
from forms.category_forms import CategoryForm, UnitForm
from routes.auth import admin_required

categories_bp = Blueprint('categories', __name__, url_prefix='/categories')

def _product_counts(column):
    return dict(db.session.query(column, func.count(Product.id)).filter(column.isnot(None)).group_by(column).all())

@categories_bp.route('/')
@login_required
def list_categories():
    return render_template('categories/list.html', title=_('Categories & units'),
                           categories=Category.query.order_by(Category.name).all(),
                           units=Unit.query.order_by(Unit.name).all(),
                           category_counts=_product_counts(Product.category_id),
                           unit_counts=_product_counts(Product.unit_id))

@categories_bp.route('/add', methods=['GET', 'POST'])
@login_required
@admin_required
def add_category():
    form = CategoryForm()
    if form.validate_on_submit():
        name = form.name.data.strip()
        if Category.query.filter(func.lower(Category.name) == name.lower()).first():
            flash(_('Category name already in use'), 'danger')
        else:
            db.session.add(Category(name=name, description=form.description.data or None))
            db.session.commit()
            flash(_('Category added'), 'success')
            return redirect(url_for('categories.list_categories'))
    return render_template('categories/add.html', title=_('Add category'), form=form)

@categories_bp.route('/units/add', methods=['GET', 'POST'])
@login_required
@admin_required
def add_unit():
    form = UnitForm()
    if form.validate_on_submit():
        name = form.name.data.strip()
        if Unit.query.filter(func.lower(Unit.name) == name.lower()).first():
            flash(_('Unit name already in use'), 'danger')
        else:
            db.session.add(Unit(name=name, symbol=(form.symbol.data or '').strip() or None))
            db.session.commit()
            flash(_('Unit added'), 'success')
            return redirect(url_for('categories.list_categories'))
    return render_template('categories/add.html', title=_('Add unit'), form=form)

@categories_bp.route('/<int:category_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_category(category_id):
    category = Category.query.get_or_404(category_id)
    if Product.query.filter_by(category_id=category.id).first():
        flash(_('Cannot delete a category that still has products'), 'danger')
    else:
        db.session.delete(category)
        db.session.commit()
        flash(_('Category deleted'), 'success')
    return redirect(url_for('categories.list_categories'))

@categories_bp.route('/units/<int:unit_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_unit(unit_id):
    unit = Unit.query.get_or_404(unit_id)
    if Product.query.filter_by(unit_id=unit.id).first():
        flash(_('Cannot delete a unit that still has products'), 'danger')
    else:
        db.session.delete(unit)
        db.session.commit()
        flash(_('Unit deleted'), 'success')
    return redirect(url_for('categories.list_categories'))

@categories_bp.route('/api/list')
@login_required
def api_list_categories():
    return jsonify({
        'categories': [{'id': c.id, 'name': c.name} for c in Category.query.order_by(Category.name)],
        'units': [{'id': u.id, 'name': u.name, 'symbol': u.symbol} for u in Unit.query.order_by(Unit.name)]
    })
