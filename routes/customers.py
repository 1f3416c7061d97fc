import io
from flask import Blueprint, render_template, request, redirect, url_for, flash, send_file
from flask_babel import gettext as _
from flask_login import login_required
from models.customer import Customer
from forms.category_forms import CustomerForm
import pandas as pd
from models import db

customers_bp = Blueprint('customers', __name__, url_prefix='/customers')

@customers_bp.route('/')
@login_required
def list_customers():
    q = request.args.get('q', '').strip()
    sort = request.args.get('sort', 'created_at')
    customers = Customer.query
    if q:
        customers = customers.filter((Customer.name.contains(q)) | (Customer.phone.contains(q)))
    if sort == 'name':
        customers = customers.order_by(Customer.name)
    elif sort == 'phone':
        customers = customers.order_by(Customer.phone)
    else:
        customers = customers.order_by(Customer.created_at.desc())
    customers = customers.all()
    return render_template('customers/list.html', title=_('Customers'), customers=customers, q=q, sort=sort)

@customers_bp.route('/add', methods=['GET', 'POST'])
@login_required
def add_customer():
    form = CustomerForm()
    if form.validate_on_submit():
        customer = Customer(name=form.name.data, phone=form.phone.data or None, email=form.email.data or None)
        db.session.add(customer)
        db.session.commit()
        flash(_('Customer added'), 'success')
        return redirect(url_for('customers.list_customers'))
    return render_template('customers/form.html', title=_('Add customer'), form=form)

@customers_bp.route('/<int:customer_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_customer(customer_id):
    customer = Customer.query.get_or_404(customer_id)
    form = CustomerForm(obj=customer)
    if form.validate_on_submit():
        customer.name = form.name.data
        customer.phone = form.phone.data or None
        customer.email = form.email.data or None
        db.session.commit()
        flash(_('Customer updated'), 'success')
        return redirect(url_for('customers.list_customers'))
    return render_template('customers/form.html', title=_('Edit customer'), form=form)

@customers_bp.route('/<int:customer_id>/delete', methods=['POST'])
@login_required
def delete_customer(customer_id):
    customer = Customer.query.get_or_404(customer_id)
    if customer.sales:
        # Keep history intact; deactivate instead
        customer.status = 'INACTIVE'
        flash(_('Customer has sales on record and was deactivated'), 'warning')
    else:
        db.session.delete(customer)
        flash(_('Customer deleted'), 'success')
    db.session.commit()
    return redirect(url_for('customers.list_customers'))

@customers_bp.route('/export')
@login_required
def export_customers():
    customers = Customer.query.order_by(Customer.created_at.desc()).all()
    data = [{
        'Name': c.name,
        'Phone': c.phone,
        'Email': c.email,
        'Status': c.status,
        'Added': c.created_at.strftime('%Y-%m-%d %H:%M')
    } for c in customers]
    output = io.BytesIO()
    pd.DataFrame(data, columns=['Name', 'Phone', 'Email', 'Status', 'Added']).to_excel(output, index=False, engine='xlsxwriter')
    output.seek(0)
    return send_file(
        output,
        as_attachment=True,
        download_name='customers.xlsx',
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
