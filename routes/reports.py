from datetime import datetime, timedelta
from flask import Blueprint, render_template, request, send_file, current_app
from flask_babel import gettext as _
from flask_login import login_required
from routes.auth import admin_required
from services.reports import sales_by_day, inventory_valuation, profit_and_loss, inventory_excel
from services.stock_ledger import business_date

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')

def _date_range(default_days=30):
    today = business_date()
    try:
        end = datetime.strptime(request.args['end'], '%Y-%m-%d').date() if request.args.get('end') else today
        start = datetime.strptime(request.args['start'], '%Y-%m-%d').date() if request.args.get('start') \
            else end - timedelta(days=default_days - 1)
    except ValueError:
        end = today
        start = today - timedelta(days=default_days - 1)
    if start > end:
        start, end = end, start
    return start, end

@reports_bp.route('/sales')
@login_required
def sales():
    start, end = _date_range()
    rows = sales_by_day(start, end)
    total = sum(row['amount'] for row in rows)
    return render_template('reports/sales.html', title=_('Sales report'),
                           rows=rows, total=total, start=start, end=end)

@reports_bp.route('/inventory')
@login_required
def inventory():
    rows = inventory_valuation()
    total_value = sum(row['value'] for row in rows)
    return render_template('reports/inventory.html', title=_('Inventory report'),
                           rows=rows, total_value=total_value)

@reports_bp.route('/inventory/export')
@login_required
@admin_required
def export_inventory():
    output = inventory_excel(inventory_valuation(), current_app.config['CURRENCY'])
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    return send_file(
        output,
        as_attachment=True,
        download_name=f'inventory_{timestamp}.xlsx',
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )

@reports_bp.route('/profit-loss')
@login_required
@admin_required
def profit_loss():
    start, end = _date_range()
    result = profit_and_loss(start, end)
    return render_template('reports/profit_loss.html', title=_('Profit & loss'),
                           result=result, start=start, end=end)
