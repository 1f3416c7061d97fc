"""Report builders for the reports pages and their Excel exports."""
import io
from datetime import datetime, timedelta
from decimal import Decimal

import pandas as pd
from sqlalchemy import func

from models import db
from models.product import Product
from models.stock_batch import StockBatch, BATCH_ACTIVE
from models.sale import SaleTransaction, SaleItem, TRANSACTION_SALE

def sales_by_day(start_date, end_date):
    """Daily sale totals for every day in [start_date, end_date]."""
    start = datetime.combine(start_date, datetime.min.time())
    end = datetime.combine(end_date + timedelta(days=1), datetime.min.time())
    sales = SaleTransaction.query.filter(
        SaleTransaction.transaction_type == TRANSACTION_SALE,
        SaleTransaction.transaction_date >= start,
        SaleTransaction.transaction_date < end
    ).order_by(SaleTransaction.transaction_date).all()

    totals = {}
    day = start_date
    while day <= end_date:
        totals[day.strftime('%Y-%m-%d')] = {'transactions': 0, 'amount': Decimal('0')}
        day += timedelta(days=1)
    for sale in sales:
        entry = totals[sale.transaction_date.strftime('%Y-%m-%d')]
        entry['transactions'] += 1
        entry['amount'] += sale.total_amount - sale.discount
    return [{'date': key, **value} for key, value in totals.items()]

def inventory_valuation():
    stock = func.coalesce(func.sum(StockBatch.current_quantity), 0)
    value = func.coalesce(func.sum(StockBatch.current_quantity * StockBatch.unit_cost), 0)
    rows = db.session.query(
        Product.id, Product.code, Product.name, Product.min_stock,
        stock.label('quantity'), value.label('value')
    ).outerjoin(
        StockBatch,
        (StockBatch.product_id == Product.id) & (StockBatch.status == BATCH_ACTIVE)
    ).group_by(Product.id, Product.code, Product.name, Product.min_stock).order_by(Product.name).all()
    return [{
        'product_id': row.id,
        'code': row.code,
        'name': row.name,
        'min_stock': row.min_stock,
        'quantity': int(row.quantity),
        'value': Decimal(str(row.value))
    } for row in rows]

def profit_and_loss(start_date, end_date):
    start = datetime.combine(start_date, datetime.min.time())
    end = datetime.combine(end_date + timedelta(days=1), datetime.min.time())
    items = db.session.query(SaleItem).join(SaleTransaction).filter(
        SaleTransaction.transaction_type == TRANSACTION_SALE,
        SaleTransaction.transaction_date >= start,
        SaleTransaction.transaction_date < end
    ).all()
    discounts = db.session.query(func.sum(SaleTransaction.discount)).filter(
        SaleTransaction.transaction_type == TRANSACTION_SALE,
        SaleTransaction.transaction_date >= start,
        SaleTransaction.transaction_date < end
    ).scalar() or 0
    revenue = sum((item.total_price for item in items), Decimal('0')) - Decimal(str(discounts))
    cost = sum((item.unit_cost * item.quantity for item in items), Decimal('0'))
    return {
        'revenue': revenue,
        'cost_of_goods': cost,
        'gross_profit': revenue - cost,
        'items_sold': sum(item.quantity for item in items)
    }

def inventory_excel(rows, currency):
    """Render the inventory valuation as an .xlsx workbook in memory."""
    output = io.BytesIO()
    df = pd.DataFrame([{
        'Code': row['code'],
        'Product': row['name'],
        'Quantity': row['quantity'],
        'Min Stock': row['min_stock'],
        f'Value ({currency})': float(row['value'])
    } for row in rows], columns=['Code', 'Product', 'Quantity', 'Min Stock', f'Value ({currency})'])

    with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
        df.to_excel(writer, sheet_name='Inventory', index=False)
        workbook = writer.book
        worksheet = writer.sheets['Inventory']
        header_format = workbook.add_format({
            'bold': True,
            'fg_color': '#D7E4BC',
            'border': 1,
            'align': 'center'
        })
        number_format = workbook.add_format({'num_format': '#,##0', 'border': 1})
        money_format = workbook.add_format({'num_format': '#,##0.00', 'border': 1})
        for col_num, value in enumerate(df.columns.values):
            worksheet.write(0, col_num, value, header_format)
        worksheet.set_column(0, 0, 15)
        worksheet.set_column(1, 1, 35)
        worksheet.set_column(2, 3, 12, number_format)
        worksheet.set_column(4, 4, 18, money_format)
    output.seek(0)
    return output
