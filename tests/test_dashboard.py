from models import db
from models.sale import SaleTransaction
from models.stock_batch import StockBatch
from routes.dashboard import get_dashboard_stats
from services.sales import record_sale


def test_dashboard_renders(auth_client, admin, store, make_product, make_batch):
    low = make_product('LOW', 'Low product', min_stock=10)
    make_batch(low, 4, expires_in=12)
    record_sale(store.id, [{'product_id': low.id, 'quantity': 1}], admin.id)

    resp = auth_client.get('/dashboard')
    assert resp.status_code == 200
    assert b'Low product' in resp.data


def test_dashboard_stats(app, admin, store, make_product, make_batch):
    low = make_product('LOW', min_stock=10)
    make_batch(low, 4, expires_in=12, selling_price='3.00')
    make_product('FINE', min_stock=0)
    record_sale(store.id, [{'product_id': low.id, 'quantity': 2}], admin.id)

    with app.test_request_context():
        stats = get_dashboard_stats()
    assert stats['total_products'] == 2
    assert stats['low_stock'] == 1
    assert stats['expiring_soon'] == 1
    assert stats['today_transactions'] == 1
    assert float(stats['today_sales']) == 6.0


def test_dashboard_reports_net_sales_only(app, admin, store, make_product, make_batch):
    product = make_product('PARA')
    make_batch(product, 10, selling_price='5.00')
    record_sale(store.id, [{'product_id': product.id, 'quantity': 2}], admin.id, discount='1.50')
    db.session.add(SaleTransaction(store_id=store.id, user_id=admin.id, transaction_type='VOID', total_amount=99))
    db.session.commit()

    with app.test_request_context():
        stats = get_dashboard_stats()
    assert stats['today_transactions'] == 1
    assert float(stats['today_sales']) == 8.5


def test_dashboard_degrades_without_tables(auth_client, app):
    SaleTransaction.__table__.drop(db.engine)
    StockBatch.__table__.drop(db.engine)

    with app.test_request_context():
        stats = get_dashboard_stats()
    assert stats['expiring_soon'] == 0
    assert stats['low_stock'] == 0
    assert stats['today_sales'] == 0

    assert auth_client.get('/dashboard').status_code == 200
