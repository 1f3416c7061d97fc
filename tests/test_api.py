from datetime import timedelta

from models import db
from models.store import Store
from models.stock_batch import BATCH_EXPIRED
from services.stock_ledger import business_date


def test_api_requires_login(client):
    resp = client.get('/api/products/low-stock-alerts')
    assert resp.status_code == 401
    assert resp.get_json()['success'] is False


def test_search_by_barcode(auth_client, make_product, make_batch):
    product = make_product('AMOX500', 'Amoxicillin 500mg', barcode='6001234567890', unit='Capsule')
    make_batch(product, 30, expires_in=40, selling_price='1100')
    make_batch(product, 20, expires_in=10, selling_price='1000')

    resp = auth_client.get('/api/products/search?barcode=6001234567890')
    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert data['product_id'] == product.id
    assert data['current_stock'] == 50
    assert data['selling_price'] == 1000.0
    assert data['unit_symbol'] == 'cap'
    assert [b['current_quantity'] for b in data['batches']] == [20, 30]
    assert data['batches'][0]['expiry_date'] == (business_date() + timedelta(days=10)).isoformat()


def test_search_by_term(auth_client, make_product):
    make_product('CIP250', 'Ciprofloxacin 250mg', generic_name='Ciprofloxacin')

    resp = auth_client.get('/api/products/search?search=cipro')
    data = resp.get_json()['data']
    assert data['product_code'] == 'CIP250'
    assert data['current_stock'] == 0
    assert data['selling_price'] is None


def test_search_without_criteria_is_bad_request(auth_client):
    resp = auth_client.get('/api/products/search')
    assert resp.status_code == 400
    assert resp.get_json() == {'success': False, 'message': 'No search criteria provided'}


def test_search_not_found(auth_client):
    resp = auth_client.get('/api/products/search?barcode=nothing')
    assert resp.status_code == 404


def test_stock_snapshot(auth_client, make_product, make_batch):
    product = make_product('PARA')
    make_batch(product, 10, unit_cost='2.50')
    make_batch(product, 5, unit_cost='3.00')
    make_batch(product, 40, unit_cost='1.00', status=BATCH_EXPIRED)

    resp = auth_client.get(f'/api/products/{product.id}/stock')
    assert resp.get_json() == {'success': True, 'data': {'quantity': 15, 'value': 40.0}}


def test_stock_for_unknown_product(auth_client):
    resp = auth_client.get('/api/products/424242/stock')
    assert resp.status_code == 404
    assert resp.get_json()['success'] is False


def test_quick_data(auth_client, make_product, make_batch):
    product = make_product('ZINC', 'Zinc 20mg', min_stock=3)
    make_batch(product, 2, selling_price='4.00')

    data = auth_client.get(f'/api/products/{product.id}/quick-data').get_json()['data']
    assert data['current_stock'] == 2
    assert data['selling_price'] == 4.0
    assert data['min_stock'] == 3


def test_alert_endpoints(auth_client, make_product, make_batch):
    low = make_product('LOW', 'Low product', min_stock=10)
    make_batch(low, 10, expires_in=3)
    make_product('OFF', 'Not monitored', min_stock=0)

    low_alerts = auth_client.get('/api/products/low-stock-alerts').get_json()['data']
    assert [a['product_name'] for a in low_alerts] == ['Low product']

    expiry = auth_client.get('/api/products/expiry-alerts').get_json()['data']
    assert len(expiry) == 1
    assert expiry[0]['days_left'] == 3

    assert auth_client.get('/api/products/expiry-alerts?days=0').status_code == 400


def test_alert_limits_must_be_positive(auth_client, make_product):
    for n in range(3):
        make_product(f'LOW{n}', min_stock=5)

    assert auth_client.get('/api/products/low-stock-alerts?limit=-1').status_code == 400
    assert auth_client.get('/api/products/low-stock-alerts?limit=0').status_code == 400
    assert auth_client.get('/api/products/expiry-alerts?limit=-1').status_code == 400
    assert len(auth_client.get('/api/products/low-stock-alerts?limit=2').get_json()['data']) == 2


def test_process_sale(auth_client, store, make_product, make_batch):
    product = make_product('AMOX500')
    make_batch(product, 20, expires_in=10, selling_price='1000')

    resp = auth_client.post('/api/sales/process', json={
        'store_id': store.id,
        'items': [{'product_id': product.id, 'quantity': 3}],
        'paid': 5000
    })
    assert resp.status_code == 201
    body = resp.get_json()['data']
    assert body['total_amount'] == 3000.0
    assert body['change_due'] == 2000.0

    stock = auth_client.get(f'/api/products/{product.id}/stock').get_json()['data']
    assert stock['quantity'] == 17

    summary = auth_client.get('/api/sales/daily-summary').get_json()['data']
    assert summary['transactions'] == 1
    assert summary['net_sales'] == 3000.0


def test_process_sale_rejects_overselling(auth_client, store, make_product, make_batch):
    product = make_product('IBU')
    make_batch(product, 2)

    resp = auth_client.post('/api/sales/process', json={
        'store_id': store.id,
        'items': [{'product_id': product.id, 'quantity': 3}]
    })
    assert resp.status_code == 400
    assert 'Insufficient stock' in resp.get_json()['message']


def test_process_sale_requires_json(auth_client):
    resp = auth_client.post('/api/sales/process', data='not json', content_type='text/plain')
    assert resp.status_code == 400


def test_process_sale_rejects_malformed_items(auth_client, store):
    resp = auth_client.post('/api/sales/process', json={'store_id': store.id, 'items': {'a': 1}})
    assert resp.status_code == 400
    assert resp.get_json()['success'] is False

    resp = auth_client.post('/api/sales/process', json={'store_id': store.id, 'items': [5]})
    assert resp.status_code == 400


def test_search_scoped_to_store(auth_client, store, make_product, make_batch):
    other = Store(name='Second Pharmacy')
    db.session.add(other)
    db.session.commit()
    product = make_product('CIP', 'Ciprofloxacin', barcode='5550001')
    make_batch(product, 4, selling_price='3.00')
    make_batch(product, 9, selling_price='2.50', batch_store=other)

    everywhere = auth_client.get('/api/products/search?barcode=5550001').get_json()['data']
    assert everywhere['current_stock'] == 13
    assert everywhere['selling_price'] == 2.5

    here = auth_client.get(f'/api/products/search?barcode=5550001&store_id={store.id}').get_json()['data']
    assert here['current_stock'] == 4
    assert here['selling_price'] == 3.0
    assert {b['store_id'] for b in here['batches']} == {store.id}
