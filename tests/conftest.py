from datetime import timedelta
from decimal import Decimal

import pytest

from app import create_app
from models import db
from models.user import User
from models.store import Store
from models.category import Unit
from models.product import Product
from models.stock_batch import StockBatch, BATCH_ACTIVE
from services.stock_ledger import business_date


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SECRET_KEY': 'test-secret',
        'WTF_CSRF_ENABLED': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    store = Store(name='Main Pharmacy')
    db.session.add(store)
    db.session.commit()
    return store


@pytest.fixture
def admin(app, store):
    user = User(username='admin', role='admin', full_name='Admin User', store_id=store.id)
    user.set_password('secret123')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def auth_client(client, admin):
    resp = client.post('/auth/login', data={'username': 'admin', 'password': 'secret123'})
    assert resp.status_code == 302
    return client


@pytest.fixture
def make_product(app):
    def _make(code, name=None, min_stock=0, barcode=None, unit=None, **kwargs):
        product = Product(code=code, name=name or code, min_stock=min_stock, barcode=barcode, **kwargs)
        if unit:
            unit_obj = Unit.query.filter_by(name=unit).first() or Unit(name=unit, symbol=unit[:3].lower())
            product.unit = unit_obj
        db.session.add(product)
        db.session.commit()
        return product
    return _make


@pytest.fixture
def make_batch(app, store):
    counter = {'n': 0}

    def _make(product, quantity, expires_in=90, unit_cost='1.00', selling_price='2.00',
              status=BATCH_ACTIVE, batch_store=None, today=None):
        counter['n'] += 1
        batch = StockBatch(
            product_id=product.id,
            store_id=(batch_store or store).id,
            batch_number=f'B{counter["n"]:03d}',
            expiry_date=(today or business_date()) + timedelta(days=expires_in),
            initial_quantity=quantity,
            current_quantity=quantity,
            unit_cost=Decimal(unit_cost),
            selling_price=Decimal(selling_price),
            status=status
        )
        db.session.add(batch)
        db.session.commit()
        return batch
    return _make
