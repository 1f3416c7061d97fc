from models import db
from datetime import datetime

PRODUCT_ACTIVE = 'ACTIVE'
PRODUCT_INACTIVE = 'INACTIVE'
PRODUCT_DISCONTINUED = 'DISCONTINUED'
PRODUCT_STATUSES = (PRODUCT_ACTIVE, PRODUCT_INACTIVE, PRODUCT_DISCONTINUED)

class Product(db.Model):
    __tablename__ = 'products'
    __table_args__ = (
        db.CheckConstraint('min_stock >= 0', name='ck_products_min_stock'),
        db.CheckConstraint('reorder_level >= 0', name='ck_products_reorder_level'),
    )
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    generic_name = db.Column(db.String(200), nullable=True)
    barcode = db.Column(db.String(100), unique=True, nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=True)
    unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=True)
    strength = db.Column(db.String(100), nullable=True)
    dosage_form = db.Column(db.String(100), nullable=True)

    # Stock thresholds; min_stock == 0 disables low-stock monitoring
    min_stock = db.Column(db.Integer, nullable=False, default=0)
    max_stock = db.Column(db.Integer, nullable=True)
    reorder_level = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(20), nullable=False, default=PRODUCT_ACTIVE)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    category = db.relationship('Category', backref='products')
    unit = db.relationship('Unit', backref='products')
    batches = db.relationship('StockBatch', backref='product', lazy='dynamic')

    def __repr__(self):
        return f'<Product {self.code}>'

    def generate_barcode(self):
        """Fallback barcode for products saved without one."""
        return 'P' + str(self.id).zfill(9)

    def get_status_class(self):
        status_classes = {
            PRODUCT_ACTIVE: 'success',
            PRODUCT_INACTIVE: 'secondary',
            PRODUCT_DISCONTINUED: 'danger'
        }
        return status_classes.get(self.status, 'secondary')
