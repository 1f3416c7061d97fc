from models import db
from datetime import datetime

BATCH_ACTIVE = 'ACTIVE'
BATCH_EXPIRED = 'EXPIRED'
BATCH_DEPLETED = 'DEPLETED'
BATCH_QUARANTINED = 'QUARANTINED'
BATCH_STATUSES = (BATCH_ACTIVE, BATCH_EXPIRED, BATCH_DEPLETED, BATCH_QUARANTINED)

# One receipt of stock for a product at a store
class StockBatch(db.Model):
    __tablename__ = 'stock_batches'
    __table_args__ = (
        db.CheckConstraint('current_quantity >= 0', name='ck_stock_batches_quantity'),
        db.Index('ix_stock_batches_product_status', 'product_id', 'status'),
    )
    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey('stores.id'), nullable=False)
    batch_number = db.Column(db.String(100), nullable=False)
    expiry_date = db.Column(db.Date, nullable=False, index=True)

    initial_quantity = db.Column(db.Integer, nullable=False, default=0)
    current_quantity = db.Column(db.Integer, nullable=False, default=0)
    unit_cost = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    selling_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    status = db.Column(db.String(20), nullable=False, default=BATCH_ACTIVE)
    received_at = db.Column(db.DateTime, default=datetime.utcnow)
    received_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    store = db.relationship('Store', backref='batches')
    receiver = db.relationship('User', backref='received_batches')

    def __repr__(self):
        return f'<StockBatch {self.batch_number}>'

    def is_active(self):
        return self.status == BATCH_ACTIVE

    def is_expired(self, today=None):
        return self.expiry_date <= (today or datetime.utcnow().date())

    def days_to_expiry(self, today=None):
        return (self.expiry_date - (today or datetime.utcnow().date())).days

    def get_status_class(self):
        status_classes = {
            BATCH_ACTIVE: 'success',
            BATCH_EXPIRED: 'danger',
            BATCH_DEPLETED: 'secondary',
            BATCH_QUARANTINED: 'warning'
        }
        return status_classes.get(self.status, 'secondary')

    def subtract_quantity(self, amount):
        if self.current_quantity >= amount:
            self.current_quantity -= amount
            return True
        return False
