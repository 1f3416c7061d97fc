from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from models import db

ROLES = ('admin', 'pharmacist', 'cashier')

class User(UserMixin, db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='cashier')
    full_name = db.Column(db.String(128), nullable=True)
    email = db.Column(db.String(120), nullable=True)
    store_id = db.Column(db.Integer, db.ForeignKey('stores.id'), nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())

    store = db.relationship('Store', backref='users')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def is_admin(self):
        return self.role == 'admin'

    def is_pharmacist(self):
        return self.role == 'pharmacist'

    def can_manage_stock(self):
        return self.is_admin() or self.is_pharmacist()
