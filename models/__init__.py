from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from .user import User
from .store import Store
from .category import Category, Unit
from .product import Product
from .stock_batch import StockBatch
from .customer import Customer
from .sale import SaleTransaction, SaleItem
