import logging

import click
from flask import Flask, jsonify, redirect, request, url_for
from flask_babel import Babel
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect

from config import Config
from models import db
from models.user import User

# Initialize extensions
login_manager = LoginManager()
babel = Babel()
csrf = CSRFProtect()

def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s [%(name)s] %(message)s'))
    for name in ('services', 'routes', app.logger.name):
        logger = logging.getLogger(name)
        logger.setLevel(level)
        if not logger.handlers:
            logger.addHandler(handler)

def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    configure_logging(app)
    db.init_app(app)
    login_manager.init_app(app)
    csrf.init_app(app)
    login_manager.login_view = 'auth.login'

    def get_locale():
        return app.config.get('BABEL_DEFAULT_LOCALE', 'en')
    babel.init_app(app, locale_selector=get_locale)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        if request.blueprint == 'api':
            return jsonify({'success': False, 'message': 'Authentication required'}), 401
        return redirect(url_for('auth.login', next=request.path))

    # Register Blueprints
    from routes.auth import auth_bp
    app.register_blueprint(auth_bp)
    from routes.dashboard import dashboard_bp
    app.register_blueprint(dashboard_bp)
    from routes.products import products_bp
    app.register_blueprint(products_bp)
    from routes.categories import categories_bp
    app.register_blueprint(categories_bp)
    from routes.stores import stores_bp
    app.register_blueprint(stores_bp)
    from routes.sales import sales_bp
    app.register_blueprint(sales_bp)
    from routes.customers import customers_bp
    app.register_blueprint(customers_bp)
    from routes.reports import reports_bp
    app.register_blueprint(reports_bp)
    from routes.api import api_bp
    app.register_blueprint(api_bp)

    @app.template_filter('money')
    def money(value):
        return f"{app.config['CURRENCY']} {float(value or 0):,.2f}"

    register_commands(app)
    return app

def register_commands(app):
    @app.cli.command('init-db')
    def init_db():
        """Create all database tables."""
        db.create_all()
        click.echo('Database tables created.')

    @app.cli.command('seed')
    def seed():
        """Insert default units, categories and a main store."""
        from models.category import Category, Unit
        from models.store import Store
        units = [('Tablet', 'tab'), ('Capsule', 'cap'), ('Bottle', 'btl'), ('Tube', 'tube'), ('Vial', 'vial')]
        for name, symbol in units:
            if not Unit.query.filter_by(name=name).first():
                db.session.add(Unit(name=name, symbol=symbol))
        for name in ['Antibiotics', 'Analgesics', 'Antimalarials', 'Vitamins & Supplements']:
            if not Category.query.filter_by(name=name).first():
                db.session.add(Category(name=name))
        if not Store.query.first():
            db.session.add(Store(name='Main Pharmacy'))
        db.session.commit()
        click.echo('Default reference data added.')

    @app.cli.command('create-admin')
    @click.argument('username')
    @click.argument('password')
    def create_admin(username, password):
        """Create an admin account, or promote an existing one."""
        user = User.query.filter_by(username=username).first()
        if user is None:
            user = User(username=username, full_name='Administrator')
            db.session.add(user)
        user.role = 'admin'
        user.set_password(password)
        db.session.commit()
        click.echo(f'Admin account {username} is ready.')

if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
