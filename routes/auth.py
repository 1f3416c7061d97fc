from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_babel import gettext as _
from flask_login import login_user, logout_user, login_required, current_user
from functools import wraps
from forms.auth_forms import LoginForm, RegisterForm
from models.user import User
from models import db

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')

def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.is_admin():
            flash(_('You do not have permission to access this page'), 'danger')
            return redirect(url_for('dashboard.index'))
        return f(*args, **kwargs)
    return decorated_function

def stock_manager_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.can_manage_stock():
            flash(_('Only pharmacists and administrators can manage stock'), 'danger')
            return redirect(url_for('dashboard.index'))
        return f(*args, **kwargs)
    return decorated_function

@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('dashboard.index'))
    form = LoginForm()
    if form.validate_on_submit():
        user = User.query.filter_by(username=form.username.data).first()
        if user and user.is_active and user.check_password(form.password.data):
            login_user(user)
            flash(_('Signed in successfully'), 'success')
            next_url = request.args.get('next')
            if not next_url or not next_url.startswith('/'):
                next_url = url_for('dashboard.index')
            return redirect(next_url)
        flash(_('Invalid username or password'), 'danger')
    return render_template('auth/login.html', title=_('Sign in'), form=form)

@auth_bp.route('/register', methods=['GET', 'POST'])
def register():
    form = RegisterForm()
    if form.validate_on_submit():
        existing_user = User.query.filter_by(username=form.username.data).first()
        if existing_user:
            flash(_('Username is already taken'), 'danger')
        else:
            user = User(username=form.username.data, full_name=form.full_name.data or None, role='cashier')
            user.set_password(form.password.data)
            db.session.add(user)
            db.session.commit()
            flash(_('Account created, you can now sign in'), 'success')
            return redirect(url_for('auth.login'))
    return render_template('auth/register.html', title=_('Create account'), form=form)

@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    flash(_('Signed out'), 'success')
    return redirect(url_for('auth.login'))
