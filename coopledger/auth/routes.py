"""Authentication routes"""
from datetime import datetime
from flask import jsonify
from flask_login import login_user, logout_user, current_user, login_required
from coopledger import db
from coopledger.auth import auth_bp
from coopledger.models import User
from coopledger.auth.forms import LoginForm, ChangePasswordForm
from coopledger.utils.helpers import error_response, form_error_response, log_activity

@auth_bp.route('/login', methods=['POST'])
def login():
    """User login"""
    form = LoginForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    user = User.query.filter_by(username=form.username.data).first()

    if user is None or not user.check_password(form.password.data):
        return error_response('Invalid username or password', 401)

    if not user.is_active:
        return error_response('Your account has been deactivated. Please contact administrator.', 403)

    login_user(user, remember=form.remember_me.data)
    user.last_login = datetime.utcnow()

    log_activity('login', f'User {user.username} logged in', entity_type='user', entity_id=user.id)
    db.session.commit()

    return jsonify({'user': user.to_dict()})

@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """User logout"""
    log_activity('logout', f'User {current_user.username} logged out', entity_type='user', entity_id=current_user.id)
    db.session.commit()

    logout_user()
    return jsonify({'message': 'You have been logged out successfully.'})

@auth_bp.route('/change-password', methods=['POST'])
@login_required
def change_password():
    """Change user password"""
    form = ChangePasswordForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    if not current_user.check_password(form.current_password.data):
        return error_response('Current password is incorrect')

    current_user.set_password(form.new_password.data)
    current_user.force_password_reset = False
    log_activity('change_password', f'User {current_user.username} changed password', entity_type='user',
                 entity_id=current_user.id)
    db.session.commit()

    return jsonify({'message': 'Your password has been changed successfully!'})
