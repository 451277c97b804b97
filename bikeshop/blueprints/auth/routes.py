"""
Authentication routes (login/logout)
"""
from flask import request, jsonify
from flask_login import login_user, logout_user, current_user, login_required
from bikeshop.blueprints.auth import auth_bp
from bikeshop.models.user import User
from bikeshop.services.security import rate_limit, rate_limiter, log_security_event


def _credentials():
    """Read username/password from a JSON body or a form post."""
    data = request.get_json(silent=True) or request.form
    username = str(data.get('username') or '').strip()
    password = str(data.get('password') or '')
    remember = str(data.get('remember') or '').lower() in ('1', 'true', 'on', 'yes')
    return username, password, remember


@auth_bp.route('/login', methods=['POST'])
@rate_limit(max_attempts=5, window_seconds=300)  # 5 attempts per 5 minutes
def login():
    """User login"""
    if current_user.is_authenticated:
        return jsonify({'success': True, 'message': 'Already logged in', 'user': current_user.to_dict()})

    username, password, remember = _credentials()

    if not username or not password:
        log_security_event('login_attempt_empty', username=username, ip_address=request.remote_addr)
        return jsonify({'success': False, 'message': 'Please enter both username and password.'}), 400

    user = User.query.filter_by(username=username).first()

    if user is None or not user.check_password(password):
        log_security_event('login_failed', username=username, ip_address=request.remote_addr, details='Invalid credentials')
        return jsonify({'success': False, 'message': 'Invalid username or password.'}), 401

    if not user.is_active:
        log_security_event('login_attempt_inactive', user_id=user.id, username=username, ip_address=request.remote_addr)
        return jsonify({'success': False, 'message': 'Your account has been deactivated. Please contact an administrator.'}), 403

    login_user(user, remember=remember)
    rate_limiter.reset(request.remote_addr)
    log_security_event('login_success', user_id=user.id, username=username, ip_address=request.remote_addr)

    return jsonify({
        'success': True,
        'message': f'Welcome back, {user.full_name}!',
        'user': user.to_dict(),
    })


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """User logout"""
    log_security_event('logout', user_id=current_user.id, username=current_user.username, ip_address=request.remote_addr)
    logout_user()
    return jsonify({'success': True, 'message': 'You have been logged out.'})
