from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user
from .models import db, User
from .auth import issue_tokens, refresh_access_token
from .services.audit import log_action

main = Blueprint('main', __name__)

@main.route('/register', methods=['POST', 'OPTIONS'])
def register():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    if not all([name, email, password]):
        return jsonify({'error': 'Name, email and password are required'}), 400
    if '@' not in email:
        return jsonify({'error': 'Invalid email'}), 400
    if User.query.filter_by(email=email).first():
        return jsonify({'error': 'Email already registered'}), 400

    new_user = User(name=name, email=email)
    new_user.set_password(password)
    db.session.add(new_user)
    db.session.commit()
    current_app.logger.info(f"[register] user={new_user.id}")
    log_action(new_user.id, 'register', 'user', f'Registered {email}')
    return jsonify({'id': new_user.id, 'name': new_user.name, 'email': new_user.email}), 201

@main.route('/login', methods=['POST', 'OPTIONS'])
def login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    user = User.query.filter_by(email=email).first() if email else None
    if not user or not user.check_password(data.get('password') or ''):
        return jsonify({'error': 'Invalid credentials'}), 401
    access, refresh = issue_tokens(user)
    log_action(user.id, 'login', 'user')
    return jsonify({'accessToken': access, 'refreshToken': refresh})

@main.route('/auth/refresh', methods=['POST'])
def refresh():
    data = request.get_json(silent=True) or {}
    token = data.get('refreshToken')
    if not token:
        return jsonify({'error': 'refreshToken is required'}), 400
    access = refresh_access_token(token)
    if not access:
        return jsonify({'error': 'Invalid or expired refresh token'}), 401
    return jsonify({'accessToken': access})

@main.route('/auth/verify', methods=['GET'])
@login_required
def verify():
    return jsonify({'valid': True, 'user_id': current_user.id})

@main.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify(current_user.to_dict())

@main.route('/check-email/<string:email>', methods=['GET'])
def check_email(email):
    exists = User.query.filter_by(email=email.strip().lower()).first() is not None
    return jsonify({'exists': exists})
