"""HS256 access/refresh tokens and the bearer-token user loader."""
from datetime import timedelta
import uuid

import jwt
from flask import current_app

from arcade import db
from arcade.models import User, RefreshToken, utcnow


def _secret():
    return current_app.config.get('JWT_SECRET') or current_app.config['SECRET_KEY']


def sign_token(user_id, expires_in, kind='access'):
    now = utcnow()
    payload = {
        'id': user_id,
        'type': kind,
        'iat': now,
        'exp': now + expires_in,
        # Two tokens minted in the same second must still differ
        'jti': uuid.uuid4().hex,
    }
    return jwt.encode(payload, _secret(), algorithm='HS256')


def verify_token(token, kind='access'):
    """Decoded payload, or None when the token is bad, expired or of another kind."""
    try:
        payload = jwt.decode(token, _secret(), algorithms=['HS256'])
    except jwt.PyJWTError:
        return None
    if payload.get('type') != kind or 'id' not in payload:
        return None
    return payload


def issue_tokens(user):
    cfg = current_app.config
    access = sign_token(user.id, timedelta(minutes=int(cfg.get('JWT_ACCESS_EXPIRES_MIN', 15))))
    refresh_ttl = timedelta(days=int(cfg.get('JWT_REFRESH_EXPIRES_DAYS', 7)))
    refresh = sign_token(user.id, refresh_ttl, kind='refresh')
    db.session.add(RefreshToken(token=refresh, user_id=user.id, expires_at=utcnow() + refresh_ttl))
    db.session.commit()
    return access, refresh


def refresh_access_token(token):
    """New access token for a stored, unexpired refresh token; expired rows are dropped."""
    stored = RefreshToken.query.filter_by(token=token).first()
    if not stored:
        return None
    if stored.expires_at < utcnow():
        db.session.delete(stored)
        db.session.commit()
        return None
    payload = verify_token(token, kind='refresh')
    if not payload:
        return None
    minutes = int(current_app.config.get('JWT_ACCESS_EXPIRES_MIN', 15))
    return sign_token(payload['id'], timedelta(minutes=minutes))


def load_user_from_request(request):
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token:
        return None
    payload = verify_token(token.strip())
    if not payload:
        return None
    return db.session.get(User, int(payload['id']))
