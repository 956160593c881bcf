"""Password hashing, bearer tokens and the view decorators that guard routes.

Tokens are stateless HS256 JWTs carrying the user id in ``sub`` and the role
in ``role``. There is no revocation list: logging out means the client drops
its token. The ``role`` claim is informational only; ``admin_required``
re-reads the role from the database so promotions and demotions apply to
tokens that were issued earlier.
"""
import datetime
from functools import wraps

import jwt
from flask import current_app, g, request, abort
from werkzeug.security import generate_password_hash, check_password_hash

from bookify.db import db
from bookify.models.user import User


def hash_password(password):
    # Using the default method
    return generate_password_hash(password)


def verify_password(password_hash, password):
    return check_password_hash(password_hash, password)


def issue_token(user_id, role):
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {
        'sub': str(user_id),
        'role': role,
        'iat': now,
        'exp': now + datetime.timedelta(days=current_app.config['JWT_EXPIRES_DAYS']),
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm=current_app.config['JWT_ALGORITHM'])


def _decode(token):
    payload = jwt.decode(
        token,
        current_app.config['JWT_SECRET'],
        algorithms=[current_app.config['JWT_ALGORITHM']],
        options={'require': ['sub', 'exp']},
    )
    return int(payload['sub']), payload.get('role') or 'user'


def verify_token(token):
    """Return ``(user_id, role)`` for a valid token, abort with 401 otherwise."""
    try:
        return _decode(token)
    except (jwt.InvalidTokenError, ValueError):
        abort(401, description="Invalid or expired token")


def _split_bearer(auth_header):
    scheme, _, token = (auth_header or '').partition(' ')
    token = token.strip()
    if scheme != 'Bearer' or not token:
        return None
    return token


def authenticate(view):
    """Reject the request with 401 unless it carries a valid bearer token."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        auth_header = request.headers.get('Authorization')
        if not auth_header:
            abort(401, description="Authorization header missing")
        token = _split_bearer(auth_header)
        if token is None:
            abort(401, description="Authorization format must be Bearer token")
        g.user_id, g.role = verify_token(token)
        return view(*args, **kwargs)
    return wrapper


def optional_authentication(view):
    """Identify the caller when a valid token is present, stay anonymous otherwise."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.user_id, g.role = None, None
        token = _split_bearer(request.headers.get('Authorization'))
        if token is not None:
            try:
                g.user_id, g.role = _decode(token)
            except (jwt.InvalidTokenError, ValueError):
                current_app.logger.debug("Ignoring invalid bearer token on public route")
        return view(*args, **kwargs)
    return wrapper


def admin_required(view):
    """Allow the request only when the stored account has the admin role.

    Must be applied below ``authenticate``.
    """
    @wraps(view)
    def wrapper(*args, **kwargs):
        user_id = g.get('user_id')
        if user_id is None:
            abort(401, description="Unauthorized")
        user = db.session.get(User, user_id)
        if user is None:
            abort(404, description="User not found")
        if not user.is_admin:
            abort(403, description="Admin access required")
        return view(*args, **kwargs)
    return wrapper


def current_user_or_404():
    user = db.session.get(User, g.user_id)
    if user is None:
        abort(404, description="User not found")
    return user
