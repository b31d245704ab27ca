"""
Serviço de identidade: contas de login, senhas e tokens de acesso.

Os tokens são assinados com a SECRET_KEY da aplicação e expiram após
TOKEN_MAX_AGE segundos. As mensagens de erro seguem as do provedor de
autenticação usado pelo painel (em inglês) e são repassadas ao cliente.
"""
import logging
from datetime import datetime, timezone

from flask import current_app
from itsdangerous import URLSafeTimedSerializer, BadSignature
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash, check_password_hash

from ascender.errors import IdentityError
from ascender.models import db, User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
TOKEN_SALT = 'ascender-access-token'

DUPLICATE_EMAIL_MESSAGE = "A user with this email address has already been registered"
WEAK_PASSWORD_MESSAGE = f"Password should be at least {MIN_PASSWORD_LENGTH} characters"
INVALID_EMAIL_MESSAGE = "Unable to validate email address: invalid format"
USER_NOT_FOUND_MESSAGE = "User not found"


def _normalize_email(email):
    return (email or '').strip().lower()


def _check_password_strength(password):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise IdentityError(WEAK_PASSWORD_MESSAGE)


def find_identity_by_email(email):
    return db.session.execute(
        db.select(User).where(func.lower(User.email) == _normalize_email(email))
    ).scalar_one_or_none()


def create_identity(email, password, metadata=None):
    """Cria a conta de login já confirmada."""
    email = _normalize_email(email)
    if not email or '@' not in email:
        raise IdentityError(INVALID_EMAIL_MESSAGE)
    _check_password_strength(password)

    if find_identity_by_email(email):
        raise IdentityError(DUPLICATE_EMAIL_MESSAGE)

    user = User(
        email=email,
        password=generate_password_hash(password),
        user_metadata=dict(metadata or {}),
        is_active=True,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise IdentityError(DUPLICATE_EMAIL_MESSAGE)

    logger.info(f"Identidade criada: {email} (id={user.id})")
    return user


def delete_identity(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise IdentityError(USER_NOT_FOUND_MESSAGE)
    db.session.delete(user)
    db.session.commit()
    logger.info(f"Identidade removida: id={user_id}")


def update_identity_password(user_id, password):
    user = db.session.get(User, user_id) if user_id is not None else None
    if not user:
        raise IdentityError(USER_NOT_FOUND_MESSAGE)
    _check_password_strength(password)

    user.password = generate_password_hash(password)
    db.session.commit()
    logger.info(f"Senha redefinida para a identidade id={user_id}")
    return user


def authenticate(email, password):
    """Retorna o usuário quando e-mail e senha conferem, senão None."""
    user = find_identity_by_email(email)
    if user and user.is_active and check_password_hash(user.password, password or ''):
        user.last_login = datetime.now(timezone.utc)
        db.session.commit()
        return user
    return None


def _serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=TOKEN_SALT)


def issue_token(user):
    return _serializer().dumps({'uid': user.id})


def resolve_token(token):
    """Identidade ativa dona do token, ou None se inválido/expirado."""
    if not token:
        return None
    try:
        payload = _serializer().loads(token, max_age=current_app.config.get('TOKEN_MAX_AGE', 3600))
    except BadSignature:
        return None

    user_id = payload.get('uid') if isinstance(payload, dict) else None
    if user_id is None:
        return None
    user = db.session.get(User, user_id)
    if not user or not user.is_active:
        return None
    return user
