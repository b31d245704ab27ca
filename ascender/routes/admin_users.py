"""
Endpoint de provisionamento de usuários pelo painel administrativo.

Autenticação por token Bearer (veja /auth/token). A rota /setup é a única
aberta e só funciona enquanto não existir nenhum administrador.
"""
import logging

from flask import Blueprint, request, jsonify

from ascender.errors import IdentityError
from ascender.models import db, Administrador
from ascender.services.activity import log_admin_activity
from ascender.services.identity import (
    create_identity, delete_identity, update_identity_password, resolve_token,
)

logger = logging.getLogger(__name__)

admin_users_bp = Blueprint('admin_users', __name__, url_prefix='/functions/v1/admin-users')

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, POST, PUT, DELETE, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type, Authorization, X-Client-Info, Apikey',
}

ALL_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']


@admin_users_bp.after_request
def add_cors_headers(response):
    for header, value in CORS_HEADERS.items():
        response.headers[header] = value
    return response


def _error(message, status_code):
    return jsonify({'error': message}), status_code


def _json_body():
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if header.lower().startswith('bearer '):
        return header[7:].strip()
    return header.strip()


#<!--- DESPACHO --->
@admin_users_bp.route('', methods=ALL_METHODS, defaults={'action': ''})
@admin_users_bp.route('/<path:action>', methods=ALL_METHODS)
def dispatch(action):
    if request.method == 'OPTIONS':
        return '', 200

    action = action.strip('/').split('/')[-1] if action else ''
    try:
        if request.method == 'POST' and action == 'setup':
            return setup_first_admin()

        if not request.headers.get('Authorization'):
            return _error('No authorization header', 401)

        user = resolve_token(_bearer_token())
        if not user:
            return _error('Unauthorized', 401)

        admin = Administrador.query.filter_by(auth_user_id=user.id).first()
        if not admin or not admin.e_administrador:
            return _error('Forbidden: Only administrators can perform this action', 403)

        if request.method == 'POST' and action == 'create':
            return create_user(admin)
        if request.method == 'PUT' and action == 'update-password':
            return update_password(admin)

        return _error('Method not allowed', 405)
    except IdentityError as e:
        db.session.rollback()
        return _error(e.message, 400)
    except Exception as e:
        db.session.rollback()
        logger.exception(f"Erro no provisionamento de usuários: {str(e)}")
        return _error('Internal server error', 500)


#<!--- PRIMEIRO ADMINISTRADOR --->
def _create_admin_record(user, nome, email):
    admin = Administrador(
        nome=nome,
        email=email,
        auth_user_id=user.id,
        e_administrador=True,
        ativo=True,
    )
    db.session.add(admin)
    db.session.commit()
    return admin


def setup_first_admin():
    if db.session.execute(db.select(Administrador.id).limit(1)).first():
        return _error('Setup already completed: administrators already exist', 403)

    body = _json_body()
    email = (body.get('email') or '').strip()
    password = body.get('password') or ''
    nome = (body.get('nome') or '').strip()
    if not email or not password or not nome:
        return _error('Email, password and nome are required', 400)

    user = create_identity(email, password, {'nome': nome})
    try:
        admin = _create_admin_record(user, nome, user.email)
    except Exception:
        db.session.rollback()
        logger.error(f"Falha ao criar registro de administrador para {user.email}; removendo identidade")
        delete_identity(user.id)
        raise

    logger.info(f"Primeiro administrador configurado: {user.email}")
    log_admin_activity(admin, 'admin_created', 'administrador', admin.id, admin.nome)
    return jsonify({'success': True, 'user': user.to_dict()}), 200


#<!--- CRIAR USUÁRIO --->
def create_user(admin):
    body = _json_body()
    email = body.get('email')
    password = body.get('password')
    if not email or not password:
        return _error('Email and password are required', 400)

    metadata = body.get('metadata')
    user = create_identity(email, password, metadata if isinstance(metadata, dict) else {})
    logger.info(f"Usuário {user.email} criado por {admin.email}")
    return jsonify({'user': user.to_dict()}), 200


#<!--- REDEFINIR SENHA --->
def update_password(admin):
    body = _json_body()
    user_id = body.get('userId')
    password = body.get('password')
    if not user_id or not password:
        return _error('User ID and password are required', 400)

    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise IdentityError('User not found')

    user = update_identity_password(user_id, password)
    logger.info(f"Senha do usuário {user.email} redefinida por {admin.email}")
    return jsonify({'user': user.to_dict()}), 200
