from functools import wraps
from flask import jsonify
from flask_login import current_user

from ascender.errors import NotFoundError

ACCESS_DENIED_MESSAGE = "Acesso negado. Ação restrita a administradores."


def admin_required(f):
    """Decorator para verificar se o usuário logado é administrador ativo"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'success': False, 'error': "Por favor, realize o login para acessar esta página."}), 401
        if not current_user.is_admin:
            return jsonify({'success': False, 'error': ACCESS_DENIED_MESSAGE}), 403
        return f(*args, **kwargs)

    return decorated_function


def current_admin():
    if not current_user.is_authenticated:
        return None
    return current_user.administrador


def current_pessoa():
    """Pessoa vinculada ao login atual."""
    pessoa = current_user.pessoa if current_user.is_authenticated else None
    if pessoa is None:
        raise NotFoundError("Perfil de colaborador não encontrado para este usuário.")
    return pessoa


def can_view_evaluation(evaluation):
    if not current_user.is_authenticated:
        return False
    if current_user.is_admin:
        return True
    pessoa = current_user.pessoa
    return pessoa is not None and evaluation.colaborador_id == pessoa.id
