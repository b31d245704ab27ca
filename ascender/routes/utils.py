import logging
from functools import wraps
from flask import jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from ascender.errors import AscenderError
from ascender.models import db

logger = logging.getLogger(__name__)

# ==========================================
# DECORATORS
# ==========================================


def handle_service_errors(operation_name):
    """Decorator para tratamento consistente de erros dos serviços e do banco"""

    def decorator(f):

        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except HTTPException:
                raise
            except AscenderError as e:
                db.session.rollback()
                logger.warning(f"Falha em {operation_name}: {e.message}")
                return error_response(e.message, e.status_code)
            except SQLAlchemyError as e:
                db.session.rollback()
                message = str(getattr(e, 'orig', None) or e)
                logger.error(f"Erro de banco em {operation_name}: {message}")
                return error_response(message, 400)
            except Exception as e:
                db.session.rollback()
                logger.exception(f"Erro em {operation_name}: {str(e)}")
                return error_response(f"Erro ao {operation_name.lower()}.", 500)

        return decorated_function

    return decorator


# ==========================================
# RESPOSTAS E PAYLOAD
# ==========================================


def error_response(message, status_code=400):
    return jsonify({'success': False, 'error': message}), status_code


def success_response(status_code=200, **data):
    return jsonify({'success': True, **data}), status_code


def get_payload():
    """Corpo JSON da requisição ou, na falta dele, os campos do formulário."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    return request.form.to_dict()


def get_list_arg(name):
    """Parâmetro de lista da query string: ?tags=1&tags=2 ou ?tags=1,2"""
    values = request.args.getlist(name)
    return values or None
