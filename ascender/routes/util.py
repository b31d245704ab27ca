import logging
import os

from flask import Blueprint, current_app, send_from_directory
from werkzeug.security import check_password_hash
from flask_login import login_required, current_user
from datetime import datetime, date, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ascender.errors import ValidationError
from ascender.routes.utils import handle_service_errors, get_payload, error_response, success_response
from ascender.services.identity import update_identity_password, MIN_PASSWORD_LENGTH

logger = logging.getLogger(__name__)

util_bp = Blueprint('util', __name__, template_folder='../templates')

#<!--- TROCA DE SENHA --->
@util_bp.route("/change-password", methods=["POST"])
@login_required
@handle_service_errors("alterar a senha")
def user_change_password():
    payload = get_payload()
    senha_atual = payload.get("senha_atual")
    nova_senha = payload.get("nova_senha")
    confirmar_senha = payload.get("confirmar_senha")

    if not senha_atual or not nova_senha:
        raise ValidationError("Todos os campos são obrigatórios.")
    if len(nova_senha) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"A nova senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres.")
    if confirmar_senha and nova_senha != confirmar_senha:
        raise ValidationError("As senhas não coincidem.")

    if not check_password_hash(current_user.password, senha_atual):
        return error_response("Senha atual incorreta.", 400)

    update_identity_password(current_user.id, nova_senha)
    return success_response(message="Senha alterada com sucesso!")

#<!--- ARQUIVOS PÚBLICOS (CAPAS DO PDI) --->
@util_bp.route("/uploads/<path:filename>")
def public_file(filename):
    upload_folder = os.path.abspath(current_app.config['UPLOAD_FOLDER'])
    return send_from_directory(upload_folder, filename)

#<!--- FILTRO DATA E HORA --->
def format_date_filter(value, target_tz_str=None, format_str='%d/%m/%Y'):
    if value is None:
        return "N/A"

    if isinstance(value, date) and not isinstance(value, datetime):
        return value.strftime(format_str)

    if isinstance(value, str):
        try:
            if len(value) == 10:
                return date.fromisoformat(value).strftime(format_str)
            value = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return value

    if not isinstance(value, datetime):
        return value

    try:
        target_tz = ZoneInfo(target_tz_str or current_app.config.get('TIMEZONE', 'America/Sao_Paulo'))
    except (ZoneInfoNotFoundError, RuntimeError) as e:
        logger.warning(f"Fuso horário indisponível ({e}); usando UTC")
        target_tz = timezone.utc

    # Datetimes sem timezone são gravados em UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(target_tz).strftime(format_str)
