from flask import Blueprint, jsonify, current_app
from flask_login import login_user, logout_user, login_required
from flask_wtf.csrf import generate_csrf

from ascender.routes.utils import get_payload
from ascender.services.identity import authenticate, issue_token

auth_bp = Blueprint('auth', __name__, template_folder='../templates')

#<!--- LOGIN --->
@auth_bp.route("/login", methods=["POST"])
def login():
    payload = get_payload()
    user = authenticate(payload.get("email"), payload.get("password"))

    if user and login_user(user):
        return jsonify({'success': True, 'user': user.to_dict(), 'is_admin': user.is_admin})
    return jsonify({'success': False, 'error': "E-mail ou senha inválidos."}), 401

#<!--- TOKEN DE ACESSO --->
@auth_bp.route("/auth/token", methods=["POST"])
def access_token():
    payload = get_payload()
    user = authenticate(payload.get("email"), payload.get("password"))
    if not user:
        return jsonify({'error': "Invalid login credentials"}), 400

    return jsonify({
        'access_token': issue_token(user),
        'token_type': 'bearer',
        'expires_in': current_app.config.get('TOKEN_MAX_AGE', 3600),
        'user': user.to_dict(),
    })

#<!--- LOGOUT --->
@auth_bp.route("/logout")
@login_required
def logout():
    logout_user()
    return jsonify({'success': True, 'message': "Você foi desconectado com sucesso."})

#<!--- TOKEN CSRF --->
@auth_bp.route("/csrf-token", methods=["GET"])
def csrf_token():
    """Token para o cabeçalho X-CSRFToken das escritas feitas com sessão."""
    return jsonify({'success': True, 'csrf_token': generate_csrf()})
