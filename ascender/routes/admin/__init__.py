from flask import Blueprint, request
from flask_login import login_required

from ascender.models import AdminActivityLog
from ascender.routes.utils import success_response
from ascender.utils.permissions import admin_required

from .pdi import admin_pdi_bp
from .competencias import competencias_bp
from .modelos import modelos_bp


def create_admin_blueprint():
    admin_bp = Blueprint('admin', __name__, url_prefix='/admin')

    admin_bp.register_blueprint(admin_pdi_bp)
    admin_bp.register_blueprint(competencias_bp)
    admin_bp.register_blueprint(modelos_bp)

    @admin_bp.route("/atividades")
    @login_required
    @admin_required
    def recent_activity():
        """Últimas ações registradas pelos administradores"""
        limit = min(request.args.get('limit', 20, type=int), 100)
        logs = AdminActivityLog.query.order_by(
            AdminActivityLog.created_at.desc(), AdminActivityLog.id.desc()
        ).limit(limit).all()
        return success_response(atividades=[log.to_dict() for log in logs])

    return admin_bp
