from flask import Blueprint, request
from flask_login import login_required

from ascender.routes.utils import handle_service_errors, get_payload, success_response
from ascender.services import modelos
from ascender.services.activity import log_admin_activity
from ascender.utils.permissions import admin_required, current_admin

competencias_bp = Blueprint('competencias', __name__, url_prefix='/competencias')


@competencias_bp.route('', methods=['GET'])
@login_required
@admin_required
@handle_service_errors("listar competências")
def list_competencies():
    include_inactive = request.args.get('todas') == '1'
    competencies = modelos.list_competencies(include_inactive)
    return success_response(competencias=[c.to_dict(include_criteria=True) for c in competencies])


@competencias_bp.route('/<int:competency_id>', methods=['GET'])
@login_required
@admin_required
@handle_service_errors("carregar competência")
def get_competency(competency_id):
    competency = modelos.get_competency(competency_id)
    return success_response(competencia=competency.to_dict(include_criteria=True))


@competencias_bp.route('', methods=['POST'])
@login_required
@admin_required
@handle_service_errors("criar competência")
def create_competency():
    competency = modelos.save_competency(get_payload())
    log_admin_activity(current_admin(), 'competencia_created', 'competencia', competency.id, competency.nome)
    return success_response(201, message='Competência criada com sucesso!',
                            competencia=competency.to_dict(include_criteria=True))


@competencias_bp.route('/<int:competency_id>', methods=['PUT'])
@login_required
@admin_required
@handle_service_errors("atualizar competência")
def update_competency(competency_id):
    competency = modelos.save_competency(get_payload(), competency_id=competency_id)
    log_admin_activity(current_admin(), 'competencia_updated', 'competencia', competency.id, competency.nome)
    return success_response(message='Competência atualizada com sucesso!',
                            competencia=competency.to_dict(include_criteria=True))


@competencias_bp.route('/<int:competency_id>', methods=['DELETE'])
@login_required
@admin_required
@handle_service_errors("excluir competência")
def delete_competency(competency_id):
    modelos.delete_competency(competency_id)
    return success_response(message='Competência excluída com sucesso!')
