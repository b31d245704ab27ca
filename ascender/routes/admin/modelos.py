from flask import Blueprint, request
from flask_login import login_required

from ascender.routes.utils import handle_service_errors, get_payload, success_response
from ascender.services import modelos
from ascender.services.activity import log_admin_activity
from ascender.utils.permissions import admin_required, current_admin

modelos_bp = Blueprint('modelos', __name__, url_prefix='/modelos')


@modelos_bp.route('', methods=['GET'])
@login_required
@admin_required
@handle_service_errors("listar modelos")
def list_templates():
    templates = modelos.list_templates(request.args.get('status'))
    return success_response(modelos=[t.to_dict() for t in templates])


@modelos_bp.route('/<int:template_id>', methods=['GET'])
@login_required
@admin_required
@handle_service_errors("carregar modelo")
def get_template(template_id):
    return success_response(modelo=modelos.get_template(template_id).to_dict(include_items=True))


@modelos_bp.route('', methods=['POST'])
@login_required
@admin_required
@handle_service_errors("criar modelo")
def create_template():
    template = modelos.save_template(get_payload())
    log_admin_activity(current_admin(), 'modelo_created', 'modelo', template.id, template.nome)
    return success_response(201, message='Modelo criado com sucesso!', modelo=template.to_dict(include_items=True))


@modelos_bp.route('/<int:template_id>', methods=['PUT'])
@login_required
@admin_required
@handle_service_errors("atualizar modelo")
def update_template(template_id):
    template = modelos.save_template(get_payload(), template_id=template_id)
    log_admin_activity(current_admin(), 'modelo_updated', 'modelo', template.id, template.nome)
    return success_response(message='Modelo atualizado com sucesso!', modelo=template.to_dict(include_items=True))


@modelos_bp.route('/<int:template_id>/publicar', methods=['POST'])
@login_required
@admin_required
@handle_service_errors("publicar modelo")
def publish_template(template_id):
    template = modelos.publish_template(template_id)
    log_admin_activity(current_admin(), 'modelo_published', 'modelo', template.id, template.nome)
    return success_response(message='Modelo publicado com sucesso!', modelo=template.to_dict())


@modelos_bp.route('/<int:template_id>', methods=['DELETE'])
@login_required
@admin_required
@handle_service_errors("excluir modelo")
def delete_template(template_id):
    modelos.delete_template(template_id)
    return success_response(message='Modelo excluído com sucesso!')
