from flask import Blueprint, request
from flask_login import login_required

from ascender.routes.utils import handle_service_errors, get_payload, success_response
from ascender.services import catalog
from ascender.services.activity import log_admin_activity
from ascender.utils.permissions import admin_required, current_admin
from ascender.utils.text import slugify

admin_pdi_bp = Blueprint('pdi', __name__, url_prefix='/pdi')

# <--- CONTEÚDOS --->

@admin_pdi_bp.route('/conteudos', methods=['GET'])
@login_required
@admin_required
@handle_service_errors("listar conteúdos")
def list_contents():
    return success_response(contents=catalog.list_all_contents(request.args.get('search', '').strip()))


@admin_pdi_bp.route('/conteudos/<int:content_id>', methods=['GET'])
@login_required
@admin_required
@handle_service_errors("carregar o conteúdo")
def get_content(content_id):
    return success_response(content=catalog.get_content_detail(content_id))


@admin_pdi_bp.route('/conteudos', methods=['POST'])
@login_required
@admin_required
@handle_service_errors("criar conteúdo")
def create_content():
    content = catalog.save_content(get_payload())
    log_admin_activity(current_admin(), 'pdi_content_created', 'pdi_content', content.id, content.titulo)
    return success_response(201, message='Conteúdo criado com sucesso!',
                            content=catalog.get_content_detail(content.id))


@admin_pdi_bp.route('/conteudos/<int:content_id>', methods=['PUT'])
@login_required
@admin_required
@handle_service_errors("atualizar conteúdo")
def update_content(content_id):
    content = catalog.save_content(get_payload(), content_id=content_id)
    log_admin_activity(current_admin(), 'pdi_content_updated', 'pdi_content', content.id, content.titulo)
    return success_response(message='Conteúdo atualizado com sucesso!',
                            content=catalog.get_content_detail(content.id))


@admin_pdi_bp.route('/conteudos/<int:content_id>', methods=['DELETE'])
@login_required
@admin_required
@handle_service_errors("excluir conteúdo")
def delete_content(content_id):
    titulo = catalog.delete_content(content_id)
    log_admin_activity(current_admin(), 'pdi_content_deleted', 'pdi_content', content_id, titulo)
    return success_response(message='Conteúdo excluído com sucesso!')


@admin_pdi_bp.route('/conteudos/<int:content_id>/ativo', methods=['POST'])
@login_required
@admin_required
@handle_service_errors("alterar status do conteúdo")
def toggle_content(content_id):
    content = catalog.toggle_content_active(content_id)
    status = 'ativado' if content.is_active else 'desativado'
    return success_response(message=f'Conteúdo {status}.', is_active=content.is_active)


@admin_pdi_bp.route('/capas', methods=['POST'])
@login_required
@admin_required
@handle_service_errors("enviar a imagem")
def upload_cover():
    url = catalog.store_cover_image(request.files.get('file'))
    return success_response(201, url=url)


# <--- TAGS --->

@admin_pdi_bp.route('/tags', methods=['GET'])
@login_required
@admin_required
@handle_service_errors("listar tags")
def list_tags():
    tags = catalog.list_tags(request.args.get('search', '').strip())
    counts = catalog.count_contents_by_tag()
    data = []
    for tag in tags:
        item = tag.to_dict()
        item['total_conteudos'] = counts.get(tag.id, 0)
        data.append(item)
    return success_response(tags=data)


@admin_pdi_bp.route('/tags/slug', methods=['GET'])
@login_required
@admin_required
def preview_slug():
    return success_response(slug=slugify(request.args.get('nome', '')))


@admin_pdi_bp.route('/tags', methods=['POST'])
@login_required
@admin_required
@handle_service_errors("criar tag")
def create_tag():
    tag = catalog.save_tag(get_payload())
    log_admin_activity(current_admin(), 'pdi_tag_created', 'pdi_tag', tag.id, tag.nome)
    return success_response(201, message='Tag criada com sucesso!', tag=tag.to_dict())


@admin_pdi_bp.route('/tags/<int:tag_id>', methods=['PUT'])
@login_required
@admin_required
@handle_service_errors("atualizar tag")
def update_tag(tag_id):
    tag = catalog.save_tag(get_payload(), tag_id=tag_id)
    log_admin_activity(current_admin(), 'pdi_tag_updated', 'pdi_tag', tag.id, tag.nome)
    return success_response(message='Tag atualizada com sucesso!', tag=tag.to_dict())


@admin_pdi_bp.route('/tags/<int:tag_id>', methods=['DELETE'])
@login_required
@admin_required
@handle_service_errors("excluir tag")
def delete_tag(tag_id):
    nome = catalog.delete_tag(tag_id)
    log_admin_activity(current_admin(), 'pdi_tag_deleted', 'pdi_tag', tag_id, nome)
    return success_response(message='Tag excluída com sucesso!')


# <--- TIPOS DE MÍDIA E PÚBLICOS --->

@admin_pdi_bp.route('/tipos-midia', methods=['GET'])
@login_required
@admin_required
@handle_service_errors("listar tipos de mídia")
def list_media_types():
    include_inactive = request.args.get('todos') == '1'
    return success_response(media_types=[m.to_dict() for m in catalog.list_media_types(include_inactive)])


@admin_pdi_bp.route('/publicos', methods=['GET'])
@login_required
@admin_required
@handle_service_errors("listar públicos")
def list_audiences():
    include_inactive = request.args.get('todos') == '1'
    return success_response(audiences=[a.to_dict() for a in catalog.list_audiences(include_inactive)])
