from flask import Blueprint, request
from flask_login import login_required

from ascender.routes.utils import handle_service_errors, get_payload, get_list_arg, success_response
from ascender.services import catalog, pdi as pdi_service
from ascender.services.recommendations import load_recommendations
from ascender.utils.permissions import current_pessoa
from ascender.utils.validation import parse_id_list, parse_int

pdi_bp = Blueprint('pdi', __name__, url_prefix='/pdi', template_folder='../templates')


#<!--- MEU PDI --->
@pdi_bp.route('/meu-pdi', methods=['GET'])
@login_required
@handle_service_errors("carregar o PDI")
def meu_pdi():
    pessoa = current_pessoa()
    plano = pdi_service.load_user_pdi(pessoa.id)
    em_andamento, concluidos = pdi_service.partition_contents(plano.contents)
    acoes_em_andamento, acoes_concluidas = pdi_service.partition_actions(plano.actions)
    return success_response(
        em_andamento=em_andamento,
        concluidos=concluidos,
        acoes=plano.actions,
        acoes_em_andamento=acoes_em_andamento,
        acoes_concluidas=acoes_concluidas,
    )


#<!--- SUGESTÕES --->
@pdi_bp.route('/sugestoes', methods=['GET'])
@login_required
@handle_service_errors("carregar as sugestões")
def sugestoes():
    pessoa = current_pessoa()
    return success_response(contents=load_recommendations(pessoa.id))


#<!--- BIBLIOTECA --->
@pdi_bp.route('/biblioteca', methods=['GET'])
@login_required
@handle_service_errors("carregar a biblioteca")
def biblioteca():
    pessoa = current_pessoa()
    min_rating = request.args.get('min_rating', type=float)
    contents, user_content_ids = pdi_service.load_library(
        pessoa.id,
        search_term=request.args.get('search', '').strip(),
        tag_ids=parse_id_list(get_list_arg('tags')),
        media_type_ids=parse_id_list(get_list_arg('media_types')),
        audience_ids=parse_id_list(get_list_arg('audiences')),
        min_rating=min_rating,
    )
    return success_response(contents=contents, user_content_ids=user_content_ids)


#<!--- CONTEÚDOS DO PLANO --->
@pdi_bp.route('/conteudos', methods=['POST'])
@login_required
@handle_service_errors("adicionar o conteúdo ao PDI")
def adicionar_conteudo():
    pessoa = current_pessoa()
    payload = get_payload()
    enrollment = pdi_service.add_content_to_plan(
        pessoa.id,
        parse_int(payload.get('content_id'), 'Conteúdo'),
        payload.get('planned_due_date'),
    )
    return success_response(201, message='Conteúdo adicionado ao seu PDI', enrollment=enrollment.to_dict())


@pdi_bp.route('/conteudos/<int:enrollment_id>/concluir', methods=['POST'])
@login_required
@handle_service_errors("concluir o conteúdo")
def concluir_conteudo(enrollment_id):
    pessoa = current_pessoa()
    payload = get_payload()
    enrollment = pdi_service.complete_enrollment(
        pessoa.id, enrollment_id, payload.get('rating_stars'), payload.get('rating_comment'),
    )
    return success_response(message='Conteúdo concluído!', enrollment=enrollment.to_dict())


@pdi_bp.route('/conteudos/<int:enrollment_id>/data', methods=['PUT'])
@login_required
@handle_service_errors("atualizar a data prevista")
def reagendar_conteudo(enrollment_id):
    pessoa = current_pessoa()
    payload = get_payload()
    enrollment = pdi_service.reschedule_enrollment(pessoa.id, enrollment_id, payload.get('planned_due_date'))
    return success_response(message='Data atualizada', enrollment=enrollment.to_dict())


@pdi_bp.route('/conteudos/<int:enrollment_id>', methods=['DELETE'])
@login_required
@handle_service_errors("remover o conteúdo do PDI")
def remover_conteudo(enrollment_id):
    pessoa = current_pessoa()
    pdi_service.remove_enrollment(pessoa.id, enrollment_id)
    return success_response(message='Conteúdo removido do seu PDI')


#<!--- AÇÕES --->
@pdi_bp.route('/acoes', methods=['GET'])
@login_required
@handle_service_errors("carregar as ações")
def listar_acoes():
    pessoa = current_pessoa()
    plano = pdi_service.load_user_pdi(pessoa.id)
    em_andamento, concluidas = pdi_service.partition_actions(plano.actions)
    return success_response(acoes=plano.actions, em_andamento=em_andamento, concluidas=concluidas)


@pdi_bp.route('/acoes', methods=['POST'])
@login_required
@handle_service_errors("salvar a ação")
def criar_acao():
    pessoa = current_pessoa()
    payload = get_payload()
    action = pdi_service.save_action(
        pessoa.id, payload.get('description'), payload.get('planned_due_date'), payload.get('investment'),
    )
    return success_response(201, message='Ação criada com sucesso', acao=action.to_dict())


@pdi_bp.route('/acoes/<int:action_id>', methods=['PUT'])
@login_required
@handle_service_errors("salvar a ação")
def editar_acao(action_id):
    pessoa = current_pessoa()
    payload = get_payload()
    action = pdi_service.save_action(
        pessoa.id, payload.get('description'), payload.get('planned_due_date'), payload.get('investment'),
        action_id=action_id,
    )
    return success_response(message='Ação atualizada com sucesso', acao=action.to_dict())


@pdi_bp.route('/acoes/<int:action_id>/alternar', methods=['POST'])
@login_required
@handle_service_errors("atualizar a ação")
def alternar_acao(action_id):
    pessoa = current_pessoa()
    action = pdi_service.toggle_action(pessoa.id, action_id)
    return success_response(acao=action.to_dict())


@pdi_bp.route('/acoes/<int:action_id>', methods=['DELETE'])
@login_required
@handle_service_errors("excluir a ação")
def excluir_acao(action_id):
    pessoa = current_pessoa()
    pdi_service.delete_action(pessoa.id, action_id)
    return success_response(message='Ação excluída')


#<!--- FILTROS DA BIBLIOTECA --->
@pdi_bp.route('/filtros', methods=['GET'])
@login_required
@handle_service_errors("carregar os filtros")
def filtros():
    return success_response(
        tags=[t.to_dict() for t in catalog.list_tags()],
        media_types=[m.to_dict() for m in catalog.list_media_types()],
        audiences=[a.to_dict() for a in catalog.list_audiences()],
    )
