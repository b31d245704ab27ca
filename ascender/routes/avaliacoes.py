from flask import Blueprint, render_template, request
from flask_login import login_required, current_user

from ascender.errors import NotFoundError, PermissionDeniedError
from ascender.routes.utils import handle_service_errors, get_payload, success_response
from ascender.services import evaluations
from ascender.services.activity import log_admin_activity
from ascender.utils.permissions import admin_required, current_admin, can_view_evaluation

avaliacoes_bp = Blueprint('avaliacoes', __name__, url_prefix='/avaliacoes', template_folder='../templates')


def _visible_evaluation(evaluation_id):
    evaluation = evaluations.get_evaluation(evaluation_id)
    if not can_view_evaluation(evaluation):
        raise PermissionDeniedError('Você não tem permissão para ver esta avaliação.')
    return evaluation


#<!--- CONSULTA --->
@avaliacoes_bp.route('', methods=['GET'])
@login_required
@handle_service_errors("listar avaliações")
def list_evaluations():
    """Administradores veem todas; colaboradores, apenas as próprias."""
    if current_user.is_admin:
        items = evaluations.list_evaluations(
            status=request.args.get('status') or None,
            colaborador_id=request.args.get('colaborador_id', type=int),
        )
    else:
        pessoa = current_user.pessoa
        if pessoa is None:
            raise NotFoundError('Perfil de colaborador não encontrado para este usuário.')
        items = evaluations.list_evaluations_for_pessoa(pessoa.id)
    return success_response(avaliacoes=[e.to_dict() for e in items])


@avaliacoes_bp.route('/<int:evaluation_id>', methods=['GET'])
@login_required
@handle_service_errors("carregar avaliação")
def get_evaluation(evaluation_id):
    evaluation = _visible_evaluation(evaluation_id)
    return success_response(avaliacao=evaluations.build_evaluation_document(evaluation))


@avaliacoes_bp.route('/<int:evaluation_id>/impressao', methods=['GET'])
@login_required
@handle_service_errors("gerar a impressão da avaliação")
def print_evaluation(evaluation_id):
    evaluation = _visible_evaluation(evaluation_id)
    document = evaluations.build_evaluation_document(evaluation)
    return render_template('avaliacoes/impressao.html', avaliacao=document,
                           competency_average=evaluations.competency_average)


#<!--- ADMINISTRAÇÃO --->
@avaliacoes_bp.route('', methods=['POST'])
@login_required
@admin_required
@handle_service_errors("criar avaliação")
def create_evaluation():
    evaluation = evaluations.save_evaluation(get_payload())
    log_admin_activity(current_admin(), 'avaliacao_created', 'avaliacao', evaluation.id,
                       evaluation.colaborador.nome)
    return success_response(201, message='Avaliação criada com sucesso!', avaliacao=evaluation.to_dict())


@avaliacoes_bp.route('/<int:evaluation_id>', methods=['PUT'])
@login_required
@admin_required
@handle_service_errors("atualizar avaliação")
def update_evaluation(evaluation_id):
    evaluation = evaluations.save_evaluation(get_payload(), evaluation_id=evaluation_id)
    return success_response(message='Avaliação salva como rascunho.', avaliacao=evaluation.to_dict())


@avaliacoes_bp.route('/<int:evaluation_id>/pontuacoes', methods=['PUT'])
@login_required
@admin_required
@handle_service_errors("salvar pontuações")
def save_scores(evaluation_id):
    evaluation = evaluations.get_evaluation(evaluation_id)
    evaluations.record_scores(evaluation, get_payload().get('pontuacoes'))
    return success_response(message='Pontuações salvas.',
                            avaliacao=evaluations.build_evaluation_document(evaluation))


@avaliacoes_bp.route('/<int:evaluation_id>/respostas', methods=['PUT'])
@login_required
@admin_required
@handle_service_errors("salvar respostas")
def save_answers(evaluation_id):
    evaluation = evaluations.get_evaluation(evaluation_id)
    evaluations.record_answers(evaluation, get_payload().get('respostas'))
    return success_response(message='Respostas salvas.')


@avaliacoes_bp.route('/<int:evaluation_id>/textos/<idioma>', methods=['PUT'])
@login_required
@admin_required
@handle_service_errors("salvar textos da avaliação")
def save_texts(evaluation_id, idioma):
    evaluation = evaluations.get_evaluation(evaluation_id)
    evaluations.record_texts(evaluation, idioma, get_payload())
    return success_response(message='Textos salvos.')


@avaliacoes_bp.route('/<int:evaluation_id>/finalizar', methods=['POST'])
@login_required
@admin_required
@handle_service_errors("finalizar avaliação")
def finalize_evaluation(evaluation_id):
    evaluation = evaluations.get_evaluation(evaluation_id)
    evaluations.finalize_evaluation(evaluation, get_payload().get('tag_ids'))
    log_admin_activity(current_admin(), 'avaliacao_finished', 'avaliacao', evaluation.id,
                       evaluation.colaborador.nome)
    return success_response(message='Avaliação finalizada!', avaliacao=evaluation.to_dict())
