"""
Avaliações: montagem do documento completo (competências, critérios,
perguntas, respostas e textos), cálculo de médias e as operações do
painel administrativo.
"""
import logging
from collections import defaultdict
from datetime import datetime, timezone

from sqlalchemy.orm import selectinload

from ascender.errors import ValidationError, NotFoundError
from ascender.models import (
    db, Evaluation, EvaluationScore, EvaluationAnswer, EvaluationText, Criterion,
    Pessoa, Empresa, Administrador, EvaluationTemplate, CustomQuestion, PdiTag,
    EVALUATION_STATUS_LABELS, LANGUAGES, DEFAULT_LANGUAGE,
)
from ascender.utils.validation import parse_date, parse_int, parse_id_list, clean_text

logger = logging.getLogger(__name__)

MIN_SCORE = 0
MAX_SCORE = 5

TEXT_SECTIONS = (
    ('pontos_fortes', 'Pontos Fortes'),
    ('oportunidades_melhoria', 'Oportunidades de Melhoria'),
    ('highlights_psicologa', 'Análise da Psicóloga'),
    ('sugestoes_desenvolvimento', 'Sugestões de Desenvolvimento'),
)


# ==========================================
# MÉDIAS
# ==========================================


def calculate_average(scores):
    """Média das notas positivas; notas zeradas ou vazias não contam. Sem notas, 0."""
    positives = [float(s) for s in scores if s is not None and s > 0]
    if not positives:
        return 0
    return sum(positives) / len(positives)


def competency_average(competency):
    return calculate_average(competency.get('pontuacoes', {}).values())


def evaluation_average(document):
    all_scores = []
    for competency in document.get('competencias', []):
        all_scores.extend(competency.get('pontuacoes', {}).values())
    return calculate_average(all_scores)


# ==========================================
# DOCUMENTO DA AVALIAÇÃO
# ==========================================


def get_evaluation(evaluation_id):
    evaluation = db.session.get(Evaluation, evaluation_id)
    if not evaluation:
        raise NotFoundError('Avaliação não encontrada.')
    return evaluation


def _criteria_by_competency(competency_ids):
    grouped = defaultdict(list)
    if not competency_ids:
        return grouped
    criteria = db.session.execute(
        db.select(Criterion)
        .options(selectinload(Criterion.textos))
        .where(Criterion.competencia_id.in_(competency_ids))
        .order_by(Criterion.ordem, Criterion.id)
    ).scalars().all()
    for criterion in criteria:
        grouped[criterion.competencia_id].append(criterion)
    return grouped


def _questions_for_template(template_id):
    if not template_id:
        return []
    return db.session.execute(
        db.select(CustomQuestion)
        .options(selectinload(CustomQuestion.textos))
        .where(CustomQuestion.modelo_id == template_id)
        .order_by(CustomQuestion.ordem, CustomQuestion.id)
    ).scalars().all()


def _default_text(evaluation):
    texts = list(evaluation.texts)
    for text in texts:
        if text.idioma_padrao:
            return text
    return next((t for t in texts if t.idioma == DEFAULT_LANGUAGE), texts[0] if texts else None)


def build_evaluation_document(evaluation):
    links = list(evaluation.modelo.competency_links) if evaluation.modelo else []
    criteria = _criteria_by_competency([link.competencia_id for link in links])
    scores = {score.criterio_id: score for score in evaluation.scores}

    competencias = []
    for link in links:
        competency = link.competency
        criterios = []
        pontuacoes = {}
        observacoes = {}
        for criterion in criteria.get(link.competencia_id, []):
            texto = criterion.default_text()
            criterios.append({
                'id': criterion.id,
                'nome': texto.nome if texto else '',
                'descricao': (texto.descricao or '') if texto else '',
                'peso': 1,
            })
            score = scores.get(criterion.id)
            pontuacoes[criterion.id] = score.pontuacao if score else 0
            observacoes[criterion.id] = (score.observacoes or '') if score else ''

        competencias.append({
            'id': competency.id,
            'nome': competency.nome,
            'descricao': '',
            'criterios': criterios,
            'pontuacoes': pontuacoes,
            'observacoes': observacoes,
        })

    answers = {answer.pergunta_id: answer for answer in evaluation.answers}
    perguntas = []
    for question in _questions_for_template(evaluation.modelo_id):
        texto = question.default_text()
        answer = answers.get(question.id)
        perguntas.append({
            'id': question.id,
            'titulo': texto.titulo if texto else '',
            'descricao': (texto.descricao or '') if texto else '',
            'tipo_resposta': question.tipo_resposta,
            'obrigatorio': question.obrigatorio,
            'resposta': answer.to_dict() if answer else None,
        })

    text = _default_text(evaluation)
    secoes = []
    if text:
        for field_name, label in TEXT_SECTIONS:
            value = getattr(text, field_name)
            if value:
                secoes.append({'campo': field_name, 'titulo': label, 'conteudo': value})

    psicologa = evaluation.psicologa
    document = {
        'id': evaluation.id,
        'data_avaliacao': evaluation.data_avaliacao.isoformat() if evaluation.data_avaliacao else None,
        'status': evaluation.status,
        'status_label': EVALUATION_STATUS_LABELS.get(evaluation.status, evaluation.status),
        'observacoes': evaluation.observacoes,
        'colaborador': evaluation.colaborador.to_dict() if evaluation.colaborador else None,
        'empresa': evaluation.empresa.to_dict() if evaluation.empresa else None,
        'psicologa': {'id': psicologa.id, 'nome': psicologa.nome} if psicologa else None,
        'modelo': {'id': evaluation.modelo.id, 'nome': evaluation.modelo.nome} if evaluation.modelo else None,
        'competencias': competencias,
        'perguntas': perguntas,
        'textos': secoes,
        'pdi_tags': [tag.to_dict() for tag in evaluation.pdi_tags],
    }
    document['media'] = round(evaluation_average(document), 2)
    return document


# ==========================================
# OPERAÇÕES ADMINISTRATIVAS
# ==========================================


def list_evaluations(status=None, colaborador_id=None):
    query = db.select(Evaluation).order_by(Evaluation.data_avaliacao.desc(), Evaluation.id.desc())
    if status:
        query = query.where(Evaluation.status == status)
    if colaborador_id:
        query = query.where(Evaluation.colaborador_id == colaborador_id)
    return db.session.execute(query).scalars().all()


def list_evaluations_for_pessoa(pessoa_id):
    return list_evaluations(colaborador_id=pessoa_id)


def save_evaluation(payload, evaluation_id=None):
    """Cria ou atualiza a avaliação. Salvar o formulário volta o status para rascunho."""
    data_avaliacao = parse_date(payload.get('data_avaliacao'), 'Data')
    empresa_id = parse_int(payload.get('empresa_id'), 'Empresa')
    colaborador_id = parse_int(payload.get('colaborador_id'), 'Colaborador')
    if not data_avaliacao or not empresa_id or not colaborador_id:
        raise ValidationError('Data, Empresa e Colaborador são obrigatórios')

    if not db.session.get(Empresa, empresa_id):
        raise NotFoundError('Empresa não encontrada.')
    colaborador = db.session.get(Pessoa, colaborador_id)
    if not colaborador:
        raise NotFoundError('Colaborador não encontrado.')

    modelo_id = parse_int(payload.get('modelo_id'), 'Modelo')
    if modelo_id and not db.session.get(EvaluationTemplate, modelo_id):
        raise NotFoundError('Modelo de avaliação não encontrado.')

    psicologa_id = parse_int(payload.get('psicologa_responsavel_id'), 'Psicóloga')
    if psicologa_id:
        psicologa = db.session.get(Administrador, psicologa_id)
        if not psicologa or not psicologa.e_psicologa:
            raise ValidationError('Psicóloga responsável inválida.')

    if evaluation_id:
        evaluation = get_evaluation(evaluation_id)
    else:
        evaluation = Evaluation()
        db.session.add(evaluation)

    evaluation.data_avaliacao = data_avaliacao
    evaluation.empresa_id = empresa_id
    evaluation.colaborador_id = colaborador.id
    evaluation.colaborador_email = colaborador.email
    evaluation.modelo_id = modelo_id
    evaluation.psicologa_responsavel_id = psicologa_id
    evaluation.observacoes = clean_text(payload.get('observacoes'))
    evaluation.status = 'rascunho'
    db.session.commit()
    return evaluation


def _allowed_criteria(evaluation):
    if not evaluation.modelo:
        return set()
    competency_ids = [link.competencia_id for link in evaluation.modelo.competency_links]
    if not competency_ids:
        return set()
    return set(db.session.execute(
        db.select(Criterion.id).where(Criterion.competencia_id.in_(competency_ids))
    ).scalars().all())


def record_scores(evaluation, items):
    """Grava as notas (0 a 5) por critério; critérios de fora do modelo são recusados."""
    allowed = _allowed_criteria(evaluation)
    parsed = []
    for item in items or []:
        criterio_id = parse_int(item.get('criterio_id'), 'Critério')
        pontuacao = parse_int(item.get('pontuacao'), 'Pontuação')
        if pontuacao is None:
            pontuacao = 0
        if criterio_id not in allowed:
            raise ValidationError(f'Critério {criterio_id} não pertence ao modelo desta avaliação')
        if pontuacao < MIN_SCORE or pontuacao > MAX_SCORE:
            raise ValidationError('A pontuação deve estar entre 0 e 5')
        parsed.append((criterio_id, pontuacao, clean_text(item.get('observacoes'))))

    existing = {score.criterio_id: score for score in evaluation.scores}
    for criterio_id, pontuacao, observacoes in parsed:
        score = existing.get(criterio_id)
        if score is None:
            score = EvaluationScore(criterio_id=criterio_id)
            evaluation.scores.append(score)
            existing[criterio_id] = score
        score.pontuacao = pontuacao
        score.observacoes = observacoes
    db.session.commit()
    return evaluation


def record_texts(evaluation, idioma, payload):
    if idioma not in LANGUAGES:
        raise ValidationError(f'Idioma não suportado: {idioma}')

    text = next((t for t in evaluation.texts if t.idioma == idioma), None)
    if text is None:
        text = EvaluationText(idioma=idioma, idioma_padrao=idioma == DEFAULT_LANGUAGE)
        evaluation.texts.append(text)

    text.pontos_fortes = clean_text(payload.get('pontos_fortes'))
    text.oportunidades_melhoria = clean_text(payload.get('oportunidades_melhoria'))
    text.highlights_psicologa = clean_text(payload.get('highlights_psicologa'))
    text.sugestoes_desenvolvimento = clean_text(payload.get('sugestoes_desenvolvimento'))
    db.session.commit()
    return text


def record_answers(evaluation, items):
    questions = {q.id: q for q in _questions_for_template(evaluation.modelo_id)}
    existing = {answer.pergunta_id: answer for answer in evaluation.answers}

    for item in items or []:
        pergunta_id = parse_int(item.get('pergunta_id'), 'Pergunta')
        if pergunta_id not in questions:
            raise ValidationError(f'Pergunta {pergunta_id} não pertence ao modelo desta avaliação')

        numero = item.get('numero')
        if numero is not None and numero != '':
            try:
                numero = float(numero)
            except (TypeError, ValueError):
                raise ValidationError('Resposta numérica inválida')
        else:
            numero = None

        opcoes = item.get('opcoes')
        if opcoes is not None and not isinstance(opcoes, list):
            raise ValidationError('Opções de resposta inválidas')

        answer = existing.get(pergunta_id)
        if answer is None:
            answer = EvaluationAnswer(pergunta_id=pergunta_id)
            evaluation.answers.append(answer)
            existing[pergunta_id] = answer
        answer.resposta_texto = clean_text(item.get('texto'))
        answer.resposta_opcoes = opcoes
        answer.resposta_numero = numero
        answer.resposta_data = parse_date(item.get('data'), 'Data da resposta')
    db.session.commit()
    return evaluation


def _has_answer(answer):
    return bool(answer and (answer.resposta_texto or answer.resposta_opcoes
                            or answer.resposta_numero is not None or answer.resposta_data))


def finalize_evaluation(evaluation, tag_ids):
    """Finaliza a avaliação e grava as tags que alimentam as sugestões do PDI."""
    tag_ids = parse_id_list(tag_ids)
    tags = []
    if tag_ids:
        tags = db.session.execute(db.select(PdiTag).where(PdiTag.id.in_(tag_ids))).scalars().all()
        if len(tags) != len(tag_ids):
            raise ValidationError('Uma ou mais tags informadas não existem')

    answers = {answer.pergunta_id: answer for answer in evaluation.answers}
    for question in _questions_for_template(evaluation.modelo_id):
        if question.obrigatorio and not _has_answer(answers.get(question.id)):
            texto = question.default_text()
            titulo = texto.titulo if texto else question.id
            raise ValidationError(f'Responda a pergunta obrigatória: {titulo}')

    evaluation.pdi_tags = tags
    evaluation.status = 'finalizada'
    evaluation.updated_at = datetime.now(timezone.utc)
    db.session.commit()
    logger.info(f"Avaliação {evaluation.id} finalizada com {len(tags)} tag(s)")
    return evaluation
