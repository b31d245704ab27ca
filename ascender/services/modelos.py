"""
Competências (com critérios multilíngues) e modelos de avaliação
(competências ordenadas + perguntas personalizadas).
"""
import logging
from dataclasses import dataclass, field

from ascender.errors import ValidationError, NotFoundError
from ascender.models import (
    db, Competency, Criterion, CriterionText, Evaluation, EvaluationTemplate, TemplateCompetency,
    CustomQuestion, CustomQuestionText, LANGUAGES, DEFAULT_LANGUAGE,
    TEMPLATE_STATUS_DRAFT, TEMPLATE_STATUS_PUBLISHED,
)
from ascender.utils.validation import parse_bool, parse_id_list, clean_text

logger = logging.getLogger(__name__)

VISIBILITIES = ('colaborador', 'gestor', 'todos')
ANSWER_TYPES = ('texto', 'multipla_escolha', 'escala', 'numero', 'data')
MIN_COMPETENCY_NAME_LENGTH = 2
MIN_TEMPLATE_NAME_LENGTH = 3


def _parse_visibility(value):
    value = (value or 'todos').strip()
    if value not in VISIBILITIES:
        raise ValidationError(f'Visibilidade inválida: {value}')
    return value


def _language_entries(textos):
    """Aceita {'pt-BR': {...}} ou [{'idioma': 'pt-BR', ...}] e devolve pares (idioma, dict)."""
    if isinstance(textos, dict):
        entries = list(textos.items())
    elif isinstance(textos, list):
        entries = [(t.get('idioma'), t) for t in textos if isinstance(t, dict)]
    else:
        entries = []

    for idioma, data in entries:
        if idioma not in LANGUAGES:
            raise ValidationError(f'Idioma não suportado: {idioma}')
        yield idioma, data or {}


# <--- PAYLOADS --->

@dataclass
class TranslatedText:
    idioma: str
    titulo: str
    descricao: str = None


@dataclass
class CriterionDraft:
    visibilidade: str
    textos: list = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload):
        textos = [
            TranslatedText(idioma, (data.get('nome') or '').strip(), clean_text(data.get('descricao')))
            for idioma, data in _language_entries(payload.get('textos'))
        ]
        return cls(visibilidade=_parse_visibility(payload.get('visibilidade')), textos=textos)

    def default_name(self):
        return next((t.titulo for t in self.textos if t.idioma == DEFAULT_LANGUAGE), '')


@dataclass
class QuestionDraft:
    visibilidade: str
    obrigatorio: bool
    tipo_resposta: str
    opcoes: list
    textos: list = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload):
        tipo_resposta = (payload.get('tipo_resposta') or 'texto').strip()
        if tipo_resposta not in ANSWER_TYPES:
            raise ValidationError(f'Tipo de resposta inválido: {tipo_resposta}')
        opcoes = payload.get('opcoes') or []
        if not isinstance(opcoes, list):
            raise ValidationError('Opções da pergunta inválidas')

        textos = [
            TranslatedText(idioma, (data.get('titulo') or '').strip(), clean_text(data.get('descricao')))
            for idioma, data in _language_entries(payload.get('textos'))
        ]
        return cls(
            visibilidade=_parse_visibility(payload.get('visibilidade')),
            obrigatorio=parse_bool(payload.get('obrigatorio')),
            tipo_resposta=tipo_resposta,
            opcoes=[str(o).strip() for o in opcoes if str(o).strip()],
            textos=textos,
        )

    def default_title(self):
        return next((t.titulo for t in self.textos if t.idioma == DEFAULT_LANGUAGE), '')


# ==========================================
# COMPETÊNCIAS
# ==========================================


def list_competencies(include_inactive=False):
    query = db.select(Competency).order_by(Competency.nome)
    if not include_inactive:
        query = query.where(Competency.status == 'ativo')
    return db.session.execute(query).scalars().all()


def get_competency(competency_id):
    competency = db.session.get(Competency, competency_id)
    if not competency:
        raise NotFoundError('Competência não encontrada.')
    return competency


def save_competency(payload, competency_id=None):
    """Cria ou atualiza a competência; os critérios são substituídos pelos enviados."""
    nome = (payload.get('nome') or '').strip()
    if len(nome) < MIN_COMPETENCY_NAME_LENGTH:
        raise ValidationError('Nome deve ter no mínimo 2 caracteres')

    drafts = [CriterionDraft.from_payload(item) for item in payload.get('criterios') or []]
    if any(not draft.default_name() for draft in drafts):
        raise ValidationError('Todos os critérios devem ter nome em Português')

    status = payload.get('status') or 'ativo'
    if status not in ('ativo', 'inativo'):
        raise ValidationError(f'Status inválido: {status}')

    if competency_id:
        competency = get_competency(competency_id)
    else:
        competency = Competency()
        db.session.add(competency)

    competency.nome = nome
    competency.fixo = parse_bool(payload.get('fixo'))
    competency.status = status

    competency.criteria.clear()
    db.session.flush()
    for ordem, draft in enumerate(drafts):
        criterion = Criterion(visibilidade=draft.visibilidade, ordem=ordem)
        for texto in draft.textos:
            if not texto.titulo:
                continue
            criterion.textos.append(CriterionText(
                idioma=texto.idioma,
                nome=texto.titulo,
                descricao=texto.descricao,
                idioma_padrao=texto.idioma == DEFAULT_LANGUAGE,
            ))
        competency.criteria.append(criterion)

    db.session.commit()
    logger.info(f"Competência salva: {competency.nome} ({len(drafts)} critério(s))")
    return competency


def delete_competency(competency_id):
    competency = get_competency(competency_id)
    in_use = db.session.execute(
        db.select(TemplateCompetency.id).filter_by(competencia_id=competency.id).limit(1)
    ).scalar_one_or_none()
    if in_use:
        raise ValidationError('Competência em uso por um modelo de avaliação. Inative-a em vez de excluir.')
    nome = competency.nome
    db.session.delete(competency)
    db.session.commit()
    return nome


# ==========================================
# MODELOS DE AVALIAÇÃO
# ==========================================


def list_templates(status=None):
    query = db.select(EvaluationTemplate).order_by(EvaluationTemplate.created_at.desc(), EvaluationTemplate.id.desc())
    if status:
        query = query.where(EvaluationTemplate.status == status)
    return db.session.execute(query).scalars().all()


def get_template(template_id):
    template = db.session.get(EvaluationTemplate, template_id)
    if not template:
        raise NotFoundError('Modelo não encontrado.')
    return template


def save_template(payload, template_id=None):
    """
    Cria ou atualiza o modelo. Competências e perguntas são substituídas pelas
    enviadas; textos de pergunta só são gravados nos idiomas com título.
    """
    nome = (payload.get('nome') or '').strip()
    if len(nome) < MIN_TEMPLATE_NAME_LENGTH:
        raise ValidationError('Nome deve ter no mínimo 3 caracteres')

    competency_ids = parse_id_list(payload.get('competencias'))
    drafts = [QuestionDraft.from_payload(item) for item in payload.get('perguntas') or []]
    if not competency_ids and not drafts:
        raise ValidationError('Selecione ao menos uma competência ou adicione uma pergunta personalizada')
    if any(not draft.default_title() for draft in drafts):
        raise ValidationError('Todas as perguntas devem ter título')

    if competency_ids:
        found = set(db.session.execute(
            db.select(Competency.id).where(Competency.id.in_(competency_ids))
        ).scalars().all())
        missing = [i for i in competency_ids if i not in found]
        if missing:
            raise ValidationError(f"Competência(s) inexistente(s): {', '.join(str(m) for m in missing)}")

    if template_id:
        template = get_template(template_id)
    else:
        template = EvaluationTemplate(status=TEMPLATE_STATUS_DRAFT)
        db.session.add(template)

    template.nome = nome
    template.competency_links.clear()
    template.questions.clear()
    db.session.flush()

    for ordem, competency_id in enumerate(competency_ids):
        template.competency_links.append(TemplateCompetency(competencia_id=competency_id, ordem=ordem))

    for ordem, draft in enumerate(drafts):
        question = CustomQuestion(
            visibilidade=draft.visibilidade,
            obrigatorio=draft.obrigatorio,
            tipo_resposta=draft.tipo_resposta,
            opcoes=draft.opcoes,
            ordem=ordem,
        )
        for texto in draft.textos:
            if not texto.titulo:
                continue
            question.textos.append(CustomQuestionText(
                idioma=texto.idioma,
                titulo=texto.titulo,
                descricao=texto.descricao,
                idioma_padrao=texto.idioma == DEFAULT_LANGUAGE,
            ))
        template.questions.append(question)

    db.session.commit()
    logger.info(f"Modelo salvo: {template.nome} ({len(competency_ids)} competência(s), {len(drafts)} pergunta(s))")
    return template


def publish_template(template_id):
    template = get_template(template_id)
    if not template.competency_links and not template.questions:
        raise ValidationError('Modelo sem competências ou perguntas não pode ser publicado')
    template.status = TEMPLATE_STATUS_PUBLISHED
    db.session.commit()
    return template


def delete_template(template_id):
    template = get_template(template_id)
    in_use = db.session.execute(
        db.select(Evaluation.id).filter_by(modelo_id=template.id).limit(1)
    ).scalar_one_or_none()
    if in_use:
        raise ValidationError('Modelo já utilizado em avaliações não pode ser excluído')
    nome = template.nome
    db.session.delete(template)
    db.session.commit()
    return nome
