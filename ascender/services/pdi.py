"""
PDI do colaborador: conteúdos matriculados, ações próprias e avaliações
dos conteúdos concluídos.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from ascender.errors import ValidationError, NotFoundError, ConflictError, GatewayError
from ascender.models import (
    db, PdiContent, PdiUserContent, PdiUserAction,
    PDI_STATUS_IN_PROGRESS, PDI_STATUS_COMPLETED,
)
from ascender.services.catalog import tags_by_content, media_types_by_id, list_active_contents, filter_contents
from ascender.utils.validation import parse_date, to_cents, clean_text

logger = logging.getLogger(__name__)

MIN_ACTION_DESCRIPTION_LENGTH = 10
ALREADY_IN_PLAN_MESSAGE = 'Este conteúdo já está no seu PDI'
RATING_REQUIRED_MESSAGE = 'Por favor, selecione uma avaliação em estrelas'


@dataclass
class UserPdi:
    contents: list = field(default_factory=list)
    actions: list = field(default_factory=list)


def gateway_error(error):
    """Erro do banco repassado com a mensagem do driver."""
    return GatewayError(str(getattr(error, 'orig', None) or error))


# <--- AGREGAÇÃO --->

def load_user_pdi(pessoa_id):
    """Matrículas (mais recentes primeiro) com conteúdo, tags e tipo de mídia, e ações por data prevista."""
    try:
        enrollments = db.session.execute(
            db.select(PdiUserContent)
            .options(joinedload(PdiUserContent.content))
            .where(PdiUserContent.user_id == pessoa_id)
            .order_by(PdiUserContent.created_at.desc(), PdiUserContent.id.desc())
        ).scalars().all()

        actions = db.session.execute(
            db.select(PdiUserAction)
            .where(PdiUserAction.user_id == pessoa_id)
            .order_by(PdiUserAction.planned_due_date.asc(), PdiUserAction.id.asc())
        ).scalars().all()

        tags = tags_by_content({e.content_id for e in enrollments})
        media_types = media_types_by_id({e.content.media_type_id for e in enrollments if e.content})
    except SQLAlchemyError as e:
        raise gateway_error(e) from e

    contents = []
    for enrollment in enrollments:
        item = enrollment.to_dict()
        content = enrollment.content
        if content is not None:
            content_data = content.to_dict()
            content_data['tags'] = [t.to_dict() for t in tags.get(content.id, [])]
            media_type = media_types.get(content.media_type_id)
            content_data['media_type'] = media_type.to_dict() if media_type else None
            item['content'] = content_data
        else:
            item['content'] = None
        contents.append(item)

    return UserPdi(contents=contents, actions=[a.to_dict() for a in actions])


def partition_contents(contents):
    in_progress = [c for c in contents if c['status'] == PDI_STATUS_IN_PROGRESS]
    completed = [c for c in contents if c['status'] == PDI_STATUS_COMPLETED]
    return in_progress, completed


def partition_actions(actions):
    in_progress = [a for a in actions if a['status'] == PDI_STATUS_IN_PROGRESS]
    completed = [a for a in actions if a['status'] == PDI_STATUS_COMPLETED]
    return in_progress, completed


def load_library(pessoa_id, search_term=None, tag_ids=None, media_type_ids=None,
                 audience_ids=None, min_rating=None):
    try:
        contents = list_active_contents()
        enrolled_ids = db.session.execute(
            db.select(PdiUserContent.content_id).where(PdiUserContent.user_id == pessoa_id)
        ).scalars().all()
    except SQLAlchemyError as e:
        raise gateway_error(e) from e

    filtered = filter_contents(contents, search_term, tag_ids, media_type_ids, audience_ids, min_rating)
    return filtered, sorted(enrolled_ids)


# <--- CONTEÚDOS DO PLANO --->

def _get_owned_enrollment(pessoa_id, enrollment_id):
    enrollment = db.session.execute(
        db.select(PdiUserContent).filter_by(id=enrollment_id, user_id=pessoa_id)
    ).scalar_one_or_none()
    if not enrollment:
        raise NotFoundError('Conteúdo não encontrado no seu PDI.')
    return enrollment


def add_content_to_plan(pessoa_id, content_id, planned_due_date=None):
    due_date = parse_date(planned_due_date, 'Data prevista')
    content = db.session.get(PdiContent, content_id) if content_id else None
    if not content or not content.is_active:
        raise NotFoundError('Conteúdo não encontrado ou inativo.')

    enrollment = PdiUserContent(
        user_id=pessoa_id,
        content_id=content.id,
        status=PDI_STATUS_IN_PROGRESS,
        planned_due_date=due_date,
    )
    db.session.add(enrollment)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise ConflictError(ALREADY_IN_PLAN_MESSAGE) from e

    logger.info(f"Conteúdo {content.id} adicionado ao PDI da pessoa {pessoa_id}")
    return enrollment


def _parse_rating(value):
    if value is None or value == '' or isinstance(value, bool):
        raise ValidationError(RATING_REQUIRED_MESSAGE)
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError('A avaliação deve ser um número inteiro de estrelas')
    try:
        stars = int(value)
    except (TypeError, ValueError):
        raise ValidationError(RATING_REQUIRED_MESSAGE)
    if stars == 0:
        raise ValidationError(RATING_REQUIRED_MESSAGE)
    if stars < 1 or stars > 5:
        raise ValidationError('A avaliação deve ser de 1 a 5 estrelas')
    return stars


def refresh_content_rating(content_id):
    """Recalcula média e total de avaliações do conteúdo a partir das matrículas avaliadas."""
    average, total = db.session.execute(
        db.select(func.avg(PdiUserContent.rating_stars), func.count(PdiUserContent.id))
        .where(PdiUserContent.content_id == content_id, PdiUserContent.rating_stars.is_not(None))
    ).one()
    content = db.session.get(PdiContent, content_id)
    if content:
        content.avg_rating = round(float(average or 0), 2)
        content.rating_count = total or 0
    return content


def complete_enrollment(pessoa_id, enrollment_id, rating_stars, rating_comment=None):
    stars = _parse_rating(rating_stars)
    enrollment = _get_owned_enrollment(pessoa_id, enrollment_id)

    enrollment.status = PDI_STATUS_COMPLETED
    enrollment.completed_at = datetime.now(timezone.utc)
    enrollment.rating_stars = stars
    enrollment.rating_comment = clean_text(rating_comment)
    db.session.flush()

    refresh_content_rating(enrollment.content_id)
    db.session.commit()
    return enrollment


def reschedule_enrollment(pessoa_id, enrollment_id, planned_due_date):
    due_date = parse_date(planned_due_date, 'Data prevista')
    enrollment = _get_owned_enrollment(pessoa_id, enrollment_id)
    enrollment.planned_due_date = due_date
    db.session.commit()
    return enrollment


def remove_enrollment(pessoa_id, enrollment_id):
    enrollment = _get_owned_enrollment(pessoa_id, enrollment_id)
    content_id = enrollment.content_id
    was_rated = enrollment.rating_stars is not None
    db.session.delete(enrollment)
    db.session.flush()
    if was_rated:
        refresh_content_rating(content_id)
    db.session.commit()


# <--- AÇÕES --->

def _get_owned_action(pessoa_id, action_id):
    action = db.session.execute(
        db.select(PdiUserAction).filter_by(id=action_id, user_id=pessoa_id)
    ).scalar_one_or_none()
    if not action:
        raise NotFoundError('Ação não encontrada.')
    return action


def save_action(pessoa_id, description, planned_due_date, investment=None, action_id=None):
    """Cria ou atualiza uma ação. Salvar sempre devolve a ação para em andamento."""
    description = (description or '').strip()
    if len(description) < MIN_ACTION_DESCRIPTION_LENGTH:
        raise ValidationError('A descrição deve ter no mínimo 10 caracteres')
    due_date = parse_date(planned_due_date, 'Data prevista')
    if not due_date:
        raise ValidationError('Data prevista é obrigatória')
    investment_cents = to_cents(investment)

    if action_id:
        action = _get_owned_action(pessoa_id, action_id)
    else:
        action = PdiUserAction(user_id=pessoa_id)
        db.session.add(action)

    action.description = description
    action.planned_due_date = due_date
    action.investment_cents = investment_cents
    action.status = PDI_STATUS_IN_PROGRESS
    action.completed_at = None
    db.session.commit()
    return action


def toggle_action(pessoa_id, action_id):
    action = _get_owned_action(pessoa_id, action_id)
    if action.status == PDI_STATUS_COMPLETED:
        action.status = PDI_STATUS_IN_PROGRESS
        action.completed_at = None
    else:
        action.status = PDI_STATUS_COMPLETED
        action.completed_at = datetime.now(timezone.utc)
    db.session.commit()
    return action


def delete_action(pessoa_id, action_id):
    action = _get_owned_action(pessoa_id, action_id)
    db.session.delete(action)
    db.session.commit()
