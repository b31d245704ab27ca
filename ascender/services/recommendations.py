"""
Sugestões de conteúdo para o PDI.

O ranqueamento usa as tags da avaliação finalizada mais recente da pessoa;
a agregação busca os conteúdos ranqueados e devolve na ordem do ranking.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ascender.models import db, Evaluation, PdiContent, PdiUserContent, pdi_content_tags
from ascender.services.catalog import serialize_contents
from ascender.services.pdi import gateway_error

logger = logging.getLogger(__name__)

FINALIZED_STATUS = 'finalizada'


@dataclass(frozen=True)
class Recommendation:
    content_id: int
    reason: str


def latest_finalized_evaluation(pessoa_id):
    return db.session.execute(
        db.select(Evaluation)
        .where(
            Evaluation.colaborador_id == pessoa_id,
            Evaluation.status == FINALIZED_STATUS,
            Evaluation.pdi_tags.any(),
        )
        .order_by(Evaluation.data_avaliacao.desc(), Evaluation.id.desc())
        .limit(1)
    ).scalar_one_or_none()


def rank_contents_for_user(pessoa_id, limit=None):
    """
    Conteúdos ativos que compartilham tags com a última avaliação finalizada,
    fora os que já estão no plano. Ordem: tags em comum, nota média, mais novos.
    """
    if limit is None:
        limit = current_app.config.get('RECOMMENDATION_LIMIT', 20)

    evaluation = latest_finalized_evaluation(pessoa_id)
    if evaluation is None:
        return []

    tag_names = {tag.id: tag.nome for tag in evaluation.pdi_tags}
    already_in_plan = db.select(PdiUserContent.content_id).where(PdiUserContent.user_id == pessoa_id)
    shared_tags = func.count(pdi_content_tags.c.tag_id).label('shared_tags')

    ranked = db.session.execute(
        db.select(PdiContent.id, shared_tags)
        .join(pdi_content_tags, pdi_content_tags.c.content_id == PdiContent.id)
        .where(
            PdiContent.is_active.is_(True),
            pdi_content_tags.c.tag_id.in_(list(tag_names)),
            PdiContent.id.not_in(already_in_plan),
        )
        .group_by(PdiContent.id, PdiContent.avg_rating, PdiContent.created_at)
        .order_by(shared_tags.desc(), PdiContent.avg_rating.desc(),
                  PdiContent.created_at.desc(), PdiContent.id.asc())
        .limit(limit)
    ).all()
    if not ranked:
        return []

    content_ids = [row.id for row in ranked]
    matched = defaultdict(list)
    rows = db.session.execute(
        db.select(pdi_content_tags.c.content_id, pdi_content_tags.c.tag_id)
        .where(pdi_content_tags.c.content_id.in_(content_ids),
               pdi_content_tags.c.tag_id.in_(list(tag_names)))
    ).all()
    for content_id, tag_id in rows:
        matched[content_id].append(tag_names[tag_id])

    return [
        Recommendation(content_id, 'Tags em comum: ' + ', '.join(sorted(matched[content_id])))
        for content_id in content_ids
    ]


def load_recommendations(pessoa_id, ranker=None):
    """Conteúdos sugeridos, com relações anexadas, na ordem devolvida pelo ranking."""
    ranker = ranker or rank_contents_for_user
    try:
        recommendations = ranker(pessoa_id)
        if not recommendations:
            return []

        content_ids = {r.content_id for r in recommendations}
        contents = db.session.execute(
            db.select(PdiContent)
            .where(PdiContent.id.in_(list(content_ids)), PdiContent.is_active.is_(True))
        ).scalars().all()
        serialized = serialize_contents(contents)
    except SQLAlchemyError as e:
        raise gateway_error(e) from e

    by_id = {item['id']: item for item in serialized}
    ordered = []
    seen = set()
    for recommendation in recommendations:
        # Id repetido mantém a primeira posição e o primeiro motivo
        if recommendation.content_id in seen:
            continue
        seen.add(recommendation.content_id)
        item = by_id.get(recommendation.content_id)
        if item is None:
            logger.debug(f"Sugestão ignorada: conteúdo {recommendation.content_id} inexistente ou inativo")
            continue
        item['recommendation_reason'] = recommendation.reason
        ordered.append(item)
    return ordered
