"""
Catálogo do PDI: conteúdos, tags, tipos de mídia, públicos e capas.

As relações de muitos-para-muitos de um conteúdo são buscadas em lote
(uma consulta por relação para todos os ids) e depois associadas em memória.
"""
import logging
import os
import secrets
import time
from collections import defaultdict

from flask import current_app, url_for
from sqlalchemy import or_, func
from sqlalchemy.exc import IntegrityError
from werkzeug.utils import secure_filename

from ascender.errors import ValidationError, NotFoundError, ConflictError
from ascender.models import (
    db, PdiContent, PdiTag, PdiMediaType, PdiAudience, Competency,
    pdi_content_tags, pdi_content_competencies, pdi_content_audiences,
)
from ascender.utils.text import slugify, normalize_search
from ascender.utils.validation import parse_int, parse_id_list, parse_bool, to_cents, clean_text

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = 'Preencha todos os campos obrigatórios'
ALLOWED_COVER_MIMETYPES = ('image/jpeg', 'image/jpg')
COVER_FOLDER = 'pdi-covers'


# ==========================================
# RELAÇÕES EM LOTE
# ==========================================


def _group_related(table, column, model, content_ids):
    grouped = defaultdict(list)
    if not content_ids:
        return grouped

    rows = db.session.execute(
        db.select(table.c.content_id, model)
        .select_from(table)
        .join(model, model.id == table.c[column])
        .where(table.c.content_id.in_(list(content_ids)))
        .order_by(model.nome)
    ).all()
    for content_id, related in rows:
        grouped[content_id].append(related)
    return grouped


def tags_by_content(content_ids):
    return _group_related(pdi_content_tags, 'tag_id', PdiTag, content_ids)


def competencies_by_content(content_ids):
    return _group_related(pdi_content_competencies, 'competency_id', Competency, content_ids)


def audiences_by_content(content_ids):
    return _group_related(pdi_content_audiences, 'audience_id', PdiAudience, content_ids)


def media_types_by_id(media_type_ids):
    if not media_type_ids:
        return {}
    media_types = db.session.execute(
        db.select(PdiMediaType).where(PdiMediaType.id.in_(list(media_type_ids)))
    ).scalars().all()
    return {mt.id: mt for mt in media_types}


def serialize_contents(contents):
    """Conteúdos com tags, competências, públicos e tipo de mídia anexados."""
    content_ids = {c.id for c in contents}
    tags = tags_by_content(content_ids)
    competencies = competencies_by_content(content_ids)
    audiences = audiences_by_content(content_ids)
    media_types = media_types_by_id({c.media_type_id for c in contents if c.media_type_id})

    serialized = []
    for content in contents:
        item = content.to_dict()
        item['tags'] = [t.to_dict() for t in tags.get(content.id, [])]
        item['competencies'] = [c.to_dict() for c in competencies.get(content.id, [])]
        item['audiences'] = [a.to_dict() for a in audiences.get(content.id, [])]
        media_type = media_types.get(content.media_type_id)
        item['media_type'] = media_type.to_dict() if media_type else None
        serialized.append(item)
    return serialized


# ==========================================
# BIBLIOTECA
# ==========================================


def list_active_contents():
    contents = db.session.execute(
        db.select(PdiContent)
        .where(PdiContent.is_active.is_(True))
        .order_by(PdiContent.created_at.desc(), PdiContent.id.desc())
    ).scalars().all()
    return serialize_contents(contents)


def filter_contents(contents, search_term=None, tag_ids=None, media_type_ids=None,
                    audience_ids=None, min_rating=None):
    """Filtros da biblioteca aplicados sobre os conteúdos já serializados."""
    term = normalize_search(search_term)
    tag_ids = set(tag_ids or [])
    media_type_ids = set(media_type_ids or [])
    audience_ids = set(audience_ids or [])

    filtered = []
    for content in contents:
        if term:
            haystack = ' '.join(filter(None, [
                content.get('titulo'), content.get('descricao_curta'), content.get('descricao_longa'),
            ]))
            if term not in normalize_search(haystack):
                continue
        if tag_ids and not tag_ids.intersection(t['id'] for t in content.get('tags', [])):
            continue
        if media_type_ids and content.get('media_type_id') not in media_type_ids:
            continue
        if audience_ids and not audience_ids.intersection(a['id'] for a in content.get('audiences', [])):
            continue
        if min_rating and content.get('avg_rating', 0) < min_rating:
            continue
        filtered.append(content)
    return filtered


# ==========================================
# ADMINISTRAÇÃO DE CONTEÚDOS
# ==========================================


def list_all_contents(search_term=None):
    query = db.select(PdiContent).order_by(PdiContent.created_at.desc(), PdiContent.id.desc())
    if search_term:
        query = query.where(or_(
            PdiContent.titulo.ilike(f'%{search_term}%'),
            PdiContent.descricao_curta.ilike(f'%{search_term}%'),
        ))
    return serialize_contents(db.session.execute(query).scalars().all())


def get_content(content_id):
    content = db.session.get(PdiContent, content_id)
    if not content:
        raise NotFoundError('Conteúdo não encontrado.')
    return content


def get_content_detail(content_id):
    """Conteúdo com os ids selecionados de cada relação, para o formulário de edição."""
    content = get_content(content_id)
    item = serialize_contents([content])[0]
    item['tag_ids'] = [t['id'] for t in item['tags']]
    item['competency_ids'] = [c['id'] for c in item['competencies']]
    item['audience_ids'] = [a['id'] for a in item['audiences']]
    return item


def _ensure_existing(model, ids, label):
    if not ids:
        return []
    found = set(db.session.execute(db.select(model.id).where(model.id.in_(ids))).scalars().all())
    missing = [i for i in ids if i not in found]
    if missing:
        raise ValidationError(f"{label} inválido(s): {', '.join(str(m) for m in missing)}")
    return ids


def _replace_associations(content_id, table, column, ids):
    db.session.execute(table.delete().where(table.c.content_id == content_id))
    if ids:
        db.session.execute(table.insert(), [{'content_id': content_id, column: i} for i in ids])


def save_content(payload, content_id=None):
    """Cria ou atualiza um conteúdo. As relações são sempre substituídas por completo."""
    titulo = clean_text(payload.get('titulo'))
    descricao_curta = clean_text(payload.get('descricao_curta'))
    media_type_id = parse_int(payload.get('media_type_id'), 'Tipo de mídia')
    if not titulo or not descricao_curta or not media_type_id:
        raise ValidationError(REQUIRED_FIELDS_MESSAGE)

    if not db.session.get(PdiMediaType, media_type_id):
        raise ValidationError('Tipo de mídia inválido.')

    tag_ids = _ensure_existing(PdiTag, parse_id_list(payload.get('tag_ids')), 'Tag')
    competency_ids = _ensure_existing(Competency, parse_id_list(payload.get('competency_ids')), 'Competência')
    audience_ids = _ensure_existing(PdiAudience, parse_id_list(payload.get('audience_ids')), 'Público')

    duration = parse_int(payload.get('duration_minutes'), 'Duração')
    if duration is not None and duration < 0:
        raise ValidationError('Duração inválida')
    investment_cents = to_cents(payload.get('investment'))

    if content_id:
        content = get_content(content_id)
    else:
        content = PdiContent()
        db.session.add(content)

    content.titulo = titulo
    content.descricao_curta = descricao_curta
    content.descricao_longa = clean_text(payload.get('descricao_longa'))
    content.cover_image_url = clean_text(payload.get('cover_image_url'))
    content.media_type_id = media_type_id
    content.external_url = clean_text(payload.get('external_url'))
    content.duration_minutes = duration
    content.investment_cents = investment_cents
    content.is_active = parse_bool(payload.get('is_active'), default=True)
    db.session.flush()

    _replace_associations(content.id, pdi_content_tags, 'tag_id', tag_ids)
    _replace_associations(content.id, pdi_content_competencies, 'competency_id', competency_ids)
    _replace_associations(content.id, pdi_content_audiences, 'audience_id', audience_ids)
    db.session.commit()

    logger.info(f"Conteúdo PDI salvo: {content.titulo} (id={content.id})")
    return content


def delete_content(content_id):
    content = get_content(content_id)
    titulo = content.titulo
    db.session.delete(content)
    db.session.commit()
    logger.info(f"Conteúdo PDI removido: {titulo} (id={content_id})")
    return titulo


def toggle_content_active(content_id):
    content = get_content(content_id)
    content.is_active = not content.is_active
    db.session.commit()
    return content


# ==========================================
# TAGS, TIPOS DE MÍDIA E PÚBLICOS
# ==========================================


def list_tags(search_term=None):
    query = db.select(PdiTag).order_by(PdiTag.nome)
    if search_term:
        query = query.where(or_(
            PdiTag.nome.ilike(f'%{search_term}%'),
            PdiTag.slug.ilike(f'%{search_term}%'),
            PdiTag.descricao.ilike(f'%{search_term}%'),
        ))
    return db.session.execute(query).scalars().all()


def save_tag(payload, tag_id=None):
    nome = clean_text(payload.get('nome'))
    if not nome:
        raise ValidationError('Nome da tag é obrigatório')
    slug = slugify(clean_text(payload.get('slug')) or nome)
    if not slug:
        raise ValidationError('Não foi possível gerar o slug da tag')

    if tag_id:
        tag = db.session.get(PdiTag, tag_id)
        if not tag:
            raise NotFoundError('Tag não encontrada.')
    else:
        tag = PdiTag()
        db.session.add(tag)

    tag.nome = nome
    tag.slug = slug
    tag.descricao = clean_text(payload.get('descricao'))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f'Já existe uma tag com o slug "{slug}"')
    return tag


def delete_tag(tag_id):
    tag = db.session.get(PdiTag, tag_id)
    if not tag:
        raise NotFoundError('Tag não encontrada.')
    nome = tag.nome
    db.session.delete(tag)
    db.session.commit()
    return nome


def list_media_types(include_inactive=False):
    query = db.select(PdiMediaType).order_by(PdiMediaType.ordem, PdiMediaType.nome)
    if not include_inactive:
        query = query.where(PdiMediaType.ativo.is_(True))
    return db.session.execute(query).scalars().all()


def list_audiences(include_inactive=False):
    query = db.select(PdiAudience).order_by(PdiAudience.ordem, PdiAudience.nome)
    if not include_inactive:
        query = query.where(PdiAudience.ativo.is_(True))
    return db.session.execute(query).scalars().all()


def count_contents_by_tag():
    rows = db.session.execute(
        db.select(pdi_content_tags.c.tag_id, func.count(pdi_content_tags.c.content_id))
        .group_by(pdi_content_tags.c.tag_id)
    ).all()
    return {tag_id: total for tag_id, total in rows}


# ==========================================
# CAPAS
# ==========================================


def store_cover_image(file_storage):
    """Salva a capa (JPG, até MAX_COVER_SIZE) e retorna a URL pública."""
    if not file_storage or not file_storage.filename:
        raise ValidationError('Selecione uma imagem.')
    if (file_storage.mimetype or '').lower() not in ALLOWED_COVER_MIMETYPES:
        raise ValidationError('Apenas imagens JPG são permitidas')

    data = file_storage.read()
    if len(data) > current_app.config.get('MAX_COVER_SIZE', 3 * 1024 * 1024):
        raise ValidationError('A imagem deve ter no máximo 3MB')

    original = secure_filename(file_storage.filename)
    extension = original.rsplit('.', 1)[-1].lower() if '.' in original else 'jpg'
    filename = f"{secrets.token_hex(6)}-{int(time.time() * 1000)}.{extension}"

    folder = os.path.join(current_app.config['UPLOAD_FOLDER'], COVER_FOLDER)
    os.makedirs(folder, exist_ok=True)
    with open(os.path.join(folder, filename), 'wb') as fh:
        fh.write(data)

    logger.info(f"Capa enviada: {COVER_FOLDER}/{filename} ({len(data)} bytes)")
    return url_for('util.public_file', filename=f'{COVER_FOLDER}/{filename}', _external=True)
