import os
from io import BytesIO
from urllib.parse import urlparse

import pytest

from ascender.models import db, PdiContent, PdiTag, AdminActivityLog, pdi_content_tags


def _content_payload(seed, **overrides):
    payload = {
        'titulo': 'Comunicação não violenta',
        'descricao_curta': 'Introdução à CNV',
        'media_type_id': seed.media_type_id,
        'tag_ids': [seed.tag_comunicacao, seed.tag_lideranca],
        'investment': '99,90',
        'duration_minutes': 45,
    }
    payload.update(overrides)
    return payload


# <--- CONTEÚDOS --->

def test_collaborator_cannot_manage_catalogue(colab_client, seed):
    assert colab_client.get('/admin/pdi/conteudos').status_code == 403
    assert colab_client.post('/admin/pdi/conteudos', json=_content_payload(seed)).status_code == 403


@pytest.mark.parametrize('missing', ['titulo', 'descricao_curta', 'media_type_id'])
def test_content_requires_mandatory_fields(admin_client, seed, missing):
    response = admin_client.post('/admin/pdi/conteudos', json=_content_payload(seed, **{missing: ''}))
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Preencha todos os campos obrigatórios'


def test_create_content_with_relations(app, admin_client, seed):
    response = admin_client.post('/admin/pdi/conteudos', json=_content_payload(seed))
    assert response.status_code == 201
    content = response.get_json()['content']

    assert content['investment_cents'] == 9990
    assert content['duration_minutes'] == 45
    assert content['is_active'] is True
    assert sorted(content['tag_ids']) == sorted([seed.tag_comunicacao, seed.tag_lideranca])
    assert content['audience_ids'] == []

    with app.app_context():
        log = AdminActivityLog.query.filter_by(action_type='pdi_content_created').one()
        assert log.entity_id == content['id']


def test_update_replaces_relations(app, admin_client, seed):
    content_id = admin_client.post('/admin/pdi/conteudos', json=_content_payload(seed)).get_json()['content']['id']

    response = admin_client.put(f'/admin/pdi/conteudos/{content_id}',
                                json=_content_payload(seed, tag_ids=[seed.tag_excel], titulo='CNV na prática'))
    assert response.status_code == 200
    assert response.get_json()['content']['tag_ids'] == [seed.tag_excel]
    assert response.get_json()['content']['titulo'] == 'CNV na prática'

    with app.app_context():
        rows = db.session.execute(
            db.select(pdi_content_tags.c.tag_id).where(pdi_content_tags.c.content_id == content_id)
        ).scalars().all()
        assert rows == [seed.tag_excel]


def test_unknown_relation_ids_are_rejected(admin_client, seed):
    response = admin_client.post('/admin/pdi/conteudos', json=_content_payload(seed, tag_ids=[seed.tag_excel, 999]))
    assert response.status_code == 400
    assert '999' in response.get_json()['error']


def test_toggle_and_delete_content(app, admin_client, seed, make_content):
    content_id = make_content('Temporário')

    response = admin_client.post(f'/admin/pdi/conteudos/{content_id}/ativo')
    assert response.get_json()['is_active'] is False

    assert admin_client.delete(f'/admin/pdi/conteudos/{content_id}').status_code == 200
    assert admin_client.get(f'/admin/pdi/conteudos/{content_id}').status_code == 404
    with app.app_context():
        assert db.session.get(PdiContent, content_id) is None


def test_admin_listing_includes_inactive_contents(admin_client, make_content):
    make_content('Visível')
    make_content('Desativado', is_active=False)
    titles = [c['titulo'] for c in admin_client.get('/admin/pdi/conteudos').get_json()['contents']]
    assert sorted(titles) == ['Desativado', 'Visível']


# <--- TAGS --->

def test_tag_slug_is_generated_from_name(admin_client):
    response = admin_client.post('/admin/pdi/tags', json={'nome': 'Gestão de Conflitos'})
    assert response.status_code == 201
    assert response.get_json()['tag']['slug'] == 'gestao-de-conflitos'

    preview = admin_client.get('/admin/pdi/tags/slug', query_string={'nome': 'Inteligência Emocional'}).get_json()
    assert preview['slug'] == 'inteligencia-emocional'


def test_duplicate_tag_slug_is_a_conflict(admin_client):
    response = admin_client.post('/admin/pdi/tags', json={'nome': 'liderança'})
    assert response.status_code == 409


def test_tag_listing_counts_contents_and_searches_description(app, admin_client, seed, make_content):
    make_content('A', tag_ids=[seed.tag_lideranca])
    make_content('B', tag_ids=[seed.tag_lideranca, seed.tag_excel])
    with app.app_context():
        tag = db.session.get(PdiTag, seed.tag_excel)
        tag.descricao = 'Planilhas e fórmulas'
        db.session.commit()

    tags = {t['slug']: t for t in admin_client.get('/admin/pdi/tags').get_json()['tags']}
    assert tags['lideranca']['total_conteudos'] == 2
    assert tags['excel']['total_conteudos'] == 1
    assert tags['comunicacao']['total_conteudos'] == 0

    found = admin_client.get('/admin/pdi/tags?search=Planilhas').get_json()['tags']
    assert [t['slug'] for t in found] == ['excel']


def test_delete_tag_removes_associations(app, admin_client, seed, make_content):
    content_id = make_content('Com tag', tag_ids=[seed.tag_excel])
    assert admin_client.delete(f'/admin/pdi/tags/{seed.tag_excel}').status_code == 200

    with app.app_context():
        assert db.session.get(PdiTag, seed.tag_excel) is None
        assert db.session.get(PdiContent, content_id) is not None
        log = AdminActivityLog.query.filter_by(action_type='pdi_tag_deleted').one()
        assert log.entity_name == 'Excel'


def test_media_types_and_audiences(admin_client):
    media_types = admin_client.get('/admin/pdi/tipos-midia').get_json()['media_types']
    assert [m['nome'] for m in media_types][:2] == ['Vídeo', 'Artigo']
    audiences = admin_client.get('/admin/pdi/publicos').get_json()['audiences']
    assert len(audiences) == 3


# <--- CAPAS --->

def _upload(client, data, filename, mimetype):
    return client.post('/admin/pdi/capas', data={'file': (BytesIO(data), filename, mimetype)},
                       content_type='multipart/form-data')


def test_cover_must_be_jpeg(admin_client):
    response = _upload(admin_client, b'\x89PNG', 'capa.png', 'image/png')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Apenas imagens JPG são permitidas'


def test_cover_size_limit(app, admin_client):
    app.config['MAX_COVER_SIZE'] = 10
    response = _upload(admin_client, b'\xff\xd8' + b'0' * 20, 'capa.jpg', 'image/jpeg')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'A imagem deve ter no máximo 3MB'


def test_cover_upload_is_stored_and_served(app, admin_client, client):
    data = b'\xff\xd8\xff\xe0' + b'jpeg' * 16
    response = _upload(admin_client, data, 'minha capa.jpg', 'image/jpeg')
    assert response.status_code == 201

    path = urlparse(response.get_json()['url']).path
    assert path.startswith('/uploads/pdi-covers/')
    assert path.endswith('.jpg')

    stored = os.path.join(app.config['UPLOAD_FOLDER'], path[len('/uploads/'):])
    assert os.path.exists(stored)

    served = client.get(path)
    assert served.status_code == 200
    assert served.data == data
    served.close()
