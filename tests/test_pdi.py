import pytest
from sqlalchemy import event

from ascender.errors import ValidationError, NotFoundError
from ascender.models import db, PdiContent, PdiUserContent, PdiUserAction
from ascender.services import pdi as pdi_service


def _add(client, content_id, **extra):
    return client.post('/pdi/conteudos', json={'content_id': content_id, **extra})


# <--- CONTEÚDOS --->

def test_requires_login(client, seed):
    response = client.get('/pdi/meu-pdi')
    assert response.status_code == 401


def test_adding_same_content_twice_is_a_conflict(colab_client, make_content):
    content_id = make_content('Gestão do tempo')

    first = _add(colab_client, content_id, planned_due_date='2024-09-30')
    assert first.status_code == 201
    assert first.get_json()['enrollment']['status'] == 'em_andamento'
    assert first.get_json()['enrollment']['planned_due_date'] == '2024-09-30'

    second = _add(colab_client, content_id)
    assert second.status_code == 409
    assert second.get_json() == {'success': False, 'error': 'Este conteúdo já está no seu PDI'}


def test_inactive_content_cannot_be_added(colab_client, make_content):
    content_id = make_content('Antigo', is_active=False)
    assert _add(colab_client, content_id).status_code == 404
    assert _add(colab_client, 12345).status_code == 404


def test_complete_without_rating_is_rejected_before_touching_the_store(app, seed):
    statements = []

    with app.app_context():
        engine = db.engine

        def count(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        event.listen(engine, 'before_cursor_execute', count)
        try:
            for rating in (None, '', 0, '0'):
                with pytest.raises(ValidationError) as excinfo:
                    pdi_service.complete_enrollment(seed.pessoa_id, 999, rating)
                assert excinfo.value.message == 'Por favor, selecione uma avaliação em estrelas'
        finally:
            event.remove(engine, 'before_cursor_execute', count)

    assert statements == []


def test_complete_enrollment_updates_content_rating(app, colab_client, other_client, make_content):
    content_id = make_content('Negociação')
    own = _add(colab_client, content_id).get_json()['enrollment']['id']
    other = _add(other_client, content_id).get_json()['enrollment']['id']

    response = colab_client.post(f'/pdi/conteudos/{own}/concluir', json={'rating_stars': 0})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Por favor, selecione uma avaliação em estrelas'

    response = colab_client.post(f'/pdi/conteudos/{own}/concluir',
                                 json={'rating_stars': 5, 'rating_comment': '  Excelente  '})
    assert response.status_code == 200
    enrollment = response.get_json()['enrollment']
    assert enrollment['status'] == 'concluido'
    assert enrollment['rating_comment'] == 'Excelente'
    assert enrollment['completed_at'] is not None

    other_client.post(f'/pdi/conteudos/{other}/concluir', json={'rating_stars': 4, 'rating_comment': '   '})

    with app.app_context():
        content = db.session.get(PdiContent, content_id)
        assert float(content.avg_rating) == 4.5
        assert content.rating_count == 2
        assert db.session.get(PdiUserContent, other).rating_comment is None


def test_rating_above_five_is_rejected(colab_client, make_content):
    enrollment_id = _add(colab_client, make_content('Excel')).get_json()['enrollment']['id']
    response = colab_client.post(f'/pdi/conteudos/{enrollment_id}/concluir', json={'rating_stars': 6})
    assert response.status_code == 400


def test_fractional_rating_is_rejected_not_truncated(app, colab_client, make_content):
    enrollment_id = _add(colab_client, make_content('Excel')).get_json()['enrollment']['id']
    response = colab_client.post(f'/pdi/conteudos/{enrollment_id}/concluir', json={'rating_stars': 4.5})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'A avaliação deve ser um número inteiro de estrelas'

    with app.app_context():
        assert db.session.get(PdiUserContent, enrollment_id).rating_stars is None


def test_enrollments_belong_to_their_owner(colab_client, other_client, make_content):
    enrollment_id = _add(colab_client, make_content('Privado')).get_json()['enrollment']['id']

    assert other_client.delete(f'/pdi/conteudos/{enrollment_id}').status_code == 404
    assert other_client.put(f'/pdi/conteudos/{enrollment_id}/data',
                            json={'planned_due_date': '2024-10-01'}).status_code == 404

    response = colab_client.put(f'/pdi/conteudos/{enrollment_id}/data', json={'planned_due_date': '2024-10-01'})
    assert response.get_json()['enrollment']['planned_due_date'] == '2024-10-01'
    response = colab_client.put(f'/pdi/conteudos/{enrollment_id}/data', json={'planned_due_date': None})
    assert response.get_json()['enrollment']['planned_due_date'] is None

    assert colab_client.delete(f'/pdi/conteudos/{enrollment_id}').status_code == 200


def test_my_pdi_groups_contents_and_attaches_relations(colab_client, seed, make_content):
    first = make_content('Primeiro', tag_ids=[seed.tag_excel, seed.tag_comunicacao])
    second = make_content('Segundo')
    first_enrollment = _add(colab_client, first).get_json()['enrollment']['id']
    _add(colab_client, second)
    colab_client.post(f'/pdi/conteudos/{first_enrollment}/concluir', json={'rating_stars': 3})

    data = colab_client.get('/pdi/meu-pdi').get_json()
    assert [c['content_id'] for c in data['em_andamento']] == [second]
    assert [c['content_id'] for c in data['concluidos']] == [first]

    concluido = data['concluidos'][0]['content']
    assert concluido['titulo'] == 'Primeiro'
    assert [t['slug'] for t in concluido['tags']] == ['comunicacao', 'excel']
    assert concluido['media_type']['id'] == seed.media_type_id


def test_user_pdi_lists_newest_enrollments_first(app, seed, make_content):
    ids = [make_content(f'Conteúdo {i}') for i in range(3)]
    with app.app_context():
        for content_id in ids:
            pdi_service.add_content_to_plan(seed.pessoa_id, content_id)
        plano = pdi_service.load_user_pdi(seed.pessoa_id)

    assert [c['content_id'] for c in plano.contents] == list(reversed(ids))
    assert plano.actions == []


# <--- AÇÕES --->

def test_action_description_minimum_length_boundary(colab_client):
    response = colab_client.post('/pdi/acoes', json={'description': 'a' * 9, 'planned_due_date': '2024-12-01'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'A descrição deve ter no mínimo 10 caracteres'

    response = colab_client.post('/pdi/acoes', json={'description': 'a' * 10, 'planned_due_date': '2024-12-01'})
    assert response.status_code == 201


def test_action_description_is_trimmed_before_checking(colab_client):
    response = colab_client.post('/pdi/acoes', json={'description': '   curta    ', 'planned_due_date': '2024-12-01'})
    assert response.status_code == 400


def test_action_requires_planned_date(colab_client):
    response = colab_client.post('/pdi/acoes', json={'description': 'Ler um livro de gestão'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Data prevista é obrigatória'


def test_action_lifecycle(app, colab_client, seed):
    response = colab_client.post('/pdi/acoes', json={
        'description': '  Participar de mentoria  ',
        'planned_due_date': '2024-11-15',
        'investment': '250,75',
    })
    acao = response.get_json()['acao']
    assert acao['description'] == 'Participar de mentoria'
    assert acao['investment_cents'] == 25075
    assert acao['status'] == 'em_andamento'

    toggled = colab_client.post(f"/pdi/acoes/{acao['id']}/alternar").get_json()['acao']
    assert toggled['status'] == 'concluido'
    assert toggled['completed_at'] is not None

    edited = colab_client.put(f"/pdi/acoes/{acao['id']}", json={
        'description': 'Participar de mentoria semanal',
        'planned_due_date': '2024-12-15',
    }).get_json()['acao']
    assert edited['status'] == 'em_andamento'
    assert edited['completed_at'] is None
    assert edited['investment_cents'] is None

    assert colab_client.delete(f"/pdi/acoes/{acao['id']}").status_code == 200
    with app.app_context():
        assert PdiUserAction.query.count() == 0


def test_actions_sorted_by_planned_date(colab_client):
    for descricao, data in [('Ação de dezembro', '2024-12-01'), ('Ação de agosto', '2024-08-01')]:
        colab_client.post('/pdi/acoes', json={'description': descricao, 'planned_due_date': data})

    data = colab_client.get('/pdi/acoes').get_json()
    assert [a['planned_due_date'] for a in data['acoes']] == ['2024-08-01', '2024-12-01']
    assert len(data['em_andamento']) == 2
    assert data['concluidas'] == []


def test_actions_belong_to_their_owner(app, seed, other_client):
    with app.app_context():
        action = pdi_service.save_action(seed.pessoa_id, 'Fazer curso de inglês', '2024-10-10')
        action_id = action.id
        with pytest.raises(NotFoundError):
            pdi_service.toggle_action(seed.other_pessoa_id, action_id)

    assert other_client.delete(f'/pdi/acoes/{action_id}').status_code == 404


# <--- BIBLIOTECA --->

def test_library_filters(app, colab_client, seed, make_content):
    video = make_content('Liderança situacional', tag_ids=[seed.tag_lideranca], avg_rating=4.8,
                         descricao_longa='Modelos de gestão de equipes')
    artigo = make_content('Fórmulas avançadas', tag_ids=[seed.tag_excel], avg_rating=3.5)
    make_content('Oculto', tag_ids=[seed.tag_lideranca], is_active=False)
    _add(colab_client, artigo)

    data = colab_client.get('/pdi/biblioteca').get_json()
    assert {c['id'] for c in data['contents']} == {video, artigo}
    assert data['user_content_ids'] == [artigo]

    by_search = colab_client.get('/pdi/biblioteca?search=GESTAO').get_json()['contents']
    assert [c['id'] for c in by_search] == [video]

    by_tag = colab_client.get(f'/pdi/biblioteca?tags={seed.tag_excel},{seed.tag_comunicacao}').get_json()['contents']
    assert [c['id'] for c in by_tag] == [artigo]

    by_rating = colab_client.get('/pdi/biblioteca?min_rating=4').get_json()['contents']
    assert [c['id'] for c in by_rating] == [video]

    by_media = colab_client.get(f'/pdi/biblioteca?media_types={seed.media_type_id + 100}').get_json()['contents']
    assert by_media == []


def test_library_filter_options(colab_client):
    data = colab_client.get('/pdi/filtros').get_json()
    assert [t['slug'] for t in data['tags']] == ['comunicacao', 'excel', 'lideranca']
    assert len(data['media_types']) == 5
    assert len(data['audiences']) == 3
