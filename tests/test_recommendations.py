from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from ascender.errors import GatewayError
from ascender.models import db, Evaluation, PdiTag, PdiUserContent
from ascender.services.recommendations import Recommendation, load_recommendations, rank_contents_for_user


def _finalized_evaluation(seed, tag_ids, data_avaliacao=date(2024, 6, 1), status='finalizada'):
    evaluation = Evaluation(
        data_avaliacao=data_avaliacao,
        empresa_id=seed.empresa_id,
        colaborador_id=seed.pessoa_id,
        status=status,
    )
    evaluation.pdi_tags = db.session.execute(db.select(PdiTag).where(PdiTag.id.in_(tag_ids))).scalars().all()
    db.session.add(evaluation)
    db.session.commit()
    return evaluation


def test_aggregator_preserves_ranking_order(app, seed, make_content):
    c1 = make_content('Oratória', tag_ids=[seed.tag_comunicacao])
    c2 = make_content('Feedback', tag_ids=[seed.tag_lideranca, seed.tag_comunicacao])
    c3 = make_content('Tabelas dinâmicas', tag_ids=[seed.tag_excel])

    def ranker(pessoa_id):
        return [Recommendation(c3, 'r3'), Recommendation(c1, 'r1'), Recommendation(c2, 'r2')]

    with app.app_context():
        contents = load_recommendations(seed.pessoa_id, ranker=ranker)

    assert [c['id'] for c in contents] == [c3, c1, c2]
    assert [c['recommendation_reason'] for c in contents] == ['r3', 'r1', 'r2']
    assert [t['nome'] for t in contents[2]['tags']] == ['Comunicação', 'Liderança']
    assert contents[0]['media_type']['id'] == seed.media_type_id


def test_aggregator_keeps_first_occurrence_of_repeated_content(app, seed, make_content):
    c1 = make_content('Oratória', tag_ids=[seed.tag_comunicacao])
    c2 = make_content('Feedback', tag_ids=[seed.tag_lideranca])

    def ranker(pessoa_id):
        return [Recommendation(c1, 'primeiro'), Recommendation(c2, 'r2'), Recommendation(c1, 'repetido')]

    with app.app_context():
        contents = load_recommendations(seed.pessoa_id, ranker=ranker)

    assert [c['id'] for c in contents] == [c1, c2]
    assert [c['recommendation_reason'] for c in contents] == ['primeiro', 'r2']


def test_aggregator_drops_missing_and_inactive_contents(app, seed, make_content):
    active = make_content('Ativo')
    inactive = make_content('Inativo', is_active=False)

    def ranker(pessoa_id):
        return [Recommendation(inactive, 'x'), Recommendation(9999, 'y'), Recommendation(active, 'z')]

    with app.app_context():
        contents = load_recommendations(seed.pessoa_id, ranker=ranker)

    assert [c['id'] for c in contents] == [active]


def test_aggregator_empty_ranking(app, seed):
    with app.app_context():
        assert load_recommendations(seed.pessoa_id, ranker=lambda pessoa_id: []) == []


def test_aggregator_store_failure_is_reported_once(app, seed):
    def ranker(pessoa_id):
        raise OperationalError('SELECT', {}, Exception('connection lost'))

    with app.app_context():
        with pytest.raises(GatewayError) as excinfo:
            load_recommendations(seed.pessoa_id, ranker=ranker)
    assert 'connection lost' in excinfo.value.message


def test_ranking_uses_latest_finalized_evaluation_tags(app, seed, make_content):
    both = make_content('Liderança comunicativa', tag_ids=[seed.tag_lideranca, seed.tag_comunicacao],
                        avg_rating=3.0, age_days=10)
    well_rated = make_content('Gestão de equipes', tag_ids=[seed.tag_lideranca], avg_rating=4.5, age_days=5)
    newer = make_content('Primeira liderança', tag_ids=[seed.tag_lideranca], avg_rating=3.0, age_days=1)
    older = make_content('Liderança clássica', tag_ids=[seed.tag_lideranca], avg_rating=3.0, age_days=20)
    unrelated = make_content('Planilhas', tag_ids=[seed.tag_excel])
    inactive = make_content('Arquivado', tag_ids=[seed.tag_lideranca, seed.tag_comunicacao], is_active=False)
    enrolled = make_content('Já no plano', tag_ids=[seed.tag_lideranca, seed.tag_comunicacao])

    with app.app_context():
        _finalized_evaluation(seed, [seed.tag_excel], data_avaliacao=date(2023, 1, 10))
        _finalized_evaluation(seed, [seed.tag_lideranca, seed.tag_comunicacao])
        _finalized_evaluation(seed, [seed.tag_excel], data_avaliacao=date(2024, 12, 1), status='rascunho')
        db.session.add(PdiUserContent(user_id=seed.pessoa_id, content_id=enrolled))
        db.session.commit()

        ranking = rank_contents_for_user(seed.pessoa_id)

    ids = [r.content_id for r in ranking]
    assert ids == [both, well_rated, newer, older]
    assert unrelated not in ids and inactive not in ids and enrolled not in ids
    assert ranking[0].reason == 'Tags em comum: Comunicação, Liderança'
    assert ranking[1].reason == 'Tags em comum: Liderança'


def test_ranking_without_finalized_evaluation_is_empty(app, seed, make_content):
    make_content('Qualquer', tag_ids=[seed.tag_lideranca])
    with app.app_context():
        _finalized_evaluation(seed, [seed.tag_lideranca], status='concluida')
        assert rank_contents_for_user(seed.pessoa_id) == []


def test_ranking_respects_limit(app, seed, make_content):
    for i in range(4):
        make_content(f'Conteúdo {i}', tag_ids=[seed.tag_lideranca])
    with app.app_context():
        _finalized_evaluation(seed, [seed.tag_lideranca])
        assert len(rank_contents_for_user(seed.pessoa_id, limit=2)) == 2


def test_suggestions_endpoint(app, colab_client, seed, make_content):
    content_id = make_content('Comunicação assertiva', tag_ids=[seed.tag_comunicacao])
    with app.app_context():
        _finalized_evaluation(seed, [seed.tag_comunicacao])

    response = colab_client.get('/pdi/sugestoes')
    assert response.status_code == 200
    contents = response.get_json()['contents']
    assert [c['id'] for c in contents] == [content_id]
    assert contents[0]['recommendation_reason'] == 'Tags em comum: Comunicação'

    colab_client.post('/pdi/conteudos', json={'content_id': content_id})
    assert colab_client.get('/pdi/sugestoes').get_json()['contents'] == []


def test_suggestions_require_collaborator_profile(admin_client):
    response = admin_client.get('/pdi/sugestoes')
    assert response.status_code == 404
