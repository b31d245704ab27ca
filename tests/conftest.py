from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from werkzeug.security import generate_password_hash

from ascender import create_app, seed_catalog
from ascender.models import (
    db, User, Empresa, Pessoa, Administrador, PdiTag, PdiMediaType, PdiContent,
    pdi_content_tags,
)

ADMIN_EMAIL = 'admin@ascender.com.br'
ADMIN_PASSWORD = 'admin123'
COLAB_EMAIL = 'ana@ascender.com.br'
COLAB_PASSWORD = 'colab123'
OTHER_EMAIL = 'bruno@ascender.com.br'
OTHER_PASSWORD = 'bruno123'


@pytest.fixture
def app(tmp_path):
    app = create_app('testing')
    app.config['UPLOAD_FOLDER'] = str(tmp_path / 'uploads')

    with app.app_context():
        db.create_all()
        seed_catalog()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


def _create_user(email, password, metadata=None):
    user = User(email=email, password=generate_password_hash(password), user_metadata=metadata or {})
    db.session.add(user)
    db.session.flush()
    return user


@pytest.fixture
def seed(app):
    """Empresa, um administrador (também psicóloga), dois colaboradores e três tags."""
    with app.app_context():
        empresa = Empresa(nome='Ascender Consultoria', cidade='Curitiba')
        db.session.add(empresa)
        db.session.flush()

        admin_user = _create_user(ADMIN_EMAIL, ADMIN_PASSWORD, {'nome': 'Marina Admin'})
        admin = Administrador(nome='Marina Admin', email=ADMIN_EMAIL, auth_user_id=admin_user.id,
                              e_administrador=True, e_psicologa=True)

        colab_user = _create_user(COLAB_EMAIL, COLAB_PASSWORD)
        colab = Pessoa(nome='Ana Souza', email=COLAB_EMAIL, empresa_id=empresa.id, auth_user_id=colab_user.id)

        other_user = _create_user(OTHER_EMAIL, OTHER_PASSWORD)
        other = Pessoa(nome='Bruno Lima', email=OTHER_EMAIL, empresa_id=empresa.id, auth_user_id=other_user.id)

        lideranca = PdiTag(nome='Liderança', slug='lideranca')
        comunicacao = PdiTag(nome='Comunicação', slug='comunicacao')
        excel = PdiTag(nome='Excel', slug='excel')

        db.session.add_all([admin, colab, other, lideranca, comunicacao, excel])
        db.session.commit()

        media_type = PdiMediaType.query.order_by(PdiMediaType.ordem).first()

        return SimpleNamespace(
            empresa_id=empresa.id,
            admin_user_id=admin_user.id,
            admin_id=admin.id,
            colab_user_id=colab_user.id,
            pessoa_id=colab.id,
            other_pessoa_id=other.id,
            tag_lideranca=lideranca.id,
            tag_comunicacao=comunicacao.id,
            tag_excel=excel.id,
            media_type_id=media_type.id,
        )


@pytest.fixture
def make_content(app, seed):
    """Cria um conteúdo direto no banco e retorna o id."""

    def _make(titulo, tag_ids=(), avg_rating=0, is_active=True, age_days=0, **fields):
        with app.app_context():
            content = PdiContent(
                titulo=titulo,
                descricao_curta=fields.pop('descricao_curta', f'Resumo de {titulo}'),
                media_type_id=fields.pop('media_type_id', seed.media_type_id),
                is_active=is_active,
                avg_rating=avg_rating,
                created_at=datetime.now(timezone.utc) - timedelta(days=age_days),
                **fields,
            )
            db.session.add(content)
            db.session.flush()
            for tag_id in tag_ids:
                db.session.execute(pdi_content_tags.insert().values(content_id=content.id, tag_id=tag_id))
            db.session.commit()
            return content.id

    return _make


def _login(app, email, password):
    client = app.test_client()
    response = client.post('/login', json={'email': email, 'password': password})
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(app, seed):
    return _login(app, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def colab_client(app, seed):
    return _login(app, COLAB_EMAIL, COLAB_PASSWORD)


@pytest.fixture
def other_client(app, seed):
    return _login(app, OTHER_EMAIL, OTHER_PASSWORD)


@pytest.fixture
def today():
    return date.today()
