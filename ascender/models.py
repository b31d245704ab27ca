from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from datetime import datetime, timezone
from sqlalchemy.ext.mutable import MutableList, MutableDict
from sqlalchemy import JSON

db = SQLAlchemy()

LANGUAGES = ('pt-BR', 'en-US', 'es-ES')
DEFAULT_LANGUAGE = 'pt-BR'

PDI_STATUS_IN_PROGRESS = 'em_andamento'
PDI_STATUS_COMPLETED = 'concluido'

EVALUATION_STATUS_LABELS = {
    'rascunho': 'Rascunho',
    'pendente': 'Pendente',
    'em_andamento': 'Em Andamento',
    'concluida': 'Concluída',
    'finalizada': 'Finalizada',
}

TEMPLATE_STATUS_DRAFT = 'rascunho'
TEMPLATE_STATUS_PUBLISHED = 'publicado'


def _iso(value):
    return value.isoformat() if value else None


pdi_content_tags = db.Table('pdi_content_tags',
    db.Column('content_id', db.Integer, db.ForeignKey('pdi_contents.id', ondelete='CASCADE'), primary_key=True),
    db.Column('tag_id', db.Integer, db.ForeignKey('pdi_tags.id', ondelete='CASCADE'), primary_key=True)
)

pdi_content_competencies = db.Table('pdi_content_competencies',
    db.Column('content_id', db.Integer, db.ForeignKey('pdi_contents.id', ondelete='CASCADE'), primary_key=True),
    db.Column('competency_id', db.Integer, db.ForeignKey('competencias.id', ondelete='CASCADE'), primary_key=True)
)

pdi_content_audiences = db.Table('pdi_content_audiences',
    db.Column('content_id', db.Integer, db.ForeignKey('pdi_contents.id', ondelete='CASCADE'), primary_key=True),
    db.Column('audience_id', db.Integer, db.ForeignKey('pdi_audiences.id', ondelete='CASCADE'), primary_key=True)
)

avaliacoes_pdi_tags = db.Table('avaliacoes_pdi_tags',
    db.Column('avaliacao_id', db.Integer, db.ForeignKey('avaliacoes.id', ondelete='CASCADE'), primary_key=True),
    db.Column('tag_id', db.Integer, db.ForeignKey('pdi_tags.id', ondelete='CASCADE'), primary_key=True),
    db.Column('created_at', db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
)


# <--- IDENTIDADE E PESSOAS --->

class User(db.Model, UserMixin):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)
    user_metadata = db.Column(MutableDict.as_mutable(JSON), nullable=True, default=dict)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    last_login = db.Column(db.DateTime, nullable=True)

    pessoa = db.relationship('Pessoa', back_populates='user', uselist=False)
    administrador = db.relationship('Administrador', back_populates='user', uselist=False,
                                    cascade='all, delete-orphan')

    @property
    def is_admin(self):
        admin = self.administrador
        return bool(admin and admin.e_administrador and admin.ativo)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'user_metadata': dict(self.user_metadata or {}),
            'created_at': _iso(self.created_at),
            'last_login': _iso(self.last_login),
        }

    def __repr__(self):
        return f'<User {self.email}>'


class Empresa(db.Model):
    __tablename__ = 'empresas'
    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(200), nullable=False)
    cidade = db.Column(db.String(100), nullable=True)
    ativo = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    pessoas = db.relationship('Pessoa', back_populates='empresa', lazy='dynamic')

    def to_dict(self):
        return {'id': self.id, 'nome': self.nome, 'cidade': self.cidade, 'ativo': self.ativo}

    def __repr__(self):
        return f'<Empresa {self.nome}>'


class Pessoa(db.Model):
    """Perfil do colaborador. O PDI pertence à pessoa, não ao login."""
    __tablename__ = 'pessoas'
    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    idioma = db.Column(db.String(10), default=DEFAULT_LANGUAGE, nullable=False)
    genero = db.Column(db.String(20), nullable=True)
    funcao = db.Column(db.String(100), nullable=True)
    tipo_acesso = db.Column(db.String(20), default='colaborador', nullable=False)
    empresa_id = db.Column(db.Integer, db.ForeignKey('empresas.id'), nullable=True)
    auth_user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    empresa = db.relationship('Empresa', back_populates='pessoas')
    user = db.relationship('User', back_populates='pessoa')
    pdi_contents = db.relationship('PdiUserContent', back_populates='pessoa', cascade='all, delete-orphan')
    pdi_actions = db.relationship('PdiUserAction', back_populates='pessoa', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'nome': self.nome,
            'email': self.email,
            'idioma': self.idioma,
            'funcao': self.funcao,
            'tipo_acesso': self.tipo_acesso,
            'empresa_id': self.empresa_id,
        }

    def __repr__(self):
        return f'<Pessoa {self.nome}>'


class Administrador(db.Model):
    __tablename__ = 'administradores'
    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    auth_user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)
    e_administrador = db.Column(db.Boolean, default=False, nullable=False)
    e_psicologa = db.Column(db.Boolean, default=False, nullable=False)
    ativo = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    user = db.relationship('User', back_populates='administrador')

    def to_dict(self):
        return {
            'id': self.id,
            'nome': self.nome,
            'email': self.email,
            'e_administrador': self.e_administrador,
            'e_psicologa': self.e_psicologa,
            'ativo': self.ativo,
        }

    def __repr__(self):
        return f'<Administrador {self.email}>'


# <--- COMPETÊNCIAS E MODELOS --->

class Competency(db.Model):
    __tablename__ = 'competencias'
    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(200), nullable=False)
    fixo = db.Column(db.Boolean, default=False, nullable=False)
    status = db.Column(db.String(20), default='ativo', nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    criteria = db.relationship('Criterion', back_populates='competency', order_by='Criterion.ordem',
                               cascade='all, delete-orphan')

    def to_dict(self, include_criteria=False):
        data = {'id': self.id, 'nome': self.nome, 'fixo': self.fixo, 'status': self.status}
        if include_criteria:
            data['criterios'] = [c.to_dict() for c in self.criteria]
        return data

    def __repr__(self):
        return f'<Competency {self.nome}>'


class Criterion(db.Model):
    __tablename__ = 'criterios'
    id = db.Column(db.Integer, primary_key=True)
    competencia_id = db.Column(db.Integer, db.ForeignKey('competencias.id', ondelete='CASCADE'), nullable=False)
    visibilidade = db.Column(db.String(20), default='todos', nullable=False)
    ordem = db.Column(db.Integer, default=0, nullable=False)

    competency = db.relationship('Competency', back_populates='criteria')
    textos = db.relationship('CriterionText', back_populates='criterion', cascade='all, delete-orphan')

    def default_text(self):
        for texto in self.textos:
            if texto.idioma == DEFAULT_LANGUAGE:
                return texto
        return next((t for t in self.textos if t.idioma_padrao), None)

    def to_dict(self):
        return {
            'id': self.id,
            'visibilidade': self.visibilidade,
            'ordem': self.ordem,
            'textos': {t.idioma: {'nome': t.nome, 'descricao': t.descricao} for t in self.textos},
        }


class CriterionText(db.Model):
    __tablename__ = 'criterios_textos'
    id = db.Column(db.Integer, primary_key=True)
    criterio_id = db.Column(db.Integer, db.ForeignKey('criterios.id', ondelete='CASCADE'), nullable=False)
    idioma = db.Column(db.String(10), nullable=False)
    nome = db.Column(db.String(200), nullable=False)
    descricao = db.Column(db.Text, nullable=True)
    idioma_padrao = db.Column(db.Boolean, default=False, nullable=False)

    criterion = db.relationship('Criterion', back_populates='textos')

    __table_args__ = (db.UniqueConstraint('criterio_id', 'idioma', name='_criterio_idioma_uc'),)


class EvaluationTemplate(db.Model):
    __tablename__ = 'modelos_avaliacao'
    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(200), nullable=False)
    status = db.Column(db.String(20), default=TEMPLATE_STATUS_DRAFT, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    competency_links = db.relationship('TemplateCompetency', back_populates='template',
                                       order_by='TemplateCompetency.ordem', cascade='all, delete-orphan')
    questions = db.relationship('CustomQuestion', back_populates='template',
                                order_by='CustomQuestion.ordem', cascade='all, delete-orphan')

    def to_dict(self, include_items=False):
        data = {
            'id': self.id,
            'nome': self.nome,
            'status': self.status,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }
        if include_items:
            data['competencias'] = [link.competencia_id for link in self.competency_links]
            data['perguntas'] = [q.to_dict() for q in self.questions]
        return data

    def __repr__(self):
        return f'<EvaluationTemplate {self.nome}>'


class TemplateCompetency(db.Model):
    __tablename__ = 'modelos_competencias'
    id = db.Column(db.Integer, primary_key=True)
    modelo_id = db.Column(db.Integer, db.ForeignKey('modelos_avaliacao.id', ondelete='CASCADE'), nullable=False)
    competencia_id = db.Column(db.Integer, db.ForeignKey('competencias.id'), nullable=False)
    ordem = db.Column(db.Integer, default=0, nullable=False)

    template = db.relationship('EvaluationTemplate', back_populates='competency_links')
    competency = db.relationship('Competency')


class CustomQuestion(db.Model):
    __tablename__ = 'perguntas_personalizadas'
    id = db.Column(db.Integer, primary_key=True)
    modelo_id = db.Column(db.Integer, db.ForeignKey('modelos_avaliacao.id', ondelete='CASCADE'), nullable=False)
    visibilidade = db.Column(db.String(20), default='todos', nullable=False)
    obrigatorio = db.Column(db.Boolean, default=False, nullable=False)
    ordem = db.Column(db.Integer, default=0, nullable=False)
    tipo_resposta = db.Column(db.String(30), default='texto', nullable=False)
    opcoes = db.Column(MutableList.as_mutable(JSON), nullable=True, default=list)

    template = db.relationship('EvaluationTemplate', back_populates='questions')
    textos = db.relationship('CustomQuestionText', back_populates='question', cascade='all, delete-orphan')

    def default_text(self):
        for texto in self.textos:
            if texto.idioma == DEFAULT_LANGUAGE:
                return texto
        return next((t for t in self.textos if t.idioma_padrao), None)

    def to_dict(self):
        return {
            'id': self.id,
            'visibilidade': self.visibilidade,
            'obrigatorio': self.obrigatorio,
            'ordem': self.ordem,
            'tipo_resposta': self.tipo_resposta,
            'opcoes': list(self.opcoes or []),
            'textos': {t.idioma: {'titulo': t.titulo, 'descricao': t.descricao} for t in self.textos},
        }


class CustomQuestionText(db.Model):
    __tablename__ = 'perguntas_personalizadas_textos'
    id = db.Column(db.Integer, primary_key=True)
    pergunta_id = db.Column(db.Integer, db.ForeignKey('perguntas_personalizadas.id', ondelete='CASCADE'),
                            nullable=False)
    idioma = db.Column(db.String(10), nullable=False)
    titulo = db.Column(db.String(500), nullable=False)
    descricao = db.Column(db.Text, nullable=True)
    idioma_padrao = db.Column(db.Boolean, default=False, nullable=False)

    question = db.relationship('CustomQuestion', back_populates='textos')


# <--- AVALIAÇÕES --->

class Evaluation(db.Model):
    __tablename__ = 'avaliacoes'
    id = db.Column(db.Integer, primary_key=True)
    data_avaliacao = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), default='rascunho', nullable=False)
    observacoes = db.Column(db.Text, nullable=True)
    colaborador_id = db.Column(db.Integer, db.ForeignKey('pessoas.id'), nullable=False)
    colaborador_email = db.Column(db.String(120), nullable=True)
    empresa_id = db.Column(db.Integer, db.ForeignKey('empresas.id'), nullable=False)
    psicologa_responsavel_id = db.Column(db.Integer, db.ForeignKey('administradores.id'), nullable=True)
    modelo_id = db.Column(db.Integer, db.ForeignKey('modelos_avaliacao.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    colaborador = db.relationship('Pessoa')
    empresa = db.relationship('Empresa')
    psicologa = db.relationship('Administrador')
    modelo = db.relationship('EvaluationTemplate')
    pdi_tags = db.relationship('PdiTag', secondary=avaliacoes_pdi_tags, back_populates='evaluations',
                               order_by='PdiTag.nome')
    scores = db.relationship('EvaluationScore', back_populates='evaluation', cascade='all, delete-orphan')
    answers = db.relationship('EvaluationAnswer', back_populates='evaluation', cascade='all, delete-orphan')
    texts = db.relationship('EvaluationText', back_populates='evaluation', cascade='all, delete-orphan')

    @property
    def status_label(self):
        return EVALUATION_STATUS_LABELS.get(self.status, self.status)

    def to_dict(self):
        return {
            'id': self.id,
            'data_avaliacao': _iso(self.data_avaliacao),
            'status': self.status,
            'status_label': self.status_label,
            'observacoes': self.observacoes,
            'colaborador_id': self.colaborador_id,
            'colaborador_nome': self.colaborador.nome if self.colaborador else None,
            'empresa_id': self.empresa_id,
            'psicologa_responsavel_id': self.psicologa_responsavel_id,
            'modelo_id': self.modelo_id,
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<Evaluation {self.id} {self.status}>'


class EvaluationScore(db.Model):
    __tablename__ = 'avaliacoes_competencias'
    id = db.Column(db.Integer, primary_key=True)
    avaliacao_id = db.Column(db.Integer, db.ForeignKey('avaliacoes.id', ondelete='CASCADE'), nullable=False)
    criterio_id = db.Column(db.Integer, db.ForeignKey('criterios.id'), nullable=False)
    pontuacao = db.Column(db.Integer, default=0, nullable=False)
    observacoes = db.Column(db.Text, nullable=True)

    evaluation = db.relationship('Evaluation', back_populates='scores')

    __table_args__ = (db.UniqueConstraint('avaliacao_id', 'criterio_id', name='_avaliacao_criterio_uc'),)


class EvaluationAnswer(db.Model):
    __tablename__ = 'avaliacoes_respostas'
    id = db.Column(db.Integer, primary_key=True)
    avaliacao_id = db.Column(db.Integer, db.ForeignKey('avaliacoes.id', ondelete='CASCADE'), nullable=False)
    pergunta_id = db.Column(db.Integer, db.ForeignKey('perguntas_personalizadas.id'), nullable=False)
    resposta_texto = db.Column(db.Text, nullable=True)
    resposta_opcoes = db.Column(MutableList.as_mutable(JSON), nullable=True)
    resposta_numero = db.Column(db.Float, nullable=True)
    resposta_data = db.Column(db.Date, nullable=True)

    evaluation = db.relationship('Evaluation', back_populates='answers')

    __table_args__ = (db.UniqueConstraint('avaliacao_id', 'pergunta_id', name='_avaliacao_pergunta_uc'),)

    def to_dict(self):
        return {
            'texto': self.resposta_texto,
            'opcoes': list(self.resposta_opcoes) if self.resposta_opcoes is not None else None,
            'numero': self.resposta_numero,
            'data': _iso(self.resposta_data),
        }


class EvaluationText(db.Model):
    __tablename__ = 'avaliacoes_textos'
    id = db.Column(db.Integer, primary_key=True)
    avaliacao_id = db.Column(db.Integer, db.ForeignKey('avaliacoes.id', ondelete='CASCADE'), nullable=False)
    idioma = db.Column(db.String(10), nullable=False)
    pontos_fortes = db.Column(db.Text, nullable=True)
    oportunidades_melhoria = db.Column(db.Text, nullable=True)
    highlights_psicologa = db.Column(db.Text, nullable=True)
    sugestoes_desenvolvimento = db.Column(db.Text, nullable=True)
    idioma_padrao = db.Column(db.Boolean, default=False, nullable=False)

    evaluation = db.relationship('Evaluation', back_populates='texts')

    __table_args__ = (db.UniqueConstraint('avaliacao_id', 'idioma', name='_avaliacao_idioma_uc'),)


# <--- PDI --->

class PdiTag(db.Model):
    __tablename__ = 'pdi_tags'
    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(120), unique=True, nullable=False)
    descricao = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    contents = db.relationship('PdiContent', secondary=pdi_content_tags, back_populates='tags')
    evaluations = db.relationship('Evaluation', secondary=avaliacoes_pdi_tags, back_populates='pdi_tags')

    def to_dict(self):
        return {'id': self.id, 'nome': self.nome, 'slug': self.slug, 'descricao': self.descricao}

    def __repr__(self):
        return f'<PdiTag {self.slug}>'


class PdiMediaType(db.Model):
    __tablename__ = 'pdi_media_types'
    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(100), nullable=False)
    icone = db.Column(db.String(50), nullable=True)
    ordem = db.Column(db.Integer, default=0, nullable=False)
    ativo = db.Column(db.Boolean, default=True, nullable=False)

    def to_dict(self):
        return {'id': self.id, 'nome': self.nome, 'icone': self.icone, 'ordem': self.ordem}


class PdiAudience(db.Model):
    __tablename__ = 'pdi_audiences'
    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.String(100), nullable=False)
    ordem = db.Column(db.Integer, default=0, nullable=False)
    ativo = db.Column(db.Boolean, default=True, nullable=False)

    contents = db.relationship('PdiContent', secondary=pdi_content_audiences, back_populates='audiences')

    def to_dict(self):
        return {'id': self.id, 'nome': self.nome, 'ordem': self.ordem}


class PdiContent(db.Model):
    __tablename__ = 'pdi_contents'
    id = db.Column(db.Integer, primary_key=True)
    titulo = db.Column(db.String(300), nullable=False)
    descricao_curta = db.Column(db.String(500), nullable=False)
    descricao_longa = db.Column(db.Text, nullable=True)
    cover_image_url = db.Column(db.String(500), nullable=True)
    media_type_id = db.Column(db.Integer, db.ForeignKey('pdi_media_types.id'), nullable=False)
    external_url = db.Column(db.String(500), nullable=True)
    duration_minutes = db.Column(db.Integer, nullable=True)
    investment_cents = db.Column(db.Integer, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    avg_rating = db.Column(db.Numeric(3, 2), default=0, nullable=False)
    rating_count = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    media_type = db.relationship('PdiMediaType')
    tags = db.relationship('PdiTag', secondary=pdi_content_tags, back_populates='contents')
    competencies = db.relationship('Competency', secondary=pdi_content_competencies)
    audiences = db.relationship('PdiAudience', secondary=pdi_content_audiences, back_populates='contents')
    enrollments = db.relationship('PdiUserContent', back_populates='content', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'titulo': self.titulo,
            'descricao_curta': self.descricao_curta,
            'descricao_longa': self.descricao_longa,
            'cover_image_url': self.cover_image_url,
            'media_type_id': self.media_type_id,
            'external_url': self.external_url,
            'duration_minutes': self.duration_minutes,
            'investment_cents': self.investment_cents,
            'is_active': self.is_active,
            'avg_rating': float(self.avg_rating or 0),
            'rating_count': self.rating_count or 0,
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<PdiContent {self.titulo}>'


class PdiUserContent(db.Model):
    """Matrícula de uma pessoa em um conteúdo do PDI."""
    __tablename__ = 'pdi_user_contents'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('pessoas.id', ondelete='CASCADE'), nullable=False)
    content_id = db.Column(db.Integer, db.ForeignKey('pdi_contents.id', ondelete='CASCADE'), nullable=False)
    status = db.Column(db.String(20), default=PDI_STATUS_IN_PROGRESS, nullable=False)
    planned_due_date = db.Column(db.Date, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    rating_stars = db.Column(db.Integer, nullable=True)
    rating_comment = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    pessoa = db.relationship('Pessoa', back_populates='pdi_contents')
    content = db.relationship('PdiContent', back_populates='enrollments')

    __table_args__ = (db.UniqueConstraint('user_id', 'content_id', name='_pdi_user_content_uc'),)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'content_id': self.content_id,
            'status': self.status,
            'planned_due_date': _iso(self.planned_due_date),
            'completed_at': _iso(self.completed_at),
            'rating_stars': self.rating_stars,
            'rating_comment': self.rating_comment,
            'created_at': _iso(self.created_at),
        }


class PdiUserAction(db.Model):
    __tablename__ = 'pdi_user_actions'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('pessoas.id', ondelete='CASCADE'), nullable=False)
    description = db.Column(db.Text, nullable=False)
    planned_due_date = db.Column(db.Date, nullable=False)
    investment_cents = db.Column(db.Integer, nullable=True)
    status = db.Column(db.String(20), default=PDI_STATUS_IN_PROGRESS, nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    pessoa = db.relationship('Pessoa', back_populates='pdi_actions')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'description': self.description,
            'planned_due_date': _iso(self.planned_due_date),
            'investment_cents': self.investment_cents,
            'status': self.status,
            'completed_at': _iso(self.completed_at),
            'created_at': _iso(self.created_at),
        }


# <--- LOG DE ATIVIDADES --->

class AdminActivityLog(db.Model):
    __tablename__ = 'admin_activity_logs'
    id = db.Column(db.Integer, primary_key=True)
    admin_id = db.Column(db.Integer, db.ForeignKey('administradores.id', ondelete='SET NULL'), nullable=True)
    admin_name = db.Column(db.String(200), nullable=False)
    action_type = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text, nullable=False)
    entity_type = db.Column(db.String(50), nullable=True)
    entity_id = db.Column(db.Integer, nullable=True)
    entity_name = db.Column(db.String(300), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            'id': self.id,
            'admin_name': self.admin_name,
            'action_type': self.action_type,
            'description': self.description,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'entity_name': self.entity_name,
            'created_at': _iso(self.created_at),
        }
