import os
import logging
import subprocess
import datetime
from logging.handlers import RotatingFileHandler

import click
from flask import Flask, jsonify
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFProtect, CSRFError

from config import config as app_config
from ascender.errors import IdentityError
from ascender.models import db, User, Administrador, PdiMediaType, PdiAudience
from ascender.routes.admin import create_admin_blueprint
from ascender.routes.auth import auth_bp
from ascender.routes.util import util_bp, format_date_filter
from ascender.routes.pdi import pdi_bp
from ascender.routes.avaliacoes import avaliacoes_bp
from ascender.routes.admin_users import admin_users_bp
from ascender.services.identity import create_identity, find_identity_by_email


csrf = CSRFProtect()

DEFAULT_MEDIA_TYPES = [
    ('Vídeo', 'video', 1),
    ('Artigo', 'file-text', 2),
    ('Livro', 'book', 3),
    ('Curso', 'graduation-cap', 4),
    ('Podcast', 'headphones', 5),
]

DEFAULT_AUDIENCES = [
    ('Colaboradores', 1),
    ('Gestores', 2),
    ('Lideranças', 3),
]

def create_app(config_name=None):
    app = Flask(__name__, template_folder="templates")

    config_name = config_name or os.getenv('FLASK_CONFIG', 'default')
    app.config.from_object(app_config.get(config_name, app_config['default']))

    basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    instance_path = os.path.join(basedir, 'instance')
    os.makedirs(instance_path, exist_ok=True)

    default_sqlite = 'sqlite:///' + os.path.join(instance_path, 'database.db')
    app.config['SQLALCHEMY_DATABASE_URI'] = app.config.get('SQLALCHEMY_DATABASE_URI') or default_sqlite

    app.config.setdefault('UPLOAD_FOLDER', os.path.join(instance_path, 'uploads'))
    app.config.setdefault('MAX_CONTENT_LENGTH', 10 * 1024 * 1024)

    configure_logging(app)

    db.init_app(app)
    Migrate(app, db)
    csrf.init_app(app)

    login_config(app)
    registry_routes(app)
    registry_filters(app)
    initdb(app)
    return app

def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    app.logger.setLevel(level)
    logging.getLogger('ascender').setLevel(level)

    log_file = app.config.get('LOG_FILE')
    if app.testing or not log_file:
        return

    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5, encoding='utf-8')
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s [%(name)s] %(message)s'))
    handler.setLevel(level)
    app.logger.addHandler(handler)
    logging.getLogger('ascender').addHandler(handler)

def registry_routes(app):
    admin_bp = create_admin_blueprint()
    app.register_blueprint(admin_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(util_bp)
    app.register_blueprint(pdi_bp)
    app.register_blueprint(avaliacoes_bp)
    app.register_blueprint(admin_users_bp)

    # Rotas com token Bearer, sem sessão
    csrf.exempt(admin_users_bp)
    csrf.exempt(auth_bp)

    # Escritas com sessão exigem o cabeçalho X-CSRFToken (GET /csrf-token)
    @app.errorhandler(CSRFError)
    def csrf_error(e):
        app.logger.warning(f"Requisição recusada por CSRF: {e.description}")
        return jsonify({'success': False, 'error': e.description}), 400

def login_config(app):
    login_manager = LoginManager()
    login_manager.init_app(app)
    login_manager.login_view = 'auth.login'
    login_manager.login_message = "Por favor, realize o login para acessar esta página."

    @login_manager.user_loader
    def load_user(id):
        return db.session.get(User, int(id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'error': login_manager.login_message}), 401

def registry_filters(app):
    app.jinja_env.filters['format_date'] = format_date_filter
    app.jinja_env.filters['format_date_short'] = lambda val: format_date_filter(val, format_str='%d/%m/%Y')
    app.jinja_env.filters['format_date_time'] = lambda val: format_date_filter(val, format_str='%d/%m/%Y %H:%M')

def seed_catalog():
    """Tipos de mídia e públicos padrão do PDI."""
    created = 0
    for nome, icone, ordem in DEFAULT_MEDIA_TYPES:
        if not PdiMediaType.query.filter_by(nome=nome).first():
            db.session.add(PdiMediaType(nome=nome, icone=icone, ordem=ordem, ativo=True))
            created += 1
    for nome, ordem in DEFAULT_AUDIENCES:
        if not PdiAudience.query.filter_by(nome=nome).first():
            db.session.add(PdiAudience(nome=nome, ordem=ordem, ativo=True))
            created += 1
    db.session.commit()
    return created

def initdb(app):
    @app.cli.command("init-db")
    def init_db_command():
        with app.app_context():
            db.create_all()
            created = seed_catalog()
        print(f"Banco de dados inicializado ({created} registro(s) de catálogo criados).")

    @app.cli.command("create-admin")
    @click.option('--email', prompt=True)
    @click.option('--nome', prompt=True)
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin_command(email, nome, password):
        with app.app_context():
            user = find_identity_by_email(email)
            if user is None:
                try:
                    user = create_identity(email, password, {'nome': nome})
                except IdentityError as e:
                    print(f"Não foi possível criar o usuário: {e.message}")
                    return

            admin = Administrador.query.filter_by(auth_user_id=user.id).first()
            if admin:
                admin.e_administrador = True
                admin.ativo = True
                print(f"Usuário {user.email} já possuía registro de administrador; acesso reativado.")
            else:
                db.session.add(Administrador(nome=nome, email=user.email, auth_user_id=user.id,
                                             e_administrador=True, ativo=True))
                print(f"Administrador {user.email} criado com sucesso.")
            db.session.commit()

    @app.cli.command("migrate-upgrade")
    def migrate_upgrade():
        msg = f"Auto migration - {datetime.datetime.now().strftime('%d-%m-%Y_%H-%M-%S')}"
        subprocess.run(["flask", "db", "migrate", "-m", msg], check=True)
        subprocess.run(["flask", "db", "upgrade"], check=True)
        print("Migração e upgrade aplicados com sucesso.")
